"""
Season transition data models.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from foosbot.data_models.leaderboard import RankedEntry


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of one month-end transition run."""
    run_id: str
    trigger: str  # 'scheduled' or 'manual'
    previous_season: str
    new_season: str
    winners: List[RankedEntry] = field(default_factory=list)
    players_bootstrapped: int = 0
    notified: int = 0
    skipped: int = 0
    failed: int = 0
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None

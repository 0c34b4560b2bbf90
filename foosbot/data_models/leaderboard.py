"""
Leaderboard data models for season rankings.

Provides immutable data transfer objects for category and summary rankings.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


CATEGORIES = ('elo_gains', 'matches_played', 'dry_wins', 'total_wins', 'longest_streak')


@dataclass(frozen=True)
class PlayerStatLine:
    """One player's season figures as read from the season aggregate."""
    player_id: int
    username: str
    display_name: str
    elo_gains: int = 0
    matches_played: int = 0
    dry_wins: int = 0
    total_wins: int = 0
    longest_streak: int = 0
    total_points: int = 0


@dataclass(frozen=True)
class RankedEntry:
    """Single ranking row. Ties share a rank."""
    rank: int
    player_id: int
    username: str
    display_name: str
    value: int
    points: int = 0


@dataclass(frozen=True)
class EloLeaderboardEntry:
    """All-time row: current rating plus lifetime record."""
    rank: int
    player_id: int
    username: str
    display_name: str
    elo: int
    total_matches: int
    total_wins: int
    win_rate: float


@dataclass(frozen=True)
class SeasonLeaderboard:
    """Summary ranking plus the five category tables for one season."""
    season: str
    summary: List[RankedEntry] = field(default_factory=list)
    categories: Dict[str, List[RankedEntry]] = field(
        default_factory=lambda: {category: [] for category in CATEGORIES}
    )

    @property
    def is_empty(self) -> bool:
        return not self.summary

    def entry_for(self, player_id: int) -> Optional[RankedEntry]:
        for entry in self.summary:
            if entry.player_id == player_id:
                return entry
        return None

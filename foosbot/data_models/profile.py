"""
Player stats data models.

Provides immutable data transfer objects for /stats and /season-stats.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True)
class MatchRecord:
    """Single match history entry from one player's point of view."""
    match_id: int
    season: str
    won: bool
    is_dry_win: bool
    elo_change: int
    teammate: str
    opponents: List[str]
    played_at: datetime


@dataclass(frozen=True)
class MatchRecordResult:
    """What /match reports back after a match is stored."""
    match_id: int
    season: str
    winners: List[str]
    losers: List[str]
    winner_changes: List[int]
    loser_changes: List[int]
    winner_new_ratings: List[int]
    loser_new_ratings: List[int]
    expected_winner_score: float
    is_dry_win: bool
    dry_win_inferred: bool


@dataclass(frozen=True)
class PlayerStats:
    """Overall and current-season figures for a player."""
    player_id: int
    username: str
    display_name: str
    current_elo: int

    total_matches: int
    wins: int
    losses: int
    win_rate: float  # 0.0 - 100.0

    season: str
    season_matches: int
    season_wins: int
    season_win_rate: float

    recent_form: int  # Wins in the last RECENT_FORM_MATCHES
    recent_matches: int


@dataclass(frozen=True)
class PlayerSeasonSummary:
    """Stored season aggregate for one player, with rank on the summary table."""
    player_id: int
    username: str
    display_name: str
    season: str
    elo_gains: int
    matches_played: int
    dry_wins: int
    total_wins: int
    longest_streak: int
    total_points: int
    season_start_elo: Optional[int]
    rank: Optional[int]
    total_players: int

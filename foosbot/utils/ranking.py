"""
Shared ranking utilities for season leaderboards.

Category rankings award 3/2/1 points to ranks 1/2/3. Tied values share the
rank and the points of the first player with that value, and the next distinct
value takes its 1-based position (100, 100, 60 ranks as 1, 1, 3).
"""

from typing import Dict, List, Sequence

from foosbot.data_models.leaderboard import CATEGORIES, PlayerStatLine, RankedEntry


class RankingUtility:
    """Shared ranking logic for category and total-points tables."""

    @staticmethod
    def points_for_rank(rank: int) -> int:
        return 4 - rank if rank <= 3 else 0

    @staticmethod
    def _sort_key(value: int, username: str):
        # Descending value, then handle ascending so equal values order deterministically
        return (-value, username.lower())

    @staticmethod
    def rank_by_category(entries: Sequence[PlayerStatLine], category: str) -> List[RankedEntry]:
        """Rank players on one category and attach category points."""
        if not RankingUtility.validate_category(category):
            raise ValueError(f"Unknown ranking category: {category}")

        ordered = sorted(
            entries,
            key=lambda e: RankingUtility._sort_key(getattr(e, category), e.username)
        )

        ranked = []
        current_rank = 1
        current_value = None
        current_points = 3
        for index, entry in enumerate(ordered):
            value = getattr(entry, category)
            if index == 0:
                current_value = value
            elif value != current_value:
                current_rank = index + 1
                current_points = RankingUtility.points_for_rank(current_rank)
                current_value = value
            ranked.append(RankedEntry(
                rank=current_rank,
                player_id=entry.player_id,
                username=entry.username,
                display_name=entry.display_name,
                value=value,
                points=current_points,
            ))
        return ranked

    @staticmethod
    def calculate_total_points(entries: Sequence[PlayerStatLine]) -> Dict[int, int]:
        """Sum category points over the five categories, keyed by player id."""
        totals = {entry.player_id: 0 for entry in entries}
        for category in CATEGORIES:
            for ranked in RankingUtility.rank_by_category(entries, category):
                totals[ranked.player_id] += ranked.points
        return totals

    @staticmethod
    def rank_total(entries: Sequence[PlayerStatLine]) -> List[RankedEntry]:
        """Summary ranking by stored total points, competition-style ranks."""
        ordered = sorted(
            entries,
            key=lambda e: RankingUtility._sort_key(e.total_points, e.username)
        )

        ranked = []
        previous_points = None
        rank = 0
        for index, entry in enumerate(ordered):
            if entry.total_points != previous_points:
                rank = index + 1
                previous_points = entry.total_points
            ranked.append(RankedEntry(
                rank=rank,
                player_id=entry.player_id,
                username=entry.username,
                display_name=entry.display_name,
                value=entry.total_points,
                points=entry.total_points,
            ))
        return ranked

    @staticmethod
    def validate_category(category: str) -> bool:
        """Validate category against the five ranked season categories."""
        return category in CATEGORIES

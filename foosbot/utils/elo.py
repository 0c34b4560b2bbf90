import math
from dataclasses import dataclass
from typing import List, Sequence

from foosbot.config import Config
from foosbot.utils.exceptions import ValidationError


@dataclass(frozen=True)
class TeamEloResult:
    """Outcome of a 2v2 rating update. Lists keep the input order of each team."""
    new_team1_ratings: List[int]
    new_team2_ratings: List[int]
    team1_changes: List[int]
    team2_changes: List[int]
    expected_team1_score: float


class EloCalculator:
    """Handles team Elo rating calculations for 2v2 matches"""

    @staticmethod
    def calculate_expected_score(rating_a: float, rating_b: float) -> float:
        """
        Calculate the expected score for side A against side B

        Args:
            rating_a: Side A's rating (a team average for 2v2)
            rating_b: Side B's rating

        Returns:
            Expected score (0.0 to 1.0) for side A
        """
        return 1 / (1 + math.pow(10, (rating_b - rating_a) / 400))

    @staticmethod
    def team_average(ratings: Sequence[int]) -> float:
        return (ratings[0] + ratings[1]) / 2

    @staticmethod
    def _round_rating(value: float) -> int:
        # Half-up rounding, floored at the minimum rating
        return max(Config.MIN_ELO, math.floor(value + 0.5))

    @staticmethod
    def calculate_team_elo_changes(team1_ratings: Sequence[int], team2_ratings: Sequence[int],
                                   winning_team: int, k_factor: int = None) -> TeamEloResult:
        """
        Calculate Elo changes for a 2v2 match

        Both members of a team receive the same delta, computed from the team
        averages. Rounding happens per member.

        Args:
            team1_ratings: Current ratings of team 1's two players
            team2_ratings: Current ratings of team 2's two players
            winning_team: 1 if team 1 won, 2 if team 2 won
            k_factor: Override for Config.ELO_K_FACTOR

        Returns:
            TeamEloResult with new ratings and per-player changes
        """
        if len(team1_ratings) != 2 or len(team2_ratings) != 2:
            raise ValidationError("Each team must have exactly 2 players")
        if winning_team not in (1, 2):
            raise ValidationError("Winning team must be 1 or 2")

        k = Config.ELO_K_FACTOR if k_factor is None else k_factor

        avg1 = EloCalculator.team_average(team1_ratings)
        avg2 = EloCalculator.team_average(team2_ratings)
        expected1 = EloCalculator.calculate_expected_score(avg1, avg2)
        actual1 = 1.0 if winning_team == 1 else 0.0

        delta1 = k * (actual1 - expected1)
        delta2 = k * ((1 - actual1) - (1 - expected1))

        new_team1 = [EloCalculator._round_rating(r + delta1) for r in team1_ratings]
        new_team2 = [EloCalculator._round_rating(r + delta2) for r in team2_ratings]

        return TeamEloResult(
            new_team1_ratings=new_team1,
            new_team2_ratings=new_team2,
            team1_changes=[new - old for new, old in zip(new_team1, team1_ratings)],
            team2_changes=[new - old for new, old in zip(new_team2, team2_ratings)],
            expected_team1_score=expected1,
        )

    @staticmethod
    def calculate_win_probability(team_a_ratings: Sequence[int], team_b_ratings: Sequence[int]) -> float:
        """
        Calculate win probability for team A against team B

        Returns:
            Win probability as percentage (0.0 to 100.0)
        """
        expected_score = EloCalculator.calculate_expected_score(
            EloCalculator.team_average(team_a_ratings),
            EloCalculator.team_average(team_b_ratings)
        )
        return expected_score * 100

    @staticmethod
    def format_elo_change(elo_change: int) -> str:
        """Format Elo change for display with an explicit sign"""
        if elo_change > 0:
            return f"+{elo_change}"
        elif elo_change < 0:
            return str(elo_change)
        else:
            return "±0"

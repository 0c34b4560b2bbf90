"""Unit tests for 2v2 team Elo."""

import pytest

from foosbot.utils.elo import EloCalculator
from foosbot.utils.exceptions import ValidationError


class TestTeamEloChanges:
    """Tests for calculate_team_elo_changes."""

    def test_equal_teams_symmetric(self):
        """Equal ratings: winners +16, losers -16 with K=32."""
        result = EloCalculator.calculate_team_elo_changes([1000, 1000], [1000, 1000], winning_team=1)
        assert result.team1_changes == [16, 16]
        assert result.team2_changes == [-16, -16]
        assert result.new_team1_ratings == [1016, 1016]
        assert result.new_team2_ratings == [984, 984]
        assert result.expected_team1_score == pytest.approx(0.5)

    def test_team_two_wins(self):
        result = EloCalculator.calculate_team_elo_changes([1000, 1000], [1000, 1000], winning_team=2)
        assert result.team1_changes == [-16, -16]
        assert result.team2_changes == [16, 16]

    def test_upset_pays_more(self):
        """Underdogs at 1000 beating a 1200 pair gain 24."""
        result = EloCalculator.calculate_team_elo_changes([1000, 1000], [1200, 1200], winning_team=1)
        assert result.team1_changes == [24, 24]
        assert result.team2_changes == [-24, -24]
        assert result.expected_team1_score == pytest.approx(0.2403, abs=1e-4)

    def test_team_average_drives_delta(self):
        """Both members move by the same delta even with different ratings."""
        result = EloCalculator.calculate_team_elo_changes([900, 1100], [1000, 1000], winning_team=1)
        assert result.team1_changes[0] == result.team1_changes[1] == 16
        assert result.new_team1_ratings == [916, 1116]

    def test_rating_floored_at_zero(self):
        result = EloCalculator.calculate_team_elo_changes([5, 5], [5, 5], winning_team=1)
        assert result.new_team2_ratings == [0, 0]
        assert result.team2_changes == [-5, -5]
        assert result.new_team1_ratings == [21, 21]

    def test_custom_k_factor(self):
        result = EloCalculator.calculate_team_elo_changes([1000, 1000], [1000, 1000], winning_team=1, k_factor=20)
        assert result.team1_changes == [10, 10]

    @pytest.mark.parametrize('team1,team2', [
        ([1000], [1000, 1000]),
        ([1000, 1000, 1000], [1000, 1000]),
        ([1000, 1000], []),
    ])
    def test_wrong_team_size_rejected(self, team1, team2):
        with pytest.raises(ValidationError):
            EloCalculator.calculate_team_elo_changes(team1, team2, winning_team=1)

    def test_invalid_winning_team_rejected(self):
        with pytest.raises(ValidationError):
            EloCalculator.calculate_team_elo_changes([1000, 1000], [1000, 1000], winning_team=3)


class TestHelpers:

    def test_win_probability_even(self):
        assert EloCalculator.calculate_win_probability([1000, 1000], [1000, 1000]) == pytest.approx(50.0)

    def test_format_elo_change(self):
        assert EloCalculator.format_elo_change(16) == "+16"
        assert EloCalculator.format_elo_change(-16) == "-16"
        assert EloCalculator.format_elo_change(0) == "±0"

"""Unit tests for season identifiers."""

from datetime import datetime

import pytest

from foosbot.utils.exceptions import ValidationError
from foosbot.utils.seasons import (
    current_season, is_valid_season, next_season, parse_season, previous_season
)


class TestSeasonCalendar:

    def test_january(self):
        now = datetime(2024, 1, 15)
        assert current_season(now) == '2024-01'
        assert next_season(now) == '2024-02'
        assert previous_season(now) == '2023-12'

    def test_december_wraps_forward(self):
        now = datetime(2024, 12, 31, 23, 59)
        assert current_season(now) == '2024-12'
        assert next_season(now) == '2025-01'
        assert previous_season(now) == '2024-11'


class TestParseSeason:

    def test_valid(self):
        assert parse_season('2024-03') == (2024, 3)
        assert is_valid_season('2024-12')

    @pytest.mark.parametrize('season', ['2024-13', '2024-00', '2024-1', '24-01', 'march', '', None])
    def test_invalid(self, season):
        with pytest.raises(ValidationError):
            parse_season(season)
        assert not is_valid_season(season)

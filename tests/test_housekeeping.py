"""Tests for the monthly transition schedule and logging setup."""

import logging
from datetime import datetime
from types import SimpleNamespace

import pytest
import pytz

from foosbot.cogs.housekeeping import HousekeepingCog
from foosbot.config import Config
from foosbot.utils.logger import PACKAGE_LOGGER, setup_logger

BERLIN = pytz.timezone('Europe/Berlin')


def make_cog(last_transitioned):
    bot = SimpleNamespace(player_service=None, season_service=None, transition_service=None, notifier=None)
    cog = HousekeepingCog(bot)
    cog.last_transitioned_season = last_transitioned
    return cog


class TestTransitionSchedule:

    def test_loop_runs_hourly(self):
        assert HousekeepingCog.monthly_season_transition.hours == 1
        assert HousekeepingCog.monthly_season_transition.time is None

    @pytest.mark.parametrize('local,last,due', [
        # Summer time starts on 2024-03-31, so the offset differs from January
        (datetime(2024, 4, 1, 0, 30), '2024-03', True),
        (datetime(2024, 4, 1, 23, 30), '2024-03', True),
        (datetime(2024, 4, 1, 0, 30), '2024-04', False),
        (datetime(2024, 3, 31, 23, 30), '2024-03', False),
        (datetime(2024, 11, 1, 0, 5), '2024-10', True),
        (datetime(2024, 4, 2, 0, 30), '2024-03', False),
    ])
    def test_due_on_local_first_of_month(self, local, last, due):
        cog = make_cog(last)
        assert cog.is_transition_due(BERLIN.localize(local)) is due

    def test_local_date_decides_across_utc_boundary(self):
        # 22:30 UTC on 31 March is already 1 April in Berlin
        now = datetime(2024, 3, 31, 22, 30, tzinfo=pytz.utc).astimezone(BERLIN)
        assert make_cog('2024-03').is_transition_due(now) is True


@pytest.fixture
def fresh_package_logger():
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    saved_handlers, saved_level = package_logger.handlers[:], package_logger.level
    package_logger.handlers = []
    yield package_logger
    for handler in package_logger.handlers:
        handler.close()
    package_logger.handlers = saved_handlers
    package_logger.setLevel(saved_level)


class TestLogger:

    def test_configured_from_config(self, fresh_package_logger, tmp_path, monkeypatch):
        monkeypatch.setattr(Config, 'LOG_LEVEL', 'WARNING')
        monkeypatch.setattr(Config, 'LOG_DIR', str(tmp_path / 'logs'))

        logger = setup_logger('foosbot.cogs.example')

        assert logger.name == 'foosbot.cogs.example'
        assert logger.handlers == []
        assert fresh_package_logger.level == logging.WARNING
        assert len(fresh_package_logger.handlers) == 2
        assert list((tmp_path / 'logs').glob('foosbot_*.log'))

    def test_empty_log_dir_is_console_only(self, fresh_package_logger, monkeypatch):
        monkeypatch.setattr(Config, 'LOG_LEVEL', 'INFO')
        monkeypatch.setattr(Config, 'LOG_DIR', '')

        setup_logger()
        setup_logger('foosbot.services.season_service')

        assert [type(h) for h in fresh_package_logger.handlers] == [logging.StreamHandler]

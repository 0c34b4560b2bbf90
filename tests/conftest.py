"""Shared fixtures: a throwaway SQLite database and services on a pinned clock."""

from datetime import datetime

import pytest
import pytz

from foosbot.database.database import Database
from foosbot.services.match_service import MatchService
from foosbot.services.player_service import PlayerService
from foosbot.services.season_service import SeasonService
from foosbot.services.season_transition_service import SeasonTransitionService


class FixedClock:
    """Callable clock that tests can move between months."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, *args):
        self.now = datetime(*args, tzinfo=pytz.utc)


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 1, 15, 12, 0, tzinfo=pytz.utc))


@pytest.fixture
async def db(tmp_path):
    database = Database(f"sqlite+aiosqlite:///{tmp_path}/test.db")
    await database.initialize()
    yield database
    await database.close()


@pytest.fixture
def player_service(db):
    return PlayerService(db.session_factory)


@pytest.fixture
def season_service(db, clock):
    return SeasonService(db.session_factory, clock=clock)


@pytest.fixture
def match_service(db, player_service, season_service):
    return MatchService(db.session_factory, player_service, season_service)


@pytest.fixture
def transition_service(db, season_service, player_service):
    return SeasonTransitionService(db.session_factory, season_service, player_service)


@pytest.fixture
async def four_players(player_service):
    """alice/bob vs carol/dave, all on the starting rating."""
    players = []
    for index, username in enumerate(['alice', 'bob', 'carol', 'dave']):
        players.append(await player_service.register_player(username, chat_id=1000 + index))
    return players

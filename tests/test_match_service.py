"""Tests for match recording, its side effects and the match history reads."""

import asyncio

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from foosbot.database.models import MatchParticipant
from foosbot.utils.exceptions import AggregationError, ConcurrentUpdateError, PlayerNotFoundError, ValidationError


async def elos(player_service, usernames):
    return [(await player_service.get_player_by_username(u)).elo for u in usernames]


class TestRecordMatch:

    async def test_four_fresh_players(self, match_service, season_service, player_service, four_players):
        """Pair A beats pair B from 1000 each; season stats and summary follow."""
        alice, bob, carol, dave = four_players

        result = await match_service.record_match(['alice', 'bob'], ['carol', 'dave'], is_dry_win=False)

        assert result.season == '2024-01'
        assert result.winner_changes == [16, 16]
        assert result.loser_changes == [-16, -16]
        assert result.is_dry_win is False
        assert result.dry_win_inferred is False
        assert await elos(player_service, ['alice', 'bob', 'carol', 'dave']) == [1016, 1016, 984, 984]

        for winner in (alice, bob):
            stats = await season_service.get_player_season_stats(winner.id)
            assert stats.matches_played == 1
            assert stats.total_wins == 1
            assert stats.dry_wins == 0
            assert stats.elo_gains == 16
            assert stats.rank == 1
        for loser in (carol, dave):
            stats = await season_service.get_player_season_stats(loser.id)
            assert stats.matches_played == 1
            assert stats.total_wins == 0
            assert stats.elo_gains == 0

        leaderboard = await season_service.get_season_leaderboard('2024-01')
        top_two = leaderboard.summary[:2]
        assert {e.username for e in top_two} == {'alice', 'bob'}
        assert [e.rank for e in top_two] == [1, 1]
        assert [e.rank for e in leaderboard.summary[2:]] == [3, 3]

    async def test_season_start_recorded_before_rating_moves(self, match_service, player_service, four_players):
        await match_service.record_match(['alice', 'bob'], ['carol', 'dave'], is_dry_win=False)

        alice = await player_service.get_player_by_username('alice')
        assert alice.season_start_elo('2024-01') == 1000

    async def test_dry_win_inferred_when_not_given(self, match_service, season_service, four_players):
        result = await match_service.record_match(['alice', 'bob'], ['carol', 'dave'])

        # Equal pairs lose 16 each, past the -15 threshold
        assert result.dry_win_inferred is True
        assert result.is_dry_win is True
        stats = await season_service.get_player_season_stats(four_players[0].id)
        assert stats.dry_wins == 1

    async def test_explicit_season(self, match_service, season_service, four_players):
        result = await match_service.record_match(['alice', 'bob'], ['carol', 'dave'],
                                                  season='2023-12', is_dry_win=False)
        assert result.season == '2023-12'
        assert await season_service.get_player_season_stats(four_players[0].id, '2023-12') is not None
        assert await season_service.get_player_season_stats(four_players[0].id, '2024-01') is None

    async def test_handles_normalized(self, match_service, four_players):
        result = await match_service.record_match(['@alice', ' bob '], ['carol', 'dave'], is_dry_win=False)
        assert result.winners == ['alice', 'bob']


class TestRejectedSubmissions:

    @pytest.mark.parametrize('winners,losers', [
        (['alice'], ['carol', 'dave']),
        (['alice', 'bob', 'erin'], ['carol', 'dave']),
        (['alice', 'bob'], ['carol']),
        (['alice', 'bob'], ['alice', 'dave']),
        (['alice', 'Alice'], ['carol', 'dave']),
        (['alice', ''], ['carol', 'dave']),
    ])
    async def test_invalid_shape(self, match_service, player_service, four_players, winners, losers):
        with pytest.raises(ValidationError):
            await match_service.record_match(winners, losers, is_dry_win=False)

        assert await match_service.get_recent_matches() == []
        assert await elos(player_service, ['alice', 'bob', 'carol', 'dave']) == [1000] * 4

    async def test_invalid_season(self, match_service, four_players):
        with pytest.raises(ValidationError):
            await match_service.record_match(['alice', 'bob'], ['carol', 'dave'], season='2024-13')

    async def test_unknown_player(self, match_service, player_service, four_players):
        with pytest.raises(PlayerNotFoundError) as exc_info:
            await match_service.record_match(['alice', 'bob'], ['carol', 'zoe'], is_dry_win=False)

        assert exc_info.value.identifier == 'zoe'
        assert await match_service.get_recent_matches() == []
        assert await elos(player_service, ['alice', 'bob', 'carol', 'dave']) == [1000] * 4

        alice = await player_service.get_player_by_username('alice')
        assert alice.season_start_elo('2024-01') is None

    async def test_aggregation_failure_keeps_match(self, match_service, season_service,
                                                   player_service, four_players, monkeypatch):
        async def broken(*args, **kwargs):
            raise RuntimeError("storage unavailable")

        monkeypatch.setattr(season_service, '_compute_player_fields', broken)

        with pytest.raises(AggregationError) as exc_info:
            await match_service.record_match(['alice', 'bob'], ['carol', 'dave'], is_dry_win=False)
        assert exc_info.value.season == '2024-01'

        # Ledger and ratings are committed even though the aggregate is stale
        assert len(await match_service.get_recent_matches()) == 1
        assert await elos(player_service, ['alice', 'bob', 'carol', 'dave']) == [1016, 1016, 984, 984]
        assert await season_service.get_player_season_stats(four_players[0].id) is None

        monkeypatch.undo()
        await season_service.rebuild_season_stats('2024-01')
        stats = await season_service.get_player_season_stats(four_players[0].id)
        assert stats.total_wins == 1
        assert stats.elo_gains == 16


async def ledger_totals(db):
    """Sum of recorded Elo changes per player id."""
    async with db.session_factory() as session:
        result = await session.execute(
            select(MatchParticipant.player_id, func.sum(MatchParticipant.elo_change))
            .group_by(MatchParticipant.player_id)
        )
        return dict(result.all())


class TestConcurrentSubmissions:

    async def test_shared_player_ratings_follow_ledger(self, db, match_service, season_service,
                                                       player_service, four_players):
        await match_service.record_match(['alice', 'bob'], ['carol', 'dave'], is_dry_win=False)

        await asyncio.gather(
            match_service.record_match(['alice', 'bob'], ['carol', 'dave'], is_dry_win=False),
            match_service.record_match(['alice', 'carol'], ['bob', 'dave'], is_dry_win=False),
        )

        totals = await ledger_totals(db)
        for player in await player_service.get_all_players():
            assert player.elo == 1000 + totals[player.id]

        alice = four_players[0]
        stats = await season_service.get_player_season_stats(alice.id)
        assert stats.matches_played == 3
        assert stats.elo_gains == totals[alice.id]

    async def test_first_matches_of_season_at_once(self, db, match_service, season_service,
                                                   player_service, four_players):
        first, second = await asyncio.gather(
            match_service.record_match(['alice', 'bob'], ['carol', 'dave'], is_dry_win=False),
            match_service.record_match(['carol', 'dave'], ['alice', 'bob'], is_dry_win=True),
        )

        assert first.match_id != second.match_id
        for player in await player_service.get_all_players():
            assert player.season_start_elo('2024-01') == 1000

        totals = await ledger_totals(db)
        assert await elos(player_service, ['alice', 'bob', 'carol', 'dave']) == [
            1000 + totals[p.id] for p in four_players
        ]

        live = await season_service.get_season_leaderboard('2024-01')
        await season_service.rebuild_season_stats('2024-01')
        assert await season_service.get_season_leaderboard('2024-01') == live

    async def test_conflicting_write_rolls_back_match(self, match_service, season_service,
                                                      player_service, four_players, monkeypatch):
        async def conflicting_insert(session, player_id, season):
            raise IntegrityError("INSERT INTO season_start_elos", {}, Exception("UNIQUE constraint failed"))

        monkeypatch.setattr(season_service, '_record_season_start_elo', conflicting_insert)

        with pytest.raises(ConcurrentUpdateError):
            await match_service.record_match(['alice', 'bob'], ['carol', 'dave'], is_dry_win=False)

        assert await match_service.get_recent_matches() == []
        assert await elos(player_service, ['alice', 'bob', 'carol', 'dave']) == [1000] * 4
        assert not season_service.rating_lock.locked()


class TestHistory:

    async def test_player_stats(self, match_service, four_players):
        await match_service.record_match(['alice', 'bob'], ['carol', 'dave'], is_dry_win=False)
        await match_service.record_match(['carol', 'alice'], ['bob', 'dave'], is_dry_win=False)
        await match_service.record_match(['carol', 'dave'], ['alice', 'bob'], is_dry_win=False)

        stats = await match_service.get_player_stats('alice')
        assert stats.total_matches == 3
        assert stats.wins == 2
        assert stats.losses == 1
        assert stats.win_rate == pytest.approx(200 / 3)
        assert stats.season == '2024-01'
        assert stats.season_matches == 3
        assert stats.recent_matches == 3
        assert stats.recent_form == 2

    async def test_player_matches_newest_first(self, match_service, four_players):
        first = await match_service.record_match(['alice', 'bob'], ['carol', 'dave'], is_dry_win=False)
        second = await match_service.record_match(['carol', 'alice'], ['bob', 'dave'], is_dry_win=True)

        history = await match_service.get_player_matches('alice')
        assert [record.match_id for record in history] == [second.match_id, first.match_id]
        assert history[0].won is True
        assert history[0].is_dry_win is True
        assert history[0].teammate == 'carol'
        assert sorted(history[0].opponents) == ['bob', 'dave']

    async def test_unknown_player_stats(self, match_service):
        with pytest.raises(PlayerNotFoundError):
            await match_service.get_player_stats('nobody')

    async def test_season_matches(self, match_service, four_players):
        await match_service.record_match(['alice', 'bob'], ['carol', 'dave'], season='2023-12', is_dry_win=False)
        await match_service.record_match(['alice', 'bob'], ['carol', 'dave'], is_dry_win=False)

        assert len(await match_service.get_season_matches('2023-12')) == 1
        assert len(await match_service.get_season_matches('2024-01')) == 1

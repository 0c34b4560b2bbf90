"""
Match recording and history service.

Owns the append-only match ledger. A submission is validated and resolved
before anything is written; the match row, the players' season-start Elo and
their new ratings are then committed together. Season aggregation runs after
that commit, so an aggregation failure never loses the match.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from foosbot.config import Config
from foosbot.data_models.profile import MatchRecord, MatchRecordResult, PlayerStats
from foosbot.database.models import Match, MatchParticipant, MatchTeam
from foosbot.services.base import BaseService
from foosbot.services.player_service import PlayerService, normalize_username
from foosbot.services.season_service import SeasonService
from foosbot.utils.elo import EloCalculator
from foosbot.utils.exceptions import ConcurrentUpdateError, PlayerNotFoundError, ValidationError
from foosbot.utils.seasons import current_season, parse_season

logger = logging.getLogger(__name__)


class MatchService(BaseService):
    """Service for recording 2v2 matches and reading match history."""

    def __init__(self, session_factory, player_service: PlayerService,
                 season_service: SeasonService, clock: Optional[Callable] = None):
        super().__init__(session_factory)
        self.player_service = player_service
        self.season_service = season_service
        self.clock = clock or season_service.clock

    def _timestamp(self) -> datetime:
        now = self.clock()
        if now.tzinfo is not None:
            now = now.astimezone(timezone.utc).replace(tzinfo=None)
        return now

    @staticmethod
    def validate_submission(winner_usernames: Sequence[str], loser_usernames: Sequence[str],
                            season: Optional[str]) -> List[str]:
        """Shape checks that need no database. Returns the normalized handles."""
        if len(winner_usernames) != 2 or len(loser_usernames) != 2:
            raise ValidationError("Each team must have exactly 2 players")

        usernames = [normalize_username(u) for u in list(winner_usernames) + list(loser_usernames)]
        if len({u.lower() for u in usernames}) != 4:
            raise ValidationError("All four players must be different")

        if season is not None:
            parse_season(season)
        return usernames

    async def record_match(self, winner_usernames: Sequence[str], loser_usernames: Sequence[str],
                           season: Optional[str] = None, is_dry_win: Optional[bool] = None) -> MatchRecordResult:
        """
        Record a finalized 2v2 match.

        Args:
            winner_usernames: The two winning handles
            loser_usernames: The two losing handles
            season: Season identifier, defaults to the current season
            is_dry_win: Whether the losers failed to score. None falls back
                to the Elo-based heuristic.

        Raises:
            ValidationError: Malformed submission, nothing written
            PlayerNotFoundError: Unknown handle, nothing written
            ConcurrentUpdateError: Lost a write race with another process, nothing written
            AggregationError: Match stored but season stats not refreshed
        """
        usernames = self.validate_submission(winner_usernames, loser_usernames, season)
        season = season or current_season(self.clock())

        # Held from the Elo read through the commit so concurrent matches never rate from a stale Elo
        async with self.season_service.rating_lock:
            try:
                async with self.get_session() as session:
                    players = []
                    for username in usernames:
                        player = await self.player_service.get_player_by_username(username, session=session)
                        if player is None:
                            raise PlayerNotFoundError(username)
                        players.append(player)

                    # Handles are unique, but two spellings could still resolve to one row
                    if len({p.id for p in players}) != 4:
                        raise ValidationError("All four players must be different")

                    winners, losers = players[:2], players[2:]

                    elo_result = EloCalculator.calculate_team_elo_changes(
                        [p.elo for p in winners], [p.elo for p in losers], winning_team=1
                    )
                    winner_changes = elo_result.team1_changes
                    loser_changes = elo_result.team2_changes

                    dry_win_inferred = is_dry_win is None
                    if dry_win_inferred:
                        is_dry_win = self.season_service.detect_dry_win(loser_changes)
                        logger.info(f"No dry-win flag supplied, heuristic says {is_dry_win}")

                    # Start Elo must be captured before this match moves anyone's rating
                    for player in players:
                        await self.season_service.ensure_season_start_elo(player.id, season, session=session)

                    match = Match(season=season, played_at=self._timestamp(), is_dry_win=bool(is_dry_win))
                    for position, (player, change) in enumerate(zip(winners, winner_changes)):
                        match.participants.append(MatchParticipant(
                            player_id=player.id, team=MatchTeam.WINNER, position=position, elo_change=change
                        ))
                    for position, (player, change) in enumerate(zip(losers, loser_changes)):
                        match.participants.append(MatchParticipant(
                            player_id=player.id, team=MatchTeam.LOSER, position=position, elo_change=change
                        ))
                    session.add(match)

                    for player, new_rating in zip(winners + losers,
                                                  elo_result.new_team1_ratings + elo_result.new_team2_ratings):
                        await self.player_service.update_player_elo(player.id, new_rating, session=session)

                    await session.flush()
                    match_id = match.id
            except IntegrityError as e:
                # Another process wrote the same season-start row first; the whole match rolled back
                logger.warning(f"Match in {season} rolled back after a conflicting write: {e}")
                raise ConcurrentUpdateError(str(e)) from e

        logger.info(
            f"Recorded match {match_id} in {season}: "
            f"{'+'.join(p.username for p in winners)} beat {'+'.join(p.username for p in losers)}"
        )

        await self.season_service.recompute_season_stats_for_match(match)

        return MatchRecordResult(
            match_id=match_id,
            season=season,
            winners=[p.username for p in winners],
            losers=[p.username for p in losers],
            winner_changes=list(winner_changes),
            loser_changes=list(loser_changes),
            winner_new_ratings=list(elo_result.new_team1_ratings),
            loser_new_ratings=list(elo_result.new_team2_ratings),
            expected_winner_score=elo_result.expected_team1_score,
            is_dry_win=bool(is_dry_win),
            dry_win_inferred=dry_win_inferred,
        )

    async def _matches_for_player(self, session, player_id: int, limit: Optional[int] = None) -> List[Match]:
        stmt = (
            select(Match)
            .join(MatchParticipant, MatchParticipant.match_id == Match.id)
            .where(MatchParticipant.player_id == player_id)
            .order_by(Match.played_at.desc(), Match.id.desc())
        )
        if limit:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    def _to_record(match: Match, player_id: int) -> MatchRecord:
        me = match.participant_for(player_id)
        own_team = match.winners if me.team == MatchTeam.WINNER else match.losers
        other_team = match.losers if me.team == MatchTeam.WINNER else match.winners
        teammate = next(p for p in own_team if p.player_id != player_id)
        return MatchRecord(
            match_id=match.id,
            season=match.season,
            won=me.team == MatchTeam.WINNER,
            is_dry_win=match.is_dry_win,
            elo_change=me.elo_change,
            teammate=teammate.player.display_name,
            opponents=[p.player.display_name for p in other_team],
            played_at=match.played_at,
        )

    async def get_player_matches(self, username: str, limit: int = Config.DEFAULT_HISTORY_LIMIT) -> List[MatchRecord]:
        """A player's most recent matches, newest first."""
        async with self.get_session() as session:
            player = await self.player_service.require_player(username, session=session)
            matches = await self._matches_for_player(session, player.id, limit=limit)
            return [self._to_record(match, player.id) for match in matches]

    async def get_player_stats(self, username: str) -> PlayerStats:
        """Lifetime record, current-season record and recent form."""
        season = current_season(self.clock())
        async with self.get_session() as session:
            player = await self.player_service.require_player(username, session=session)
            matches = await self._matches_for_player(session, player.id)

        wins = sum(1 for m in matches if m.is_winner(player.id))
        season_matches = [m for m in matches if m.season == season]
        season_wins = sum(1 for m in season_matches if m.is_winner(player.id))
        recent = matches[:Config.RECENT_FORM_MATCHES]

        return PlayerStats(
            player_id=player.id,
            username=player.username,
            display_name=player.display_name,
            current_elo=player.elo,
            total_matches=len(matches),
            wins=wins,
            losses=len(matches) - wins,
            win_rate=(wins / len(matches) * 100) if matches else 0.0,
            season=season,
            season_matches=len(season_matches),
            season_wins=season_wins,
            season_win_rate=(season_wins / len(season_matches) * 100) if season_matches else 0.0,
            recent_form=sum(1 for m in recent if m.is_winner(player.id)),
            recent_matches=len(recent),
        )

    async def get_recent_matches(self, limit: int = Config.DEFAULT_HISTORY_LIMIT) -> List[Match]:
        async with self.get_session() as session:
            result = await session.execute(
                select(Match).order_by(Match.played_at.desc(), Match.id.desc()).limit(limit)
            )
            return list(result.scalars().all())

    async def get_season_matches(self, season: str) -> List[Match]:
        parse_season(season)
        async with self.get_session() as session:
            result = await session.execute(
                select(Match).where(Match.season == season).order_by(Match.played_at.desc(), Match.id.desc())
            )
            return list(result.scalars().all())

"""
Season statistics service.

Maintains the per-season aggregate (Elo gained since season start, matches
played, dry wins, total wins, longest win streak and total points) as a cache
over the match ledger.

Key behaviour:
- Raw fields are always re-derived from the player's full season history, so
  recomputing is idempotent and order-independent per player
- Total points are recomputed for every player in the season after each match,
  since one result can reorder players who did not play
- Recompute-and-save is serialized per season with an asyncio.Lock
- Rating and season-start Elo writes share one ``rating_lock``, held by match
  recording from the Elo read through the commit
- Season-start Elo is recorded once per (player, season) and never overwritten
"""

import asyncio
import logging
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from foosbot.config import Config
from foosbot.data_models.leaderboard import CATEGORIES, PlayerStatLine, SeasonLeaderboard
from foosbot.data_models.profile import PlayerSeasonSummary
from foosbot.database.models import Match, MatchParticipant, Player, Season, SeasonStartElo
from foosbot.services.base import BaseService
from foosbot.utils.exceptions import AggregationError, FoosbotException, PlayerNotFoundError
from foosbot.utils.ranking import RankingUtility
from foosbot.utils.seasons import current_season, parse_season, season_now

logger = logging.getLogger(__name__)


class SeasonService(BaseService):
    """Service for season aggregation and season leaderboards."""

    def __init__(self, session_factory, clock: Optional[Callable] = None):
        super().__init__(session_factory)
        self.clock = clock or season_now
        self._season_locks: Dict[str, asyncio.Lock] = {}
        # Ratings are global, so this lock spans seasons. Take it after a season lock, never before.
        self.rating_lock = asyncio.Lock()

    def current_season(self) -> str:
        return current_season(self.clock())

    def _lock_for(self, season: str) -> asyncio.Lock:
        lock = self._season_locks.get(season)
        if lock is None:
            lock = asyncio.Lock()
            self._season_locks[season] = lock
        return lock

    # Pure helpers

    @staticmethod
    def calculate_win_streak(results: Iterable[bool]) -> int:
        """Longest run of consecutive wins in chronologically ordered results."""
        current = 0
        longest = 0
        for won in results:
            if won:
                current += 1
                longest = max(longest, current)
            else:
                current = 0
        return longest

    @staticmethod
    def detect_dry_win(loser_elo_changes: Sequence[int]) -> bool:
        """
        Approximate whether the losing pair failed to score.

        Goals are not tracked, so this treats a large average Elo loss as a
        shutout. Only used when the submitter did not say explicitly.
        """
        if not loser_elo_changes:
            return False
        average = sum(loser_elo_changes) / len(loser_elo_changes)
        return average <= Config.DRY_WIN_ELO_THRESHOLD

    # Season documents

    @staticmethod
    async def _find_season(session: AsyncSession, season: str) -> Optional[Season]:
        result = await session.execute(select(Season).where(Season.season == season))
        return result.scalar_one_or_none()

    async def _get_or_create_season(self, session: AsyncSession, season: str) -> Season:
        season_doc = await self._find_season(session, season)
        if season_doc is None:
            season_doc = Season(season=season, player_stats=[])
            session.add(season_doc)
            await session.flush()
            logger.info(f"Created season {season}")
        return season_doc

    async def get_season_stats(self, season: str) -> Season:
        """Get or create the aggregate for a season."""
        parse_season(season)

        async def _load():
            async with self.get_session() as session:
                return await self._get_or_create_season(session, season)

        # A concurrent create of the same season loses on the unique constraint; retry reads it
        return await self.execute_with_retry(_load)

    # Season-start Elo

    async def ensure_season_start_elo(self, player_id: int, season: str,
                                      session: Optional[AsyncSession] = None) -> Optional[int]:
        """
        Record the player's current Elo as their start Elo for the season.

        Returns the recorded value. Existing values are never overwritten, and
        unknown players are skipped. A caller passing ``session`` must hold
        ``rating_lock``.
        """
        parse_season(season)
        if session is not None:
            return await self._record_season_start_elo(session, player_id, season)

        async with self.rating_lock:
            try:
                async with self.get_session() as s:
                    return await self._record_season_start_elo(s, player_id, season)
            except IntegrityError:
                # Another writer recorded it between our read and insert
                logger.info(f"Season start Elo for player {player_id} in {season} already recorded")
                async with self.get_session() as s:
                    result = await s.execute(
                        select(SeasonStartElo.elo).where(
                            SeasonStartElo.player_id == player_id, SeasonStartElo.season == season
                        )
                    )
                    return result.scalar_one_or_none()

    @staticmethod
    async def _record_season_start_elo(session: AsyncSession, player_id: int, season: str) -> Optional[int]:
        player = await session.get(Player, player_id)
        if player is None:
            logger.warning(f"Cannot record season start Elo: player {player_id} not found")
            return None

        existing = player.season_start_elo(season)
        if existing is not None:
            return existing

        entry = SeasonStartElo(player_id=player.id, season=season, elo=player.elo)
        player.season_start_elos.append(entry)
        await session.flush()
        logger.debug(f"Season start Elo for {player.username} in {season}: {player.elo}")
        return entry.elo

    # Aggregation

    @staticmethod
    async def _player_season_matches(session: AsyncSession, player_id: int, season: str) -> List[Match]:
        """All of a player's matches in a season, oldest first."""
        stmt = (
            select(Match)
            .join(MatchParticipant, MatchParticipant.match_id == Match.id)
            .where(Match.season == season, MatchParticipant.player_id == player_id)
            .order_by(Match.played_at, Match.id)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def _compute_player_fields(self, session: AsyncSession, player: Player, season: str) -> Dict[str, int]:
        await self.ensure_season_start_elo(player.id, season, session=session)

        matches = await self._player_season_matches(session, player.id, season)
        results = [match.is_winner(player.id) for match in matches]

        start_elo = player.season_start_elo(season)
        if start_elo is None:
            start_elo = player.elo

        return {
            'elo_gains': max(0, player.elo - start_elo),
            'matches_played': len(matches),
            'dry_wins': sum(1 for match, won in zip(matches, results) if won and match.is_dry_win),
            'total_wins': sum(1 for won in results if won),
            'longest_streak': self.calculate_win_streak(results),
        }

    @staticmethod
    async def _stat_lines(session: AsyncSession, season_doc: Season) -> List[PlayerStatLine]:
        player_ids = [stats.player_id for stats in season_doc.player_stats]
        if not player_ids:
            return []

        result = await session.execute(select(Player).where(Player.id.in_(player_ids)))
        players = {player.id: player for player in result.scalars()}

        lines = []
        for stats in season_doc.player_stats:
            player = players.get(stats.player_id)
            if player is None:
                logger.warning(f"Season {season_doc.season} has stats for missing player {stats.player_id}, skipping.")
                continue
            lines.append(PlayerStatLine(
                player_id=player.id,
                username=player.username,
                display_name=player.display_name,
                elo_gains=stats.elo_gains,
                matches_played=stats.matches_played,
                dry_wins=stats.dry_wins,
                total_wins=stats.total_wins,
                longest_streak=stats.longest_streak,
                total_points=stats.total_points,
            ))
        return lines

    async def _recalculate_points(self, session: AsyncSession, season_doc: Season):
        lines = await self._stat_lines(session, season_doc)
        totals = RankingUtility.calculate_total_points(lines)
        for stats in season_doc.player_stats:
            stats.total_points = totals.get(stats.player_id, 0)

    async def _recompute(self, season: str, player_ids: Sequence[int]) -> Season:
        parse_season(season)
        async with self._lock_for(season), self.rating_lock:
            try:
                async with self.get_session() as session:
                    season_doc = await self._get_or_create_season(session, season)

                    for player_id in player_ids:
                        player = await session.get(Player, player_id)
                        if player is None:
                            raise PlayerNotFoundError(player_id)
                        fields = await self._compute_player_fields(session, player, season)
                        season_doc.add_or_update_player_stats(player_id, **fields)

                    # Must run after every raw-field upsert for this event
                    await self._recalculate_points(session, season_doc)
            except FoosbotException:
                raise
            except Exception as e:
                logger.error(f"Failed to recompute season {season}: {e}", exc_info=True)
                raise AggregationError(season, str(e)) from e

        logger.info(f"Recomputed season {season} for {len(player_ids)} player(s)")
        return season_doc

    async def recompute_season_stats_for_match(self, match: Match) -> Season:
        """Refresh the season aggregate after a match was appended to the ledger."""
        player_ids = [participant.player_id for participant in match.winners + match.losers]
        return await self._recompute(match.season, player_ids)

    async def rebuild_season_stats(self, season: str) -> Season:
        """Re-derive every player with matches in the season from the ledger."""
        parse_season(season)
        async with self.get_session() as session:
            stmt = (
                select(MatchParticipant.player_id)
                .join(Match, Match.id == MatchParticipant.match_id)
                .where(Match.season == season)
                .distinct()
            )
            player_ids = set((await session.execute(stmt)).scalars().all())

            season_doc = await self._find_season(session, season)
            if season_doc is not None:
                player_ids.update(stats.player_id for stats in season_doc.player_stats)

        logger.info(f"Rebuilding season {season} for {len(player_ids)} player(s)")
        return await self._recompute(season, sorted(player_ids))

    # Read side

    async def get_season_leaderboard(self, season: str) -> SeasonLeaderboard:
        """Summary by total points plus one ranked table per category."""
        season_doc = await self.get_season_stats(season)

        async with self.get_session() as session:
            lines = await self._stat_lines(session, season_doc)

        if not lines:
            return SeasonLeaderboard(season=season)

        return SeasonLeaderboard(
            season=season,
            summary=RankingUtility.rank_total(lines),
            categories={
                category: RankingUtility.rank_by_category(lines, category)
                for category in CATEGORIES
            },
        )

    async def get_player_season_stats(self, player_id: int, season: Optional[str] = None) -> Optional[PlayerSeasonSummary]:
        """Stored season figures for one player, or None if they have none."""
        season = season or self.current_season()
        parse_season(season)

        async with self.get_session() as session:
            season_doc = await self._find_season(session, season)
            if season_doc is None:
                return None
            stats = season_doc.get_player_stats(player_id)
            if stats is None:
                return None
            player = await session.get(Player, player_id)
            if player is None:
                raise PlayerNotFoundError(player_id)
            lines = await self._stat_lines(session, season_doc)

        entry = next((e for e in RankingUtility.rank_total(lines) if e.player_id == player_id), None)
        return PlayerSeasonSummary(
            player_id=player.id,
            username=player.username,
            display_name=player.display_name,
            season=season,
            elo_gains=stats.elo_gains,
            matches_played=stats.matches_played,
            dry_wins=stats.dry_wins,
            total_wins=stats.total_wins,
            longest_streak=stats.longest_streak,
            total_points=stats.total_points,
            season_start_elo=player.season_start_elo(season),
            rank=entry.rank if entry else None,
            total_players=len(lines),
        )

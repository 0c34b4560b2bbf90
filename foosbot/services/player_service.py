"""
Player registry service.

Registration, lookups by handle or internal id, alias and notification
address updates, and the all-time Elo leaderboard.
"""

import logging
from typing import List, Optional

from sqlalchemy import select, func, case
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from foosbot.config import Config
from foosbot.data_models.leaderboard import EloLeaderboardEntry
from foosbot.database.models import Player, MatchParticipant, MatchTeam
from foosbot.services.base import BaseService
from foosbot.utils.exceptions import (
    HandleClaimedError, PlayerAlreadyRegisteredError, PlayerNotFoundError, ValidationError
)

logger = logging.getLogger(__name__)


def normalize_username(username: Optional[str]) -> str:
    """Strip whitespace and a leading '@' from a handle."""
    clean = (username or '').strip().lstrip('@').strip()
    if not clean:
        raise ValidationError("A username is required")
    return clean


class PlayerService(BaseService):
    """Service for player registration and lookups."""

    async def register_player(self, username: str, name: Optional[str] = None,
                              chat_id: Optional[int] = None, alias: Optional[str] = None) -> Player:
        clean_username = normalize_username(username)

        try:
            async with self.get_session() as session:
                existing = await self._find_by_username(session, clean_username)
                if existing:
                    raise PlayerAlreadyRegisteredError(clean_username)

                player = Player(
                    username=clean_username,
                    name=name or clean_username,
                    alias=alias,
                    elo=Config.STARTING_ELO,
                    chat_id=chat_id
                )
                session.add(player)
                await session.flush()
                await session.refresh(player)
        except IntegrityError:
            # Lost a race with a concurrent registration of the same handle
            raise PlayerAlreadyRegisteredError(clean_username)

        logger.info(f"Registered player {clean_username} (id={player.id})")
        return player

    @staticmethod
    async def _find_by_username(session: AsyncSession, username: str) -> Optional[Player]:
        result = await session.execute(select(Player).where(Player.username == username))
        return result.scalar_one_or_none()

    async def get_player_by_username(self, username: str,
                                     session: Optional[AsyncSession] = None) -> Optional[Player]:
        clean_username = normalize_username(username)
        async with self.session_scope(session) as s:
            return await self._find_by_username(s, clean_username)

    async def get_player_by_id(self, player_id: int,
                               session: Optional[AsyncSession] = None) -> Optional[Player]:
        async with self.session_scope(session) as s:
            return await s.get(Player, player_id)

    async def get_player_by_chat_id(self, chat_id: int,
                                    session: Optional[AsyncSession] = None) -> Optional[Player]:
        async with self.session_scope(session) as s:
            result = await s.execute(select(Player).where(Player.chat_id == chat_id))
            return result.scalars().first()

    async def require_player(self, username: str,
                             session: Optional[AsyncSession] = None) -> Player:
        player = await self.get_player_by_username(username, session=session)
        if player is None:
            raise PlayerNotFoundError(normalize_username(username))
        return player

    async def update_player_elo(self, player_id: int, new_elo: int,
                                session: Optional[AsyncSession] = None) -> Player:
        async with self.session_scope(session) as s:
            player = await s.get(Player, player_id)
            if player is None:
                raise PlayerNotFoundError(player_id)
            player.elo = max(Config.MIN_ELO, int(new_elo))
            return player

    async def update_player_chat_id(self, username: str, chat_id: Optional[int]) -> Player:
        async with self.get_session() as session:
            player = await self.require_player(username, session=session)
            player.chat_id = chat_id
        logger.debug(f"Updated notification address for {player.username}")
        return player

    async def claim_player(self, username: str, chat_id: int) -> Player:
        """
        Bind an existing handle to the caller's chat account.

        Only an unbound handle or one already bound to ``chat_id`` can be
        claimed; anything else raises HandleClaimedError.
        """
        async with self.get_session() as session:
            player = await self.require_player(username, session=session)
            if player.chat_id is not None and player.chat_id != chat_id:
                logger.warning(f"Chat {chat_id} tried to claim {player.username}, linked to {player.chat_id}")
                raise HandleClaimedError(player.username)
            player.chat_id = chat_id
        return player

    async def update_player_alias(self, username: str, alias: Optional[str]) -> Player:
        clean_alias = (alias or '').strip() or None
        if clean_alias and len(clean_alias) > 100:
            raise ValidationError("Alias must be at most 100 characters")

        async with self.get_session() as session:
            player = await self.require_player(username, session=session)
            player.alias = clean_alias
        logger.info(f"Alias for {player.username} set to {clean_alias!r}")
        return player

    async def get_all_players(self, session: Optional[AsyncSession] = None) -> List[Player]:
        """All registered players, highest Elo first."""
        async with self.session_scope(session) as s:
            result = await s.execute(select(Player).order_by(Player.elo.desc(), Player.username))
            return list(result.scalars().all())

    async def get_all_time_leaderboard(self) -> List[EloLeaderboardEntry]:
        """Players by current Elo with lifetime wins and matches."""
        async with self.get_session() as session:
            record_stmt = (
                select(
                    MatchParticipant.player_id,
                    func.count(MatchParticipant.id).label('matches'),
                    func.sum(case((MatchParticipant.team == MatchTeam.WINNER, 1), else_=0)).label('wins'),
                )
                .group_by(MatchParticipant.player_id)
            )
            records = {row.player_id: row for row in (await session.execute(record_stmt)).all()}
            players = await self.get_all_players(session=session)

        entries = []
        for index, player in enumerate(players):
            record = records.get(player.id)
            matches = record.matches if record else 0
            wins = int(record.wins or 0) if record else 0
            entries.append(EloLeaderboardEntry(
                rank=index + 1,
                player_id=player.id,
                username=player.username,
                display_name=player.display_name,
                elo=player.elo,
                total_matches=matches,
                total_wins=wins,
                win_rate=(wins / matches * 100) if matches else 0.0,
            ))
        return entries

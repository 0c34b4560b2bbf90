"""
Season Transition Service - monthly season rollover

Closes the previous month's season and opens the new one. Runs once at each
month boundary from the scheduled task, and can be re-run by an admin.

Key Features:
- Previous/next season identifiers from an injectable clock, wrapping at year end
- Top-3 winners from the previous season's total-points summary
- Bootstraps the new season and records every player's season-start Elo
- Notifies every player with an address; one failed delivery never stops the rest
- Runs are serialized by a lock owned by the service and tagged with a run id

Re-running for the same pair of seasons is safe: the bootstrap and start Elo
steps are no-ops the second time. Notifications are sent again.
"""

import asyncio
import logging
import uuid
from typing import Callable, List, Optional

from foosbot.config import Config
from foosbot.data_models.leaderboard import RankedEntry
from foosbot.data_models.season import TransitionResult
from foosbot.database.models import Player
from foosbot.services.base import BaseService
from foosbot.services.notifications import Notifier
from foosbot.services.player_service import PlayerService
from foosbot.services.season_service import SeasonService
from foosbot.utils.exceptions import NotificationDeliveryError
from foosbot.utils.seasons import current_season, next_season, previous_season

logger = logging.getLogger(__name__)

MEDALS = {1: '🥇', 2: '🥈', 3: '🥉'}


def ordinal(rank: int) -> str:
    """1 -> '1st', 2 -> '2nd', 11 -> '11th'."""
    if 10 <= rank % 100 <= 20:
        suffix = 'th'
    else:
        suffix = {1: 'st', 2: 'nd', 3: 'rd'}.get(rank % 10, 'th')
    return f"{rank}{suffix}"


def build_season_notification(season: str, new_season: str, winners: List[RankedEntry],
                              winner_entry: Optional[RankedEntry] = None) -> str:
    """Season-end message. Winners get their placing; everyone gets the podium."""
    lines = [f"🏆 **Season {season} Results**", ""]

    if winner_entry is not None:
        lines.append(f"🎉 **Congratulations!** You finished in **{ordinal(winner_entry.rank)}** place!")
        lines.append(f"📊 Total Points: **{winner_entry.value}**")
    else:
        lines.append(f"📊 Season {season} has ended. Check the leaderboard to see how you performed!")
    lines.append("")

    if winners:
        lines.append("🏅 **Season Winners:**")
        for winner in winners:
            medal = MEDALS.get(winner.rank, '🏅')
            lines.append(f"{medal} {winner.rank}. {winner.display_name} ({winner.value} pts)")
        lines.append("")

    lines.append(f"🎮 Season {new_season} has started! Use `/leaderboard` to follow the standings.")
    return "\n".join(lines)


class SeasonTransitionService(BaseService):
    """Service for the month-end season rollover and result notifications."""

    def __init__(self, session_factory, season_service: SeasonService,
                 player_service: PlayerService, clock: Optional[Callable] = None):
        super().__init__(session_factory)
        self.season_service = season_service
        self.player_service = player_service
        self.clock = clock or season_service.clock
        self._run_lock = asyncio.Lock()
        self.last_result: Optional[TransitionResult] = None

    def get_current_season(self) -> str:
        return current_season(self.clock())

    def get_next_season(self) -> str:
        return next_season(self.clock())

    def get_previous_season(self) -> str:
        return previous_season(self.clock())

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    async def get_season_winners(self, season: str) -> List[RankedEntry]:
        """Top entries of the season's summary ranking (up to three)."""
        leaderboard = await self.season_service.get_season_leaderboard(season)
        return leaderboard.summary[:Config.SEASON_WINNER_COUNT]

    async def ensure_all_players_season_start_elo(self, season: str) -> int:
        """Record season-start Elo for every registered player. Returns the player count."""
        async with self.season_service.rating_lock:
            async with self.get_session() as session:
                players = await self.player_service.get_all_players(session=session)
                for player in players:
                    await self.season_service.ensure_season_start_elo(player.id, season, session=session)

        logger.info(f"Ensured season start Elo for {len(players)} players in season {season}")
        return len(players)

    async def send_season_notification(self, notifier: Notifier, player: Player, winners: List[RankedEntry],
                                       season: str, new_season: str) -> bool:
        """
        Send one player their season result.

        Returns False when the player has no notification address. Delivery
        failures raise NotificationDeliveryError.
        """
        if not player.chat_id:
            logger.debug(f"No chat id for player {player.username}, skipping notification")
            return False

        winner_entry = next((w for w in winners if w.player_id == player.id), None)
        message = build_season_notification(season, new_season, winners, winner_entry)
        await notifier.send_message(player.chat_id, message)
        return True

    async def create_new_season_and_notify(self, notifier: Notifier, trigger: str = 'manual') -> TransitionResult:
        """
        Close the previous season and open the current one.

        Errors before the notification phase (for example an AggregationError
        while ranking the previous season) propagate to the caller. Per-player
        delivery failures are logged and counted.
        """
        run_id = uuid.uuid4().hex[:12]
        if self._run_lock.locked():
            logger.info(f"[{run_id}] Season transition already in flight, waiting for it to finish")

        async with self._run_lock:
            previous = self.get_previous_season()
            new = self.get_current_season()
            logger.info(f"[{run_id}] Starting season transition ({trigger}): {previous} -> {new}")

            winners = await self.get_season_winners(previous)

            await self.season_service.get_season_stats(new)
            logger.info(f"[{run_id}] Season {new} ready")

            bootstrapped = await self.ensure_all_players_season_start_elo(new)

            players = await self.player_service.get_all_players()
            notified = skipped = failed = 0
            for player in players:
                try:
                    if await self.send_season_notification(notifier, player, winners, previous, new):
                        notified += 1
                    else:
                        skipped += 1
                except NotificationDeliveryError as e:
                    failed += 1
                    logger.warning(f"[{run_id}] Failed to notify {player.username}: {e}")
                except Exception as e:
                    failed += 1
                    logger.error(f"[{run_id}] Unexpected error notifying {player.username}: {e}", exc_info=True)

            result = TransitionResult(
                run_id=run_id,
                trigger=trigger,
                previous_season=previous,
                new_season=new,
                winners=winners,
                players_bootstrapped=bootstrapped,
                notified=notified,
                skipped=skipped,
                failed=failed,
            )
            self.last_result = result

        logger.info(
            f"[{run_id}] Season transition completed: {notified} notified, "
            f"{skipped} skipped, {failed} failed"
        )
        return result

    async def trigger_transition(self, notifier: Notifier, trigger: str = 'manual') -> TransitionResult:
        """
        Entry point for the monthly task and the admin command.

        Never raises; failures come back as a result with ``success`` False.
        """
        try:
            return await self.create_new_season_and_notify(notifier, trigger=trigger)
        except Exception as e:
            logger.error(f"Season transition ({trigger}) failed: {e}", exc_info=True)
            result = TransitionResult(
                run_id=uuid.uuid4().hex[:12],
                trigger=trigger,
                previous_season=self.get_previous_season(),
                new_season=self.get_current_season(),
                error=str(e),
            )
            self.last_result = result
            return result

"""
Notification delivery for season results.

The transition workflow only needs an object with an async
``send_message(chat_id, text)`` that raises NotificationDeliveryError when a
single recipient cannot be reached.
"""

import logging

import discord

from foosbot.utils.exceptions import NotificationDeliveryError

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 2000  # Discord message limit


class Notifier:
    """Interface for delivering a text message to a player's address."""

    async def send_message(self, chat_id: int, text: str) -> None:
        raise NotImplementedError


class DiscordNotifier(Notifier):
    """Delivers notifications as Discord direct messages."""

    def __init__(self, bot: discord.Client):
        self.bot = bot

    async def send_message(self, chat_id: int, text: str) -> None:
        if len(text) > MAX_MESSAGE_LENGTH:
            text = text[:MAX_MESSAGE_LENGTH - 1] + "…"
        try:
            user = self.bot.get_user(chat_id) or await self.bot.fetch_user(chat_id)
            await user.send(text)
        except discord.HTTPException as e:
            # Covers NotFound and Forbidden (DMs closed)
            raise NotificationDeliveryError(chat_id, str(e)) from e
        logger.debug(f"Delivered notification to {chat_id}")

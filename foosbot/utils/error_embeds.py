"""
Centralized error embeds for consistent error handling across the foosball bot.

Provides standardized error messages and formatting to maintain consistency
and improve user experience when errors occur.
"""

import discord
from typing import Optional

from foosbot.utils.exceptions import FoosbotException, PlayerNotFoundError, ValidationError


class ErrorEmbeds:
    """Centralized error embed factory for consistent error handling."""

    @staticmethod
    def player_not_found(identifier: Optional[str] = None) -> discord.Embed:
        """Create embed for when a player is not found in the database."""
        who = f"**{identifier}**" if identifier else "This player"
        return discord.Embed(
            title="Player Not Found",
            description=f"{who} isn't registered yet!\n\nUse `/register` to join the league.",
            color=discord.Color.red()
        )

    @staticmethod
    def no_match_history() -> discord.Embed:
        """Create embed for when a player has no match history."""
        return discord.Embed(
            title="No Match History",
            description="This player hasn't played any matches yet.",
            color=discord.Color.orange()
        )

    @staticmethod
    def command_error(error: str) -> discord.Embed:
        """Create embed for general command errors."""
        return discord.Embed(
            title="Command Error",
            description=f"An error occurred: {error}\n\nPlease try again or contact an administrator.",
            color=discord.Color.red()
        )

    @staticmethod
    def invalid_input(message: str) -> discord.Embed:
        """Create embed for invalid user input."""
        return discord.Embed(
            title="Invalid Input",
            description=message,
            color=discord.Color.red()
        )

    @staticmethod
    def permission_denied() -> discord.Embed:
        """Create embed for permission errors."""
        return discord.Embed(
            title="Permission Denied",
            description="You don't have permission to perform this action.",
            color=discord.Color.red()
        )

    @staticmethod
    def from_exception(error: FoosbotException) -> discord.Embed:
        """Map a domain exception onto the matching embed."""
        if isinstance(error, PlayerNotFoundError):
            return ErrorEmbeds.player_not_found(str(error.identifier))
        if isinstance(error, ValidationError):
            return ErrorEmbeds.invalid_input(error.user_message)
        return ErrorEmbeds.command_error(error.user_message)

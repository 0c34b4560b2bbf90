"""
Match reporting commands.

/match records a finished 2v2 game. Ratings and season stats are updated
immediately; the reply shows each player's Elo change.
"""

import discord
from discord.ext import commands
from discord import app_commands
from typing import Optional

from foosbot.cogs.player import resolve_username
from foosbot.services.match_service import MatchService
from foosbot.services.player_service import PlayerService
from foosbot.utils.embeds import build_match_result_embed
from foosbot.utils.error_embeds import ErrorEmbeds
from foosbot.utils.exceptions import AggregationError, FoosbotException
from foosbot.utils.logger import setup_logger

logger = setup_logger(__name__)


class MatchCommandsCog(commands.Cog):
    """Commands for reporting 2v2 results."""

    def __init__(self, bot):
        self.bot = bot
        self.player_service: PlayerService = bot.player_service
        self.match_service: MatchService = bot.match_service

    @app_commands.command(name="match", description="Record a finished 2v2 foosball match")
    @app_commands.describe(
        winner1="First player on the winning team",
        winner2="Second player on the winning team",
        loser1="First player on the losing team",
        loser2="Second player on the losing team",
        dry_win="Did the losers fail to score? Leave empty to estimate from ratings"
    )
    async def match(self, interaction: discord.Interaction,
                    winner1: discord.Member, winner2: discord.Member,
                    loser1: discord.Member, loser2: discord.Member,
                    dry_win: Optional[bool] = None):
        """Record a match between two pairs."""
        await interaction.response.defer()

        try:
            winners = [await resolve_username(self.player_service, m) for m in (winner1, winner2)]
            losers = [await resolve_username(self.player_service, m) for m in (loser1, loser2)]

            result = await self.match_service.record_match(winners, losers, is_dry_win=dry_win)
            await interaction.followup.send(embed=build_match_result_embed(result))

            logger.info(
                f"Match {result.match_id} reported by {interaction.user.id} ({interaction.user.name})"
            )
        except AggregationError as e:
            # The match is stored; only the season cache is stale
            logger.error(f"Match stored but aggregation failed: {e}")
            await interaction.followup.send(e.user_message)
        except FoosbotException as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_exception(e), ephemeral=True)
        except Exception as e:
            logger.error(f"Error in match command: {e}", exc_info=True)
            await interaction.followup.send(
                embed=ErrorEmbeds.command_error("The match could not be recorded."),
                ephemeral=True
            )


async def setup(bot):
    await bot.add_cog(MatchCommandsCog(bot))

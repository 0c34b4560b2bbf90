import discord
from discord import app_commands
from discord.ext import commands
from typing import Optional
from foosbot.config import Config
from foosbot.services.match_service import MatchService
from foosbot.services.player_service import PlayerService
from foosbot.services.season_service import SeasonService
from foosbot.utils.embeds import (
    build_elo_leaderboard_embed, build_recent_matches_embed, build_season_leaderboard_embed
)
from foosbot.utils.error_embeds import ErrorEmbeds
from foosbot.utils.exceptions import FoosbotException
import logging

logger = logging.getLogger(__name__)

class LeaderboardCog(commands.Cog):
    """Season and all-time leaderboard commands"""

    def __init__(self, bot):
        self.bot = bot
        self.season_service: SeasonService = bot.season_service
        self.player_service: PlayerService = bot.player_service
        self.match_service: MatchService = bot.match_service

    @app_commands.command(name="leaderboard", description="View the season points leaderboard")
    @app_commands.describe(season="Season as YYYY-MM (defaults to the current season)")
    @app_commands.checks.cooldown(rate=5, per=60.0, key=lambda i: i.user.id)
    async def leaderboard(self, interaction: discord.Interaction, season: Optional[str] = None):
        """Display the season summary and category tables."""
        await interaction.response.defer()

        try:
            season = season or self.season_service.current_season()
            leaderboard = await self.season_service.get_season_leaderboard(season)
            await interaction.followup.send(embed=build_season_leaderboard_embed(leaderboard))
        except FoosbotException as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_exception(e))
        except Exception as e:
            logger.error(f"Error in leaderboard command: {e}", exc_info=True)
            await interaction.followup.send(embed=ErrorEmbeds.command_error("An error occurred while fetching leaderboard data. Please try again later."))

    @app_commands.command(name="elo-leaderboard", description="View all players ranked by current Elo")
    @app_commands.checks.cooldown(rate=5, per=60.0, key=lambda i: i.user.id)
    async def elo_leaderboard(self, interaction: discord.Interaction):
        await interaction.response.defer()

        try:
            entries = await self.player_service.get_all_time_leaderboard()
            await interaction.followup.send(embed=build_elo_leaderboard_embed(entries))
        except Exception as e:
            logger.error(f"Error in elo-leaderboard command: {e}", exc_info=True)
            await interaction.followup.send(embed=ErrorEmbeds.command_error("An error occurred while fetching leaderboard data. Please try again later."))

    @app_commands.command(name="recent-matches", description="View the latest recorded matches")
    @app_commands.describe(limit="How many matches to show (1-25)")
    async def recent_matches(self, interaction: discord.Interaction,
                             limit: app_commands.Range[int, 1, 25] = Config.DEFAULT_HISTORY_LIMIT):
        await interaction.response.defer()

        try:
            matches = await self.match_service.get_recent_matches(limit)
            await interaction.followup.send(embed=build_recent_matches_embed(matches))
        except Exception as e:
            logger.error(f"Error in recent-matches command: {e}", exc_info=True)
            await interaction.followup.send(embed=ErrorEmbeds.command_error("An error occurred while fetching matches."))

async def setup(bot):
    await bot.add_cog(LeaderboardCog(bot))

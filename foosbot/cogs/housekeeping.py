"""
Housekeeping Cog - Season Rollover & Admin Commands

Runs the monthly season transition from an hourly background task and
provides owner-only commands to trigger the transition by hand, rebuild a
season's stats from the match ledger and re-link a player's Discord account.
"""

import discord
from discord import app_commands
from discord.ext import commands, tasks
from typing import Optional
from datetime import datetime, timezone

from foosbot.config import Config
from foosbot.services.notifications import DiscordNotifier
from foosbot.services.player_service import PlayerService
from foosbot.services.season_service import SeasonService
from foosbot.services.season_transition_service import SeasonTransitionService
from foosbot.utils.embeds import build_transition_embed
from foosbot.utils.error_embeds import ErrorEmbeds
from foosbot.utils.exceptions import FoosbotException
from foosbot.utils.logger import setup_logger
from foosbot.utils.seasons import current_season

logger = setup_logger(__name__)


class HousekeepingCog(commands.Cog):
    """Background season rollover and maintenance commands"""

    def __init__(self, bot):
        self.bot = bot
        self.player_service: PlayerService = bot.player_service
        self.season_service: SeasonService = bot.season_service
        self.transition_service: SeasonTransitionService = bot.transition_service
        self.notifier: DiscordNotifier = bot.notifier
        self.last_transitioned_season: Optional[str] = None
        self.logger = logger

    async def cog_load(self):
        """Start background tasks once the cog is registered"""
        # Seasons already underway at startup are not re-announced
        self.last_transitioned_season = self.season_service.current_season()
        self.monthly_season_transition.start()
        self.logger.info("HousekeepingCog: Background tasks started")

    async def cog_unload(self):
        """Stop background tasks when cog is unloaded"""
        self.monthly_season_transition.cancel()
        self.logger.info("HousekeepingCog: Background tasks stopped")

    def is_transition_due(self, now: datetime) -> bool:
        """True on the first day of a month not yet transitioned into by this process."""
        return now.day == 1 and current_season(now) != self.last_transitioned_season

    @tasks.loop(hours=1)
    async def monthly_season_transition(self):
        """Hourly check in the season timezone; does work only on the first day of the month"""
        try:
            if not self.is_transition_due(self.season_service.clock()):
                return

            result = await self.transition_service.trigger_transition(self.notifier, trigger='scheduled')
            if result.success:
                self.last_transitioned_season = result.new_season
                self.logger.info(f"Scheduled transition into {result.new_season} complete")
            else:
                self.logger.error(f"Scheduled transition failed: {result.error}")

        except Exception as e:
            self.logger.error(f"Error in season transition task: {e}", exc_info=True)

    @monthly_season_transition.before_loop
    async def before_transition_task(self):
        """Wait for bot to be ready before starting the transition task"""
        await self.bot.wait_until_ready()

    @app_commands.command(
        name="admin-season-transition",
        description="Close last month's season and notify players (Owner only)"
    )
    @app_commands.check(lambda interaction: interaction.user.id == Config.OWNER_DISCORD_ID)
    async def admin_season_transition(self, interaction: discord.Interaction):
        """Manual override for the monthly transition"""
        await interaction.response.defer(ephemeral=True)

        result = await self.transition_service.trigger_transition(self.notifier, trigger='manual')
        if result.success:
            self.last_transitioned_season = result.new_season

        embed = build_transition_embed(result)
        embed.timestamp = datetime.now(timezone.utc)
        await interaction.followup.send(embed=embed, ephemeral=True)

        self.logger.info(
            f"Admin season transition executed by {interaction.user.id} ({interaction.user.name}): "
            f"success={result.success}"
        )

    @app_commands.command(
        name="admin-rebuild-season",
        description="Recompute a season's stats from recorded matches (Owner only)"
    )
    @app_commands.describe(season="Season as YYYY-MM (defaults to the current season)")
    @app_commands.check(lambda interaction: interaction.user.id == Config.OWNER_DISCORD_ID)
    async def admin_rebuild_season(self, interaction: discord.Interaction, season: Optional[str] = None):
        await interaction.response.defer(ephemeral=True)
        season = season or self.season_service.current_season()

        try:
            season_doc = await self.season_service.rebuild_season_stats(season)
            embed = discord.Embed(
                title="✅ Rebuild Complete",
                description=f"Season **{season}** recomputed for **{len(season_doc.player_stats)}** players.",
                color=discord.Color.green(),
                timestamp=datetime.now(timezone.utc)
            )
            await interaction.followup.send(embed=embed, ephemeral=True)
            self.logger.info(f"Admin rebuild of {season} executed by {interaction.user.id} ({interaction.user.name})")

        except FoosbotException as e:
            self.logger.error(f"Admin rebuild error: {e}", exc_info=True)
            error_embed = discord.Embed(
                title="❌ Rebuild Failed",
                description=e.user_message,
                color=discord.Color.red()
            )
            await interaction.followup.send(embed=error_embed, ephemeral=True)

    @app_commands.command(
        name="admin-link-player",
        description="Point a player's season DMs at a Discord account (Owner only)"
    )
    @app_commands.describe(username="Registered handle", member="Account that should receive the DMs")
    @app_commands.check(lambda interaction: interaction.user.id == Config.OWNER_DISCORD_ID)
    async def admin_link_player(self, interaction: discord.Interaction, username: str, member: discord.Member):
        await interaction.response.defer(ephemeral=True)
        try:
            player = await self.player_service.update_player_chat_id(username, member.id)
            await interaction.followup.send(
                f"✅ **{player.username}** is now linked to {member.mention}.", ephemeral=True
            )
            self.logger.info(f"Admin linked {player.username} to {member.id} (by {interaction.user.id})")
        except FoosbotException as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_exception(e), ephemeral=True)


async def setup(bot):
    await bot.add_cog(HousekeepingCog(bot))

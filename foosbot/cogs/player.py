"""
Player commands: registration, aliases and personal stats.

A Discord account maps to one player. The player's handle is the Discord
username at registration time and the Discord user id is stored as the
notification address for season results.
"""

import discord
from discord.ext import commands
from discord import app_commands
from typing import Optional

from foosbot.config import Config
from foosbot.services.match_service import MatchService
from foosbot.services.player_service import PlayerService
from foosbot.services.season_service import SeasonService
from foosbot.utils.embeds import build_player_stats_embed, build_season_stats_embed
from foosbot.utils.error_embeds import ErrorEmbeds
from foosbot.utils.exceptions import FoosbotException, PlayerAlreadyRegisteredError
import logging

logger = logging.getLogger(__name__)


async def resolve_username(player_service: PlayerService, user: discord.abc.User) -> str:
    """Handle for a Discord user: the registered player's username, else the Discord name."""
    player = await player_service.get_player_by_chat_id(user.id)
    return player.username if player else user.name


class PlayerCog(commands.Cog):
    """Player management commands with slash command support."""

    def __init__(self, bot):
        self.bot = bot
        self.player_service: PlayerService = bot.player_service
        self.match_service: MatchService = bot.match_service
        self.season_service: SeasonService = bot.season_service

    @app_commands.command(name="register", description="Join the foosball league")
    @app_commands.describe(alias="Optional display name shown on leaderboards")
    async def register(self, interaction: discord.Interaction, alias: Optional[str] = None):
        """Register the calling user as a player."""
        await interaction.response.defer(ephemeral=True)
        user = interaction.user

        try:
            player = await self.player_service.register_player(
                username=user.name,
                name=user.display_name,
                chat_id=user.id,
                alias=alias
            )
            embed = discord.Embed(
                title="✅ Registered",
                description=(
                    f"Welcome, **{player.display_name}**!\n"
                    f"You start at **{player.elo}** Elo. Season results will be sent to your DMs."
                ),
                color=discord.Color.green()
            )
            await interaction.followup.send(embed=embed, ephemeral=True)
        except PlayerAlreadyRegisteredError as e:
            try:
                await self.player_service.claim_player(e.username, user.id)
            except FoosbotException as claim_error:
                await interaction.followup.send(embed=ErrorEmbeds.from_exception(claim_error), ephemeral=True)
                return
            await interaction.followup.send(e.user_message, ephemeral=True)
        except FoosbotException as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_exception(e), ephemeral=True)
        except Exception as e:
            logger.error(f"Error in register command: {e}", exc_info=True)
            await interaction.followup.send(embed=ErrorEmbeds.command_error("Registration failed."), ephemeral=True)

    @app_commands.command(name="alias", description="Set or clear your display alias")
    @app_commands.describe(alias="New alias (leave empty to clear)")
    async def alias(self, interaction: discord.Interaction, alias: Optional[str] = None):
        await interaction.response.defer(ephemeral=True)
        try:
            username = await resolve_username(self.player_service, interaction.user)
            player = await self.player_service.update_player_alias(username, alias)
            if player.alias:
                message = f"✅ Alias set to **{player.alias}**."
            else:
                message = "✅ Alias cleared."
            await interaction.followup.send(message, ephemeral=True)
        except FoosbotException as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_exception(e), ephemeral=True)

    @app_commands.command(name="stats", description="View a player's overall and current-season stats")
    @app_commands.describe(member="The player to look up (defaults to you)")
    @app_commands.checks.cooldown(rate=1, per=10.0, key=lambda i: i.user.id)
    async def stats(self, interaction: discord.Interaction, member: Optional[discord.Member] = None):
        """Display lifetime record, season record and recent matches."""
        await interaction.response.defer()
        target = member or interaction.user

        try:
            username = await resolve_username(self.player_service, target)
            stats = await self.match_service.get_player_stats(username)
            history = await self.match_service.get_player_matches(username, limit=Config.RECENT_FORM_MATCHES)
            await interaction.followup.send(embed=build_player_stats_embed(stats, history, target))
        except FoosbotException as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_exception(e), ephemeral=True)
        except Exception as e:
            logger.error(f"Error in stats command: {e}", exc_info=True)
            await interaction.followup.send(
                embed=ErrorEmbeds.command_error("An error occurred while fetching stats. Please try again later."),
                ephemeral=True
            )

    @app_commands.command(name="season-stats", description="View a player's season figures and points")
    @app_commands.describe(
        member="The player to look up (defaults to you)",
        season="Season as YYYY-MM (defaults to the current season)"
    )
    async def season_stats(self, interaction: discord.Interaction, member: Optional[discord.Member] = None,
                           season: Optional[str] = None):
        await interaction.response.defer()
        target = member or interaction.user

        try:
            username = await resolve_username(self.player_service, target)
            player = await self.player_service.require_player(username)
            summary = await self.season_service.get_player_season_stats(player.id, season)
            if summary is None:
                season_label = season or self.season_service.current_season()
                await interaction.followup.send(
                    f"📭 **{player.display_name}** has no matches in season {season_label}.",
                    ephemeral=True
                )
                return
            await interaction.followup.send(embed=build_season_stats_embed(summary))
        except FoosbotException as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_exception(e), ephemeral=True)
        except Exception as e:
            logger.error(f"Error in season-stats command: {e}", exc_info=True)
            await interaction.followup.send(
                embed=ErrorEmbeds.command_error("An error occurred while fetching season stats."),
                ephemeral=True
            )


async def setup(bot):
    await bot.add_cog(PlayerCog(bot))

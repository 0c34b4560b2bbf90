"""
Help Commands Cog

Interactive /help with one section per topic: getting started, reporting
matches, how the season points work, and the monthly rollover.
"""

import discord
from discord.ext import commands
from discord import app_commands

from foosbot.config import Config
from foosbot.utils.logger import setup_logger

logger = setup_logger(__name__)

HELP_CONTENT = {
    "start": {
        "title": "👋 Getting Started",
        "description": (
            "**Step 1: Register**\n"
            "```\n/register\n```\n"
            "You start at **{starting_elo}** Elo. Add `alias:` to pick a leaderboard name, "
            "or change it later with `/alias`.\n\n"
            "**Step 2: Play and report**\n"
            "After a game, anyone can record it with `/match`.\n\n"
            "**Step 3: Follow the standings**\n"
            "• `/leaderboard` season points and categories\n"
            "• `/elo-leaderboard` everyone by current Elo\n"
            "• `/stats` and `/season-stats` your own numbers"
        )
    },
    "reporting": {
        "title": "📊 Reporting Matches",
        "description": (
            "```\n/match winner1:@Alice winner2:@Bob loser1:@Carol loser2:@Dave dry_win:True\n```\n"
            "• Exactly two players per team, four different players\n"
            "• All four must be registered\n"
            "• `dry_win` means the losers didn't score. Leave it out and the bot estimates it "
            "from the rating swing\n\n"
            "**Elo:** each team is rated by its average Elo with K = {k_factor}. "
            "Both teammates gain or lose the same amount."
        )
    },
    "points": {
        "title": "🏆 Season Points",
        "description": (
            "Each month is a season. Players are ranked in five categories:\n"
            "• **Elo Gains** since your first match of the season\n"
            "• **Matches Played**\n"
            "• **Dry Wins**\n"
            "• **Total Wins**\n"
            "• **Longest Streak** of consecutive wins\n\n"
            "1st place in a category earns **3** points, 2nd **2**, 3rd **1**. "
            "Tied players share the place and the points. "
            "Your season score is the sum over all five categories."
        )
    },
    "seasons": {
        "title": "📅 Season Rollover",
        "description": (
            "On the 1st of every month the previous season closes.\n\n"
            "• The top {winner_count} by total points are the season winners\n"
            "• Every registered player gets a DM with the results\n"
            "• Elo carries over; season figures start from zero\n\n"
            "Make sure your DMs are open to receive the results."
        )
    },
}


class HelpView(discord.ui.View):
    """Interactive help view with navigation buttons"""

    def __init__(self, author):
        super().__init__(timeout=180.0)
        self.author = author
        self.current_section = "start"

    def _get_embed(self, section_key: str) -> discord.Embed:
        section = HELP_CONTENT[section_key]
        format_args = {
            "starting_elo": Config.STARTING_ELO,
            "k_factor": Config.ELO_K_FACTOR,
            "winner_count": Config.SEASON_WINNER_COUNT,
        }

        embed = discord.Embed(
            title=section["title"],
            description=section["description"].format(**format_args),
            color=discord.Color.blue()
        )
        embed.set_footer(text=f"Requested by {self.author.display_name} • Use buttons to navigate")
        return embed

    async def _update_embed(self, interaction: discord.Interaction, section_key: str):
        """Update the embed to show the specified section"""
        self.current_section = section_key
        embed = self._get_embed(section_key)

        for child in self.children:
            if isinstance(child, discord.ui.Button):
                button_section = child.custom_id.split(":")[-1] if child.custom_id else ""
                child.disabled = (button_section == section_key)

        try:
            await interaction.response.edit_message(embed=embed, view=self)
        except discord.NotFound:
            # Message was deleted
            pass

    @discord.ui.button(label="👋 Start", style=discord.ButtonStyle.secondary, custom_id="help:start")
    async def start_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self._update_embed(interaction, "start")

    @discord.ui.button(label="📊 Reporting", style=discord.ButtonStyle.secondary, custom_id="help:reporting")
    async def reporting_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self._update_embed(interaction, "reporting")

    @discord.ui.button(label="🏆 Points", style=discord.ButtonStyle.secondary, custom_id="help:points")
    async def points_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self._update_embed(interaction, "points")

    @discord.ui.button(label="📅 Seasons", style=discord.ButtonStyle.secondary, custom_id="help:seasons")
    async def seasons_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self._update_embed(interaction, "seasons")

    async def on_timeout(self):
        """Disable all buttons when the view times out"""
        for child in self.children:
            if isinstance(child, discord.ui.Button):
                child.disabled = True


class HelpCommandsCog(commands.Cog):
    """User help commands"""

    def __init__(self, bot):
        self.bot = bot
        self.logger = logger

    @app_commands.command(name="help", description="How the foosball league works")
    async def help(self, interaction: discord.Interaction):
        """Display interactive help guide"""
        help_view = HelpView(interaction.user)
        help_view.start_button.disabled = True
        await interaction.response.send_message(embed=help_view._get_embed("start"), view=help_view, ephemeral=True)


async def setup(bot):
    """Add the HelpCommandsCog to the bot"""
    await bot.add_cog(HelpCommandsCog(bot))

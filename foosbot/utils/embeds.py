"""
Shared embed utilities for the foosball bot.

Provides reusable embed building functions to maintain consistency
and reduce code duplication across cogs.
"""

import discord
from typing import List, Optional

from foosbot.config import Config
from foosbot.constants import LeaderboardConstants, UIConstants
from foosbot.data_models.leaderboard import CATEGORIES, EloLeaderboardEntry, SeasonLeaderboard
from foosbot.data_models.profile import MatchRecord, MatchRecordResult, PlayerSeasonSummary, PlayerStats
from foosbot.data_models.season import TransitionResult
from foosbot.database.models import Match
from foosbot.utils.elo import EloCalculator


def _rank_label(rank: int) -> str:
    return UIConstants.MEDALS.get(rank, f"#{rank}")


def build_season_leaderboard_embed(leaderboard: SeasonLeaderboard) -> discord.Embed:
    """
    Build the season leaderboard: points summary plus one field per category.

    Args:
        leaderboard: Ranked summary and category tables for a season

    Returns:
        Formatted Discord embed ready for display
    """
    embed = discord.Embed(
        title=f"{UIConstants.TROPHY_EMOJI} Season {leaderboard.season} Leaderboard",
        color=discord.Color.gold()
    )

    if leaderboard.is_empty:
        embed.description = "No matches have been played this season yet."
        return embed

    # Summary table
    lines = ["```"]
    lines.append(f"{'Rank':<6} {'Player':<20} {'Points':<6}")
    lines.append("-" * 34)
    for entry in leaderboard.summary[:LeaderboardConstants.SUMMARY_DISPLAY_LIMIT]:
        lines.append(f"{entry.rank:<6} {entry.display_name[:18]:<20} {entry.value:<6}")
    lines.append("```")
    embed.description = "\n".join(lines)

    for category in CATEGORIES:
        entries = leaderboard.categories.get(category, [])
        if not entries:
            continue
        value = "\n".join(
            f"{_rank_label(e.rank)} {e.display_name}: {e.value} (+{e.points} pts)"
            for e in entries[:LeaderboardConstants.CATEGORY_DISPLAY_LIMIT]
        )
        embed.add_field(
            name=LeaderboardConstants.CATEGORY_TITLES[category],
            value=value,
            inline=True
        )

    embed.set_footer(text="Points per category: 1st = 3, 2nd = 2, 3rd = 1")
    return embed


def build_player_stats_embed(stats: PlayerStats, history: Optional[List[MatchRecord]] = None,
                             member: Optional[discord.abc.User] = None) -> discord.Embed:
    """Lifetime and current-season figures for /stats."""
    embed = discord.Embed(
        title=f"📊 Stats: {stats.display_name}",
        color=discord.Color.blue()
    )
    if member:
        embed.set_thumbnail(url=member.display_avatar.url)

    embed.add_field(
        name="⚔️ All Time",
        value=(
            f"**Elo:** {stats.current_elo}\n"
            f"**Matches:** {stats.total_matches}\n"
            f"**Wins:** {stats.wins} | **Losses:** {stats.losses}\n"
            f"**Win Rate:** {stats.win_rate:.1f}%"
        ),
        inline=True
    )
    embed.add_field(
        name=f"📅 Season {stats.season}",
        value=(
            f"**Matches:** {stats.season_matches}\n"
            f"**Wins:** {stats.season_wins}\n"
            f"**Win Rate:** {stats.season_win_rate:.1f}%"
        ),
        inline=True
    )
    embed.add_field(
        name="🔥 Recent Form",
        value=f"{stats.recent_form}/{stats.recent_matches} wins",
        inline=True
    )

    if history:
        lines = []
        for record in history:
            result = "✅" if record.won else "❌"
            dry = " 🥤" if record.is_dry_win else ""
            lines.append(
                f"{result} w/ {record.teammate} vs {' & '.join(record.opponents)} "
                f"({EloCalculator.format_elo_change(record.elo_change)}){dry}"
            )
        embed.add_field(name="🕑 Recent Matches", value="\n".join(lines), inline=False)

    return embed


def build_season_stats_embed(summary: PlayerSeasonSummary) -> discord.Embed:
    """Stored season aggregate for /season-stats."""
    color = discord.Color.gold() if summary.rank == 1 else discord.Color.blue()
    embed = discord.Embed(
        title=f"📅 Season {summary.season}: {summary.display_name}",
        color=color
    )
    rank = f"#{summary.rank} / {summary.total_players}" if summary.rank else "Unranked"
    embed.add_field(
        name="🏅 Standing",
        value=f"**Rank:** {rank}\n**Total Points:** {summary.total_points}",
        inline=False
    )
    embed.add_field(
        name="📈 Season Figures",
        value=(
            f"**Elo Gains:** {summary.elo_gains}\n"
            f"**Matches Played:** {summary.matches_played}\n"
            f"**Dry Wins:** {summary.dry_wins}\n"
            f"**Total Wins:** {summary.total_wins}\n"
            f"**Longest Streak:** {summary.longest_streak}"
        ),
        inline=False
    )
    if summary.season_start_elo is not None:
        embed.set_footer(text=f"Season start Elo: {summary.season_start_elo}")
    return embed


def build_match_result_embed(result: MatchRecordResult) -> discord.Embed:
    """Confirmation for a recorded match with each player's rating change."""
    embed = discord.Embed(
        title="⚽ Match Recorded",
        description=f"Season **{result.season}** · Match #{result.match_id}",
        color=discord.Color.green()
    )
    embed.add_field(
        name="🏆 Winners",
        value="\n".join(
            f"{name}: {rating} ({EloCalculator.format_elo_change(change)})"
            for name, rating, change in zip(result.winners, result.winner_new_ratings, result.winner_changes)
        ),
        inline=True
    )
    embed.add_field(
        name="💔 Losers",
        value="\n".join(
            f"{name}: {rating} ({EloCalculator.format_elo_change(change)})"
            for name, rating, change in zip(result.losers, result.loser_new_ratings, result.loser_changes)
        ),
        inline=True
    )

    dry = "Yes 🥤" if result.is_dry_win else "No"
    if result.dry_win_inferred:
        dry += " (estimated)"
    embed.add_field(name="Dry Win", value=dry, inline=True)
    embed.set_footer(text=f"Winners' expected score: {result.expected_winner_score:.0%}")
    return embed


def build_elo_leaderboard_embed(entries: List[EloLeaderboardEntry], limit: int = 15) -> discord.Embed:
    """All-time table by current Elo."""
    embed = discord.Embed(
        title="📈 Elo Leaderboard",
        color=discord.Color.gold()
    )
    if not entries:
        embed.description = "No players registered yet."
        return embed

    lines = ["```"]
    lines.append(f"{'Rank':<6} {'Player':<20} {'Elo':<6} {'W/M':<8} {'Win%':<6}")
    lines.append("-" * 50)
    for entry in entries[:limit]:
        record = f"{entry.total_wins}/{entry.total_matches}"
        lines.append(
            f"{entry.rank:<6} {entry.display_name[:18]:<20} {entry.elo:<6} "
            f"{record:<8} {entry.win_rate:.0f}%"
        )
    lines.append("```")
    embed.description = "\n".join(lines)
    embed.set_footer(text=f"Total Players: {len(entries)} | Starting Elo: {Config.STARTING_ELO}")
    return embed


def build_recent_matches_embed(matches: List[Match]) -> discord.Embed:
    """League-wide recent results, newest first."""
    embed = discord.Embed(
        title="🕑 Recent Matches",
        color=discord.Color.blue()
    )
    if not matches:
        embed.description = "No matches have been recorded yet."
        return embed

    lines = []
    for match in matches:
        winners = " & ".join(p.player.display_name for p in match.winners)
        losers = " & ".join(p.player.display_name for p in match.losers)
        dry = " 🥤" if match.is_dry_win else ""
        lines.append(f"`{match.played_at:%Y-%m-%d}` **{winners}** beat {losers}{dry}")
    embed.description = "\n".join(lines)
    return embed


def build_transition_embed(result: TransitionResult) -> discord.Embed:
    """Admin report for a season transition run."""
    if not result.success:
        return discord.Embed(
            title="❌ Season Transition Failed",
            description=f"`{result.run_id}`: {result.error}",
            color=discord.Color.red()
        )

    embed = discord.Embed(
        title=f"✅ Season {result.new_season} Started",
        description=f"Season **{result.previous_season}** closed (run `{result.run_id}`, {result.trigger}).",
        color=discord.Color.green()
    )
    if result.winners:
        embed.add_field(
            name="🏅 Winners",
            value="\n".join(
                f"{_rank_label(w.rank)} {w.display_name} ({w.value} pts)" for w in result.winners
            ),
            inline=False
        )
    embed.add_field(
        name="📨 Notifications",
        value=(
            f"**Sent:** {result.notified}\n"
            f"**Skipped:** {result.skipped}\n"
            f"**Failed:** {result.failed}"
        ),
        inline=True
    )
    embed.add_field(name="👥 Players Bootstrapped", value=str(result.players_bootstrapped), inline=True)
    return embed

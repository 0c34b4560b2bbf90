"""
Bot-wide constants for the foosball bot.

Display values shared by the embed builders and cogs.
"""

class LeaderboardConstants:
    """Constants for season leaderboard displays."""

    # Human-readable category titles, in display order
    CATEGORY_TITLES = {
        'elo_gains': '📈 Elo Gains',
        'matches_played': '🎮 Matches Played',
        'dry_wins': '🥤 Dry Wins',
        'total_wins': '🏆 Total Wins',
        'longest_streak': '🔥 Longest Streak',
    }

    # Rows shown per category table
    CATEGORY_DISPLAY_LIMIT = 5

    # Rows shown in the summary table
    SUMMARY_DISPLAY_LIMIT = 10

class UIConstants:
    """Constants for Discord UI elements."""

    # Embed colors
    DEFAULT_EMBED_COLOR = 0x3498db  # Blue
    GOLD_RANK_COLOR = 0xffd700     # Gold for #1 ranked players
    ERROR_COLOR = 0xe74c3c         # Red for errors
    SUCCESS_COLOR = 0x2ecc71       # Green for success

    # Emoji for UI elements
    TROPHY_EMOJI = "🏆"
    MEDALS = {1: "🥇", 2: "🥈", 3: "🥉"}

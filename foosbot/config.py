import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    """Bot configuration settings"""

    # Discord settings
    DISCORD_TOKEN = os.getenv('DISCORD_TOKEN')
    DISCORD_GUILD_ID = int(os.getenv('DISCORD_GUILD_ID', 0))
    DISCORD_GUILD_IDS = os.getenv('DISCORD_GUILD_IDS', '')  # Comma-separated for multi-guild support
    OWNER_DISCORD_ID = int(os.getenv('OWNER_DISCORD_ID', 0))

    # Database settings
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///foosbot.db')

    # Bot settings
    COMMAND_PREFIX = os.getenv('COMMAND_PREFIX', '!')
    DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'

    # Logging settings
    LOG_LEVEL = (os.getenv('LOG_LEVEL') or ('DEBUG' if DEBUG else 'INFO')).upper()
    LOG_DIR = os.getenv('LOG_DIR', 'logs')  # Empty disables the daily log file

    # Rating settings
    STARTING_ELO = 1000
    ELO_K_FACTOR = 32
    MIN_ELO = 0

    # Season settings
    SEASON_TIMEZONE = os.getenv('SEASON_TIMEZONE', 'UTC')
    SEASON_WINNER_COUNT = 3
    DRY_WIN_ELO_THRESHOLD = -15  # Average loser delta at or below this counts as a dry win

    # Stats display
    RECENT_FORM_MATCHES = 5
    DEFAULT_HISTORY_LIMIT = 10

    @classmethod
    def get_guild_ids(cls):
        """Get list of guild IDs for command syncing"""
        if cls.DISCORD_GUILD_IDS:
            try:
                return [int(guild_id.strip()) for guild_id in cls.DISCORD_GUILD_IDS.split(',') if guild_id.strip()]
            except ValueError:
                raise ValueError("DISCORD_GUILD_IDS must be comma-separated integers")
        elif cls.DISCORD_GUILD_ID:
            return [cls.DISCORD_GUILD_ID]
        else:
            # Global sync
            return []

    @classmethod
    def validate(cls):
        """Validate that required configuration is present"""
        if not cls.DISCORD_TOKEN:
            raise ValueError("DISCORD_TOKEN is required")
        if not cls.OWNER_DISCORD_ID:
            raise ValueError("OWNER_DISCORD_ID is required")

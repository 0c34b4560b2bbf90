"""
Services package for the foosball bot.

Player registry, match ledger, season aggregation and the monthly transition.
"""

from .base import BaseService
from .player_service import PlayerService
from .season_service import SeasonService
from .match_service import MatchService
from .season_transition_service import SeasonTransitionService
from .notifications import Notifier, DiscordNotifier

__all__ = [
    'BaseService', 'PlayerService', 'SeasonService', 'MatchService',
    'SeasonTransitionService', 'Notifier', 'DiscordNotifier'
]

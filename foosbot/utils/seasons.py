"""
Season calendar helpers.

A season is one calendar month identified as ``YYYY-MM``. All "current date"
lookups go through a clock callable so the month boundary can be pinned in
tests and resolved in the configured season timezone in production.
"""

import re
from datetime import datetime
from typing import Callable, Optional, Tuple

import pytz

from foosbot.config import Config
from foosbot.utils.exceptions import ValidationError

SEASON_RE = re.compile(r'^(\d{4})-(\d{2})$')

Clock = Callable[[], datetime]


def season_now() -> datetime:
    """Current time in the configured season timezone."""
    tz = pytz.timezone(Config.SEASON_TIMEZONE)
    return datetime.now(tz)


def format_season(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def parse_season(season: str) -> Tuple[int, int]:
    """Split a season identifier into (year, month), validating the format."""
    match = SEASON_RE.match(season or '')
    if not match:
        raise ValidationError(f"Season must use the YYYY-MM format, got '{season}'")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValidationError(f"Season month must be between 01 and 12, got '{season}'")
    return year, month


def is_valid_season(season: str) -> bool:
    try:
        parse_season(season)
    except ValidationError:
        return False
    return True


def current_season(now: Optional[datetime] = None) -> str:
    now = now or season_now()
    return format_season(now.year, now.month)


def next_season(now: Optional[datetime] = None) -> str:
    now = now or season_now()
    if now.month == 12:
        return format_season(now.year + 1, 1)
    return format_season(now.year, now.month + 1)


def previous_season(now: Optional[datetime] = None) -> str:
    now = now or season_now()
    if now.month == 1:
        return format_season(now.year - 1, 12)
    return format_season(now.year, now.month - 1)

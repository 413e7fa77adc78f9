"""Expiry duration policy.

Maps a symbolic duration token, or an explicit date and time, to an absolute
expiry instant. Tokens are resolved once against a reference ``now``; the
stored result is a fixed instant, never a rolling window.
"""

import math
import re
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Union

from ..models.errors import InvalidDateTimeError, InvalidDurationError

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_PATTERN = re.compile(r"^\d{2}:\d{2}$")


class DurationToken(str, Enum):
    """Expiry choices offered to the operator."""

    ONE_MINUTE = "1m"
    ONE_HOUR = "1h"
    ONE_DAY = "1d"
    SEVEN_DAYS = "7d"
    THIRTY_DAYS = "30d"
    NINETY_DAYS = "90d"
    ONE_YEAR = "365d"
    NEVER = "never"
    CUSTOM = "custom"


DURATION_OFFSETS = {
    DurationToken.ONE_MINUTE: timedelta(minutes=1),
    DurationToken.ONE_HOUR: timedelta(hours=1),
    DurationToken.ONE_DAY: timedelta(days=1),
    DurationToken.SEVEN_DAYS: timedelta(days=7),
    DurationToken.THIRTY_DAYS: timedelta(days=30),
    DurationToken.NINETY_DAYS: timedelta(days=90),
    DurationToken.ONE_YEAR: timedelta(days=365),
}

DURATION_LABELS = {
    DurationToken.ONE_MINUTE: "1 minute (testing)",
    DurationToken.ONE_HOUR: "1 hour (testing)",
    DurationToken.ONE_DAY: "1 day",
    DurationToken.SEVEN_DAYS: "7 days",
    DurationToken.THIRTY_DAYS: "30 days",
    DurationToken.NINETY_DAYS: "90 days",
    DurationToken.ONE_YEAR: "365 days",
    DurationToken.NEVER: "Never expires",
    DurationToken.CUSTOM: "Custom date and time",
}


def parse_token(value: Union[str, DurationToken]) -> DurationToken:
    """Parse a duration token.

    Raises:
        InvalidDurationError: If the token is not recognized
    """
    if isinstance(value, DurationToken):
        return value
    try:
        return DurationToken(str(value).strip().lower())
    except ValueError:
        raise InvalidDurationError(value) from None


def resolve_expiry(
    token: Union[str, DurationToken], now: datetime
) -> Optional[datetime]:
    """Resolve a symbolic token to an absolute expiry instant.

    Args:
        token: Duration token
        now: Reference instant the offset is added to

    Returns:
        The expiry instant, or None for ``never``

    Raises:
        InvalidDurationError: If the token is unrecognized, or is ``custom``
            (custom input goes through resolve_custom)
    """
    token = parse_token(token)
    if token is DurationToken.NEVER:
        return None
    if token is DurationToken.CUSTOM:
        raise InvalidDurationError(token.value)
    return now + DURATION_OFFSETS[token]


def resolve_custom(date: str, time: str) -> datetime:
    """Combine a ``YYYY-MM-DD`` date and ``HH:MM`` time into an instant.

    The wall-clock value is taken in the local time zone of the operator's
    machine and returned timezone-aware.

    Raises:
        InvalidDateTimeError: If either component fails validation
    """
    date = (date or "").strip()
    time = (time or "").strip()

    if not DATE_PATTERN.match(date):
        raise InvalidDateTimeError(f"Invalid date {date!r}: expected YYYY-MM-DD")
    if not TIME_PATTERN.match(time):
        raise InvalidDateTimeError(f"Invalid time {time!r}: expected HH:MM")

    try:
        parsed_date = datetime.strptime(date, "%Y-%m-%d")
    except ValueError:
        raise InvalidDateTimeError(f"Invalid calendar date: {date}") from None
    try:
        parsed_time = datetime.strptime(time, "%H:%M")
    except ValueError:
        raise InvalidDateTimeError(f"Invalid time of day: {time}") from None

    return parsed_date.replace(
        hour=parsed_time.hour, minute=parsed_time.minute
    ).astimezone()


def extend_expiry(current: datetime, days: int) -> datetime:
    """Renewal target: ``days`` added to the key's own current expiry."""
    if days <= 0:
        raise InvalidDurationError(f"{days}d")
    return current + timedelta(days=days)


def days_until(expires_at: datetime, now: datetime) -> int:
    """Whole days remaining until ``expires_at``, rounded up."""
    return math.ceil((expires_at - now).total_seconds() / 86400)

"""Timestamp helpers shared by the stores.

The relay service stores instants as JavaScript-style ISO strings
(``2024-01-08T00:00:00.000Z``); empty strings mean "unset".
"""

from datetime import datetime, timezone
from typing import Optional, Union


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_timestamp(value: Optional[datetime]) -> str:
    """Format an instant for storage; ``None`` becomes an empty string."""
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (
        value.astimezone(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def parse_timestamp(value: Union[str, bytes, None]) -> Optional[datetime]:
    """Parse a stored instant; empty or missing values yield ``None``.

    Naive values are taken as UTC.
    """
    if isinstance(value, bytes):
        value = value.decode()
    if not value or value in ("null", "None"):
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed

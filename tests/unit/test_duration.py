"""Unit tests for the expiry duration policy."""

from datetime import UTC, datetime, timedelta

import pytest

from relay_admin.models.errors import InvalidDateTimeError, InvalidDurationError, PolicyError
from relay_admin.services.duration import (
    DurationToken,
    days_until,
    extend_expiry,
    parse_token,
    resolve_custom,
    resolve_expiry,
)


class TestResolveExpiry:
    """Tests for symbolic token resolution."""

    def test_seven_days_from_reference(self):
        """7d resolves to exactly one week after now."""
        now = datetime(2024, 1, 1, tzinfo=UTC)

        assert resolve_expiry("7d", now) == datetime(2024, 1, 8, tzinfo=UTC)

    @pytest.mark.parametrize(
        "token,offset",
        [
            ("1m", timedelta(minutes=1)),
            ("1h", timedelta(hours=1)),
            ("1d", timedelta(days=1)),
            ("30d", timedelta(days=30)),
            ("90d", timedelta(days=90)),
            ("365d", timedelta(days=365)),
        ],
    )
    def test_offsets_are_after_now(self, now, token, offset):
        """Every finite token lands strictly after now."""
        result = resolve_expiry(token, now)

        assert result == now + offset
        assert result > now

    def test_never_resolves_to_none(self, now):
        """The never token means no expiry."""
        assert resolve_expiry("never", now) is None
        assert resolve_expiry(DurationToken.NEVER, now) is None

    def test_unknown_token_rejected(self, now):
        """Unrecognized tokens raise a policy error."""
        with pytest.raises(InvalidDurationError):
            resolve_expiry("2w", now)

    def test_custom_token_requires_custom_input(self, now):
        """custom cannot be resolved without a date and time."""
        with pytest.raises(PolicyError):
            resolve_expiry("custom", now)

    def test_parse_token_is_case_insensitive(self):
        assert parse_token(" 30D ") is DurationToken.THIRTY_DAYS


class TestResolveCustom:
    """Tests for explicit date and time input."""

    def test_valid_date_and_time(self):
        """Date and time combine into a local wall-clock instant."""
        result = resolve_custom("2024-03-01", "12:30")

        assert result == datetime(2024, 3, 1, 12, 30).astimezone()
        assert result.tzinfo is not None

    def test_invalid_calendar_date_rejected(self):
        """February 30th is not a date."""
        with pytest.raises(PolicyError):
            resolve_custom("2024-02-30", "00:00")

    @pytest.mark.parametrize("date", ["2024-1-05", "01/05/2024", "", "2024-13-01"])
    def test_malformed_date_rejected(self, date):
        with pytest.raises(InvalidDateTimeError):
            resolve_custom(date, "10:00")

    @pytest.mark.parametrize("time", ["9:00", "09:00:00", "0900", "25:00", "12:61", ""])
    def test_malformed_time_rejected(self, time):
        with pytest.raises(InvalidDateTimeError):
            resolve_custom("2024-03-01", time)


class TestRenewalHelpers:
    """Tests for renewal arithmetic and display helpers."""

    def test_extend_from_current_expiry(self, now):
        """Renewal extends the existing deadline, not now."""
        current = now + timedelta(days=3)

        assert extend_expiry(current, 30) == now + timedelta(days=33)

    def test_extend_rejects_non_positive_days(self, now):
        with pytest.raises(PolicyError):
            extend_expiry(now, 0)

    def test_days_until_rounds_up(self, now):
        assert days_until(now + timedelta(days=2, hours=1), now) == 3
        assert days_until(now + timedelta(days=7), now) == 7

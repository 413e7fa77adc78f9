"""Unit tests for data models and timestamp handling."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from relay_admin.models import (
    AccountSummary,
    ApiKey,
    ApiKeyUsage,
    BatchResult,
    BootstrapRecord,
    NotFoundError,
    ValidationError,
)
from relay_admin.utils.timestamps import format_timestamp, parse_timestamp


class TestTimestamps:
    """Tests for the relay's timestamp format."""

    def test_format(self):
        assert format_timestamp(datetime(2024, 1, 8, tzinfo=UTC)) == "2024-01-08T00:00:00.000Z"

    def test_format_converts_offset(self):
        value = datetime(2024, 1, 8, 9, 30, tzinfo=timezone(timedelta(hours=9)))
        assert format_timestamp(value) == "2024-01-08T00:30:00.000Z"

    def test_none_is_empty(self):
        assert format_timestamp(None) == ""
        assert parse_timestamp("") is None
        assert parse_timestamp(None) is None

    def test_parse_bytes(self):
        assert parse_timestamp(b"2024-01-08T00:00:00.000Z") == datetime(2024, 1, 8, tzinfo=UTC)


class TestApiKey:
    """Tests for ApiKey mapping."""

    def test_from_redis_hash_bytes(self):
        data = {
            b"id": b"k1",
            b"name": b"Prod",
            b"apiKey": b"cr_0123456789abcdefghijklmnop",
            b"isActive": b"false",
            b"expiresAt": b"2024-02-01T00:00:00.000Z",
            b"tokenLimit": b"1000",
        }

        key = ApiKey.from_redis_hash(data, usage=ApiKeyUsage(tokens=5, requests=1))

        assert key.id == "k1"
        assert key.is_active is False
        assert key.expires_at == datetime(2024, 2, 1, tzinfo=UTC)
        assert key.token_limit == 1000
        assert key.usage.tokens == 5
        assert key.display_token == "cr_0123456789abcdefg..."

    def test_zero_token_limit_is_unlimited(self):
        key = ApiKey.from_redis_hash({"id": "k1", "tokenLimit": "0"})

        assert key.token_limit is None
        assert key.expires_at is None
        assert key.is_active is True

    def test_display_dict(self):
        key = ApiKey(id="k1", name="Prod", api_key="")
        data = key.to_display_dict()

        assert data["apiKey"] == "-"
        assert data["expiresAt"] is None
        assert data["usage"] == {"total": {"tokens": 0, "requests": 0}}

    def test_usage_missing_fields(self):
        usage = ApiKeyUsage.from_redis_hash({"totalTokens": "9"})
        assert (usage.tokens, usage.requests) == (9, 0)
        assert ApiKeyUsage.from_redis_hash(None).tokens == 0


class TestBootstrapRecord:
    """Tests for the on-disk record shape."""

    def test_round_trip(self):
        now = datetime(2024, 1, 1, 12, tzinfo=UTC)
        record = BootstrapRecord("admin", "password1", now, now + timedelta(hours=1))

        restored = BootstrapRecord.from_dict(record.to_dict())

        assert restored == record

    def test_legacy_record_without_updated_at(self):
        record = BootstrapRecord.from_dict(
            {
                "initializedAt": "2024-01-01T00:00:00.000Z",
                "adminUsername": "admin",
                "adminPassword": "password1",
            }
        )

        assert record.updated_at == record.initialized_at
        assert record.version == "1.0.0"


class TestAccountSummary:
    def test_id_from_key(self):
        account = AccountSummary.from_redis_hash({"name": "Main", "isActive": "true"}, "acc-1")

        assert account.id == "acc-1"
        assert account.is_active is True


class TestBatchResult:
    def test_cancelled_for(self):
        result = BatchResult.cancelled_for(["a", "b"])

        assert result.cancelled
        assert result.total == 2
        assert result.success_count == 0
        assert not result.all_succeeded


class TestErrors:
    def test_not_found_to_dict(self):
        error = NotFoundError("API key", "k1")
        data = error.to_dict()

        assert data["error_type"] == "resource_not_found"
        assert data["error"] == "API key not found: k1"

    def test_validation_field(self):
        error = ValidationError("Too short", field="username")
        assert error.details["field"] == "username"

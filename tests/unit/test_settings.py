"""Unit tests for settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from relay_admin.config import Settings


class TestSettings:
    """Tests for Settings validation and grouped views."""

    def test_defaults(self):
        s = Settings(_env_file=None)

        assert s.expiring_window_days == 7
        assert s.renewal_day_options == [30, 90]
        assert s.init_file_path == Path("data") / "init.json"
        assert s.admin_credentials_key == "admin_credentials"

    def test_log_format_normalized(self):
        assert Settings(_env_file=None, log_format="JSON").log_format == "json"

    def test_log_format_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_format="xml")

    def test_renewal_days_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, renewal_day_options=[30, 0])

    def test_redis_url(self):
        s = Settings(_env_file=None, redis_host="cache", redis_port=6380, redis_password="pw", redis_db=2)

        assert s.get_redis_url() == "redis://:pw@cache:6380/2"
        assert s.redis.max_connections == s.redis_max_connections

    def test_explicit_redis_url_wins(self):
        s = Settings(_env_file=None, redis_url="redis://other:1/0")
        assert s.get_redis_url() == "redis://other:1/0"

    def test_security_group(self):
        s = Settings(_env_file=None, bcrypt_rounds=5)
        assert s.security.bcrypt_rounds == 5

    def test_logging_group(self):
        s = Settings(_env_file=None, log_level="info", log_format="json", log_file="admin.log")

        assert s.logging.level == "INFO"
        assert s.logging.use_json
        assert s.logging.file == "admin.log"

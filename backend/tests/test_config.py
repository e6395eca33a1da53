"""
Tests for settings validation and engine options.
"""

import pytest
from pydantic import ValidationError

from freightbid.config import MAX_DAILY_ORDERS, Settings
from freightbid.db.session import engine_options


class TestSettings:
    """Tests for Settings."""

    def test_daily_limit_bounded_by_id_format(self):
        with pytest.raises(ValidationError):
            Settings(daily_order_limit=MAX_DAILY_ORDERS + 1)
        with pytest.raises(ValidationError):
            Settings(daily_order_limit=0)

    def test_cors_origins(self):
        assert Settings(BACKEND_CORS_ORIGINS="http://a.test, http://b.test").backend_cors_origins == [
            "http://a.test",
            "http://b.test",
        ]
        assert Settings(BACKEND_CORS_ORIGINS='["http://a.test"]').backend_cors_origins == ["http://a.test"]

    def test_log_format_is_restricted(self):
        with pytest.raises(ValidationError):
            Settings(log_format="xml")


class TestEngineOptions:
    """Tests for engine_options()."""

    def test_sqlite_uses_busy_timeout(self):
        options = engine_options("sqlite+aiosqlite:///freightbid.db")
        assert set(options) == {"connect_args"}
        assert options["connect_args"]["timeout"] > 0

    def test_postgres_bounds_lock_waits(self):
        options = engine_options("postgresql+asyncpg://u:p@localhost/freightbid")
        assert options["pool_pre_ping"] is True
        assert options["connect_args"]["server_settings"]["lock_timeout"].isdigit()

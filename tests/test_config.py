"""Tests for settings and logging setup."""

import json
import logging
import sys

import pytest

from config import Settings, StructuredFormatter, get_settings, reset_settings, setup_logging
from errors import ConfigurationError


@pytest.fixture(autouse=True)
def fresh_settings():
    reset_settings()
    yield
    reset_settings()


class TestFromEnv:

    def test_defaults(self, monkeypatch):
        for name in ("DATABASE_URL", "DATABASE_NAME", "KEEPALIVE_SECONDS", "MAX_SUBSCRIBERS", "PLACEHOLDER_SEED"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings.from_env()

        assert settings.keepalive_seconds == 30.0
        assert settings.max_subscribers == 100
        assert settings.placeholder_seed is True
        assert settings.database_configured is False

    def test_values(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "mongodb://localhost:27017")
        monkeypatch.setenv("DATABASE_NAME", "reports")
        monkeypatch.setenv("REPORT_TIMEZONE", "Asia/Manila")
        monkeypatch.setenv("MAX_SUBSCRIBERS", "5")
        monkeypatch.setenv("PLACEHOLDER_SEED", "off")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        settings = Settings.from_env()

        assert settings.database_configured is True
        assert settings.tz.key == "Asia/Manila"
        assert settings.max_subscribers == 5
        assert settings.placeholder_seed is False
        assert settings.log_level == "DEBUG"

    def test_malformed_values_fall_back(self, monkeypatch):
        monkeypatch.setenv("MAX_SUBSCRIBERS", "lots")
        monkeypatch.setenv("KEEPALIVE_SECONDS", "soon")
        monkeypatch.setenv("PLACEHOLDER_SEED", "maybe")
        settings = Settings.from_env()

        assert settings.max_subscribers == 100
        assert settings.keepalive_seconds == 30.0
        assert settings.placeholder_seed is True

    def test_cached(self):
        assert get_settings() is get_settings()


class TestValidation:

    @pytest.mark.parametrize("field,value", [
        ("keepalive_seconds", 0),
        ("max_subscribers", 0),
        ("subscriber_queue_size", 0),
    ])
    def test_rejects_non_positive(self, field, value):
        with pytest.raises(ConfigurationError):
            Settings(**{field: value})

    def test_unknown_timezone(self):
        with pytest.raises(ConfigurationError):
            Settings(timezone_name="Mars/Olympus_Mons").tz


class TestLogging:

    def test_structured_formatter(self):
        record = logging.LogRecord("service", logging.WARNING, "service.py", 10, "Remote down", None, None)
        record.report_id = "CR-2024-01-0001"
        data = json.loads(StructuredFormatter("Incident Report API").format(record))

        assert data["level"] == "WARNING"
        assert data["message"] == "Remote down"
        assert data["service"] == "Incident Report API"
        assert data["location"]["line"] == 10
        assert data["report_id"] == "CR-2024-01-0001"

    def test_exception_info(self):
        try:
            raise ValueError("bad row")
        except ValueError:
            record = logging.LogRecord("mapper", logging.ERROR, "mapper.py", 1, "failed", None, sys.exc_info())
        data = json.loads(StructuredFormatter("svc").format(record))
        assert data["exception"] == {"type": "ValueError", "message": "bad row"}

    def test_setup_installs_one_handler(self):
        setup_logging(Settings(log_json=True, log_level="DEBUG"))
        root = logging.getLogger()

        handlers = [h for h in root.handlers if isinstance(h.formatter, StructuredFormatter)]
        assert len(handlers) == 1
        assert root.level == logging.DEBUG

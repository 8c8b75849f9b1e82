"""
Runtime settings and logging setup for the incident report service.

Settings are read from the environment once per process. Malformed values
log a warning and fall back to the default instead of crashing startup.
"""

import json
import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from errors import ConfigurationError

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


# ---------- Environment helpers ----------

def _parse_int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Invalid integer value for {name}: '{value}', using default {default}")
        return default


def _parse_float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Invalid float value for {name}: '{value}', using default {default}")
        return default


def _parse_bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    logger.warning(f"Invalid boolean value for {name}: '{value}', using default {default}")
    return default


# ---------- Settings ----------

@dataclass(frozen=True)
class Settings:
    app_name: str = "Incident Report API"
    database_url: Optional[str] = None
    database_name: Optional[str] = None
    timezone_name: str = "UTC"
    keepalive_seconds: float = 30.0
    max_subscribers: int = 100
    subscriber_queue_size: int = 256
    placeholder_seed: bool = True
    log_level: str = "INFO"
    log_json: bool = False

    def __post_init__(self) -> None:
        if self.keepalive_seconds <= 0:
            raise ConfigurationError(f"keepalive_seconds must be positive, got {self.keepalive_seconds}")
        if self.max_subscribers < 1:
            raise ConfigurationError(f"max_subscribers must be at least 1, got {self.max_subscribers}")
        if self.subscriber_queue_size < 1:
            raise ConfigurationError(
                f"subscriber_queue_size must be at least 1, got {self.subscriber_queue_size}"
            )

    @property
    def tz(self) -> ZoneInfo:
        try:
            return ZoneInfo(self.timezone_name)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigurationError(f"Unknown time zone: {self.timezone_name}") from e

    @property
    def database_configured(self) -> bool:
        return bool(self.database_url and self.database_name)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            app_name=os.getenv("APP_NAME", cls.app_name),
            database_url=os.getenv("DATABASE_URL"),
            database_name=os.getenv("DATABASE_NAME"),
            timezone_name=os.getenv("REPORT_TIMEZONE", cls.timezone_name),
            keepalive_seconds=_parse_float_env("KEEPALIVE_SECONDS", cls.keepalive_seconds),
            max_subscribers=_parse_int_env("MAX_SUBSCRIBERS", cls.max_subscribers),
            subscriber_queue_size=_parse_int_env("SUBSCRIBER_QUEUE_SIZE", cls.subscriber_queue_size),
            placeholder_seed=_parse_bool_env("PLACEHOLDER_SEED", cls.placeholder_seed),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
            log_json=_parse_bool_env("LOG_JSON", cls.log_json),
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None


# ---------- Logging ----------

class StructuredFormatter(logging.Formatter):
    """JSON log formatter with one object per line."""

    _STANDARD_ATTRS = {
        "name", "msg", "args", "created", "filename", "funcName", "levelname",
        "levelno", "lineno", "module", "msecs", "pathname", "process",
        "processName", "relativeCreated", "stack_info", "exc_info", "exc_text",
        "thread", "threadName", "taskName", "message",
    }

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }

        if record.levelno >= logging.WARNING:
            log_data["location"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
            }

        for key, value in record.__dict__.items():
            if key not in self._STANDARD_ATTRS and not key.startswith("_"):
                try:
                    json.dumps(value)
                    log_data[key] = value
                except (TypeError, ValueError):
                    log_data[key] = str(value)

        return json.dumps(log_data, default=str)


def setup_logging(settings: Settings) -> None:
    """Install a single stderr handler on the root logger."""
    level = logging.getLevelName(settings.log_level)
    if not isinstance(level, int):
        logger.warning(f"Invalid LOG_LEVEL '{settings.log_level}', using INFO")
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if settings.log_json:
        handler.setFormatter(StructuredFormatter(settings.app_name))
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    root.addHandler(handler)

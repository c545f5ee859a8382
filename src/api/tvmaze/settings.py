"""
TVmaze add-on settings - environment driven configuration.

Values come from the process environment (optionally seeded from an env file
by adapters.config.load_env). A malformed value falls back to its default
with a warning rather than failing the function at cold start.
"""

import os
from datetime import timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field

from adapters.config import load_env
from utils.get_logger import get_logger
from utils.pydantic_tools import BaseModelWithMethods

logger = get_logger(__name__)

CATALOG_STRATEGIES = ("schedule", "shows")


class TVMazeSettings(BaseModelWithMethods):
    base_url: str = "https://api.tvmaze.com"
    country: str = "US"

    window_days: int = 7
    window_timezone: str = "America/Los_Angeles"
    # When set, the window uses this fixed UTC offset instead of window_timezone
    window_utc_offset_hours: float | None = None

    catalog_strategy: str = "schedule"
    cache_ttl_seconds: int = 3 * 60 * 60
    refresh_mode: str = "background"
    excluded_show_types: list[str] = Field(default_factory=lambda: ["Talk Show", "News"])

    show_scan_max_pages: int = 20
    show_scan_batch_size: int = 10

    max_retries: int = 2
    retry_delay_seconds: float = 0.2
    timeout_seconds: float = 10.0
    # TVmaze allows 20 calls every 10 seconds per IP
    rate_limit_max: int = 20
    rate_limit_period: float = 10.0

    addon_version: str = "1.0.0"

    @property
    def reference_tz(self) -> tzinfo:
        if self.window_utc_offset_hours is not None:
            return timezone(timedelta(hours=self.window_utc_offset_hours))
        try:
            return ZoneInfo(self.window_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown timezone {self.window_timezone!r}, using UTC")
            return timezone.utc

    @classmethod
    def from_env(cls) -> "TVMazeSettings":
        load_env()
        defaults = cls()
        values: dict = {
            "base_url": os.getenv("TVMAZE_BASE_URL", defaults.base_url).rstrip("/"),
            "country": os.getenv("TVMAZE_COUNTRY", defaults.country),
            "window_days": _env_int("RECENT_WINDOW_DAYS", defaults.window_days, minimum=1),
            "window_timezone": os.getenv("RECENT_WINDOW_TIMEZONE", defaults.window_timezone),
            "window_utc_offset_hours": _env_float("RECENT_WINDOW_UTC_OFFSET_HOURS", None),
            "catalog_strategy": _env_choice(
                "CATALOG_STRATEGY", defaults.catalog_strategy, CATALOG_STRATEGIES
            ),
            "cache_ttl_seconds": _env_int(
                "CATALOG_CACHE_TTL_SECONDS", defaults.cache_ttl_seconds, minimum=0
            ),
            "refresh_mode": _env_choice(
                "CATALOG_REFRESH_MODE", defaults.refresh_mode, ("background", "blocking")
            ),
            "show_scan_max_pages": _env_int(
                "SHOW_SCAN_MAX_PAGES", defaults.show_scan_max_pages, minimum=1
            ),
            "show_scan_batch_size": _env_int(
                "SHOW_SCAN_BATCH_SIZE", defaults.show_scan_batch_size, minimum=1
            ),
            "max_retries": _env_int("TVMAZE_MAX_RETRIES", defaults.max_retries, minimum=0),
            "retry_delay_seconds": _env_float(
                "TVMAZE_RETRY_DELAY_SECONDS", defaults.retry_delay_seconds
            ),
            "timeout_seconds": _env_float("TVMAZE_TIMEOUT_SECONDS", defaults.timeout_seconds),
            "addon_version": os.getenv("ADDON_VERSION", defaults.addon_version),
        }
        excluded = os.getenv("EXCLUDED_SHOW_TYPES")
        if excluded is not None:
            values["excluded_show_types"] = [t.strip() for t in excluded.split(",") if t.strip()]
        return cls(**values)


def _env_int(name: str, default: int, minimum: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"{name}={raw!r} is not an integer, using {default}")
        return default
    if minimum is not None and value < minimum:
        logger.warning(f"{name}={value} is below {minimum}, using {default}")
        return default
    return value


def _env_float(name: str, default: float | None) -> float | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"{name}={raw!r} is not a number, using {default}")
        return default


def _env_choice(name: str, default: str, choices: tuple[str, ...]) -> str:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    value = raw.strip().lower()
    if value not in choices:
        logger.warning(f"{name}={raw!r} is not one of {choices}, using {default}")
        return default
    return value


_settings: TVMazeSettings | None = None


def get_settings() -> TVMazeSettings:
    """Settings singleton, read from the environment on first use."""
    global _settings
    if _settings is None:
        _settings = TVMazeSettings.from_env()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None

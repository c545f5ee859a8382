"""Tests for environment-driven settings."""

from datetime import timedelta
from zoneinfo import ZoneInfo

import pytest

from api.tvmaze.settings import TVMazeSettings, get_settings, reset_settings

ENV_VARS = [
    "TVMAZE_BASE_URL",
    "TVMAZE_COUNTRY",
    "RECENT_WINDOW_DAYS",
    "RECENT_WINDOW_TIMEZONE",
    "RECENT_WINDOW_UTC_OFFSET_HOURS",
    "CATALOG_STRATEGY",
    "CATALOG_CACHE_TTL_SECONDS",
    "CATALOG_REFRESH_MODE",
    "EXCLUDED_SHOW_TYPES",
    "SHOW_SCAN_MAX_PAGES",
    "SHOW_SCAN_BATCH_SIZE",
    "TVMAZE_MAX_RETRIES",
    "TVMAZE_RETRY_DELAY_SECONDS",
    "TVMAZE_TIMEOUT_SECONDS",
    "ADDON_VERSION",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


def test_defaults():
    settings = TVMazeSettings.from_env()

    assert settings.base_url == "https://api.tvmaze.com"
    assert settings.country == "US"
    assert settings.window_days == 7
    assert settings.catalog_strategy == "schedule"
    assert settings.cache_ttl_seconds == 10800
    assert settings.refresh_mode == "background"
    assert settings.excluded_show_types == ["Talk Show", "News"]
    assert settings.show_scan_max_pages == 20
    assert settings.show_scan_batch_size == 10
    assert settings.max_retries == 2
    assert settings.retry_delay_seconds == 0.2
    assert settings.reference_tz == ZoneInfo("America/Los_Angeles")


def test_overrides(monkeypatch):
    monkeypatch.setenv("TVMAZE_BASE_URL", "http://localhost:9000/")
    monkeypatch.setenv("TVMAZE_COUNTRY", "GB")
    monkeypatch.setenv("RECENT_WINDOW_DAYS", "3")
    monkeypatch.setenv("CATALOG_STRATEGY", "Shows")
    monkeypatch.setenv("CATALOG_REFRESH_MODE", "blocking")
    monkeypatch.setenv("EXCLUDED_SHOW_TYPES", "News, Sports ,")
    monkeypatch.setenv("ADDON_VERSION", "2.1.0")

    settings = TVMazeSettings.from_env()

    assert settings.base_url == "http://localhost:9000"
    assert settings.country == "GB"
    assert settings.window_days == 3
    assert settings.catalog_strategy == "shows"
    assert settings.refresh_mode == "blocking"
    assert settings.excluded_show_types == ["News", "Sports"]
    assert settings.addon_version == "2.1.0"


def test_invalid_values_fall_back(monkeypatch):
    monkeypatch.setenv("RECENT_WINDOW_DAYS", "0")
    monkeypatch.setenv("SHOW_SCAN_BATCH_SIZE", "ten")
    monkeypatch.setenv("CATALOG_STRATEGY", "magic")
    monkeypatch.setenv("TVMAZE_RETRY_DELAY_SECONDS", "soon")

    settings = TVMazeSettings.from_env()

    assert settings.window_days == 7
    assert settings.show_scan_batch_size == 10
    assert settings.catalog_strategy == "schedule"
    assert settings.retry_delay_seconds == 0.2


def test_fixed_offset_timezone(monkeypatch):
    monkeypatch.setenv("RECENT_WINDOW_UTC_OFFSET_HOURS", "-8")

    tz = TVMazeSettings.from_env().reference_tz

    assert tz.utcoffset(None) == timedelta(hours=-8)


def test_unknown_timezone_uses_utc():
    tz = TVMazeSettings(window_timezone="Mars/Olympus_Mons").reference_tz

    assert tz.utcoffset(None) == timedelta(0)


def test_get_settings_is_cached(monkeypatch):
    first = get_settings()
    monkeypatch.setenv("TVMAZE_COUNTRY", "CA")

    assert get_settings() is first
    reset_settings()
    assert get_settings().country == "CA"

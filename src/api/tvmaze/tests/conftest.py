"""
Shared fixtures for TVmaze add-on tests.

Fixture payloads under fixtures/ are trimmed copies of real TVmaze responses.
"""

# Set ENVIRONMENT to test FIRST so the base client skips rate limiting
import os

os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("ENV_FILE", "config/test.env")

import json
from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock
from zoneinfo import ZoneInfo

import pytest

from api.tvmaze.core import TVMazeService
from api.tvmaze.models import TVMazeEpisode, TVMazeScheduleItem, TVMazeShow
from api.tvmaze.recency import RecencyWindow
from api.tvmaze.settings import TVMazeSettings

FIXTURES_DIR = Path(__file__).parent / "fixtures"

LA = ZoneInfo("America/Los_Angeles")

# Window 2024-05-01 .. 2024-05-07
REFERENCE_NOW = datetime(2024, 5, 7, 12, 0, tzinfo=LA)


def load_fixture(filename: str):
    """Load a JSON fixture from the fixtures directory."""
    fixture_path = FIXTURES_DIR / filename
    if not fixture_path.exists():
        raise FileNotFoundError(f"Fixture file not found: {fixture_path}")

    with open(fixture_path) as f:
        return json.load(f)


def make_show(show_id: int, name: str = "", show_type: str = "Scripted", **kwargs) -> TVMazeShow:
    return TVMazeShow(id=show_id, name=name or f"Show {show_id}", type=show_type, **kwargs)


def make_episode(episode_id: int, airdate: str | None, season: int = 1, number: int = 1, **kwargs):
    return TVMazeEpisode(
        id=episode_id, season=season, number=number, airdate=airdate, name=f"Ep {number}", **kwargs
    )


def make_schedule_item(show: TVMazeShow, airdate: str, episode_id: int = 1) -> TVMazeScheduleItem:
    return TVMazeScheduleItem(id=episode_id, season=1, number=1, airdate=airdate, show=show)


@pytest.fixture
def settings():
    """Default settings with instant retries."""
    return TVMazeSettings(retry_delay_seconds=0)


@pytest.fixture
def window_factory():
    return lambda: RecencyWindow(days=7, tz=LA, now=REFERENCE_NOW)


@pytest.fixture
def mock_service():
    """TVMazeService double; every upstream call returns nothing by default."""
    service = MagicMock(spec=TVMazeService)
    service.get_schedule = AsyncMock(return_value=[])
    service.get_show_index_page = AsyncMock(return_value=None)
    service.get_show = AsyncMock(return_value=None)
    service.get_episodes = AsyncMock(return_value=None)
    return service


@pytest.fixture
def show_82() -> TVMazeShow:
    return TVMazeShow.model_validate(load_fixture("show_82.json"))


@pytest.fixture
def show_82_episodes() -> list[TVMazeEpisode]:
    return [TVMazeEpisode.model_validate(e) for e in load_fixture("show_82_episodes.json")]


@pytest.fixture
def schedule_may_3() -> list[TVMazeScheduleItem]:
    return [TVMazeScheduleItem.model_validate(i) for i in load_fixture("schedule_2024-05-03.json")]

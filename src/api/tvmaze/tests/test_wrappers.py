"""
Unit tests for TVMazeAddonWrapper (catalog caching, meta assembly, manifest).
"""

import asyncio
import threading
import time

import pytest

from api.tvmaze.models import TVMazeCatalogResponse, TVMazeMetaResponse
from api.tvmaze.settings import TVMazeSettings
from api.tvmaze.tests.conftest import make_episode, make_schedule_item, make_show
from api.tvmaze.wrappers import TVMazeAddonWrapper
from contracts.models import PLACEHOLDER_POSTER
from utils.memory_cache import CatalogCache

pytestmark = pytest.mark.unit


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def wrapper(settings, mock_service, window_factory, clock):
    cache = CatalogCache(ttl_seconds=300, refresh_mode="blocking", clock=clock)
    return TVMazeAddonWrapper(
        settings=settings, service=mock_service, cache=cache, window_factory=window_factory
    )


def test_manifest(wrapper):
    manifest = wrapper.get_manifest("addon.example.com").to_dict()

    assert manifest["id"] == "recent.tvmaze"
    assert manifest["types"] == ["series"]
    assert manifest["resources"] == ["catalog", "meta"]
    assert manifest["idPrefixes"] == ["tvmaze:"]
    assert manifest["catalogs"] == [
        {"id": "recent", "type": "series", "name": "Recent Episodes (7 days)"}
    ]
    assert manifest["endpoint"] == "https://addon.example.com/api"
    assert wrapper.get_manifest().endpoint is None


class TestGetCatalog:
    @pytest.mark.asyncio
    async def test_catalog_cached_within_ttl(self, wrapper, mock_service, clock, schedule_may_3):
        async def get_schedule(date, country=None):
            return schedule_may_3 if date == "2024-05-03" else []

        mock_service.get_schedule.side_effect = get_schedule

        first = await wrapper.get_catalog("recent", "series")
        assert isinstance(first, TVMazeCatalogResponse)
        assert first.error is None
        assert [m.id for m in first.metas] == ["tvmaze:101"]
        assert first.from_cache is False
        assert mock_service.get_schedule.call_count == 7

        clock.now = 200
        second = await wrapper.get_catalog("recent", "series")
        assert second.from_cache is True
        assert second.metas == first.metas
        assert mock_service.get_schedule.call_count == 7

        clock.now = 301
        third = await wrapper.get_catalog("recent", "series")
        assert third.from_cache is False
        assert mock_service.get_schedule.call_count == 14

    @pytest.mark.asyncio
    async def test_unknown_catalog(self, wrapper, mock_service):
        response = await wrapper.get_catalog("popular", "series")

        assert response.status_code == 404
        assert response.metas == []
        mock_service.get_schedule.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_upstream_gives_empty_catalog(self, wrapper):
        response = await wrapper.get_catalog("recent", "series")

        assert response.error is None
        assert response.metas == []
        assert wrapper.cache.record is None

    @pytest.mark.asyncio
    async def test_unique_ids(self, wrapper, mock_service):
        show = make_show(7, "Daily")

        async def get_schedule(date, country=None):
            return [make_schedule_item(show, date)]

        mock_service.get_schedule.side_effect = get_schedule
        response = await wrapper.get_catalog()

        assert [m.id for m in response.metas] == ["tvmaze:7"]
        assert response.metas[0].latest_airdate == "2024-05-07"

    @pytest.mark.asyncio
    async def test_cold_show_scan_returns_promptly(self, mock_service, window_factory):
        settings = TVMazeSettings(
            catalog_strategy="shows", refresh_mode="blocking", show_scan_max_pages=1
        )
        wrapper = TVMazeAddonWrapper(
            settings=settings, service=mock_service, window_factory=window_factory
        )
        release = threading.Event()

        async def get_show_index_page(page):
            await asyncio.to_thread(release.wait, 5)
            return [make_show(1, "Scanned")]

        mock_service.get_show_index_page.side_effect = get_show_index_page
        mock_service.get_episodes.return_value = [make_episode(11, "2024-05-06")]

        started = time.monotonic()
        first = await wrapper.get_catalog("recent", "series")

        assert time.monotonic() - started < 1
        assert first.error is None
        assert first.metas == []
        assert wrapper.cache.refresh_in_flight

        release.set()
        assert wrapper.cache.wait_for_refresh(timeout=5)
        second = await wrapper.get_catalog("recent", "series")
        assert [m.id for m in second.metas] == ["tvmaze:1"]
        assert mock_service.get_show_index_page.call_count == 1


class TestGetMeta:
    @pytest.mark.asyncio
    async def test_meta(self, wrapper, mock_service, show_82, show_82_episodes):
        mock_service.get_show.return_value = show_82
        mock_service.get_episodes.return_value = show_82_episodes

        response = await wrapper.get_meta("tvmaze:82", "series")

        assert isinstance(response, TVMazeMetaResponse)
        assert response.error is None
        meta = response.meta
        assert meta.id == "tvmaze:82"
        assert meta.name == "Game of Thrones"
        assert len(meta.episodes) == 3
        assert all(e.series == "tvmaze:82" for e in meta.episodes)
        mock_service.get_show.assert_awaited_once_with("82")
        mock_service.get_episodes.assert_awaited_once_with("82")

    @pytest.mark.asyncio
    async def test_meta_upstream_down_gives_placeholder(self, wrapper):
        response = await wrapper.get_meta("tvmaze:999", "series")

        assert response.error is None
        assert response.meta.name == "Unknown Show"
        assert response.meta.poster == PLACEHOLDER_POSTER
        assert response.meta.episodes == []

    @pytest.mark.asyncio
    async def test_meta_foreign_id(self, wrapper, mock_service):
        response = await wrapper.get_meta("tt0944947", "series")

        assert response.status_code == 404
        assert response.meta is None
        mock_service.get_show.assert_not_called()

    @pytest.mark.asyncio
    async def test_meta_non_numeric_tvmaze_id(self, wrapper, mock_service):
        response = await wrapper.get_meta("tvmaze:abc", "series")

        assert response.status_code == 404
        assert response.meta is None
        mock_service.get_show.assert_not_called()

    @pytest.mark.asyncio
    async def test_meta_builder_error(self, wrapper, mock_service):
        mock_service.get_show.side_effect = RuntimeError("boom")

        response = await wrapper.get_meta("tvmaze:82", "series")

        assert response.status_code == 500
        assert "boom" in response.error

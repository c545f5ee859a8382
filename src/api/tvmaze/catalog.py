"""
Recent-episodes catalog builders.

Two strategies produce the same output, a list of CatalogMeta unique per show
and sorted newest first by the show's latest in-window air date:

- ScheduleScanBuilder: one schedule request per day of the window.
  Cheap (N requests) and the default.
- ShowScanBuilder: walks the show index and every show's episode list.
  Expensive, but catches shows missing from the country schedule.
"""

import asyncio
import time
from collections.abc import Callable

from api.tvmaze.core import TVMazeService
from api.tvmaze.models import TVMazeShow
from api.tvmaze.recency import RecencyWindow
from api.tvmaze.settings import TVMazeSettings
from api.tvmaze.transforms import latest_airdate, to_catalog_meta
from contracts.models import CatalogMeta
from utils.get_logger import get_logger

logger = get_logger(__name__)

WindowFactory = Callable[[], RecencyWindow]


def sort_catalog(metas: list[CatalogMeta]) -> list[CatalogMeta]:
    """Newest latest_airdate first; ISO dates compare correctly as strings."""
    return sorted(metas, key=lambda m: m.latest_airdate or "", reverse=True)


class CatalogBuilder:
    """Shared configuration for the catalog strategies."""

    strategy = ""

    def __init__(
        self,
        service: TVMazeService,
        settings: TVMazeSettings,
        window_factory: WindowFactory | None = None,
    ):
        self.service = service
        self.settings = settings
        self.window_factory = window_factory or (
            lambda: RecencyWindow(days=settings.window_days, tz=settings.reference_tz)
        )
        self.excluded_types = set(settings.excluded_show_types)

    def is_excluded(self, show: TVMazeShow) -> bool:
        return show.type in self.excluded_types

    async def build(self) -> list[CatalogMeta]:
        window = self.window_factory()
        started = time.monotonic()
        logger.info(f"Building {self.strategy} catalog for {window.start}..{window.end}")
        metas = sort_catalog(await self._collect(window))
        logger.info(
            f"Catalog built: {len(metas)} shows ({self.strategy}) "
            f"in {time.monotonic() - started:.1f}s"
        )
        return metas

    async def _collect(self, window: RecencyWindow) -> list[CatalogMeta]:
        raise NotImplementedError


class ScheduleScanBuilder(CatalogBuilder):
    strategy = "schedule"

    async def _collect(self, window: RecencyWindow) -> list[CatalogMeta]:
        schedules = await asyncio.gather(
            *(self.service.get_schedule(date, self.settings.country) for date in window.dates)
        )

        shows: dict[int, TVMazeShow] = {}
        latest: dict[int, str] = {}
        for items in schedules:
            for item in items:
                show = item.show
                if show is None or self.is_excluded(show):
                    continue
                if not window.is_recent(item.airdate):
                    continue
                shows.setdefault(show.id, show)
                if item.airdate > latest.get(show.id, ""):
                    latest[show.id] = item.airdate

        return [to_catalog_meta(show, latest.get(show_id)) for show_id, show in shows.items()]


class ShowScanBuilder(CatalogBuilder):
    strategy = "shows"

    async def _collect(self, window: RecencyWindow) -> list[CatalogMeta]:
        metas: list[CatalogMeta] = []
        seen: set[int] = set()
        batch_size = self.settings.show_scan_batch_size

        for page in range(self.settings.show_scan_max_pages):
            shows = await self.service.get_show_index_page(page)
            if shows is None:
                logger.debug(f"Skipping show index page {page}")
                continue

            candidates = [s for s in shows if not self.is_excluded(s) and s.id not in seen]
            seen.update(s.id for s in candidates)

            for i in range(0, len(candidates), batch_size):
                chunk = candidates[i : i + batch_size]
                results = await asyncio.gather(*(self._recent_meta(s, window) for s in chunk))
                metas.extend(meta for meta in results if meta is not None)

        return metas

    async def _recent_meta(self, show: TVMazeShow, window: RecencyWindow) -> CatalogMeta | None:
        episodes = await self.service.get_episodes(show.id)
        if not episodes:
            return None
        recent = [e for e in episodes if window.is_recent(e.airdate)]
        if not recent:
            return None
        return to_catalog_meta(show, latest_airdate(recent))


def create_builder(
    service: TVMazeService,
    settings: TVMazeSettings,
    window_factory: WindowFactory | None = None,
) -> CatalogBuilder:
    if settings.catalog_strategy == "shows":
        return ShowScanBuilder(service, settings, window_factory)
    return ScheduleScanBuilder(service, settings, window_factory)

"""
TVmaze Async Wrappers - catalog and meta operations for the add-on handler.
Results are returned as TVMazeResponse models carrying error/status_code, so
the handler never has to catch upstream failures itself.
"""

import asyncio

from api.tvmaze.catalog import CatalogBuilder, WindowFactory, create_builder
from api.tvmaze.core import TVMazeService
from api.tvmaze.manifest import CATALOG_ID, build_manifest
from api.tvmaze.models import TVMazeCatalogResponse, TVMazeMetaResponse
from api.tvmaze.settings import TVMazeSettings, get_settings
from api.tvmaze.transforms import to_meta_detail
from contracts.models import ContentType, Manifest, parse_series_id
from utils.get_logger import get_logger
from utils.memory_cache import CatalogCache

logger = get_logger(__name__)


class TVMazeAddonWrapper:
    def __init__(
        self,
        settings: TVMazeSettings | None = None,
        service: TVMazeService | None = None,
        cache: CatalogCache | None = None,
        window_factory: WindowFactory | None = None,
    ):
        self._settings = settings
        self._service = service
        self._cache = cache
        self._builder: CatalogBuilder | None = None
        self._window_factory = window_factory

    @property
    def settings(self) -> TVMazeSettings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def service(self) -> TVMazeService:
        """Lazy-load service instance on first use."""
        if self._service is None:
            self._service = TVMazeService(self.settings)
        return self._service

    @property
    def cache(self) -> CatalogCache:
        if self._cache is None:
            # A show scan takes far longer than a request may run, so it only
            # ever builds in the background
            inline_builds = self.settings.catalog_strategy != "shows"
            if not inline_builds and self.settings.refresh_mode == "blocking":
                logger.warning("Show-scan catalog ignores CATALOG_REFRESH_MODE=blocking")
            self._cache = CatalogCache(
                ttl_seconds=self.settings.cache_ttl_seconds,
                refresh_mode=self.settings.refresh_mode,
                name="recent_catalog",
                inline_builds=inline_builds,
            )
        return self._cache

    @property
    def builder(self) -> CatalogBuilder:
        if self._builder is None:
            self._builder = create_builder(self.service, self.settings, self._window_factory)
        return self._builder

    def get_manifest(self, host: str | None = None) -> Manifest:
        return build_manifest(self.settings, host)

    async def get_catalog(
        self, catalog_id: str = CATALOG_ID, content_type: str = ContentType.SERIES.value
    ) -> TVMazeCatalogResponse:
        """
        Recent-episodes catalog, served through the catalog cache.

        Args:
            catalog_id: Catalog requested by the client (only 'recent' exists)
            content_type: Content type requested by the client (only 'series')

        Returns:
            TVMazeCatalogResponse with metas sorted newest first, or an error
        """
        if catalog_id != CATALOG_ID or content_type != ContentType.SERIES.value:
            return TVMazeCatalogResponse(
                error=f"Unknown catalog {content_type}/{catalog_id}", status_code=404
            )

        try:
            was_fresh = self.cache.is_fresh()
            metas = await self.cache.get(self.builder.build)
            return TVMazeCatalogResponse(metas=metas or [], from_cache=was_fresh)
        except Exception as e:
            logger.error(f"Error in get_catalog: {e}", exc_info=True)
            return TVMazeCatalogResponse(error=str(e), status_code=500)

    async def get_meta(
        self, prefixed_id: str, content_type: str = ContentType.SERIES.value
    ) -> TVMazeMetaResponse:
        """
        Show details and full episode list for a 'tvmaze:<id>' series id.

        A show TVmaze does not know still yields a placeholder meta document.
        """
        show_id = parse_series_id(prefixed_id)
        if show_id is None or content_type != ContentType.SERIES.value:
            return TVMazeMetaResponse(
                error=f"Unsupported id {prefixed_id!r} ({content_type})", status_code=404
            )

        try:
            show, episodes = await asyncio.gather(
                self.service.get_show(show_id), self.service.get_episodes(show_id)
            )
            if show is None:
                logger.warning(f"Show {show_id} unavailable, returning placeholder meta")
            meta = to_meta_detail(prefixed_id, show_id, show, episodes or [])
            return TVMazeMetaResponse(meta=meta)
        except Exception as e:
            logger.error(f"Error in get_meta for {prefixed_id}: {e}", exc_info=True)
            return TVMazeMetaResponse(error=str(e), status_code=500)


tvmaze_wrapper = TVMazeAddonWrapper()

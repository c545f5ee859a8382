"""
Offline static export of the add-on.

Writes a directory tree a static file host can serve in place of the live
function:

    <out>/catalog/series/recent<N>.json     {"metas": [...]}
    <out>/meta/series/tvmaze:<id>.json      {"meta": {...}}

The catalog always comes from the schedule scan. One meta file is written per
catalog entry; a show whose episodes cannot be fetched is logged and skipped.
"""

import asyncio
import json
from pathlib import Path
from typing import Any

from api.tvmaze.catalog import ScheduleScanBuilder, WindowFactory
from api.tvmaze.core import TVMazeService
from api.tvmaze.settings import TVMazeSettings, get_settings
from api.tvmaze.transforms import to_meta_detail
from contracts.models import CatalogMeta, CatalogResponse, MetaResponse, parse_series_id
from utils.get_logger import get_logger

logger = get_logger(__name__)


class StaticExporter:
    def __init__(
        self,
        settings: TVMazeSettings | None = None,
        service: TVMazeService | None = None,
        window_factory: WindowFactory | None = None,
    ):
        self.settings = settings or get_settings()
        self.service = service or TVMazeService(self.settings)
        self.builder = ScheduleScanBuilder(self.service, self.settings, window_factory)

    @property
    def catalog_filename(self) -> str:
        return f"recent{self.settings.window_days}.json"

    async def export(self, output_dir: str | Path) -> dict[str, Any]:
        """
        Build the catalog and every show's meta document and write them to disk.

        Args:
            output_dir: Root of the static tree (created if missing)

        Returns:
            dict with 'shows', 'meta_written', 'meta_failed' and 'catalog_path'
        """
        root = Path(output_dir)
        catalog_dir = root / "catalog" / "series"
        meta_dir = root / "meta" / "series"
        catalog_dir.mkdir(parents=True, exist_ok=True)
        meta_dir.mkdir(parents=True, exist_ok=True)

        metas = await self.builder.build()
        catalog_path = catalog_dir / self.catalog_filename
        _write_json(catalog_path, CatalogResponse(metas=metas).to_dict())
        logger.info(f"Wrote catalog with {len(metas)} shows to {catalog_path}")

        written = 0
        failed = 0
        batch_size = self.settings.show_scan_batch_size
        for i in range(0, len(metas), batch_size):
            chunk = metas[i : i + batch_size]
            results = await asyncio.gather(*(self._export_meta(meta, meta_dir) for meta in chunk))
            written += sum(1 for ok in results if ok)
            failed += sum(1 for ok in results if not ok)

        logger.info(f"Static export done: {written} meta files written, {failed} failed")
        return {
            "shows": len(metas),
            "meta_written": written,
            "meta_failed": failed,
            "catalog_path": str(catalog_path),
        }

    async def _export_meta(self, meta: CatalogMeta, meta_dir: Path) -> bool:
        show_id = parse_series_id(meta.id)
        if show_id is None:
            logger.warning(f"Skipping catalog entry with unexpected id {meta.id!r}")
            return False

        try:
            episodes = await self.service.get_episodes(show_id)
            if episodes is None:
                logger.warning(f"No episodes for {meta.id} ({meta.name}), skipping meta file")
                return False

            show = await self.service.get_show(show_id)
            detail = to_meta_detail(meta.id, show_id, show, episodes, include_overview=True)
            if show is None:
                # The catalog entry already carries the show's name and summary
                detail.name = meta.name
                detail.description = meta.description
            _write_json(meta_dir / f"{meta.id}.json", MetaResponse(meta=detail).to_dict())
            return True
        except Exception as e:
            logger.error(f"Failed to export meta for {meta.id}: {e}", exc_info=True)
            return False


def _write_json(path: Path, payload: dict[str, Any]) -> None:
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")

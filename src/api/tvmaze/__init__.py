"""
TVmaze Add-on Package - recently aired shows served as a media-catalog add-on.

This package provides:
- TVMazeService: Core service class for the TVmaze public API
- Catalog builders: schedule-scan (default) and show-scan strategies
- TVMazeAddonWrapper: Cached catalog and meta operations
- TVMazeAddonHandler: Firebase Functions handler for manifest/catalog/meta
- StaticExporter: Offline export of the catalog and meta documents
- Models: Pydantic models for TVmaze payloads and the error taxonomy
"""

from api.tvmaze.catalog import ScheduleScanBuilder, ShowScanBuilder, create_builder
from api.tvmaze.core import TVMazeService
from api.tvmaze.handlers import TVMazeAddonHandler, tvmaze_handler
from api.tvmaze.models import (
    ShowNotFoundError,
    TVMazeEpisode,
    TVMazeError,
    TVMazeScheduleItem,
    TVMazeShow,
    UpstreamPayloadError,
    UpstreamStatusError,
    UpstreamUnavailableError,
)
from api.tvmaze.recency import RecencyWindow
from api.tvmaze.settings import TVMazeSettings, get_settings
from api.tvmaze.static_export import StaticExporter
from api.tvmaze.wrappers import TVMazeAddonWrapper, tvmaze_wrapper

__all__ = [
    # Core
    "TVMazeService",
    "TVMazeSettings",
    "get_settings",
    "RecencyWindow",
    # Catalog
    "ScheduleScanBuilder",
    "ShowScanBuilder",
    "create_builder",
    "StaticExporter",
    # Handlers
    "TVMazeAddonHandler",
    "tvmaze_handler",
    # Models
    "TVMazeShow",
    "TVMazeEpisode",
    "TVMazeScheduleItem",
    "TVMazeError",
    "UpstreamUnavailableError",
    "UpstreamStatusError",
    "UpstreamPayloadError",
    "ShowNotFoundError",
    # Wrappers
    "TVMazeAddonWrapper",
    "tvmaze_wrapper",
]

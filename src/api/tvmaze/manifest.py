"""
Static add-on manifest. The client fetches it before anything else.
"""

from api.tvmaze.settings import TVMazeSettings
from contracts.models import ID_PREFIX, CatalogDefinition, ContentType, Manifest, Resource

ADDON_ID = "recent.tvmaze"
ADDON_NAME = "Recent Episodes (TVmaze)"
CATALOG_ID = "recent"


def build_manifest(settings: TVMazeSettings, host: str | None = None) -> Manifest:
    """
    Args:
        settings: Add-on settings (version, window length)
        host: Host header of the incoming request, used for the self URL
    """
    days = settings.window_days
    return Manifest(
        id=ADDON_ID,
        version=settings.addon_version,
        name=ADDON_NAME,
        description=f"Shows with episodes in the last {days} days",
        types=[ContentType.SERIES],
        resources=[Resource.CATALOG, Resource.META],
        catalogs=[
            CatalogDefinition(
                id=CATALOG_ID, type=ContentType.SERIES, name=f"Recent Episodes ({days} days)"
            )
        ],
        id_prefixes=[ID_PREFIX],
        endpoint=f"https://{host}/api" if host else None,
    )

from enum import Enum
from typing import Any

from pydantic import Field, model_serializer

from utils.pydantic_tools import BaseModelWithMethods

"""
Wire contract with the media-catalog client.
The client fetches the manifest first, then catalog and meta documents whose
shapes are fixed by the client; field names are camelCase on the wire.
"""

ID_PREFIX = "tvmaze:"

PLACEHOLDER_POSTER = "https://static.strem.io/assets/placeholders/series.png"


class ContentType(str, Enum):
    SERIES = "series"
    EPISODE = "episode"


class Resource(str, Enum):
    CATALOG = "catalog"
    META = "meta"


class CatalogDefinition(BaseModelWithMethods):
    id: str
    type: ContentType = ContentType.SERIES
    name: str


class Manifest(BaseModelWithMethods):
    id: str
    version: str
    name: str
    description: str
    types: list[ContentType] = Field(default_factory=lambda: [ContentType.SERIES])
    resources: list[Resource] = Field(default_factory=lambda: [Resource.CATALOG, Resource.META])
    catalogs: list[CatalogDefinition] = Field(default_factory=list)
    id_prefixes: list[str] = Field(default_factory=lambda: [ID_PREFIX], alias="idPrefixes")
    endpoint: str | None = None


class CatalogMeta(BaseModelWithMethods):
    """One show in the catalog listing."""

    id: str
    type: ContentType = ContentType.SERIES
    name: str
    poster: str = PLACEHOLDER_POSTER
    description: str = ""
    # Only used to order the catalog, newest first
    latest_airdate: str | None = Field(default=None, alias="latestAirdate")

    @model_serializer(mode="wrap")
    def _omit_missing_airdate(self, handler: Any) -> dict[str, Any]:
        data = handler(self)
        if self.latest_airdate is None:
            data.pop("latestAirdate", None)
            data.pop("latest_airdate", None)
        return data


class EpisodeVideo(BaseModelWithMethods):
    id: str
    series: str
    type: ContentType = ContentType.EPISODE
    season: int | None = None
    episode: int | None = None
    name: str | None = None
    released: str | None = None
    thumbnail: str | None = None
    overview: str | None = None

    @model_serializer(mode="wrap")
    def _omit_missing_overview(self, handler: Any) -> dict[str, Any]:
        data = handler(self)
        if self.overview is None:
            data.pop("overview", None)
        return data


class MetaDetail(BaseModelWithMethods):
    """A show with its full episode list."""

    id: str
    type: ContentType = ContentType.SERIES
    name: str
    poster: str = PLACEHOLDER_POSTER
    description: str = ""
    episodes: list[EpisodeVideo] = Field(default_factory=list)


class CatalogResponse(BaseModelWithMethods):
    metas: list[CatalogMeta] = Field(default_factory=list)


class MetaResponse(BaseModelWithMethods):
    meta: MetaDetail | dict[str, Any] = Field(default_factory=dict)


class StatusResponse(BaseModelWithMethods):
    status: str = "ok"


def series_id(show_id: int | str) -> str:
    """Build the prefixed series id, e.g. 'tvmaze:82'."""
    return f"{ID_PREFIX}{show_id}"


def episode_id(show_id: int | str, season: int | None, number: int | None) -> str:
    """Build the composite episode id, e.g. 'tvmaze:82:s1e3'."""
    return f"{ID_PREFIX}{show_id}:s{season}e{number}"


def parse_series_id(prefixed_id: str | None) -> str | None:
    """
    Extract the upstream show id from a prefixed series id.

    Returns None when the id is not in this add-on's namespace or has no
    numeric show part.
    """
    if not prefixed_id or not prefixed_id.startswith(ID_PREFIX):
        return None
    show_id = prefixed_id[len(ID_PREFIX) :].split(":", 1)[0].strip()
    if not show_id.isdigit():
        return None
    return show_id

"""
Pydantic models and errors for the TVmaze integration.

Upstream models only declare the fields the add-on consumes; anything else in
the TVmaze payloads is ignored.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from contracts.models import CatalogMeta, MetaDetail
from utils.pydantic_tools import BaseModelWithMethods


class TVMazeError(Exception):
    """Base class for TVmaze failures."""

    def __init__(self, message: str, url: str | None = None, status: int | None = None):
        super().__init__(message)
        self.url = url
        self.status = status


class UpstreamUnavailableError(TVMazeError):
    """TVmaze could not be reached (network error, timeout, retries exhausted)."""


class UpstreamStatusError(TVMazeError):
    """TVmaze answered with a non-2xx status."""


class UpstreamPayloadError(TVMazeError):
    """TVmaze answered 2xx with a body that is not the expected JSON."""


class ShowNotFoundError(TVMazeError):
    """The requested show does not exist upstream."""


class TVMazeImage(BaseModelWithMethods):
    medium: str | None = None
    original: str | None = None


class TVMazeShow(BaseModelWithMethods):
    id: int
    name: str = ""
    type: str | None = None
    language: str | None = None
    status: str | None = None
    image: TVMazeImage | None = None
    summary: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _none_name(cls, value: Any) -> Any:
        return "" if value is None else value


class TVMazeEpisode(BaseModelWithMethods):
    id: int
    name: str | None = None
    season: int | None = None
    number: int | None = None
    airdate: str | None = None
    airstamp: str | None = None
    image: TVMazeImage | None = None
    summary: str | None = None

    @field_validator("airdate", mode="before")
    @classmethod
    def _blank_airdate(cls, value: Any) -> Any:
        # TVmaze sends "" for unaired episodes
        return value or None


class TVMazeScheduleItem(TVMazeEpisode):
    """An episode from the daily schedule, with its show embedded."""

    show: TVMazeShow | None = None


class TVMazeResponse(BaseModelWithMethods):
    """Wrapper result carrying either data or an error, never raised."""

    error: str | None = None
    status_code: int = 200


class TVMazeCatalogResponse(TVMazeResponse):
    metas: list[CatalogMeta] = Field(default_factory=list)
    from_cache: bool = False


class TVMazeMetaResponse(TVMazeResponse):
    meta: MetaDetail | None = None

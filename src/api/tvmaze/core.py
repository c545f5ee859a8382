"""
TVmaze Core Service - upstream communication with the TVmaze public API.

No API key is needed. Every method returns parsed models or an empty/None
value on failure. Failures are classified with the TVMazeError taxonomy
internally and logged; nothing here raises to the caller.
"""

from typing import Any

from pydantic import ValidationError

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
from api.tvmaze.settings import TVMazeSettings, get_settings
from utils.base_api_client import BaseAPIClient
from utils.get_logger import get_logger

logger = get_logger(__name__)


def _validate_items(model: type, payload: Any, source: str) -> list:
    """Validate a JSON array item by item, dropping malformed entries."""
    items = []
    for raw in payload:
        try:
            items.append(model.model_validate(raw))
        except ValidationError as e:
            logger.warning(
                f"Skipping malformed {model.__name__} from {source}: {e.error_count()} errors"
            )
    return items


class TVMazeService(BaseAPIClient):
    """
    Core TVmaze service.
    Wraps the schedule, show index, show detail and episode list endpoints.
    """

    def __init__(self, settings: TVMazeSettings | None = None):
        self.settings = settings or get_settings()
        self.base_url = self.settings.base_url

    async def _make_request(
        self, endpoint: str, params: dict[str, Any] | None = None
    ) -> tuple[Any, int | None]:
        """Make a GET request to TVmaze.

        Args:
            endpoint: Path below the base URL (e.g. 'shows/82/episodes')
            params: Optional query parameters

        Returns:
            tuple: (parsed JSON or None, HTTP status or None if never answered)
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        try:
            return await self._core_async_request(
                url=url,
                params=params,
                timeout=self.settings.timeout_seconds,
                max_retries=self.settings.max_retries,
                retry_delay=self.settings.retry_delay_seconds,
                rate_limit_max=self.settings.rate_limit_max,
                rate_limit_period=self.settings.rate_limit_period,
                max_concurrency=self.settings.show_scan_batch_size,
                return_status_code=True,
            )
        except Exception as e:
            logger.error(f"Exception in TVmaze request {url}: {e}")
            return None, None

    async def _fetch_json(
        self, endpoint: str, params: dict[str, Any] | None = None, expect: type = list
    ) -> Any:
        """GET an endpoint and insist on a JSON body of the expected shape.

        Raises:
            ShowNotFoundError: upstream answered 404
            UpstreamStatusError: upstream answered another non-2xx status
            UpstreamUnavailableError: no usable answer after all retries
            UpstreamPayloadError: 2xx with a body of the wrong shape
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        data, status = await self._make_request(endpoint, params)
        if data is None:
            if status == 404:
                raise ShowNotFoundError(f"{endpoint} not found", url=url, status=status)
            if status is not None and not 200 <= status < 300:
                raise UpstreamStatusError(f"{endpoint} returned {status}", url=url, status=status)
            raise UpstreamUnavailableError(f"{endpoint} unavailable", url=url, status=status)
        if not isinstance(data, expect):
            raise UpstreamPayloadError(
                f"{endpoint} returned {type(data).__name__}, expected {expect.__name__}",
                url=url,
                status=status,
            )
        return data

    async def get_schedule(self, date: str, country: str | None = None) -> list[TVMazeScheduleItem]:
        """Episodes airing on a date in a country (GET /schedule)."""
        country = country or self.settings.country
        try:
            data = await self._fetch_json("schedule", params={"country": country, "date": date})
        except TVMazeError as e:
            logger.warning(f"No schedule for {country} {date}: {e} (status={e.status})")
            return []
        return _validate_items(TVMazeScheduleItem, data, f"schedule {date}")

    async def get_show_index_page(self, page: int) -> list[TVMazeShow] | None:
        """One page of the full show index (GET /shows?page=N).

        Returns:
            Shows on the page, or None if the page could not be fetched
            (TVmaze answers 404 past the last page).
        """
        try:
            data = await self._fetch_json("shows", params={"page": page})
        except ShowNotFoundError:
            logger.debug(f"Show index page {page} does not exist")
            return None
        except TVMazeError as e:
            logger.warning(f"Show index page {page} failed: {e}")
            return None
        return _validate_items(TVMazeShow, data, f"show index page {page}")

    async def get_show(self, show_id: int | str) -> TVMazeShow | None:
        """Show details (GET /shows/:id)."""
        try:
            data = await self._fetch_json(f"shows/{show_id}", expect=dict)
            return TVMazeShow.model_validate(data)
        except ShowNotFoundError:
            logger.info(f"Show {show_id} not found")
        except TVMazeError as e:
            logger.warning(f"Show {show_id} failed: {e}")
        except ValidationError as e:
            logger.warning(f"Malformed show {show_id}: {e}")
        return None

    async def get_episodes(self, show_id: int | str) -> list[TVMazeEpisode] | None:
        """Full episode list of a show (GET /shows/:id/episodes).

        Returns:
            Episodes in upstream order, or None if the list could not be fetched
        """
        try:
            data = await self._fetch_json(f"shows/{show_id}/episodes")
        except TVMazeError as e:
            logger.warning(f"Episodes for show {show_id} failed: {e}")
            return None
        return _validate_items(TVMazeEpisode, data, f"show {show_id} episodes")

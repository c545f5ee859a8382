"""
Base API Client - Shared GET handling with deduplication, rate limiting and retry.
Upstream services inherit from this and call _core_async_request.

Failures never propagate to callers: after the retry budget is spent the
request resolves to None (or (None, status) when a status code is requested),
and callers treat that as "no data".
"""

import asyncio
import json
import os
import weakref
from typing import Any

import aiohttp

from utils.get_logger import get_logger
from utils.rate_limiter import get_rate_limiter

logger = get_logger(__name__)

# Longest Retry-After we are willing to honour inside a single request
MAX_RETRY_AFTER_SECONDS = 10.0


def _skip_rate_limiting() -> bool:
    """Unit tests mock the transport, so rate limiting only slows them down."""
    return os.getenv("ENVIRONMENT", "").lower() == "test"


class _NoOpLimiter:
    async def __aenter__(self) -> Any:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        return None


class BaseAPIClient:
    """
    Base class for API clients with shared request handling.
    Provides deduplication, rate limiting, a concurrency cap and retry logic.
    """

    # In-flight requests keyed by (loop id, request key), shared by all instances
    _pending_requests: dict[tuple[int, str], asyncio.Task] = {}

    # Concurrency caps per event loop, keyed by max_concurrency
    _concurrency_semaphores: weakref.WeakKeyDictionary = weakref.WeakKeyDictionary()

    @classmethod
    def _get_concurrency_semaphore(cls, max_concurrency: int) -> asyncio.Semaphore | _NoOpLimiter:
        """Get or create the semaphore limiting simultaneous in-flight requests on this loop."""
        if _skip_rate_limiting():
            return _NoOpLimiter()
        loop_semaphores = cls._concurrency_semaphores.setdefault(asyncio.get_running_loop(), {})
        if max_concurrency not in loop_semaphores:
            loop_semaphores[max_concurrency] = asyncio.Semaphore(max_concurrency)
        return loop_semaphores[max_concurrency]

    async def _core_async_request(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, Any] | None = None,
        timeout: float = 10,
        max_retries: int = 2,
        retry_delay: float = 0.2,
        rate_limit_max: int = 20,
        rate_limit_period: float = 10.0,
        max_concurrency: int = 10,
        return_status_code: bool = False,
    ) -> Any:
        """
        Async HTTP GET with deduplication, rate limiting and fixed-delay retry.

        Network errors, timeouts, 5xx responses and bodies that are not valid
        JSON are retried up to max_retries times, waiting retry_delay seconds
        between attempts. 4xx responses (other than 429) are final. A 429
        waits for Retry-After and does not consume a retry.

        Args:
            url: Full URL to request
            params: Optional query parameters
            headers: Optional HTTP headers
            timeout: Per-attempt timeout in seconds
            max_retries: Retries after the first attempt
            retry_delay: Fixed delay between attempts in seconds
            rate_limit_max: Maximum requests per period
            rate_limit_period: Rate limit period in seconds
            max_concurrency: Maximum simultaneous in-flight requests
            return_status_code: Return (data, status) instead of data

        Returns:
            Parsed JSON or None on failure.
            With return_status_code=True, a tuple (data | None, status | None).
        """
        params_str = json.dumps(params, sort_keys=True) if params else "{}"
        headers_str = json.dumps(headers, sort_keys=True) if headers else "{}"
        request_key = (
            id(asyncio.get_running_loop()),
            f"GET|{url}|{params_str}|{headers_str}",
        )

        pending_task = self._pending_requests.get(request_key)
        if pending_task is None:
            pending_task = asyncio.ensure_future(
                self._fetch_with_retry(
                    url,
                    params=params,
                    headers=headers,
                    timeout=timeout,
                    max_retries=max_retries,
                    retry_delay=retry_delay,
                    rate_limit_max=rate_limit_max,
                    rate_limit_period=rate_limit_period,
                    max_concurrency=max_concurrency,
                )
            )
            self._pending_requests[request_key] = pending_task
            pending_task.add_done_callback(
                lambda _t, key=request_key: self._pending_requests.pop(key, None)
            )

        data, status = await asyncio.shield(pending_task)
        if return_status_code:
            return data, status
        return data

    async def _fetch_with_retry(
        self,
        url: str,
        params: dict[str, Any] | None,
        headers: dict[str, Any] | None,
        timeout: float,
        max_retries: int,
        retry_delay: float,
        rate_limit_max: int,
        rate_limit_period: float,
        max_concurrency: int,
    ) -> tuple[Any, int | None]:
        request_timeout = aiohttp.ClientTimeout(total=timeout)
        rate_limiter: Any = (
            _NoOpLimiter()
            if _skip_rate_limiting()
            else get_rate_limiter(rate_limit_max, rate_limit_period)
        )
        concurrency_semaphore = self._get_concurrency_semaphore(max_concurrency)

        attempt = 0
        rate_limit_retries = 0
        max_rate_limit_retries = 5
        last_status: int | None = None

        while attempt <= max_retries:
            wait_time = retry_delay
            rate_limited = False
            try:
                async with (  # noqa: SIM117
                    concurrency_semaphore,
                    rate_limiter,
                    aiohttp.ClientSession() as session,
                    session.get(
                        url, params=params, headers=headers, timeout=request_timeout
                    ) as response,
                ):
                    status = response.status
                    last_status = status

                    if status == 429 and rate_limit_retries < max_rate_limit_retries:
                        rate_limit_retries += 1
                        retry_after = response.headers.get("Retry-After", "2")
                        try:
                            wait_time = min(float(retry_after), MAX_RETRY_AFTER_SECONDS)
                        except (TypeError, ValueError):
                            wait_time = 2.0
                        logger.warning(
                            f"Rate limited by upstream for {url}, waiting {wait_time:.1f}s"
                        )
                        rate_limited = True

                    elif 400 <= status < 500:
                        if status == 404:
                            logger.debug(f"API returned 404 for {url} (resource not found)")
                        else:
                            logger.warning(f"API returned status {status} for {url}")
                        return None, status

                    elif status < 200 or status >= 300:
                        raise aiohttp.ClientResponseError(
                            response.request_info,
                            (),
                            status=status,
                            message=f"upstream returned {status}",
                        )

                    else:
                        data = await response.json(content_type=None)
                        return data, status

                # Wait outside the session so the slot and the connection are released
                if rate_limited:
                    await asyncio.sleep(wait_time)
                    continue

            except asyncio.CancelledError:
                raise
            except (TimeoutError, aiohttp.ClientError, ValueError) as e:
                attempt += 1
                if attempt > max_retries:
                    logger.error(
                        f"Fetch failed for {url} after {max_retries + 1} attempts: "
                        f"{type(e).__name__}: {e}"
                    )
                    return None, last_status
                await asyncio.sleep(wait_time)
            except Exception as e:
                logger.error(f"Unexpected error requesting {url}: {type(e).__name__}: {e}")
                return None, last_status

        return None, last_status

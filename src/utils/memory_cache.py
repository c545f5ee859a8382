"""
Process-lifetime cache for a single expensive result (the recent catalog).

Freshness is purely elapsed wall-clock time since the last successful build.
At most one build runs at a time per cache, whether it was started inline by a
request or in the background: requests that need a build while one is running
wait for it and share its result. Background builds run in a daemon thread on
their own event loop, so they outlive the request that triggered them.
"""

import asyncio
import threading
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from utils.get_logger import get_logger

logger = get_logger(__name__)

REFRESH_MODES = ("background", "blocking")

Builder = Callable[[], Awaitable[Any]]


@dataclass
class CacheRecord:
    data: Any = None
    built_at: float = 0.0
    size: int = 0
    build_seconds: float = 0.0

    def to_dict(self):
        return {
            field.name: getattr(self, field.name) for field in self.__dataclass_fields__.values()
        }


class _InFlightBuild:
    """A running build; every caller that needs it waits on the same event."""

    def __init__(self) -> None:
        self.done = threading.Event()
        self.result: Any = None


class CatalogCache:
    """
    TTL cache record with stale-while-revalidate refresh.

    Policy:
        fresh record       -> return it, no rebuild
        no record yet      -> build inline and wait for it
        stale, background  -> return stale data, start one background rebuild
        stale, blocking    -> rebuild inline and return the new data

    With inline_builds=False nothing is ever built inside a request: a cold
    cache returns [] and a stale one returns its data while a background build
    runs. Use it when a build can take longer than a request may.

    Concurrent triggers share one in-flight build. A failed or empty rebuild
    never replaces the previous record (unless allow_empty is set). All access
    to the record and the in-flight build is guarded by a lock.
    """

    def __init__(
        self,
        ttl_seconds: float = 3 * 60 * 60,
        refresh_mode: str = "background",
        allow_empty: bool = False,
        clock: Callable[[], float] = time.time,
        name: str = "catalog",
        inline_builds: bool = True,
    ):
        if refresh_mode not in REFRESH_MODES:
            raise ValueError(f"refresh_mode must be one of {REFRESH_MODES}, got {refresh_mode!r}")
        self.ttl_seconds = ttl_seconds
        self.refresh_mode = refresh_mode
        self.allow_empty = allow_empty
        self.clock = clock
        self.name = name
        self.inline_builds = inline_builds

        self._record: CacheRecord | None = None
        self._lock = threading.Lock()
        self._in_flight: _InFlightBuild | None = None

    @property
    def record(self) -> CacheRecord | None:
        with self._lock:
            return self._record

    @property
    def refresh_in_flight(self) -> bool:
        with self._lock:
            return self._in_flight is not None

    def is_fresh(self, record: CacheRecord | None = None) -> bool:
        record = record if record is not None else self.record
        if record is None:
            return False
        return self.clock() - record.built_at <= self.ttl_seconds

    def set(self, data: Any, build_seconds: float = 0.0) -> CacheRecord:
        record = CacheRecord(
            data=data,
            built_at=self.clock(),
            size=len(data) if hasattr(data, "__len__") else 0,
            build_seconds=build_seconds,
        )
        with self._lock:
            self._record = record
        return record

    def clear(self) -> None:
        with self._lock:
            self._record = None
        logger.info(f"[{self.name}] cache cleared")

    async def get(self, builder: Builder) -> Any:
        """
        Return cached data, building or refreshing it according to the policy.

        Args:
            builder: Zero-argument callable returning an awaitable with fresh data

        Returns:
            The cached or newly built data ([] while a cold cache builds in the background)
        """
        record = self.record

        if record is not None and self.is_fresh(record):
            logger.info(f"[{self.name}] serving from cache ({record.size} items)")
            return record.data

        build_inline = self.inline_builds and (record is None or self.refresh_mode == "blocking")
        if not build_inline:
            self.refresh_in_background(builder)
            if record is None:
                logger.info(f"[{self.name}] cold cache, building in background")
                return []
            logger.info(f"[{self.name}] serving stale data ({record.size} items) while refreshing")
            return record.data

        if record is None:
            logger.info(f"[{self.name}] cold cache, building inline")
        else:
            logger.info(f"[{self.name}] cache expired, rebuilding inline")
        return await self._build_inline(builder)

    def refresh_in_background(self, builder: Builder) -> bool:
        """
        Start a background rebuild unless a build is already running.

        Returns:
            True if a new rebuild thread was started
        """
        build, owner = self._claim_build()
        if not owner:
            logger.debug(f"[{self.name}] build already in flight")
            return False
        thread = threading.Thread(
            target=self._run_refresh,
            args=(builder, build),
            name=f"{self.name}-refresh",
            daemon=True,
        )
        thread.start()
        return True

    def wait_for_refresh(self, timeout: float | None = None) -> bool:
        """
        Wait for an in-flight build.

        Returns:
            True if no build is running when this returns
        """
        with self._lock:
            build = self._in_flight
        if build is None:
            return True
        return build.done.wait(timeout)

    def _claim_build(self) -> tuple[_InFlightBuild, bool]:
        """Return the running build, or register a new one owned by the caller."""
        with self._lock:
            if self._in_flight is not None:
                return self._in_flight, False
            self._in_flight = _InFlightBuild()
            return self._in_flight, True

    def _finish_build(self, build: _InFlightBuild, result: Any) -> None:
        build.result = result
        with self._lock:
            if self._in_flight is build:
                self._in_flight = None
        build.done.set()

    async def _build_inline(self, builder: Builder) -> Any:
        build, owner = self._claim_build()
        if not owner:
            logger.info(f"[{self.name}] waiting for the build already in flight")
            # Each request runs on its own loop, so wait off-loop
            await asyncio.to_thread(build.done.wait)
            return build.result

        result = None
        try:
            result = await self._rebuild(builder)
        finally:
            self._finish_build(build, result)
        return result

    def _run_refresh(self, builder: Builder, build: _InFlightBuild) -> None:
        result = None
        try:
            result = asyncio.run(self._rebuild(builder))
        except Exception as e:
            logger.error(f"[{self.name}] background refresh crashed: {e}", exc_info=True)
        finally:
            self._finish_build(build, result)

    async def _rebuild(self, builder: Builder) -> Any:
        previous = self.record
        fallback = previous.data if previous is not None else []
        started = time.monotonic()
        try:
            data = await builder()
        except Exception as e:
            logger.error(f"[{self.name}] rebuild failed, keeping previous data: {e}", exc_info=True)
            return fallback

        elapsed = time.monotonic() - started
        if not data and not self.allow_empty:
            logger.warning(f"[{self.name}] rebuild returned no data, not caching")
            return data if previous is None else fallback

        record = self.set(data, build_seconds=elapsed)
        logger.info(f"[{self.name}] rebuilt with {record.size} items in {elapsed:.1f}s")
        return data

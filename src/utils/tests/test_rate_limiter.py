"""
Tests for ResilientRateLimiter and the per-loop limiter registry.
"""

import asyncio

import pytest

from utils.rate_limiter import ResilientRateLimiter, get_rate_limiter, reset_rate_limiters


class _BaseTestLimiter:
    """Simple AsyncLimiter test double."""

    def __init__(self, max_rate: int, time_period: float) -> None:
        self.max_rate = max_rate
        self.time_period = time_period
        self.acquire_count = 0
        self._fail_next = False

    async def acquire(self, amount: float = 1) -> None:
        if self._fail_next:
            self._fail_next = False
            raise RuntimeError("Future attached to a different loop")
        self.acquire_count += 1


@pytest.fixture(autouse=True)
def clean_registry():
    reset_rate_limiters()
    yield
    reset_rate_limiters()


@pytest.mark.asyncio
async def test_resilient_rate_limiter_acquires_token(monkeypatch: pytest.MonkeyPatch) -> None:
    created: list[_BaseTestLimiter] = []

    class TrackingLimiter(_BaseTestLimiter):
        def __init__(self, max_rate: int, time_period: float) -> None:
            super().__init__(max_rate, time_period)
            created.append(self)

    monkeypatch.setattr("utils.rate_limiter.AsyncLimiter", TrackingLimiter)

    limiter = ResilientRateLimiter(20, 10)
    async with limiter:
        pass
    async with limiter:
        pass

    assert len(created) == 1, "Limiter should be reused on the same loop"
    assert created[0].acquire_count == 2
    assert created[0].max_rate == 20
    assert created[0].time_period == 10


@pytest.mark.asyncio
async def test_resilient_rate_limiter_retries_on_loop_error(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    created: list[_BaseTestLimiter] = []

    class FlakyLimiter(_BaseTestLimiter):
        fail_calls = 1

        def __init__(self, max_rate: int, time_period: float) -> None:
            super().__init__(max_rate, time_period)
            created.append(self)
            if FlakyLimiter.fail_calls > 0:
                self._fail_next = True
                FlakyLimiter.fail_calls -= 1

    monkeypatch.setattr("utils.rate_limiter.AsyncLimiter", FlakyLimiter)

    limiter = ResilientRateLimiter(3, 1)

    async with limiter:
        pass

    assert len(created) == 2, "Limiter should recreate after loop mismatch"
    assert created[-1].acquire_count == 1, "Second limiter should successfully acquire"


@pytest.mark.asyncio
async def test_resilient_rate_limiter_reraises_other_errors(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    class BrokenLimiter(_BaseTestLimiter):
        async def acquire(self, amount: float = 1) -> None:
            raise RuntimeError("something else broke")

    monkeypatch.setattr("utils.rate_limiter.AsyncLimiter", BrokenLimiter)

    with pytest.raises(RuntimeError, match="something else broke"):
        async with ResilientRateLimiter(3, 1):
            pass


@pytest.mark.asyncio
async def test_get_rate_limiter_shares_instance_per_config() -> None:
    first = get_rate_limiter(20, 10.0)
    second = get_rate_limiter(20, 10.0)
    other = get_rate_limiter(5, 1.0)

    assert first is second
    assert first is not other


def test_get_rate_limiter_separate_per_loop() -> None:
    async def _grab() -> ResilientRateLimiter:
        return get_rate_limiter(20, 10.0)

    first = asyncio.run(_grab())
    second = asyncio.run(_grab())

    assert first is not second

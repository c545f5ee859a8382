"""
Async Runner Utility - run coroutines from synchronous Firebase request handlers.

Firebase Functions invokes the handler synchronously. Normally no loop is
running in the worker thread and each call gets a fresh loop via asyncio.run().
If a loop is already running (some worker models, notebooks, tests driving the
handler from async code), nest_asyncio is applied to that loop so it can be
re-entered.
"""

import asyncio
from collections.abc import Coroutine
from typing import Any

import nest_asyncio

from utils.get_logger import get_logger

logger = get_logger(__name__)

_patched_loops: set[int] = set()


def _ensure_nested(loop: asyncio.AbstractEventLoop) -> None:
    """Apply nest_asyncio to a running loop once."""
    if id(loop) in _patched_loops:
        return
    nest_asyncio.apply(loop)
    _patched_loops.add(id(loop))
    logger.debug(f"nest_asyncio applied to loop {id(loop)}")


def run_async(coro: Coroutine[Any, Any, Any]) -> Any:
    """
    Run a coroutine to completion from synchronous code.

    Args:
        coro: The coroutine to run

    Returns:
        The coroutine's result
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    _ensure_nested(loop)
    return loop.run_until_complete(coro)


def run_async_safe(coro: Coroutine[Any, Any, Any], default: Any = None) -> Any:
    """
    Run a coroutine, returning a default value if it raises.

    Args:
        coro: The coroutine to run
        default: Value returned on failure or when the coroutine returns None

    Returns:
        The coroutine's result, or default
    """
    try:
        result = run_async(coro)
        return result if result is not None else default
    except Exception as e:
        logger.warning(f"run_async_safe caught exception: {e}")
        return default

"""
Fan-out/fan-in helpers over asyncio.

Two join primitives with different fault tolerance:

- gather_with_fallback: each failure is replaced by the caller's fallback value.
- gather_or_fail: the first failure cancels the siblings and propagates.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable

from backend_tokenlens.tokenlens_logging import get_logger

logger = get_logger(__name__)


async def gather_with_fallback(*calls: tuple[Awaitable[Any], Any], label: str = "call") -> list[Any]:
    """
    Await (awaitable, fallback) pairs concurrently; results keep argument order.

    Exceptions are logged at warning level and the fallback value takes their
    slot. Cancellation is never swallowed.
    """
    results = await asyncio.gather(*(aw for aw, _ in calls), return_exceptions=True)
    out: list[Any] = []
    for index, (result, (_, fallback)) in enumerate(zip(results, calls)):
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, Exception):
            logger.warning(
                "gather_fallback_used",
                label=label,
                index=index,
                error=str(result),
                error_type=type(result).__name__,
            )
            out.append(fallback)
        else:
            out.append(result)
    return out


async def gather_or_fail(*calls: Awaitable[Any]) -> list[Any]:
    """
    Await all calls concurrently; results keep argument order.

    On the first exception the remaining tasks are cancelled (and awaited)
    before the exception propagates to the caller.
    """
    tasks = [asyncio.ensure_future(c) for c in calls]
    if not tasks:
        return []
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, TypeVar

T = TypeVar("T")

logger = logging.getLogger("vhallway.retry")


async def retry_until(
    action: Callable[[], Awaitable[Optional[T]]],
    *,
    max_attempts: int,
    base_delay: float,
    jitter: float,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    rng: Optional[random.Random] = None,
) -> Optional[T]:
    """Run ``action`` until it yields a truthy value or attempts run out.

    Between attempts the coroutine sleeps ``base_delay`` plus a uniform jitter
    in ``[0, jitter]`` seconds. The sleep is an ordinary await, so cancelling
    the calling task (or an enclosing ``asyncio.wait_for``) aborts the loop.
    Returns ``None`` when every attempt came back empty.
    """
    rng = rng or random.Random()
    attempts = max(1, int(max_attempts))
    for attempt in range(1, attempts + 1):
        result = await action()
        if result:
            return result
        if attempt >= attempts:
            break
        await sleep(base_delay + rng.uniform(0.0, jitter))
    logger.info("Gave up after %s empty attempts.", attempts)
    return None

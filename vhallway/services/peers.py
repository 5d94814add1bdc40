from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

from vhallway.config.loader import get_peer_retry_settings
from vhallway.data.store import CohortStore
from vhallway.services.retry import retry_until

logger = logging.getLogger("vhallway.peers")


async def resolve_peers(
    store: CohortStore,
    meeting_id: int,
    participant: str,
    *,
    max_attempts: Optional[int] = None,
    base_delay: Optional[float] = None,
    jitter: Optional[float] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> Optional[Set[str]]:
    """Return the participant's full cohort, or ``None`` when there is none yet.

    A zero peer count means the cohort has not been formed (or the
    participant is not in it) and is answered immediately. A non-zero count
    with an empty membership read is replication lag and is retried.
    """
    if store.count_cohort_peers(meeting_id, participant) == 0:
        return None

    settings = get_peer_retry_settings()
    if max_attempts is None:
        max_attempts = settings["max_attempts"]
    if base_delay is None:
        base_delay = settings["base_delay_ms"] / 1000
    if jitter is None:
        jitter = settings["jitter_ms"] / 1000

    async def _read() -> Set[str]:
        return store.get_cohort_peers(meeting_id, participant)

    peers = await retry_until(
        _read,
        max_attempts=max_attempts,
        base_delay=base_delay,
        jitter=jitter,
        sleep=sleep,
    )
    if peers is None:
        logger.info(
            "Cohort for %s in meeting %s counted but never became visible.",
            participant,
            meeting_id,
        )
        return None
    return set(peers)

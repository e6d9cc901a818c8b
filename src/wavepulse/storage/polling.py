"""Bounded polling used to wait on client-completed requests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TypeVar

from wavepulse.exceptions import PollingTimeout
from wavepulse.models.domain import PendingRequest
from wavepulse.observability.logger import get_logger
from wavepulse.storage.memory_store import PendingRequestStore

logger = get_logger("polling")

T = TypeVar("T")


async def poll_for_result(
    fetch: Callable[[], T | None],
    interval_s: float,
    max_attempts: int,
) -> T:
    """Call ``fetch`` every ``interval_s`` until it returns a value or attempts run out."""
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    for attempt in range(1, max_attempts + 1):
        await asyncio.sleep(interval_s)
        result = fetch()
        if result is not None:
            logger.debug("poll_succeeded", attempt=attempt)
            return result
    raise PollingTimeout(f"No result after {max_attempts} attempts ({interval_s * max_attempts:.1f}s)")


async def submit_and_wait(
    requests: PendingRequestStore,
    request: PendingRequest,
    interval_s: float,
    max_attempts: int,
    fetch: Callable[[], T | None] | None = None,
) -> PendingRequest | T:
    """Submit a request, poll until it yields a result, and purge it either way.

    By default the result is the request itself once a client completes it; pass
    ``fetch`` when the answer lands somewhere else, such as the snapshot store.
    """
    requests.submit(request)

    def completed() -> PendingRequest | None:
        current = requests.get(request.request_id)
        return current if current is not None and current.completed else None

    try:
        return await poll_for_result(fetch or completed, interval_s, max_attempts)
    finally:
        requests.purge(request.request_id)

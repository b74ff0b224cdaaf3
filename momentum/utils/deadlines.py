"""Caller-imposed deadlines for store operations."""

import asyncio
import logging
from typing import Awaitable, TypeVar

from momentum.errors import InvalidArgument, StorageUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_deadline(operation: Awaitable[T], seconds: float) -> T:
    """Await ``operation`` for at most ``seconds``.

    On expiry the operation is cancelled, which rolls back any transaction
    it had open, and StorageUnavailable is raised.
    """
    if seconds <= 0:
        if asyncio.iscoroutine(operation):
            operation.close()
        raise InvalidArgument(f"deadline must be positive, got {seconds}")
    try:
        return await asyncio.wait_for(operation, timeout=seconds)
    except asyncio.TimeoutError as e:
        logger.warning(f"Store operation exceeded its {seconds}s deadline")
        raise StorageUnavailable(f"operation did not complete within {seconds}s") from e

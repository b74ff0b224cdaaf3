"""
Typed failures surfaced by the record store and the domain access layer.

Every store failure reaches the caller as one of these; nothing is retried
and nothing is swallowed except the per-task join degradation in
`momentum.db.repositories.tasks.get_tasks_with_milestones`.
"""
from __future__ import annotations

from typing import Any, Optional


class StoreError(Exception):
    """Base class for all persistence failures."""


class NotFound(StoreError):
    """A referenced record is absent."""

    def __init__(self, collection: str, key: Any, *, index: Optional[str] = None):
        self.collection = collection
        self.key = key
        self.index = index
        where = f"{collection}.{index}" if index else collection
        super().__init__(f"{where} has no record for {key!r}")


class ConstraintViolation(StoreError):
    """A unique index collision or a foreign reference to a missing parent."""


class StorageUnavailable(StoreError):
    """Engine-level failure; fatal to the enclosing transaction."""


class InvalidArgument(StoreError, ValueError):
    """Malformed input such as a non-positive id or an unknown collection."""


def require_id(value: Any, name: str = "id") -> int:
    """Return ``value`` as a record id or raise InvalidArgument."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(f"{name} must be an integer, got {value!r}")
    if value < 1:
        raise InvalidArgument(f"{name} must be positive, got {value}")
    return value

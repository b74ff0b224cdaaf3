"""
Collection registry.

Maps each collection name to its ORM model, the Pydantic schema records are
returned as, and the secondary indexes lookups may use.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Tuple, Type

from pydantic import BaseModel

from momentum.db import models, schemas
from momentum.errors import InvalidArgument

USERS = "users"
TASKS = "tasks"
MILESTONES = "milestones"
REMEMBERED_SESSION = "remembered_session"


@dataclass(frozen=True)
class IndexSpec:
    column: str
    unique: bool = False


@dataclass(frozen=True)
class Collection:
    name: str
    model: type
    schema: Type[BaseModel]
    indexes: Dict[str, IndexSpec] = field(default_factory=dict)
    # Singleton collections hold at most one row under a fixed key
    singleton: bool = False

    @property
    def columns(self) -> Tuple[str, ...]:
        return tuple(c.name for c in self.model.__table__.columns)

    def index(self, name: str) -> IndexSpec:
        try:
            return self.indexes[name]
        except KeyError:
            raise InvalidArgument(f"collection '{self.name}' has no index '{name}'") from None

    def unique_indexes(self) -> Iterable[Tuple[str, IndexSpec]]:
        return [(name, spec) for name, spec in self.indexes.items() if spec.unique]


COLLECTIONS: Dict[str, Collection] = {
    USERS: Collection(
        USERS,
        models.User,
        schemas.User,
        {
            "username": IndexSpec("username", unique=True),
            "email": IndexSpec("email", unique=True),
        },
    ),
    TASKS: Collection(
        TASKS,
        models.Task,
        schemas.Task,
        {"user_id": IndexSpec("user_id")},
    ),
    MILESTONES: Collection(
        MILESTONES,
        models.Milestone,
        schemas.Milestone,
        {
            "user_id": IndexSpec("user_id"),
            "task_id": IndexSpec("task_id"),
        },
    ),
    REMEMBERED_SESSION: Collection(
        REMEMBERED_SESSION,
        models.RememberedSession,
        schemas.RememberedSession,
        {"user_id": IndexSpec("user_id")},
        singleton=True,
    ),
}

ALL_COLLECTIONS = (USERS, TASKS, MILESTONES, REMEMBERED_SESSION)


def get_collection(name: str) -> Collection:
    try:
        return COLLECTIONS[name]
    except KeyError:
        raise InvalidArgument(f"unknown collection '{name}'") from None

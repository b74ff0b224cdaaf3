"""
Productivity service facade.

The only surface UI collaborators call. Each public coroutine validates its
input, opens exactly one record-store transaction over the collections it
needs (read-only for queries) and delegates to the repository functions, so
a caller sees either the whole effect of an operation or none of it.
"""
from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from momentum.db import schemas
from momentum.db.collections import ALL_COLLECTIONS, USERS, TASKS, MILESTONES, REMEMBERED_SESSION
from momentum.db.record_store import RecordStore
from momentum.db.repositories import backup as repo_backup
from momentum.db.repositories import milestones as repo_milestones
from momentum.db.repositories import sessions as repo_sessions
from momentum.db.repositories import tasks as repo_tasks
from momentum.db.repositories import users as repo_users
from momentum.errors import InvalidArgument, require_id

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_USER_SCOPE = (USERS,)
_TASK_SCOPE = (USERS, TASKS, MILESTONES)
_MILESTONE_SCOPE = (USERS, TASKS, MILESTONES)


def _coerce(schema: Type[M], value: M | Mapping[str, Any]) -> M:
    """Validate ``value`` into ``schema``; failures become InvalidArgument."""
    if isinstance(value, schema):
        return value
    if isinstance(value, BaseModel):
        value = value.model_dump(exclude_unset=True)
    try:
        return schema.model_validate(value)
    except ValidationError as e:
        raise InvalidArgument(f"invalid {schema.__name__}: {e}") from e


def _coerce_all(schema: Type[M], values: Optional[Sequence[M | Mapping[str, Any]]]) -> List[M]:
    return [_coerce(schema, v) for v in (values or ())]


def _require_text(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise InvalidArgument(f"{name} must be a string, got {value!r}")
    return value


class ProductivityService:
    """Entity-level operations over an open `RecordStore`."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def _write(self, collections, work):
        try:
            return await self.store.transaction(collections, work)
        except ValidationError as e:
            raise InvalidArgument(str(e)) from e

    async def _read(self, collections, work):
        return await self.store.transaction(collections, work, readonly=True)

    # Users
    async def create_user(self, user: schemas.UserCreate | Mapping[str, Any]) -> int:
        user = _coerce(schemas.UserCreate, user)
        return await self._write(_USER_SCOPE, lambda tx: repo_users.create_user(tx, user))

    async def get_user(self, user_id: int) -> schemas.User:
        require_id(user_id, "user_id")
        return await self._read(_USER_SCOPE, lambda tx: repo_users.get_user(tx, user_id))

    async def get_user_by_username(self, username: str) -> schemas.User:
        _require_text(username, "username")
        return await self._read(_USER_SCOPE, lambda tx: repo_users.get_user_by_username(tx, username))

    async def get_user_by_email(self, email: str) -> schemas.User:
        _require_text(email, "email")
        return await self._read(_USER_SCOPE, lambda tx: repo_users.get_user_by_email(tx, email))

    async def get_all_users(self) -> List[schemas.User]:
        return await self._read(_USER_SCOPE, repo_users.get_all_users)

    async def update_user_theme(self, user_id: int, theme: str) -> None:
        require_id(user_id, "user_id")
        _require_text(theme, "theme")
        await self._write(_USER_SCOPE, lambda tx: repo_users.update_user_theme(tx, user_id, theme))

    async def get_user_theme(self, user_id: int) -> str:
        require_id(user_id, "user_id")
        return await self._read(_USER_SCOPE, lambda tx: repo_users.get_user_theme(tx, user_id))

    async def update_user_login_info(self, user_id: int) -> None:
        require_id(user_id, "user_id")
        await self._write(_USER_SCOPE, lambda tx: repo_users.update_user_login_info(tx, user_id))

    async def update_user_preferences(
        self, user_id: int, preferences: schemas.UserUpdate | Mapping[str, Any]
    ) -> schemas.User:
        require_id(user_id, "user_id")
        patch = _coerce(schemas.UserUpdate, preferences)
        return await self._write(_USER_SCOPE, lambda tx: repo_users.update_user_preferences(tx, user_id, patch))

    async def delete_user(self, user_id: int) -> None:
        require_id(user_id, "user_id")
        await self._write(ALL_COLLECTIONS, lambda tx: repo_users.delete_user(tx, user_id))

    # Tasks
    async def create_task(
        self,
        user_id: int,
        task: schemas.TaskCreate | Mapping[str, Any],
        milestones: Optional[Sequence[schemas.MilestoneDraft | Mapping[str, Any]]] = None,
    ) -> schemas.TaskCreateResult:
        require_id(user_id, "user_id")
        task = _coerce(schemas.TaskCreate, task)
        drafts = _coerce_all(schemas.MilestoneDraft, milestones)
        return await self._write(_TASK_SCOPE, lambda tx: repo_tasks.create_task(tx, user_id, task, drafts))

    async def bulk_create_tasks(
        self, user_id: int, tasks: Sequence[schemas.TaskCreate | Mapping[str, Any]]
    ) -> List[int]:
        require_id(user_id, "user_id")
        drafts = _coerce_all(schemas.TaskCreate, tasks)
        return await self._write(_TASK_SCOPE, lambda tx: repo_tasks.bulk_create_tasks(tx, user_id, drafts))

    async def get_task(self, task_id: int) -> schemas.Task:
        require_id(task_id, "task_id")
        return await self._read((TASKS,), lambda tx: repo_tasks.get_task(tx, task_id))

    async def update_task(
        self,
        task_id: int,
        fields: schemas.TaskUpdate | Mapping[str, Any],
        milestones: Optional[Sequence[schemas.MilestoneDraft | Mapping[str, Any]]] = None,
    ) -> schemas.Task:
        require_id(task_id, "task_id")
        patch = _coerce(schemas.TaskUpdate, fields)
        drafts = _coerce_all(schemas.MilestoneDraft, milestones)
        return await self._write(_TASK_SCOPE, lambda tx: repo_tasks.update_task(tx, task_id, patch, drafts))

    async def delete_task(self, task_id: int) -> None:
        require_id(task_id, "task_id")
        await self._write((TASKS, MILESTONES), lambda tx: repo_tasks.delete_task(tx, task_id))

    async def get_tasks(self, user_id: int) -> List[schemas.Task]:
        require_id(user_id, "user_id")
        return await self._read((TASKS,), lambda tx: repo_tasks.get_tasks(tx, user_id))

    async def get_tasks_by_status(self, user_id: int, completed: bool) -> List[schemas.Task]:
        require_id(user_id, "user_id")
        return await self._read((TASKS,), lambda tx: repo_tasks.get_tasks_by_status(tx, user_id, bool(completed)))

    async def get_tasks_with_milestones(self, user_id: int) -> List[schemas.TaskWithMilestones]:
        require_id(user_id, "user_id")
        return await self._read((TASKS, MILESTONES), lambda tx: repo_tasks.get_tasks_with_milestones(tx, user_id))

    async def get_task_statistics(self, user_id: int) -> schemas.TaskStatistics:
        require_id(user_id, "user_id")
        return await self._read((TASKS, MILESTONES), lambda tx: repo_tasks.get_task_statistics(tx, user_id))

    async def search_tasks(self, user_id: int, term: str) -> List[schemas.Task]:
        require_id(user_id, "user_id")
        _require_text(term, "term")
        return await self._read((TASKS,), lambda tx: repo_tasks.search_tasks(tx, user_id, term))

    # Milestones
    async def create_milestone(self, user_id: int, milestone: schemas.MilestoneCreate | Mapping[str, Any]) -> int:
        require_id(user_id, "user_id")
        milestone = _coerce(schemas.MilestoneCreate, milestone)
        return await self._write(
            _MILESTONE_SCOPE, lambda tx: repo_milestones.create_milestone(tx, user_id, milestone)
        )

    async def bulk_create_milestones(
        self, user_id: int, milestones: Sequence[schemas.MilestoneCreate | Mapping[str, Any]]
    ) -> List[int]:
        require_id(user_id, "user_id")
        drafts = _coerce_all(schemas.MilestoneCreate, milestones)
        return await self._write(
            _MILESTONE_SCOPE, lambda tx: repo_milestones.bulk_create_milestones(tx, user_id, drafts)
        )

    async def update_milestone(
        self, milestone_id: int, milestone: schemas.MilestoneUpdate | Mapping[str, Any]
    ) -> schemas.Milestone:
        require_id(milestone_id, "milestone_id")
        replacement = _coerce(schemas.MilestoneUpdate, milestone)
        return await self._write(
            (TASKS, MILESTONES), lambda tx: repo_milestones.update_milestone(tx, milestone_id, replacement)
        )

    async def toggle_milestone_status(self, milestone_id: int) -> schemas.Milestone:
        require_id(milestone_id, "milestone_id")
        return await self._write((MILESTONES,), lambda tx: repo_milestones.toggle_milestone_status(tx, milestone_id))

    async def delete_milestone(self, milestone_id: int) -> None:
        require_id(milestone_id, "milestone_id")
        await self._write((MILESTONES,), lambda tx: repo_milestones.delete_milestone(tx, milestone_id))

    async def get_milestones(self, user_id: int) -> List[schemas.Milestone]:
        require_id(user_id, "user_id")
        return await self._read((MILESTONES,), lambda tx: repo_milestones.get_milestones(tx, user_id))

    async def get_milestones_by_task(self, task_id: int) -> List[schemas.Milestone]:
        require_id(task_id, "task_id")
        return await self._read((MILESTONES,), lambda tx: repo_milestones.get_milestones_by_task(tx, task_id))

    # Remembered session
    async def set_remembered_session(self, user_id: int, credential: str) -> None:
        require_id(user_id, "user_id")
        _require_text(credential, "credential")
        await self._write(
            (USERS, REMEMBERED_SESSION),
            lambda tx: repo_sessions.set_remembered_session(tx, user_id, credential),
        )

    async def get_remembered_session(self) -> Optional[schemas.RememberedSession]:
        return await self._read((REMEMBERED_SESSION,), repo_sessions.get_remembered_session)

    async def clear_remembered_session(self) -> None:
        await self._write((REMEMBERED_SESSION,), repo_sessions.clear_remembered_session)

    # Backup
    async def export_user_data(self, user_id: int) -> schemas.UserDataExport:
        require_id(user_id, "user_id")
        return await self._read(_TASK_SCOPE, lambda tx: repo_backup.export_user_data(tx, user_id))

    async def import_user_data(self, snapshot: schemas.UserDataExport | Mapping[str, Any]) -> None:
        snapshot = _coerce(schemas.UserDataExport, snapshot)
        await self._write(_TASK_SCOPE, lambda tx: repo_backup.import_user_data(tx, snapshot))

    async def clear_database(self) -> None:
        await self._write(ALL_COLLECTIONS, repo_backup.clear_database)

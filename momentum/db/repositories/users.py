"""
User repository functions.

Implements sign-up, lookups by unique index, login/theme/preference updates
and the account deletion cascade.
"""
from __future__ import annotations

import logging
from typing import List

from momentum.db import schemas
from momentum.db.collections import USERS, TASKS, MILESTONES, REMEMBERED_SESSION
from momentum.db.models import now_utc
from momentum.db.record_store import TransactionHandle
from momentum.errors import ConstraintViolation

logger = logging.getLogger(__name__)

DEFAULT_THEME = 'light'


async def require_user(tx: TransactionHandle, user_id: int) -> None:
    """A foreign reference to a user must point at an existing one."""
    if await tx.find(USERS, user_id) is None:
        raise ConstraintViolation(f"user {user_id} does not exist")


async def create_user(tx: TransactionHandle, user: schemas.UserCreate) -> int:
    record = user.model_dump()
    record.update(login_count=0, last_login=None, created_at=now_utc())
    user_id = await tx.put(USERS, record)
    logger.info(f"Created user {user_id} ({user.username})")
    return user_id


async def get_user(tx: TransactionHandle, user_id: int) -> schemas.User:
    return await tx.get(USERS, user_id)


async def get_user_by_username(tx: TransactionHandle, username: str) -> schemas.User:
    return await tx.get_by_index(USERS, "username", username)


async def get_user_by_email(tx: TransactionHandle, email: str) -> schemas.User:
    return await tx.get_by_index(USERS, "email", email)


async def get_all_users(tx: TransactionHandle) -> List[schemas.User]:
    return await tx.get_all(USERS)


async def update_user_theme(tx: TransactionHandle, user_id: int, theme: str) -> schemas.User:
    user = await tx.get(USERS, user_id)
    updated = user.model_copy(update={"theme": theme})
    await tx.put(USERS, updated)
    return await tx.get(USERS, user_id)


async def get_user_theme(tx: TransactionHandle, user_id: int) -> str:
    user = await tx.find(USERS, user_id)
    if user is None or not user.theme:
        return DEFAULT_THEME
    return user.theme


async def update_user_login_info(tx: TransactionHandle, user_id: int) -> schemas.User:
    user = await tx.get(USERS, user_id)
    updated = user.model_copy(update={
        "login_count": (user.login_count or 0) + 1,
        "last_login": now_utc(),
    })
    await tx.put(USERS, updated)
    return await tx.get(USERS, user_id)


async def update_user_preferences(tx: TransactionHandle, user_id: int, patch: schemas.UserUpdate) -> schemas.User:
    """Shallow-merge ``patch`` over the stored user."""
    user = await tx.get(USERS, user_id)
    merged = schemas.User.model_validate({
        **user.model_dump(),
        **patch.model_dump(exclude_unset=True),
        "id": user.id,
    })
    await tx.put(USERS, merged)
    return await tx.get(USERS, user_id)


async def delete_user(tx: TransactionHandle, user_id: int) -> bool:
    """Delete a user with every task, milestone and remembered session it owns.

    Milestones go first (both task-linked and unassigned) so no foreign key
    ever points at a deleted task. Returns False when the user was already
    absent.
    """
    milestones = await tx.scan_by_index(MILESTONES, "user_id", user_id)
    for milestone in milestones:
        await tx.delete(MILESTONES, milestone.id)

    tasks = await tx.scan_by_index(TASKS, "user_id", user_id)
    for task in tasks:
        await tx.delete(TASKS, task.id)

    if await tx.scan_by_index(REMEMBERED_SESSION, "user_id", user_id):
        await tx.clear_slot(REMEMBERED_SESSION)

    removed = await tx.delete(USERS, user_id)
    if removed:
        logger.info(f"Deleted user {user_id} with {len(tasks)} tasks and {len(milestones)} milestones")
    return removed

"""
Backup repository functions: per-user export/import and full reset.
"""
from __future__ import annotations

import logging

from momentum.db import schemas
from momentum.db.collections import USERS, TASKS, MILESTONES, REMEMBERED_SESSION
from momentum.db.models import now_utc
from momentum.db.record_store import TransactionHandle
from momentum.db.repositories.milestones import check_task_link
from momentum.errors import ConstraintViolation, InvalidArgument

logger = logging.getLogger(__name__)


async def export_user_data(tx: TransactionHandle, user_id: int) -> schemas.UserDataExport:
    user = await tx.get(USERS, user_id)
    return schemas.UserDataExport(
        user=user,
        tasks=await tx.scan_by_index(TASKS, "user_id", user_id),
        milestones=await tx.scan_by_index(MILESTONES, "user_id", user_id),
        exported_at=now_utc(),
    )


async def _check_owner(tx: TransactionHandle, collection: str, record_id: int, user_id: int) -> None:
    # Upserts by id must never take over another user's record
    current = await tx.find(collection, record_id)
    if current is not None and current.user_id != user_id:
        raise ConstraintViolation(
            f"{collection} {record_id} belongs to user {current.user_id}, not {user_id}"
        )


async def import_user_data(tx: TransactionHandle, snapshot: schemas.UserDataExport) -> None:
    """Upsert the snapshot's user, tasks and milestones by id."""
    user_id = snapshot.user.id
    foreign = [t.id for t in snapshot.tasks if t.user_id != user_id]
    foreign += [m.id for m in snapshot.milestones if m.user_id != user_id]
    if foreign:
        raise InvalidArgument(f"snapshot records {foreign} do not belong to user {user_id}")

    current = await tx.find(USERS, user_id)
    if current is not None and current.username != snapshot.user.username:
        raise ConstraintViolation(
            f"user {user_id} is {current.username!r} here, not {snapshot.user.username!r}"
        )
    await tx.put(USERS, snapshot.user)
    for task in snapshot.tasks:
        await _check_owner(tx, TASKS, task.id, user_id)
        await tx.put(TASKS, task)
    for milestone in snapshot.milestones:
        await _check_owner(tx, MILESTONES, milestone.id, user_id)
        await check_task_link(tx, user_id, milestone.task_id)
        await tx.put(MILESTONES, milestone)
    logger.info(
        f"Imported user {user_id} with {len(snapshot.tasks)} tasks and {len(snapshot.milestones)} milestones"
    )


async def clear_database(tx: TransactionHandle) -> None:
    # Children before parents so foreign keys hold throughout
    for collection in (REMEMBERED_SESSION, MILESTONES, TASKS, USERS):
        await tx.clear(collection)
    logger.info("Cleared all collections")

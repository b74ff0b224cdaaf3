"""
Task repository functions.

Implements task CRUD with embedded milestone drafts, the delete cascade to
milestones, the task/milestone join and the per-user aggregates (statistics
and search). Everything reads through the ``user_id``/``task_id`` indexes;
nothing scans other users' rows.
"""
from __future__ import annotations

import asyncio
import logging
from typing import List, Sequence

from momentum.db import schemas
from momentum.db.collections import TASKS, MILESTONES
from momentum.db.record_store import TransactionHandle
from momentum.db.repositories.users import require_user
from momentum.errors import StorageUnavailable

logger = logging.getLogger(__name__)


async def _insert_drafts(
    tx: TransactionHandle, user_id: int, task_id: int, drafts: Sequence[schemas.MilestoneDraft]
) -> List[int]:
    ids = []
    for draft in drafts:
        ids.append(await tx.put(MILESTONES, {**draft.model_dump(), "user_id": user_id, "task_id": task_id}))
    return ids


async def create_task(
    tx: TransactionHandle,
    user_id: int,
    task: schemas.TaskCreate,
    milestones: Sequence[schemas.MilestoneDraft] = (),
) -> schemas.TaskCreateResult:
    """Insert a task and its milestone drafts; ids come back in draft order."""
    await require_user(tx, user_id)
    task_id = await tx.put(TASKS, {**task.model_dump(), "user_id": user_id})
    milestone_ids = await _insert_drafts(tx, user_id, task_id, milestones)
    logger.info(f"Created task {task_id} for user {user_id} with {len(milestone_ids)} milestones")
    return schemas.TaskCreateResult(task_id=task_id, milestone_ids=milestone_ids)


async def bulk_create_tasks(tx: TransactionHandle, user_id: int, tasks: Sequence[schemas.TaskCreate]) -> List[int]:
    await require_user(tx, user_id)
    ids = [await tx.put(TASKS, {**t.model_dump(), "user_id": user_id}) for t in tasks]
    logger.info(f"Created {len(ids)} tasks for user {user_id}")
    return ids


async def get_task(tx: TransactionHandle, task_id: int) -> schemas.Task:
    return await tx.get(TASKS, task_id)


async def get_tasks(tx: TransactionHandle, user_id: int) -> List[schemas.Task]:
    return await tx.scan_by_index(TASKS, "user_id", user_id)


async def get_tasks_by_status(tx: TransactionHandle, user_id: int, completed: bool) -> List[schemas.Task]:
    return [t for t in await get_tasks(tx, user_id) if t.completed == completed]


async def update_task(
    tx: TransactionHandle,
    task_id: int,
    patch: schemas.TaskUpdate,
    milestones: Sequence[schemas.MilestoneDraft] = (),
) -> schemas.Task:
    """Merge ``patch`` over the stored task and attach any new milestone drafts.

    Fields the patch does not set are preserved; id and owner never change.
    """
    existing = await tx.get(TASKS, task_id)
    merged = schemas.Task.model_validate({
        **existing.model_dump(),
        **patch.model_dump(exclude_unset=True),
        "id": existing.id,
        "user_id": existing.user_id,
    })
    await tx.put(TASKS, merged)
    if milestones:
        await _insert_drafts(tx, existing.user_id, task_id, milestones)
    logger.info(f"Updated task {task_id}")
    return await tx.get(TASKS, task_id)


async def delete_task(tx: TransactionHandle, task_id: int) -> bool:
    """Delete a task and every milestone linked to it.

    Unassigned milestones and milestones of other tasks are untouched.
    Returns False when the task was already absent.
    """
    linked = await tx.scan_by_index(MILESTONES, "task_id", task_id)
    for milestone in linked:
        await tx.delete(MILESTONES, milestone.id)
    removed = await tx.delete(TASKS, task_id)
    if removed:
        logger.info(f"Deleted task {task_id} and {len(linked)} milestones")
    return removed


async def get_tasks_with_milestones(tx: TransactionHandle, user_id: int) -> List[schemas.TaskWithMilestones]:
    """Return the user's tasks, each with its milestones attached.

    A task whose milestone lookup fails with StorageUnavailable is still
    returned, with an empty milestone list, instead of failing the batch.
    """
    tasks = await tx.scan_by_index(TASKS, "user_id", user_id)

    async def _attach(task: schemas.Task) -> schemas.TaskWithMilestones:
        try:
            milestones = await tx.scan_by_index(MILESTONES, "task_id", task.id)
        except StorageUnavailable as e:
            logger.warning(f"Milestone lookup for task {task.id} failed, returning it without milestones: {e}")
            milestones = []
        return schemas.TaskWithMilestones(**task.model_dump(), milestones=milestones)

    return list(await asyncio.gather(*(_attach(t) for t in tasks)))


async def get_task_statistics(tx: TransactionHandle, user_id: int) -> schemas.TaskStatistics:
    tasks = await tx.scan_by_index(TASKS, "user_id", user_id)
    milestones = await tx.scan_by_index(MILESTONES, "user_id", user_id)

    total_tasks = len(tasks)
    completed_tasks = sum(1 for t in tasks if t.completed)
    return schemas.TaskStatistics(
        total_tasks=total_tasks,
        completed_tasks=completed_tasks,
        total_milestones=len(milestones),
        completed_milestones=sum(1 for m in milestones if m.completed),
        completion_rate=completed_tasks * 100 / total_tasks if total_tasks > 0 else 0,
    )


async def search_tasks(tx: TransactionHandle, user_id: int, term: str) -> List[schemas.Task]:
    """Case-insensitive substring match on title or description."""
    needle = term.lower()
    return [
        t for t in await tx.scan_by_index(TASKS, "user_id", user_id)
        if needle in t.title.lower() or (t.description is not None and needle in t.description.lower())
    ]

"""
Milestone repository functions.

Milestones are leaves: they belong to one user and optionally to one of that
user's tasks, and deleting one never cascades.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from momentum.db import schemas
from momentum.db.collections import TASKS, MILESTONES
from momentum.db.record_store import TransactionHandle
from momentum.db.repositories.users import require_user
from momentum.errors import ConstraintViolation

logger = logging.getLogger(__name__)


async def check_task_link(tx: TransactionHandle, user_id: int, task_id: Optional[int]) -> None:
    """A linked task must exist and belong to the milestone's user."""
    if task_id is None:
        return
    task = await tx.find(TASKS, task_id)
    if task is None:
        raise ConstraintViolation(f"task {task_id} does not exist")
    if task.user_id != user_id:
        raise ConstraintViolation(f"task {task_id} belongs to another user")


async def _insert(tx: TransactionHandle, user_id: int, milestone: schemas.MilestoneCreate) -> int:
    await check_task_link(tx, user_id, milestone.task_id)
    return await tx.put(MILESTONES, {**milestone.model_dump(), "user_id": user_id})


async def create_milestone(tx: TransactionHandle, user_id: int, milestone: schemas.MilestoneCreate) -> int:
    await require_user(tx, user_id)
    milestone_id = await _insert(tx, user_id, milestone)
    logger.info(f"Created milestone {milestone_id} for user {user_id}")
    return milestone_id


async def bulk_create_milestones(
    tx: TransactionHandle, user_id: int, milestones: Sequence[schemas.MilestoneCreate]
) -> List[int]:
    await require_user(tx, user_id)
    ids = [await _insert(tx, user_id, m) for m in milestones]
    logger.info(f"Created {len(ids)} milestones for user {user_id}")
    return ids


async def get_milestone(tx: TransactionHandle, milestone_id: int) -> schemas.Milestone:
    return await tx.get(MILESTONES, milestone_id)


async def get_milestones(tx: TransactionHandle, user_id: int) -> List[schemas.Milestone]:
    return await tx.scan_by_index(MILESTONES, "user_id", user_id)


async def get_milestones_by_task(tx: TransactionHandle, task_id: int) -> List[schemas.Milestone]:
    return await tx.scan_by_index(MILESTONES, "task_id", task_id)


async def update_milestone(
    tx: TransactionHandle, milestone_id: int, milestone: schemas.MilestoneUpdate
) -> schemas.Milestone:
    """Replace every editable field; the owning user is kept."""
    existing = await tx.get(MILESTONES, milestone_id)
    await check_task_link(tx, existing.user_id, milestone.task_id)
    replaced = schemas.Milestone(**milestone.model_dump(), id=milestone_id, user_id=existing.user_id)
    await tx.put(MILESTONES, replaced)
    return await tx.get(MILESTONES, milestone_id)


async def toggle_milestone_status(tx: TransactionHandle, milestone_id: int) -> schemas.Milestone:
    milestone = await tx.get(MILESTONES, milestone_id)
    toggled = milestone.model_copy(update={"completed": not milestone.completed})
    await tx.put(MILESTONES, toggled)
    return await tx.get(MILESTONES, milestone_id)


async def delete_milestone(tx: TransactionHandle, milestone_id: int) -> bool:
    return await tx.delete(MILESTONES, milestone_id)

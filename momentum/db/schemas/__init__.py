"""
Pydantic record schemas.

Records returned by the store are detached snapshots built from these
classes; mutating one never changes what is stored.
"""

from .users import UserBase, UserCreate, UserUpdate, User
from .milestones import (
    MilestoneBase,
    MilestoneDraft,
    MilestoneCreate,
    MilestoneUpdate,
    Milestone,
)
from .tasks import (
    Priority,
    TaskBase,
    TaskCreate,
    TaskUpdate,
    Task,
    TaskWithMilestones,
    TaskCreateResult,
    TaskStatistics,
)
from .sessions import RememberedSession
from .backup import UserDataExport

__all__ = [
    # users
    "UserBase",
    "UserCreate",
    "UserUpdate",
    "User",
    # milestones
    "MilestoneBase",
    "MilestoneDraft",
    "MilestoneCreate",
    "MilestoneUpdate",
    "Milestone",
    # tasks
    "Priority",
    "TaskBase",
    "TaskCreate",
    "TaskUpdate",
    "Task",
    "TaskWithMilestones",
    "TaskCreateResult",
    "TaskStatistics",
    # sessions / backup
    "RememberedSession",
    "UserDataExport",
]

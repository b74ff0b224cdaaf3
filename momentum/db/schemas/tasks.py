from datetime import datetime
from typing import Literal
from pydantic import BaseModel, ConfigDict, Field

from .milestones import Milestone

Priority = Literal['low', 'medium', 'high']


class TaskBase(BaseModel):
    title: str = Field(min_length=1)
    description: str | None = None
    priority: Priority = 'medium'
    due_date: datetime | None = None
    completed: bool = False


class TaskCreate(TaskBase):
    pass


class TaskUpdate(BaseModel):
    # user_id is immutable after creation, so it is not a patchable field
    model_config = ConfigDict(extra='forbid')
    title: str | None = None
    description: str | None = None
    priority: Priority | None = None
    due_date: datetime | None = None
    completed: bool | None = None


class Task(TaskBase):
    id: int
    user_id: int
    model_config = ConfigDict(from_attributes=True)


class TaskWithMilestones(Task):
    milestones: list[Milestone] = Field(default_factory=list)


class TaskCreateResult(BaseModel):
    task_id: int
    milestone_ids: list[int] = Field(default_factory=list)


class TaskStatistics(BaseModel):
    total_tasks: int = 0
    completed_tasks: int = 0
    total_milestones: int = 0
    completed_milestones: int = 0
    completion_rate: float = 0.0

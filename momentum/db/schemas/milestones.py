from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class MilestoneBase(BaseModel):
    title: str = Field(min_length=1)
    description: str | None = None
    due_date: datetime | None = None
    completed: bool = False


class MilestoneDraft(MilestoneBase):
    """Milestone embedded in a task create/edit; the task id is assigned on insert."""


class MilestoneCreate(MilestoneBase):
    task_id: int | None = Field(default=None, gt=0)


class MilestoneUpdate(MilestoneCreate):
    pass


class Milestone(MilestoneCreate):
    id: int
    user_id: int
    model_config = ConfigDict(from_attributes=True)

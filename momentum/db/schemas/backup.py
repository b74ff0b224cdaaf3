from datetime import datetime
from pydantic import BaseModel, Field

from .users import User
from .tasks import Task
from .milestones import Milestone


class UserDataExport(BaseModel):
    """Read-only snapshot of one user's records."""

    user: User
    tasks: list[Task] = Field(default_factory=list)
    milestones: list[Milestone] = Field(default_factory=list)
    exported_at: datetime

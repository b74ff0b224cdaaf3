"""
SQLAlchemy models for the four persisted collections.

Exposes `Base`, `now_utc` and the ORM classes.
"""

from .base import Base, now_utc  # re-export

from .users import User
from .tasks import Task
from .milestones import Milestone
from .sessions import RememberedSession, REMEMBERED_SESSION_SLOT

__all__ = [
    # base
    "Base",
    "now_utc",
    # collections
    "User",
    "Task",
    "Milestone",
    "RememberedSession",
    "REMEMBERED_SESSION_SLOT",
]

from sqlalchemy import Column, Integer, String, Text, Boolean, ForeignKey, Index
from momentum.db.types import UTCDateTime
from .base import Base


class Milestone(Base):
    __tablename__ = 'milestones'
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    # NULL means the milestone is unassigned and survives task deletion
    task_id = Column(Integer, ForeignKey('tasks.id'), nullable=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    due_date = Column(UTCDateTime(), nullable=True)
    completed = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index('idx_milestones_user_id', 'user_id'),
        Index('idx_milestones_task_id', 'task_id'),
        {'sqlite_autoincrement': True},
    )

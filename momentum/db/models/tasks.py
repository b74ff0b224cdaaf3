from sqlalchemy import Column, Integer, String, Text, Boolean, ForeignKey, Index, CheckConstraint
from momentum.db.types import UTCDateTime
from .base import Base


class Task(Base):
    __tablename__ = 'tasks'
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(String(10), nullable=False, default='medium')
    due_date = Column(UTCDateTime(), nullable=True)
    completed = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index('idx_tasks_user_id', 'user_id'),
        CheckConstraint("priority in ('low','medium','high')", name='ck_tasks_priority'),
        {'sqlite_autoincrement': True},
    )

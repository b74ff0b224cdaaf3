from sqlalchemy import Column, Integer, String, ForeignKey, CheckConstraint
from .base import Base

REMEMBERED_SESSION_SLOT = 1


class RememberedSession(Base):
    """Single-row "remember me" flag; the check constraint pins the only legal key."""

    __tablename__ = 'remembered_session'
    id = Column(Integer, primary_key=True, default=REMEMBERED_SESSION_SLOT)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    # Username or email the user logged in with
    credential = Column(String(255), nullable=False)

    __table_args__ = (
        CheckConstraint(f"id = {REMEMBERED_SESSION_SLOT}", name='ck_remembered_session_single_row'),
    )

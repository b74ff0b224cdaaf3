from sqlalchemy import Column, Integer, String
from momentum.db.types import UTCDateTime
from .base import Base, now_utc


class User(Base):
    __tablename__ = 'users'
    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(150), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    # UI theme preference: 'light'|'dark'
    theme = Column(String(20), nullable=False, default='light')
    login_count = Column(Integer, nullable=False, default=0)
    last_login = Column(UTCDateTime(), nullable=True)
    created_at = Column(UTCDateTime(), default=now_utc)

    # Ids are never reused after a delete
    __table_args__ = {'sqlite_autoincrement': True}

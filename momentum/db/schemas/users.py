from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class UserBase(BaseModel):
    username: str = Field(min_length=1)
    email: str = Field(min_length=1)
    full_name: str | None = None
    theme: str = 'light'


class UserCreate(UserBase):
    password: str


class UserUpdate(BaseModel):
    """Preference patch; unset fields keep their stored value."""

    model_config = ConfigDict(extra='forbid')
    email: str | None = None
    full_name: str | None = None
    theme: str | None = None
    password: str | None = None


class User(UserBase):
    id: int
    password: str
    login_count: int = 0
    last_login: datetime | None = None
    created_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)

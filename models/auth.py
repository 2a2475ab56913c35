from sqlmodel import SQLModel, Field
from enum import Enum
from typing import Optional
from datetime import datetime
from .helper import id_generator, utcnow


class UserRole(str, Enum):
    """Available roles for system users."""
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


class User(SQLModel, table=True):
    """People who own boards, notes, goals and reminders."""
    id: str = Field(default_factory=id_generator('user', 10), primary_key=True)
    username: str = Field(unique=True, index=True)
    email: Optional[str] = Field(default=None, unique=True, index=True)
    avatar_url: Optional[str] = Field(default=None)
    role: UserRole = Field(default=UserRole.MEMBER)
    is_active: bool = Field(default=True)


class Token(SQLModel, table=True):
    """Bearer token resolving to the acting user of a request."""
    id: str = Field(default_factory=id_generator('token', 10), primary_key=True)
    user_id: str = Field(foreign_key="user.id", index=True)
    token_type: str = Field(default="bearer")
    access_token: str = Field(unique=True, index=True)
    expires_at: datetime
    created_at: datetime = Field(default_factory=utcnow)
    is_revoked: bool = Field(default=False)

from pydantic import Field
from typing import Optional
from models.auth import UserRole
from apis.schemas.base import CamelModel


class MemberResponse(CamelModel):
    """Board member summary stored on the board itself."""
    id: str = Field(..., description="User ID")
    username: Optional[str] = Field(default=None, description="Username")
    avatar_url: Optional[str] = Field(default=None, description="Avatar image URL")


class UserResponse(CamelModel):
    """Schema for user responses."""
    id: str = Field(..., description="User ID")
    username: str = Field(..., description="Username")
    email: Optional[str] = Field(default=None, description="User email address")
    avatar_url: Optional[str] = Field(default=None, description="Avatar image URL")
    role: UserRole = Field(..., description="User role (ADMIN or MEMBER)")
    is_active: bool = Field(..., description="Whether the user is active")

from pydantic import Field
from typing import Dict, List, Optional
from datetime import datetime
from apis.schemas.auth import MemberResponse
from apis.schemas.base import CamelModel
from apis.schemas.tasks import TaskResponse


class CreateBoardRequest(CamelModel):
    """Schema for creating a new board."""
    name: str = Field(..., description="Board name")
    columns: List[str] = Field(default_factory=list, description="Ordered column names; empty uses the defaults")


class UpdateBoardRequest(CamelModel):
    name: Optional[str] = Field(default=None, description="New board name")
    columns: Optional[List[str]] = Field(default=None, description="New ordered column names")
    is_sharable: Optional[bool] = Field(default=None, description="Whether the board is readable via link")


class AddMemberRequest(CamelModel):
    user_id: str = Field(..., description="User to invite")


class BoardResponse(CamelModel):
    """Schema for board responses."""
    id: str = Field(..., description="Board ID")
    name: str = Field(..., description="Board name")
    columns: List[str] = Field(..., description="Ordered column names")
    members: List[MemberResponse] = Field(default_factory=list, description="Invited members")
    owner_id: str = Field(..., description="Board owner")
    is_sharable: bool = Field(default=False, description="Whether the board is readable via link")
    created_at: datetime = Field(..., description="Creation timestamp")


class BoardDetailResponse(BoardResponse):
    """Board with its tasks, also grouped per column for rendering."""
    tasks: List[TaskResponse] = Field(default_factory=list, description="Tasks, newest first")
    tasks_by_column: Dict[str, List[TaskResponse]] = Field(default_factory=dict, description="Tasks per column")

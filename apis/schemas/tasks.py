from pydantic import Field
from typing import Optional
from datetime import datetime
from models.boards import Priority
from apis.schemas.base import CamelModel


class TaskFields(CamelModel):
    description: Optional[str] = Field(default=None, description="Task description")
    priority: Optional[Priority] = Field(default=None, description="Low, Medium or High")
    deadline: Optional[datetime] = Field(default=None, description="Due date")
    estimated_time: Optional[float] = Field(default=None, ge=0, description="Estimated hours")
    time_spent: Optional[float] = Field(default=None, ge=0, description="Hours spent")
    github_repo: Optional[str] = Field(default=None, description="Linked repository")
    github_branch: Optional[str] = Field(default=None, description="Linked branch")
    github_path: Optional[str] = Field(default=None, description="Linked path")
    assigned_to: Optional[str] = Field(default=None, description="Assignee user ID")
    is_sharable: Optional[bool] = Field(default=None, description="Whether the task is readable via link")


class CreateTaskRequest(TaskFields):
    """Schema for creating a new task."""
    board_id: str = Field(..., description="Board the task belongs to")
    content: str = Field(..., description="Task title")
    column: str = Field(..., description="Column name where task is placed")


class UpdateTaskRequest(TaskFields):
    """Schema for updating a task. Only fields sent are changed."""
    content: Optional[str] = Field(default=None, description="New task title")
    column: Optional[str] = Field(default=None, description="New column name")


class MoveTaskRequest(CamelModel):
    column: str = Field(..., description="Destination column")


class TaskResponse(CamelModel):
    """Schema for task responses."""
    id: str = Field(..., description="Task ID")
    board_id: str = Field(..., description="Board ID")
    content: str = Field(..., description="Task title")
    description: Optional[str] = None
    priority: Optional[Priority] = None
    column: str = Field(..., description="Column name")
    deadline: Optional[datetime] = None
    estimated_time: Optional[float] = None
    time_spent: Optional[float] = None
    github_repo: Optional[str] = None
    github_branch: Optional[str] = None
    github_path: Optional[str] = None
    assigned_to: Optional[str] = None
    is_sharable: bool = False
    created_by: Optional[str] = None
    created_at: datetime = Field(..., description="Creation timestamp")


class CompleteTaskResponse(CamelModel):
    id: str
    column: str

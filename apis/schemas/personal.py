from pydantic import Field
from typing import Optional
from datetime import datetime
from models.boards import Priority
from models.reminders import RecurrenceType
from apis.schemas.base import CamelModel


class CreateNoteRequest(CamelModel):
    title: str = Field(default="", description="Note title")
    content: str = Field(default="", description="Note body")
    is_shared: bool = Field(default=False)


class UpdateNoteRequest(CamelModel):
    title: Optional[str] = None
    content: Optional[str] = None
    is_shared: Optional[bool] = None


class NoteResponse(CamelModel):
    id: str
    user_id: str
    title: Optional[str] = None
    content: str
    is_shared: bool
    created_at: datetime
    updated_at: datetime


class CreateGoalRequest(CamelModel):
    title: str = Field(..., description="Goal title")
    notes: Optional[str] = None
    priority: Optional[Priority] = None
    deadline: Optional[datetime] = None
    is_shared: bool = False


class UpdateGoalRequest(CamelModel):
    title: Optional[str] = None
    notes: Optional[str] = None
    priority: Optional[Priority] = None
    deadline: Optional[datetime] = None
    is_completed: Optional[bool] = None
    is_shared: Optional[bool] = None


class GoalResponse(CamelModel):
    id: str
    user_id: str
    title: str
    notes: Optional[str] = None
    priority: Optional[Priority] = None
    deadline: Optional[datetime] = None
    is_completed: bool
    is_shared: bool
    created_at: datetime


class CreateReminderRequest(CamelModel):
    """Schema for creating a reminder; Custom recurrence needs customInterval (days)."""
    title: str = Field(..., description="Reminder title")
    description: Optional[str] = None
    date_time: datetime = Field(..., description="First occurrence")
    recurrence: RecurrenceType = RecurrenceType.NONE
    custom_interval: Optional[int] = Field(default=None, ge=1, description="Days between occurrences")
    is_shared: bool = False


class UpdateReminderRequest(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    date_time: Optional[datetime] = None
    recurrence: Optional[RecurrenceType] = None
    custom_interval: Optional[int] = Field(default=None, ge=1)
    is_completed: Optional[bool] = None
    is_shared: Optional[bool] = None


class ReminderResponse(CamelModel):
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    date_time: datetime
    recurrence: RecurrenceType
    custom_interval: Optional[int] = None
    is_completed: bool
    is_shared: bool
    created_at: datetime

from sqlmodel import SQLModel, Field
from enum import Enum
from typing import Optional
from datetime import datetime
from .helper import id_generator, utcnow


class RecurrenceType(str, Enum):
    """How often a reminder repeats."""
    NONE = "None"
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    YEARLY = "Yearly"
    CUSTOM = "Custom"


class Reminder(SQLModel, table=True):
    """Dated reminder owned by a single user."""
    id: str = Field(default_factory=id_generator('reminder', 10), primary_key=True)
    user_id: str = Field(index=True)
    title: str
    description: Optional[str] = Field(default=None)
    date_time: datetime = Field(index=True)
    recurrence: RecurrenceType = Field(default=RecurrenceType.NONE)
    custom_interval: Optional[int] = Field(default=None, description="Days between custom repeats")
    is_completed: bool = Field(default=False)
    is_shared: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)

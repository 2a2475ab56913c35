from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from .boards import Priority
from .helper import id_generator, utcnow


class Goal(SQLModel, table=True):
    """Personal goal with an optional deadline."""
    id: str = Field(default_factory=id_generator('goal', 10), primary_key=True)
    user_id: str = Field(index=True)
    title: str
    notes: Optional[str] = Field(default=None)
    priority: Priority = Field(default=Priority.MEDIUM)
    deadline: Optional[datetime] = Field(default=None)
    is_completed: bool = Field(default=False)
    is_shared: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, index=True)

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import JSON
from enum import Enum
from typing import Optional, List, Dict
from datetime import datetime
from .helper import id_generator, utcnow


class Priority(str, Enum):
    """Task and goal priority."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Board(SQLModel, table=True):
    """Kanban board: an ordered set of workflow columns plus its members."""
    id: str = Field(default_factory=id_generator('board', 10), primary_key=True)
    name: str = Field(index=True)
    columns: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    # Each member: {"id", "username", "avatar_url"}
    members: List[Dict[str, Optional[str]]] = Field(default_factory=list, sa_column=Column(JSON))
    owner_id: str = Field(index=True)
    is_sharable: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, index=True)

    @property
    def member_ids(self) -> List[str]:
        return [member["id"] for member in self.members or []]


class Task(SQLModel, table=True):
    """Work unit living in exactly one column of a board."""
    id: str = Field(default_factory=id_generator('task', 10), primary_key=True)
    board_id: str = Field(index=True)
    content: str
    description: Optional[str] = Field(default=None)
    priority: Priority = Field(default=Priority.MEDIUM)
    column: str = Field(index=True)
    deadline: Optional[datetime] = Field(default=None)
    estimated_time: Optional[float] = Field(default=None)
    time_spent: Optional[float] = Field(default=None)
    github_repo: Optional[str] = Field(default=None)
    github_branch: Optional[str] = Field(default=None)
    github_path: Optional[str] = Field(default=None)
    assigned_to: Optional[str] = Field(default=None, index=True)
    is_sharable: bool = Field(default=False)
    created_by: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow, index=True)

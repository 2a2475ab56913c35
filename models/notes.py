from sqlmodel import SQLModel, Field
from datetime import datetime
from .helper import id_generator, utcnow


class Note(SQLModel, table=True):
    """Free-form note owned by a single user."""
    id: str = Field(default_factory=id_generator('note', 10), primary_key=True)
    user_id: str = Field(index=True)
    title: str = Field(default="")
    content: str = Field(default="")
    is_shared: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)

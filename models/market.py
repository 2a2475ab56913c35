from sqlmodel import SQLModel, Field, Column
from sqlalchemy import JSON
from typing import Dict, Any
from datetime import datetime
from .helper import id_generator, utcnow


class MarketSnapshot(SQLModel, table=True):
    """Account balance snapshot written by the trading terminal for one symbol."""
    __tablename__ = "market_snapshot"

    id: str = Field(default_factory=id_generator('snap', 10), primary_key=True)
    symbol: str = Field(index=True)
    ts: datetime = Field(default_factory=utcnow, index=True)
    balance_snapshot: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))

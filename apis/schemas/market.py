from pydantic import Field
from typing import Any, Dict
from datetime import datetime
from apis.schemas.base import CamelModel


class MarketSnapshotResponse(CamelModel):
    id: str
    symbol: str
    ts: datetime = Field(..., description="Snapshot time")
    balance_snapshot: Dict[str, Any] = Field(default_factory=dict, description="Balances as written by the terminal")

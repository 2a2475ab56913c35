from typing import List, Optional
from models.market import MarketSnapshot
from settings import POLL_INTERVAL_SECONDS
from store.document_store import DocumentStore
from sync.polling import Poller


async def latest_snapshot(store: DocumentStore, symbol: str) -> Optional[MarketSnapshot]:
    snapshots = await store.query(
        "market_snapshots", where={"symbol": symbol.upper()}, order_by="ts", descending=True, limit=1
    )
    return snapshots[0] if snapshots else None


async def snapshot_history(store: DocumentStore, symbol: str, limit: int = 100) -> List[MarketSnapshot]:
    """Most recent `limit` snapshots, oldest first."""
    snapshots = await store.query(
        "market_snapshots", where={"symbol": symbol.upper()}, order_by="ts", descending=True, limit=limit
    )
    return list(reversed(snapshots))


class MarketPanel:
    """Polls the latest balance snapshot of one symbol."""

    def __init__(self, store: DocumentStore, symbol: str, interval: float = POLL_INTERVAL_SECONDS):
        self.store = store
        self.symbol = symbol.upper()
        self.latest: Optional[MarketSnapshot] = None
        self.poller = Poller(self.refresh, interval=interval, name=f"market:{self.symbol}")

    async def refresh(self) -> None:
        self.latest = await latest_snapshot(self.store, self.symbol)

    def start(self) -> None:
        self.poller.start()

    async def close(self) -> None:
        await self.poller.stop()

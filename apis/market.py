from fastapi import APIRouter, Depends, HTTPException, Query, status
from database import get_store
from models.auth import User
from helpers.auth import get_current_user
from helpers.errors import command_errors
from store.document_store import DocumentStore
from sync.market import latest_snapshot, snapshot_history
from .schemas.market import MarketSnapshotResponse
from typing import List

router = APIRouter(prefix="/market", tags=["market"])


@router.get("/{symbol}/latest")
async def get_latest_snapshot(
    symbol: str,
    user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_store)
) -> MarketSnapshotResponse:
    """Most recent balance snapshot for a symbol."""
    with command_errors():
        snapshot = await latest_snapshot(document_store, symbol)

    if not snapshot:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No snapshots for {symbol.upper()}"
        )
    return MarketSnapshotResponse.model_validate(snapshot)


@router.get("/{symbol}/history")
async def get_snapshot_history(
    symbol: str,
    limit: int = Query(default=100, ge=1, le=1000),
    user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_store)
) -> List[MarketSnapshotResponse]:
    """Recent snapshots for a symbol in chronological order."""
    with command_errors():
        snapshots = await snapshot_history(document_store, symbol, limit)
    return [MarketSnapshotResponse.model_validate(snapshot) for snapshot in snapshots]

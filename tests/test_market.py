"""
Feature: Market snapshots
  As a user watching the trading terminal
  I want the latest balance and a short history per symbol
  So that the market panel can chart it

Scenario: Latest snapshot for a symbol
Scenario: History is chronological and limited
Scenario: Unknown symbol has no latest snapshot
"""

import pytest
from datetime import timedelta
from fastapi import HTTPException
from apis.market import get_latest_snapshot, get_snapshot_history
from models.helper import utcnow
from models.market import MarketSnapshot


@pytest.fixture(name="snapshots")
def snapshots_fixture(session):
    now = utcnow()
    rows = [
        MarketSnapshot(symbol="BTCUSD", ts=now - timedelta(minutes=minutes), balance_snapshot={"usd": 100 + minutes})
        for minutes in (3, 2, 1, 0)
    ]
    rows.append(MarketSnapshot(symbol="ETHUSD", ts=now, balance_snapshot={"usd": 1}))
    session.add_all(rows)
    session.commit()
    return rows


@pytest.mark.asyncio
async def test_latest_snapshot(store, owner, snapshots):
    result = await get_latest_snapshot(symbol="btcusd", user=owner, document_store=store)

    assert result.symbol == "BTCUSD"
    assert result.balance_snapshot == {"usd": 100}
    assert "balanceSnapshot" in result.model_dump(by_alias=True)


@pytest.mark.asyncio
async def test_history_is_chronological(store, owner, snapshots):
    result = await get_snapshot_history(symbol="BTCUSD", limit=3, user=owner, document_store=store)

    assert [snapshot.balance_snapshot["usd"] for snapshot in result] == [102, 101, 100]


@pytest.mark.asyncio
async def test_unknown_symbol(store, owner):
    with pytest.raises(HTTPException) as exc_info:
        await get_latest_snapshot(symbol="DOGEUSD", user=owner, document_store=store)
    assert exc_info.value.status_code == 404

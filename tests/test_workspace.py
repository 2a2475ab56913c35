"""
Feature: Tasks workspace lifecycle
  As a signed-in user opening the tasks view
  I want subscriptions and polling tied to the view's lifetime
  So that nothing keeps running after I leave

Scenario: Unmounting stops polling and subscriptions
  Given a mounted workspace with a selected board
  When the workspace is unmounted
  Then the reminder poller makes no further calls
  And no subscriptions remain open

Scenario: A failed share toggle rolls back
  Given a task on a board the user cannot edit
  When the user toggles its sharing
  Then the local flag returns to its previous value and an error is shown

Scenario: Closing the session closes its workspaces
"""

import asyncio
import pytest
from models.boards import Task
from models.helper import utcnow
from sync.context import SessionContext
from sync.market import MarketPanel
from sync.polling import Poller
from sync.reorder import DragPhase
from sync.workspace import TasksWorkspace
from datetime import timedelta
from conftest import make_task


@pytest.mark.asyncio
async def test_poller_stops_after_stop():
    calls = []

    async def fetch():
        calls.append(utcnow())

    poller = Poller(fetch, interval=0.01, name="test")
    poller.start()
    await asyncio.sleep(0.05)
    await poller.stop()
    stopped_at = len(calls)
    await asyncio.sleep(0.05)

    assert stopped_at >= 2
    assert len(calls) == stopped_at
    assert not poller.running


@pytest.mark.asyncio
async def test_poller_survives_failed_fetch():
    attempts = []

    async def flaky():
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError("network down")

    poller = Poller(flaky, interval=0.01)
    poller.start()
    await asyncio.sleep(0.05)
    await poller.stop()

    assert len(attempts) >= 2
    assert poller.runs == len(attempts) - 1


@pytest.mark.asyncio
async def test_mount_select_unmount(session, store, owner, board):
    make_task(session, board, "Outline", "In Progress")
    context = SessionContext(owner).start()
    workspace = TasksWorkspace(context, store, settle_timeout=1, poll_interval=0.01)

    await workspace.mount()
    await workspace.select_board(board.id)
    await asyncio.sleep(0.03)

    assert [b.id for b in workspace.boards.boards] == [board.id]
    assert [t.content for t in workspace.tasks_by_column()["In Progress"]] == ["Outline"]
    assert workspace.reminder_poller.running

    await workspace.unmount()
    runs = workspace.reminder_poller.runs
    await asyncio.sleep(0.03)

    assert workspace.reminder_poller.runs == runs
    assert store.subscription_count() == 0
    assert workspace.engine.phase == DragPhase.IDLE


@pytest.mark.asyncio
async def test_due_reminders_are_polled(store, owner):
    context = SessionContext(owner).start()
    workspace = TasksWorkspace(context, store, poll_interval=0.01)
    await workspace.reminders.create({"title": "Overdue", "date_time": utcnow() - timedelta(minutes=5)})
    await workspace.reminders.create({"title": "Later", "date_time": utcnow() + timedelta(days=1)})

    await workspace.mount()
    await asyncio.sleep(0.03)
    await context.close()

    assert [reminder.title for reminder in workspace.due] == ["Overdue"]
    assert not workspace.mounted
    assert not context.active


@pytest.mark.asyncio
async def test_failed_share_toggle_rolls_back(session, store, outsider, board):
    task = make_task(session, board, "Secret plan", "To Do")
    detached = Task(id=task.id, board_id=board.id, content=task.content, column=task.column, is_sharable=False)
    context = SessionContext(outsider).start()
    workspace = TasksWorkspace(context, store)

    assert await workspace.toggle_task_share(detached) is False

    assert detached.is_sharable is False
    assert workspace.banner.visible
    assert (await store.get("tasks", task.id)).is_sharable is False


@pytest.mark.asyncio
async def test_share_toggle_persists(store, owner, board):
    context = SessionContext(owner).start()
    workspace = TasksWorkspace(context, store)
    loaded = await store.get("boards", board.id)

    assert await workspace.toggle_board_share(loaded) is True
    assert (await store.get("boards", board.id)).is_sharable is True


@pytest.mark.asyncio
async def test_market_panel_polls_latest(store):
    await store.create("market_snapshots", {"symbol": "BTCUSD", "ts": utcnow() - timedelta(minutes=1), "balance_snapshot": {"usd": 100}})
    await store.create("market_snapshots", {"symbol": "BTCUSD", "ts": utcnow(), "balance_snapshot": {"usd": 120}})
    panel = MarketPanel(store, "btcusd", interval=0.01)

    panel.start()
    await asyncio.sleep(0.03)
    await panel.close()

    assert panel.latest.balance_snapshot == {"usd": 120}
    assert not panel.poller.running


def test_session_currency():
    context = SessionContext(user=None)
    context.set_currency("eur")
    assert context.currency == "EUR"
    with pytest.raises(ValueError):
        context.set_currency("XYZ")

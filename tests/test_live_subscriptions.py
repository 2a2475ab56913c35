"""
Feature: Live board subscriptions
  As a user switching between boards
  I want only the selected board's tasks to reach my view
  So that stale boards never overwrite the current one

Scenario: Switching boards stops callbacks for the old board
  Given a subscription to board A
  When the user switches to board B
  And a task is written on board A
  Then the view receives no further snapshots for board A

Scenario: A subscription failure shows a banner and stops live data
  Given a subscription to a board
  When the store query fails
  Then a dismissible error banner is shown
  And no retry is attempted

Scenario: A snapshot held during a drag reaches the view when the drag ends
  Given a drag in progress on a subscribed board
  When a task is written and the drag is cancelled
  Then the view callback receives the released task list

Scenario: The board list only contains the user's boards
"""

import pytest
from helpers.errors import StoreError
from models.boards import Board
from sync.commands import BoardCommands
from sync.reorder import ReorderEngine
from sync.subscriptions import BoardListSubscription, ErrorBanner, LiveSubscriptionManager
from conftest import make_task


@pytest.fixture(name="second_board")
def second_board_fixture(session, owner):
    board = Board(name="Side project", columns=["Backlog", "Done"], owner_id=owner.id)
    session.add(board)
    session.commit()
    session.refresh(board)
    return board


@pytest.mark.asyncio
async def test_switching_boards_stops_old_callbacks(store, board, second_board):
    # Given a subscription to board A
    received = []
    live = LiveSubscriptionManager(store, on_tasks=lambda tasks: received.append([t.board_id for t in tasks]))
    await live.subscribe(board.id)

    # When the user switches to board B
    await live.subscribe(second_board.id)
    received.clear()

    # And a task is written on board A
    await store.create("tasks", {"board_id": board.id, "content": "Hidden", "column": "To Do"})

    # Then the view receives no further snapshots for board A
    assert received == []
    assert live.board_id == second_board.id
    assert store.subscription_count("tasks") == 1

    await store.create("tasks", {"board_id": second_board.id, "content": "Visible", "column": "Backlog"})
    assert received == [[second_board.id]]


@pytest.mark.asyncio
async def test_subscription_failure_shows_banner(store, board, monkeypatch):
    banner = ErrorBanner()
    errors = []
    live = LiveSubscriptionManager(store, banner=banner, on_error=errors.append)
    await live.subscribe(board.id)

    calls = []

    def broken_query(*args, **kwargs):
        calls.append(args)
        raise StoreError("permission denied")

    monkeypatch.setattr(store, "_run_query", broken_query)
    await store._notify("tasks")
    await store._notify("tasks")

    assert banner.visible
    assert len(errors) == 1
    assert len(calls) == 1
    assert not live.active

    banner.dismiss()
    assert not banner.visible


@pytest.mark.asyncio
async def test_unsubscribe_detaches(store, session, board):
    received = []
    live = LiveSubscriptionManager(store, on_tasks=received.append)
    await live.subscribe(board.id)

    live.unsubscribe()
    make_task(session, board, "Direct insert", "To Do")
    await store.create("tasks", {"board_id": board.id, "content": "Through store", "column": "To Do"})

    assert len(received) == 1
    assert store.subscription_count() == 0


@pytest.mark.asyncio
async def test_board_list_contains_owned_and_invited(store, session, owner, member, outsider, board, second_board):
    lists = []
    subscription = BoardListSubscription(store, member, lists.append)
    await subscription.start()

    assert [b.id for b in lists[-1]] == [board.id]

    await store.create("boards", {"name": "Outsider board", "columns": ["To Do"], "owner_id": outsider.id, "members": []})
    assert [b.id for b in lists[-1]] == [board.id]

    await store.create("boards", {"name": "Mine", "columns": ["To Do"], "owner_id": member.id, "members": []})
    assert [b.name for b in lists[-1]][0] == "Mine"

    subscription.stop()
    assert store.subscription_count("boards") == 0


@pytest.mark.asyncio
async def test_held_snapshot_reaches_view_after_drag(session, store, owner, board):
    # Given a drag in progress on a subscribed board
    dragged = make_task(session, board, "Dragged", "To Do")
    received = []
    engine = ReorderEngine(BoardCommands(store, owner).move_task, board.columns, settle_timeout=1)
    live = LiveSubscriptionManager(store, engine=engine, on_tasks=lambda tasks: received.append([t.content for t in tasks]))
    await live.subscribe(board.id, board.columns)
    assert received == [["Dragged"]]
    engine.drag_start(dragged.id)

    # When a task is written and the drag is cancelled
    await store.create("tasks", {"board_id": board.id, "content": "Remote", "column": "Done"})
    assert received == [["Dragged"]]
    engine.drag_cancel()

    # Then the view callback receives the released task list
    assert sorted(received[-1]) == ["Dragged", "Remote"]
    live.unsubscribe()

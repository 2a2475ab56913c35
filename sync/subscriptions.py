"""
Live subscriptions for the tasks view.

At most one task subscription is open per manager. Switching boards closes
the previous subscription before the next one is opened, and a generation
counter drops any callback still in flight for the old board.
"""
import asyncio
import inspect
from typing import Any, Callable, List, Optional, Sequence, Set
from helpers.callbacks import call_maybe_async
from helpers.errors import StoreError
from helpers.policy import can_view_board
from models.auth import User
from models.boards import Board, Task
from settings import logger
from store.document_store import DocumentStore, Subscription
from sync.reorder import ReorderEngine


class ErrorBanner:
    """Dismissible, user-visible error message."""

    def __init__(self):
        self.message: Optional[str] = None

    @property
    def visible(self) -> bool:
        return self.message is not None

    def show(self, message: str) -> None:
        self.message = message

    def dismiss(self) -> None:
        self.message = None


class LiveSubscriptionManager:
    """Keeps one board's task list in sync with the store."""

    def __init__(
        self,
        store: DocumentStore,
        engine: Optional[ReorderEngine] = None,
        on_tasks: Optional[Callable[[List[Task]], Any]] = None,
        on_error: Optional[Callable[[StoreError], Any]] = None,
        banner: Optional[ErrorBanner] = None,
    ):
        self.store = store
        self.engine = engine
        self.on_tasks = on_tasks
        self.on_error = on_error
        self.banner = banner
        self.board_id: Optional[str] = None
        self._subscription: Optional[Subscription] = None
        self._generation = 0
        self._callbacks: Set[asyncio.Task] = set()
        if engine is not None:
            engine.on_snapshot(self._forward_applied)

    @property
    def active(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def _forward_applied(self, tasks: List[Task]) -> None:
        # Called from the engine, also after a drag releases a held snapshot
        if self.on_tasks is None or self.board_id is None:
            return
        result = self.on_tasks(tasks)
        if inspect.isawaitable(result):
            callback = asyncio.ensure_future(result)
            self._callbacks.add(callback)
            callback.add_done_callback(self._callbacks.discard)

    async def subscribe(self, board_id: str, columns: Optional[Sequence[str]] = None) -> Subscription:
        """Point the manager at `board_id`, closing any previous subscription first."""
        self.unsubscribe()
        self._generation += 1
        generation = self._generation
        self.board_id = board_id
        if self.engine is not None:
            self.engine.reset(columns)

        async def handle_snapshot(tasks: List[Task]) -> None:
            if generation != self._generation:
                return
            if self.engine is not None:
                # The engine reports the snapshot once it becomes the local view
                self.engine.receive_snapshot(tasks)
            elif self.on_tasks is not None:
                await call_maybe_async(self.on_tasks, tasks)

        async def handle_error(error: StoreError) -> None:
            if generation != self._generation:
                return
            logger.error("Task subscription failed", extra={"board_id": board_id, "error": str(error)})
            self._subscription = None
            if self.banner is not None:
                self.banner.show("Lost connection to this board's tasks. Reopen the board to retry.")
            if self.on_error is not None:
                await call_maybe_async(self.on_error, error)

        subscription = await self.store.subscribe(
            "tasks", handle_snapshot,
            where={"board_id": board_id}, order_by="created_at", descending=True,
            on_error=handle_error
        )
        # The initial delivery may already have failed and detached it
        if generation == self._generation and subscription.active:
            self._subscription = subscription
        logger.info("Subscribed to board tasks", extra={"board_id": board_id, "subscription_id": subscription.id})
        return subscription

    def unsubscribe(self) -> None:
        self._generation += 1
        if self._subscription is not None:
            self._subscription.unsubscribe()
            logger.info("Unsubscribed from board tasks", extra={"board_id": self.board_id})
        self._subscription = None
        self.board_id = None


class BoardListSubscription:
    """Boards the user owns or has been invited to, newest first."""

    def __init__(
        self,
        store: DocumentStore,
        user: User,
        on_boards: Callable[[List[Board]], Any],
        banner: Optional[ErrorBanner] = None,
    ):
        self.store = store
        self.user = user
        self.on_boards = on_boards
        self.banner = banner
        self.boards: List[Board] = []
        self._subscription: Optional[Subscription] = None

    def _is_listed(self, board: Board) -> bool:
        return board.owner_id == self.user.id or self.user.id in board.member_ids

    async def start(self) -> None:
        self.stop()

        async def handle_snapshot(boards: List[Board]) -> None:
            self.boards = list(boards)
            await call_maybe_async(self.on_boards, self.boards)

        def handle_error(error: StoreError) -> None:
            logger.error("Board list subscription failed", extra={"user_id": self.user.id, "error": str(error)})
            self._subscription = None
            if self.banner is not None:
                self.banner.show("Could not load your boards.")

        self._subscription = await self.store.subscribe(
            "boards", handle_snapshot,
            order_by="created_at", descending=True,
            predicate=self._is_listed, on_error=handle_error
        )

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def find(self, board_id: str) -> Optional[Board]:
        for board in self.boards:
            if board.id == board_id and can_view_board(self.user, board):
                return board
        return None

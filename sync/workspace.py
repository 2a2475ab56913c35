"""
Tasks view lifecycle: wires the board list, the selected board's live task
subscription, the reorder engine and the reminder due-check together for
one signed-in session.
"""
from typing import Dict, List, Optional
from helpers.errors import CommandError, StoreError
from models.boards import Board, Task
from models.helper import utcnow
from models.reminders import Reminder
from settings import POLL_INTERVAL_SECONDS, SETTLE_TIMEOUT_SECONDS, logger
from store.document_store import DocumentStore
from sync.commands import BoardCommands, ReminderCommands
from sync.context import SessionContext
from sync.polling import Poller
from sync.reminders import due_reminders
from sync.reorder import ReorderEngine
from sync.subscriptions import BoardListSubscription, ErrorBanner, LiveSubscriptionManager


class TasksWorkspace:

    def __init__(
        self,
        context: SessionContext,
        store: DocumentStore,
        settle_timeout: float = SETTLE_TIMEOUT_SECONDS,
        poll_interval: float = POLL_INTERVAL_SECONDS,
    ):
        self.context = context
        self.store = store
        self.banner = ErrorBanner()
        self.commands = BoardCommands(store, context.user)
        self.reminders = ReminderCommands(store, context.user)
        self.engine = ReorderEngine(self.commands.move_task, settle_timeout=settle_timeout, on_error=self.banner.show)
        self.tasks = LiveSubscriptionManager(store, engine=self.engine, banner=self.banner)
        self.boards = BoardListSubscription(store, context.user, self._on_boards, banner=self.banner)
        self.reminder_poller = Poller(self._check_reminders, interval=poll_interval, name="reminders")
        self.due: List[Reminder] = []
        self.selected_board_id: Optional[str] = None
        self.mounted = False
        context.register(self)

    def _on_boards(self, boards: List[Board]) -> None:
        if self.selected_board_id is None:
            return
        selected = self.boards.find(self.selected_board_id)
        if selected is not None and list(selected.columns) != self.engine.columns:
            self.engine.set_columns(selected.columns)

    async def _check_reminders(self) -> None:
        reminders = await self.reminders.list()
        self.due = due_reminders(reminders, utcnow())

    async def mount(self) -> None:
        self.context.require_active()
        await self.boards.start()
        self.reminder_poller.start()
        self.mounted = True
        logger.info("Tasks workspace mounted", extra={"user_id": self.context.user.id})

    async def select_board(self, board_id: str) -> Board:
        board = await self.commands.get_board(board_id)
        self.selected_board_id = board_id
        self.banner.dismiss()
        await self.tasks.subscribe(board_id, board.columns)
        return board

    def tasks_by_column(self) -> Dict[str, List[Task]]:
        return self.engine.tasks_by_column()

    async def unmount(self) -> None:
        await self.reminder_poller.stop()
        self.tasks.unsubscribe()
        self.boards.stop()
        self.engine.reset()
        self.selected_board_id = None
        self.mounted = False
        logger.info("Tasks workspace unmounted", extra={"user_id": self.context.user.id})

    async def close(self) -> None:
        if self.mounted:
            await self.unmount()

    # -- optimistic share toggles -------------------------------------------

    async def toggle_task_share(self, task: Task) -> bool:
        """Flip `task.is_sharable` locally, persist it, and undo the flip on failure."""
        previous = task.is_sharable
        task.is_sharable = not previous
        try:
            await self.commands.set_task_sharable(task.id, task.is_sharable)
        except (CommandError, StoreError) as e:
            task.is_sharable = previous
            self.banner.show(f"Could not update sharing: {e}")
            return False
        return True

    async def toggle_board_share(self, board: Board) -> bool:
        previous = board.is_sharable
        board.is_sharable = not previous
        try:
            await self.commands.set_board_sharable(board.id, board.is_sharable)
        except (CommandError, StoreError) as e:
            board.is_sharable = previous
            self.banner.show(f"Could not update sharing: {e}")
            return False
        return True

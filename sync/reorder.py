"""
Optimistic drag-and-drop reorder engine.

Drag lifecycle:
  Idle → Dragging → (Idle | Settling) → Idle

While Dragging, the dragged task's column is reassigned locally on every
drag-over and remote snapshots are held back. A drop that changes the
column issues exactly one move command and waits in Settling for a snapshot
showing the task in its new column, or for the settle timeout (revert + error). Only
column membership is persisted; order inside a column is always the
snapshot's creation-time order.
"""
import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional, Sequence
from helpers.errors import CommandError, StoreError
from models.boards import Task
from settings import DEFAULT_BOARD_COLUMNS, SETTLE_TIMEOUT_SECONDS, logger

FALLBACK_COLUMNS = ("Backlog", "Parked")

MoveCommand = Callable[[str, str], Awaitable[None]]
ChangeListener = Callable[[Dict[str, List[Task]]], None]
SnapshotListener = Callable[[List[Task]], None]


class DragPhase(str, Enum):
    """States of the drag state machine."""
    IDLE = "idle"
    DRAGGING = "dragging"
    SETTLING = "settling"


def fallback_column(columns: Sequence[str]) -> Optional[str]:
    """Column that collects tasks whose own column is not on the board."""
    for column in FALLBACK_COLUMNS:
        if column in columns:
            return column
    return columns[0] if columns else None


def group_tasks_by_column(
    tasks: Sequence[Task],
    columns: Sequence[str],
    column_of: Optional[Callable[[Task], str]] = None,
) -> Dict[str, List[Task]]:
    """Bucket tasks per board column, keeping input order inside each bucket."""
    grouped: Dict[str, List[Task]] = {column: [] for column in columns}
    fallback = fallback_column(columns)
    for task in tasks:
        column = column_of(task) if column_of else task.column
        if column in grouped:
            grouped[column].append(task)
        elif fallback is not None:
            grouped[fallback].append(task)
    return grouped


@dataclass
class DragSession:
    task: Task
    start_column: str

    @property
    def task_id(self) -> str:
        return self.task.id


@dataclass
class PendingMove:
    task_id: str
    from_column: str
    to_column: str


class ReorderEngine:
    """Local, optimistic view of one board's tasks during drag gestures."""

    def __init__(
        self,
        move_task: MoveCommand,
        columns: Optional[Sequence[str]] = None,
        settle_timeout: float = SETTLE_TIMEOUT_SECONDS,
        on_error: Optional[Callable[[str], None]] = None,
    ):
        self._move_task = move_task
        self.columns: List[str] = list(columns or DEFAULT_BOARD_COLUMNS)
        self.settle_timeout = settle_timeout
        self.phase = DragPhase.IDLE
        self.last_error: Optional[str] = None
        self._on_error = on_error
        self._tasks: List[Task] = []
        self._overrides: Dict[str, str] = {}
        self._drag: Optional[DragSession] = None
        self._pending: Optional[PendingMove] = None
        self._held_snapshot: Optional[List[Task]] = None
        self._settle_handle: Optional[asyncio.TimerHandle] = None
        self._listeners: List[ChangeListener] = []
        self._snapshot_listeners: List[SnapshotListener] = []

    # -- local view --------------------------------------------------------

    @property
    def tasks(self) -> List[Task]:
        return list(self._tasks)

    @property
    def is_dragging(self) -> bool:
        return self.phase == DragPhase.DRAGGING

    @property
    def active_task_id(self) -> Optional[str]:
        return self._drag.task_id if self._drag else None

    @property
    def pending_move(self) -> Optional[PendingMove]:
        return self._pending

    def find_task(self, task_id: str) -> Optional[Task]:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def column_of(self, task_id: str) -> Optional[str]:
        """Column the task is displayed in, including provisional moves."""
        if task_id in self._overrides:
            return self._overrides[task_id]
        task = self.find_task(task_id)
        if task is None:
            return None
        if task.column in self.columns:
            return task.column
        return fallback_column(self.columns)

    def tasks_by_column(self) -> Dict[str, List[Task]]:
        return group_tasks_by_column(self._tasks, self.columns, lambda task: self.column_of(task.id))

    def on_change(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a re-render listener; returns a function removing it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
        return remove

    def on_snapshot(self, listener: SnapshotListener) -> Callable[[], None]:
        """
        Register a listener for remote task lists as they become the local
        view, including snapshots released after being held during a drag.
        """
        self._snapshot_listeners.append(listener)

        def remove() -> None:
            if listener in self._snapshot_listeners:
                self._snapshot_listeners.remove(listener)
        return remove

    def _emit(self) -> None:
        grouped = self.tasks_by_column()
        for listener in list(self._listeners):
            listener(grouped)

    def _surface_error(self, message: str) -> None:
        self.last_error = message
        logger.warning("Reorder error", extra={"detail": message})
        if self._on_error is not None:
            self._on_error(message)

    # -- board lifecycle ---------------------------------------------------

    def reset(self, columns: Optional[Sequence[str]] = None) -> None:
        """Forget everything (board switch or teardown)."""
        self._cancel_settle_timer()
        self._tasks = []
        self._overrides.clear()
        self._drag = None
        self._pending = None
        self._held_snapshot = None
        self.phase = DragPhase.IDLE
        if columns is not None:
            self.columns = list(columns or DEFAULT_BOARD_COLUMNS)

    def set_columns(self, columns: Sequence[str]) -> None:
        self.columns = list(columns or DEFAULT_BOARD_COLUMNS)
        if not self.is_dragging:
            self._emit()

    # -- remote snapshots --------------------------------------------------

    def receive_snapshot(self, tasks: Sequence[Task]) -> bool:
        """
        Accept the authoritative task list from the subscription.

        Returns False when the snapshot was held back because a drag is in
        progress; it is applied as soon as the gesture ends.
        """
        if self.phase == DragPhase.DRAGGING:
            self._held_snapshot = list(tasks)
            logger.debug("Snapshot held during drag", extra={"task_count": len(tasks)})
            return False

        self._apply_snapshot(list(tasks))
        if self.phase == DragPhase.SETTLING and self._confirms_pending():
            logger.debug("Move confirmed by snapshot", extra={
                "task_id": self._pending.task_id if self._pending else None
            })
            self._finish_settling()
        self._emit()
        return True

    def _confirms_pending(self) -> bool:
        # Unrelated writes can land before the echo of our own move
        if self._pending is None:
            return True
        task = self.find_task(self._pending.task_id)
        return task is None or task.column == self._pending.to_column

    def _finish_settling(self) -> None:
        self._cancel_settle_timer()
        self._overrides.clear()
        self._pending = None
        self.phase = DragPhase.IDLE

    def _apply_snapshot(self, tasks: List[Task]) -> None:
        self._tasks = tasks
        for listener in list(self._snapshot_listeners):
            listener(list(tasks))

    def _release_held_snapshot(self) -> None:
        if self._held_snapshot is not None:
            held, self._held_snapshot = self._held_snapshot, None
            self._apply_snapshot(held)

    # -- drag gesture ------------------------------------------------------

    def drag_start(self, task_id: str) -> bool:
        if self.phase != DragPhase.IDLE:
            logger.debug("Drag ignored, engine busy", extra={"task_id": task_id, "phase": self.phase.value})
            return False
        task = self.find_task(task_id)
        if task is None:
            return False

        self._drag = DragSession(task=task, start_column=self.column_of(task_id))
        self.phase = DragPhase.DRAGGING
        return True

    def resolve_drop_column(self, over_task_id: Optional[str] = None, over_column: Optional[str] = None) -> Optional[str]:
        """
        Column implied by the current pointer target.

        A hovered task is more specific than the column drop-zone underneath
        it, so its column wins when both are reported.
        """
        if over_task_id is not None:
            if self._drag is not None and over_task_id == self._drag.task_id:
                return self.column_of(over_task_id)
            if self.find_task(over_task_id) is not None:
                return self.column_of(over_task_id)
        if over_column is not None and over_column in self.columns:
            return over_column
        return None

    def drag_over(self, over_task_id: Optional[str] = None, over_column: Optional[str] = None) -> Optional[str]:
        """Provisionally move the dragged task into the hovered column (local only)."""
        if self.phase != DragPhase.DRAGGING or self._drag is None:
            return None
        task_id = self._drag.task_id
        target = self.resolve_drop_column(over_task_id, over_column)
        if target is not None and target != self.column_of(task_id):
            self._overrides[task_id] = target
            self._emit()
        return self.column_of(task_id)

    def drag_cancel(self) -> None:
        if self.phase != DragPhase.DRAGGING or self._drag is None:
            return
        self._overrides.pop(self._drag.task_id, None)
        self._drag = None
        self.phase = DragPhase.IDLE
        self._release_held_snapshot()
        self._emit()

    async def drag_end(self, over_task_id: Optional[str] = None, over_column: Optional[str] = None) -> Optional[str]:
        """
        Finish the gesture. Returns the column a move was issued for, or None
        when nothing was persisted (same column, or dropped outside a target).
        """
        if self.phase != DragPhase.DRAGGING or self._drag is None:
            return None

        drag = self._drag
        target = self.resolve_drop_column(over_task_id, over_column)
        if target is None or target == drag.start_column:
            self.drag_cancel()
            return None

        self._drag = None
        self._overrides[drag.task_id] = target
        # Held snapshots predate the write; the override keeps the target column
        self._release_held_snapshot()
        pending = PendingMove(task_id=drag.task_id, from_column=drag.start_column, to_column=target)
        self._pending = pending
        self.phase = DragPhase.SETTLING
        self._start_settle_timer(pending)
        self._emit()

        try:
            await self._move_task(drag.task_id, target)
        except (CommandError, StoreError) as e:
            logger.error("Move command failed", extra={
                "task_id": drag.task_id,
                "to_column": target,
                "error": str(e)
            })
            if self._pending is pending:
                self._revert(pending, f"Could not move task: {e}")
            return None
        return target

    # -- settling ----------------------------------------------------------

    def _start_settle_timer(self, pending: PendingMove) -> None:
        self._cancel_settle_timer()
        loop = asyncio.get_running_loop()
        self._settle_handle = loop.call_later(self.settle_timeout, self._on_settle_timeout, pending)

    def _cancel_settle_timer(self) -> None:
        if self._settle_handle is not None:
            self._settle_handle.cancel()
            self._settle_handle = None

    def _on_settle_timeout(self, pending: PendingMove) -> None:
        self._settle_handle = None
        if self._pending is not pending or self.phase != DragPhase.SETTLING:
            return
        self._revert(pending, f"Move of task {pending.task_id} was not confirmed in time")

    def _revert(self, pending: PendingMove, message: str) -> None:
        self._cancel_settle_timer()
        self._overrides.pop(pending.task_id, None)
        self._pending = None
        self.phase = DragPhase.IDLE
        logger.info("Move reverted", extra={
            "task_id": pending.task_id,
            "from_column": pending.from_column,
            "to_column": pending.to_column
        })
        self._surface_error(message)
        self._emit()

"""
Command layer: turns board/task intents into document-store writes.

Every command runs on behalf of one actor and is checked against the
server-side policy before it touches the store. Commands are fire-and-forget
from the caller's side; the only multi-record operation is the board
deletion cascade, performed as two sequential steps (tasks, then board).
"""
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set
from helpers.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from helpers.policy import (
    can_delete_board, can_view_task, ensure_board_editable, ensure_board_visible,
    ensure_owned_editable, ensure_owned_visible, is_admin,
)
from models.auth import User
from models.boards import Board, Priority, Task
from models.helper import utcnow
from models.reminders import RecurrenceType
from settings import DEFAULT_BOARD_COLUMNS, logger
from store.document_store import DocumentStore, Subscription
from sync.reminders import advance_past

TASK_FIELDS = {
    "content", "description", "priority", "deadline", "estimated_time", "time_spent",
    "github_repo", "github_branch", "github_path", "assigned_to", "is_sharable",
}
BOARD_FIELDS = {"name", "columns", "is_sharable"}
COMPLETION_COLUMNS = ("Done", "Finished")


def normalize_columns(columns: Optional[Iterable[str]]) -> List[str]:
    """Trim names, drop blanks and duplicates (first wins); empty means defaults."""
    seen: Set[str] = set()
    normalized = []
    for column in columns or []:
        name = (column or "").strip()
        if name and name not in seen:
            seen.add(name)
            normalized.append(name)
    return normalized or list(DEFAULT_BOARD_COLUMNS)


def member_from_user(user: User) -> Dict[str, Optional[str]]:
    return {"id": user.id, "username": user.username, "avatar_url": user.avatar_url}


def completion_column(columns: List[str]) -> str:
    for column in COMPLETION_COLUMNS:
        if column in columns:
            return column
    return columns[-1]


def _coerce_priority(value: Any) -> Priority:
    try:
        return Priority(value)
    except ValueError:
        raise ValidationError(f"Invalid priority: {value}")


def _check_hours(fields: Mapping[str, Any]) -> None:
    for key in ("estimated_time", "time_spent"):
        value = fields.get(key)
        if value is not None and value < 0:
            raise ValidationError(f"{key} cannot be negative")


class BoardCommands:
    """Board and task commands issued by one actor (None for anonymous reads)."""

    def __init__(self, store: DocumentStore, actor: Optional[User]):
        self.store = store
        self.actor = actor

    def _require_actor(self) -> User:
        if self.actor is None:
            raise ForbiddenError("Sign in to change boards")
        return self.actor

    # -- reads -------------------------------------------------------------

    async def get_board(self, board_id: str) -> Board:
        return ensure_board_visible(self.actor, await self.store.get("boards", board_id))

    async def get_task(self, task_id: str) -> Task:
        task = await self.store.get("tasks", task_id)
        if task is None:
            raise NotFoundError("Task not found")
        board = await self.store.get("boards", task.board_id)
        if not can_view_task(self.actor, task, board):
            raise NotFoundError("Task not found")
        return task

    async def list_tasks(self, board_id: str) -> List[Task]:
        await self.get_board(board_id)
        return await self.store.query(
            "tasks", where={"board_id": board_id}, order_by="created_at", descending=True
        )

    async def _editable_board(self, board_id: str) -> Board:
        self._require_actor()
        return ensure_board_editable(self.actor, await self.store.get("boards", board_id))

    async def _editable_task(self, task_id: str) -> tuple:
        self._require_actor()
        task = await self.store.get("tasks", task_id)
        if task is None:
            raise NotFoundError("Task not found")
        board = await self.store.get("boards", task.board_id)
        if board is None:
            raise NotFoundError("Board not found")
        return task, ensure_board_editable(self.actor, board)

    # -- boards ------------------------------------------------------------

    async def create_board(self, name: str, columns: Optional[Iterable[str]] = None) -> str:
        actor = self._require_actor()
        name = (name or "").strip()
        if not name:
            raise ValidationError("Board name is required")

        board_id = await self.store.create("boards", {
            "name": name,
            "columns": normalize_columns(columns),
            "owner_id": actor.id,
            "members": [],
        })
        logger.info("Board created", extra={"board_id": board_id, "owner_id": actor.id})
        return board_id

    async def update_board(self, board_id: str, fields: Mapping[str, Any]) -> None:
        await self._editable_board(board_id)
        unknown = set(fields) - BOARD_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be changed on a board: {sorted(unknown)}")

        changes = dict(fields)
        if "name" in changes:
            changes["name"] = (changes["name"] or "").strip()
            if not changes["name"]:
                raise ValidationError("Board name is required")
        if "columns" in changes:
            # Tasks left in removed columns are shown under the fallback column
            changes["columns"] = normalize_columns(changes["columns"])

        await self.store.update("boards", board_id, changes)
        logger.info("Board updated", extra={"board_id": board_id, "fields": sorted(changes)})

    async def set_board_sharable(self, board_id: str, is_sharable: bool) -> None:
        await self.update_board(board_id, {"is_sharable": bool(is_sharable)})

    async def delete_board(self, board_id: str) -> bool:
        """
        Delete a board and its tasks. Returns False if the board is already gone.

        Tasks are removed first, then the board; the two steps are not atomic.
        """
        actor = self._require_actor()
        board = await self.store.get("boards", board_id)
        if board is None:
            logger.info("Board already deleted", extra={"board_id": board_id})
            return False
        ensure_board_visible(actor, board)
        if not can_delete_board(actor, board):
            raise ForbiddenError("Only the board owner can delete this board")

        removed_tasks = await self.store.delete_where("tasks", {"board_id": board_id})
        deleted = await self.store.delete("boards", board_id)
        logger.info("Board deleted", extra={
            "board_id": board_id,
            "removed_tasks": removed_tasks,
            "actor_id": actor.id
        })
        return deleted

    async def add_member(self, board_id: str, member: Mapping[str, Optional[str]]) -> List[Dict[str, Optional[str]]]:
        board = await self._editable_board(board_id)
        member_id = member.get("id")
        if not member_id:
            raise ValidationError("Member id is required")
        if member_id == self.actor.id:
            raise ValidationError("You cannot invite yourself")
        if member_id == board.owner_id or member_id in board.member_ids:
            raise ConflictError("User is already a member of this board")

        members = list(board.members or []) + [{
            "id": member_id,
            "username": member.get("username"),
            "avatar_url": member.get("avatar_url"),
        }]
        await self.store.update("boards", board_id, {"members": members})
        logger.info("Board member added", extra={"board_id": board_id, "member_id": member_id})
        return members

    async def remove_member(self, board_id: str, member_id: str) -> List[Dict[str, Optional[str]]]:
        board = await self._editable_board(board_id)
        if member_id not in board.member_ids:
            raise NotFoundError("Member not found")
        members = [m for m in board.members if m["id"] != member_id]
        await self.store.update("boards", board_id, {"members": members})
        logger.info("Board member removed", extra={"board_id": board_id, "member_id": member_id})
        return members

    # -- tasks -------------------------------------------------------------

    def _clean_task_fields(self, fields: Mapping[str, Any], board: Board) -> Dict[str, Any]:
        unknown = set(fields) - TASK_FIELDS
        if unknown:
            raise ValidationError(f"Unknown task fields: {sorted(unknown)}")

        cleaned = dict(fields)
        if "content" in cleaned:
            cleaned["content"] = (cleaned["content"] or "").strip()
            if not cleaned["content"]:
                raise ValidationError("Task content is required")
        if cleaned.get("priority") is not None:
            cleaned["priority"] = _coerce_priority(cleaned["priority"])
        elif "priority" in cleaned:
            cleaned["priority"] = Priority.MEDIUM
        _check_hours(cleaned)

        assignee = cleaned.get("assigned_to")
        if assignee and assignee != board.owner_id and assignee not in board.member_ids:
            raise ValidationError("Tasks can only be assigned to board members")
        return cleaned

    @staticmethod
    def _check_column(column: Optional[str], board: Board) -> str:
        if not column or column not in (board.columns or []):
            raise ValidationError(f"Column '{column}' does not exist on this board")
        return column

    async def create_task(
        self,
        board_id: str,
        fields: Mapping[str, Any],
        column: str,
        creator: Optional[str] = None,
    ) -> str:
        board = await self._editable_board(board_id)
        cleaned = self._clean_task_fields(fields, board)
        if not cleaned.get("content"):
            raise ValidationError("Task content is required")
        cleaned.setdefault("priority", Priority.MEDIUM)

        task_id = await self.store.create("tasks", {
            **cleaned,
            "board_id": board_id,
            "column": self._check_column(column, board),
            "created_by": creator or self.actor.id,
        })
        logger.info("Task created", extra={"task_id": task_id, "board_id": board_id, "column": column})
        return task_id

    async def update_task(self, task_id: str, fields: Mapping[str, Any]) -> None:
        task, board = await self._editable_task(task_id)
        changes = dict(fields)
        column = changes.pop("column", None)
        cleaned = self._clean_task_fields(changes, board)
        if column is not None:
            cleaned["column"] = self._check_column(column, board)

        await self.store.update("tasks", task_id, cleaned)
        logger.info("Task updated", extra={"task_id": task_id, "fields": sorted(cleaned)})

    async def move_task(self, task_id: str, column: str) -> None:
        """Persist a column change; the only write a drag gesture ever issues."""
        task, board = await self._editable_task(task_id)
        self._check_column(column, board)

        await self.store.update("tasks", task_id, {"column": column})
        logger.info("Task moved", extra={
            "task_id": task_id,
            "board_id": board.id,
            "from_column": task.column,
            "to_column": column
        })

    async def complete_task(self, task_id: str) -> str:
        task, board = await self._editable_task(task_id)
        column = completion_column(board.columns)
        if task.column != column:
            await self.store.update("tasks", task_id, {"column": column})
        return column

    async def set_task_sharable(self, task_id: str, is_sharable: bool) -> None:
        await self.update_task(task_id, {"is_sharable": bool(is_sharable)})

    async def delete_task(self, task_id: str) -> bool:
        actor = self._require_actor()
        task = await self.store.get("tasks", task_id)
        if task is None:
            return False
        board = await self.store.get("boards", task.board_id)
        if board is None:
            if not (is_admin(actor) or task.created_by == actor.id):
                raise NotFoundError("Task not found")
        else:
            ensure_board_editable(actor, board)

        deleted = await self.store.delete("tasks", task_id)
        logger.info("Task deleted", extra={"task_id": task_id, "board_id": task.board_id})
        return deleted


class OwnedEntityCommands:
    """CRUD for single-owner collections (reminders, notes, goals)."""
    collection = ""
    label = ""
    fields: Set[str] = set()
    required: Set[str] = set()
    order_by = "created_at"
    descending = True

    def __init__(self, store: DocumentStore, actor: Optional[User]):
        self.store = store
        self.actor = actor

    def _require_actor(self) -> User:
        if self.actor is None:
            raise ForbiddenError(f"Sign in to change {self.label.lower()}s")
        return self.actor

    def clean(self, fields: Mapping[str, Any], creating: bool, current: Any = None) -> Dict[str, Any]:
        """Validate a create or update payload; `current` is the stored record on update."""
        unknown = set(fields) - self.fields
        if unknown:
            raise ValidationError(f"Unknown {self.label.lower()} fields: {sorted(unknown)}")
        cleaned = dict(fields)
        for key in self.required:
            if key in cleaned or creating:
                value = cleaned.get(key)
                if value is None or (isinstance(value, str) and not value.strip()):
                    raise ValidationError(f"{key} is required")
        if cleaned.get("priority") is not None:
            cleaned["priority"] = _coerce_priority(cleaned["priority"])
        return cleaned

    async def get(self, record_id: str) -> Any:
        return ensure_owned_visible(self.actor, await self.store.get(self.collection, record_id), self.label)

    async def list(self) -> List[Any]:
        actor = self._require_actor()
        return await self.store.query(
            self.collection, where={"user_id": actor.id},
            order_by=self.order_by, descending=self.descending
        )

    async def create(self, fields: Mapping[str, Any]) -> str:
        actor = self._require_actor()
        record_id = await self.store.create(self.collection, {**self.clean(fields, creating=True), "user_id": actor.id})
        logger.info(f"{self.label} created", extra={"record_id": record_id, "user_id": actor.id})
        return record_id

    async def update(self, record_id: str, fields: Mapping[str, Any]) -> None:
        self._require_actor()
        current = ensure_owned_editable(self.actor, await self.store.get(self.collection, record_id), self.label)
        await self.store.update(self.collection, record_id, self.clean(fields, creating=False, current=current))

    async def set_shared(self, record_id: str, is_shared: bool) -> None:
        await self.update(record_id, {"is_shared": bool(is_shared)})

    async def delete(self, record_id: str) -> bool:
        self._require_actor()
        record = await self.store.get(self.collection, record_id)
        if record is None:
            return False
        ensure_owned_editable(self.actor, record, self.label)
        return await self.store.delete(self.collection, record_id)

    async def subscribe(self, on_snapshot, on_error=None) -> Subscription:
        actor = self._require_actor()
        return await self.store.subscribe(
            self.collection, on_snapshot, where={"user_id": actor.id},
            order_by=self.order_by, descending=self.descending, on_error=on_error
        )


class NoteCommands(OwnedEntityCommands):
    collection = "notes"
    label = "Note"
    fields = {"title", "content", "is_shared"}

    def clean(self, fields, creating, current=None):
        cleaned = super().clean(fields, creating, current)
        cleaned["updated_at"] = utcnow()
        return cleaned


class GoalCommands(OwnedEntityCommands):
    collection = "goals"
    label = "Goal"
    fields = {"title", "notes", "priority", "deadline", "is_completed", "is_shared"}
    required = {"title"}


class ReminderCommands(OwnedEntityCommands):
    collection = "reminders"
    label = "Reminder"
    fields = {"title", "description", "date_time", "recurrence", "custom_interval", "is_completed", "is_shared"}
    required = {"title", "date_time"}
    order_by = "date_time"
    descending = False

    def clean(self, fields, creating, current=None):
        cleaned = super().clean(fields, creating, current)
        if cleaned.get("recurrence") is not None:
            try:
                cleaned["recurrence"] = RecurrenceType(cleaned["recurrence"])
            except ValueError:
                raise ValidationError(f"Invalid recurrence: {cleaned['recurrence']}")
        if not creating and "recurrence" not in cleaned and "custom_interval" not in cleaned:
            return cleaned

        # Checked against the record as it will be stored after this write
        recurrence = cleaned.get("recurrence")
        if recurrence is None:
            recurrence = RecurrenceType(current.recurrence) if current is not None else RecurrenceType.NONE
            if "recurrence" in cleaned:
                cleaned["recurrence"] = recurrence
        if "custom_interval" in cleaned:
            interval = cleaned["custom_interval"]
        else:
            interval = current.custom_interval if current is not None else None

        if recurrence == RecurrenceType.CUSTOM:
            if not interval or interval < 1:
                raise ValidationError("Custom reminders need an interval of at least one day")
        else:
            cleaned["custom_interval"] = None
        return cleaned

    async def complete(self, record_id: str) -> Any:
        """Mark done, or roll a recurring reminder forward to its next occurrence."""
        self._require_actor()
        reminder = ensure_owned_editable(self.actor, await self.store.get(self.collection, record_id), self.label)
        if reminder.recurrence == RecurrenceType.NONE:
            changes = {"is_completed": True}
        else:
            changes = {"date_time": advance_past(reminder, utcnow())}
        await self.store.update(self.collection, record_id, changes)
        return await self.store.get(self.collection, record_id)

"""
Server-side authorization rules.

Reads that fail a rule surface as "not found" so private entities do not
leak their existence; mutations that fail a rule on a visible entity are
forbidden.
"""
from typing import Any, Optional
from models.auth import User, UserRole
from models.boards import Board, Task
from helpers.errors import NotFoundError, ForbiddenError


def is_admin(user: Optional[User]) -> bool:
    return user is not None and user.role == UserRole.ADMIN


def is_board_participant(user: Optional[User], board: Board) -> bool:
    """Owner or invited member."""
    if user is None:
        return False
    return user.id == board.owner_id or user.id in board.member_ids


def can_view_board(user: Optional[User], board: Board) -> bool:
    return board.is_sharable or is_admin(user) or is_board_participant(user, board)


def can_edit_board(user: Optional[User], board: Board) -> bool:
    return is_admin(user) or is_board_participant(user, board)


def can_delete_board(user: Optional[User], board: Board) -> bool:
    return is_admin(user) or (user is not None and user.id == board.owner_id)


def can_view_task(user: Optional[User], task: Task, board: Optional[Board]) -> bool:
    if task.is_sharable or is_admin(user):
        return True
    if board is None:
        # Orphaned by an interrupted board deletion
        return user is not None and task.created_by == user.id
    return can_view_board(user, board)


def can_view_owned(user: Optional[User], entity: Any) -> bool:
    return bool(getattr(entity, "is_shared", False)) or can_edit_owned(user, entity)


def can_edit_owned(user: Optional[User], entity: Any) -> bool:
    return is_admin(user) or (user is not None and entity.user_id == user.id)


def ensure_board_visible(user: Optional[User], board: Optional[Board]) -> Board:
    if board is None or not can_view_board(user, board):
        raise NotFoundError("Board not found")
    return board


def ensure_board_editable(user: Optional[User], board: Optional[Board]) -> Board:
    board = ensure_board_visible(user, board)
    if not can_edit_board(user, board):
        raise ForbiddenError("Only the board owner or its members can change this board")
    return board


def ensure_owned_visible(user: Optional[User], entity: Any, label: str) -> Any:
    if entity is None or not can_view_owned(user, entity):
        raise NotFoundError(f"{label} not found")
    return entity


def ensure_owned_editable(user: Optional[User], entity: Any, label: str) -> Any:
    entity = ensure_owned_visible(user, entity, label)
    if not can_edit_owned(user, entity):
        raise ForbiddenError(f"Only the owner can change this {label.lower()}")
    return entity

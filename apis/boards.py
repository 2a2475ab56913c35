from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session
from database import get_session, get_store
from models.auth import User
from models.boards import Board
from helpers.auth import get_current_user, get_optional_user
from helpers.errors import command_errors
from store.document_store import DocumentStore
from sync.commands import BoardCommands, member_from_user
from sync.reorder import group_tasks_by_column
from .schemas.auth import MemberResponse
from .schemas.boards import AddMemberRequest, BoardDetailResponse, BoardResponse, CreateBoardRequest, UpdateBoardRequest
from .schemas.tasks import TaskResponse
from apis.schemas.base import MessageResponse
from typing import List, Optional

router = APIRouter(prefix="/boards", tags=["boards"])


def board_detail(board: Board, tasks) -> BoardDetailResponse:
    grouped = group_tasks_by_column(tasks, board.columns)
    return BoardDetailResponse(
        **BoardResponse.model_validate(board).model_dump(),
        tasks=[TaskResponse.model_validate(task) for task in tasks],
        tasks_by_column={
            column: [TaskResponse.model_validate(task) for task in column_tasks]
            for column, column_tasks in grouped.items()
        }
    )


@router.get("")
async def list_boards(
    user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_store)
) -> List[BoardResponse]:
    """List boards the user owns or has been invited to, newest first."""
    with command_errors():
        boards = await document_store.query(
            "boards", order_by="created_at", descending=True,
            predicate=lambda board: board.owner_id == user.id or user.id in board.member_ids
        )
    return [BoardResponse.model_validate(board) for board in boards]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_board(
    board_data: CreateBoardRequest,
    user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_store)
) -> BoardResponse:
    """Create a new board owned by the caller."""
    commands = BoardCommands(document_store, user)
    with command_errors():
        board_id = await commands.create_board(board_data.name, board_data.columns)
        board = await commands.get_board(board_id)
    return BoardResponse.model_validate(board)


@router.get("/{board_id}")
async def get_board(
    board_id: str,
    user: Optional[User] = Depends(get_optional_user),
    document_store: DocumentStore = Depends(get_store)
) -> BoardDetailResponse:
    """Get board with its columns and tasks. Shared boards are readable without a token."""
    commands = BoardCommands(document_store, user)
    with command_errors():
        board = await commands.get_board(board_id)
        tasks = await commands.list_tasks(board_id)
    return board_detail(board, tasks)


@router.get("/{board_id}/tasks")
async def list_board_tasks(
    board_id: str,
    user: Optional[User] = Depends(get_optional_user),
    document_store: DocumentStore = Depends(get_store)
) -> List[TaskResponse]:
    commands = BoardCommands(document_store, user)
    with command_errors():
        tasks = await commands.list_tasks(board_id)
    return [TaskResponse.model_validate(task) for task in tasks]


@router.put("/{board_id}")
async def update_board(
    board_id: str,
    board_data: UpdateBoardRequest,
    user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_store)
) -> BoardResponse:
    """Rename, change columns, or toggle link sharing."""
    commands = BoardCommands(document_store, user)
    with command_errors():
        await commands.update_board(board_id, board_data.model_dump(exclude_unset=True, exclude_none=True))
        board = await commands.get_board(board_id)
    return BoardResponse.model_validate(board)


@router.delete("/{board_id}")
async def delete_board(
    board_id: str,
    user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_store)
) -> MessageResponse:
    """Delete a board and all of its tasks."""
    commands = BoardCommands(document_store, user)
    with command_errors():
        deleted = await commands.delete_board(board_id)

    if not deleted:
        return MessageResponse(message="Board already deleted")
    return MessageResponse(message="Board deleted successfully")


@router.post("/{board_id}/members", status_code=status.HTTP_201_CREATED)
async def add_member(
    board_id: str,
    member_data: AddMemberRequest,
    user: User = Depends(get_current_user),
    db_session: Session = Depends(get_session),
    document_store: DocumentStore = Depends(get_store)
) -> List[MemberResponse]:
    """Invite an existing user to the board."""
    invitee = db_session.get(User, member_data.user_id)
    if not invitee or not invitee.is_active:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    commands = BoardCommands(document_store, user)
    with command_errors():
        members = await commands.add_member(board_id, member_from_user(invitee))
    return [MemberResponse.model_validate(member) for member in members]


@router.delete("/{board_id}/members/{member_id}")
async def remove_member(
    board_id: str,
    member_id: str,
    user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_store)
) -> List[MemberResponse]:
    commands = BoardCommands(document_store, user)
    with command_errors():
        members = await commands.remove_member(board_id, member_id)
    return [MemberResponse.model_validate(member) for member in members]

from fastapi import APIRouter, Depends, HTTPException, status
from database import get_store
from models.auth import User
from helpers.auth import get_current_user, get_optional_user
from helpers.errors import command_errors
from store.document_store import DocumentStore
from sync.commands import BoardCommands
from .schemas.tasks import CompleteTaskResponse, CreateTaskRequest, MoveTaskRequest, TaskResponse, UpdateTaskRequest
from apis.schemas.base import MessageResponse
from typing import Optional

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: CreateTaskRequest,
    user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_store)
) -> TaskResponse:
    """Create a new task in one of the board's columns."""
    fields = task_data.model_dump(exclude_none=True, exclude={"board_id", "column"})
    commands = BoardCommands(document_store, user)
    with command_errors():
        task_id = await commands.create_task(task_data.board_id, fields, task_data.column)
        task = await commands.get_task(task_id)
    return TaskResponse.model_validate(task)


@router.get("/{task_id}")
async def get_task(
    task_id: str,
    user: Optional[User] = Depends(get_optional_user),
    document_store: DocumentStore = Depends(get_store)
) -> TaskResponse:
    """Get a task. Shared tasks are readable without a token."""
    commands = BoardCommands(document_store, user)
    with command_errors():
        task = await commands.get_task(task_id)
    return TaskResponse.model_validate(task)


@router.put("/{task_id}")
async def update_task(
    task_id: str,
    task_data: UpdateTaskRequest,
    user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_store)
) -> TaskResponse:
    """Update task fields. Only fields present in the body are changed."""
    fields = task_data.model_dump(exclude_unset=True)
    # Explicit nulls clear optional fields; these three cannot be cleared
    for key in ("content", "column", "is_sharable"):
        if key in fields and fields[key] is None:
            del fields[key]

    commands = BoardCommands(document_store, user)
    with command_errors():
        await commands.update_task(task_id, fields)
        task = await commands.get_task(task_id)
    return TaskResponse.model_validate(task)


@router.post("/{task_id}/move")
async def move_task(
    task_id: str,
    move_data: MoveTaskRequest,
    user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_store)
) -> TaskResponse:
    commands = BoardCommands(document_store, user)
    with command_errors():
        await commands.move_task(task_id, move_data.column)
        task = await commands.get_task(task_id)
    return TaskResponse.model_validate(task)


@router.post("/{task_id}/complete")
async def complete_task(
    task_id: str,
    user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_store)
) -> CompleteTaskResponse:
    """Move the task to the board's completion column."""
    commands = BoardCommands(document_store, user)
    with command_errors():
        column = await commands.complete_task(task_id)
    return CompleteTaskResponse(id=task_id, column=column)


@router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_store)
) -> MessageResponse:
    commands = BoardCommands(document_store, user)
    with command_errors():
        deleted = await commands.delete_task(task_id)

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Task not found"
        )
    return MessageResponse(message="Task deleted successfully")

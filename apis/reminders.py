from fastapi import APIRouter, Depends, HTTPException, status
from database import get_store
from models.auth import User
from helpers.auth import get_current_user, get_optional_user
from helpers.errors import command_errors
from store.document_store import DocumentStore
from sync.commands import ReminderCommands
from .schemas.personal import CreateReminderRequest, ReminderResponse, UpdateReminderRequest
from apis.schemas.base import MessageResponse
from typing import List, Optional

router = APIRouter(prefix="/reminders", tags=["reminders"])


@router.get("")
async def list_reminders(
    user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_store)
) -> List[ReminderResponse]:
    """List the caller's reminders, soonest first."""
    with command_errors():
        reminders = await ReminderCommands(document_store, user).list()
    return [ReminderResponse.model_validate(reminder) for reminder in reminders]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_reminder(
    reminder_data: CreateReminderRequest,
    user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_store)
) -> ReminderResponse:
    commands = ReminderCommands(document_store, user)
    with command_errors():
        reminder_id = await commands.create(reminder_data.model_dump(exclude_none=True))
        reminder = await commands.get(reminder_id)
    return ReminderResponse.model_validate(reminder)


@router.get("/{reminder_id}")
async def get_reminder(
    reminder_id: str,
    user: Optional[User] = Depends(get_optional_user),
    document_store: DocumentStore = Depends(get_store)
) -> ReminderResponse:
    """Get a reminder. Shared reminders are readable without a token."""
    with command_errors():
        reminder = await ReminderCommands(document_store, user).get(reminder_id)
    return ReminderResponse.model_validate(reminder)


@router.put("/{reminder_id}")
async def update_reminder(
    reminder_id: str,
    reminder_data: UpdateReminderRequest,
    user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_store)
) -> ReminderResponse:
    commands = ReminderCommands(document_store, user)
    with command_errors():
        await commands.update(reminder_id, reminder_data.model_dump(exclude_unset=True, exclude_none=True))
        reminder = await commands.get(reminder_id)
    return ReminderResponse.model_validate(reminder)


@router.post("/{reminder_id}/complete")
async def complete_reminder(
    reminder_id: str,
    user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_store)
) -> ReminderResponse:
    """Mark a one-off reminder done, or move a recurring one to its next date."""
    with command_errors():
        reminder = await ReminderCommands(document_store, user).complete(reminder_id)
    return ReminderResponse.model_validate(reminder)


@router.delete("/{reminder_id}")
async def delete_reminder(
    reminder_id: str,
    user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_store)
) -> MessageResponse:
    with command_errors():
        deleted = await ReminderCommands(document_store, user).delete(reminder_id)

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Reminder not found"
        )
    return MessageResponse(message="Reminder deleted successfully")

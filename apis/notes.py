from fastapi import APIRouter, Depends, HTTPException, status
from database import get_store
from models.auth import User
from helpers.auth import get_current_user, get_optional_user
from helpers.errors import command_errors
from store.document_store import DocumentStore
from sync.commands import NoteCommands
from .schemas.personal import CreateNoteRequest, NoteResponse, UpdateNoteRequest
from apis.schemas.base import MessageResponse
from typing import List, Optional

router = APIRouter(prefix="/notes", tags=["notes"])


@router.get("")
async def list_notes(
    user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_store)
) -> List[NoteResponse]:
    with command_errors():
        notes = await NoteCommands(document_store, user).list()
    return [NoteResponse.model_validate(note) for note in notes]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_note(
    note_data: CreateNoteRequest,
    user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_store)
) -> NoteResponse:
    commands = NoteCommands(document_store, user)
    with command_errors():
        note_id = await commands.create(note_data.model_dump())
        note = await commands.get(note_id)
    return NoteResponse.model_validate(note)


@router.get("/{note_id}")
async def get_note(
    note_id: str,
    user: Optional[User] = Depends(get_optional_user),
    document_store: DocumentStore = Depends(get_store)
) -> NoteResponse:
    """Get a note. Shared notes are readable without a token."""
    with command_errors():
        note = await NoteCommands(document_store, user).get(note_id)
    return NoteResponse.model_validate(note)


@router.put("/{note_id}")
async def update_note(
    note_id: str,
    note_data: UpdateNoteRequest,
    user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_store)
) -> NoteResponse:
    commands = NoteCommands(document_store, user)
    with command_errors():
        await commands.update(note_id, note_data.model_dump(exclude_unset=True, exclude_none=True))
        note = await commands.get(note_id)
    return NoteResponse.model_validate(note)


@router.delete("/{note_id}")
async def delete_note(
    note_id: str,
    user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_store)
) -> MessageResponse:
    with command_errors():
        deleted = await NoteCommands(document_store, user).delete(note_id)

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Note not found"
        )
    return MessageResponse(message="Note deleted successfully")

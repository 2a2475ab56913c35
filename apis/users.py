from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session, col, select
from database import get_session, get_store
from models.auth import User
from .schemas.auth import UserResponse, MemberResponse
from helpers.auth import get_current_user, require_admin
from helpers.errors import command_errors
from store.document_store import DocumentStore
from sync.commands import BoardCommands, member_from_user
from typing import List, Optional

router = APIRouter(prefix="/users", tags=["users"])

SEARCH_MIN_CHARS = 3
SEARCH_MAX_RESULTS = 5


@router.get("/me")
async def get_me(user: User = Depends(get_current_user)) -> UserResponse:
    """Get the signed-in user."""
    return UserResponse.model_validate(user)


@router.get("/search")
async def search_users(
    email: str = Query(..., description="Part of the email address"),
    board_id: Optional[str] = Query(default=None, description="Exclude users already on this board"),
    user: User = Depends(get_current_user),
    db_session: Session = Depends(get_session),
    document_store: DocumentStore = Depends(get_store)
) -> List[MemberResponse]:
    """Find users to invite; never returns the caller or current members."""
    term = email.strip().lower()
    if len(term) < SEARCH_MIN_CHARS:
        return []

    excluded = {user.id}
    if board_id:
        with command_errors():
            board = await BoardCommands(document_store, user).get_board(board_id)
        excluded.add(board.owner_id)
        excluded.update(board.member_ids)

    statement = (
        select(User)
        .where(User.is_active == True)  # noqa: E712
        .where(col(User.email).ilike(f"%{term}%"))
        .order_by(User.username)
    )
    matches = [candidate for candidate in db_session.exec(statement).all() if candidate.id not in excluded]
    return [MemberResponse.model_validate(member_from_user(candidate)) for candidate in matches[:SEARCH_MAX_RESULTS]]


@router.get("/")
async def list_users(
    is_active: bool = True,
    user: User = Depends(get_current_user),
    db_session: Session = Depends(get_session)
) -> List[UserResponse]:
    """List all users (Admins only)."""
    await require_admin(user)

    user_statement = select(User).where(User.is_active == is_active)
    users = db_session.exec(user_statement).all()
    return [UserResponse.model_validate(listed) for listed in users]


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    user: User = Depends(get_current_user),
    db_session: Session = Depends(get_session)
) -> MemberResponse:
    """Public profile of another user."""
    found = db_session.get(User, user_id)
    if not found or not found.is_active:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return MemberResponse.model_validate(member_from_user(found))

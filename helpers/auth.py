from fastapi import Depends, Header, HTTPException, status
from sqlmodel import Session, select
from typing import Optional
from database import get_session
from models.auth import Token, User, UserRole
from models.helper import ensure_utc, utcnow


def lookup_token(access_token: str, db_session: Session) -> Optional[Token]:
    """Return the live (unrevoked, unexpired) token row for a bearer value."""
    statement = select(Token).where(Token.access_token == access_token)
    token = db_session.exec(statement).first()
    if not token or token.is_revoked:
        return None
    if ensure_utc(token.expires_at) <= utcnow():
        return None
    return token


async def get_auth_token(
    authorization: Optional[str] = Header(default=None),
    db_session: Session = Depends(get_session)
) -> Token:
    """Resolve the bearer token of the request or fail with 401."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid authorization header"
        )

    token = lookup_token(authorization[len("Bearer "):].strip(), db_session)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token"
        )
    return token


async def get_current_user(
    token: Token = Depends(get_auth_token),
    db_session: Session = Depends(get_session)
) -> User:
    """Acting user behind the request token."""
    user = db_session.get(User, token.user_id)
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive"
        )
    return user


async def get_optional_user(
    authorization: Optional[str] = Header(default=None),
    db_session: Session = Depends(get_session)
) -> Optional[User]:
    """Like get_current_user, but anonymous requests resolve to None (shared links)."""
    if not authorization:
        return None
    token = await get_auth_token(authorization=authorization, db_session=db_session)
    return await get_current_user(token=token, db_session=db_session)


def user_for_access_token(access_token: str, db_session: Session) -> Optional[User]:
    token = lookup_token(access_token, db_session)
    if not token:
        return None
    user = db_session.get(User, token.user_id)
    if not user or not user.is_active:
        return None
    return user


async def require_admin(user: User) -> User:
    if user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return user

#!/usr/bin/env python3
"""
Management commands for Astra.

Usage:
    python manage.py init_db
    python manage.py check_db
    python manage.py reset_db
    python manage.py create_user <username> <email> [--admin]
    python manage.py issue_token <username> [days]
"""

import sys
import secrets
from datetime import timedelta
from sqlmodel import SQLModel, select, text
from database import engine, get_session
from settings import logger
# Import all models to ensure tables are created
from models.auth import User, UserRole, Token
from models.boards import Board, Task
from models.goals import Goal
from models.market import MarketSnapshot
from models.notes import Note
from models.reminders import Reminder
from models.helper import utcnow

DEFAULT_TOKEN_DAYS = 30


def init_db():
    """Initialize database tables."""
    logger.info("Creating database tables...")
    SQLModel.metadata.create_all(engine)
    logger.info("Database tables created successfully")


def check_db():
    """Check database connection and tables."""
    try:
        with next(get_session()) as session:
            result = session.exec(text("SELECT name FROM sqlite_master WHERE type='table'"))
            tables = result.fetchall()
            logger.info(f"Database connected. Found {len(tables)} tables: {[t[0] for t in tables]}")
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        sys.exit(1)


def reset_db():
    """Drop and recreate all database tables."""
    logger.warning("Dropping all database tables...")
    SQLModel.metadata.drop_all(engine)
    logger.info("Creating database tables...")
    SQLModel.metadata.create_all(engine)
    logger.info("Database reset successfully")


def create_user(username: str, email: str, admin: bool = False):
    """Create a user."""
    try:
        with next(get_session()) as session:
            user = User(
                username=username,
                email=email,
                role=UserRole.ADMIN if admin else UserRole.MEMBER,
                is_active=True
            )

            session.add(user)
            session.commit()
            session.refresh(user)

            logger.info(f"User '{username}' created successfully with ID: {user.id}")
    except Exception as e:
        logger.error(f"Failed to create user: {e}")
        sys.exit(1)


def issue_token(username: str, days: int = DEFAULT_TOKEN_DAYS) -> str:
    """Issue a bearer token for an existing user and print it."""
    with next(get_session()) as session:
        user = session.exec(select(User).where(User.username == username)).first()
        if not user:
            logger.error(f"User '{username}' not found")
            sys.exit(1)

        token = Token(
            user_id=user.id,
            access_token=secrets.token_urlsafe(32),
            expires_at=utcnow() + timedelta(days=days)
        )
        session.add(token)
        session.commit()

        logger.info(f"Token issued for '{username}'", extra={"expires_at": token.expires_at.isoformat()})
        print(token.access_token)
        return token.access_token


def main():
    if len(sys.argv) < 2:
        print("Usage: python manage.py <command> [args]")
        print("Commands:")
        print("  init_db                                - Initialize database tables")
        print("  check_db                               - Check database connection")
        print("  reset_db                               - Drop and recreate all tables")
        print("  create_user <username> <email> [--admin] - Create a user")
        print("  issue_token <username> [days]          - Issue a bearer token")
        sys.exit(1)

    command = sys.argv[1]

    if command == "init_db":
        init_db()
    elif command == "check_db":
        check_db()
    elif command == "reset_db":
        reset_db()
    elif command == "create_user":
        if len(sys.argv) not in (4, 5) or (len(sys.argv) == 5 and sys.argv[4] != "--admin"):
            print("Usage: python manage.py create_user <username> <email> [--admin]")
            sys.exit(1)
        create_user(sys.argv[2], sys.argv[3], admin=len(sys.argv) == 5)
    elif command == "issue_token":
        if len(sys.argv) not in (3, 4):
            print("Usage: python manage.py issue_token <username> [days]")
            sys.exit(1)
        days = int(sys.argv[3]) if len(sys.argv) == 4 else DEFAULT_TOKEN_DAYS
        issue_token(sys.argv[2], days)
    else:
        print(f"Unknown command: {command}")
        print("Run 'python manage.py' to see available commands")
        sys.exit(1)


if __name__ == "__main__":
    main()

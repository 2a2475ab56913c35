import pytest
from datetime import timedelta
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine, Session, SQLModel
from models.auth import User, Token, UserRole
from models.boards import Board, Task
from models.goals import Goal  # Need to import to create tables
from models.market import MarketSnapshot  # Need to import to create tables
from models.notes import Note  # Need to import to create tables
from models.reminders import Reminder  # Need to import to create tables
from models.helper import utcnow
from store.document_store import DocumentStore


@pytest.fixture(name="engine")
def engine_fixture():
    # One shared connection so every store session sees the same in-memory database
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="store")
def store_fixture(engine):
    return DocumentStore(engine)


def make_user(session: Session, username: str, role: UserRole = UserRole.MEMBER, token: str = None) -> User:
    user = User(username=username, email=f"{username}@example.com", role=role)
    session.add(user)
    session.commit()
    session.refresh(user)
    if token:
        session.add(Token(
            user_id=user.id,
            access_token=token,
            expires_at=utcnow() + timedelta(hours=1)
        ))
        session.commit()
    return user


@pytest.fixture(name="owner")
def owner_fixture(session):
    return make_user(session, "owner", token="owner_token")


@pytest.fixture(name="member")
def member_fixture(session):
    return make_user(session, "member", token="member_token")


@pytest.fixture(name="outsider")
def outsider_fixture(session):
    return make_user(session, "outsider", token="outsider_token")


@pytest.fixture(name="admin")
def admin_fixture(session):
    return make_user(session, "admin", role=UserRole.ADMIN, token="admin_token")


@pytest.fixture(name="board")
def board_fixture(session, owner, member):
    board = Board(
        name="Launch",
        columns=["To Do", "In Progress", "Done"],
        owner_id=owner.id,
        members=[{"id": member.id, "username": member.username, "avatar_url": None}]
    )
    session.add(board)
    session.commit()
    session.refresh(board)
    return board


def make_task(session: Session, board: Board, content: str, column: str, **fields) -> Task:
    task = Task(board_id=board.id, content=content, column=column, created_by=board.owner_id, **fields)
    session.add(task)
    session.commit()
    session.refresh(task)
    return task

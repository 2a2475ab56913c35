from sqlmodel import create_engine, Session
from settings import DATABASE_URL
from store.document_store import DocumentStore

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=connect_args)

# One store per process so every request and socket shares the same listeners
store = DocumentStore(engine)


def get_session():
    with Session(engine) as session:
        yield session


def get_store() -> DocumentStore:
    return store

"""Database session factory."""

from collections.abc import Callable, Generator, Iterator
from contextlib import contextmanager

from sqlalchemy.orm import Session, sessionmaker

from backend.app.db.engine import engine

SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)

SessionFactory = Callable[[], Session]


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency that yields a DB session and closes it after use."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> SessionFactory:
    """FastAPI dependency returning the factory used for self-managed transactions."""
    return SessionLocal


@contextmanager
def session_scope(factory: SessionFactory) -> Iterator[Session]:
    """Open a session, commit on success, roll back on error, always close."""
    db = factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

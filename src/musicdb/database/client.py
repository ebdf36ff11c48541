from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .schema import Base


def get_engine(database_url: str) -> Engine:
    """Create an engine for `database_url` and make sure the musics table exists."""
    engine = create_engine(database_url, future=True, pool_pre_ping=True)
    Base.metadata.create_all(engine)
    return engine


def get_session(database_url: str) -> Session:
    """Get a SQLAlchemy session (caller must close it)."""
    engine = get_engine(database_url)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)()


@contextmanager
def session_context(database_url: str) -> Generator[Session, None, None]:
    """
    Context manager for SQLAlchemy sessions.

    Rolls back on error and always closes the session. Repository write
    functions commit their own statement, so nothing is committed here.

    Usage:
        with session_context(database_url) as session:
            music = get_music(session, 1)
    """
    session = get_session(database_url)
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

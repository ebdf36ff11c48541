"""Pytest configuration and fixtures."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from musicdb.database.music_repo import insert_music
from musicdb.database.schema import Base
from musicdb.musics.music_models import Music


@pytest.fixture
def engine():
    """In-memory SQLite engine with the musics table created."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session(engine):
    """Create a temporary in-memory database session for testing."""
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_music(session):
    """Insert a music record with sensible defaults; keyword args override fields."""
    def _make(**fields):
        values = {
            "title": "Untitled",
            "duration": 180,
            "popularity": 1.0,
            "genres": ["pop"],
        }
        values.update(fields)
        return insert_music(session, Music(**values))

    return _make

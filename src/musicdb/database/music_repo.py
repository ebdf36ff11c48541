"""Repository functions for the musics table (versioned store).

Every write is a single statement committed on its own. Updates are
optimistic: the UPDATE only matches while the stored version equals the
version the caller last read.
"""

from typing import List, Sequence, Tuple

from sqlalchemy import delete, insert, update
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import (
    EditConflictError,
    InternalError,
    QueryTimeoutError,
    RecordNotFoundError,
    ValidationFailedError,
)
from ..musics.filters import Filters, validate_filters
from ..musics.metadata import Metadata, calculate_metadata
from ..musics.music_models import Music, compact_genres
from ..utils.logging import get_logger
from .music_query import build_list_query, is_statement_timeout, statement_timeout
from .schema import MusicRow

logger = get_logger(__name__)

DEFAULT_LIST_TIMEOUT_SECONDS = 3.0

# bigserial range; ids outside it cannot exist
MAX_MUSIC_ID = 2**63 - 1


def _row_to_music(row: MusicRow) -> Music:
    """Convert MusicRow ORM row to Music model."""
    return Music(
        id=row.id,
        title=row.title,
        duration=row.duration,
        popularity=row.popularity,
        genres=compact_genres(row.genres),
        created_at=row.created_at,
        version=row.version,
    )


def _storage_failure(session: Session, action: str, exc: SQLAlchemyError) -> InternalError:
    session.rollback()
    logger.error("Storage failure during %s", action, exc_info=exc)
    return InternalError()


def insert_music(session: Session, music: Music) -> Music:
    """
    Insert a new music record.

    The store assigns id, created_at and version (1) in the same statement.

    Args:
        session: SQLAlchemy session
        music: Validated record; id/created_at/version are ignored on input

    Returns:
        The same Music instance, populated with the server-assigned fields

    Raises:
        InternalError: On any storage failure (including schema constraints)
    """
    stmt = (
        insert(MusicRow)
        .values(
            title=music.title,
            duration=music.duration,
            popularity=music.popularity,
            genres=list(music.genres or []),
        )
        .returning(MusicRow.id, MusicRow.created_at, MusicRow.version)
    )
    try:
        row = session.execute(stmt).one()
        session.commit()
    except SQLAlchemyError as exc:
        raise _storage_failure(session, "insert", exc) from exc

    music.id, music.created_at, music.version = row.id, row.created_at, row.version
    logger.debug(f"Inserted music {music.id} (version {music.version})")
    return music


def get_music(session: Session, music_id: int) -> Music:
    """
    Fetch one music record by id.

    Raises:
        RecordNotFoundError: If music_id is out of range or no row matches
        InternalError: On any other storage failure
    """
    if not 1 <= music_id <= MAX_MUSIC_ID:
        raise RecordNotFoundError(music_id)

    try:
        row = session.get(MusicRow, music_id, populate_existing=True)
    except SQLAlchemyError as exc:
        raise _storage_failure(session, "get", exc) from exc

    if row is None:
        raise RecordNotFoundError(music_id)
    return _row_to_music(row)


def update_music(session: Session, music: Music) -> Music:
    """
    Conditionally write `music` over the stored row.

    The write only applies while the stored version still equals
    music.version; the version is then advanced by exactly one and copied
    back onto `music` so it can be updated again without re-fetching.

    Raises:
        EditConflictError: If the id is gone or the version has moved on
        InternalError: On storage failure
    """
    stmt = (
        update(MusicRow)
        .where(MusicRow.id == music.id, MusicRow.version == music.version)
        .values(
            title=music.title,
            duration=music.duration,
            popularity=music.popularity,
            genres=list(music.genres or []),
            version=MusicRow.version + 1,
        )
        .returning(MusicRow.version)
        .execution_options(synchronize_session=False)
    )
    try:
        new_version = session.execute(stmt).scalar_one_or_none()
        if new_version is None:
            session.rollback()
            logger.info(f"Edit conflict on music {music.id} at version {music.version}")
            raise EditConflictError(music.id, music.version)
        session.commit()
    except SQLAlchemyError as exc:
        raise _storage_failure(session, "update", exc) from exc

    music.version = new_version
    logger.debug(f"Updated music {music.id} to version {new_version}")
    return music


def delete_music(session: Session, music_id: int) -> None:
    """
    Physically delete a music record.

    Raises:
        RecordNotFoundError: If music_id is out of range or no row was deleted
        InternalError: On storage failure
    """
    if not 1 <= music_id <= MAX_MUSIC_ID:
        raise RecordNotFoundError(music_id)

    stmt = delete(MusicRow).where(MusicRow.id == music_id).execution_options(synchronize_session=False)
    try:
        result = session.execute(stmt)
        if result.rowcount == 0:
            session.rollback()
            raise RecordNotFoundError(music_id)
        session.commit()
    except SQLAlchemyError as exc:
        raise _storage_failure(session, "delete", exc) from exc

    logger.debug(f"Deleted music {music_id}")


def list_musics(
    session: Session,
    search: str,
    genres: Sequence[str],
    filters: Filters,
    timeout_seconds: float = DEFAULT_LIST_TIMEOUT_SECONDS,
) -> Tuple[List[Music], Metadata]:
    """
    List one page of music records matching a title search and genre filter.

    Args:
        session: SQLAlchemy session
        search: Free-text title search ("" matches all)
        genres: Genres each row must contain ([] matches all)
        filters: Page, page size and sort; validated here before any SQL is built
        timeout_seconds: Upper bound for the page and count statements

    Returns:
        (musics, metadata); an empty page is not an error

    Raises:
        ValidationFailedError: If the filters are invalid
        QueryTimeoutError: If the statements ran past timeout_seconds
        InternalError: On any other storage failure
    """
    errors = validate_filters(filters)
    if errors:
        raise ValidationFailedError(errors)

    dialect_name = session.get_bind().dialect.name
    query = build_list_query(search, genres, filters, dialect_name)

    try:
        with statement_timeout(session, timeout_seconds):
            total_records = session.execute(query.count).scalar_one()
            rows = session.execute(query.rows).scalars().all()
            musics = [_row_to_music(row) for row in rows]
        session.rollback()
    except DBAPIError as exc:
        if is_statement_timeout(exc):
            session.rollback()
            logger.warning(f"Music listing exceeded {timeout_seconds}s timeout")
            raise QueryTimeoutError(timeout_seconds) from exc
        raise _storage_failure(session, "list", exc) from exc
    except SQLAlchemyError as exc:
        raise _storage_failure(session, "list", exc) from exc

    return musics, calculate_metadata(total_records, filters.page, filters.page_size)

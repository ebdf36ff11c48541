"""Listing query construction for the musics table.

Text search and genre containment are rendered per dialect:

- PostgreSQL: to_tsvector/plainto_tsquery with the 'simple' configuration, and
  `genres @> :genres` on the text[] column.
- SQLite: every whitespace-separated search token must appear in the title as a
  case-insensitive substring (LIKE with escaped wildcards), and each requested
  genre must be present in the JSON array (json_each).

Sorting goes through SORT_ORDER only.
"""

import sqlite3
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Generator, List, Optional, Sequence

from sqlalchemy import Select, Text, and_, func, select, type_coerce
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from ..musics.filters import Filters, SortKey
from .schema import MusicRow

SORT_ORDER = {
    SortKey.ID: MusicRow.id.asc(),
    SortKey.TITLE: MusicRow.title.asc(),
    SortKey.DURATION: MusicRow.duration.asc(),
    SortKey.POPULARITY: MusicRow.popularity.asc(),
    SortKey.ID_DESC: MusicRow.id.desc(),
    SortKey.TITLE_DESC: MusicRow.title.desc(),
    SortKey.DURATION_DESC: MusicRow.duration.desc(),
    SortKey.POPULARITY_DESC: MusicRow.popularity.desc(),
}

# SQLite VM instructions between deadline checks
PROGRESS_INTERVAL = 1000

POSTGRES_QUERY_CANCELED = "57014"
SQLITE_INTERRUPTED = "interrupted"


@dataclass(frozen=True)
class ListQuery:
    rows: Select
    count: Select


def _title_predicate(search: str, dialect_name: str) -> Optional[ColumnElement]:
    search = search.strip()
    if not search:
        return None
    if dialect_name == "postgresql":
        return func.to_tsvector("simple", MusicRow.title).bool_op("@@")(
            func.plainto_tsquery("simple", search)
        )
    return and_(*(MusicRow.title.icontains(token, autoescape=True) for token in search.split()))


def _genres_predicate(genres: Sequence[str], dialect_name: str) -> Optional[ColumnElement]:
    if not genres:
        return None
    if dialect_name == "postgresql":
        return type_coerce(MusicRow.genres, postgresql.ARRAY(Text)).contains(list(genres))

    clauses = []
    for genre in genres:
        entries = func.json_each(MusicRow.genres).table_valued("value")
        clauses.append(select(entries.c.value).where(entries.c.value == genre).exists())
    return and_(*clauses)


def build_list_query(
    search: str,
    genres: Sequence[str],
    filters: Filters,
    dialect_name: str = "postgresql",
) -> ListQuery:
    """
    Build the page and count statements for a music listing.

    Args:
        search: Free-text title search; empty matches every row
        genres: Genres every returned row must contain; empty matches every row
        filters: Validated filters (page, page_size, sort)
        dialect_name: Target dialect name, e.g. "postgresql" or "sqlite"

    Returns:
        ListQuery with the LIMIT/OFFSET page statement and the filtered count

    Raises:
        ValueError: If filters.sort is outside the allow-list
    """
    order = SORT_ORDER[filters.sort_key()]

    predicates: List[ColumnElement] = [
        p for p in (
            _title_predicate(search, dialect_name),
            _genres_predicate(genres, dialect_name),
        )
        if p is not None
    ]

    rows = (
        select(MusicRow)
        .where(*predicates)
        .order_by(order, MusicRow.id.asc())
        .limit(filters.limit())
        .offset(filters.offset())
    )
    count = select(func.count()).select_from(MusicRow).where(*predicates)
    return ListQuery(rows=rows, count=count)


@contextmanager
def statement_timeout(session: Session, seconds: float) -> Generator[None, None, None]:
    """
    Bound every statement run inside the block by `seconds`.

    PostgreSQL gets a transaction-local statement_timeout. SQLite gets a
    progress handler that interrupts the running statement past the deadline.
    Other dialects run unbounded.
    """
    connection = session.connection()
    dialect_name = connection.dialect.name

    if dialect_name == "postgresql":
        millis = max(1, int(seconds * 1000))
        session.execute(select(func.set_config("statement_timeout", str(millis), True)))
        yield
    elif dialect_name == "sqlite":
        driver_connection = connection.connection.driver_connection
        deadline = time.monotonic() + seconds
        driver_connection.set_progress_handler(
            lambda: int(time.monotonic() > deadline),
            PROGRESS_INTERVAL,
        )
        try:
            yield
        finally:
            driver_connection.set_progress_handler(None, 0)
    else:
        yield


def is_statement_timeout(exc: DBAPIError) -> bool:
    """True when the driver error is a statement cancelled by statement_timeout."""
    orig = exc.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code == POSTGRES_QUERY_CANCELED:
        return True
    return isinstance(orig, sqlite3.OperationalError) and str(orig) == SQLITE_INTERRUPTED

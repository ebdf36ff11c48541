"""Musics API: canonical create/show/update/delete/list surface."""

from typing import Any, Mapping, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..database import music_repo
from ..errors import EditConflictError, ValidationFailedError
from ..musics.filters import DEFAULT_PAGE_SIZE, parse_list_query
from ..musics.music_models import Music, MusicPatch
from ..musics.validator import validate_music
from ..utils.logging import get_logger
from .models import MusicListDTO

logger = get_logger(__name__)


def _parse_patch(payload: Mapping[str, Any]) -> MusicPatch:
    """Parse a write payload, turning pydantic type errors into field errors."""
    try:
        return MusicPatch.model_validate(dict(payload))
    except ValidationError as exc:
        errors: dict[str, str] = {}
        for err in exc.errors():
            field = str(err["loc"][0]) if err["loc"] else "body"
            errors.setdefault(field, err["msg"])
        raise ValidationFailedError(errors) from exc


def _ensure_valid(music: Music) -> None:
    errors = validate_music(music)
    if errors:
        raise ValidationFailedError(errors)


def create_music(session: Session, payload: Mapping[str, Any]) -> Music:
    """
    Validate and insert a new music record.

    Args:
        session: SQLAlchemy session
        payload: Mapping with title, duration, popularity, genres

    Returns:
        The inserted Music with id, created_at and version set

    Raises:
        ValidationFailedError: If the payload is malformed or fails domain rules
    """
    music = _parse_patch(payload).apply_to(Music())
    _ensure_valid(music)
    return music_repo.insert_music(session, music)


def show_music(session: Session, music_id: int) -> Music:
    return music_repo.get_music(session, music_id)


def update_music(
    session: Session,
    music_id: int,
    payload: Mapping[str, Any],
    expected_version: Optional[int] = None,
) -> Music:
    """
    Apply a partial update to an existing record.

    Only keys present (and non-null) in the payload change; the merged
    record is re-validated before the conditional write.

    Args:
        session: SQLAlchemy session
        music_id: Record id
        payload: Any subset of title, duration, popularity, genres
        expected_version: If given, the version the caller last saw; a
            mismatch with the stored version is an edit conflict

    Returns:
        Updated Music carrying its new version

    Raises:
        RecordNotFoundError: If the record does not exist
        EditConflictError: If the version changed since it was read
        ValidationFailedError: If the payload or merged record is invalid
    """
    music = music_repo.get_music(session, music_id)
    if expected_version is not None and expected_version != music.version:
        raise EditConflictError(music_id, expected_version)

    merged = _parse_patch(payload).apply_to(music)
    _ensure_valid(merged)
    return music_repo.update_music(session, merged)


def delete_music(session: Session, music_id: int) -> None:
    music_repo.delete_music(session, music_id)
    logger.info(f"Music {music_id} deleted")


def list_musics(
    session: Session,
    params: Mapping[str, str],
    timeout_seconds: float = music_repo.DEFAULT_LIST_TIMEOUT_SECONDS,
    default_page_size: int = DEFAULT_PAGE_SIZE,
) -> MusicListDTO:
    """
    List music records from raw query parameters.

    Args:
        session: SQLAlchemy session
        params: Raw parameters: title, genres (comma-separated), page, page_size, sort
        timeout_seconds: Statement timeout for the listing queries
        default_page_size: Page size when page_size is not given

    Returns:
        MusicListDTO with the page and its metadata

    Raises:
        ValidationFailedError: If any parameter is malformed or out of range
    """
    query = parse_list_query(params, default_page_size=default_page_size)
    musics, metadata = music_repo.list_musics(
        session,
        query.title,
        query.genres,
        query.filters,
        timeout_seconds=timeout_seconds,
    )
    return MusicListDTO(musics=musics, metadata=metadata)

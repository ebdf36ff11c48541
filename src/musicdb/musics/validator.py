"""Field-level validation for music records.

Validators are pure: they return an immutable field -> message mapping and
never raise. Every field is checked; for a single field the first failing
rule's message is the one reported.
"""

from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Sequence, Tuple

from .music_models import Music

MAX_TITLE_BYTES = 500
MAX_DURATION = 2_147_483_647  # integer column
MIN_GENRES = 1
MAX_GENRES = 5

Check = Tuple[bool, str, str]  # (ok, field, message)


def collect_errors(checks: Iterable[Check]) -> Mapping[str, str]:
    """Fold (ok, field, message) checks into a mapping of the first failure per field."""
    errors: dict[str, str] = {}
    for ok, field, message in checks:
        if not ok and field not in errors:
            errors[field] = message
    return MappingProxyType(errors)


def is_unique(values: Sequence[str]) -> bool:
    return len(set(values)) == len(values)


def utf8_length(text: str) -> Optional[int]:
    """Encoded byte length, or None when the text holds lone surrogates."""
    try:
        return len(text.encode("utf-8"))
    except UnicodeEncodeError:
        return None


def validate_music(music: Music) -> Mapping[str, str]:
    """
    Validate a candidate music record against the domain rules.

    Args:
        music: Candidate record (new or merged with a partial update)

    Returns:
        Mapping of field name to message; empty when the record is valid
    """
    title = music.title or ""
    genres = music.genres or []
    title_bytes = utf8_length(title)
    return collect_errors((
        (title != "", "title", "must be provided"),
        (title_bytes is not None, "title", "must be valid UTF-8"),
        (title_bytes is None or title_bytes <= MAX_TITLE_BYTES, "title", f"must not be more than {MAX_TITLE_BYTES} bytes long"),
        (music.duration != 0, "duration", "must be provided"),
        (music.duration > 0, "duration", "must be a positive integer"),
        (music.duration <= MAX_DURATION, "duration", f"must not be more than {MAX_DURATION}"),
        (music.popularity != 0, "popularity", "must be provided"),
        (music.popularity > 0, "popularity", "must be a positive number"),
        (music.genres is not None, "genres", "must be provided"),
        (len(genres) >= MIN_GENRES, "genres", f"must contain at least {MIN_GENRES} genre"),
        (len(genres) <= MAX_GENRES, "genres", f"must not contain more than {MAX_GENRES} genres"),
        (is_unique(genres), "genres", "must not contain duplicate values"),
        (all(utf8_length(g) is not None for g in genres), "genres", "must be valid UTF-8"),
    ))

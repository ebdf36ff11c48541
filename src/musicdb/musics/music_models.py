from datetime import datetime
from typing import Iterable, Optional

from pydantic import BaseModel


def compact_genres(values: Optional[Iterable[Optional[str]]]) -> list[str]:
    """Drop null entries from a stored genre array, keeping order."""
    if values is None:
        return []
    return [g for g in values if g is not None]


class Music(BaseModel):
    """A music track.

    id, created_at and version are assigned by the store; version is the
    optimistic-concurrency token and is only ever advanced by update_music.
    """
    id: int = 0
    title: str = ""
    duration: int = 0  # seconds
    popularity: float = 0.0
    genres: Optional[list[str]] = None
    created_at: Optional[datetime] = None
    version: int = 0


class MusicPatch(BaseModel):
    """Partial update payload. Fields left unset (or null) keep their stored value."""
    title: Optional[str] = None
    duration: Optional[int] = None
    popularity: Optional[float] = None
    genres: Optional[list[str]] = None

    def apply_to(self, music: Music) -> Music:
        """Return a copy of `music` with only the explicitly provided fields replaced."""
        changes = {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None
        }
        return music.model_copy(update=changes)

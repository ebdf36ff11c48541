"""Composition DTOs for the API layer."""

from typing import List

from pydantic import BaseModel

from ..musics.metadata import Metadata
from ..musics.music_models import Music


class MusicListDTO(BaseModel):
    """One listing page plus its pagination metadata."""
    musics: List[Music]
    metadata: Metadata

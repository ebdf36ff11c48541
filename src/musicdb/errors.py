"""Typed error conditions raised by the store, validators and API surface."""

from types import MappingProxyType
from typing import Mapping


class MusicDBError(Exception):
    """Base class for every musicdb error condition."""


class RecordNotFoundError(MusicDBError):
    """The requested music id does not exist (or is below 1)."""

    def __init__(self, music_id: int):
        super().__init__(f"record not found: {music_id}")
        self.music_id = music_id


class EditConflictError(MusicDBError):
    """The stored version no longer matches the version carried by the update."""

    def __init__(self, music_id: int, version: int):
        super().__init__(f"edit conflict on record {music_id} at version {version}")
        self.music_id = music_id
        self.version = version


class ValidationFailedError(MusicDBError):
    """One or more field-level violations. `errors` maps field name to message."""

    def __init__(self, errors: Mapping[str, str]):
        self.errors = MappingProxyType(dict(errors))
        fields = ", ".join(sorted(self.errors))
        super().__init__(f"validation failed: {fields}")


class InternalError(MusicDBError):
    """Storage or unexpected failure. The message never carries the cause's detail."""

    def __init__(self, message: str = "the server encountered a problem and could not process the request"):
        super().__init__(message)


class QueryTimeoutError(InternalError):
    """A listing query ran past its statement timeout."""

    def __init__(self, timeout_seconds: float):
        super().__init__(f"listing query exceeded {timeout_seconds:g}s timeout")
        self.timeout_seconds = timeout_seconds

"""Filter and sort parameters for music listings.

The sort allow-list is a closed enum. It is the only input that shapes the
ORDER BY clause; the query builder maps each member to a fixed column and
direction, so nothing the caller typed ever reaches SQL text.
"""

from enum import Enum
from typing import List, Mapping, Optional

from pydantic import BaseModel, Field

from ..errors import ValidationFailedError
from .validator import collect_errors

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
MAX_PAGE = 10_000_000
DEFAULT_SORT = "id"


class SortKey(str, Enum):
    ID = "id"
    TITLE = "title"
    DURATION = "duration"
    POPULARITY = "popularity"
    ID_DESC = "-id"
    TITLE_DESC = "-title"
    DURATION_DESC = "-duration"
    POPULARITY_DESC = "-popularity"


SORT_SAFELIST = tuple(key.value for key in SortKey)


class Filters(BaseModel):
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE
    sort: str = DEFAULT_SORT

    def sort_key(self) -> SortKey:
        """Resolve the sort value; raises ValueError outside the allow-list."""
        return SortKey(self.sort)

    def limit(self) -> int:
        return self.page_size

    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class MusicListQuery(BaseModel):
    """Parsed listing request: free-text title search, required genres, filters."""
    title: str = ""
    genres: List[str] = []
    filters: Filters = Field(default_factory=Filters)


def validate_filters(filters: Filters) -> Mapping[str, str]:
    return collect_errors((
        (filters.page > 0, "page", "must be greater than zero"),
        (filters.page <= MAX_PAGE, "page", "must be a maximum of 10 million"),
        (filters.page_size > 0, "page_size", "must be greater than zero"),
        (filters.page_size <= MAX_PAGE_SIZE, "page_size", f"must be a maximum of {MAX_PAGE_SIZE}"),
        (filters.sort in SORT_SAFELIST, "sort", "invalid sort value"),
    ))


def _read_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _read_int(params: Mapping[str, str], key: str, default: int, errors: dict) -> int:
    raw = params.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        errors[key] = "must be an integer value"
        return default


def parse_list_query(
    params: Mapping[str, str],
    default_page_size: int = DEFAULT_PAGE_SIZE,
) -> MusicListQuery:
    """
    Parse raw query-string parameters into a validated listing request.

    Recognized keys: title, genres (comma-separated), page, page_size, sort.

    Args:
        params: Raw string parameters (e.g. a parsed query string)
        default_page_size: Page size used when page_size is absent

    Returns:
        MusicListQuery with validated filters

    Raises:
        ValidationFailedError: With every integer-parse and filter violation
    """
    errors: dict[str, str] = {}
    filters = Filters(
        page=_read_int(params, "page", DEFAULT_PAGE, errors),
        page_size=_read_int(params, "page_size", default_page_size, errors),
        sort=params.get("sort") or DEFAULT_SORT,
    )
    for field, message in validate_filters(filters).items():
        errors.setdefault(field, message)
    if errors:
        raise ValidationFailedError(errors)

    return MusicListQuery(
        title=params.get("title") or "",
        genres=_read_csv(params.get("genres")),
        filters=filters,
    )

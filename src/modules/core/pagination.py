"""Skip/limit pagination shared by catalog and order listings.

``limit`` left out (``None``) or ``0`` means "everything after ``skip``".
Negative values are rejected with ``InvalidPageRange`` before any query
runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, List, Mapping, Optional, Tuple, TypeVar

from modules.core.repositories.interfaces import Queryable

T = TypeVar("T")


class InvalidPageRange(Exception):
    """``skip`` or ``limit`` is negative or not an integer."""


@dataclass(frozen=True)
class Page(Generic[T]):
    """One window of a listing plus the size of the full result set."""

    items: List[T] = field(default_factory=list)
    total: int = 0
    skip: int = 0
    limit: Optional[int] = None


def validate_range(skip: int, limit: Optional[int]) -> None:
    if skip < 0:
        raise InvalidPageRange("Invalid skip parameter: must be >= 0.")
    if limit is not None and limit < 0:
        raise InvalidPageRange("Invalid limit parameter: must be >= 0.")


def paginate(
    queryset: Queryable[T], skip: int = 0, limit: Optional[int] = None
) -> Page[T]:
    """Slice *queryset* to the requested window.

    ``total`` is counted before slicing so callers can render "x of y".
    """
    validate_range(skip, limit)
    total = queryset.count()
    if limit:
        items = list(queryset[skip : skip + limit])  # type: ignore[index]
    else:
        items = list(queryset[skip:])  # type: ignore[index]
    return Page(items=items, total=total, skip=skip, limit=limit)


def _parse_int(raw: Any, name: str) -> Optional[int]:
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise InvalidPageRange(
            f"Invalid {name} parameter: must be an integer."
        ) from None


def parse_page_params(
    params: Mapping[str, Any],
    skip_key: str = "skip",
    limit_key: str = "limit",
) -> Tuple[int, Optional[int]]:
    """Read ``(skip, limit)`` from query parameters.

    Raises:
        InvalidPageRange: a value is not an integer or is negative.
    """
    skip = _parse_int(params.get(skip_key), skip_key) or 0
    limit = _parse_int(params.get(limit_key), limit_key)
    validate_range(skip, limit)
    return skip, limit

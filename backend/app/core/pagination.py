"""Pagination — converts (page, limit, total) into skip/limit and navigation flags.

Invariants:
    - current_page >= 1 and page_size >= 1 (invalid input falls back, never raises)
    - skip = (current_page - 1) * page_size
    - total_pages = ceil(total / page_size); has_next/has_prev derived from it
"""

import math
from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class Pagination:
    current_page: int
    page_size: int
    skip: int
    total_pages: int
    total: int
    has_next: bool
    has_prev: bool

    def to_dict(self) -> dict:
        return asdict(self)


def _coerce_positive(value: object, fallback: int) -> int:
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return fallback
    return number if number > 0 else fallback


def paginate(
    page: object, limit: object, total: int,
    default_limit: int = 10, max_limit: int | None = None,
) -> Pagination:
    current_page = _coerce_positive(page, 1)
    page_size = _coerce_positive(limit, default_limit)
    if max_limit is not None:
        page_size = min(page_size, max_limit)
    total_pages = math.ceil(total / page_size) if total > 0 else 0
    return Pagination(
        current_page=current_page,
        page_size=page_size,
        skip=(current_page - 1) * page_size,
        total_pages=total_pages,
        total=total,
        has_next=current_page < total_pages,
        has_prev=current_page > 1,
    )

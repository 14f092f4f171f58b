"""
Pagination

Page math for tables too large to render at once.
"""

import math
from typing import Optional, Sequence, TypeVar

from config import get_settings
from schemas.results import PageNumber, PaginationState

T = TypeVar("T")

ELLIPSIS = "..."


def calculate_pagination(
    total_rows: int,
    page_size: Optional[int] = None,
    current_page: int = 1,
) -> PaginationState:
    """
    Pagination metadata with the page clamped into range.

    An empty table still reports page 1.
    """
    if page_size is None:
        page_size = get_settings().access.default_page_size
    page_size = max(1, page_size)
    total_rows = max(0, total_rows)

    total_pages = math.ceil(total_rows / page_size)
    page = max(1, min(current_page, total_pages))

    return PaginationState(
        page=page,
        page_size=page_size,
        total_rows=total_rows,
        total_pages=total_pages,
    )


def get_page_data(data: Sequence[T], page: int, page_size: int) -> list[T]:
    """Rows of one 1-based page."""
    start = max(0, (page - 1) * page_size)
    return list(data[start:start + max(0, page_size)])


def get_page_numbers(
    current_page: int,
    total_pages: int,
    max_visible: Optional[int] = None,
) -> list[PageNumber]:
    """
    Page buttons to display, abbreviated with ellipses.

    Near either end a run of pages is shown next to that end; in the middle
    the first and last pages frame a window around the current page. Never
    returns more than max_visible entries, which is at least 5.
    """
    if max_visible is None:
        max_visible = get_settings().access.max_visible_pages
    max_visible = max(5, max_visible)

    if total_pages <= max_visible:
        return list(range(1, total_pages + 1))

    half = max_visible // 2

    if current_page <= half + 1:
        return [*range(1, max_visible - 1), ELLIPSIS, total_pages]

    if current_page >= total_pages - half:
        return [1, ELLIPSIS, *range(total_pages - (max_visible - 3), total_pages + 1)]

    window = max_visible - 4
    start = current_page - (window - 1) // 2
    return [1, ELLIPSIS, *range(start, start + window), ELLIPSIS, total_pages]

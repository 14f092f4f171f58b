"""
Virtual Scrolling

Computes which rows of a long list are inside the viewport, padded by a
few overscan rows on both ends.
"""

import math
from dataclasses import dataclass
from typing import Generic, Optional, Sequence, TypeVar

from config import get_settings
from schemas.results import VirtualScrollState

T = TypeVar("T")


@dataclass
class VirtualWindow(Generic[T]):
    """Rows to render and their vertical offset."""

    items: list[T]
    offset_top: float


def calculate_visible_range(
    scroll_top: float,
    container_height: float,
    total_items: int,
    row_height: Optional[float] = None,
    overscan: Optional[int] = None,
) -> VirtualScrollState:
    """
    Visible index range for a scroll position.

    end_index is inclusive and is -1 for an empty list.
    """
    settings = get_settings().access
    if row_height is None:
        row_height = settings.row_height
    if overscan is None:
        overscan = settings.overscan
    row_height = max(1, row_height)
    overscan = max(0, overscan)

    first_visible = math.floor(max(0.0, scroll_top) / row_height)
    visible_count = math.ceil(container_height / row_height)

    return VirtualScrollState(
        start_index=max(0, first_visible - overscan),
        end_index=min(total_items - 1, first_visible + visible_count + overscan),
        visible_count=visible_count,
        scroll_top=scroll_top,
        total_height=total_items * row_height,
        row_height=row_height,
    )


def get_virtual_data(data: Sequence[T], state: VirtualScrollState) -> VirtualWindow[T]:
    """Slice out the rows of a visible range."""
    items = list(data[state.start_index:state.end_index + 1])
    return VirtualWindow(items=items, offset_top=state.start_index * state.row_height)

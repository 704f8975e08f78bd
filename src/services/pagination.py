"""Page slicing and the compact page-number window."""

import math
from typing import Sequence, TypeVar, Union

from src.utils.config import AppConfig

T = TypeVar("T")

ELLIPSIS = "..."

PageEntry = Union[int, str]


def paginate(items: Sequence[T], page_index: int, page_size: int) -> list[T]:
    """Zero-based page slice; out-of-range pages are empty rather than an error."""
    if page_index < 0 or page_size <= 0:
        return []
    start = page_index * page_size
    return list(items[start:start + page_size])


def total_pages(item_count: int, page_size: int) -> int:
    if page_size <= 0 or item_count <= 0:
        return 0
    return math.ceil(item_count / page_size)


def page_window(current: int, total: int, max_visible: int = AppConfig.MAX_VISIBLE_PAGES) -> list[PageEntry]:
    """
    Page indexes to display, with ELLIPSIS markers for gaps.

    The first and last pages stay reachable when outside the window, and a
    marker is only inserted when at least one page is actually skipped.
    """
    if total <= 0:
        return []
    if total <= max_visible:
        return list(range(total))

    current = min(max(current, 0), total - 1)
    start = max(0, min(current - max_visible // 2, total - max_visible))
    end = start + max_visible - 1

    pages: list[PageEntry] = []
    if start > 0:
        pages.append(0)
        if start > 1:
            pages.append(ELLIPSIS)

    pages.extend(range(start, end + 1))

    if end < total - 1:
        if end < total - 2:
            pages.append(ELLIPSIS)
        pages.append(total - 1)
    return pages

"""Pagination helpers.

Pure functions, no UI dependency.
"""

import math
from collections.abc import Sequence

from matchview.core.schemas import Page, PaginationSpec, Record


def total_pages(total: int, page_size: int) -> int:
    """Number of pages for ``total`` items; never less than 1."""
    if total <= 0:
        return 1
    return math.ceil(total / page_size)


def page_in_range(page: int, total: int, page_size: int) -> bool:
    """Return True if ``page`` still shows at least one item.

    With no items every page is acceptable; the view simply renders empty.
    """
    if total <= 0:
        return True
    return page >= 1 and (page - 1) * page_size < total


def clamp_page(page: int, total: int, page_size: int) -> int:
    """Reset ``page`` to 1 when it no longer points inside the result set."""
    return page if page_in_range(page, total, page_size) else 1


def paginate(records: Sequence[Record], spec: PaginationSpec) -> Page:
    """Slice one page out of already filtered and sorted records.

    Args:
        records: Ordered records.
        spec: 1-based page index and page size.

    Returns:
        Page with the slice ``[(page-1)*size, page*size)`` clamped to bounds.
    """
    total = len(records)
    start = (spec.page - 1) * spec.page_size
    items = list(records[start:start + spec.page_size])
    return Page(
        items=items,
        page=spec.page,
        page_size=spec.page_size,
        total=total,
        total_pages=total_pages(total, spec.page_size),
    )

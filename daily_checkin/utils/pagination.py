"""Pagination helpers."""

from typing import Any


def pagination_meta(page: int, page_size: int, total: int) -> dict[str, Any]:
    """Build pagination metadata for a page of ``page_size`` items."""
    total_pages = (total + page_size - 1) // page_size if total else 0
    return {
        "page": page,
        "page_size": page_size,
        "total_items": total,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }

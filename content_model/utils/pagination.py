"""
Pagination Utilities

Offset-based page windows for List.paginate(), plus the count query used to
size them.
"""

import logging
import math

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from content_model.schemas.pagination import PageInfo

logger = logging.getLogger(__name__)


def coerce_page(page) -> int:
    """Parse a requested page number, falling back to the first page."""
    try:
        value = int(page)
    except (TypeError, ValueError):
        return 1
    return max(value, 1)


def build_page_info(total: int, page: int, per_page: int, max_pages: int | None = None) -> PageInfo:
    """
    Compute the page window around the current page.

    Args:
        total: Number of matching records
        page: Requested page (clamped to the available range)
        per_page: Records per page
        max_pages: Maximum number of page links in the window (None = all)

    Returns:
        PageInfo describing the window
    """
    per_page = max(per_page, 1)
    total_pages = max(math.ceil(total / per_page), 1)
    current = min(max(page, 1), total_pages)

    first_page = 1
    last_page = total_pages
    if max_pages and total_pages > max_pages:
        half = max_pages // 2
        first_page = max(current - half, 1)
        last_page = first_page + max_pages - 1
        if last_page > total_pages:
            last_page = total_pages
            first_page = total_pages - max_pages + 1

    return PageInfo(
        total=total,
        current_page=current,
        total_pages=total_pages,
        pages=list(range(first_page, last_page + 1)),
        previous=current - 1 if current > 1 else None,
        next=current + 1 if current < total_pages else None,
        first=(current - 1) * per_page + 1 if total else 0,
        last=min(current * per_page, total),
    )


async def get_total_count(db: AsyncSession, query: Select) -> int:
    """
    Get total count of rows a query would return.

    Args:
        db: Database session
        query: Select statement (ordering and limits are dropped)

    Returns:
        Total count
    """
    count_query = select(func.count()).select_from(query.order_by(None).limit(None).offset(None).subquery())
    result = await db.execute(count_query)
    return result.scalar() or 0

"""
Pagination Utility Module

Shared page/limit handling for the moderation queues.
"""
from typing import Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

MAX_PAGE_SIZE = 100


async def paginate(
    db: AsyncSession,
    query: Select,
    page: int = 1,
    limit: int = 10,
    count_query: Optional[Select] = None
) -> dict:
    """
    Apply pagination to a SQLAlchemy query.

    Args:
        db: Database session
        query: Base SQLAlchemy query (already ordered)
        page: Page number (1-indexed)
        limit: Items per page
        count_query: Optional custom count query

    Returns:
        Dictionary with items, total, page, limit, total_pages
    """
    page = max(1, page)
    limit = max(1, min(MAX_PAGE_SIZE, limit))

    offset = (page - 1) * limit

    if count_query is None:
        count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar() or 0
    total_pages = (total + limit - 1) // limit if total > 0 else 1

    result = await db.execute(query.offset(offset).limit(limit))
    items = result.scalars().all()

    return {
        "items": items,
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": total_pages,
    }

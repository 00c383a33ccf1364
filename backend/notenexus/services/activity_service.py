from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from notenexus.models.activity import Activity

RECENT_ACTIVITY_LIMIT = 10


def log_activity(
    db: AsyncSession,
    user_id: str,
    action: str,
    subject: Optional[str] = None
) -> Activity:
    """Record an entry on the user's activity feed.

    Added to the caller's session; it is committed with the surrounding
    change so the feed never shows actions that were rolled back.
    """
    activity = Activity(user_id=user_id, action=action, subject=subject)
    db.add(activity)
    return activity


async def recent_activity(db: AsyncSession, user_id: str, limit: int = RECENT_ACTIVITY_LIMIT) -> List[Activity]:
    result = await db.execute(
        select(Activity)
        .where(Activity.user_id == user_id)
        .order_by(Activity.time.desc())
        .limit(limit)
    )
    return list(result.scalars().all())

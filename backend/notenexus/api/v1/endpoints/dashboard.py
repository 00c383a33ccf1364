"""
Dashboard data: site-wide counts, the caller's recent activity, contact form
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from notenexus.core.database import get_db
from notenexus.core.exceptions import NotificationError
from notenexus.core.logging_config import logger
from notenexus.core.rate_limiter import limiter, CONTACT_LIMIT
from notenexus.models import Announcement, Event, Note, Tip, TipStatus, User
from notenexus.modules.auth.dependencies import get_current_user
from notenexus.schemas.base import MessageResponse
from notenexus.schemas.catalog import ActivityResponse, ContactMessage, OverviewResponse
from notenexus.services.activity_service import recent_activity
from notenexus.services.email_service import EmailService, get_email_service


router = APIRouter()


async def _count(db: AsyncSession, model, *conditions) -> int:
    query = select(func.count()).select_from(model)
    if conditions:
        query = query.where(*conditions)
    return (await db.execute(query)).scalar() or 0


@router.get("/overview", response_model=OverviewResponse)
async def overview(db: AsyncSession = Depends(get_db)):
    """Counts of published content"""
    return {
        "notes": await _count(db, Note, Note.approved_by_id.isnot(None)),
        "tips": await _count(db, Tip, Tip.status == TipStatus.APPROVED),
        "events": await _count(db, Event),
        "announcements": await _count(db, Announcement),
    }


@router.get("/activity/recent", response_model=List[ActivityResponse])
async def my_recent_activity(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await recent_activity(db, current_user.id)


@router.post("/contact", response_model=MessageResponse)
@limiter.limit(CONTACT_LIMIT)
async def contact(
    request: Request,
    data: ContactMessage,
    email_service: EmailService = Depends(get_email_service)
):
    """Forward a contact form message to the site owner (rate limited: 3/min)"""
    sent = await email_service.send_contact_message(data.name, data.email, data.message)
    if not sent:
        raise NotificationError("Failed to send your message. Please try again later")

    logger.info("Contact message forwarded", extra={"event_type": "contact_message"})
    return {"message": "Message sent successfully"}

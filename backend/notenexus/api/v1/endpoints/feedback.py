"""
Feedback on notes and tips

Feedback follows its target's visibility: pending or rejected notes and tips
take feedback only from their owner and admins.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from notenexus.core.database import get_db
from notenexus.core.exceptions import AuthorizationError, FeedbackNotFoundError
from notenexus.core.logging_config import logger
from notenexus.models import Feedback, User
from notenexus.modules.auth.dependencies import get_current_user, get_optional_current_user
from notenexus.schemas.base import MessageResponse
from notenexus.schemas.feedback import FeedbackCreate, FeedbackResponse
from notenexus.services.activity_service import log_activity
from notenexus.services.moderation_service import NOTES, TIPS, ModerationService


router = APIRouter()


@router.post("/feedback", response_model=FeedbackResponse, status_code=status.HTTP_201_CREATED)
async def create_feedback(
    data: FeedbackCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Comment on exactly one note or tip the caller can see"""
    service = ModerationService(db)
    if data.note_id:
        target = await service.get_visible(NOTES, data.note_id, current_user)
    else:
        target = await service.get_visible(TIPS, data.tip_id, current_user)

    feedback = Feedback(
        content=data.content.strip(),
        user_id=current_user.id,
        note_id=data.note_id,
        tip_id=data.tip_id,
    )
    db.add(feedback)
    log_activity(db, current_user.id, "Gave feedback", target.title)
    await db.commit()

    logger.info(
        f"Feedback added on {'note' if data.note_id else 'tip'} {data.note_id or data.tip_id}",
        extra={"event_type": "feedback_created", "feedback_id": feedback.id}
    )

    result = await db.execute(
        select(Feedback).where(Feedback.id == feedback.id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


@router.get("/feedback/{target_id}", response_model=List[FeedbackResponse])
async def list_feedback(
    target_id: str,
    viewer: Optional[User] = Depends(get_optional_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Feedback left on the note or tip with this id, newest first"""
    await ModerationService(db).find_feedback_target(target_id, viewer)

    result = await db.execute(
        select(Feedback)
        .where(or_(Feedback.note_id == target_id, Feedback.tip_id == target_id))
        .order_by(Feedback.created_at.desc())
    )
    return result.scalars().all()


@router.delete("/feedback/{feedback_id}", response_model=MessageResponse)
async def delete_feedback(
    feedback_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    feedback = await db.get(Feedback, feedback_id)
    if feedback is None:
        raise FeedbackNotFoundError(feedback_id)
    if not (current_user.is_admin or feedback.user_id == current_user.id):
        raise AuthorizationError("You can only delete your own feedback")

    await db.delete(feedback)
    await db.commit()
    return {"message": "Feedback deleted successfully"}

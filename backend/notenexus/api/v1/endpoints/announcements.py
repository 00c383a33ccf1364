from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from notenexus.core.database import get_db
from notenexus.core.exceptions import AnnouncementNotFoundError
from notenexus.models import Announcement, User
from notenexus.modules.auth.dependencies import get_current_admin
from notenexus.schemas.base import MessageResponse
from notenexus.schemas.catalog import AnnouncementCreate, AnnouncementResponse, AnnouncementUpdate
from notenexus.services.activity_service import log_activity


router = APIRouter()


async def _get_announcement(db: AsyncSession, announcement_id: str) -> Announcement:
    announcement = await db.get(Announcement, announcement_id)
    if announcement is None:
        raise AnnouncementNotFoundError(announcement_id)
    return announcement


@router.get("/announcement", response_model=List[AnnouncementResponse])
async def list_announcements(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Announcement).order_by(Announcement.created_at.desc()))
    return result.scalars().all()


@router.get("/announcement/{announcement_id}", response_model=AnnouncementResponse)
async def get_announcement(announcement_id: str, db: AsyncSession = Depends(get_db)):
    return await _get_announcement(db, announcement_id)


@router.post("/announcement", response_model=AnnouncementResponse, status_code=status.HTTP_201_CREATED)
async def create_announcement(
    data: AnnouncementCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    announcement = Announcement(title=data.title, message=data.message, posted_by_id=admin.id)
    db.add(announcement)
    log_activity(db, admin.id, "Posted announcement", data.title)
    await db.commit()
    return announcement


@router.put("/announcement/{announcement_id}", response_model=AnnouncementResponse)
async def update_announcement(
    announcement_id: str,
    data: AnnouncementUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    announcement = await _get_announcement(db, announcement_id)
    for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(announcement, field, value)
    await db.commit()
    return announcement


@router.delete("/announcement/{announcement_id}", response_model=MessageResponse)
async def delete_announcement(
    announcement_id: str,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    announcement = await _get_announcement(db, announcement_id)
    await db.delete(announcement)
    await db.commit()
    return {"message": "Announcement deleted successfully"}

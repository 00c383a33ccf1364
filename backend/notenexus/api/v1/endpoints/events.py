from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from notenexus.core.database import get_db
from notenexus.core.exceptions import EventNotFoundError
from notenexus.models import Event, User
from notenexus.modules.auth.dependencies import get_current_admin
from notenexus.schemas.base import MessageResponse
from notenexus.schemas.catalog import EventCreate, EventResponse, EventUpdate
from notenexus.services.activity_service import log_activity


router = APIRouter()


async def _get_event(db: AsyncSession, event_id: str) -> Event:
    event = await db.get(Event, event_id)
    if event is None:
        raise EventNotFoundError(event_id)
    return event


@router.get("/event", response_model=List[EventResponse])
async def list_events(db: AsyncSession = Depends(get_db)):
    """All events, soonest first"""
    result = await db.execute(select(Event).order_by(Event.event_date.asc()))
    return result.scalars().all()


@router.get("/event/{event_id}", response_model=EventResponse)
async def get_event(event_id: str, db: AsyncSession = Depends(get_db)):
    return await _get_event(db, event_id)


@router.post("/event", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    data: EventCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    event = Event(title=data.title, content=data.content, event_date=data.event_date)
    db.add(event)
    log_activity(db, admin.id, "Created event", data.title)
    await db.commit()
    return event


@router.put("/event/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: str,
    data: EventUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    event = await _get_event(db, event_id)
    for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(event, field, value)
    await db.commit()
    return event


@router.delete("/event/{event_id}", response_model=MessageResponse)
async def delete_event(
    event_id: str,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    event = await _get_event(db, event_id)
    await db.delete(event)
    await db.commit()
    return {"message": "Event deleted successfully"}

from pydantic import EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime, timezone

from notenexus.schemas.base import CamelModel


def _naive_utc(v: Optional[datetime]) -> Optional[datetime]:
    if v is not None and v.tzinfo is not None:
        return v.astimezone(timezone.utc).replace(tzinfo=None)
    return v


# ============================================
# Subjects
# ============================================

class SubjectCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    branch: str = Field(..., min_length=1, max_length=100)
    semester: int = Field(..., ge=1, le=8)


class SubjectUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    branch: Optional[str] = Field(None, min_length=1, max_length=100)
    semester: Optional[int] = Field(None, ge=1, le=8)


class SubjectResponse(CamelModel):
    id: str
    name: str
    branch: str
    semester: int
    created_at: datetime


# ============================================
# Announcements
# ============================================

class AnnouncementCreate(CamelModel):
    title: str = Field(..., min_length=3, max_length=255)
    message: str = Field(..., min_length=10)


class AnnouncementUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=3, max_length=255)
    message: Optional[str] = Field(None, min_length=10)


class AnnouncementResponse(CamelModel):
    id: str
    title: str
    message: str
    posted_by_id: str
    created_at: datetime


# ============================================
# Events
# ============================================

class EventCreate(CamelModel):
    title: str = Field(..., min_length=3, max_length=255)
    content: str = Field(..., min_length=10)
    event_date: datetime

    @field_validator('event_date')
    @classmethod
    def to_naive_utc(cls, v: datetime) -> datetime:
        return _naive_utc(v)


class EventUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=3, max_length=255)
    content: Optional[str] = Field(None, min_length=10)
    event_date: Optional[datetime] = None

    @field_validator('event_date')
    @classmethod
    def to_naive_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _naive_utc(v)


class EventResponse(CamelModel):
    id: str
    title: str
    content: str
    event_date: datetime
    created_at: datetime


# ============================================
# Dashboard
# ============================================

class OverviewResponse(CamelModel):
    notes: int
    tips: int
    events: int
    announcements: int


class ActivityResponse(CamelModel):
    id: str
    action: str
    subject: Optional[str] = None
    time: datetime


class ContactMessage(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    message: str = Field(..., min_length=1, max_length=5000)

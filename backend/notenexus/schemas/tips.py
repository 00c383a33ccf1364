from pydantic import Field, field_validator
from typing import List, Literal, Optional
from datetime import datetime

from notenexus.models.tip import TipStatus
from notenexus.schemas.auth import UserSummary
from notenexus.schemas.base import CamelModel, PageMeta


class TipCreate(CamelModel):
    title: str = Field(..., min_length=5, max_length=255)
    content: str = Field(..., min_length=10)

    @field_validator('title', 'content')
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()


class TipResponse(CamelModel):
    id: str
    title: str
    content: str
    status: TipStatus
    posted_by_id: str
    posted_by: Optional[UserSummary] = None
    approved_by_id: Optional[str] = None
    moderated_at: Optional[datetime] = None
    created_at: datetime


class TipListResponse(CamelModel):
    tips: List[TipResponse]


class PendingTipsResponse(PageMeta):
    tips: List[TipResponse]


class TipModerate(CamelModel):
    status: Literal["APPROVED", "REJECTED"]


class TipBulkModerate(CamelModel):
    tip_ids: List[str] = Field(default_factory=list)
    status: Literal["APPROVED", "REJECTED"]

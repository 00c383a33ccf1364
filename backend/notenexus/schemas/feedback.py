from pydantic import Field, model_validator
from typing import Optional
from datetime import datetime

from notenexus.schemas.auth import UserSummary
from notenexus.schemas.base import CamelModel


class FeedbackCreate(CamelModel):
    content: str = Field(..., min_length=5)
    note_id: Optional[str] = None
    tip_id: Optional[str] = None

    @model_validator(mode='after')
    def exactly_one_target(self):
        if bool(self.note_id) == bool(self.tip_id):
            raise ValueError('Provide exactly one of noteId or tipId')
        return self


class FeedbackResponse(CamelModel):
    id: str
    content: str
    user_id: str
    user: Optional[UserSummary] = None
    note_id: Optional[str] = None
    tip_id: Optional[str] = None
    created_at: datetime

from pydantic import Field
from typing import List, Optional
from datetime import datetime

from notenexus.schemas.auth import UserSummary
from notenexus.schemas.base import CamelModel, PageMeta
from notenexus.schemas.catalog import SubjectResponse
from notenexus.schemas.feedback import FeedbackResponse


class NoteResponse(CamelModel):
    id: str
    title: str
    semester: int
    file_url: str
    subject_id: str
    subject: Optional[SubjectResponse] = None
    uploaded_by_id: str
    uploaded_by: Optional[UserSummary] = None
    approved_by_id: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: datetime
    branches: List[str] = []
    # Set only when listing by branch
    branch: Optional[str] = None


class NoteDetailResponse(NoteResponse):
    feedback: List[FeedbackResponse] = []


class NoteListResponse(CamelModel):
    notes: List[NoteResponse]


class PendingNotesResponse(PageMeta):
    notes: List[NoteResponse]


class NoteApprove(CamelModel):
    approved: bool = True


class NoteBulkApprove(CamelModel):
    note_ids: List[str] = Field(default_factory=list)
    approved: bool = True

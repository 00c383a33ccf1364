from pydantic import Field
from typing import List, Optional
from datetime import datetime

from notenexus.schemas.auth import UserSummary
from notenexus.schemas.base import CamelModel, PageMeta


class FileResponse(CamelModel):
    id: str
    filename: str
    url: str
    content_type: Optional[str] = None
    size: int
    uploaded_by_id: str
    uploaded_by: Optional[UserSummary] = None
    approved_by_id: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: datetime


class FileListResponse(CamelModel):
    files: List[FileResponse]


class PendingFilesResponse(PageMeta):
    files: List[FileResponse]


class FileApprove(CamelModel):
    approved: bool = True


class FileBulkApprove(CamelModel):
    file_ids: List[str] = Field(default_factory=list)
    approved: bool = True

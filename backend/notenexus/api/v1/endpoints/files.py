from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from typing import Optional

from notenexus.models.user import User
from notenexus.modules.auth.dependencies import get_current_admin, get_current_user
from notenexus.schemas.base import BulkModerationResponse, MessageResponse
from notenexus.schemas.files import (
    FileApprove,
    FileBulkApprove,
    FileListResponse,
    FileResponse,
    PendingFilesResponse,
)
from notenexus.services.moderation_service import FILES, ModerationService, get_moderation_service


router = APIRouter()


@router.post("/file", response_model=FileResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    service: ModerationService = Depends(get_moderation_service)
):
    """Share a file; visible to others once an admin approves it"""
    return await service.submit_file(current_user, file)


@router.get("/files", response_model=FileListResponse)
async def list_files(service: ModerationService = Depends(get_moderation_service)):
    return {"files": await service.list_approved_files()}


@router.get("/file/pending", response_model=PendingFilesResponse)
async def pending_files(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    admin: User = Depends(get_current_admin),
    service: ModerationService = Depends(get_moderation_service)
):
    result = await service.list_pending(FILES, page, limit)
    return {**result, "files": result["items"]}


@router.put("/file/approve/{file_id}", response_model=FileResponse)
async def approve_file(
    file_id: str,
    data: Optional[FileApprove] = None,
    admin: User = Depends(get_current_admin),
    service: ModerationService = Depends(get_moderation_service)
):
    approved = data.approved if data is not None else True
    return await service.moderate(FILES, file_id, admin, approved=approved)


@router.put("/file/approve", response_model=BulkModerationResponse)
async def approve_files_bulk(
    data: FileBulkApprove,
    admin: User = Depends(get_current_admin),
    service: ModerationService = Depends(get_moderation_service)
):
    count = await service.moderate_bulk(FILES, data.file_ids, admin, approved=data.approved)
    verb = "approved" if data.approved else "unapproved"
    return {"message": f"{count} file(s) {verb}", "count": count}


@router.delete("/file/{file_id}", response_model=MessageResponse)
async def delete_file(
    file_id: str,
    current_user: User = Depends(get_current_user),
    service: ModerationService = Depends(get_moderation_service)
):
    await service.delete(FILES, file_id, current_user)
    return {"message": "File deleted successfully"}

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from typing import Optional

from notenexus.models.user import User
from notenexus.modules.auth.dependencies import (
    get_current_admin,
    get_current_user,
    get_optional_current_user,
)
from notenexus.schemas.base import BulkModerationResponse, MessageResponse
from notenexus.schemas.feedback import FeedbackResponse
from notenexus.schemas.notes import (
    NoteApprove,
    NoteBulkApprove,
    NoteDetailResponse,
    NoteListResponse,
    NoteResponse,
    PendingNotesResponse,
)
from notenexus.services.moderation_service import (
    NOTES,
    ModerationService,
    get_moderation_service,
    parse_branches,
)


router = APIRouter()


@router.post("/note/upload", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
async def upload_note(
    title: str = Form(..., min_length=1, max_length=255),
    semester: int = Form(..., ge=1, le=8),
    subject_id: str = Form(..., alias="subjectId"),
    branches: Optional[str] = Form(None),
    branch: Optional[str] = Form(None),
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    service: ModerationService = Depends(get_moderation_service)
):
    """
    Upload one note for one or more branches.

    `branches` may be a JSON array (`["CSE","IT"]`) or a comma-separated list;
    a single `branch` field is accepted too. The note waits for admin approval.
    """
    branch_list = parse_branches(branches, branch)
    return await service.submit_note(
        current_user, title.strip(), semester, subject_id, branch_list, file
    )


@router.get("/note/all", response_model=NoteListResponse)
async def list_notes(service: ModerationService = Depends(get_moderation_service)):
    """Approved notes, one entry per upload with all of its branches"""
    return {"notes": await service.list_approved_notes()}


@router.get("/note/filter", response_model=NoteListResponse)
async def filter_notes(
    branch: Optional[str] = Query(None),
    semester: Optional[int] = Query(None, ge=1, le=8),
    subject_id: Optional[str] = Query(None, alias="subjectId"),
    service: ModerationService = Depends(get_moderation_service)
):
    """Approved notes matching every given filter.

    With `branch`, each note is presented as that branch's entry.
    """
    notes = await service.filter_notes(branch=branch, semester=semester, subject_id=subject_id)
    items = [NoteResponse.model_validate(note) for note in notes]
    if branch:
        items = [item.model_copy(update={"branch": branch}) for item in items]
    return {"notes": items}


@router.get("/note/pending", response_model=PendingNotesResponse)
async def pending_notes(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    admin: User = Depends(get_current_admin),
    service: ModerationService = Depends(get_moderation_service)
):
    result = await service.list_pending(NOTES, page, limit)
    return {**result, "notes": result["items"]}


@router.get("/note/{note_id}", response_model=NoteDetailResponse)
async def get_note(
    note_id: str,
    viewer: Optional[User] = Depends(get_optional_current_user),
    service: ModerationService = Depends(get_moderation_service)
):
    """One note with its feedback"""
    note = await service.get_visible(NOTES, note_id, viewer)
    feedback = await service.note_feedback(note.id)
    return NoteDetailResponse(
        **NoteResponse.model_validate(note).model_dump(),
        feedback=[FeedbackResponse.model_validate(f) for f in feedback],
    )


@router.put("/note/approve/{note_id}", response_model=NoteResponse)
async def approve_note(
    note_id: str,
    data: Optional[NoteApprove] = None,
    admin: User = Depends(get_current_admin),
    service: ModerationService = Depends(get_moderation_service)
):
    """Approve a note, or send `{"approved": false}` to return it to pending"""
    approved = data.approved if data is not None else True
    return await service.moderate(NOTES, note_id, admin, approved=approved)


@router.put("/note/approve", response_model=BulkModerationResponse)
async def approve_notes_bulk(
    data: NoteBulkApprove,
    admin: User = Depends(get_current_admin),
    service: ModerationService = Depends(get_moderation_service)
):
    count = await service.moderate_bulk(NOTES, data.note_ids, admin, approved=data.approved)
    verb = "approved" if data.approved else "unapproved"
    return {"message": f"{count} note(s) {verb}", "count": count}


@router.delete("/note/{note_id}", response_model=MessageResponse)
async def delete_note(
    note_id: str,
    current_user: User = Depends(get_current_user),
    service: ModerationService = Depends(get_moderation_service)
):
    await service.delete(NOTES, note_id, current_user)
    return {"message": "Note deleted successfully"}

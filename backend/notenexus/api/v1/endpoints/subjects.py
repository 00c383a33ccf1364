from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from notenexus.core.database import get_db
from notenexus.core.exceptions import SubjectInUseError, SubjectNotFoundError
from notenexus.core.logging_config import logger
from notenexus.models import Note, Subject, User
from notenexus.modules.auth.dependencies import get_current_admin
from notenexus.schemas.base import MessageResponse
from notenexus.schemas.catalog import SubjectCreate, SubjectResponse, SubjectUpdate


router = APIRouter()


async def _get_subject(db: AsyncSession, subject_id: str) -> Subject:
    subject = await db.get(Subject, subject_id)
    if subject is None:
        raise SubjectNotFoundError(subject_id)
    return subject


@router.get("/subject", response_model=List[SubjectResponse])
async def list_subjects(
    branch: Optional[str] = Query(None),
    semester: Optional[int] = Query(None, ge=1, le=8),
    db: AsyncSession = Depends(get_db)
):
    query = select(Subject)
    if branch:
        query = query.where(Subject.branch == branch)
    if semester is not None:
        query = query.where(Subject.semester == semester)
    result = await db.execute(query.order_by(Subject.semester, Subject.name))
    return result.scalars().all()


@router.get("/subject/{subject_id}", response_model=SubjectResponse)
async def get_subject(subject_id: str, db: AsyncSession = Depends(get_db)):
    return await _get_subject(db, subject_id)


@router.post("/subject", response_model=SubjectResponse, status_code=status.HTTP_201_CREATED)
async def create_subject(
    data: SubjectCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    subject = Subject(name=data.name.strip(), branch=data.branch.strip(), semester=data.semester)
    db.add(subject)
    await db.commit()
    logger.info(f"Subject created: {subject.name}", extra={"event_type": "subject_created", "subject_id": subject.id})
    return subject


@router.put("/subject/{subject_id}", response_model=SubjectResponse)
async def update_subject(
    subject_id: str,
    data: SubjectUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    subject = await _get_subject(db, subject_id)
    for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(subject, field, value.strip() if isinstance(value, str) else value)
    await db.commit()
    return subject


@router.delete("/subject/{subject_id}", response_model=MessageResponse)
async def delete_subject(
    subject_id: str,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Only subjects without notes can be removed"""
    subject = await _get_subject(db, subject_id)

    note_count = (await db.execute(
        select(func.count()).select_from(Note).where(Note.subject_id == subject_id)
    )).scalar() or 0
    if note_count:
        raise SubjectInUseError(subject_id, note_count)

    await db.delete(subject)
    await db.commit()
    return {"message": "Subject deleted successfully"}

"""
Moderation workflow for user-submitted content
==============================================

Notes, tips and files share one lifecycle:

    submit (pending) -> moderate by admin -> visible to everyone

Notes and files are pending while `approved_by_id` is NULL. Tips carry an
explicit status (PENDING / APPROVED / REJECTED).

Single moderation always records the latest moderator. Bulk moderation is a
single conditional UPDATE, so ids that are no longer eligible are skipped and
the returned count is what actually changed.
"""

import io
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type

from fastapi import Depends, UploadFile
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from notenexus.core.config import settings
from notenexus.core.database import get_db
from notenexus.core.exceptions import (
    AuthorizationError,
    FeedbackTargetNotFoundError,
    FileNotFoundError,
    FileTooLargeError,
    InvalidFileTypeError,
    NoteNotFoundError,
    ResourceNotFoundError,
    SubjectNotFoundError,
    TipNotFoundError,
    ValidationError,
)
from notenexus.core.logging_config import logger
from notenexus.models import Feedback, File, Note, NoteBranch, Subject, Tip, TipStatus, User
from notenexus.services.activity_service import log_activity
from notenexus.utils.pagination import paginate
from notenexus.utils.storage_client import StorageClient, get_storage


@dataclass(frozen=True)
class ContentKind:
    """How one moderated model maps onto the shared workflow"""
    name: str
    model: Type
    owner_attr: str
    label_attr: str
    not_found: Type[ResourceNotFoundError]
    feedback_attr: Optional[str] = None

    def owner_id(self, item) -> str:
        return getattr(item, self.owner_attr)

    def label(self, item) -> str:
        return getattr(item, self.label_attr)


NOTES = ContentKind("note", Note, "uploaded_by_id", "title", NoteNotFoundError, "note_id")
TIPS = ContentKind("tip", Tip, "posted_by_id", "title", TipNotFoundError, "tip_id")
FILES = ContentKind("file", File, "uploaded_by_id", "filename", FileNotFoundError)


def pending_condition(kind: ContentKind):
    if kind.model is Tip:
        return Tip.status == TipStatus.PENDING
    return kind.model.approved_by_id.is_(None)


def is_public(kind: ContentKind, item) -> bool:
    if kind.model is Tip:
        return item.status == TipStatus.APPROVED
    return item.approved_by_id is not None


def can_view(kind: ContentKind, item, viewer: Optional[User]) -> bool:
    if is_public(kind, item):
        return True
    return viewer is not None and (viewer.is_admin or viewer.id == kind.owner_id(item))


def parse_branches(branches: Optional[str], branch: Optional[str] = None) -> List[str]:
    """Branch tags from a JSON array string, a comma-separated string, or a single branch.

    Order is kept, duplicates and blanks are dropped.
    """
    raw: List[Any] = []
    if branches:
        text = branches.strip()
        if text.startswith("["):
            try:
                parsed = json.loads(text)
            except json.JSONDecodeError:
                raise ValidationError("branches must be a JSON array or a comma-separated list", field="branches")
            if not isinstance(parsed, list):
                raise ValidationError("branches must be a JSON array or a comma-separated list", field="branches")
            raw.extend(parsed)
        else:
            raw.extend(text.split(","))
    if branch:
        raw.append(branch)

    result: List[str] = []
    for value in raw:
        if not isinstance(value, str):
            raise ValidationError("Each branch must be a string", field="branches")
        value = value.strip()
        if value and value not in result:
            result.append(value)

    if not result:
        raise ValidationError("At least one branch is required", field="branches")
    return result


def file_extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in (filename or "") else ""


def validate_upload(filename: str, size: int) -> None:
    """Extension and size checks shared by note and file uploads"""
    if not filename:
        raise ValidationError("A file is required", field="file")

    ext = file_extension(filename)
    if ext not in settings.ALLOWED_EXTENSIONS:
        raise InvalidFileTypeError(ext or "(none)", settings.ALLOWED_EXTENSIONS)
    if size == 0:
        raise ValidationError("Uploaded file is empty", field="file")
    if size > settings.MAX_UPLOAD_SIZE:
        raise FileTooLargeError(size, settings.MAX_UPLOAD_SIZE)


class ModerationService:
    """Submission, moderation, listing and deletion of notes, tips and files"""

    def __init__(self, db: AsyncSession, storage: Optional[StorageClient] = None):
        self.db = db
        self.storage = storage

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    async def _get(self, kind: ContentKind, item_id: str, refresh: bool = False):
        item = await self.db.get(kind.model, item_id, populate_existing=refresh)
        if item is None:
            raise kind.not_found(item_id)
        return item

    async def get_visible(self, kind: ContentKind, item_id: str, viewer: Optional[User]):
        """Fetch one item; pending or rejected items exist only for their owner and admins"""
        item = await self._get(kind, item_id)
        if can_view(kind, item, viewer):
            return item
        raise kind.not_found(item_id)

    async def find_feedback_target(self, target_id: str, viewer: Optional[User]) -> Tuple[ContentKind, Any]:
        """The note or tip with this id, if the viewer may see it"""
        for kind in (NOTES, TIPS):
            item = await self.db.get(kind.model, target_id)
            if item is not None and can_view(kind, item, viewer):
                return kind, item
        raise FeedbackTargetNotFoundError(target_id)

    async def _read_upload(self, upload: UploadFile) -> Tuple[bytes, str]:
        filename = upload.filename or ""
        contents = await upload.read()
        validate_upload(filename, len(contents))
        return contents, filename

    async def list_pending(self, kind: ContentKind, page: int, limit: int) -> Dict[str, Any]:
        query = (
            select(kind.model)
            .where(pending_condition(kind))
            .order_by(kind.model.created_at.desc())
        )
        return await paginate(self.db, query, page=page, limit=limit)

    async def moderate(self, kind: ContentKind, item_id: str, actor: User,
                       approved: bool = True, status: Optional[TipStatus] = None):
        """Set the moderation state of one item, overwriting any earlier moderator"""
        now = datetime.utcnow()
        if kind.model is Tip:
            values = {"status": status, "approved_by_id": actor.id, "moderated_at": now}
            action = status.value.lower()
        elif approved:
            values = {"approved_by_id": actor.id, "approved_at": now}
            action = "approved"
        else:
            values = {"approved_by_id": None, "approved_at": None}
            action = "revoked"

        result = await self.db.execute(
            update(kind.model)
            .where(kind.model.id == item_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise kind.not_found(item_id)

        item = await self._get(kind, item_id, refresh=True)
        log_activity(self.db, actor.id, f"{action.capitalize()} {kind.name}", kind.label(item))
        await self.db.commit()

        logger.log_moderation_event(kind.name, action, 1, actor.id, item_id=item_id)
        return item

    async def moderate_bulk(self, kind: ContentKind, item_ids: Sequence[str], actor: User,
                            approved: bool = True, status: Optional[TipStatus] = None) -> int:
        """One conditional UPDATE over the ids; returns how many rows changed"""
        ids = list(dict.fromkeys(i for i in item_ids if i))
        if not ids:
            raise ValidationError(f"No {kind.name} ids provided", field=f"{kind.name}Ids")

        now = datetime.utcnow()
        if kind.model is Tip:
            eligible = pending_condition(kind)
            values = {"status": status, "approved_by_id": actor.id, "moderated_at": now}
            action = status.value.lower()
        elif approved:
            eligible = pending_condition(kind)
            values = {"approved_by_id": actor.id, "approved_at": now}
            action = "approved"
        else:
            eligible = kind.model.approved_by_id.isnot(None)
            values = {"approved_by_id": None, "approved_at": None}
            action = "revoked"

        result = await self.db.execute(
            update(kind.model)
            .where(kind.model.id.in_(ids), eligible)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        count = result.rowcount or 0

        if count:
            log_activity(self.db, actor.id, f"{action.capitalize()} {count} {kind.name}(s)")
        await self.db.commit()

        logger.log_moderation_event(kind.name, f"bulk_{action}", count, actor.id, requested=len(ids))
        return count

    async def delete(self, kind: ContentKind, item_id: str, actor: User) -> None:
        """Owner or admin; feedback on the item goes first, in the same transaction"""
        item = await self._get(kind, item_id)
        if not (actor.is_admin or actor.id == kind.owner_id(item)):
            raise AuthorizationError(f"You can only delete your own {kind.name}s")

        if kind.feedback_attr:
            await self.db.execute(
                delete(Feedback)
                .where(getattr(Feedback, kind.feedback_attr) == item_id)
                .execution_options(synchronize_session=False)
            )

        url = getattr(item, "file_url", None) or getattr(item, "url", None)
        label = kind.label(item)

        await self.db.delete(item)
        log_activity(self.db, actor.id, f"Deleted {kind.name}", label)
        await self.db.commit()

        if url and self.storage is not None:
            await self.storage.delete(url)

        logger.log_moderation_event(kind.name, "deleted", 1, actor.id, item_id=item_id)

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    async def submit_note(self, user: User, title: str, semester: int, subject_id: str,
                          branches: List[str], upload: UploadFile) -> Note:
        """One note row for the upload, tagged with every branch it applies to"""
        subject = await self.db.get(Subject, subject_id)
        if subject is None:
            raise SubjectNotFoundError(subject_id)

        contents, filename = await self._read_upload(upload)
        file_url = await self.storage.save(io.BytesIO(contents), filename, upload.content_type)

        note = Note(
            title=title,
            semester=semester,
            subject_id=subject_id,
            file_url=file_url,
            uploaded_by_id=user.id,
            branch_tags=[NoteBranch(branch=b) for b in branches],
        )
        self.db.add(note)
        log_activity(self.db, user.id, "Uploaded note", title)
        await self.db.commit()

        logger.log_moderation_event("note", "submitted", 1, user.id, branches=branches)
        return await self._get(NOTES, note.id, refresh=True)

    async def list_approved_notes(self) -> List[Note]:
        result = await self.db.execute(
            select(Note)
            .where(Note.approved_by_id.isnot(None))
            .order_by(Note.created_at.desc())
        )
        return list(result.scalars().all())

    async def filter_notes(self, branch: Optional[str] = None, semester: Optional[int] = None,
                           subject_id: Optional[str] = None) -> List[Note]:
        """Approved notes matching every given filter, each note at most once"""
        query = select(Note).where(Note.approved_by_id.isnot(None))
        if semester is not None:
            query = query.where(Note.semester == semester)
        if subject_id:
            query = query.where(Note.subject_id == subject_id)
        if branch:
            # EXISTS keeps one row per note even with several matching tags
            query = query.where(Note.branch_tags.any(NoteBranch.branch == branch))
        result = await self.db.execute(query.order_by(Note.created_at.desc()))
        return list(result.scalars().all())

    async def note_feedback(self, note_id: str) -> List[Feedback]:
        result = await self.db.execute(
            select(Feedback).where(Feedback.note_id == note_id).order_by(Feedback.created_at.desc())
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Tips
    # ------------------------------------------------------------------

    async def submit_tip(self, user: User, title: str, content: str) -> Tip:
        tip = Tip(title=title, content=content, posted_by_id=user.id, status=TipStatus.PENDING)
        self.db.add(tip)
        log_activity(self.db, user.id, "Posted tip", title)
        await self.db.commit()

        logger.log_moderation_event("tip", "submitted", 1, user.id)
        return await self._get(TIPS, tip.id, refresh=True)

    async def list_approved_tips(self) -> List[Tip]:
        result = await self.db.execute(
            select(Tip).where(Tip.status == TipStatus.APPROVED).order_by(Tip.created_at.desc())
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    async def submit_file(self, user: User, upload: UploadFile) -> File:
        contents, filename = await self._read_upload(upload)
        url = await self.storage.save(io.BytesIO(contents), filename, upload.content_type)

        record = File(
            filename=filename,
            url=url,
            content_type=upload.content_type,
            size=len(contents),
            uploaded_by_id=user.id,
        )
        self.db.add(record)
        log_activity(self.db, user.id, "Uploaded file", filename)
        await self.db.commit()

        logger.log_moderation_event("file", "submitted", 1, user.id)
        return await self._get(FILES, record.id, refresh=True)

    async def list_approved_files(self) -> List[File]:
        result = await self.db.execute(
            select(File).where(File.approved_by_id.isnot(None)).order_by(File.created_at.desc())
        )
        return list(result.scalars().all())


def get_moderation_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageClient = Depends(get_storage),
) -> ModerationService:
    return ModerationService(db, storage)

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from notenexus.core.database import Base
from notenexus.core.types import GUID, generate_uuid


class Note(Base):
    """One uploaded note. Pending while approved_by_id is NULL."""
    __tablename__ = "notes"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    semester = Column(Integer, nullable=False, index=True)
    file_url = Column(String(1024), nullable=False)

    subject_id = Column(GUID, ForeignKey("subjects.id"), nullable=False, index=True)
    uploaded_by_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Moderation
    approved_by_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    approved_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    subject = relationship("Subject", lazy="selectin")
    uploaded_by = relationship("User", foreign_keys=[uploaded_by_id], lazy="selectin")
    branch_tags = relationship(
        "NoteBranch",
        back_populates="note",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="NoteBranch.branch",
    )

    @property
    def is_approved(self) -> bool:
        return self.approved_by_id is not None

    @property
    def branches(self) -> list:
        return sorted(tag.branch for tag in self.branch_tags)

    def __repr__(self):
        return f"<Note {self.title}>"


class NoteBranch(Base):
    """Branch tag on a note; a note is listed under each of its branches"""
    __tablename__ = "note_branches"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    note_id = Column(GUID, ForeignKey("notes.id", ondelete="CASCADE"), nullable=False, index=True)
    branch = Column(String(100), nullable=False, index=True)

    note = relationship("Note", back_populates="branch_tags")

    __table_args__ = (
        UniqueConstraint("note_id", "branch", name="uq_note_branches_note_branch"),
    )

    def __repr__(self):
        return f"<NoteBranch {self.note_id}:{self.branch}>"

from sqlalchemy import Column, Text, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from notenexus.core.database import Base
from notenexus.core.types import GUID, generate_uuid


class Feedback(Base):
    """Comment on exactly one note or tip"""
    __tablename__ = "feedback"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    content = Column(Text, nullable=False)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    note_id = Column(GUID, ForeignKey("notes.id", ondelete="CASCADE"), nullable=True, index=True)
    tip_id = Column(GUID, ForeignKey("tips.id", ondelete="CASCADE"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", lazy="selectin")

    __table_args__ = (
        CheckConstraint("(note_id IS NULL) <> (tip_id IS NULL)", name="ck_feedback_single_target"),
    )

    def __repr__(self):
        return f"<Feedback {self.id} by {self.user_id}>"

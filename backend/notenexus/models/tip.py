from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from notenexus.core.database import Base
from notenexus.core.types import GUID, generate_uuid


class TipStatus(str, enum.Enum):
    """Moderation state of a tip"""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Tip(Base):
    """Study tip posted by a student"""
    __tablename__ = "tips"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    status = Column(SQLEnum(TipStatus, name="tip_status"), default=TipStatus.PENDING, nullable=False, index=True)

    posted_by_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    approved_by_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    moderated_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    posted_by = relationship("User", foreign_keys=[posted_by_id], lazy="selectin")

    def __repr__(self):
        return f"<Tip {self.title} [{self.status}]>"

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from notenexus.core.database import Base
from notenexus.core.types import GUID, generate_uuid


class File(Base):
    """Shared file outside the notes catalogue. Pending while approved_by_id is NULL."""
    __tablename__ = "files"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    filename = Column(String(255), nullable=False)
    url = Column(String(1024), nullable=False)
    content_type = Column(String(255), nullable=True)
    size = Column(Integer, nullable=False, default=0)  # bytes

    uploaded_by_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    approved_by_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    approved_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    uploaded_by = relationship("User", foreign_keys=[uploaded_by_id], lazy="selectin")

    @property
    def is_approved(self) -> bool:
        return self.approved_by_id is not None

    def __repr__(self):
        return f"<File {self.filename}>"

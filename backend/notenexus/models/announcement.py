from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from datetime import datetime

from notenexus.core.database import Base
from notenexus.core.types import GUID, generate_uuid


class Announcement(Base):
    __tablename__ = "announcements"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    posted_by_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<Announcement {self.title}>"

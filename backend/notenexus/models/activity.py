from sqlalchemy import Column, String, DateTime, ForeignKey
from datetime import datetime

from notenexus.core.database import Base
from notenexus.core.types import GUID, generate_uuid


class Activity(Base):
    """Recent-activity entry shown on a user's dashboard"""
    __tablename__ = "activities"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    action = Column(String(100), nullable=False)  # e.g. 'Uploaded note', 'Approved tip'
    subject = Column(String(255), nullable=True)  # title of the affected item

    time = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<Activity {self.action} by {self.user_id}>"

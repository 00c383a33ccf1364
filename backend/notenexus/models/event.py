from sqlalchemy import Column, String, Text, DateTime
from datetime import datetime

from notenexus.core.database import Base
from notenexus.core.types import GUID, generate_uuid


class Event(Base):
    """Campus event shown on the dashboard"""
    __tablename__ = "events"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    event_date = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Event {self.title} @ {self.event_date}>"

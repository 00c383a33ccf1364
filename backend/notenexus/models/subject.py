from sqlalchemy import Column, String, Integer, DateTime, CheckConstraint
from datetime import datetime

from notenexus.core.database import Base
from notenexus.core.types import GUID, generate_uuid


class Subject(Base):
    """A course subject for one branch and semester"""
    __tablename__ = "subjects"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    branch = Column(String(100), nullable=False, index=True)
    semester = Column(Integer, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("semester BETWEEN 1 AND 8", name="ck_subjects_semester"),
    )

    def __repr__(self):
        return f"<Subject {self.name} ({self.branch} S{self.semester})>"

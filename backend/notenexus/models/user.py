from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Index, func, text
from datetime import datetime
import enum

from notenexus.core.database import Base
from notenexus.core.types import GUID, generate_uuid


class UserRole(str, enum.Enum):
    """User roles"""
    ADMIN = "ADMIN"
    STUDENT = "STUDENT"


class User(Base):
    """User model. Role is fixed at signup."""
    __tablename__ = "users"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    email = Column(String(255), nullable=False)  # always stored lower-cased
    name = Column(String(255), nullable=False)
    hashed_password = Column(String(255), nullable=False)

    role = Column(SQLEnum(UserRole, name="user_role"), default=UserRole.STUDENT, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        # At most one ADMIN row; closes the race between concurrent admin signups
        Index(
            "uq_users_single_admin",
            "role",
            unique=True,
            postgresql_where=text("role = 'ADMIN'"),
            sqlite_where=text("role = 'ADMIN'"),
        ),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self):
        return f"<User {self.email}>"


Index("uq_users_email_lower", func.lower(User.email), unique=True)

# Re-export all models for convenient imports
from notenexus.models.user import User, UserRole
from notenexus.models.subject import Subject
from notenexus.models.note import Note, NoteBranch
from notenexus.models.tip import Tip, TipStatus
from notenexus.models.file import File
from notenexus.models.announcement import Announcement
from notenexus.models.event import Event
from notenexus.models.feedback import Feedback
from notenexus.models.activity import Activity

__all__ = [
    # User
    "User",
    "UserRole",
    # Catalogue
    "Subject",
    "Note",
    "NoteBranch",
    # Moderated content
    "Tip",
    "TipStatus",
    "File",
    # Simple records
    "Announcement",
    "Event",
    "Feedback",
    "Activity",
]

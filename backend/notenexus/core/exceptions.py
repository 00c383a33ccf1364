"""
Custom Exceptions for NoteNexus
===============================

Every error raised by the services carries a machine-readable code and the
HTTP status the API layer answers with.

Usage:
    from notenexus.core.exceptions import NoteNotFoundError, AuthorizationError

    if not note:
        raise NoteNotFoundError(note_id)

    if note.uploaded_by_id != user.id and not user.is_admin:
        raise AuthorizationError("You can only delete your own notes")
"""

from typing import Optional, Any, Dict


class NoteNexusError(Exception):
    """Base exception for all NoteNexus errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(NoteNexusError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class InvalidFileTypeError(ValidationError):
    """File type not allowed"""

    def __init__(self, file_type: str, allowed_types: list):
        super().__init__(
            f"File type '{file_type}' not allowed. Allowed: {', '.join(allowed_types)}",
            field="file"
        )
        self.details["allowed_types"] = allowed_types


class FileTooLargeError(ValidationError):
    """Upload exceeds the configured size limit"""

    def __init__(self, size: int, max_size: int):
        super().__init__(
            f"File is too large ({size} bytes). Maximum is {max_size} bytes",
            field="file"
        )
        self.details["max_size"] = max_size


class InvalidOrExpiredOtpError(NoteNexusError):
    """Submitted OTP does not match a live pending code"""

    status_code = 400

    def __init__(self, message: str = "Invalid or expired OTP"):
        super().__init__(message, code="INVALID_OR_EXPIRED_OTP")


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(NoteNexusError):
    """User authentication failed"""

    status_code = 401

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_FAILED")


class TokenExpiredError(AuthenticationError):
    """JWT token has expired"""

    def __init__(self):
        super().__init__("Token has expired")
        self.code = "TOKEN_EXPIRED"


class InvalidTokenError(AuthenticationError):
    """JWT token is invalid"""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message)
        self.code = "INVALID_TOKEN"


class IncorrectPasswordError(AuthenticationError):
    """Password does not match the stored hash"""

    def __init__(self):
        super().__init__("Incorrect password")
        self.code = "INCORRECT_PASSWORD"


class AuthorizationError(NoteNexusError):
    """User not authorized for this action"""

    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, code="NOT_AUTHORIZED")


class UnverifiedEmailError(NoteNexusError):
    """Signup attempted without a verified email ticket"""

    status_code = 403

    def __init__(self, email: Optional[str] = None):
        super().__init__(
            "Email not verified. Please verify your email with the OTP first",
            code="EMAIL_NOT_VERIFIED",
            details={"email": email} if email else None
        )


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(NoteNexusError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with ID '{resource_id}' not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class UserNotFoundError(ResourceNotFoundError):
    """User not found (by id or email)"""

    def __init__(self, user_ref: str):
        super().__init__("User", user_ref)


class NoteNotFoundError(ResourceNotFoundError):
    def __init__(self, note_id: str):
        super().__init__("Note", note_id)


class TipNotFoundError(ResourceNotFoundError):
    def __init__(self, tip_id: str):
        super().__init__("Tip", tip_id)


class FileNotFoundError(ResourceNotFoundError):
    """Uploaded file record not found"""

    def __init__(self, file_id: str):
        super().__init__("File", file_id)


class SubjectNotFoundError(ResourceNotFoundError):
    def __init__(self, subject_id: str):
        super().__init__("Subject", subject_id)


class AnnouncementNotFoundError(ResourceNotFoundError):
    def __init__(self, announcement_id: str):
        super().__init__("Announcement", announcement_id)


class EventNotFoundError(ResourceNotFoundError):
    def __init__(self, event_id: str):
        super().__init__("Event", event_id)


class FeedbackNotFoundError(ResourceNotFoundError):
    def __init__(self, feedback_id: str):
        super().__init__("Feedback", feedback_id)


class FeedbackTargetNotFoundError(ResourceNotFoundError):
    """No note or tip with this id that the caller can see"""

    def __init__(self, target_id: str):
        super().__init__("Target", target_id)


# ============================================
# Conflict Errors (409-type)
# ============================================

class ConflictError(NoteNexusError):
    """Request conflicts with existing state"""

    status_code = 409

    def __init__(self, message: str, code: str = "CONFLICT",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=code, details=details)


class EmailTakenError(ConflictError):
    """An account already exists for this email"""

    def __init__(self, email: str):
        super().__init__(
            "User already exists with this email",
            code="EMAIL_TAKEN",
            details={"email": email}
        )


class AdminAlreadyExistsError(ConflictError):
    """Only one admin account may exist"""

    def __init__(self):
        super().__init__("An admin already exists", code="ADMIN_ALREADY_EXISTS")


class SubjectInUseError(ConflictError):
    """Subject still has notes attached"""

    def __init__(self, subject_id: str, note_count: int):
        super().__init__(
            "Subject still has notes and cannot be deleted",
            code="SUBJECT_IN_USE",
            details={"subject_id": subject_id, "note_count": note_count}
        )


# ============================================
# Collaborator Errors (500-type)
# ============================================

class ServiceError(NoteNexusError):
    """A backing service (mail, cache, storage) failed"""

    status_code = 500

    def __init__(self, message: str, code: str = "SERVICE_ERROR"):
        super().__init__(message, code=code)


class NotificationError(ServiceError):
    """Email could not be delivered"""

    def __init__(self, message: str = "Failed to send email"):
        super().__init__(message, code="NOTIFICATION_FAILED")


class CacheUnavailableError(ServiceError):
    """Redis is unreachable"""

    def __init__(self, message: str = "Verification cache is unavailable"):
        super().__init__(message, code="CACHE_UNAVAILABLE")


class StorageError(ServiceError):
    """Storage operation failed"""

    def __init__(self, message: str):
        super().__init__(message, code="STORAGE_ERROR")


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: NoteNexusError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "error": error.to_dict()
    }

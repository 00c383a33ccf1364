"""
Registration and authentication
===============================

Signup is gated on a verified email ticket (see verification_service):

    generate-otp -> verify-otp -> signup

The ticket is consumed in the same unit of work that inserts the user, so a
replayed or concurrent signup for the same email is refused.
"""

from typing import List, Optional, Tuple

from fastapi import Depends
from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from notenexus.core.config import settings
from notenexus.core.database import get_db
from notenexus.core.exceptions import (
    AdminAlreadyExistsError,
    AuthorizationError,
    EmailTakenError,
    IncorrectPasswordError,
    InvalidOrExpiredOtpError,
    NotificationError,
    UnverifiedEmailError,
    UserNotFoundError,
    ValidationError,
)
from notenexus.core.logging_config import logger
from notenexus.core.security import create_user_token, get_password_hash, verify_password
from notenexus.models import (
    Activity,
    Announcement,
    Feedback,
    File,
    Note,
    NoteBranch,
    Tip,
    User,
    UserRole,
)
from notenexus.services.email_service import EmailService, get_email_service
from notenexus.services.verification_service import (
    VerificationService,
    get_verification_service,
    normalize_email,
)


class AuthService:
    """User lifecycle: OTP, signup, signin, profile, deletion"""

    def __init__(
        self,
        db: AsyncSession,
        verification: Optional[VerificationService] = None,
        email_service: Optional[EmailService] = None,
    ):
        self.db = db
        self.verification = verification
        self.email_service = email_service

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(func.lower(User.email) == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def get_by_id(self, user_id: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def admin_count(self) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(User).where(User.role == UserRole.ADMIN)
        )
        return result.scalar() or 0

    async def list_users(self) -> List[User]:
        result = await self.db.execute(select(User).order_by(User.created_at.desc()))
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Email verification
    # ------------------------------------------------------------------

    async def request_otp(self, email: str) -> None:
        """Issue a code and mail it. The answer is the same whether or not an account exists."""
        email = normalize_email(email)
        code = await self.verification.issue_otp(email)

        sent = await self.email_service.send_otp_email(email, code, settings.OTP_TTL_MINUTES)
        if not sent:
            # Leave nothing behind that could never be delivered
            await self.verification.discard(email)
            logger.log_auth_event("otp_request", False, email, "email delivery failed")
            raise NotificationError("Failed to send OTP email. Please try again")

        logger.log_auth_event("otp_request", True, email)

    async def verify_otp(self, email: str, code: str) -> None:
        email = normalize_email(email)
        try:
            await self.verification.verify_otp(email, code)
        except InvalidOrExpiredOtpError:
            logger.log_auth_event("otp_verify", False, email, "invalid or expired code")
            raise
        logger.log_auth_event("otp_verify", True, email)

    # ------------------------------------------------------------------
    # Signup / signin
    # ------------------------------------------------------------------

    async def signup(self, email: str, name: str, password: str, role: UserRole) -> Tuple[User, str]:
        """Create the account for a verified email and return it with a session token"""
        email = normalize_email(email)

        if not await self.verification.is_verified(email):
            logger.log_auth_event("signup", False, email, "email not verified")
            raise UnverifiedEmailError(email)

        if role == UserRole.ADMIN and await self.admin_count() > 0:
            logger.log_auth_event("signup", False, email, "admin already exists")
            raise AdminAlreadyExistsError()

        if await self.get_by_email(email):
            logger.log_auth_event("signup", False, email, "email taken")
            raise EmailTakenError(email)

        user = User(
            email=email,
            name=name,
            hashed_password=get_password_hash(password),
            role=role,
        )
        self.db.add(user)

        try:
            await self.db.flush()
        except IntegrityError:
            # Lost a race against another signup; find out which constraint
            await self.db.rollback()
            if await self.get_by_email(email):
                raise EmailTakenError(email)
            if role == UserRole.ADMIN:
                raise AdminAlreadyExistsError()
            raise

        if not await self.verification.consume_verified(email):
            await self.db.rollback()
            logger.log_auth_event("signup", False, email, "verification already consumed")
            raise UnverifiedEmailError(email)

        await self.db.commit()

        logger.log_auth_event("signup", True, email, role=role.value)
        return user, create_user_token(user.id, user.role.value)

    async def signin(self, email: str, password: str) -> Tuple[User, str]:
        email = normalize_email(email)
        user = await self.get_by_email(email)

        if not user:
            logger.log_auth_event("signin", False, email, "user not found")
            raise UserNotFoundError(email)

        if not verify_password(password, user.hashed_password):
            logger.log_auth_event("signin", False, email, "incorrect password")
            raise IncorrectPasswordError()

        logger.log_auth_event("signin", True, email)
        return user, create_user_token(user.id, user.role.value)

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    async def update_profile(self, user: User, name: Optional[str], password: Optional[str]) -> User:
        if name is None and password is None:
            raise ValidationError("Nothing to update", field="name")

        if name is not None:
            name = name.strip()
            if len(name) < 5:
                raise ValidationError("Name must be at least 5 characters", field="name")
            user.name = name
        if password is not None:
            user.hashed_password = get_password_hash(password)

        await self.db.commit()
        logger.info(f"Profile updated for {user.email}", extra={"event_type": "profile_update"})
        return user

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    async def delete_user(self, actor: User, user_id: str) -> None:
        """Delete a user and everything they own, in one transaction"""
        if user_id == actor.id:
            raise AuthorizationError("Admins cannot delete their own account")

        user = await self.get_by_id(user_id)
        if not user:
            raise UserNotFoundError(user_id)

        note_ids = select(Note.id).where(Note.uploaded_by_id == user_id)
        tip_ids = select(Tip.id).where(Tip.posted_by_id == user_id)

        await self.db.execute(
            delete(Feedback)
            .where(or_(
                Feedback.user_id == user_id,
                Feedback.note_id.in_(note_ids),
                Feedback.tip_id.in_(tip_ids),
            ))
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(
            delete(NoteBranch)
            .where(NoteBranch.note_id.in_(note_ids))
            .execution_options(synchronize_session=False)
        )
        for model, owner_column in (
            (Note, Note.uploaded_by_id),
            (Tip, Tip.posted_by_id),
            (File, File.uploaded_by_id),
            (Announcement, Announcement.posted_by_id),
            (Activity, Activity.user_id),
        ):
            await self.db.execute(
                delete(model).where(owner_column == user_id).execution_options(synchronize_session=False)
            )

        # Tip moderation keeps its status; only the moderator reference goes
        await self.db.execute(
            update(Tip)
            .where(Tip.approved_by_id == user_id)
            .values(approved_by_id=None)
            .execution_options(synchronize_session=False)
        )

        await self.db.delete(user)
        await self.db.commit()

        logger.info(
            f"User {user.email} deleted by {actor.email}",
            extra={"event_type": "user_deleted", "target_user_id": user_id, "actor_id": actor.id}
        )


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    verification: VerificationService = Depends(get_verification_service),
    email_service: EmailService = Depends(get_email_service),
) -> AuthService:
    return AuthService(db, verification, email_service)

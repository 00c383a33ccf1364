from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional

from notenexus.core.database import get_db
from notenexus.core.exceptions import AuthorizationError, InvalidTokenError, UserNotFoundError
from notenexus.core.logging_config import set_user_id
from notenexus.core.security import decode_token
from notenexus.models.user import User, UserRole

# auto_error=False so a missing header goes through our own 401 envelope
security = HTTPBearer(auto_error=False)


async def _resolve_user(token: str, db: AsyncSession) -> User:
    payload = decode_token(token)
    user_id = payload["sub"]

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    # Valid token for an account that has since been deleted
    if not user:
        raise UserNotFoundError(user_id)

    set_user_id(user.id)
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Get current authenticated user"""
    if credentials is None or not credentials.credentials:
        raise InvalidTokenError("Missing bearer token")
    return await _resolve_user(credentials.credentials, db)


async def get_optional_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """Current user when a token is sent, None for anonymous requests"""
    if credentials is None or not credentials.credentials:
        return None
    return await _resolve_user(credentials.credentials, db)


async def get_current_admin(
    current_user: User = Depends(get_current_user)
) -> User:
    """Get current admin user"""
    if current_user.role != UserRole.ADMIN:
        raise AuthorizationError("Admin access required")
    return current_user

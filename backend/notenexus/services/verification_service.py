"""
Email verification tickets
==========================

One Redis key per email, `verification:<email>`, holding either a pending
OTP or the verified marker:

    {"state": "pending", "code": "012345"}
    {"state": "verified"}

Every write refreshes the TTL; expiry is left to Redis. A single key means
the code and the marker can never both be live for one email.
"""

import json
import secrets
from dataclasses import dataclass
from typing import Optional, Union

from fastapi import Depends

from notenexus.core.config import settings
from notenexus.core.exceptions import InvalidOrExpiredOtpError
from notenexus.core.logging_config import logger
from notenexus.core.redis_client import RedisClient, get_redis


STATE_PENDING = "pending"
STATE_VERIFIED = "verified"

VERIFIED_PAYLOAD = json.dumps({"state": STATE_VERIFIED})


@dataclass(frozen=True)
class PendingOtp:
    code: str


@dataclass(frozen=True)
class Verified:
    pass


Ticket = Union[PendingOtp, Verified]


def normalize_email(email: str) -> str:
    return email.strip().lower()


def generate_otp() -> str:
    """Zero-padded numeric code of OTP_LENGTH digits"""
    length = settings.OTP_LENGTH
    return f"{secrets.randbelow(10 ** length):0{length}d}"


class VerificationService:
    """Issue, check and consume per-email verification tickets"""

    def __init__(self, redis: RedisClient):
        self.redis = redis
        self.ttl = settings.OTP_TTL_SECONDS

    def _key(self, email: str) -> str:
        return f"{settings.VERIFICATION_KEY_PREFIX}{normalize_email(email)}"

    async def get_ticket(self, email: str) -> Optional[Ticket]:
        raw = await self.redis.get(self._key(email))
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(f"[Verification] Unreadable ticket for {normalize_email(email)}, ignoring")
            return None

        state = data.get("state")
        if state == STATE_PENDING and isinstance(data.get("code"), str):
            return PendingOtp(code=data["code"])
        if state == STATE_VERIFIED:
            return Verified()
        return None

    async def issue_otp(self, email: str) -> str:
        """Create a new code, replacing any existing ticket for the email"""
        code = generate_otp()
        payload = json.dumps({"state": STATE_PENDING, "code": code})
        await self.redis.set(self._key(email), payload, expire=self.ttl)
        return code

    async def verify_otp(self, email: str, code: str) -> None:
        """Turn a matching pending code into the verified marker.

        A mismatch leaves the pending ticket in place so the user can retry.
        """
        ticket = await self.get_ticket(email)
        submitted = (code or "").strip()

        if not isinstance(ticket, PendingOtp) or ticket.code != submitted:
            raise InvalidOrExpiredOtpError()

        await self.redis.set(self._key(email), VERIFIED_PAYLOAD, expire=self.ttl)

    async def is_verified(self, email: str) -> bool:
        return isinstance(await self.get_ticket(email), Verified)

    async def consume_verified(self, email: str) -> bool:
        """Delete the verified marker if it is still there.

        Returns False when it was already consumed or has expired, which is
        what a concurrent signup for the same email sees.
        """
        return await self.redis.delete_if_equals(self._key(email), VERIFIED_PAYLOAD)

    async def discard(self, email: str) -> None:
        await self.redis.delete(self._key(email))


def get_verification_service(redis: RedisClient = Depends(get_redis)) -> VerificationService:
    return VerificationService(redis)

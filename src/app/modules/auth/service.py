"""
Admin Authentication Service

The admin session guard issues, validates and revokes opaque admin tokens.
One guard instance is created in the application lifespan and handed to
request handlers through a dependency (see app.core.auth).

Security considerations:
- Tokens come from secrets.token_urlsafe and are stored SHA-256 hashed
- Sessions expire a fixed 24 hours after issuance, regardless of activity
- Expired sessions are deleted as soon as they are presented, and an hourly
  job purges the rest
- bcrypt verification runs in a worker thread so it does not stall the loop
"""

import asyncio
import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ServiceError
from app.core.security import generate_session_token, hash_password, hash_token, verify_password
from app.modules.auth import repository

logger = logging.getLogger(__name__)


class AuthError(ServiceError):
    """Raised when admin credentials are missing, wrong, or expired."""

    def __init__(self, message: str = "Invalid password.", error_code: str = "INVALID_CREDENTIALS"):
        super().__init__(message=message, error_code=error_code, status_code=401)


class SessionState(str, enum.Enum):
    """Outcome of validating an admin token."""

    OK = "ok"
    EXPIRED = "expired"
    INVALID = "invalid"


@dataclass(frozen=True)
class IssuedSession:
    token: str
    expires_at: datetime


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AdminSessionGuard:
    """
    Issues and checks admin session tokens.

    Args:
        ttl: Absolute lifetime of a session from issuance
        clock: Source of the current time (overridable in tests)
    """

    def __init__(self, ttl: timedelta, clock: Callable[[], datetime] | None = None):
        self.ttl = ttl
        self._clock = clock or _utcnow

    def now(self) -> datetime:
        return self._clock()

    async def issue(
        self,
        db: AsyncSession,
        password: str,
        client_ip: str | None = None,
    ) -> IssuedSession:
        """
        Exchange the admin password for a new session token.

        Raises:
            AuthError: If no credential is configured or the password is wrong
        """
        credential = await repository.get_credential(db)

        if credential is None:
            logger.error("Admin login attempted but no admin credential is configured")
            raise AuthError()

        matches = await asyncio.to_thread(verify_password, password, credential.password_hash)
        if not matches:
            logger.warning(f"Failed admin login from {client_ip or 'unknown'}")
            raise AuthError()

        token = generate_session_token()
        issued_at = self.now()
        expires_at = issued_at + self.ttl

        await repository.create_session(
            db,
            token_hash=hash_token(token),
            issued_at=issued_at,
            expires_at=expires_at,
            client_ip=client_ip,
        )

        logger.info(f"Admin session issued ({token[:6]}...), expires {expires_at.isoformat()}")
        return IssuedSession(token=token, expires_at=expires_at)

    async def validate(self, db: AsyncSession, token: str | None) -> SessionState:
        """Check a presented token. Expired sessions are removed."""
        if not token:
            return SessionState.INVALID

        token_hash = hash_token(token)
        session = await repository.get_session(db, token_hash)

        if session is None:
            return SessionState.INVALID

        if self.now() >= session.expires_at:
            await repository.delete_session(db, token_hash)
            logger.info("Expired admin session rejected and removed")
            return SessionState.EXPIRED

        return SessionState.OK

    async def revoke(self, db: AsyncSession, token: str | None) -> None:
        """Invalidate a token. Unknown or empty tokens are ignored."""
        if not token:
            return

        removed = await repository.delete_session(db, hash_token(token))
        if removed:
            logger.info("Admin session revoked")


async def ensure_admin_credential(db: AsyncSession, password: str | None) -> bool:
    """
    Create the admin credential from configuration if none exists yet.

    An existing credential is never overwritten.

    Returns:
        True if a credential was created
    """
    if await repository.get_credential(db) is not None:
        logger.info("Admin credential already configured, leaving it unchanged")
        return False

    if not password:
        logger.warning("ADMIN_PASSWORD not set - admin login is disabled until it is")
        return False

    password_hash = await asyncio.to_thread(hash_password, password)
    await repository.create_credential(db, password_hash)
    logger.info("Admin credential created from ADMIN_PASSWORD")
    return True

"""
Admin Authentication Dependencies

Every admin endpoint depends on `get_current_admin`, which reads the
`x-admin-token` header and validates it with the session guard held on
`app.state`. Any outcome other than a live session is a 401.
"""

import logging
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.modules.auth.service import AdminSessionGuard, SessionState

logger = logging.getLogger(__name__)

ADMIN_TOKEN_HEADER = "x-admin-token"

admin_token_header = APIKeyHeader(
    name=ADMIN_TOKEN_HEADER,
    auto_error=False,
    description="Admin session token returned by POST /admin/login",
)


@dataclass
class AdminContext:
    """An authenticated admin request."""

    token: str

    def __str__(self) -> str:
        return f"AdminContext(token={self.token[:6]}...)"


def get_session_guard(request: Request) -> AdminSessionGuard:
    """Return the session guard created in the application lifespan."""
    return request.app.state.session_guard


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={
            "error": error,
            "message": message,
        },
    )


async def get_current_admin(
    token: str | None = Depends(admin_token_header),
    db: AsyncSession = Depends(get_db),
    guard: AdminSessionGuard = Depends(get_session_guard),
) -> AdminContext:
    """
    FastAPI dependency guarding admin endpoints.

    Usage:
        @router.post("/toggle-session")
        async def toggle(admin: AdminContext = Depends(get_current_admin)):
            ...

    Raises:
        HTTPException 401: If the token is missing, unknown, or expired
    """
    if not token:
        raise _unauthorized("NOT_AUTHENTICATED", "Not authenticated. Please log in.")

    state = await guard.validate(db, token)

    if state is SessionState.EXPIRED:
        logger.info("Rejected admin request with expired session")
        raise _unauthorized("SESSION_EXPIRED", "Session expired. Please log in again.")

    if state is not SessionState.OK:
        logger.warning("Rejected admin request with invalid token")
        raise _unauthorized("INVALID_TOKEN", "Invalid or unknown session token.")

    return AdminContext(token=token)


__all__ = [
    "ADMIN_TOKEN_HEADER",
    "AdminContext",
    "get_current_admin",
    "get_session_guard",
]

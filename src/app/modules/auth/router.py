"""Admin authentication router."""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AdminContext, get_current_admin, get_session_guard
from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import internal_error, to_http_exception
from app.core.rate_limit import client_ip, ip_rate_limit
from app.modules.auth.schemas import LoginRequest, LoginResponse, LogoutResponse
from app.modules.auth.service import AdminSessionGuard, AuthError

logger = logging.getLogger(__name__)

router = APIRouter()

login_rate_limit = ip_rate_limit(
    "admin_login",
    settings.login_rate_limit,
    settings.login_rate_window_seconds,
)


@router.post(
    "/login",
    response_model=LoginResponse,
    dependencies=[Depends(login_rate_limit)],
    responses={
        401: {"description": "Wrong password"},
        429: {"description": "Too many login attempts"},
    },
)
async def login(
    credentials: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    guard: AdminSessionGuard = Depends(get_session_guard),
) -> LoginResponse:
    """
    Exchange the admin password for a session token.

    The token must be sent back in the `x-admin-token` header and stays
    valid for 24 hours.
    """
    try:
        session = await guard.issue(db, credentials.password, client_ip=client_ip(request))
    except AuthError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Error during admin login: {e}")
        raise internal_error() from e

    return LoginResponse(token=session.token, expires_at=session.expires_at)


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    admin: AdminContext = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    guard: AdminSessionGuard = Depends(get_session_guard),
) -> LogoutResponse:
    """Revoke the current admin token."""
    await guard.revoke(db, admin.token)
    return LogoutResponse()

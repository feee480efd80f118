"""
Admin Session Background Jobs

Expired sessions are already refused (and deleted) when presented; this
hourly sweep removes the ones that are never presented again.
"""

import logging
from datetime import UTC, datetime

from apscheduler.triggers.interval import IntervalTrigger

from app.core.database import async_session_maker
from app.core.scheduler import register_job
from app.modules.auth import repository

logger = logging.getLogger(__name__)

JOB_ID_PURGE_SESSIONS = "auth_purge_expired_sessions"


async def purge_expired_sessions() -> int:
    """Delete admin sessions past their expiry. Returns the number removed."""
    async with async_session_maker() as db:
        removed = await repository.delete_expired_sessions(db, datetime.now(UTC))

    if removed:
        logger.info(f"Purged {removed} expired admin session(s)")
    return removed


def register_auth_jobs() -> None:
    register_job(
        job_id=JOB_ID_PURGE_SESSIONS,
        func=purge_expired_sessions,
        trigger=IntervalTrigger(hours=1),
    )

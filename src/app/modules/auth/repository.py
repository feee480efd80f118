"""
Admin Authentication Repository

Database operations for the admin credential and admin sessions.
"""

from datetime import datetime

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ADMIN_CREDENTIAL_ID, AdminCredential, AdminSession


async def get_credential(db: AsyncSession) -> AdminCredential | None:
    """Get the admin credential singleton."""
    return await db.get(AdminCredential, ADMIN_CREDENTIAL_ID)


async def create_credential(db: AsyncSession, password_hash: str) -> AdminCredential:
    """Store the admin credential singleton."""
    credential = AdminCredential(id=ADMIN_CREDENTIAL_ID, password_hash=password_hash)

    db.add(credential)
    await db.commit()
    await db.refresh(credential)

    return credential


async def create_session(
    db: AsyncSession,
    token_hash: str,
    issued_at: datetime,
    expires_at: datetime,
    client_ip: str | None = None,
) -> AdminSession:
    """Persist a newly issued admin session."""
    session = AdminSession(
        token_hash=token_hash,
        issued_at=issued_at,
        expires_at=expires_at,
        client_ip=client_ip,
    )

    db.add(session)
    await db.commit()

    return session


async def get_session(db: AsyncSession, token_hash: str) -> AdminSession | None:
    return await db.get(AdminSession, token_hash)


async def delete_session(db: AsyncSession, token_hash: str) -> bool:
    """Delete a session. Returns True if a row was removed."""
    result = await db.execute(delete(AdminSession).where(AdminSession.token_hash == token_hash))
    await db.commit()
    return result.rowcount > 0


async def delete_expired_sessions(db: AsyncSession, now: datetime) -> int:
    """Delete every session whose expiry is in the past."""
    result = await db.execute(delete(AdminSession).where(AdminSession.expires_at <= now))
    await db.commit()
    return result.rowcount

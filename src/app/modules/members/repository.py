"""
Member Repository

Database operations for confirmed members. `create` only flushes: the
caller owns the transaction so that the capacity check, the member insert
and the submission status change commit together.
"""

import logging
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.members.models import Member

logger = logging.getLogger(__name__)


class MemberRepository:
    """Repository for member database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        submission_id: UUID | None,
        name: str,
        email: str,
        whatsapp: str,
        project: str,
    ) -> Member:
        """
        Add a member to the current transaction.

        Args:
            db: Database session
            submission_id: Submission this member was approved from
            name: Member's name
            email: Member's email
            whatsapp: Member's WhatsApp number
            project: Project description

        Returns:
            The flushed Member (id and confirmed_at populated)
        """
        member = Member(
            submission_id=submission_id,
            name=name,
            email=email,
            whatsapp=whatsapp,
            project=project,
        )

        db.add(member)
        await db.flush()
        await db.refresh(member)

        logger.info(f"Created member: {member.id} - {member.email}")
        return member

    @staticmethod
    async def count(db: AsyncSession) -> int:
        """Number of confirmed members."""
        result = await db.execute(select(func.count()).select_from(Member))
        return result.scalar_one()

    @staticmethod
    async def list_all(db: AsyncSession) -> list[Member]:
        """All members, oldest confirmation first."""
        result = await db.execute(select(Member).order_by(Member.confirmed_at.asc()))
        return list(result.scalars().all())

    @staticmethod
    async def delete_all(db: AsyncSession) -> int:
        """Delete every member (full reset). Does not commit."""
        result = await db.execute(delete(Member))
        return result.rowcount

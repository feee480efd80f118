"""
Members Service

Read side of the member registry: the admin list and the bulk exports.
"""

import asyncio
import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import ServiceError
from app.modules.capacity import service as capacity_service
from app.modules.capacity.service import CapacityStatus
from app.modules.members.exports import build_members_csv, export_filename, render_members_pdf
from app.modules.members.models import Member
from app.modules.members.repository import MemberRepository

logger = logging.getLogger(__name__)


class NothingToExportError(ServiceError):
    """Raised when an export is requested with no members."""

    def __init__(self):
        super().__init__(
            message="No enrollments to export.",
            error_code="NOTHING_TO_EXPORT",
            status_code=400,
        )


@dataclass(frozen=True)
class ExportFile:
    filename: str
    media_type: str
    content: bytes


async def list_members(db: AsyncSession) -> tuple[list[Member], CapacityStatus]:
    """All members with the current capacity summary."""
    members = await MemberRepository.list_all(db)
    status = await capacity_service.check_capacity(db)
    return members, status


async def export_csv(db: AsyncSession) -> ExportFile:
    """
    Raises:
        NothingToExportError: If there are no members
    """
    members = await MemberRepository.list_all(db)
    if not members:
        raise NothingToExportError()

    logger.info(f"Exporting {len(members)} member(s) as CSV")
    return ExportFile(
        filename=export_filename("inscriptions", "csv"),
        media_type="text/csv; charset=utf-8",
        content=build_members_csv(members),
    )


async def export_pdf(db: AsyncSession) -> ExportFile:
    """
    Raises:
        NothingToExportError: If there are no members
    """
    members, status = await list_members(db)
    if not members:
        raise NothingToExportError()

    logger.info(f"Exporting {len(members)} member(s) as PDF")
    content = await asyncio.to_thread(
        render_members_pdf,
        members,
        program=settings.program_name,
        max_places=status.max_places,
    )
    return ExportFile(
        filename=export_filename("inscriptions", "pdf"),
        media_type="application/pdf",
        content=content,
    )

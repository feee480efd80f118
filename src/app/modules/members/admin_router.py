"""
Members Admin Router

- GET /admin/inscriptions - confirmed members and capacity summary
- GET /admin/export-csv - members as CSV (UTF-8 with BOM)
- GET /admin/export-pdf - members as PDF
"""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AdminContext, get_current_admin
from app.core.database import get_db
from app.core.exceptions import internal_error, to_http_exception
from app.modules.members import service
from app.modules.members.schemas import InscriptionsResponse, MemberResponse
from app.modules.members.service import ExportFile, NothingToExportError

logger = logging.getLogger(__name__)

router = APIRouter()


def _file_response(export: ExportFile) -> Response:
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


@router.get("/inscriptions", response_model=InscriptionsResponse)
async def list_inscriptions(
    db: AsyncSession = Depends(get_db),
    admin: AdminContext = Depends(get_current_admin),
) -> InscriptionsResponse:
    """List confirmed members with the capacity summary."""
    try:
        members, status = await service.list_members(db)
    except Exception as e:
        logger.exception(f"Error listing members: {e}")
        raise internal_error() from e

    return InscriptionsResponse(
        total=status.count,
        max=status.max_places,
        available=status.available,
        session_open=status.session_open,
        inscriptions=[MemberResponse.model_validate(member) for member in members],
    )


@router.get(
    "/export-csv",
    response_class=Response,
    responses={400: {"description": "No members to export"}},
)
async def export_csv(
    db: AsyncSession = Depends(get_db),
    admin: AdminContext = Depends(get_current_admin),
) -> Response:
    """Download the member registry as CSV."""
    try:
        export = await service.export_csv(db)
    except NothingToExportError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Error exporting CSV: {e}")
        raise internal_error() from e

    return _file_response(export)


@router.get(
    "/export-pdf",
    response_class=Response,
    responses={400: {"description": "No members to export"}},
)
async def export_pdf(
    db: AsyncSession = Depends(get_db),
    admin: AdminContext = Depends(get_current_admin),
) -> Response:
    """Download the member registry as PDF."""
    try:
        export = await service.export_pdf(db)
    except NothingToExportError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Error exporting PDF: {e}")
        raise internal_error() from e

    return _file_response(export)

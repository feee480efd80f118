"""
Capacity Public Router

- GET /api/inscriptions-count - seats taken, seats configured, session flag
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import internal_error
from app.modules.capacity import service
from app.modules.capacity.schemas import CapacityResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/inscriptions-count", response_model=CapacityResponse)
async def inscriptions_count(db: AsyncSession = Depends(get_db)) -> CapacityResponse:
    """Remaining-seats counter shown on the landing page."""
    try:
        status = await service.check_capacity(db)
    except Exception as e:
        logger.exception(f"Error reading capacity: {e}")
        raise internal_error() from e

    logger.debug(f"Capacity {status.count}/{status.max_places}, open={status.session_open}")
    return CapacityResponse.from_status(status)

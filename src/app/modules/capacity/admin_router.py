"""
Capacity Admin Router

- POST /admin/toggle-session - open or close new submissions
- POST /admin/update-places - increment, decrement, reset or set max places
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AdminContext, get_current_admin
from app.core.database import get_db
from app.core.exceptions import ServiceError, internal_error, to_http_exception
from app.modules.capacity import service
from app.modules.capacity.schemas import (
    ToggleSessionResponse,
    UpdatePlacesRequest,
    UpdatePlacesResponse,
)
from app.modules.capacity.service import PlacesAction

logger = logging.getLogger(__name__)

router = APIRouter()

_ACTION_MESSAGES = {
    PlacesAction.INCREMENT: "Places added. {new_max} places in total.",
    PlacesAction.DECREMENT: "Places removed. {new_max} places in total.",
    PlacesAction.RESET: "Places reset to {new_max}.",
    PlacesAction.SET: "Places set to {new_max}.",
}


@router.post("/toggle-session", response_model=ToggleSessionResponse)
async def toggle_session(
    db: AsyncSession = Depends(get_db),
    admin: AdminContext = Depends(get_current_admin),
) -> ToggleSessionResponse:
    """Flip the session flag."""
    try:
        status = await service.toggle_session(db)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Error toggling session: {e}")
        raise internal_error() from e

    return ToggleSessionResponse(
        session_open=status.session_open,
        message="Session opened" if status.session_open else "Session closed",
    )


@router.post(
    "/update-places",
    response_model=UpdatePlacesResponse,
    responses={400: {"description": "Invalid action or resulting places below 1"}},
)
async def update_places(
    data: UpdatePlacesRequest,
    db: AsyncSession = Depends(get_db),
    admin: AdminContext = Depends(get_current_admin),
) -> UpdatePlacesResponse:
    """
    Change the number of places.

    `maxPlaces` is the step for increment/decrement (default 1) and the
    target value for set; it is ignored for reset.
    """
    try:
        status = await service.update_places(db, data.action, data.max_places)
    except ServiceError as e:
        logger.warning(f"Places update refused ({data.action.value}): {e.message}")
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Error updating places: {e}")
        raise internal_error() from e

    return UpdatePlacesResponse(
        message=_ACTION_MESSAGES[data.action].format(new_max=status.max_places),
        new_max=status.max_places,
        total_count=status.count,
    )

"""
Enrollment Admin Router

All endpoints require a valid `x-admin-token`.

- GET /admin/pending-payments - submissions, optionally filtered by status
- POST /admin/approve-project/{id}
- POST /admin/reject-project/{id}
- POST /admin/approve-payment/{id}
- POST /admin/reject-payment/{id}
- POST /admin/reset-all
"""

import logging
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AdminContext, get_current_admin
from app.core.database import get_db
from app.core.exceptions import ServiceError, internal_error, to_http_exception
from app.modules.enrollment import service
from app.modules.enrollment.models import SubmissionStatus
from app.modules.enrollment.schemas import (
    ApprovePaymentRequest,
    ApprovePaymentResponse,
    RejectProjectRequest,
    ResetAllResponse,
    SubmissionActionResponse,
    SubmissionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_STATE_RESPONSES = {
    401: {"description": "Not authenticated"},
    404: {"description": "Submission not found"},
    409: {"description": "Submission is not in the required status"},
}


@router.get("/pending-payments", response_model=list[SubmissionResponse])
async def list_submissions(
    status: SubmissionStatus | None = Query(None, description="Filter by status"),
    db: AsyncSession = Depends(get_db),
    admin: AdminContext = Depends(get_current_admin),
) -> list[SubmissionResponse]:
    """List submissions, newest first, with their payment proofs."""
    try:
        submissions = await service.list_submissions(db, status)
    except Exception as e:
        logger.exception(f"Error listing submissions: {e}")
        raise internal_error() from e

    return [SubmissionResponse.from_model(s) for s in submissions]


@router.post(
    "/approve-project/{submission_id}",
    response_model=SubmissionActionResponse,
    responses=_STATE_RESPONSES,
)
async def approve_project(
    submission_id: UUID,
    background: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    admin: AdminContext = Depends(get_current_admin),
) -> SubmissionActionResponse:
    """Accept the project; the applicant receives the payment link."""
    try:
        submission = await service.approve_project(db, submission_id, background)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Error approving project {submission_id}: {e}")
        raise internal_error() from e

    return SubmissionActionResponse(
        message="Project approved, payment instructions sent.",
        id=submission.id,
        status=submission.status,
    )


@router.post(
    "/reject-project/{submission_id}",
    response_model=SubmissionActionResponse,
    responses=_STATE_RESPONSES,
)
async def reject_project(
    submission_id: UUID,
    background: BackgroundTasks,
    data: RejectProjectRequest | None = None,
    db: AsyncSession = Depends(get_db),
    admin: AdminContext = Depends(get_current_admin),
) -> SubmissionActionResponse:
    """Refuse the project, optionally with a reason sent to the applicant."""
    reason = data.reason if data else None
    try:
        submission = await service.reject_project(db, submission_id, reason, background)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Error rejecting project {submission_id}: {e}")
        raise internal_error() from e

    return SubmissionActionResponse(
        message="Project rejected, applicant notified.",
        id=submission.id,
        status=submission.status,
    )


@router.post(
    "/approve-payment/{submission_id}",
    response_model=ApprovePaymentResponse,
    responses=_STATE_RESPONSES,
)
async def approve_payment(
    submission_id: UUID,
    background: BackgroundTasks,
    data: ApprovePaymentRequest | None = None,
    db: AsyncSession = Depends(get_db),
    admin: AdminContext = Depends(get_current_admin),
) -> ApprovePaymentResponse:
    """
    Approve the payment and enroll the applicant.

    Fails with 409 CAPACITY_EXCEEDED when every place is taken; the
    submission then stays pending.
    """
    group_link = data.group_link if data else None
    try:
        submission, capacity = await service.approve_payment(
            db, submission_id, group_link or None, background
        )
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Error approving payment {submission_id}: {e}")
        raise internal_error() from e

    return ApprovePaymentResponse(
        message="Payment approved, client notified.",
        id=submission.id,
        status=submission.status,
        count=capacity.count,
        max=capacity.max_places,
    )


@router.post(
    "/reject-payment/{submission_id}",
    response_model=SubmissionActionResponse,
    responses=_STATE_RESPONSES,
)
async def reject_payment(
    submission_id: UUID,
    background: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    admin: AdminContext = Depends(get_current_admin),
) -> SubmissionActionResponse:
    """Refuse the payment proof; the applicant may send a new one."""
    try:
        submission = await service.reject_payment(db, submission_id, background)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Error rejecting payment {submission_id}: {e}")
        raise internal_error() from e

    return SubmissionActionResponse(
        message="Payment rejected, notification email sent.",
        id=submission.id,
        status=submission.status,
    )


@router.post("/reset-all", response_model=ResetAllResponse)
async def reset_all(
    db: AsyncSession = Depends(get_db),
    admin: AdminContext = Depends(get_current_admin),
) -> ResetAllResponse:
    """Erase all enrollment data and restore the default configuration."""
    try:
        summary = await service.reset_all(db)
    except Exception as e:
        logger.exception(f"Error during full reset: {e}")
        raise internal_error() from e

    return ResetAllResponse(
        message="Toutes les données ont été réinitialisées.",
        submissions_deleted=summary.submissions,
        members_deleted=summary.members,
        group_links_deleted=summary.group_links,
        archives_deleted=summary.archives,
    )

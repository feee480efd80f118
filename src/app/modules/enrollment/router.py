"""
Enrollment Public Router

- POST /api/submit - applicant form, creates a submission for review
- POST /api/confirm-payment - payment proof (multipart), rate limited
- POST /api/download-acceptance-pdf - acceptance document, archived copy kept
"""

import logging
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import ServiceError, internal_error, to_http_exception
from app.core.rate_limit import ip_rate_limit
from app.modules.enrollment import service
from app.modules.enrollment.schemas import (
    AcceptanceRequest,
    ConfirmPaymentResponse,
    SubmitRequest,
    SubmitResponse,
)
from app.modules.enrollment.service import ProofUpload

logger = logging.getLogger(__name__)

router = APIRouter()

payment_rate_limit = ip_rate_limit(
    "confirm_payment",
    settings.payment_rate_limit,
    settings.payment_rate_window_seconds,
)


@router.post(
    "/submit",
    response_model=SubmitResponse,
    status_code=201,
    responses={
        400: {"description": "Invalid applicant data"},
        409: {"description": "Session closed or no places left"},
    },
)
async def submit(
    data: SubmitRequest,
    background: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
) -> SubmitResponse:
    """
    Submit an enrollment request.

    The project is reviewed by an admin before any payment is requested.
    """
    try:
        submission = await service.submit_submission(db, data, background)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Error creating submission: {e}")
        raise internal_error() from e

    return SubmitResponse(
        message="Your project has been received and will be reviewed.",
        id=submission.id,
        status=submission.status,
    )


@router.post(
    "/confirm-payment",
    response_model=ConfirmPaymentResponse,
    dependencies=[Depends(payment_rate_limit)],
    responses={
        400: {"description": "Invalid proof"},
        404: {"description": "Submission not found"},
        409: {"description": "No proof expected or attempts exhausted"},
        429: {"description": "Too many payment submissions"},
    },
)
async def confirm_payment(
    background: BackgroundTasks,
    id: UUID = Form(...),
    method: str | None = Form(None),
    transaction_id: str | None = Form(None, alias="transactionId"),
    proof: UploadFile | None = File(None),
    db: AsyncSession = Depends(get_db),
) -> ConfirmPaymentResponse:
    """Send a payment proof: a screenshot or a numeric transaction ID."""
    upload = None
    if proof is not None:
        # One byte past the limit is enough to detect an oversized file
        content = await proof.read(settings.max_upload_bytes + 1)
        upload = ProofUpload(content=content, content_type=proof.content_type)

    try:
        submission, attempts_left = await service.submit_payment_proof(
            db,
            id,
            method,
            transaction_id.strip() if transaction_id else None,
            upload,
            background,
        )
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Error recording payment proof for {id}: {e}")
        raise internal_error() from e

    return ConfirmPaymentResponse(
        message="Payment awaiting verification.",
        payment_id=submission.id,
        status=submission.status,
        attempts_left=attempts_left,
    )


@router.post(
    "/download-acceptance-pdf",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}}},
)
async def download_acceptance_pdf(data: AcceptanceRequest) -> Response:
    """Download the signed acceptance-of-terms document."""
    try:
        document = await service.generate_acceptance_document(data.name, data.email, data.whatsapp)
    except Exception as e:
        logger.exception(f"Error generating acceptance document: {e}")
        raise internal_error() from e

    return Response(
        content=document.content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{document.filename}"'},
    )

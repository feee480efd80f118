"""
Enrollment Service Layer

The submission workflow. Each operation is one unit of work:
validate -> mutate -> commit -> schedule notifications.

State machine:
    pending_review --approve_project--> awaiting_payment
    pending_review --reject_project--> project_rejected (terminal)
    awaiting_payment --submit_payment_proof--> pending
    pending --approve_payment--> approved (terminal, creates a member)
    pending --reject_payment--> rejected --submit_payment_proof--> pending

Rules:
- New submissions need an open session and a free place; both checks run
  before the applicant fields are validated
- approve_payment locks the configuration row, re-checks capacity, creates
  the member and approves the submission in a single commit
- A submission accepts at most MAX_PAYMENT_ATTEMPTS payment proofs
- Notifications are background tasks added after the commit
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from fastapi import BackgroundTasks
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.documents import acceptance_filename, archive_pdf, clear_archive, render_acceptance_pdf
from app.core.exceptions import ServiceError, ValidationError
from app.modules.capacity import service as capacity_service
from app.modules.capacity.service import CapacityStatus
from app.modules.enrollment import notifications, repository
from app.modules.enrollment.models import ProofMethod, Submission, SubmissionStatus
from app.modules.enrollment.notifications import ApplicantInfo
from app.modules.enrollment.repository import InvalidStatusTransitionError
from app.modules.enrollment.schemas import (
    PROOF_MIME_MAX_LENGTH,
    TRANSACTION_ID_MAX_LENGTH,
    TRANSACTION_ID_PATTERN,
    ApplicantData,
    SubmitRequest,
)
from app.modules.members.repository import MemberRepository

logger = logging.getLogger(__name__)

DEFAULT_PROJECT_REJECTION_REASON = (
    "Votre projet ne correspond pas aux critères retenus pour cette session."
)

# Wire names and messages for applicant field errors
_APPLICANT_FIELDS = {
    "name": ("nom", "Name must be at least 3 characters."),
    "email": ("email", "Invalid email address (100 characters max)."),
    "whatsapp": ("whatsapp", "WhatsApp number must be exactly 10 digits."),
    "project": ("projet", "Project description must be between 20 and 1000 characters."),
}


class SubmissionNotFoundError(ServiceError):
    """Raised when a submission does not exist."""

    def __init__(self, submission_id: UUID):
        super().__init__(
            message=f"Submission {submission_id} not found.",
            error_code="SUBMISSION_NOT_FOUND",
            status_code=404,
        )


class InvalidSubmissionStateError(ServiceError):
    """Raised when an operation does not apply to the submission's status."""

    def __init__(self, message: str, error_code: str = "INVALID_STATE"):
        super().__init__(message=message, error_code=error_code, status_code=409)


@dataclass(frozen=True)
class ProofUpload:
    """A screenshot received with a payment proof."""

    content: bytes
    content_type: str | None


@dataclass(frozen=True)
class AcceptanceDocument:
    filename: str
    content: bytes


@dataclass(frozen=True)
class ResetSummary:
    submissions: int
    members: int
    group_links: int
    archives: int


def _utcnow() -> datetime:
    return datetime.now(UTC)


def validate_applicant(data: SubmitRequest) -> ApplicantData:
    """
    Apply the applicant field rules.

    Raises:
        ValidationError: On the first invalid field, named as on the wire
    """
    try:
        return ApplicantData(
            name=data.name or "",
            email=data.email or "",
            whatsapp=data.whatsapp or "",
            project=data.project or "",
        )
    except PydanticValidationError as e:
        loc = e.errors()[0]["loc"]
        field = str(loc[0]) if loc else ""
        wire_name, message = _APPLICANT_FIELDS.get(field, (field or None, "Invalid input."))
        raise ValidationError(message, wire_name) from e


def validate_payment_proof(
    method: str | None,
    transaction_id: str | None,
    proof: ProofUpload | None,
) -> ProofMethod:
    """
    Check that exactly one well-formed proof matches the chosen method.

    Raises:
        ValidationError: If the method or its payload is invalid
    """
    try:
        proof_method = ProofMethod(method)
    except ValueError as e:
        raise ValidationError("Proof method must be 'screenshot' or 'transaction-id'.", "method") from e

    has_file = proof is not None and len(proof.content) > 0
    has_transaction = bool(transaction_id)

    if has_file and has_transaction:
        raise ValidationError("Send either a screenshot or a transaction ID, not both.", "method")

    if proof_method is ProofMethod.SCREENSHOT:
        if not has_file:
            raise ValidationError("A screenshot is required.", "proof")
        if len(proof.content) > settings.max_upload_bytes:
            raise ValidationError("The screenshot is too large.", "proof")
        if not (proof.content_type or "").startswith("image/"):
            raise ValidationError("The proof must be an image file.", "proof")
        if len(proof.content_type) > PROOF_MIME_MAX_LENGTH:
            raise ValidationError("The proof content type is not valid.", "proof")
    else:
        if not has_transaction:
            raise ValidationError("A transaction ID is required.", "transactionId")
        if len(transaction_id) > TRANSACTION_ID_MAX_LENGTH:
            raise ValidationError(
                f"The transaction ID must be at most {TRANSACTION_ID_MAX_LENGTH} digits.", "transactionId"
            )
        if not re.fullmatch(TRANSACTION_ID_PATTERN, transaction_id):
            raise ValidationError("The transaction ID must contain digits only.", "transactionId")

    return proof_method


async def _get_for_update(db: AsyncSession, submission_id: UUID) -> Submission:
    submission = await repository.get_by_id(db, submission_id, lock=True)
    if not submission:
        raise SubmissionNotFoundError(submission_id)
    return submission


async def _transition(
    db: AsyncSession,
    submission: Submission,
    status: SubmissionStatus,
    *,
    commit: bool = True,
    **fields,
) -> Submission:
    """update_status with state-machine violations surfaced as 409."""
    try:
        return await repository.update_status(db, submission, status, commit=commit, **fields)
    except InvalidStatusTransitionError as e:
        await db.rollback()
        logger.warning(f"Refused transition for {submission.id}: {e}")
        raise InvalidSubmissionStateError(
            f"Submission is '{e.current_status.value}'; it cannot become '{e.new_status.value}'."
        ) from e


# ============================================
# Public operations
# ============================================


async def submit_submission(
    db: AsyncSession,
    data: SubmitRequest,
    background: BackgroundTasks,
) -> Submission:
    """
    Create a submission in pending_review.

    Raises:
        SessionClosedError: If enrollment is closed
        CapacityExceededError: If every place is taken
        ValidationError: If an applicant field is invalid
    """
    await capacity_service.ensure_accepting_submissions(db)
    applicant = validate_applicant(data)

    submission = await repository.create(
        db,
        name=applicant.name,
        email=str(applicant.email),
        whatsapp=applicant.whatsapp,
        project=applicant.project,
    )
    logger.info(f"New submission {submission.id} from {submission.email}")

    background.add_task(
        notifications.notify_new_submission, ApplicantInfo.from_submission(submission)
    )
    return submission


async def submit_payment_proof(
    db: AsyncSession,
    submission_id: UUID,
    method: str | None,
    transaction_id: str | None,
    proof: ProofUpload | None,
    background: BackgroundTasks,
) -> tuple[Submission, int]:
    """
    Record a payment proof and move the submission to pending.

    Capacity is not checked here; it is enforced at payment approval.

    Returns:
        (submission, attempts left)

    Raises:
        ValidationError: If the proof is malformed (nothing is changed)
        SubmissionNotFoundError: If the submission does not exist
        InvalidSubmissionStateError: If no proof is expected or attempts are used up
    """
    proof_method = validate_payment_proof(method, transaction_id, proof)

    submission = await _get_for_update(db, submission_id)

    if (
        submission.status == SubmissionStatus.REJECTED
        and submission.payment_attempts >= settings.max_payment_attempts
    ):
        await db.rollback()
        logger.warning(f"Payment attempts exhausted for {submission.id}")
        raise InvalidSubmissionStateError(
            f"Maximum number of payment attempts ({settings.max_payment_attempts}) reached.",
            error_code="PAYMENT_ATTEMPTS_EXHAUSTED",
        )

    fields = {
        "proof_method": proof_method,
        "proof_data": None,
        "proof_mime": None,
        "transaction_id": None,
        "payment_attempts": submission.payment_attempts + 1,
        "payment_submitted_at": _utcnow(),
    }
    if proof_method is ProofMethod.SCREENSHOT:
        content = proof.content
        if len(content) > settings.max_proof_bytes:
            logger.warning(
                f"Proof for {submission.id} truncated from {len(content)} to "
                f"{settings.max_proof_bytes} bytes"
            )
            content = content[: settings.max_proof_bytes]
        fields["proof_data"] = content
        fields["proof_mime"] = proof.content_type
    else:
        fields["transaction_id"] = transaction_id

    submission = await _transition(db, submission, SubmissionStatus.PENDING, **fields)
    attempts_left = max(settings.max_payment_attempts - submission.payment_attempts, 0)
    logger.info(
        f"Payment proof ({proof_method.value}) received for {submission.id}, "
        f"attempt {submission.payment_attempts}/{settings.max_payment_attempts}"
    )

    background.add_task(
        notifications.notify_new_payment,
        ApplicantInfo.from_submission(submission),
        proof_method,
        submission.transaction_id,
    )
    return submission, attempts_left


async def generate_acceptance_document(name: str, email: str, whatsapp: str) -> AcceptanceDocument:
    """
    Render the acceptance document and keep an archived copy.

    A failed archive write is logged; the document is still returned.
    """
    issued_at = _utcnow()
    content = await asyncio.to_thread(
        render_acceptance_pdf,
        name,
        email,
        whatsapp,
        program=settings.program_name,
        issued_at=issued_at,
    )
    filename = acceptance_filename(name, issued_at)

    try:
        await asyncio.to_thread(archive_pdf, settings.signed_pdf_dir, filename, content)
    except OSError as e:
        logger.error(f"Could not archive acceptance document {filename}: {e}")

    logger.info(f"Acceptance document generated for {email}")
    return AcceptanceDocument(filename=filename, content=content)


# ============================================
# Admin operations
# ============================================


async def list_submissions(
    db: AsyncSession,
    status: SubmissionStatus | None = None,
) -> list[Submission]:
    return await repository.list_submissions(db, status)


async def approve_project(
    db: AsyncSession,
    submission_id: UUID,
    background: BackgroundTasks,
) -> Submission:
    """
    Accept the project and send the applicant the payment link.

    Raises:
        SubmissionNotFoundError: If the submission does not exist
        InvalidSubmissionStateError: If it is not pending_review
    """
    submission = await _get_for_update(db, submission_id)
    submission = await _transition(
        db, submission, SubmissionStatus.AWAITING_PAYMENT, reviewed_at=_utcnow()
    )
    logger.info(f"Project approved for {submission.id}")

    payment_url = f"{settings.frontend_url.rstrip('/')}/paiement?id={submission.id}"
    background.add_task(
        notifications.notify_project_approved,
        ApplicantInfo.from_submission(submission),
        payment_url,
    )
    return submission


async def reject_project(
    db: AsyncSession,
    submission_id: UUID,
    reason: str | None,
    background: BackgroundTasks,
) -> Submission:
    """
    Refuse the project. Terminal.

    Raises:
        SubmissionNotFoundError: If the submission does not exist
        InvalidSubmissionStateError: If it is not pending_review
    """
    reason = reason or DEFAULT_PROJECT_REJECTION_REASON

    submission = await _get_for_update(db, submission_id)
    submission = await _transition(
        db,
        submission,
        SubmissionStatus.PROJECT_REJECTED,
        reviewed_at=_utcnow(),
        decision_reason=reason,
    )
    logger.info(f"Project rejected for {submission.id}")

    background.add_task(
        notifications.notify_project_rejected,
        ApplicantInfo.from_submission(submission),
        reason,
    )
    return submission


async def approve_payment(
    db: AsyncSession,
    submission_id: UUID,
    group_link: str | None,
    background: BackgroundTasks,
) -> tuple[Submission, CapacityStatus]:
    """
    Confirm the payment and create the member.

    The configuration row stays locked from the capacity check until the
    commit, so concurrent approvals cannot overshoot max_places.

    Returns:
        (approved submission, capacity after the new member)

    Raises:
        SubmissionNotFoundError: If the submission does not exist
        InvalidSubmissionStateError: If it is not pending
        CapacityExceededError: If no place is left (submission stays pending)
    """
    submission = await _get_for_update(db, submission_id)
    if submission.status != SubmissionStatus.PENDING:
        await db.rollback()
        raise InvalidSubmissionStateError(
            f"Submission is '{submission.status.value}'; only pending payments can be approved."
        )

    try:
        capacity = await capacity_service.ensure_place_available(db, lock=True)
    except capacity_service.CapacityExceededError:
        await db.rollback()
        raise

    approved_at = _utcnow()
    await MemberRepository.create(
        db,
        submission_id=submission.id,
        name=submission.name,
        email=submission.email,
        whatsapp=submission.whatsapp,
        project=submission.project,
    )
    await _transition(
        db, submission, SubmissionStatus.APPROVED, commit=False, reviewed_at=approved_at
    )
    if group_link:
        await repository.create_group_link(
            db,
            submission_id=submission.id,
            name=submission.name,
            email=submission.email,
            link=group_link,
        )

    await db.commit()
    await db.refresh(submission)

    after = CapacityStatus(
        count=capacity.count + 1,
        max_places=capacity.max_places,
        session_open=capacity.session_open,
    )
    logger.info(f"Payment approved for {submission.id}: {after.count}/{after.max_places} places taken")

    background.add_task(
        notifications.notify_payment_approved,
        ApplicantInfo.from_submission(submission),
        approved_at,
        group_link,
    )
    return submission, after


async def reject_payment(
    db: AsyncSession,
    submission_id: UUID,
    background: BackgroundTasks,
) -> Submission:
    """
    Refuse the payment proof. Consumes no capacity.

    Raises:
        SubmissionNotFoundError: If the submission does not exist
        InvalidSubmissionStateError: If it is not pending
    """
    submission = await _get_for_update(db, submission_id)
    submission = await _transition(db, submission, SubmissionStatus.REJECTED, reviewed_at=_utcnow())
    attempts_left = max(settings.max_payment_attempts - submission.payment_attempts, 0)
    logger.info(f"Payment rejected for {submission.id} ({attempts_left} attempt(s) left)")

    background.add_task(
        notifications.notify_payment_rejected,
        ApplicantInfo.from_submission(submission),
        attempts_left,
    )
    return submission


async def reset_all(db: AsyncSession) -> ResetSummary:
    """
    Delete submissions, members, group links and archived documents, and
    restore the default configuration. Admin credentials and sessions stay.
    """
    members = await MemberRepository.delete_all(db)
    submissions, group_links = await repository.delete_all(db)
    await capacity_service.reset_config(db)
    await db.commit()

    archives = await asyncio.to_thread(clear_archive, settings.signed_pdf_dir)

    logger.warning(
        f"Full reset: {submissions} submission(s), {members} member(s), "
        f"{group_links} group link(s), {archives} archive(s) deleted"
    )
    return ResetSummary(
        submissions=submissions,
        members=members,
        group_links=group_links,
        archives=archives,
    )

"""
Enrollment Repository

Database operations for submissions and group links. Writes that take part
in a larger unit of work (approve-payment, full reset) accept commit=False
and only flush, leaving the commit to the service.
"""

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import GroupLink, Submission, SubmissionStatus


async def create(
    db: AsyncSession,
    *,
    name: str,
    email: str,
    whatsapp: str,
    project: str,
) -> Submission:
    """Create a submission in pending_review."""
    submission = Submission(
        name=name,
        email=email,
        whatsapp=whatsapp,
        project=project,
        status=SubmissionStatus.PENDING_REVIEW,
        payment_attempts=0,
    )

    db.add(submission)
    await db.commit()
    await db.refresh(submission)

    return submission


async def get_by_id(db: AsyncSession, id: UUID, *, lock: bool = False) -> Submission | None:
    """
    Get a submission by ID.

    With lock=True the row is selected FOR UPDATE so concurrent admin
    actions on the same submission serialize.
    """
    if not lock:
        return await db.get(Submission, id)

    result = await db.execute(select(Submission).where(Submission.id == id).with_for_update())
    return result.scalar_one_or_none()


async def list_submissions(
    db: AsyncSession,
    status: SubmissionStatus | None = None,
) -> list[Submission]:
    """List submissions, newest first, optionally filtered by status."""
    query = select(Submission)
    if status:
        query = query.where(Submission.status == status)
    query = query.order_by(Submission.created_at.desc())

    result = await db.execute(query)
    return list(result.scalars().all())


# Workflow state machine. Terminal states have no outgoing transitions.
VALID_STATUS_TRANSITIONS: dict[SubmissionStatus, set[SubmissionStatus]] = {
    SubmissionStatus.PENDING_REVIEW: {
        SubmissionStatus.AWAITING_PAYMENT,  # Project approved
        SubmissionStatus.PROJECT_REJECTED,  # Project refused
    },
    SubmissionStatus.AWAITING_PAYMENT: {
        SubmissionStatus.PENDING,  # Proof received
    },
    SubmissionStatus.PENDING: {
        SubmissionStatus.APPROVED,  # Payment verified
        SubmissionStatus.REJECTED,  # Proof refused
    },
    SubmissionStatus.REJECTED: {
        SubmissionStatus.PENDING,  # New proof after refusal
    },
    SubmissionStatus.APPROVED: set(),
    SubmissionStatus.PROJECT_REJECTED: set(),
}


class InvalidStatusTransitionError(ValueError):
    """Raised when a status change is not allowed by the state machine."""

    def __init__(self, current_status: SubmissionStatus, new_status: SubmissionStatus):
        self.current_status = current_status
        self.new_status = new_status
        allowed = VALID_STATUS_TRANSITIONS.get(current_status, set())
        super().__init__(
            f"Invalid status transition: {current_status.value} -> {new_status.value}. "
            f"Valid transitions: {sorted(s.value for s in allowed)}"
        )


def can_transition(current: SubmissionStatus, new: SubmissionStatus) -> bool:
    return new in VALID_STATUS_TRANSITIONS.get(current, set())


async def update_status(
    db: AsyncSession,
    submission: Submission,
    status: SubmissionStatus,
    *,
    commit: bool = True,
    **fields,
) -> Submission:
    """
    Move a submission to a new status and apply extra field changes.

    Args:
        db: Database session
        submission: The (preferably locked) submission
        status: Target status
        commit: Commit now, or only flush into the caller's transaction
        **fields: Other columns to set (e.g. reviewed_at, decision_reason)

    Raises:
        InvalidStatusTransitionError: If the state machine forbids the change
    """
    if not can_transition(submission.status, status):
        raise InvalidStatusTransitionError(submission.status, status)

    submission.status = status
    for key, value in fields.items():
        if hasattr(submission, key):
            setattr(submission, key, value)

    if commit:
        await db.commit()
        await db.refresh(submission)
    else:
        await db.flush()

    return submission


# ============================================
# GroupLink Repository
# ============================================


async def create_group_link(
    db: AsyncSession,
    *,
    submission_id: UUID,
    name: str,
    email: str,
    link: str,
) -> GroupLink:
    """Append a group link entry. Does not commit."""
    entry = GroupLink(submission_id=submission_id, name=name, email=email, link=link)
    db.add(entry)
    await db.flush()
    return entry


async def delete_all(db: AsyncSession) -> tuple[int, int]:
    """
    Delete every group link and submission. Does not commit.

    Returns:
        (submissions deleted, group links deleted)
    """
    links = await db.execute(delete(GroupLink))
    submissions = await db.execute(delete(Submission))
    return submissions.rowcount, links.rowcount

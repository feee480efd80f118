"""
Enrollment Models

Submissions move through the review and payment workflow; group links are
an append-only log of the private-group access links sent at approval.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class SubmissionStatus(str, enum.Enum):
    """Status of a submission."""

    PENDING_REVIEW = "pending_review"
    AWAITING_PAYMENT = "awaiting_payment"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PROJECT_REJECTED = "project_rejected"


class ProofMethod(str, enum.Enum):
    """How the applicant proves the payment."""

    SCREENSHOT = "screenshot"
    TRANSACTION_ID = "transaction-id"


class Submission(Base):
    """
    An applicant's enrollment request.

    Contact and project fields are captured at submission; proof fields are
    overwritten by each payment attempt.
    """

    __tablename__ = "submissions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Applicant
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    email: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    whatsapp: Mapped[str] = mapped_column(String(10), nullable=False)
    project: Mapped[str] = mapped_column(Text, nullable=False)

    # Payment proof
    proof_method: Mapped[ProofMethod | None] = mapped_column(
        Enum(ProofMethod, name="proof_method"),
        nullable=True,
    )
    proof_data: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)
    proof_mime: Mapped[str | None] = mapped_column(String(100), nullable=True)
    transaction_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    payment_attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    payment_submitted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Workflow
    status: Mapped[SubmissionStatus] = mapped_column(
        Enum(SubmissionStatus, name="submission_status"),
        default=SubmissionStatus.PENDING_REVIEW,
        nullable=False,
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    decision_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_submissions_status", "status"),
        Index("ix_submissions_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Submission {self.id} {self.status.value if self.status else None}>"


class GroupLink(Base):
    """A private-group link sent to an approved member."""

    __tablename__ = "group_links"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    submission_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("submissions.id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    email: Mapped[str] = mapped_column(String(100), nullable=False)
    link: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

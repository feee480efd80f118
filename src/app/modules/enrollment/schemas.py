"""
Enrollment Schemas

Pydantic schemas for request validation and response serialization. The
public form keeps its French field names (nom, projet) on the wire.
"""

import base64
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.modules.enrollment.models import ProofMethod, Submission, SubmissionStatus

WHATSAPP_PATTERN = r"^[0-9]{10}$"
TRANSACTION_ID_PATTERN = r"^[0-9]+$"
TRANSACTION_ID_MAX_LENGTH = 64
PROOF_MIME_MAX_LENGTH = 100
EMAIL_MAX_LENGTH = 100


class SubmitRequest(BaseModel):
    """
    Request body for POST /api/submit.

    Fields accept any JSON value: the session and capacity gates must answer
    before field rules are applied, so type and business validation happen
    in the service through ApplicantData.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: Any = Field(default=None, alias="nom")
    email: Any = None
    whatsapp: Any = None
    project: Any = Field(default=None, alias="projet")


class ApplicantData(BaseModel):
    """Validated applicant fields."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=3, max_length=500)
    email: EmailStr
    whatsapp: str = Field(..., pattern=WHATSAPP_PATTERN)
    project: str = Field(..., min_length=20, max_length=1000)

    @field_validator("email")
    @classmethod
    def email_max_length(cls, v: str) -> str:
        if len(v) > EMAIL_MAX_LENGTH:
            raise ValueError(f"email must be at most {EMAIL_MAX_LENGTH} characters")
        return v


class SubmitResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    id: UUID
    status: SubmissionStatus


class ConfirmPaymentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    payment_id: UUID = Field(..., serialization_alias="paymentId")
    status: SubmissionStatus
    attempts_left: int = Field(..., serialization_alias="attemptsLeft")


class AcceptanceRequest(BaseModel):
    """Request body for POST /api/download-acceptance-pdf."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(..., alias="nom", min_length=1, max_length=500)
    email: str = Field(..., min_length=1, max_length=100)
    whatsapp: str = Field(..., min_length=1, max_length=20)


class ApprovePaymentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    group_link: str | None = Field(default=None, alias="groupLink", max_length=2000)


class RejectProjectRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    reason: str | None = Field(default=None, max_length=1000)


class SubmissionActionResponse(BaseModel):
    """Result of an admin action on a submission."""

    success: bool = True
    message: str
    id: UUID
    status: SubmissionStatus


class ApprovePaymentResponse(SubmissionActionResponse):
    count: int
    max: int


class SubmissionResponse(BaseModel):
    """A submission as listed in the admin dashboard."""

    model_config = ConfigDict(populate_by_name=True)

    id: UUID
    name: str = Field(..., serialization_alias="nom")
    email: str
    whatsapp: str
    project: str = Field(..., serialization_alias="projet")
    status: SubmissionStatus
    method: ProofMethod | None = None
    transaction_id: str | None = Field(default=None, serialization_alias="transactionId")
    proof: str | None = None
    proof_mime: str | None = Field(default=None, serialization_alias="proofMime")
    payment_attempts: int = Field(..., serialization_alias="paymentAttempts")
    decision_reason: str | None = Field(default=None, serialization_alias="decisionReason")
    created_at: datetime = Field(..., serialization_alias="date")
    payment_submitted_at: datetime | None = Field(
        default=None, serialization_alias="paymentSubmittedAt"
    )
    reviewed_at: datetime | None = Field(default=None, serialization_alias="reviewedAt")

    @classmethod
    def from_model(cls, submission: Submission) -> "SubmissionResponse":
        """Build the response, base64-encoding any screenshot proof."""
        proof = (
            base64.b64encode(submission.proof_data).decode("ascii")
            if submission.proof_data
            else None
        )
        return cls(
            id=submission.id,
            name=submission.name,
            email=submission.email,
            whatsapp=submission.whatsapp,
            project=submission.project,
            status=submission.status,
            method=submission.proof_method,
            transaction_id=submission.transaction_id,
            proof=proof,
            proof_mime=submission.proof_mime,
            payment_attempts=submission.payment_attempts,
            decision_reason=submission.decision_reason,
            created_at=submission.created_at,
            payment_submitted_at=submission.payment_submitted_at,
            reviewed_at=submission.reviewed_at,
        )


class ResetAllResponse(BaseModel):
    success: bool = True
    message: str
    submissions_deleted: int = Field(..., serialization_alias="submissionsDeleted")
    members_deleted: int = Field(..., serialization_alias="membersDeleted")
    group_links_deleted: int = Field(..., serialization_alias="groupLinksDeleted")
    archives_deleted: int = Field(..., serialization_alias="archivesDeleted")

"""
Enrollment Notifications

Best-effort side effects of workflow transitions. Each function runs as a
FastAPI background task after the transition has been committed: it logs
failures and never raises, so a provider outage cannot undo a decision.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from html import escape
from uuid import UUID

from app.core.config import settings
from app.core.documents import (
    acceptance_filename,
    archive_pdf,
    format_fr_datetime,
    render_acceptance_pdf,
)
from app.core.email import (
    EmailAttachment,
    send_admin_new_payment,
    send_admin_new_submission,
    send_payment_approved,
    send_payment_rejected,
    send_project_approved,
    send_project_rejected,
)
from app.core.telegram import send_admin_message
from app.modules.enrollment.models import ProofMethod, Submission

logger = logging.getLogger(__name__)

TELEGRAM_PROJECT_PREVIEW = 100


@dataclass(frozen=True)
class ApplicantInfo:
    """Detached copy of the submission fields a notification needs."""

    id: UUID
    name: str
    email: str
    whatsapp: str
    project: str

    @classmethod
    def from_submission(cls, submission: Submission) -> "ApplicantInfo":
        return cls(
            id=submission.id,
            name=submission.name,
            email=submission.email,
            whatsapp=submission.whatsapp,
            project=submission.project,
        )


def _preview(text: str, limit: int = TELEGRAM_PROJECT_PREVIEW) -> str:
    return text if len(text) <= limit else f"{text[:limit]}..."


async def notify_new_submission(applicant: ApplicantInfo) -> None:
    """Alert the admin that a project awaits review."""
    try:
        if settings.admin_email:
            await send_admin_new_submission(
                to_email=settings.admin_email,
                name=applicant.name,
                email=applicant.email,
                whatsapp=applicant.whatsapp,
                project=applicant.project,
                submission_id=str(applicant.id),
            )

        await send_admin_message(
            "<b>NOUVEAU PROJET À VALIDER</b>\n\n"
            f"<b>Nom:</b> {escape(applicant.name)}\n"
            f"<b>Email:</b> {escape(applicant.email)}\n"
            f"<b>WhatsApp:</b> {escape(applicant.whatsapp)}\n"
            f"<b>Projet:</b> {escape(_preview(applicant.project))}\n\n"
            f"<b>ID:</b> <code>{applicant.id}</code>"
        )
    except Exception as e:
        logger.error(f"New-submission notification failed for {applicant.id}: {e}", exc_info=True)


async def notify_new_payment(
    applicant: ApplicantInfo,
    method: ProofMethod,
    transaction_id: str | None,
) -> None:
    """Alert the admin that a payment proof awaits verification."""
    method_label = "Screenshot" if method is ProofMethod.SCREENSHOT else "ID de Transaction"
    try:
        if settings.admin_email:
            await send_admin_new_payment(
                to_email=settings.admin_email,
                name=applicant.name,
                email=applicant.email,
                method=method_label,
                transaction_id=transaction_id,
                submission_id=str(applicant.id),
            )

        transaction_line = (
            f"<b>ID Transaction:</b> <code>{escape(transaction_id)}</code>\n" if transaction_id else ""
        )
        await send_admin_message(
            "<b>NOUVEAU PAIEMENT EN ATTENTE DE VÉRIFICATION</b>\n\n"
            f"<b>Nom:</b> {escape(applicant.name)}\n"
            f"<b>Email:</b> {escape(applicant.email)}\n"
            f"<b>WhatsApp:</b> {escape(applicant.whatsapp)}\n"
            f"<b>Méthode:</b> {method_label}\n"
            f"{transaction_line}"
            f"<b>Date:</b> {format_fr_datetime(datetime.now(UTC))}\n\n"
            "Connectez-vous au dashboard admin pour approuver ou rejeter ce paiement."
        )
    except Exception as e:
        logger.error(f"New-payment notification failed for {applicant.id}: {e}", exc_info=True)


async def notify_project_approved(applicant: ApplicantInfo, payment_url: str) -> None:
    try:
        await send_project_approved(applicant.email, applicant.name, payment_url)
    except Exception as e:
        logger.error(f"Project-approved email failed for {applicant.id}: {e}", exc_info=True)


async def notify_project_rejected(applicant: ApplicantInfo, reason: str) -> None:
    try:
        await send_project_rejected(applicant.email, applicant.name, reason)
    except Exception as e:
        logger.error(f"Project-rejected email failed for {applicant.id}: {e}", exc_info=True)


async def notify_payment_approved(
    applicant: ApplicantInfo,
    approved_at: datetime,
    group_link: str | None = None,
) -> None:
    """
    Render and archive the acceptance document, then send the welcome email.

    The email still goes out without an attachment if rendering or
    archiving fails.
    """
    attachment = None
    try:
        content = await asyncio.to_thread(
            render_acceptance_pdf,
            applicant.name,
            applicant.email,
            applicant.whatsapp,
            program=settings.program_name,
            issued_at=approved_at,
        )
        filename = acceptance_filename(applicant.name, approved_at)
        await asyncio.to_thread(archive_pdf, settings.signed_pdf_dir, filename, content)
        attachment = EmailAttachment(filename=filename, content=content)
    except Exception as e:
        logger.error(f"Acceptance document failed for {applicant.id}: {e}", exc_info=True)

    try:
        sent = await send_payment_approved(
            to_email=applicant.email,
            name=applicant.name,
            email=applicant.email,
            project=applicant.project,
            approved_at=format_fr_datetime(approved_at),
            group_link=group_link,
            attachment=attachment,
        )
        if not sent:
            logger.warning(f"Welcome email not sent to {applicant.email}")
    except Exception as e:
        logger.error(f"Payment-approved email failed for {applicant.id}: {e}", exc_info=True)


async def notify_payment_rejected(applicant: ApplicantInfo, attempts_left: int) -> None:
    try:
        await send_payment_rejected(applicant.email, applicant.name, attempts_left)
        await send_admin_message(
            "<b>PAIEMENT REJETÉ</b>\n\n"
            f"<b>Nom:</b> {escape(applicant.name)}\n"
            f"<b>Email:</b> {escape(applicant.email)}\n\n"
            f"<b>Tentatives restantes:</b> {attempts_left}"
        )
    except Exception as e:
        logger.error(f"Payment-rejected notification failed for {applicant.id}: {e}", exc_info=True)

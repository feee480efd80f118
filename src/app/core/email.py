"""
Email Service using Resend

Transactional emails for the enrollment funnel. Without RESEND_API_KEY the
message is logged instead of sent, which keeps local development quiet.
"""

import asyncio
import logging
from dataclasses import dataclass
from html import escape

import resend

from app.core.config import settings

logger = logging.getLogger(__name__)

resend.api_key = settings.resend_api_key


@dataclass(frozen=True)
class EmailAttachment:
    """A file attached to an outgoing email."""

    filename: str
    content: bytes


async def send_email(
    to_email: str,
    subject: str,
    html_content: str,
    attachments: list[EmailAttachment] | None = None,
) -> bool:
    """
    Send an email using Resend.

    Args:
        to_email: Recipient email address
        subject: Email subject line
        html_content: HTML content of the email
        attachments: Optional files to attach

    Returns:
        True if the email was accepted (or logged in development)
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(
            f"EMAIL TO: {to_email} | SUBJECT: {subject} | ATTACHMENTS: {len(attachments or [])}"
        )
        return True

    try:
        params: resend.Emails.SendParams = {
            "from": settings.email_from,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }
        if attachments:
            params["attachments"] = [
                {"filename": item.filename, "content": list(item.content)} for item in attachments
            ]

        # Resend's client is synchronous
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent to {to_email}, id: {email['id']}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


def _layout(title: str, accent: str, body: str) -> str:
    """Wrap a message body in the shared email layout."""
    program = escape(settings.program_name)
    support = escape(settings.support_email)
    return f"""
    <!DOCTYPE html>
    <html lang="fr">
    <head>
        <meta charset="UTF-8">
        <style>
            body {{ font-family: Arial, sans-serif; background: #f3f4f6; color: #1f2937; line-height: 1.6; }}
            .container {{ max-width: 600px; margin: 0 auto; background: #fff; padding: 40px; border-radius: 10px; }}
            h1 {{ color: {accent}; }}
            .note {{ margin-top: 20px; padding: 15px; background: #f0f9ff; border-left: 4px solid #00d4ff; border-radius: 5px; }}
            .warning {{ margin-top: 20px; padding: 15px; background: #fef3c7; border-left: 4px solid #f59e0b; border-radius: 5px; }}
            .button {{ display: inline-block; background: #00d4ff; color: #fff; padding: 14px 28px; text-decoration: none; border-radius: 8px; margin: 24px 0; }}
            .footer {{ margin-top: 30px; border-top: 1px solid #e5e7eb; padding-top: 20px; color: #6b7280; font-size: 0.9rem; }}
        </style>
    </head>
    <body>
        <div class="container">
            <h1>{title}</h1>
            {body}
            <div class="footer">
                <p>{program}</p>
                <p>Questions ? Contactez-nous à <a href="mailto:{support}">{support}</a></p>
            </div>
        </div>
    </body>
    </html>
    """


async def send_admin_new_submission(
    to_email: str,
    name: str,
    email: str,
    whatsapp: str,
    project: str,
    submission_id: str,
) -> bool:
    """Tell the admin a new project is waiting for review."""
    body = f"""
        <p>Un nouveau projet attend votre validation.</p>
        <ul>
            <li>Nom : {escape(name)}</li>
            <li>Email : {escape(email)}</li>
            <li>WhatsApp : {escape(whatsapp)}</li>
            <li>Référence : {escape(submission_id)}</li>
        </ul>
        <p><strong>Projet :</strong></p>
        <p>{escape(project)}</p>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Nouveau projet à valider : {name}",
        html_content=_layout("Nouveau projet soumis", "#00d4ff", body),
    )


async def send_admin_new_payment(
    to_email: str,
    name: str,
    email: str,
    method: str,
    transaction_id: str | None,
    submission_id: str,
) -> bool:
    """Tell the admin a payment proof is waiting for verification."""
    transaction_line = (
        f"<li>ID de transaction : {escape(transaction_id)}</li>" if transaction_id else ""
    )
    body = f"""
        <p>Une preuve de paiement attend votre vérification.</p>
        <ul>
            <li>Nom : {escape(name)}</li>
            <li>Email : {escape(email)}</li>
            <li>Méthode : {escape(method)}</li>
            {transaction_line}
            <li>Référence : {escape(submission_id)}</li>
        </ul>
        <p>Connectez-vous au tableau de bord pour approuver ou rejeter ce paiement.</p>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Paiement à vérifier : {name}",
        html_content=_layout("Nouveau paiement en attente", "#f59e0b", body),
    )


async def send_project_approved(to_email: str, name: str, payment_url: str) -> bool:
    """Send payment instructions once the project has been accepted."""
    safe_url = escape(payment_url, quote=True)
    body = f"""
        <p>Bonjour {escape(name)},</p>
        <p>Bonne nouvelle : votre projet a été <strong>retenu</strong> pour rejoindre {escape(settings.program_name)}.</p>
        <p>Pour finaliser votre inscription, effectuez le paiement puis envoyez votre preuve
        (capture d'écran ou ID de transaction) depuis le lien ci-dessous :</p>
        <a href="{safe_url}" class="button">Finaliser mon inscription</a>
        <p style="word-break: break-all;">{safe_url}</p>
        <div class="warning">Les places sont limitées : elles sont attribuées dans l'ordre de validation des paiements.</div>
    """
    return await send_email(
        to_email=to_email,
        subject="Votre projet est accepté - finalisez votre inscription",
        html_content=_layout("Votre projet est accepté", "#10b981", body),
    )


async def send_project_rejected(to_email: str, name: str, reason: str) -> bool:
    """Tell the applicant their project was not selected."""
    body = f"""
        <p>Bonjour {escape(name)},</p>
        <p>Nous avons étudié votre projet avec attention mais nous ne pouvons pas le retenir pour cette session.</p>
        <p><strong>Motif :</strong></p>
        <p>{escape(reason)}</p>
        <p>Merci de l'intérêt que vous portez à {escape(settings.program_name)}.</p>
    """
    return await send_email(
        to_email=to_email,
        subject="Votre candidature n'a pas été retenue",
        html_content=_layout("Votre projet n'a pas été retenu", "#ef4444", body),
    )


async def send_payment_approved(
    to_email: str,
    name: str,
    email: str,
    project: str,
    approved_at: str,
    group_link: str | None = None,
    attachment: EmailAttachment | None = None,
) -> bool:
    """Welcome email with the optional group link and the acceptance document."""
    if group_link:
        safe_link = escape(group_link, quote=True)
        link_section = f"""
        <div class="note">
            <strong>Accès au groupe privé :</strong><br>
            <a href="{safe_link}">Rejoindre le groupe {escape(settings.program_name)}</a>
        </div>
        """
    else:
        link_section = """
        <div class="note">
            <strong>Prochaines étapes :</strong><br>
            Vous recevrez prochainement les instructions d'accès au groupe privé.
        </div>
        """

    document_section = (
        '<div class="warning"><strong>Document joint :</strong> vos conditions '
        "d'acceptation signées sont jointes à cet email pour vos archives.</div>"
        if attachment
        else ""
    )

    body = f"""
        <p>Bonjour {escape(name)},</p>
        <p>Votre <strong>paiement a été approuvé</strong> et votre <strong>inscription est validée</strong>.</p>
        <ul>
            <li>Nom : {escape(name)}</li>
            <li>Email : {escape(email)}</li>
            <li>Projet : {escape(project)}</li>
            <li>Date d'approbation : {escape(approved_at)}</li>
        </ul>
        {link_section}
        {document_section}
        <p>Merci de rejoindre notre communauté d'entrepreneurs !</p>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Votre inscription {settings.program_name} est approuvée !",
        html_content=_layout(f"Bienvenue dans {escape(settings.program_name)} !", "#00d4ff", body),
        attachments=[attachment] if attachment else None,
    )


async def send_payment_rejected(to_email: str, name: str, attempts_left: int) -> bool:
    """Tell the applicant their proof was refused and whether they can retry."""
    if attempts_left > 0:
        next_step = (
            "Vous pouvez soumettre une nouvelle preuve de paiement valide via notre site "
            f"({attempts_left} tentative(s) restante(s))."
        )
    else:
        next_step = "Le nombre maximal de tentatives est atteint. Contactez-nous pour régulariser."

    body = f"""
        <p>Bonjour {escape(name)},</p>
        <p>Nous avons examiné votre preuve de paiement mais elle a été <strong>rejetée</strong>.</p>
        <p><strong>Comment corriger :</strong></p>
        <ul>
            <li>Assurez-vous que la capture d'écran est claire et lisible</li>
            <li>Vérifiez que l'ID de transaction contient uniquement des chiffres</li>
            <li>Incluez la référence de paiement</li>
        </ul>
        <div class="warning"><strong>Prochaine étape :</strong><br>{next_step}</div>
    """
    return await send_email(
        to_email=to_email,
        subject="Votre preuve de paiement a été rejetée",
        html_content=_layout("Preuve de paiement rejetée", "#ef4444", body),
    )

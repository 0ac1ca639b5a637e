"""E-mail service for friend invitations via SMTP."""
import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

import aiosmtplib

from kids_scheduler.config import settings
from kids_scheduler.errors import DeliveryError
from kids_scheduler.models.invitation import Invitation

logger = logging.getLogger(__name__)


def invitation_link(invitation_id: str) -> str:
    return f"{settings.app_url}/accept-invitation?code={invitation_id}"


def build_invitation_email(invitation: Invitation) -> MIMEMultipart:
    app_name = settings.app_name
    link = invitation_link(invitation.id)
    child = invitation.from_child_name

    msg = MIMEMultipart("alternative")
    msg["From"] = f"{app_name} <{settings.smtp_from}>"
    msg["To"] = invitation.to_email
    msg["Subject"] = f"{child} wants to be friends on {app_name}!"

    body_text = (
        f"Hello!\n\n"
        f"{child} wants to connect with your child on {app_name}!\n"
    )
    if invitation.message:
        body_text += f"\nMessage from {child}: \"{invitation.message}\"\n"
    body_text += (
        f"\nParent contact:\n"
        f"  Name: {invitation.from_parent_name}\n"
        f"  Email: {invitation.from_parent_email}\n"
        f"\nTo accept this invitation, sign up or log in to {app_name}:\n"
        f"{link}\n\n"
        f"This invitation will expire in {settings.invitation_expiry_days} days.\n"
    )

    body_html = (
        f"<html><body>"
        f"<h1>Friend Request!</h1>"
        f"<p>Hello!</p>"
        f"<p><strong>{escape(child)}</strong> wants to connect with your child "
        f"on {escape(app_name)}!</p>"
    )
    if invitation.message:
        body_html += (
            f"<div style=\"background:white;padding:20px;border-left:4px solid #667eea;\">"
            f"<p><strong>Message from {escape(child)}:</strong></p>"
            f"<p><em>\"{escape(invitation.message)}\"</em></p></div>"
        )
    body_html += (
        f"<p><strong>Parent Contact:</strong></p>"
        f"<ul><li>Name: {escape(invitation.from_parent_name)}</li>"
        f"<li>Email: {escape(invitation.from_parent_email)}</li></ul>"
        f"<p>To accept this invitation, sign up or log in to {escape(app_name)}:</p>"
        f"<p><a href=\"{link}\" style=\"display:inline-block;padding:15px 30px;"
        f"background:#667eea;color:white;text-decoration:none;border-radius:8px;\">"
        f"View Invitation</a></p>"
        f"<p><small>This invitation will expire in "
        f"{settings.invitation_expiry_days} days.</small></p>"
        f"</body></html>"
    )

    msg.attach(MIMEText(body_text, "plain", "utf-8"))
    msg.attach(MIMEText(body_html, "html", "utf-8"))
    return msg


async def send_invitation_email(invitation: Invitation) -> None:
    """Sends the friend invitation e-mail, raising DeliveryError on failure."""
    msg = build_invitation_email(invitation)
    try:
        await aiosmtplib.send(
            msg,
            hostname=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_user or None,
            password=settings.smtp_password or None,
            use_tls=settings.smtp_use_tls,
            start_tls=settings.smtp_start_tls,
        )
    except (aiosmtplib.SMTPException, OSError) as e:
        logger.error(f"Invitation e-mail to {invitation.to_email} failed: {e}")
        raise DeliveryError("email", str(e)) from e
    logger.info(f"Invitation e-mail sent to {invitation.to_email}")

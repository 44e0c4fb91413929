from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr

from app.settings import AppSettings

logger = logging.getLogger(__name__)

RESET_SUBJECT = "Recuperación de contraseña"


class MailError(RuntimeError):
    pass


def reset_email_html(link: str) -> str:
    return (
        "<p>Haz click en el siguiente enlace para restablecer tu contraseña:</p>\n"
        f'<a href="{link}">{link}</a>'
    )


def build_message(settings: AppSettings, to: str, subject: str, html: str) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = formataddr((settings.from_name, settings.from_email))
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content("Este mensaje requiere un cliente de correo con soporte HTML.")
    msg.add_alternative(html, subtype="html")
    return msg


def send_email(settings: AppSettings, to: str, subject: str, html: str) -> bool:
    """
    Sends via SMTP (STARTTLS when credentials are set).
    Returns False when no SMTP host is configured; the message is only logged then.
    """
    if not settings.smtp_host:
        logger.warning("SMTP_HOST not set; email to %s not sent: %s\n%s", to, subject, html)
        return False

    msg = build_message(settings, to, subject, html)
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as smtp:
            if settings.smtp_user:
                smtp.starttls()
                smtp.login(settings.smtp_user, settings.smtp_password or "")
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as exc:
        logger.error("Email to %s failed: %s", to, exc)
        raise MailError("Error enviando correo") from exc
    logger.info("Email sent to %s", to)
    return True


def send_reset_email(settings: AppSettings, to: str, link: str) -> bool:
    return send_email(settings, to, RESET_SUBJECT, reset_email_html(link))

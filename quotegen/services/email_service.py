"""
Email service for sending quote documents to customers.
Uses Flask-Mail for SMTP integration with UTF-8 support.
"""
import logging
import smtplib
from typing import Optional

from flask import current_app
from flask_mail import Mail, Message

logger = logging.getLogger(__name__)

mail = Mail()


def init_mail(app):
    """Initialize Flask-Mail with app."""
    mail.init_app(app)


def _mail_enabled() -> bool:
    """
    Check if mail is properly configured and enabled.
    Keeps dev and test environments from failing on missing SMTP settings.
    """
    cfg = current_app.config
    return bool(
        not cfg.get("MAIL_SUPPRESS_SEND", False)
        and cfg.get("MAIL_SERVER")
        and cfg.get("MAIL_USERNAME")
    )


def send_quote_email(
    to: str,
    quote_number: str,
    html_body: str,
    pdf_bytes: Optional[bytes] = None,
    filename: Optional[str] = None,
    company_name: Optional[str] = None
) -> bool:
    """
    Send a quote to a customer: rendered document as the body, PDF attached.

    Args:
        to: Recipient email
        quote_number: Quote number used in the subject
        html_body: Rendered quote document
        pdf_bytes: Exported PDF (optional)
        filename: Attachment file name
        company_name: Sender company shown in the subject

    Returns:
        True if sent, False if mail is disabled or sending failed
    """
    if not _mail_enabled():
        logger.warning(f"[MAIL DISABLED] Quote email {quote_number} skipped for {to}")
        return False

    sender_name = company_name or current_app.config.get('COMPANY_NAME', '')
    subject = f"Quote {quote_number}" + (f" - {sender_name}" if sender_name else "")

    try:
        logger.info(f"[EMAIL] Sending quote {quote_number} to {to}")
        msg = Message(
            subject=subject,
            recipients=[to],
            html=html_body,
            body=f"Please find attached quote {quote_number}.",
            charset='utf-8'
        )
        if pdf_bytes:
            msg.attach(filename or f"Quote-{quote_number}.pdf", 'application/pdf', pdf_bytes)

        mail.send(msg)
        logger.info(f"[EMAIL] Quote {quote_number} sent to {to}")
        return True

    except (smtplib.SMTPException, OSError) as e:
        logger.exception(f"[EMAIL] Failed to send quote {quote_number} to {to}: {e}")
        return False

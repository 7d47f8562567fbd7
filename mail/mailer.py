"""
mail/mailer.py -- Transactional email for the auth flows.

The auth state machine only depends on the contract below: each send either
returns or raises TransientDependency. Transport details stay in this module.

Implementations:
  SmtpMailer -- renders a Jinja2 template and sends it with smtplib.
  LogMailer  -- development stand-in; logs the link instead of sending it.
                Chosen automatically when SMTP_HOST is empty.

Layer rule: no imports from api/, auth/, catalog/, cache/, or uploads/.
"""

from __future__ import annotations

import logging
import smtplib
from datetime import datetime, timezone
from email.message import EmailMessage
from pathlib import Path
from typing import Protocol

from jinja2 import Environment, FileSystemLoader, select_autoescape

from core.config import Settings
from core.errors import TransientDependency

logger = logging.getLogger("shopfront.mail")

_templates = Environment(
    loader=FileSystemLoader(str(Path(__file__).parent / "templates")),
    autoescape=select_autoescape(["html"]),
)


class Mailer(Protocol):
    def send_verify_email(self, email: str, link: str) -> None: ...

    def send_reset_password(self, email: str, link: str) -> None: ...

    def send_login(self, email: str) -> None: ...


class SmtpMailer:
    """Send templated HTML email over SMTP.

    One connection per message. Volume is a handful of messages per user
    lifetime, so pooling connections is not worth the failure modes.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def send_verify_email(self, email: str, link: str) -> None:
        self._send(email, "Verify your account", "verify-email.html", {"link": link})

    def send_reset_password(self, email: str, link: str) -> None:
        self._send(email, "Reset password", "reset-password.html", {"reset_password_link": link})

    def send_login(self, email: str) -> None:
        today = datetime.now(timezone.utc)
        self._send(email, "Log in", "login.html", {"email": email, "today": today})

    def _send(self, to: str, subject: str, template: str, context: dict) -> None:
        s = self._settings
        msg = EmailMessage()
        msg["From"] = s.mail_from
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(_templates.get_template(template).render(**context), subtype="html")
        try:
            with smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=s.smtp_timeout_seconds) as smtp:
                if s.smtp_use_tls:
                    smtp.starttls()
                if s.smtp_username:
                    smtp.login(s.smtp_username, s.smtp_password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Email '%s' to %s failed: %s", subject, to, exc)
            raise TransientDependency("Error sending email, please try again later.") from exc
        logger.info("Email '%s' sent to %s", subject, to)


class LogMailer:
    """Log outgoing mail instead of sending it. Never fails."""

    def send_verify_email(self, email: str, link: str) -> None:
        logger.info("[mail disabled] verify-email to %s: %s", email, link)

    def send_reset_password(self, email: str, link: str) -> None:
        logger.info("[mail disabled] reset-password to %s: %s", email, link)

    def send_login(self, email: str) -> None:
        logger.info("[mail disabled] login notice to %s", email)


def build_mailer(settings: Settings) -> Mailer:
    if settings.smtp_host:
        return SmtpMailer(settings)
    logger.warning("SMTP_HOST not set -- outgoing email will only be logged")
    return LogMailer()

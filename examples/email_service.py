"""A small e-mail service whose side effects go through a :class:`Functions`."""

from __future__ import annotations

import logging
import re
import smtplib
import typing as t
from email.message import EmailMessage

from fn_mox import Functions

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")


def is_valid_email(address: str) -> bool:
    """Return ``True`` when *address* looks like an e-mail address."""
    return EMAIL_PATTERN.fullmatch(address) is not None


def send_mail(to: str, subject: str, body: str, host: str = "localhost") -> bool:
    """Deliver a plain-text message through the SMTP server on *host*."""
    message = EmailMessage()
    message["To"] = to
    message["Subject"] = subject
    message.set_content(body)
    try:
        with smtplib.SMTP(host) as smtp:
            smtp.send_message(message)
    except (OSError, smtplib.SMTPException):
        logger.exception("Could not deliver mail to %s", to)
        return False
    return True


def default_functions() -> Functions:
    """Return the production gateway used by :class:`EmailService`."""
    return Functions(
        {
            "is_valid_email": is_valid_email,
            "mail": send_mail,
            "error_log": logger.error,
        }
    )


class EmailService:
    """Send e-mails and terminate the process when delivery fails."""

    def __init__(self, functions: Functions | None = None) -> None:
        self._functions = functions if functions is not None else default_functions()

    def send(self, to: str, subject: str, body: str) -> t.Literal[True]:
        """Send *body* to *to*; on failure log the recipient and exit with 1."""
        if not self._functions.is_valid_email(to):
            msg = f"Invalid e-mail address: {to!r}"
            raise ValueError(msg)
        if not self._functions.mail(to, subject, body):
            self._functions.error_log(f"Failed to send email to: {to}")
            self._functions.exit(1)
        return True

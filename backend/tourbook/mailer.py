"""Outbound email for password reset links."""

from __future__ import annotations

import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from tourbook.config import RESET_TOKEN_EXPIRE_MINUTES
from tourbook.settings import settings
from tourbook.utils import redact_email

logger = logging.getLogger(__name__)

RESET_SUBJECT = f"Your password reset token (valid for {RESET_TOKEN_EXPIRE_MINUTES} min)"


class Mailer:
    """
    SMTP sender. Without an SMTP host it runs in dev mode: the message is
    logged (recipient redacted, link omitted) and reported as sent.
    """

    def __init__(
        self,
        *,
        smtp_host: Optional[str] = None,
        smtp_port: int = 587,
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
        smtp_use_tls: bool = True,
        from_email: str = "",
    ) -> None:
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.smtp_use_tls = smtp_use_tls
        self.from_email = from_email or smtp_user or ""

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host and self.from_email)

    def send(self, email: str, reset_url: str) -> bool:
        """Send the reset link. Returns False when delivery failed."""
        text = (
            "Forgot your password? Submit a PATCH request with your new password "
            f"and passwordConfirm to: {reset_url}\n"
            "If you didn't forget your password, please ignore this email."
        )
        return self._send_email(email, RESET_SUBJECT, text)

    def _send_email(self, to_email: str, subject: str, text_body: str) -> bool:
        if not self.is_configured:
            logger.info("Mail dev mode: would send '%s' to %s", subject, redact_email(to_email))
            return True

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_email
        msg["To"] = to_email
        msg.attach(MIMEText(text_body, "plain"))

        context = ssl.create_default_context()
        try:
            if self.smtp_use_tls:
                with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30) as server:
                    server.starttls(context=context)
                    if self.smtp_user and self.smtp_password:
                        server.login(self.smtp_user, self.smtp_password)
                    server.sendmail(self.from_email, [to_email], msg.as_string())
            else:
                with smtplib.SMTP_SSL(self.smtp_host, self.smtp_port, context=context, timeout=30) as server:
                    if self.smtp_user and self.smtp_password:
                        server.login(self.smtp_user, self.smtp_password)
                    server.sendmail(self.from_email, [to_email], msg.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send '%s' to %s: %s", subject, redact_email(to_email), exc)
            return False

        logger.info("Sent '%s' to %s", subject, redact_email(to_email))
        return True


_mailer: Optional[Mailer] = None


def get_mailer() -> Mailer:
    """FastAPI dependency returning the process-wide mailer."""
    global _mailer
    if _mailer is None:
        _mailer = Mailer(
            smtp_host=settings.smtp_host,
            smtp_port=settings.smtp_port,
            smtp_user=settings.smtp_user,
            smtp_password=settings.smtp_password,
            smtp_use_tls=settings.smtp_use_tls,
            from_email=settings.mail_from,
        )
    return _mailer

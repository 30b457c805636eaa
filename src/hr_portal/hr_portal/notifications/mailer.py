from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Protocol

from .model import Notification

logger = logging.getLogger(__name__)


class Mailer(Protocol):
    def send(self, notification: Notification) -> bool:
        raise NotImplementedError


class SmtpMailer(Mailer):
    """Sends HTML e-mail over SMTP with STARTTLS."""

    def __init__(
        self,
        smtp_host: str = "smtp.gmail.com",
        smtp_port: int = 587,
        smtp_user: str = "",
        smtp_password: str = "",
        from_email: str = "",
        from_name: str = "HR Portal",
        timeout: float = 10,
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.from_email = from_email or smtp_user
        self.from_name = from_name
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.smtp_user and self.smtp_password)

    def send(self, notification: Notification) -> bool:
        """Returns True if the message was handed to the SMTP server."""
        if not self.configured:
            logger.warning("Email not configured. SMTP credentials missing; skipped %r", notification.subject)
            return False

        msg = MIMEMultipart("alternative")
        msg["Subject"] = notification.subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = notification.recipient
        msg.attach(MIMEText(notification.html_body, "html"))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                server.starttls()
                server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_email, notification.recipient, msg.as_string())
        except smtplib.SMTPAuthenticationError:
            logger.error("SMTP authentication failed. Check email credentials.")
            return False
        except smtplib.SMTPException as e:
            logger.error("SMTP error sending to %s: %s", notification.recipient, e)
            return False
        except OSError as e:
            logger.error("Network error sending email to %s: %s", notification.recipient, e)
            return False

        logger.info("Email sent to %s (%s)", notification.recipient, notification.subject)
        return True

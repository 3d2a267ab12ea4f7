"""Password reset delivery adapters."""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any

from imagehost.services._shared.ports.notifier import PasswordResetNotifier

log = logging.getLogger(__name__)


class LoggingNotifier(PasswordResetNotifier):
    """Development notifier: writes the reset link to the log."""

    def send_reset_link(self, *, email: str, username: str, reset_link: str) -> None:
        log.info("Password reset link for %s: %s", email, reset_link)


@dataclass(slots=True)
class SMTPNotifier(PasswordResetNotifier):
    """Send the reset link as a plain-text email over SMTP (STARTTLS optional)."""

    server: str
    port: int
    username: str
    password: str
    sender: str
    use_tls: bool = True
    timeout: float = 10.0

    def send_reset_link(self, *, email: str, username: str, reset_link: str) -> None:
        message = MIMEMultipart()
        message["From"] = self.sender
        message["To"] = email
        message["Subject"] = "Password Reset Request"
        body = (
            f"Hello {username},\n\n"
            "We received a request to reset your password. Use the link below "
            "within the next hour:\n\n"
            f"{reset_link}\n\n"
            "If you did not ask for this, you can ignore this email."
        )
        message.attach(MIMEText(body, "plain"))

        with smtplib.SMTP(self.server, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password)
            smtp.sendmail(self.sender, [email], message.as_string())
        log.info("Password reset mail sent")


def build_notifier(config: Any) -> PasswordResetNotifier:
    """Pick SMTP when ``MAIL_SERVER`` is configured, otherwise log the link."""
    if config.get("MAIL_SERVER"):
        return SMTPNotifier(
            server=config["MAIL_SERVER"],
            port=int(config["MAIL_PORT"]),
            username=config.get("MAIL_USERNAME", ""),
            password=config.get("MAIL_PASSWORD", ""),
            sender=config["MAIL_DEFAULT_SENDER"],
            use_tls=bool(config.get("MAIL_USE_TLS", True)),
            timeout=float(config.get("MAIL_TIMEOUT_SECONDS", 10)),
        )
    return LoggingNotifier()

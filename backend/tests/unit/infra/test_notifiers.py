"""Tests for password reset delivery adapters."""

from __future__ import annotations

import logging

from imagehost.infra.mail import notifiers
from imagehost.infra.mail.notifiers import LoggingNotifier, SMTPNotifier, build_notifier


class FakeSMTP:
    instances: list[FakeSMTP] = []

    def __init__(self, host, port, timeout=None):
        self.host, self.port, self.timeout = host, port, timeout
        self.calls: list[tuple] = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.calls.append(("starttls",))

    def login(self, user, password):
        self.calls.append(("login", user, password))

    def sendmail(self, sender, recipients, message):
        self.calls.append(("sendmail", sender, recipients, message))


def test_build_notifier_defaults_to_logging():
    assert isinstance(build_notifier({"MAIL_SERVER": ""}), LoggingNotifier)


def test_build_notifier_smtp():
    notifier = build_notifier(
        {
            "MAIL_SERVER": "smtp.example.com",
            "MAIL_PORT": "2525",
            "MAIL_USERNAME": "bot",
            "MAIL_PASSWORD": "pw",
            "MAIL_DEFAULT_SENDER": "no-reply@example.com",
            "MAIL_USE_TLS": False,
        }
    )
    assert isinstance(notifier, SMTPNotifier)
    assert (notifier.port, notifier.use_tls) == (2525, False)


def test_smtp_notifier_sends_link(monkeypatch):
    FakeSMTP.instances.clear()
    monkeypatch.setattr(notifiers.smtplib, "SMTP", FakeSMTP)
    SMTPNotifier(
        server="smtp.example.com",
        port=587,
        username="bot",
        password="pw",
        sender="no-reply@example.com",
    ).send_reset_link(email="ann@example.com", username="ann", reset_link="https://x/reset-password/t")

    (smtp,) = FakeSMTP.instances
    assert smtp.calls[0] == ("starttls",)
    assert smtp.calls[1] == ("login", "bot", "pw")
    kind, sender, recipients, message = smtp.calls[2]
    assert (kind, sender, recipients) == ("sendmail", "no-reply@example.com", ["ann@example.com"])
    assert "https://x/reset-password/t" in message


def test_logging_notifier(caplog):
    with caplog.at_level(logging.INFO, logger="imagehost.infra.mail.notifiers"):
        LoggingNotifier().send_reset_link(email="a@b.io", username="a", reset_link="https://app.example.com/reset-password/abc123")
    assert "reset-password/abc123" in caplog.text

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


class PasswordResetNotifier(Protocol):
    """Port for delivering a password reset link to its owner."""

    def send_reset_link(self, *, email: str, username: str, reset_link: str) -> None: ...


@dataclass
class RecordingNotifier(PasswordResetNotifier):
    """Keeps every delivery in memory; used by unit tests."""

    sent: list[dict[str, str]] = field(default_factory=list)
    fail: bool = False

    def send_reset_link(self, *, email: str, username: str, reset_link: str) -> None:
        if self.fail:
            raise OSError("Simulated mail outage")
        self.sent.append({"email": email, "username": username, "reset_link": reset_link})

"""Fake mail transport: Records sent e-mails for testing."""

import threading

from order_notifications.mail.port import (
    MailAuthenticationError,
    MailMessage,
    MailTransport,
    MailTransportError,
)

_FAILURES = {
    "authentication": MailAuthenticationError,
    "transport": MailTransportError,
    "unexpected": RuntimeError,
}


class FakeMailTransport(MailTransport):
    """Mail transport that keeps messages in memory for test assertions.

    ``hold()`` makes every send block until ``release()`` is called, which lets
    tests keep workers busy to exercise pool saturation.
    """

    def __init__(self):
        self.sent_emails: list[MailMessage] = []
        self.failure: str | None = None
        self.failure_reason = "Email delivery failed"
        self._gate = threading.Event()
        self._gate.set()
        self._lock = threading.Lock()
        self.reachable = True

    def configure(self, failure: str | None = None, failure_reason: str = "Email delivery failed"):
        """Configure the fake adapter behavior for testing.

        ``failure`` is one of "authentication", "transport", "unexpected" or
        None for success.
        """
        if failure is not None and failure not in _FAILURES:
            raise ValueError(f"Unknown failure kind: {failure}")
        self.failure = failure
        self.failure_reason = failure_reason

    def hold(self):
        self._gate.clear()

    def release(self):
        self._gate.set()

    def send(self, message: MailMessage) -> None:
        self._gate.wait()
        if self.failure is not None:
            raise _FAILURES[self.failure](self.failure_reason)
        with self._lock:
            self.sent_emails.append(message)

    def sent_to(self, address: str) -> list[MailMessage]:
        with self._lock:
            return [m for m in self.sent_emails if m.to == address]

    def reset(self):
        """Clear sent emails (useful between tests)."""
        with self._lock:
            self.sent_emails.clear()
        self.failure = None
        self.failure_reason = "Email delivery failed"
        self.reachable = True
        self._gate.set()

    def check_connection(self) -> bool:
        return self.reachable

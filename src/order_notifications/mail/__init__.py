"""Mail transport adapters.

Use ``build_transport()`` to pick the adapter for the configured environment:
SMTP when an SMTP host is configured, the in-memory fake otherwise.
"""

from order_notifications.mail.fake import FakeMailTransport
from order_notifications.mail.port import (
    MailAuthenticationError,
    MailDeliveryError,
    MailMessage,
    MailTransport,
    MailTransportError,
)
from order_notifications.mail.smtp import SmtpMailTransport

__all__ = [
    "FakeMailTransport",
    "MailAuthenticationError",
    "MailDeliveryError",
    "MailMessage",
    "MailTransport",
    "MailTransportError",
    "SmtpMailTransport",
    "build_transport",
]


def build_transport(settings) -> MailTransport:
    """Return the transport for ``settings`` (a NotificationSettings)."""
    if settings.smtp_host:
        return SmtpMailTransport(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            starttls=settings.smtp_starttls,
            timeout=settings.smtp_timeout_seconds,
        )
    return FakeMailTransport()

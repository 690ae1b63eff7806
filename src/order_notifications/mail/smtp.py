"""SMTP mail transport adapter built on the standard library client."""

import smtplib
from email.message import EmailMessage

import structlog
from order_notifications.mail.port import (
    MailAuthenticationError,
    MailMessage,
    MailTransport,
    MailTransportError,
)

logger = structlog.get_logger(__name__)


class SmtpMailTransport(MailTransport):
    """Sends each message over a fresh SMTP connection."""

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        starttls: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.starttls = starttls
        self.timeout = timeout

    def _build(self, message: MailMessage) -> EmailMessage:
        email = EmailMessage()
        email["From"] = message.sender
        email["To"] = message.to
        email["Subject"] = message.subject
        email.set_content(message.body)
        return email

    def send(self, message: MailMessage) -> None:
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as client:
                if self.starttls:
                    client.starttls()
                if self.username:
                    client.login(self.username, self.password or "")
                client.send_message(self._build(message))
        except smtplib.SMTPAuthenticationError as e:
            raise MailAuthenticationError(f"SMTP authentication failed: {e}") from e
        except (smtplib.SMTPException, OSError) as e:
            raise MailTransportError(f"SMTP delivery to {message.to} failed: {e}") from e

        logger.info("Email handed to SMTP server", to=message.to, host=self.host)

    def check_connection(self) -> bool:
        """Open and close a connection to verify the server is reachable."""
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as client:
                client.noop()
        except (smtplib.SMTPException, OSError) as e:
            logger.warning("SMTP server unreachable", host=self.host, port=self.port, error=str(e))
            return False
        return True

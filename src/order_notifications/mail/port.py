"""Mail transport port: Abstract interface for sending plain-text e-mail."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.utils import formataddr


@dataclass(frozen=True)
class MailMessage:
    """A single plain-text e-mail to one recipient."""

    from_address: str
    to: str
    subject: str
    body: str
    from_name: str | None = None

    @property
    def sender(self) -> str:
        """The ``From`` header value, ``"Display Name <address>"`` when a name is set."""
        if self.from_name:
            return formataddr((self.from_name, self.from_address))
        return self.from_address


class MailDeliveryError(Exception):
    """Base class for failures the mail transport reports."""


class MailAuthenticationError(MailDeliveryError):
    """The mail server rejected our credentials."""


class MailTransportError(MailDeliveryError):
    """The message could not be handed to the mail server."""


class MailTransport(ABC):
    """Abstract interface for mail transport adapters."""

    @abstractmethod
    def send(self, message: MailMessage) -> None:
        """Send the message.

        Raises:
            MailAuthenticationError: credentials were rejected.
            MailTransportError: connection or protocol failure.

        Any other exception is treated as an unexpected failure.
        """
        ...

    def check_connection(self) -> bool:
        """Whether the transport can currently reach its server."""
        return True

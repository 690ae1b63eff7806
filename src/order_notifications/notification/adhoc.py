"""Ad-hoc e-mail that is not tied to an order event.

The mail is recorded as a GENERIC_EMAIL notification owned by the requesting
user, so it shows up in their history and stats like any other delivery.
"""

import structlog
from order_notifications.dispatch.dispatcher import DeliveryDispatcher
from order_notifications.notification.notification import Notification, NotificationType
from order_notifications.notification.store import NotificationStore

logger = structlog.get_logger(__name__)

# Order id recorded on generic mail, which is not about an order
NO_ORDER_ID = 0


class GenericMailService:
    def __init__(self, store: NotificationStore, dispatcher: DeliveryDispatcher, timeout: float = 30.0) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._timeout = timeout

    def send(self, user_id: int, to: str, subject: str, body: str) -> tuple[Notification, bool]:
        """Record and deliver one plain-text e-mail, waiting for the outcome.

        Raises:
            ValidationError: the mail cannot be recorded as a notification.
        """
        with self._store.domain_context():
            notification = Notification.create(
                order_id=NO_ORDER_ID,
                user_id=user_id,
                recipient=to,
                subject=subject,
                message=body,
                notification_type=NotificationType.GENERIC_EMAIL.value,
            )
        self._store.add(notification)

        logger.info("Sending generic email", notification_id=str(notification.id), user_id=user_id, to=to)
        return notification, self._dispatcher.deliver(notification, timeout=self._timeout)

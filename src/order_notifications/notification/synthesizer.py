"""NotificationSynthesizer: Turns an order event into a PENDING Notification.

Common pattern per event: pick the template for the event kind → resolve the
recipient through the user directory → render → persist.

Unknown event kinds are skipped with a warning; no generic fallback e-mail is
sent. Directory failures drop the event with a warning and are not retried.
"""

import structlog
from order_notifications.directory import UserDirectory, lookup_recipient
from order_notifications.ingestion.order_event import OrderEvent, OrderEventType
from order_notifications.notification.notification import Notification
from order_notifications.notification.store import NotificationStore
from order_notifications.templates import get_template

logger = structlog.get_logger(__name__)


class NotificationSynthesizer:
    def __init__(self, store: NotificationStore, directory: UserDirectory) -> None:
        self._store = store
        self._directory = directory

    def synthesize(self, event: OrderEvent) -> Notification | None:
        """Create and persist the notification for ``event``.

        Returns None when the event is skipped (unknown kind, unresolvable
        recipient).
        """
        if event.kind is OrderEventType.UNKNOWN:
            logger.warning(
                "Unknown event type, notification skipped",
                order_id=event.order_id,
                event_type=event.event_type,
            )
            return None

        user = lookup_recipient(self._directory, event.user_id, logger)
        if user is None:
            return None

        template_cls = get_template(event.kind)
        rendered = template_cls.render(
            {
                "order_id": event.order_id,
                "username": user.username,
                "product_name": event.product_name,
                "quantity": event.quantity,
                "total_amount": event.total_amount,
                "order_status": event.order_status,
            }
        )

        with self._store.domain_context():
            notification = Notification.create(
                order_id=event.order_id,
                user_id=event.user_id,
                recipient=user.email,
                subject=rendered["subject"],
                message=rendered["body"],
                notification_type=template_cls.notification_type,
            )
        self._store.add(notification)

        logger.info(
            "Notification created",
            notification_id=str(notification.id),
            order_id=event.order_id,
            user_id=event.user_id,
            notification_type=template_cls.notification_type,
        )

        return notification

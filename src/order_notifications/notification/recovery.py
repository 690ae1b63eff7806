"""Manual resend of the latest notification for an order.

A resend never touches the original record: it creates a new notification
with a ``Resend - `` subject prefix and the original body, dispatches it and
waits for the outcome. Resending a resend keeps a single prefix.
"""

import structlog
from order_notifications.directory import UserDirectory, lookup_recipient
from order_notifications.dispatch.dispatcher import DeliveryDispatcher
from order_notifications.notification.notification import Notification
from order_notifications.notification.store import NotificationStore
from protean.exceptions import ValidationError

logger = structlog.get_logger(__name__)

RESEND_SUBJECT_PREFIX = "Resend - "


def resend_subject(subject: str) -> str:
    if subject.startswith(RESEND_SUBJECT_PREFIX):
        return subject
    return f"{RESEND_SUBJECT_PREFIX}{subject}"


class ResendService:
    def __init__(
        self,
        store: NotificationStore,
        directory: UserDirectory,
        dispatcher: DeliveryDispatcher,
        resend_timeout: float = 30.0,
    ) -> None:
        self._store = store
        self._directory = directory
        self._dispatcher = dispatcher
        self._resend_timeout = resend_timeout

    def resend(self, order_id: int) -> bool:
        """Resend the most recent notification for ``order_id``.

        Returns True only when the new e-mail was delivered.
        """
        previous = self._store.find_latest_for_order(order_id)
        if previous is None:
            logger.warning("No notification found to resend", order_id=order_id)
            return False

        user = lookup_recipient(self._directory, previous.user_id, logger)
        if user is None:
            return False

        try:
            with self._store.domain_context():
                notification = Notification.create(
                    order_id=previous.order_id,
                    user_id=previous.user_id,
                    recipient=user.email,
                    subject=resend_subject(previous.subject),
                    message=previous.message,
                    notification_type=previous.notification_type,
                )
        except ValidationError as e:
            logger.error("Could not create resend notification", order_id=order_id, error=str(e))
            return False
        self._store.add(notification)

        logger.info(
            "Resending notification",
            order_id=order_id,
            previous_notification_id=str(previous.id),
            notification_id=str(notification.id),
        )

        return self._dispatcher.deliver(notification, timeout=self._resend_timeout)

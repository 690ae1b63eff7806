"""StatusTracker: Applies delivery outcomes and answers status queries.

The tracker is the authorization boundary for reads and read-marking: a
user-scoped lookup of someone else's notification behaves exactly like a
lookup of a notification that does not exist.
"""

from dataclasses import dataclass

import structlog
from order_notifications.dispatch.dispatcher import DeliveryOutcome
from order_notifications.notification.notification import (
    Notification,
    NotificationNotFoundError,
    NotificationStatus,
)
from order_notifications.notification.repository import DEFAULT_PAGE_SIZE
from order_notifications.notification.store import NotificationStore
from protean.exceptions import ObjectNotFoundError, ValidationError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class NotificationStats:
    user_id: int
    total: int
    pending: int
    sent: int
    failed: int

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "total": self.total,
            "pending": self.pending,
            "sent": self.sent,
            "failed": self.failed,
        }


class StatusTracker:
    def __init__(self, store: NotificationStore) -> None:
        self._store = store

    # -------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------
    def update_status(
        self,
        notification_id: str,
        new_status: NotificationStatus,
        error_message: str | None = None,
        at=None,
    ) -> Notification:
        """Move a PENDING notification to SENT or FAILED.

        Raises:
            ValidationError: the transition is not allowed.
            NotificationNotFoundError: no such notification.
        """

        def apply(notification: Notification):
            if new_status is NotificationStatus.SENT:
                notification.mark_sent(sent_at=at)
            elif new_status is NotificationStatus.FAILED:
                notification.mark_failed(error_message or "Failed to send email", failed_at=at)
            else:
                raise ValidationError({"status": [f"Cannot transition to {new_status.value}"]})

        try:
            notification = self._store.update(notification_id, apply)
        except ObjectNotFoundError as e:
            raise NotificationNotFoundError(notification_id) from e

        logger.info(
            "Notification status updated",
            notification_id=notification_id,
            status=notification.status,
        )
        return notification

    def record_outcome(self, outcome: DeliveryOutcome) -> Notification:
        """Outcome handler for the delivery dispatcher."""
        if outcome.success:
            return self.update_status(outcome.notification_id, NotificationStatus.SENT, at=outcome.completed_at)
        return self.update_status(
            outcome.notification_id,
            NotificationStatus.FAILED,
            error_message=outcome.error,
            at=outcome.completed_at,
        )

    # -------------------------------------------------------------------
    # Read tracking
    # -------------------------------------------------------------------
    def mark_read(self, notification_id: str, user_id: int) -> Notification:
        """Mark a user's notification as read. Repeated calls are no-ops.

        Raises:
            NotificationNotFoundError: the notification does not exist or
                belongs to another user.
        """

        def apply(notification: Notification):
            if not notification.is_owned_by(user_id):
                raise NotificationNotFoundError(notification_id, user_id)
            notification.mark_read()

        try:
            notification = self._store.update(notification_id, apply)
        except ObjectNotFoundError as e:
            raise NotificationNotFoundError(notification_id, user_id) from e
        except NotificationNotFoundError:
            logger.warning("Notification not found for user", notification_id=notification_id, user_id=user_id)
            raise

        logger.info("Notification marked as read", notification_id=notification_id, user_id=user_id)
        return notification

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get_for_user(self, notification_id: str, user_id: int) -> Notification:
        notification = self._store.get(notification_id)
        if notification is None or not notification.is_owned_by(user_id):
            raise NotificationNotFoundError(notification_id, user_id)
        return notification

    def query_by_user(self, user_id: int) -> list[Notification]:
        return self._store.find_by_user(user_id)

    def query_by_order(self, order_id: int, user_id: int | None = None) -> list[Notification]:
        """Notifications for an order; only ``user_id``'s when given."""
        return self._store.find_by_order(order_id, user_id=user_id)

    def query_pending(self, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0) -> list[Notification]:
        """A page of PENDING notifications, oldest first."""
        return self._store.find_pending(limit=limit, offset=offset)

    def count_pending(self) -> int:
        return self._store.count_by_status(NotificationStatus.PENDING)

    def stats(self, user_id: int) -> NotificationStats:
        return NotificationStats(
            user_id=user_id,
            total=self._store.count_for_user(user_id),
            pending=self._store.count_for_user(user_id, NotificationStatus.PENDING),
            sent=self._store.count_for_user(user_id, NotificationStatus.SENT),
            failed=self._store.count_for_user(user_id, NotificationStatus.FAILED),
        )

"""Notification aggregate: One e-mail about one order, sent to one user.

Notifications are created from inbound order events (or by the resend path)
and are never deleted: the collection is the audit trail of everything the
service tried to send.

State Machine (3 states):
    PENDING → SENT
    PENDING → FAILED

Both SENT and FAILED are terminal. Read tracking is a separate axis
(``is_read``/``read_at``) that can change at any point after creation.
"""

from datetime import UTC, datetime
from enum import Enum

from order_notifications.domain import order_notifications
from order_notifications.notification.events import (
    NotificationCreated,
    NotificationFailed,
    NotificationRead,
    NotificationSent,
)
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Integer, String, Text


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class NotificationType(Enum):
    ORDER_CONFIRMATION = "ORDER_CONFIRMATION"
    ORDER_STATUS_UPDATE = "ORDER_STATUS_UPDATE"
    ORDER_CANCELLATION = "ORDER_CANCELLATION"
    GENERIC_EMAIL = "GENERIC_EMAIL"


class NotificationStatus(Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"


# ---------------------------------------------------------------------------
# State Machine
# ---------------------------------------------------------------------------
_VALID_TRANSITIONS = {
    NotificationStatus.PENDING: {
        NotificationStatus.SENT,
        NotificationStatus.FAILED,
    },
    NotificationStatus.SENT: set(),  # Terminal
    NotificationStatus.FAILED: set(),  # Terminal, recovery creates a new record
}


class NotificationNotFoundError(Exception):
    """No notification with this id is visible to the requesting user.

    Raised both when the record does not exist and when it belongs to another
    user, so callers cannot discover other users' notifications.
    """

    def __init__(self, notification_id, user_id=None):
        super().__init__(f"Notification {notification_id} not found")
        self.notification_id = notification_id
        self.user_id = user_id


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@order_notifications.aggregate
class Notification:
    """A single e-mail about an order, addressed to the order's owner."""

    # Correlation
    order_id: Integer(required=True)
    user_id: Integer(required=True)

    # Addressing and content
    recipient: String(required=True, max_length=254)
    subject: String(required=True, max_length=500)
    message: Text(required=True)
    notification_type: String(choices=NotificationType, required=True)

    # Delivery
    status: String(choices=NotificationStatus, default=NotificationStatus.PENDING.value)
    sent_at: DateTime()
    error_message: Text()

    # Read tracking
    is_read: Boolean(default=False)
    read_at: DateTime()

    created_at: DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, order_id, user_id, recipient, subject, message, notification_type):
        """Create a new notification in PENDING status."""
        if not recipient or not recipient.strip():
            raise ValidationError({"recipient": ["A resolved e-mail address is required"]})

        now = datetime.now(UTC)

        notification = cls(
            order_id=order_id,
            user_id=user_id,
            recipient=recipient.strip(),
            subject=subject,
            message=message,
            notification_type=notification_type,
            status=NotificationStatus.PENDING.value,
            is_read=False,
            created_at=now,
        )

        notification.raise_(
            NotificationCreated(
                notification_id=str(notification.id),
                order_id=order_id,
                user_id=user_id,
                notification_type=notification_type,
                subject=subject,
                created_at=now,
            )
        )

        return notification

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def is_owned_by(self, user_id) -> bool:
        return self.user_id == user_id

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate state machine transition."""
        current = NotificationStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def mark_sent(self, sent_at=None):
        """Record that the mail transport accepted the message."""
        self._assert_can_transition(NotificationStatus.SENT)

        now = sent_at or datetime.now(UTC)
        self.status = NotificationStatus.SENT.value
        self.sent_at = now

        self.raise_(
            NotificationSent(
                notification_id=str(self.id),
                order_id=self.order_id,
                user_id=self.user_id,
                sent_at=now,
            )
        )

    def mark_failed(self, reason, failed_at=None):
        """Record a failed delivery attempt."""
        self._assert_can_transition(NotificationStatus.FAILED)

        now = failed_at or datetime.now(UTC)
        self.status = NotificationStatus.FAILED.value
        self.error_message = reason

        self.raise_(
            NotificationFailed(
                notification_id=str(self.id),
                order_id=self.order_id,
                user_id=self.user_id,
                reason=reason,
                failed_at=now,
            )
        )

    def mark_read(self, read_at=None) -> bool:
        """Flag the notification as read.

        Only the first call has an effect; ``read_at`` keeps the time of the
        first read. Returns True when the flag changed.
        """
        if self.is_read:
            return False

        now = read_at or datetime.now(UTC)
        self.is_read = True
        self.read_at = now

        self.raise_(
            NotificationRead(
                notification_id=str(self.id),
                user_id=self.user_id,
                read_at=now,
            )
        )
        return True

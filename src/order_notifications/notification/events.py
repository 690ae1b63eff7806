"""Domain events for the Notification aggregate."""

from order_notifications.domain import order_notifications
from protean.fields import DateTime, Identifier, Integer, String, Text


@order_notifications.event(part_of="Notification")
class NotificationCreated:
    """A notification was created and is waiting for delivery."""

    __version__ = 1

    notification_id: Identifier(required=True)
    order_id: Integer(required=True)
    user_id: Integer(required=True)
    notification_type: String(required=True)
    subject: String(max_length=500)
    created_at: DateTime(required=True)


@order_notifications.event(part_of="Notification")
class NotificationSent:
    """The mail transport accepted the notification."""

    __version__ = 1

    notification_id: Identifier(required=True)
    order_id: Integer(required=True)
    user_id: Integer(required=True)
    sent_at: DateTime(required=True)


@order_notifications.event(part_of="Notification")
class NotificationFailed:
    """Delivery of the notification failed. There is no automatic retry."""

    __version__ = 1

    notification_id: Identifier(required=True)
    order_id: Integer(required=True)
    user_id: Integer(required=True)
    reason: Text()
    failed_at: DateTime(required=True)


@order_notifications.event(part_of="Notification")
class NotificationRead:
    """The owning user read the notification for the first time."""

    __version__ = 1

    notification_id: Identifier(required=True)
    user_id: Integer(required=True)
    read_at: DateTime(required=True)

"""Tests for NotificationSynthesizer: Order events become PENDING notifications."""

import json

from order_notifications.ingestion.order_event import parse_order_event
from order_notifications.notification.notification import NotificationStatus, NotificationType
from order_notifications.notification.synthesizer import NotificationSynthesizer


def _synthesize(store, directory, event):
    return NotificationSynthesizer(store, directory).synthesize(parse_order_event(json.dumps(event)))


class TestSynthesize:
    def test_order_created(self, store, directory, make_event):
        n = _synthesize(store, directory, make_event())

        assert n is not None
        assert n.status == NotificationStatus.PENDING.value
        assert n.order_id == 1
        assert n.user_id == 123
        assert n.recipient == "test@example.com"
        assert n.subject == "Order Confirmation - Order #1"
        assert n.notification_type == NotificationType.ORDER_CONFIRMATION.value
        assert "Dear testuser," in n.message

    def test_notification_is_persisted(self, store, directory, make_event):
        n = _synthesize(store, directory, make_event())
        persisted = store.get(str(n.id))
        assert persisted is not None
        assert persisted.status == NotificationStatus.PENDING.value

    def test_order_updated(self, store, directory, make_event):
        n = _synthesize(store, directory, make_event(eventType="ORDER_UPDATED", status="SHIPPED"))
        assert n.subject == "Order Status Update - Order #1"
        assert n.notification_type == NotificationType.ORDER_STATUS_UPDATE.value
        assert "SHIPPED" in n.message

    def test_order_cancelled(self, store, directory, make_event):
        n = _synthesize(store, directory, make_event(eventType="ORDER_CANCELLED"))
        assert n.subject == "Order Cancellation - Order #1"
        assert n.notification_type == NotificationType.ORDER_CANCELLATION.value


class TestSkippedEvents:
    def test_unknown_event_type_is_skipped(self, store, directory, make_event):
        assert _synthesize(store, directory, make_event(eventType="ORDER_REFUNDED")) is None
        assert store.find_by_order(1) == []
        # No directory call for events that will never produce mail
        assert directory.lookups == []

    def test_unknown_user_is_skipped(self, store, directory, make_event):
        assert _synthesize(store, directory, make_event(userId=999)) is None
        assert store.find_by_order(1) == []

    def test_user_without_email_is_skipped(self, store, directory, make_event):
        directory.add_user(789, "noemail", None)
        assert _synthesize(store, directory, make_event(userId=789)) is None
        assert store.find_by_order(1) == []

    def test_directory_unavailable_is_skipped(self, store, directory, make_event):
        directory.set_available(False)
        assert _synthesize(store, directory, make_event()) is None
        assert store.find_by_order(1) == []

"""Tests for ResendService: Manual recovery of an order's latest notification."""

from datetime import UTC, datetime, timedelta

from order_notifications.notification.notification import (
    Notification,
    NotificationStatus,
    NotificationType,
)
from order_notifications.notification.recovery import resend_subject


def _add(store, order_id=1, user_id=123, subject=None, created_at=None, notification_type=None):
    n = Notification.create(
        order_id=order_id,
        user_id=user_id,
        recipient="old@example.com",
        subject=subject or f"Order Confirmation - Order #{order_id}",
        message="Original body",
        notification_type=notification_type or NotificationType.ORDER_CONFIRMATION.value,
    )
    if created_at is not None:
        n.created_at = created_at
    store.add(n)
    return n


class TestResend:
    def test_no_prior_notification(self, service, transport):
        assert service.recovery.resend(42) is False
        assert service.store.find_by_order(42) == []
        assert transport.sent_emails == []

    def test_resend_creates_new_notification(self, service, transport):
        original = _add(service.store)

        assert service.recovery.resend(1) is True

        notifications = service.store.find_by_order(1)
        assert len(notifications) == 2
        resent = next(n for n in notifications if n.id != original.id)
        assert resent.subject == "Resend - Order Confirmation - Order #1"
        assert resent.message == "Original body"
        assert resent.status == NotificationStatus.SENT.value
        assert resent.notification_type == NotificationType.ORDER_CONFIRMATION.value

        # The original record is untouched
        assert service.store.get(str(original.id)).status == NotificationStatus.PENDING.value

    def test_resend_uses_current_email_address(self, service, transport):
        _add(service.store)
        service.recovery.resend(1)
        assert [m.to for m in transport.sent_emails] == ["test@example.com"]

    def test_resend_keeps_notification_type(self, service):
        _add(
            service.store,
            subject="Order Cancellation - Order #1",
            notification_type=NotificationType.ORDER_CANCELLATION.value,
        )
        service.recovery.resend(1)
        latest = service.store.find_latest_for_order(1)
        assert latest.notification_type == NotificationType.ORDER_CANCELLATION.value

    def test_resends_most_recent_notification(self, service, transport):
        now = datetime.now(UTC)
        _add(service.store, subject="Order Confirmation - Order #1", created_at=now - timedelta(hours=1))
        _add(service.store, subject="Order Status Update - Order #1", created_at=now - timedelta(minutes=1))

        assert service.recovery.resend(1) is True
        assert transport.sent_emails[0].subject == "Resend - Order Status Update - Order #1"

    def test_failed_send_returns_false_and_records_failure(self, service, transport):
        _add(service.store)
        transport.configure(failure="transport", failure_reason="connection refused")

        assert service.recovery.resend(1) is False

        latest = service.store.find_latest_for_order(1)
        assert latest.subject.startswith("Resend - ")
        assert latest.status == NotificationStatus.FAILED.value
        assert latest.error_message == "Mail transport failed: connection refused"

    def test_unresolvable_user_returns_false(self, service, directory, transport):
        _add(service.store, user_id=999)
        assert service.recovery.resend(1) is False
        assert len(service.store.find_by_order(1)) == 1
        assert transport.sent_emails == []

    def test_rejected_resend_stays_pending(self, service):
        _add(service.store)
        service.dispatcher.shutdown(timeout=1)

        assert service.recovery.resend(1) is False

        latest = service.store.find_latest_for_order(1)
        assert latest.subject.startswith("Resend - ")
        assert latest.status == NotificationStatus.PENDING.value

    def test_resending_a_resend_keeps_one_prefix(self, service, transport):
        _add(service.store)

        assert service.recovery.resend(1) is True
        assert service.recovery.resend(1) is True

        assert [m.subject for m in transport.sent_emails] == [
            "Resend - Order Confirmation - Order #1",
            "Resend - Order Confirmation - Order #1",
        ]

    def test_subject_too_long_to_prefix_returns_false(self, service, transport):
        _add(service.store, subject="x" * 495)

        assert service.recovery.resend(1) is False
        assert len(service.store.find_by_order(1)) == 1
        assert transport.sent_emails == []

    def test_outcome_recording_failure_returns_false(self, service, transport, monkeypatch):
        _add(service.store)

        def broken_handler(outcome):
            raise RuntimeError("store unavailable")

        monkeypatch.setattr(service.dispatcher, "_on_outcome", broken_handler)

        assert service.recovery.resend(1) is False
        assert len(transport.sent_emails) == 1


class TestResendSubject:
    def test_prefixes_plain_subject(self):
        assert resend_subject("Order Confirmation - Order #1") == "Resend - Order Confirmation - Order #1"

    def test_leaves_prefixed_subject_alone(self):
        assert resend_subject("Resend - Order Confirmation - Order #1") == "Resend - Order Confirmation - Order #1"

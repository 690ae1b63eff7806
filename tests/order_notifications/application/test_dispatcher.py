"""Tests for DeliveryDispatcher: Delivery outcomes, failure classification and backpressure."""

import pytest
from order_notifications.config import NotificationSettings
from order_notifications.dispatch.dispatcher import (
    BackpressureRejection,
    DeliveryDispatcher,
    FailureKind,
)
from order_notifications.notification.notification import (
    Notification,
    NotificationStatus,
    NotificationType,
)
from order_notifications.notification.tracker import StatusTracker


def _persisted_notification(store, order_id=1, user_id=123):
    n = Notification.create(
        order_id=order_id,
        user_id=user_id,
        recipient="test@example.com",
        subject=f"Order Confirmation - Order #{order_id}",
        message="Dear testuser, ...",
        notification_type=NotificationType.ORDER_CONFIRMATION.value,
    )
    store.add(n)
    return n


@pytest.fixture
def dispatcher(store, transport):
    tracker = StatusTracker(store)
    settings = NotificationSettings(drain_timeout_seconds=5.0)
    dispatcher = DeliveryDispatcher.from_settings(settings, transport, tracker.record_outcome)
    yield dispatcher
    transport.release()
    dispatcher.shutdown(timeout=5.0)


class TestSuccessfulDelivery:
    def test_marks_sent(self, store, transport, dispatcher):
        n = _persisted_notification(store)

        outcome = dispatcher.submit(n).result(timeout=5)

        assert outcome.success is True
        assert outcome.failure_kind is None
        persisted = store.get(str(n.id))
        assert persisted.status == NotificationStatus.SENT.value
        assert persisted.sent_at is not None

    def test_sends_rendered_mail(self, store, transport, dispatcher):
        n = _persisted_notification(store)
        dispatcher.submit(n).result(timeout=5)

        assert len(transport.sent_emails) == 1
        mail = transport.sent_emails[0]
        assert mail.to == "test@example.com"
        assert mail.subject == "Order Confirmation - Order #1"
        assert mail.body == "Dear testuser, ..."
        assert mail.from_address == "noreply@oms.com"


class TestFailedDelivery:
    @pytest.mark.parametrize(
        "failure,kind,label",
        [
            ("authentication", FailureKind.AUTHENTICATION, "Mail server authentication failed"),
            ("transport", FailureKind.TRANSPORT, "Mail transport failed"),
            ("unexpected", FailureKind.UNEXPECTED, "Unexpected error while sending email"),
        ],
    )
    def test_failure_is_classified_and_recorded(self, store, transport, dispatcher, failure, kind, label):
        transport.configure(failure=failure, failure_reason="535 bad credentials")
        n = _persisted_notification(store)

        outcome = dispatcher.submit(n).result(timeout=5)

        assert outcome.success is False
        assert outcome.failure_kind is kind
        assert outcome.error == f"{label}: 535 bad credentials"

        persisted = store.get(str(n.id))
        assert persisted.status == NotificationStatus.FAILED.value
        assert persisted.error_message == f"{label}: 535 bad credentials"
        assert persisted.sent_at is None

    def test_failure_is_not_retried(self, store, transport, dispatcher):
        transport.configure(failure="transport")
        n = _persisted_notification(store)
        dispatcher.submit(n).result(timeout=5)
        assert dispatcher.join(timeout=1)
        assert transport.sent_emails == []
        assert store.get(str(n.id)).status == NotificationStatus.FAILED.value


class TestBackpressure:
    def test_saturated_dispatcher_rejects_and_leaves_pending(self, store, transport, dispatcher):
        transport.hold()
        notifications = [_persisted_notification(store, order_id=i) for i in range(1, 117)]

        accepted, rejected = [], []
        for n in notifications:
            try:
                accepted.append(dispatcher.submit(n))
            except BackpressureRejection as e:
                rejected.append(e.notification_id)

        # 10 busy workers plus 100 queued deliveries
        assert len(accepted) == 110
        assert rejected == [str(n.id) for n in notifications[110:]]
        for notification_id in rejected:
            assert store.get(notification_id).status == NotificationStatus.PENDING.value

        transport.release()
        for future in accepted:
            assert future.result(timeout=10).success
        for notification_id in rejected:
            assert store.get(notification_id).status == NotificationStatus.PENDING.value

    def test_rejects_after_shutdown(self, store, dispatcher):
        dispatcher.shutdown(timeout=1)
        with pytest.raises(BackpressureRejection):
            dispatcher.submit(_persisted_notification(store))


class TestShutdown:
    def test_abandoned_deliveries_stay_pending(self, store, transport):
        tracker = StatusTracker(store)
        settings = NotificationSettings(core_pool_size=1, max_pool_size=1, queue_capacity=5)
        dispatcher = DeliveryDispatcher.from_settings(settings, transport, tracker.record_outcome)
        transport.hold()

        first = _persisted_notification(store, order_id=1)
        queued = [_persisted_notification(store, order_id=i) for i in range(2, 5)]
        dispatcher.submit(first)
        for n in queued:
            dispatcher.submit(n)

        abandoned = dispatcher.shutdown(timeout=0.2)

        assert sorted(abandoned) == sorted(str(n.id) for n in queued)
        for n in queued:
            assert store.get(str(n.id)).status == NotificationStatus.PENDING.value

        transport.release()

    def test_join_waits_for_in_flight(self, store, transport, dispatcher):
        transport.hold()
        dispatcher.submit(_persisted_notification(store))
        assert dispatcher.join(timeout=0.1) is False
        transport.release()
        assert dispatcher.join(timeout=5) is True


class TestDeliver:
    def test_returns_true_when_sent(self, store, dispatcher):
        assert dispatcher.deliver(_persisted_notification(store), timeout=5) is True

    def test_returns_false_when_send_fails(self, store, transport, dispatcher):
        transport.configure(failure="transport")
        n = _persisted_notification(store)

        assert dispatcher.deliver(n, timeout=5) is False
        assert store.get(str(n.id)).status == NotificationStatus.FAILED.value

    def test_returns_false_when_rejected(self, store, dispatcher):
        dispatcher.shutdown(timeout=1)
        n = _persisted_notification(store)

        assert dispatcher.deliver(n, timeout=5) is False
        assert store.get(str(n.id)).status == NotificationStatus.PENDING.value

    def test_returns_false_on_timeout(self, store, transport, dispatcher):
        transport.hold()
        assert dispatcher.deliver(_persisted_notification(store), timeout=0.1) is False

    def test_returns_false_when_outcome_cannot_be_recorded(self, store, transport):
        def broken_handler(outcome):
            raise RuntimeError("store unavailable")

        settings = NotificationSettings(drain_timeout_seconds=5.0)
        dispatcher = DeliveryDispatcher.from_settings(settings, transport, broken_handler)
        try:
            assert dispatcher.deliver(_persisted_notification(store), timeout=5) is False
            assert len(transport.sent_emails) == 1
        finally:
            dispatcher.shutdown(timeout=5.0)

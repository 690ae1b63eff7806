"""Tests for NotificationStore: Thread-safe persistence of notifications."""

import threading

import pytest
from order_notifications.notification.notification import (
    Notification,
    NotificationStatus,
    NotificationType,
)
from order_notifications.notification.tracker import StatusTracker
from protean.exceptions import ObjectNotFoundError


def _add(store, order_id=1, user_id=123):
    n = Notification.create(
        order_id=order_id,
        user_id=user_id,
        recipient="test@example.com",
        subject=f"Order Confirmation - Order #{order_id}",
        message="Body",
        notification_type=NotificationType.ORDER_CONFIRMATION.value,
    )
    store.add(n)
    return str(n.id)


class TestStore:
    def test_get_missing_returns_none(self, store):
        assert store.get("does-not-exist") is None

    def test_update_missing_raises(self, store):
        with pytest.raises(ObjectNotFoundError):
            store.update("does-not-exist", lambda n: None)

    def test_find_latest_for_order_without_records(self, store):
        assert store.find_latest_for_order(1) is None

    def test_count_by_status(self, store):
        _add(store, order_id=1)
        _add(store, order_id=2)
        assert store.count_by_status(NotificationStatus.PENDING) == 2
        assert store.count_by_status(NotificationStatus.SENT) == 0

    def test_writes_from_other_threads_are_visible(self, store):
        notifications = [
            Notification.create(
                order_id=i,
                user_id=123,
                recipient="test@example.com",
                subject=f"Order Confirmation - Order #{i}",
                message="Body",
                notification_type=NotificationType.ORDER_CONFIRMATION.value,
            )
            for i in range(20)
        ]
        threads = [threading.Thread(target=store.add, args=(n,)) for n in notifications]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert store.count_for_user(123) == 20


class TestConcurrentUpdates:
    def test_delivery_outcome_and_read_marking_do_not_clobber(self, store):
        tracker = StatusTracker(store)
        ids = [_add(store, order_id=i) for i in range(25)]
        barrier = threading.Barrier(2)

        def deliver():
            barrier.wait()
            for nid in ids:
                tracker.update_status(nid, NotificationStatus.SENT)

        def read():
            barrier.wait()
            for nid in ids:
                tracker.mark_read(nid, 123)

        threads = [threading.Thread(target=deliver), threading.Thread(target=read)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        for nid in ids:
            n = store.get(nid)
            assert n.status == NotificationStatus.SENT.value
            assert n.is_read is True

import json

import pytest
from order_notifications.config import NotificationSettings
from order_notifications.directory import FakeUserDirectory
from order_notifications.domain import order_notifications
from order_notifications.ingestion.source import ConsumedMessage
from order_notifications.mail import FakeMailTransport
from order_notifications.notification.store import NotificationStore
from order_notifications.service import NotificationService

TOPIC = "order-events-v2"


def _event(**overrides) -> dict:
    """An ORDER_CREATED payload for order #1 placed by user 123."""
    event = {
        "orderId": 1,
        "userId": 123,
        "productName": "Test Product",
        "quantity": 2,
        "totalAmount": 199.99,
        "status": "PENDING",
        "eventType": "ORDER_CREATED",
        "timestamp": "2024-01-15 10:30:00",
    }
    event.update(overrides)
    return event


def _message(offset=0, partition=0, **overrides) -> ConsumedMessage:
    return ConsumedMessage(
        topic=TOPIC,
        partition=partition,
        offset=offset,
        payload=json.dumps(_event(**overrides)),
    )


@pytest.fixture
def make_event():
    return _event


@pytest.fixture
def make_message():
    return _message


@pytest.fixture
def directory():
    directory = FakeUserDirectory()
    directory.add_user(123, "testuser", "test@example.com")
    directory.add_user(456, "otheruser", "other@example.com")
    return directory


@pytest.fixture
def transport():
    transport = FakeMailTransport()
    yield transport
    transport.release()


@pytest.fixture
def settings():
    return NotificationSettings(drain_timeout_seconds=5.0, resend_timeout_seconds=5.0)


@pytest.fixture
def store():
    return NotificationStore(order_notifications)


@pytest.fixture
def service(settings, directory, transport):
    service = NotificationService.build(settings, order_notifications, directory=directory, transport=transport)
    yield service
    transport.release()
    service.shutdown(timeout=5.0)

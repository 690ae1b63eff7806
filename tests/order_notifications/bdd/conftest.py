"""Shared BDD fixtures and step definitions for the order notification pipeline."""

import pytest
from order_notifications.notification.notification import NotificationNotFoundError
from pytest_bdd import given, parsers, then


@pytest.fixture()
def error():
    """Container for captured errors."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('user {user_id:d} "{username}" with e-mail "{email}"'))
def registered_user(directory, user_id, username, email):
    directory.add_user(user_id, username, email)


@given("the mail server rejects our credentials")
def mail_server_rejects_credentials(transport):
    transport.configure(failure="authentication", failure_reason="535 bad credentials")


@given("the mail server is unreachable")
def mail_server_unreachable(transport):
    transport.configure(failure="transport", failure_reason="connection refused")


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('a notification for order {order_id:d} is "{status}"'))
def notification_has_status(service, order_id, status):
    notifications = service.store.find_by_order(order_id)
    assert len(notifications) == 1
    assert notifications[0].status == status


@then(parsers.cfparse('"{email}" received an e-mail with subject "{subject}"'))
def email_received(transport, email, subject):
    assert [m.subject for m in transport.sent_to(email)] == [subject]


@then(parsers.cfparse('the notification error starts with "{prefix}"'))
def notification_error_starts_with(notification, service, prefix):
    assert service.store.get(str(notification.id)).error_message.startswith(prefix)


@then(parsers.cfparse("there are no notifications for order {order_id:d}"))
def no_notifications(service, order_id):
    assert service.store.find_by_order(order_id) == []


@then(parsers.cfparse("there are {count:d} notifications for order {order_id:d}"))
def notification_count(service, count, order_id):
    assert len(service.store.find_by_order(order_id)) == count


@then("the notification is read")
def notification_is_read(service, notification):
    assert service.store.get(str(notification.id)).is_read is True


@then("the notification is not read")
def notification_is_not_read(service, notification):
    assert service.store.get(str(notification.id)).is_read is False


@then("the notification is not found")
def notification_not_found(error):
    assert isinstance(error["exc"], NotificationNotFoundError)

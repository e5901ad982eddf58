"""Shared BDD fixtures and step definitions for the notifications service."""

import pytest
from notifications.notification.events import (
    NotificationCreated,
    NotificationDelivered,
    NotificationFailed,
    NotificationSent,
)
from notifications.notification.notification import (
    Notification,
    NotificationChannel,
    NotificationType,
)
from notifications.preference.preference import NotificationPreference
from protean import current_domain
from pytest_bdd import given, parsers, then

_NOTIFICATION_EVENT_CLASSES = {
    "NotificationCreated": NotificationCreated,
    "NotificationSent": NotificationSent,
    "NotificationDelivered": NotificationDelivered,
    "NotificationFailed": NotificationFailed,
}


@pytest.fixture()
def error():
    """Container for captured service errors."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps — notifications
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse('a new notification for merchant "{merchant_id}"'),
    target_fixture="notification",
)
def new_notification(merchant_id):
    return Notification.create(
        merchant_id=merchant_id,
        notification_type=NotificationType.EMAIL.value,
        channel=NotificationChannel.TRANSACTION.value,
        recipient="owner@m.test",
        body="Your payout is on its way",
    )


@given("a pending notification", target_fixture="notification")
def pending_notification():
    n = Notification.create(
        merchant_id="m-bdd",
        notification_type=NotificationType.EMAIL.value,
        channel=NotificationChannel.TRANSACTION.value,
        recipient="owner@m.test",
        body="Body",
    )
    n._events.clear()
    return n


@given("a sent notification", target_fixture="notification")
def sent_notification():
    n = Notification.create(
        merchant_id="m-bdd",
        notification_type=NotificationType.EMAIL.value,
        channel=NotificationChannel.TRANSACTION.value,
        recipient="owner@m.test",
        body="Body",
    )
    n.mark_sent()
    n._events.clear()
    return n


# ---------------------------------------------------------------------------
# Given steps — merchants and preferences
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse('merchant "{merchant_id}" with default preferences'),
    target_fixture="merchant_id",
)
def merchant_with_defaults(merchant_id):
    pref = NotificationPreference.create_default(merchant_id=merchant_id)
    current_domain.repository_for(NotificationPreference).add(pref)
    return merchant_id


@given(parsers.cfparse('the merchant has turned off "{toggle}"'))
def merchant_turned_off(merchant_id, toggle):
    repo = current_domain.repository_for(NotificationPreference)
    pref = repo.find_by_merchant(merchant_id)
    setattr(pref, toggle, False)
    repo.add(pref)


@given(parsers.cfparse('the merchant stores email address "{address}"'))
def merchant_stores_email(merchant_id, address):
    repo = current_domain.repository_for(NotificationPreference)
    pref = repo.find_by_merchant(merchant_id)
    pref.update_contacts(email_address=address)
    repo.add(pref)


# ---------------------------------------------------------------------------
# Then steps — notification status & events
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the notification status is "{status}"'))
def notification_status_is(notification, status):
    assert notification.status == status


@then(parsers.cfparse("the retry count is {count:d}"))
def retry_count_is(notification, count):
    assert notification.retry_count == count


@then(parsers.cfparse("a {event_type} event is raised"))
def notification_event_raised(notification, event_type):
    event_cls = _NOTIFICATION_EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in notification._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in notification._events]}"


# ---------------------------------------------------------------------------
# Then steps — errors
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the request fails with {error_name}"))
def request_fails_with(error, error_name):
    assert error["exc"] is not None, "Expected an error but none was raised"
    assert type(error["exc"]).__name__ == error_name

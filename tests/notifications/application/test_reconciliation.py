import time
from datetime import UTC, datetime
from unittest.mock import patch

import pytest
from notifications import config
from notifications.channel import set_gateway
from notifications.channel.gateway import DeliveryGateway, DeliveryResult
from notifications.errors import DeliveryTimeoutError, NotificationNotFoundError
from notifications.notification.dispatch import redeliver, send_notification
from notifications.notification.notification import Notification, NotificationStatus
from notifications.notification.reconciliation import MarkNotificationDelivered, ProcessPendingNotifications
from protean import current_domain
from protean.exceptions import ValidationError


def _pending(**overrides):
    defaults = {
        "merchant_id": "m1",
        "notification_type": "email",
        "channel": "transaction",
        "recipient": "owner@m.test",
        "subject": "Hello",
        "body": "Body",
    }
    defaults.update(overrides)
    notification = Notification.create(**defaults)
    current_domain.repository_for(Notification).add(notification)
    return notification


def _get(notification_id):
    return current_domain.repository_for(Notification).get(notification_id)


class FailingGateway(DeliveryGateway):
    def deliver(self, notification_type, recipient, subject, body):
        return DeliveryResult(success=False, error="Mailbox full")


class StalledGateway(DeliveryGateway):
    def deliver(self, notification_type, recipient, subject, body):
        time.sleep(0.3)
        return DeliveryResult(success=True, message_id="too-late")


class TestListPending:
    def test_oldest_first_and_limited(self):
        first = _pending(body="one")
        second = _pending(body="two")
        _pending(body="three")

        pending = current_domain.repository_for(Notification).list_pending(limit=2)
        assert [n.id for n in pending] == [first.id, second.id]

    def test_excludes_sent_and_retry_ceiling(self):
        sent = send_notification(Notification.create(notification_type="email", channel="system", recipient="a@m.test", body="x"))
        spent = _pending()
        spent.retry_count = 3
        current_domain.repository_for(Notification).add(spent)
        fresh = _pending()

        pending = current_domain.repository_for(Notification).list_pending(max_retries=3)
        ids = [n.id for n in pending]
        assert fresh.id in ids
        assert spent.id not in ids
        assert sent.id not in ids


class TestProcessPending:
    def test_redelivers_pending(self, email_adapter):
        a = _pending()
        b = _pending()

        processed = current_domain.process(ProcessPendingNotifications(limit=10), asynchronous=False)

        assert processed == 2
        assert _get(a.id).status == NotificationStatus.SENT.value
        assert _get(b.id).status == NotificationStatus.SENT.value
        assert len(email_adapter.sent_emails) == 2

    def test_failures_are_recorded_and_do_not_stop_the_batch(self):
        a = _pending()
        b = _pending()
        set_gateway(FailingGateway())

        processed = current_domain.process(ProcessPendingNotifications(), asynchronous=False)

        assert processed == 2
        for notification_id in (a.id, b.id):
            stored = _get(notification_id)
            assert stored.status == NotificationStatus.FAILED.value
            assert stored.error_message == "Mailbox full"

    def test_nothing_pending(self):
        assert current_domain.process(ProcessPendingNotifications(), asynchronous=False) == 0

    def test_redeliver_rejects_non_pending(self):
        sent = send_notification(Notification.create(notification_type="email", channel="system", recipient="a@m.test", body="x"))
        with pytest.raises(ValidationError):
            redeliver(sent)


class TestRedeliveryAttempts:
    def test_timed_out_redelivery_is_counted(self):
        pending = _pending()
        set_gateway(StalledGateway())

        with pytest.raises(DeliveryTimeoutError):
            redeliver(pending, timeout=0.05)

        stored = _get(pending.id)
        assert stored.status == NotificationStatus.PENDING.value
        assert stored.retry_count == 1

    def test_successful_redelivery_counts_attempt_and_send(self):
        pending = _pending()

        redeliver(pending)

        stored = _get(pending.id)
        assert stored.status == NotificationStatus.SENT.value
        assert stored.retry_count == 2

    def test_row_that_keeps_timing_out_leaves_the_queue(self):
        stuck = _pending()
        set_gateway(StalledGateway())

        with patch.object(config, "DELIVERY_TIMEOUT_SECONDS", 0.05):
            for _ in range(config.NOTIFICATION_MAX_RETRIES):
                assert current_domain.process(ProcessPendingNotifications(), asynchronous=False) == 1

            stored = _get(stuck.id)
            assert stored.status == NotificationStatus.PENDING.value
            assert stored.retry_count == config.NOTIFICATION_MAX_RETRIES
            assert current_domain.repository_for(Notification).list_pending() == []
            assert current_domain.process(ProcessPendingNotifications(), asynchronous=False) == 0



class TestMarkDelivered:
    def test_marks_sent_notification_delivered(self):
        sent = send_notification(Notification.create(notification_type="email", channel="system", recipient="a@m.test", body="x"))
        delivered_at = datetime.now(UTC)

        current_domain.process(
            MarkNotificationDelivered(notification_id=sent.id, delivered_at=delivered_at),
            asynchronous=False,
        )

        stored = _get(sent.id)
        assert stored.status == NotificationStatus.DELIVERED.value
        assert stored.delivered_at is not None

    def test_pending_notification_cannot_be_delivered(self):
        pending = _pending()
        with pytest.raises(ValidationError):
            current_domain.process(MarkNotificationDelivered(notification_id=pending.id), asynchronous=False)

    def test_unknown_notification(self):
        with pytest.raises(NotificationNotFoundError):
            current_domain.process(MarkNotificationDelivered(notification_id="missing"), asynchronous=False)

"""Notification aggregate — one message to one recipient and its delivery outcome.

Notifications are created by the dispatcher once the merchant's preferences
allow them, persisted as PENDING, and moved to SENT or FAILED by the
gateway's answer. DELIVERED is reached later through an external signal.

State Machine (4 states):
    PENDING → SENT → DELIVERED
    PENDING → FAILED

Every status update and every redelivery attempt bumps ``retry_count``.
It never goes down, and reconciliation stops picking a row up once it
reaches ``NOTIFICATION_MAX_RETRIES``.
"""

from datetime import UTC, datetime
from enum import Enum

from notifications.domain import notifications
from notifications.notification.events import (
    NotificationCreated,
    NotificationDelivered,
    NotificationFailed,
    NotificationRetried,
    NotificationSent,
)
from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class NotificationType(Enum):
    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"


class NotificationChannel(Enum):
    TRANSACTION = "transaction"
    PAYOUT = "payout"
    SETTLEMENT = "settlement"
    SECURITY = "security"
    SYSTEM = "system"


class NotificationStatus(Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    DELIVERED = "delivered"


# ---------------------------------------------------------------------------
# State Machine
# ---------------------------------------------------------------------------
_VALID_TRANSITIONS = {
    NotificationStatus.PENDING: {
        NotificationStatus.SENT,
        NotificationStatus.FAILED,
    },
    NotificationStatus.SENT: {
        NotificationStatus.DELIVERED,
    },
    NotificationStatus.FAILED: set(),  # Terminal
    NotificationStatus.DELIVERED: set(),  # Terminal
}

_SENT_STATUSES = {NotificationStatus.SENT.value, NotificationStatus.DELIVERED.value}


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@notifications.aggregate
class Notification:
    """A single notification addressed to a merchant or user."""

    # Owner
    merchant_id: Identifier()
    user_id: Identifier()

    # Routing
    notification_type: String(choices=NotificationType, required=True)
    channel: String(choices=NotificationChannel, required=True)
    recipient: String(max_length=255)

    # Content
    subject: String(max_length=500)
    body: Text(required=True)

    # Status
    status: String(choices=NotificationStatus, default=NotificationStatus.PENDING.value)
    error_message: Text()
    retry_count: Integer(default=0, min_value=0)

    # Timestamps
    sent_at: DateTime()
    delivered_at: DateTime()
    created_at: DateTime()
    updated_at: DateTime()

    @invariant.post
    def sent_at_is_set_only_once_sent(self):
        if (self.status in _SENT_STATUSES) != (self.sent_at is not None):
            raise ValidationError({"sent_at": ["sent_at must be set exactly when the notification is sent or delivered"]})

    @invariant.post
    def delivered_at_is_set_only_once_delivered(self):
        delivered = self.status == NotificationStatus.DELIVERED.value
        if delivered != (self.delivered_at is not None):
            raise ValidationError({"delivered_at": ["delivered_at must be set exactly when the notification is delivered"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        notification_type,
        channel,
        body,
        recipient=None,
        subject=None,
        merchant_id=None,
        user_id=None,
    ):
        """Create a new notification in PENDING status.

        ``recipient`` may be left empty; the dispatcher backfills it from
        the merchant's stored contact points before persisting.
        """
        now = datetime.now(UTC)

        notification = cls(
            merchant_id=merchant_id,
            user_id=user_id,
            notification_type=notification_type,
            channel=channel,
            recipient=recipient or None,
            subject=subject,
            body=body,
            status=NotificationStatus.PENDING.value,
            retry_count=0,
            created_at=now,
            updated_at=now,
        )

        notification.raise_(
            NotificationCreated(
                notification_id=str(notification.id),
                merchant_id=merchant_id,
                user_id=user_id,
                notification_type=notification_type,
                channel=channel,
                subject=subject,
                created_at=now,
            )
        )

        return notification

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate state machine transition."""
        current = NotificationStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def mark_sent(self, sent_at=None):
        """Record that the gateway accepted the notification."""
        self._assert_can_transition(NotificationStatus.SENT)

        now = sent_at or datetime.now(UTC)
        with atomic_change(self):
            self.status = NotificationStatus.SENT.value
            self.sent_at = now
            self.retry_count = self.retry_count + 1
            self.updated_at = now

        self.raise_(
            NotificationSent(
                notification_id=str(self.id),
                merchant_id=self.merchant_id,
                notification_type=self.notification_type,
                channel=self.channel,
                retry_count=self.retry_count,
                sent_at=now,
            )
        )

    def mark_delivered(self, delivered_at=None):
        """Record the provider's delivery confirmation."""
        self._assert_can_transition(NotificationStatus.DELIVERED)

        now = delivered_at or datetime.now(UTC)
        with atomic_change(self):
            self.status = NotificationStatus.DELIVERED.value
            self.delivered_at = now
            self.retry_count = self.retry_count + 1
            self.updated_at = now

        self.raise_(
            NotificationDelivered(
                notification_id=str(self.id),
                merchant_id=self.merchant_id,
                notification_type=self.notification_type,
                channel=self.channel,
                delivered_at=now,
            )
        )

    def mark_failed(self, reason):
        """Record a gateway failure and its error detail."""
        self._assert_can_transition(NotificationStatus.FAILED)

        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = NotificationStatus.FAILED.value
            self.error_message = reason
            self.retry_count = self.retry_count + 1
            self.updated_at = now

        self.raise_(
            NotificationFailed(
                notification_id=str(self.id),
                merchant_id=self.merchant_id,
                notification_type=self.notification_type,
                channel=self.channel,
                reason=reason,
                retry_count=self.retry_count,
                failed_at=now,
            )
        )

    def record_redelivery_attempt(self):
        """Count one more hand-off of a PENDING notification to the gateway."""
        if not self.is_pending:
            raise ValidationError({"status": ["Only pending notifications can be redelivered"]})

        now = datetime.now(UTC)
        self.retry_count = self.retry_count + 1
        self.updated_at = now

        self.raise_(
            NotificationRetried(
                notification_id=str(self.id),
                merchant_id=self.merchant_id,
                channel=self.channel,
                retry_count=self.retry_count,
                retried_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Query helpers
    # -------------------------------------------------------------------
    @property
    def is_pending(self):
        return self.status == NotificationStatus.PENDING.value

"""Domain events for the Notification aggregate."""

from notifications.domain import notifications
from protean.fields import DateTime, Identifier, Integer, String


@notifications.event(part_of="Notification")
class NotificationCreated:
    """A notification was accepted by policy and queued for delivery."""

    __version__ = 1

    notification_id: Identifier(required=True)
    merchant_id: Identifier()
    user_id: Identifier()
    notification_type: String(required=True)
    channel: String(required=True)
    subject: String()
    created_at: DateTime(required=True)


@notifications.event(part_of="Notification")
class NotificationSent:
    """The delivery gateway accepted the notification."""

    __version__ = 1

    notification_id: Identifier(required=True)
    merchant_id: Identifier()
    notification_type: String(required=True)
    channel: String(required=True)
    retry_count: Integer(required=True)
    sent_at: DateTime(required=True)


@notifications.event(part_of="Notification")
class NotificationDelivered:
    """The provider confirmed the notification reached the recipient."""

    __version__ = 1

    notification_id: Identifier(required=True)
    merchant_id: Identifier()
    notification_type: String(required=True)
    channel: String(required=True)
    delivered_at: DateTime(required=True)


@notifications.event(part_of="Notification")
class NotificationFailed:
    """The delivery gateway failed to deliver the notification."""

    __version__ = 1

    notification_id: Identifier(required=True)
    merchant_id: Identifier()
    notification_type: String(required=True)
    channel: String(required=True)
    reason: String(required=True)
    retry_count: Integer(required=True)
    failed_at: DateTime(required=True)


@notifications.event(part_of="Notification")
class NotificationRetried:
    """A pending notification was handed to the gateway again."""

    __version__ = 1

    notification_id: Identifier(required=True)
    merchant_id: Identifier()
    channel: String(required=True)
    retry_count: Integer(required=True)
    retried_at: DateTime(required=True)

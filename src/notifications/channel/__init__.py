"""Channel adapters and the delivery gateway.

Provides singleton access to the per-type channel adapters and to the
gateway the dispatcher delivers through. Fake adapters are used by default;
real providers (SendGrid, Twilio, FCM) plug in behind the same ports.
"""

from notifications.channel.gateway import ChannelDeliveryGateway, DeliveryGateway
from notifications.notification.notification import NotificationType

_channel_instances: dict[str, object] = {}
_current_gateway: DeliveryGateway | None = None


def get_channel(notification_type: str):
    """Return the configured channel adapter (singleton per notification type).

    Args:
        notification_type: One of NotificationType enum values ("email", "sms", "push")
    """
    if notification_type not in _channel_instances:
        if notification_type == NotificationType.EMAIL.value:
            from notifications.channel.fake_email import FakeEmailAdapter

            _channel_instances[notification_type] = FakeEmailAdapter()
        elif notification_type == NotificationType.SMS.value:
            from notifications.channel.fake_sms import FakeSMSAdapter

            _channel_instances[notification_type] = FakeSMSAdapter()
        elif notification_type == NotificationType.PUSH.value:
            from notifications.channel.fake_push import FakePushAdapter

            _channel_instances[notification_type] = FakePushAdapter()
        else:
            raise ValueError(f"Unknown notification type: {notification_type}")

    return _channel_instances[notification_type]


def reset_channels():
    """Reset all channel singletons (useful for testing)."""
    _channel_instances.clear()


def get_gateway() -> DeliveryGateway:
    """Return the current delivery gateway. Defaults to the channel-backed one."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = ChannelDeliveryGateway()
    return _current_gateway


def set_gateway(gateway: DeliveryGateway) -> None:
    """Override the active delivery gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to the default gateway."""
    global _current_gateway
    _current_gateway = None

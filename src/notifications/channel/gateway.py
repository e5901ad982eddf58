"""Delivery gateway — the single capability the dispatcher delivers through.

The gateway hides which provider handles a notification type. The default
implementation routes each type to its channel adapter and normalises the
adapter's response into a ``DeliveryResult``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of one delivery attempt.

    ``transient`` is only meaningful for failures: it tells upstream jobs
    whether re-sending later has a chance of succeeding.
    """

    success: bool
    message_id: str | None = None
    error: str | None = None
    transient: bool = False


class DeliveryGateway(ABC):
    """Abstract delivery gateway interface."""

    @abstractmethod
    def deliver(
        self,
        notification_type: str,
        recipient: str,
        subject: str | None,
        body: str,
    ) -> DeliveryResult:
        """Push one message to ``recipient`` over ``notification_type``."""
        ...


class ChannelDeliveryGateway(DeliveryGateway):
    """Gateway backed by the per-type channel adapters."""

    def deliver(
        self,
        notification_type: str,
        recipient: str,
        subject: str | None,
        body: str,
    ) -> DeliveryResult:
        from notifications.channel import get_channel
        from notifications.notification.notification import NotificationType

        adapter = get_channel(notification_type)

        if notification_type == NotificationType.EMAIL.value:
            result = adapter.send(to=recipient, subject=subject or "", body=body)
        elif notification_type == NotificationType.SMS.value:
            result = adapter.send(to=recipient, body=body)
        else:
            result = adapter.send(device_token=recipient, title=subject or "", body=body)

        if result.get("status") == "sent":
            return DeliveryResult(success=True, message_id=result.get("message_id"))

        logger.warning(
            "Channel adapter reported failure",
            notification_type=notification_type,
            error=result.get("error"),
            retryable=result.get("retryable", False),
        )
        return DeliveryResult(
            success=False,
            error=result.get("error") or "Unknown delivery error",
            transient=bool(result.get("retryable", False)),
        )

"""Notification dispatcher — preference policy, recipient resolution and delivery.

``send_notification`` is the single entry point for every outgoing message,
one-time codes included:

1. Read the merchant's preferences (fail-open when they cannot be read).
2. Refuse the send if the channel or delivery type is switched off.
3. Backfill an empty recipient from the merchant's stored contact points.
4. Persist the notification as PENDING.
5. Deliver through the gateway, bounded by a timeout when one is given.
6. Record SENT or FAILED.

No retries happen here. A notification whose delivery timed out stays
PENDING and is picked up by the reconciliation job.
"""

from concurrent.futures import ThreadPoolExecutor

import structlog
from notifications import config
from notifications.channel import get_gateway
from notifications.channel.gateway import DeliveryResult
from notifications.errors import DeliveryError, DeliveryTimeoutError, PolicyDeniedError, StorageError
from notifications.notification.notification import Notification, NotificationType
from notifications.preference.policy import lookup_preferences
from notifications.templates import get_template
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

logger = structlog.get_logger(__name__)


def send_notification(notification: Notification, timeout: float | None = None) -> Notification:
    """Apply preference policy to ``notification`` and deliver it.

    Args:
        notification: A notification built with ``Notification.create``.
        timeout: Seconds to wait for the gateway. Falls back to
            ``DELIVERY_TIMEOUT_SECONDS``; unbounded when neither is set.

    Returns:
        The notification, now SENT.

    Raises:
        PolicyDeniedError: Preferences disable the channel or the type.
        ValidationError: No recipient, even after backfill.
        StorageError: The notification could not be recorded.
        DeliveryError: The gateway failed (the notification is FAILED),
            or timed out (``DeliveryTimeoutError``, notification PENDING).
    """
    lookup = lookup_preferences(notification.merchant_id)

    if not lookup.allows(notification.notification_type, notification.channel):
        logger.info(
            "Notification disabled by preference",
            merchant_id=notification.merchant_id,
            notification_type=notification.notification_type,
            channel=notification.channel,
        )
        raise PolicyDeniedError(
            "notification disabled by preference",
            merchant_id=notification.merchant_id,
            notification_type=notification.notification_type,
            channel=notification.channel,
        )

    if not notification.recipient:
        contact = lookup.contact_for(notification.notification_type)
        if contact:
            notification.recipient = contact
    if not notification.recipient:
        raise ValidationError({"recipient": ["Recipient is required and no default contact is stored"]})

    repo = current_domain.repository_for(Notification)
    try:
        repo.add(notification)
    except ValidationError:
        raise
    except Exception as exc:
        logger.error(
            "Failed to record notification",
            notification_id=str(notification.id),
            error=str(exc),
        )
        raise StorageError("failed to create notification record", notification_id=str(notification.id)) from exc

    return _deliver(notification, timeout)


def redeliver(notification: Notification, timeout: float | None = None) -> Notification:
    """Deliver an already recorded PENDING notification.

    Policy and recipient were settled when it was first accepted. The
    attempt is counted and stored before the gateway is called, so a row
    that keeps timing out still climbs towards the retry ceiling.
    """
    if not notification.is_pending:
        raise ValidationError({"status": [f"Only pending notifications can be redelivered, not {notification.status}"]})

    notification.record_redelivery_attempt()
    try:
        current_domain.repository_for(Notification).add(notification)
    except Exception as exc:
        logger.error(
            "Failed to record redelivery attempt",
            notification_id=str(notification.id),
            error=str(exc),
        )
        raise StorageError("failed to record redelivery attempt", notification_id=str(notification.id)) from exc

    return _deliver(notification, timeout)


def send_transaction_notification(
    merchant_id: str,
    amount: int,
    currency: str,
    status: str,
    recipient: str | None = None,
    user_id: str | None = None,
    timeout: float | None = None,
) -> Notification:
    """Email a merchant about a transaction status change. ``amount`` is in minor units."""
    return _send_money_movement(
        "transaction_update", merchant_id, amount, currency, status, recipient, user_id, timeout
    )


def send_payout_notification(
    merchant_id: str,
    amount: int,
    currency: str,
    status: str,
    recipient: str | None = None,
    user_id: str | None = None,
    timeout: float | None = None,
) -> Notification:
    """Email a merchant about a payout status change. ``amount`` is in minor units."""
    return _send_money_movement("payout_update", merchant_id, amount, currency, status, recipient, user_id, timeout)


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------
def _send_money_movement(template_name, merchant_id, amount, currency, status, recipient, user_id, timeout):
    template_cls = get_template(template_name)
    rendered = template_cls.render({"amount": amount, "currency": currency, "status": status})
    notification = Notification.create(
        merchant_id=merchant_id,
        user_id=user_id,
        notification_type=NotificationType.EMAIL.value,
        channel=template_cls.channel,
        recipient=recipient,
        subject=rendered["subject"],
        body=rendered["body"],
    )
    return send_notification(notification, timeout=timeout)


def _deliver(notification: Notification, timeout: float | None) -> Notification:
    if timeout is None:
        timeout = config.DELIVERY_TIMEOUT_SECONDS

    try:
        result = _call_gateway(notification, timeout)
    except DeliveryTimeoutError:
        logger.warning(
            "Delivery timed out, notification left pending",
            notification_id=str(notification.id),
            timeout=timeout,
        )
        raise
    except Exception as exc:
        logger.error(
            "Delivery gateway raised",
            notification_id=str(notification.id),
            error=str(exc),
        )
        result = DeliveryResult(success=False, error=str(exc), transient=True)

    if not result.success:
        notification.mark_failed(result.error)
        _record_status(notification)
        raise DeliveryError(
            result.error,
            transient=result.transient,
            notification_id=str(notification.id),
        )

    notification.mark_sent()
    _record_status(notification)

    logger.info(
        "Notification sent",
        notification_id=str(notification.id),
        notification_type=notification.notification_type,
        channel=notification.channel,
        message_id=result.message_id,
    )
    return notification


def _call_gateway(notification: Notification, timeout: float | None) -> DeliveryResult:
    gateway = get_gateway()
    args = (
        notification.notification_type,
        notification.recipient,
        notification.subject,
        notification.body,
    )
    if timeout is None:
        return gateway.deliver(*args)

    executor = ThreadPoolExecutor(max_workers=1)
    future = executor.submit(gateway.deliver, *args)
    try:
        return future.result(timeout=timeout)
    except TimeoutError:
        future.cancel()
        raise DeliveryTimeoutError(notification_id=str(notification.id), timeout=timeout) from None
    finally:
        executor.shutdown(wait=False)


def _record_status(notification: Notification) -> None:
    """Persist a status change.

    A lost status write leaves the row behind the gateway's answer; it is
    logged for reconciliation and not raised to the caller.
    """
    try:
        current_domain.repository_for(Notification).add(notification)
    except Exception as exc:
        logger.error(
            "Failed to record notification status",
            notification_id=str(notification.id),
            status=notification.status,
            error=str(exc),
            reconciliation_required=True,
        )

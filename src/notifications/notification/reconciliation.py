"""Reconciliation commands + handlers — pending redelivery and delivery receipts.

ProcessPendingNotifications is invoked by a background job to re-deliver
notifications left PENDING (typically after a gateway timeout).
MarkNotificationDelivered records the provider's delivery confirmation.
"""

import structlog
from notifications.domain import notifications
from notifications.errors import DeliveryError, NotificationNotFoundError, StorageError
from notifications.notification.dispatch import redeliver
from notifications.notification.notification import Notification
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Identifier, Integer
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

logger = structlog.get_logger(__name__)


@notifications.command(part_of="Notification")
class ProcessPendingNotifications:
    """Request to re-deliver pending notifications."""

    limit: Integer(default=100, min_value=1)


@notifications.command(part_of="Notification")
class MarkNotificationDelivered:
    """The provider confirmed delivery of a sent notification."""

    notification_id: Identifier(required=True)
    delivered_at: DateTime()


@notifications.command_handler(part_of=Notification)
class NotificationReconciliationHandler:
    @handle(ProcessPendingNotifications)
    def process_pending(self, command: ProcessPendingNotifications):
        repo = current_domain.repository_for(Notification)
        pending = repo.list_pending(limit=command.limit)

        sent_count = 0
        failed_count = 0
        for notification in pending:
            try:
                redeliver(notification)
                sent_count += 1
            except DeliveryError as exc:
                failed_count += 1
                logger.warning(
                    "Pending notification redelivery failed",
                    notification_id=str(notification.id),
                    error=str(exc),
                    transient=exc.transient,
                )
            except StorageError as exc:
                failed_count += 1
                logger.error(
                    "Pending notification skipped, attempt not recorded",
                    notification_id=str(notification.id),
                    error=str(exc),
                )

        logger.info(
            "Pending notifications processed",
            processed=len(pending),
            sent=sent_count,
            failed=failed_count,
        )
        return len(pending)

    @handle(MarkNotificationDelivered)
    def mark_delivered(self, command: MarkNotificationDelivered):
        repo = current_domain.repository_for(Notification)
        try:
            notification = repo.get(command.notification_id)
        except ObjectNotFoundError:
            raise NotificationNotFoundError(str(command.notification_id)) from None

        notification.mark_delivered(command.delivered_at)
        repo.add(notification)
        return str(notification.id)

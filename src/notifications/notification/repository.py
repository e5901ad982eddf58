"""Repository for the Notification aggregate."""

from notifications import config
from notifications.domain import notifications
from notifications.notification.notification import Notification, NotificationStatus


@notifications.repository(part_of=Notification)
class NotificationRepository:
    def find_by_merchant(self, merchant_id: str) -> list[Notification]:
        """A merchant's notifications, newest first."""
        return self._dao.query.filter(merchant_id=str(merchant_id)).order_by("-created_at").all().items

    def find_by_user(self, user_id: str) -> list[Notification]:
        """A user's notifications, newest first."""
        return self._dao.query.filter(user_id=str(user_id)).order_by("-created_at").all().items

    def list_pending(self, limit: int = 100, max_retries: int | None = None) -> list[Notification]:
        """Pending notifications still under the retry ceiling, oldest first."""
        ceiling = config.NOTIFICATION_MAX_RETRIES if max_retries is None else max_retries
        return (
            self._dao.query.filter(
                status=NotificationStatus.PENDING.value,
                retry_count__lt=ceiling,
            )
            .order_by("created_at")
            .limit(limit)
            .all()
            .items
        )

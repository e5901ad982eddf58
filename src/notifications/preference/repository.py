"""Repository for the NotificationPreference aggregate."""

import structlog
from notifications.domain import notifications
from notifications.preference.preference import NotificationPreference
from protean.exceptions import ValidationError

logger = structlog.get_logger(__name__)


@notifications.repository(part_of=NotificationPreference)
class NotificationPreferenceRepository:
    def find_by_merchant(self, merchant_id: str) -> NotificationPreference | None:
        """Find a merchant's preferences, or None."""
        results = self._dao.query.filter(merchant_id=str(merchant_id)).all().items
        return results[0] if results else None

    def get_or_create_defaults(self, merchant_id: str) -> NotificationPreference:
        """Return the merchant's preferences, creating defaults on first access.

        Two callers racing to create defaults both end up with the single
        stored record: the loser's unique-constraint failure is answered
        with a re-read.
        """
        existing = self.find_by_merchant(merchant_id)
        if existing is not None:
            return existing

        preference = NotificationPreference.create_default(merchant_id=str(merchant_id))
        try:
            self.add(preference)
        except ValidationError:
            existing = self.find_by_merchant(merchant_id)
            if existing is None:
                raise
            logger.info("Default preferences created concurrently", merchant_id=str(merchant_id))
            return existing

        logger.info("Default preferences created", merchant_id=str(merchant_id))
        return preference

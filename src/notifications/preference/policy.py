"""Preference lookup for the dispatcher, with a fail-open result type.

The dispatcher must tell "preferences deny this" apart from "preferences
could not be read". Only the first blocks a send.
"""

from dataclasses import dataclass

import structlog
from notifications.preference.preference import NotificationPreference
from protean.utils.globals import current_domain

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PreferenceLookup:
    """Result of reading a merchant's preferences."""

    preference: NotificationPreference | None = None
    error: str | None = None

    @property
    def available(self) -> bool:
        return self.preference is not None

    def allows(self, notification_type: str, channel: str) -> bool:
        # Unavailable preferences never block a send.
        if self.preference is None:
            return True
        return self.preference.allows(notification_type, channel)

    def contact_for(self, notification_type: str) -> str | None:
        if self.preference is None:
            return None
        return self.preference.contact_for(notification_type)


def lookup_preferences(merchant_id: str | None) -> PreferenceLookup:
    """Read (or lazily create) the merchant's preferences without raising."""
    if not merchant_id:
        return PreferenceLookup()

    try:
        repo = current_domain.repository_for(NotificationPreference)
        return PreferenceLookup(preference=repo.get_or_create_defaults(merchant_id))
    except Exception as exc:
        logger.warning(
            "Preference lookup failed, proceeding without preferences",
            merchant_id=str(merchant_id),
            error=str(exc),
        )
        return PreferenceLookup(error=str(exc))

"""Preference management command + handler — explicit updates only."""

import structlog
from notifications.domain import notifications
from notifications.errors import PreferencesNotFoundError
from notifications.preference.preference import NotificationPreference
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

logger = structlog.get_logger(__name__)


@notifications.command(part_of="NotificationPreference")
class UpdateNotificationPreferences:
    """Update a merchant's delivery types, channels or contact points."""

    merchant_id: Identifier(required=True)

    email_enabled: Boolean()
    sms_enabled: Boolean()
    push_enabled: Boolean()

    transaction_notifications: Boolean()
    payout_notifications: Boolean()
    settlement_notifications: Boolean()
    security_notifications: Boolean()
    marketing_notifications: Boolean()

    email_address: String(max_length=255)
    phone_number: String(max_length=50)


@notifications.command_handler(part_of=NotificationPreference)
class ManagePreferencesHandler:
    @handle(UpdateNotificationPreferences)
    def update_preferences(self, command: UpdateNotificationPreferences):
        repo = current_domain.repository_for(NotificationPreference)
        preference = repo.find_by_merchant(command.merchant_id)
        if preference is None:
            raise PreferencesNotFoundError(str(command.merchant_id))

        if any(v is not None for v in (command.email_enabled, command.sms_enabled, command.push_enabled)):
            preference.update_types(
                email=command.email_enabled,
                sms=command.sms_enabled,
                push=command.push_enabled,
            )

        channel_values = (
            command.transaction_notifications,
            command.payout_notifications,
            command.settlement_notifications,
            command.security_notifications,
            command.marketing_notifications,
        )
        if any(v is not None for v in channel_values):
            preference.update_channels(*channel_values)

        if command.email_address is not None or command.phone_number is not None:
            preference.update_contacts(
                email_address=command.email_address,
                phone_number=command.phone_number,
            )

        repo.add(preference)
        logger.info("Notification preferences updated", merchant_id=str(command.merchant_id))
        return str(preference.id)

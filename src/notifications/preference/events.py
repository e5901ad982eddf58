"""Domain events for the NotificationPreference aggregate."""

from notifications.domain import notifications
from protean.fields import Boolean, DateTime, Identifier, String


@notifications.event(part_of="NotificationPreference")
class PreferencesCreated:
    """Default notification preferences were created for a merchant."""

    __version__ = 1

    preference_id: Identifier(required=True)
    merchant_id: Identifier(required=True)
    email_enabled: Boolean(required=True)
    sms_enabled: Boolean(required=True)
    push_enabled: Boolean(required=True)
    created_at: DateTime(required=True)


@notifications.event(part_of="NotificationPreference")
class DeliveryTypesUpdated:
    """A merchant switched email, SMS or push delivery on or off."""

    __version__ = 1

    preference_id: Identifier(required=True)
    merchant_id: Identifier(required=True)
    email_enabled: Boolean(required=True)
    sms_enabled: Boolean(required=True)
    push_enabled: Boolean(required=True)
    updated_at: DateTime(required=True)


@notifications.event(part_of="NotificationPreference")
class ChannelsUpdated:
    """A merchant changed which notification categories they receive."""

    __version__ = 1

    preference_id: Identifier(required=True)
    merchant_id: Identifier(required=True)
    transaction_notifications: Boolean(required=True)
    payout_notifications: Boolean(required=True)
    settlement_notifications: Boolean(required=True)
    security_notifications: Boolean(required=True)
    marketing_notifications: Boolean(required=True)
    updated_at: DateTime(required=True)


@notifications.event(part_of="NotificationPreference")
class ContactPointsUpdated:
    """A merchant changed their default email address or phone number."""

    __version__ = 1

    preference_id: Identifier(required=True)
    merchant_id: Identifier(required=True)
    email_address: String()
    phone_number: String()
    updated_at: DateTime(required=True)

"""NotificationPreference aggregate — per-merchant delivery policy.

Each merchant has exactly one preference record holding:
- delivery type toggles (email, SMS, push)
- channel toggles per notification category (transaction, payout,
  settlement, security, marketing)
- default contact points used when a notification has no recipient

Records are created lazily with defaults on first access and only change
through explicit updates.
"""

from datetime import UTC, datetime

from notifications.domain import notifications
from notifications.notification.notification import NotificationChannel, NotificationType
from notifications.preference.events import (
    ChannelsUpdated,
    ContactPointsUpdated,
    DeliveryTypesUpdated,
    PreferencesCreated,
)
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String

_TYPE_TOGGLES = {
    NotificationType.EMAIL.value: "email_enabled",
    NotificationType.SMS.value: "sms_enabled",
    NotificationType.PUSH.value: "push_enabled",
}

# SYSTEM has no toggle: it is always eligible.
_CHANNEL_TOGGLES = {
    NotificationChannel.TRANSACTION.value: "transaction_notifications",
    NotificationChannel.PAYOUT.value: "payout_notifications",
    NotificationChannel.SETTLEMENT.value: "settlement_notifications",
    NotificationChannel.SECURITY.value: "security_notifications",
}


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@notifications.aggregate
class NotificationPreference:
    """A merchant's notification preferences."""

    # Merchant link
    merchant_id: Identifier(required=True, unique=True)

    # Delivery types
    email_enabled: Boolean(default=True)
    sms_enabled: Boolean(default=False)
    push_enabled: Boolean(default=True)

    # Channels
    transaction_notifications: Boolean(default=True)
    payout_notifications: Boolean(default=True)
    settlement_notifications: Boolean(default=True)
    security_notifications: Boolean(default=True)
    marketing_notifications: Boolean(default=False)

    # Default contact points
    email_address: String(max_length=255)
    phone_number: String(max_length=50)

    # Timestamps
    created_at: DateTime()
    updated_at: DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create_default(cls, merchant_id, email_address=None, phone_number=None):
        """Create default preferences for a merchant.

        Default: email and push on, SMS off; every category except
        marketing on.
        """
        now = datetime.now(UTC)

        preference = cls(
            merchant_id=merchant_id,
            email_enabled=True,
            sms_enabled=False,
            push_enabled=True,
            transaction_notifications=True,
            payout_notifications=True,
            settlement_notifications=True,
            security_notifications=True,
            marketing_notifications=False,
            email_address=email_address,
            phone_number=phone_number,
            created_at=now,
            updated_at=now,
        )

        preference.raise_(
            PreferencesCreated(
                preference_id=str(preference.id),
                merchant_id=str(merchant_id),
                email_enabled=True,
                sms_enabled=False,
                push_enabled=True,
                created_at=now,
            )
        )

        return preference

    # -------------------------------------------------------------------
    # Updates
    # -------------------------------------------------------------------
    def update_types(self, email=None, sms=None, push=None):
        """Update delivery type toggles. Pass None to keep unchanged."""
        if email is None and sms is None and push is None:
            raise ValidationError({"types": ["At least one delivery type preference must be provided"]})

        now = datetime.now(UTC)

        if email is not None:
            self.email_enabled = email
        if sms is not None:
            self.sms_enabled = sms
        if push is not None:
            self.push_enabled = push
        self.updated_at = now

        self.raise_(
            DeliveryTypesUpdated(
                preference_id=str(self.id),
                merchant_id=str(self.merchant_id),
                email_enabled=self.email_enabled,
                sms_enabled=self.sms_enabled,
                push_enabled=self.push_enabled,
                updated_at=now,
            )
        )

    def update_channels(self, transaction=None, payout=None, settlement=None, security=None, marketing=None):
        """Update channel toggles. Pass None to keep unchanged."""
        changes = {
            "transaction_notifications": transaction,
            "payout_notifications": payout,
            "settlement_notifications": settlement,
            "security_notifications": security,
            "marketing_notifications": marketing,
        }
        if all(value is None for value in changes.values()):
            raise ValidationError({"channels": ["At least one channel preference must be provided"]})

        now = datetime.now(UTC)
        for attr, value in changes.items():
            if value is not None:
                setattr(self, attr, value)
        self.updated_at = now

        self.raise_(
            ChannelsUpdated(
                preference_id=str(self.id),
                merchant_id=str(self.merchant_id),
                transaction_notifications=self.transaction_notifications,
                payout_notifications=self.payout_notifications,
                settlement_notifications=self.settlement_notifications,
                security_notifications=self.security_notifications,
                marketing_notifications=self.marketing_notifications,
                updated_at=now,
            )
        )

    def update_contacts(self, email_address=None, phone_number=None):
        """Update default contact points. An empty string clears one."""
        if email_address is None and phone_number is None:
            raise ValidationError({"contacts": ["Provide an email address or a phone number"]})

        now = datetime.now(UTC)
        if email_address is not None:
            self.email_address = email_address or None
        if phone_number is not None:
            self.phone_number = phone_number or None
        self.updated_at = now

        self.raise_(
            ContactPointsUpdated(
                preference_id=str(self.id),
                merchant_id=str(self.merchant_id),
                email_address=self.email_address,
                phone_number=self.phone_number,
                updated_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Policy
    # -------------------------------------------------------------------
    def channel_enabled(self, channel):
        """Whether notifications of ``channel`` may be sent at all."""
        if channel == NotificationChannel.SYSTEM.value:
            return True
        attr = _CHANNEL_TOGGLES.get(channel)
        if attr is None:
            return False
        return bool(getattr(self, attr))

    def type_enabled(self, notification_type):
        """Whether delivery over ``notification_type`` is switched on."""
        attr = _TYPE_TOGGLES.get(notification_type)
        if attr is None:
            return False
        return bool(getattr(self, attr))

    def allows(self, notification_type, channel):
        """Apply the channel gate, then the delivery type gate.

        Security messages go out over any type while the security channel is
        on, so one-time codes still reach a merchant who turned SMS off.
        """
        if channel == NotificationChannel.SECURITY.value and self.security_notifications:
            return True
        return self.channel_enabled(channel) and self.type_enabled(notification_type)

    def contact_for(self, notification_type):
        """Default recipient for ``notification_type``, if one is stored."""
        if notification_type == NotificationType.EMAIL.value:
            return self.email_address
        if notification_type == NotificationType.SMS.value:
            return self.phone_number
        return None

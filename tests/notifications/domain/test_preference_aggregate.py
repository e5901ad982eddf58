"""Tests for the NotificationPreference aggregate — defaults, updates and send policy."""

import pytest
from notifications.notification.notification import NotificationChannel, NotificationType
from notifications.preference.events import (
    ChannelsUpdated,
    ContactPointsUpdated,
    DeliveryTypesUpdated,
    PreferencesCreated,
)
from notifications.preference.preference import NotificationPreference
from protean.exceptions import ValidationError


def _prefs(**overrides):
    pref = NotificationPreference.create_default(merchant_id="m1")
    pref._events.clear()
    for field, value in overrides.items():
        setattr(pref, field, value)
    return pref


class TestDefaults:
    def test_default_toggles(self):
        pref = NotificationPreference.create_default(merchant_id="m1")
        assert pref.email_enabled is True
        assert pref.sms_enabled is False
        assert pref.push_enabled is True
        assert pref.transaction_notifications is True
        assert pref.payout_notifications is True
        assert pref.settlement_notifications is True
        assert pref.security_notifications is True
        assert pref.marketing_notifications is False

    def test_defaults_raise_created_event(self):
        pref = NotificationPreference.create_default(merchant_id="m1")
        assert isinstance(pref._events[0], PreferencesCreated)
        assert pref._events[0].merchant_id == "m1"

    def test_contact_points_optional(self):
        pref = NotificationPreference.create_default(merchant_id="m1", email_address="a@m.test")
        assert pref.email_address == "a@m.test"
        assert pref.phone_number is None


class TestUpdates:
    def test_update_types(self):
        pref = _prefs()
        pref.update_types(sms=True, push=False)
        assert pref.sms_enabled is True
        assert pref.push_enabled is False
        assert pref.email_enabled is True
        assert isinstance(pref._events[-1], DeliveryTypesUpdated)

    def test_update_types_requires_a_value(self):
        with pytest.raises(ValidationError):
            _prefs().update_types()

    def test_update_channels(self):
        pref = _prefs()
        pref.update_channels(payout=False, marketing=True)
        assert pref.payout_notifications is False
        assert pref.marketing_notifications is True
        assert pref.transaction_notifications is True
        assert isinstance(pref._events[-1], ChannelsUpdated)

    def test_update_channels_requires_a_value(self):
        with pytest.raises(ValidationError):
            _prefs().update_channels()

    def test_update_contacts(self):
        pref = _prefs()
        pref.update_contacts(email_address="ops@m.test", phone_number="+15550100")
        assert pref.email_address == "ops@m.test"
        assert pref.phone_number == "+15550100"
        assert isinstance(pref._events[-1], ContactPointsUpdated)

    def test_empty_string_clears_contact(self):
        pref = _prefs(email_address="ops@m.test")
        pref.update_contacts(email_address="")
        assert pref.email_address is None


class TestChannelGate:
    @pytest.mark.parametrize(
        "channel,toggle",
        [
            (NotificationChannel.TRANSACTION.value, "transaction_notifications"),
            (NotificationChannel.PAYOUT.value, "payout_notifications"),
            (NotificationChannel.SETTLEMENT.value, "settlement_notifications"),
            (NotificationChannel.SECURITY.value, "security_notifications"),
        ],
    )
    def test_channel_follows_its_toggle(self, channel, toggle):
        assert _prefs().channel_enabled(channel) is True
        assert _prefs(**{toggle: False}).channel_enabled(channel) is False

    def test_system_always_enabled(self):
        pref = _prefs(
            transaction_notifications=False,
            payout_notifications=False,
            settlement_notifications=False,
            security_notifications=False,
        )
        assert pref.channel_enabled(NotificationChannel.SYSTEM.value) is True

    def test_unknown_channel_disabled(self):
        assert _prefs().channel_enabled("marketing") is False


class TestAllows:
    def test_type_gate_applies_after_channel_gate(self):
        pref = _prefs()
        assert pref.allows(NotificationType.EMAIL.value, NotificationChannel.TRANSACTION.value) is True
        assert pref.allows(NotificationType.SMS.value, NotificationChannel.TRANSACTION.value) is False

    def test_disabled_channel_blocks_enabled_type(self):
        pref = _prefs(payout_notifications=False)
        assert pref.allows(NotificationType.EMAIL.value, NotificationChannel.PAYOUT.value) is False

    def test_security_on_bypasses_type_gate(self):
        pref = _prefs()  # SMS off by default
        assert pref.allows(NotificationType.SMS.value, NotificationChannel.SECURITY.value) is True

    def test_security_off_denies(self):
        pref = _prefs(security_notifications=False)
        assert pref.allows(NotificationType.EMAIL.value, NotificationChannel.SECURITY.value) is False

    def test_system_still_respects_type_toggle(self):
        pref = _prefs(email_enabled=False)
        assert pref.allows(NotificationType.EMAIL.value, NotificationChannel.SYSTEM.value) is False
        assert pref.allows(NotificationType.PUSH.value, NotificationChannel.SYSTEM.value) is True


class TestContactFor:
    def test_email_and_sms_backfill(self):
        pref = _prefs(email_address="ops@m.test", phone_number="+15550100")
        assert pref.contact_for(NotificationType.EMAIL.value) == "ops@m.test"
        assert pref.contact_for(NotificationType.SMS.value) == "+15550100"

    def test_push_has_no_backfill(self):
        pref = _prefs(email_address="ops@m.test", phone_number="+15550100")
        assert pref.contact_for(NotificationType.PUSH.value) is None

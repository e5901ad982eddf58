import pytest
from notifications.channel import get_channel
from notifications.notification.notification import NotificationType
from notifications.preference.preference import NotificationPreference
from protean import current_domain


@pytest.fixture()
def email_adapter():
    return get_channel(NotificationType.EMAIL.value)


@pytest.fixture()
def sms_adapter():
    return get_channel(NotificationType.SMS.value)


@pytest.fixture()
def push_adapter():
    return get_channel(NotificationType.PUSH.value)


@pytest.fixture()
def merchant_preferences():
    """Store preferences for a merchant, with keyword overrides applied."""

    def _create(merchant_id="m1", **overrides):
        pref = NotificationPreference.create_default(merchant_id=merchant_id)
        for field, value in overrides.items():
            setattr(pref, field, value)
        current_domain.repository_for(NotificationPreference).add(pref)
        return pref

    return _create

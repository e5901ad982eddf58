"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the service's validation rules
and match the exact field names expected by the API's Pydantic request
schemas.
"""

import random
import uuid

from faker import Faker

fake = Faker()

OTP_PURPOSES = ["payout", "withdrawal", "settings_change", "login", "2fa"]
MONEY_STATUSES = ["completed", "failed", "refunded", "processed", "reversed"]
CURRENCIES = ["USD", "EUR", "GBP", "NGN", "KES"]


# ---------- Merchants ----------


def merchant_id() -> str:
    """Generate merchant ids like 'mch-lt-a1b2c3d4'."""
    return f"mch-lt-{uuid.uuid4().hex[:8]}"


def valid_email() -> str:
    local = fake.user_name()[:20]
    domain = fake.free_email_domain()
    return f"{local}.{uuid.uuid4().hex[:4]}@{domain}"


def valid_phone() -> str:
    """E.164-style phone number."""
    return f"+1{random.randint(200, 999)}{random.randint(200, 999)}{random.randint(1000, 9999)}"


def preferences_update() -> dict:
    """UpdatePreferencesRequest payload that keeps email on and stores contact points."""
    return {
        "email_enabled": True,
        "sms_enabled": random.random() < 0.5,
        "email_address": valid_email(),
        "phone_number": valid_phone(),
    }


# ---------- Notifications ----------


def notification_data(merchant: str, channel: str = "system") -> dict:
    """SendNotificationRequest payload. Recipient left empty to exercise backfill."""
    return {
        "merchant_id": merchant,
        "type": "email",
        "channel": channel,
        "subject": fake.sentence(nb_words=4)[:500],
        "message": fake.paragraph(nb_sentences=2),
    }


def money_movement_data(merchant: str) -> dict:
    """MoneyMovementRequest payload; amount in minor units."""
    return {
        "merchant_id": merchant,
        "amount": random.randint(100, 5_000_000),
        "currency": random.choice(CURRENCIES),
        "status": random.choice(MONEY_STATUSES),
    }


# ---------- One-time passwords ----------


def otp_request(merchant: str, delivery_method: str | None = None) -> dict:
    """GenerateOTPRequest payload."""
    method = delivery_method or random.choice(["email", "sms"])
    return {
        "merchant_id": merchant,
        "user_id": f"usr-lt-{uuid.uuid4().hex[:8]}",
        "purpose": random.choice(OTP_PURPOSES),
        "recipient": valid_email() if method == "email" else valid_phone(),
        "delivery_method": method,
        "reference_id": f"ref-{uuid.uuid4().hex[:10]}",
        "metadata": {"ip": fake.ipv4(), "user_agent": fake.user_agent()[:120]},
    }


def wrong_code() -> str:
    """A random six-digit guess; it misses the real code all but once in a million."""
    return "".join(random.choice("0123456789") for _ in range(6))

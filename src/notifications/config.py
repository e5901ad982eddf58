"""Service settings read from the environment once, at import time.

Protean's own configuration (databases, brokers, event store) lives in
``pyproject.toml`` under ``[tool.protean]``; these are the knobs the OTP
engine and the dispatcher consult directly.
"""

import os


def _int_setting(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return int(raw)


def _float_setting(name: str) -> float | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    return float(raw)


BRAND_NAME = os.getenv("BRAND_NAME", "Merchant")

# One-time passwords
OTP_CODE_LENGTH = _int_setting("OTP_CODE_LENGTH", 6)
OTP_EXPIRY_MINUTES = _int_setting("OTP_EXPIRY_MINUTES", 10)
OTP_MAX_ATTEMPTS = _int_setting("OTP_MAX_ATTEMPTS", 3)
OTP_RETENTION_HOURS = _int_setting("OTP_RETENTION_HOURS", 24)

# Notification delivery
NOTIFICATION_MAX_RETRIES = _int_setting("NOTIFICATION_MAX_RETRIES", 3)
DELIVERY_TIMEOUT_SECONDS = _float_setting("DELIVERY_TIMEOUT_SECONDS")  # None means unbounded

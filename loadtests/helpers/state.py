"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state — no cross-user sharing.
State tracks ids returned by creation endpoints so follow-up operations
can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class MerchantState:
    """Tracks a simulated merchant and the notifications sent to it."""

    merchant_id: str | None = None
    notification_ids: list[str] = field(default_factory=list)


@dataclass
class OTPState:
    """Tracks one OTP request through verification attempts and resends."""

    merchant_id: str | None = None
    request: dict = field(default_factory=dict)
    otp_id: str | None = None
    attempts: int = 0
    current_status: str = "pending"

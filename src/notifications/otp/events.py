"""Domain events for the OneTimePassword aggregate.

Codes never appear in events.
"""

from notifications.domain import notifications
from protean.fields import DateTime, Identifier, Integer, String


@notifications.event(part_of="OneTimePassword")
class OTPIssued:
    """A one-time code was generated and stored."""

    __version__ = 1

    otp_id: Identifier(required=True)
    merchant_id: Identifier(required=True)
    user_id: Identifier()
    purpose: String(required=True)
    delivery_method: String(required=True)
    reference_id: String()
    max_attempts: Integer(required=True)
    expires_at: DateTime(required=True)
    issued_at: DateTime(required=True)


@notifications.event(part_of="OneTimePassword")
class OTPAttemptRecorded:
    """A verification attempt was counted against the code."""

    __version__ = 1

    otp_id: Identifier(required=True)
    merchant_id: Identifier(required=True)
    purpose: String(required=True)
    attempts: Integer(required=True)
    max_attempts: Integer(required=True)
    attempted_at: DateTime(required=True)


@notifications.event(part_of="OneTimePassword")
class OTPVerified:
    """The code was verified. Terminal."""

    __version__ = 1

    otp_id: Identifier(required=True)
    merchant_id: Identifier(required=True)
    purpose: String(required=True)
    reference_id: String()
    verified_at: DateTime(required=True)


@notifications.event(part_of="OneTimePassword")
class OTPInvalidated:
    """The code was superseded by a resend and forced to expire."""

    __version__ = 1

    otp_id: Identifier(required=True)
    merchant_id: Identifier(required=True)
    purpose: String(required=True)
    reference_id: String()
    invalidated_at: DateTime(required=True)

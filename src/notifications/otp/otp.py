"""OneTimePassword aggregate — a short-lived numeric code for a sensitive action.

An OTP is issued for one purpose (payout, withdrawal, settings change,
login, 2FA) and delivered by email or SMS. Its status is never stored; it
is derived from the record whenever it is needed:

    PENDING → VERIFIED            (successful verification)
    PENDING → EXPIRED             (now is past expires_at)
    PENDING → ATTEMPTS_EXHAUSTED  (attempts reached max_attempts)

A resend issues a brand new OTP; a terminal one is never revived.
"""

import hmac
import json
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum

from notifications import config
from notifications.domain import notifications
from notifications.errors import AlreadyVerifiedError, AttemptsExhaustedError, OTPExpiredError
from notifications.otp.events import OTPAttemptRecorded, OTPInvalidated, OTPIssued, OTPVerified
from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OTPPurpose(Enum):
    PAYOUT = "payout"
    WITHDRAWAL = "withdrawal"
    SETTINGS_CHANGE = "settings_change"
    LOGIN = "login"
    TWO_FACTOR = "2fa"


class DeliveryMethod(Enum):
    EMAIL = "email"
    SMS = "sms"


class OTPStatus(Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    EXPIRED = "expired"
    ATTEMPTS_EXHAUSTED = "attempts_exhausted"


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------
def generate_code(length: int = 6) -> str:
    """Draw ``length`` independent, uniformly distributed decimal digits."""
    if length < 1:
        raise ValueError("OTP code length must be at least 1")
    return "".join(str(secrets.randbelow(10)) for _ in range(length))


def _aware(value: datetime | None) -> datetime | None:
    # SQL backends may hand back naive timestamps; they are stored in UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def derive_status(now, expires_at, attempts, max_attempts, verified_at) -> OTPStatus:
    """Current status of an OTP. Verified wins over expired, expired over exhausted."""
    if verified_at is not None:
        return OTPStatus.VERIFIED
    if _aware(now) > _aware(expires_at):
        return OTPStatus.EXPIRED
    if attempts >= max_attempts:
        return OTPStatus.ATTEMPTS_EXHAUSTED
    return OTPStatus.PENDING


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@notifications.aggregate
class OneTimePassword:
    """A one-time code issued to a merchant for a single purpose."""

    # Owner
    merchant_id: Identifier(required=True)
    user_id: Identifier()

    # Code
    purpose: String(choices=OTPPurpose, required=True)
    code: String(required=True, max_length=12)

    # Delivery
    recipient: String(required=True, max_length=255)
    delivery_method: String(choices=DeliveryMethod, required=True)

    # Verification bounds
    expires_at: DateTime(required=True)
    verified_at: DateTime()
    attempts: Integer(default=0, min_value=0)
    max_attempts: Integer(default=3, min_value=1)

    # Correlation
    reference_id: String(max_length=255)
    context_data: Text()  # JSON-encoded caller metadata

    created_at: DateTime()

    @invariant.post
    def attempts_never_exceed_max(self):
        if self.attempts is not None and self.max_attempts is not None and self.attempts > self.max_attempts:
            raise ValidationError({"attempts": ["Attempts cannot exceed max_attempts"]})

    @invariant.post
    def code_is_numeric(self):
        if self.code and not self.code.isdigit():
            raise ValidationError({"code": ["OTP code must contain only digits"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def issue(
        cls,
        merchant_id,
        purpose,
        recipient,
        delivery_method,
        user_id=None,
        expiry_minutes=None,
        max_attempts=None,
        reference_id=None,
        metadata=None,
        code_length=None,
        now=None,
    ):
        """Generate a fresh code and build an unverified OTP around it."""
        now = now or datetime.now(UTC)
        expiry_minutes = expiry_minutes or config.OTP_EXPIRY_MINUTES
        max_attempts = max_attempts or config.OTP_MAX_ATTEMPTS
        expires_at = now + timedelta(minutes=expiry_minutes)

        otp = cls(
            merchant_id=merchant_id,
            user_id=user_id,
            purpose=purpose,
            code=generate_code(code_length or config.OTP_CODE_LENGTH),
            recipient=recipient,
            delivery_method=delivery_method,
            expires_at=expires_at,
            attempts=0,
            max_attempts=max_attempts,
            reference_id=reference_id,
            context_data=json.dumps(metadata) if metadata else None,
            created_at=now,
        )

        otp.raise_(
            OTPIssued(
                otp_id=str(otp.id),
                merchant_id=str(merchant_id),
                user_id=user_id,
                purpose=purpose,
                delivery_method=delivery_method,
                reference_id=reference_id,
                max_attempts=max_attempts,
                expires_at=expires_at,
                issued_at=now,
            )
        )

        return otp

    # -------------------------------------------------------------------
    # Verification
    # -------------------------------------------------------------------
    def status(self, now=None) -> OTPStatus:
        return derive_status(
            now or datetime.now(UTC),
            self.expires_at,
            self.attempts,
            self.max_attempts,
            self.verified_at,
        )

    def record_attempt(self, now=None):
        """Count one verification attempt, or refuse if the OTP is terminal."""
        now = now or datetime.now(UTC)
        status = self.status(now)
        if status == OTPStatus.VERIFIED:
            raise AlreadyVerifiedError(otp_id=str(self.id))
        if status == OTPStatus.EXPIRED:
            raise OTPExpiredError(otp_id=str(self.id))
        if status == OTPStatus.ATTEMPTS_EXHAUSTED:
            raise AttemptsExhaustedError(otp_id=str(self.id))

        self.attempts = self.attempts + 1

        self.raise_(
            OTPAttemptRecorded(
                otp_id=str(self.id),
                merchant_id=str(self.merchant_id),
                purpose=self.purpose,
                attempts=self.attempts,
                max_attempts=self.max_attempts,
                attempted_at=now,
            )
        )

    def matches(self, code) -> bool:
        return hmac.compare_digest(str(self.code).encode(), str(code or "").encode())

    def mark_verified(self, now=None):
        if self.verified_at is not None:
            raise AlreadyVerifiedError(otp_id=str(self.id))

        now = now or datetime.now(UTC)
        self.verified_at = now

        self.raise_(
            OTPVerified(
                otp_id=str(self.id),
                merchant_id=str(self.merchant_id),
                purpose=self.purpose,
                reference_id=self.reference_id,
                verified_at=now,
            )
        )

    def invalidate(self, now=None):
        """Force the OTP into the past so it can no longer be verified."""
        if self.verified_at is not None:
            return

        now = now or datetime.now(UTC)
        self.expires_at = now - timedelta(hours=1)

        self.raise_(
            OTPInvalidated(
                otp_id=str(self.id),
                merchant_id=str(self.merchant_id),
                purpose=self.purpose,
                reference_id=self.reference_id,
                invalidated_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Query helpers
    # -------------------------------------------------------------------
    @property
    def attempts_remaining(self) -> int:
        return max(self.max_attempts - self.attempts, 0)

    @property
    def masked_code(self) -> str:
        return "*" * len(self.code or "")

    @property
    def metadata(self) -> dict:
        return json.loads(self.context_data) if self.context_data else {}


# ---------------------------------------------------------------------------
# Read model handed back to callers
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class OTPSummary:
    """An OTP as callers see it: everything except the real code."""

    otp_id: str
    merchant_id: str
    user_id: str | None
    purpose: str
    code: str
    recipient: str
    delivery_method: str
    expires_at: datetime
    verified_at: datetime | None
    attempts: int
    max_attempts: int
    reference_id: str | None
    metadata: dict
    created_at: datetime
    status: str

    @classmethod
    def from_otp(cls, otp: OneTimePassword, now=None) -> "OTPSummary":
        return cls(
            otp_id=str(otp.id),
            merchant_id=str(otp.merchant_id),
            user_id=str(otp.user_id) if otp.user_id else None,
            purpose=otp.purpose,
            code=otp.masked_code,
            recipient=otp.recipient,
            delivery_method=otp.delivery_method,
            expires_at=otp.expires_at,
            verified_at=otp.verified_at,
            attempts=otp.attempts,
            max_attempts=otp.max_attempts,
            reference_id=otp.reference_id,
            metadata=otp.metadata,
            created_at=otp.created_at,
            status=otp.status(now).value,
        )

"""OTP engine — issue, deliver, verify, resend and clean up one-time codes.

Generate stores the OTP first and only then hands the code to the
notification dispatcher under the ``security`` channel. A delivery failure
leaves the stored OTP in place so the caller can resend.

Verify charges an attempt to the stored row before comparing codes, so a
lost comparison result can never hand out extra attempts.
"""

from datetime import UTC, datetime, timedelta

import structlog
from notifications import config
from notifications.errors import (
    AlreadyVerifiedError,
    AttemptsExhaustedError,
    InvalidCodeError,
    NotificationServiceError,
    OTPDeliveryError,
    OTPNotFoundError,
    OTPVerificationError,
    PolicyDeniedError,
    ReferenceMismatchError,
    StorageError,
)
from notifications.notification.dispatch import send_notification
from notifications.notification.notification import Notification, NotificationChannel
from notifications.otp.otp import OneTimePassword, OTPSummary
from notifications.templates import get_template
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

logger = structlog.get_logger(__name__)


def generate_otp(
    merchant_id: str,
    purpose: str,
    recipient: str,
    delivery_method: str,
    user_id: str | None = None,
    expiry_minutes: int | None = None,
    max_attempts: int | None = None,
    reference_id: str | None = None,
    metadata: dict | None = None,
    timeout: float | None = None,
) -> OTPSummary:
    """Issue a new OTP and deliver its code.

    Raises:
        ValidationError: Unsupported purpose or delivery method, or
            missing recipient.
        StorageError: The OTP could not be stored; nothing was sent.
        PolicyDeniedError: The merchant switched security notifications off.
        OTPDeliveryError: The OTP is stored but its code was not delivered.
    """
    otp = OneTimePassword.issue(
        merchant_id=merchant_id,
        purpose=purpose,
        recipient=recipient,
        delivery_method=delivery_method,
        user_id=user_id,
        expiry_minutes=expiry_minutes,
        max_attempts=max_attempts,
        reference_id=reference_id,
        metadata=metadata,
    )

    repo = current_domain.repository_for(OneTimePassword)
    try:
        repo.add(otp)
    except ValidationError:
        raise
    except Exception as exc:
        logger.error("Failed to store OTP", merchant_id=str(merchant_id), purpose=purpose, error=str(exc))
        raise StorageError("failed to store OTP", merchant_id=str(merchant_id)) from exc

    template_cls = get_template("otp_code")
    rendered = template_cls.render(
        {
            "purpose": otp.purpose,
            "code": otp.code,
            "expiry_minutes": int((otp.expires_at - otp.created_at).total_seconds() // 60),
        }
    )
    notification = Notification.create(
        merchant_id=merchant_id,
        user_id=user_id,
        notification_type=otp.delivery_method,
        channel=NotificationChannel.SECURITY.value,
        recipient=otp.recipient,
        subject=rendered["subject"],
        body=rendered["body"],
    )

    try:
        send_notification(notification, timeout=timeout)
    except PolicyDeniedError:
        logger.warning("OTP delivery disabled by preference", otp_id=str(otp.id), merchant_id=str(merchant_id))
        raise
    except (NotificationServiceError, ValidationError) as exc:
        logger.error(
            "OTP stored but delivery failed",
            otp_id=str(otp.id),
            merchant_id=str(merchant_id),
            delivery_method=otp.delivery_method,
            error=str(exc),
        )
        raise OTPDeliveryError(str(otp.id), exc) from exc

    logger.info(
        "OTP generated",
        otp_id=str(otp.id),
        merchant_id=str(merchant_id),
        purpose=otp.purpose,
        delivery_method=otp.delivery_method,
    )
    return OTPSummary.from_otp(otp)


def verify_otp(
    merchant_id: str,
    purpose: str,
    code: str,
    reference_id: str | None = None,
    now: datetime | None = None,
) -> OTPSummary:
    """Verify ``code`` for (merchant, purpose).

    A submitted code that matches no unverified OTP is charged to the
    merchant's latest OTP for the purpose (and reference, when given), so
    guessing burns that OTP's attempts.

    Raises:
        OTPNotFoundError: Nothing to verify against ("invalid or expired").
        ReferenceMismatchError: The OTP belongs to another reference id.
        AlreadyVerifiedError, OTPExpiredError, AttemptsExhaustedError:
            The OTP is in a terminal state.
        InvalidCodeError: Wrong code; ``attempts_remaining`` is left.
        StorageError: The attempt could not be recorded.
    """
    now = now or datetime.now(UTC)
    repo = current_domain.repository_for(OneTimePassword)

    try:
        otp = repo.find_unverified_by_code(merchant_id, purpose, code)
        if otp is None:
            # Latest OTP, verified or not, so a replayed code reads as AlreadyVerified.
            otp = repo.find_latest(merchant_id, purpose, reference_id)
    except Exception as exc:
        raise StorageError("failed to look up OTP", merchant_id=str(merchant_id)) from exc

    if otp is None:
        raise OTPNotFoundError(merchant_id=str(merchant_id), purpose=purpose)

    if reference_id and otp.reference_id and otp.reference_id != reference_id:
        raise ReferenceMismatchError(otp_id=str(otp.id))

    try:
        otp = repo.record_attempt(otp.id, now)
    except (OTPVerificationError, StorageError):
        raise
    except Exception as exc:
        logger.error("Failed to record OTP attempt", otp_id=str(otp.id), error=str(exc))
        raise StorageError("failed to record OTP attempt", otp_id=str(otp.id)) from exc

    if not otp.matches(code):
        logger.info(
            "OTP verification failed",
            otp_id=str(otp.id),
            attempts=otp.attempts,
            max_attempts=otp.max_attempts,
        )
        if otp.attempts_remaining == 0:
            raise AttemptsExhaustedError(otp_id=str(otp.id))
        raise InvalidCodeError(attempts_remaining=otp.attempts_remaining, otp_id=str(otp.id))

    try:
        otp = repo.mark_verified(otp.id, now)
    except AlreadyVerifiedError:
        raise
    except Exception as exc:
        # The comparison already succeeded; the caller gets that answer.
        logger.error(
            "OTP verified but verified flag not stored",
            otp_id=str(otp.id),
            error=str(exc),
            reconciliation_required=True,
        )
        otp.mark_verified(now)

    logger.info("OTP verified", otp_id=str(otp.id), merchant_id=str(merchant_id), purpose=purpose)
    return OTPSummary.from_otp(otp, now)


def resend_otp(
    merchant_id: str,
    purpose: str,
    recipient: str,
    delivery_method: str,
    user_id: str | None = None,
    expiry_minutes: int | None = None,
    max_attempts: int | None = None,
    reference_id: str | None = None,
    metadata: dict | None = None,
    timeout: float | None = None,
) -> OTPSummary:
    """Supersede outstanding OTPs for (merchant, purpose, reference) and issue a new one."""
    repo = current_domain.repository_for(OneTimePassword)
    try:
        invalidated = repo.soft_invalidate_by_reference(merchant_id, purpose, reference_id)
        logger.info(
            "Previous OTPs invalidated",
            merchant_id=str(merchant_id),
            purpose=purpose,
            reference_id=reference_id,
            count=invalidated,
        )
    except Exception as exc:
        logger.warning(
            "Failed to invalidate previous OTPs, issuing a new one anyway",
            merchant_id=str(merchant_id),
            purpose=purpose,
            reference_id=reference_id,
            error=str(exc),
        )

    return generate_otp(
        merchant_id=merchant_id,
        purpose=purpose,
        recipient=recipient,
        delivery_method=delivery_method,
        user_id=user_id,
        expiry_minutes=expiry_minutes,
        max_attempts=max_attempts,
        reference_id=reference_id,
        metadata=metadata,
        timeout=timeout,
    )


def cleanup_expired_otps(retention_hours: int | None = None, now: datetime | None = None) -> int:
    """Delete OTPs that expired more than the retention window ago."""
    retention = timedelta(hours=retention_hours or config.OTP_RETENTION_HOURS)
    repo = current_domain.repository_for(OneTimePassword)
    try:
        deleted = repo.delete_expired_older_than(retention, now)
    except Exception as exc:
        logger.error("OTP cleanup failed", error=str(exc))
        raise StorageError("failed to clean up expired OTPs") from exc

    logger.info("Expired OTPs cleaned up", deleted=deleted, retention_hours=retention.total_seconds() / 3600)
    return deleted

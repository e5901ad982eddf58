"""Service errors raised by the OTP engine and the notification dispatcher.

Field-level validation problems use Protean's ``ValidationError`` (a dict of
field name to messages); everything else is a ``NotificationServiceError``.
"""


class NotificationServiceError(Exception):
    """Base class for failures surfaced to callers of the service."""

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------
class NotFoundError(NotificationServiceError):
    pass


class OTPNotFoundError(NotFoundError):
    """No verifiable OTP matched the request.

    Deliberately vague: a wrong merchant, a wrong code and a missing OTP all
    look the same to the caller.
    """

    def __init__(self, **context):
        super().__init__("invalid or expired OTP", **context)


class PreferencesNotFoundError(NotFoundError):
    def __init__(self, merchant_id: str):
        super().__init__(f"No notification preferences for merchant {merchant_id}", merchant_id=merchant_id)


class NotificationNotFoundError(NotFoundError):
    def __init__(self, notification_id: str):
        super().__init__(f"Notification {notification_id} not found", notification_id=notification_id)


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------
class PolicyDeniedError(NotificationServiceError):
    """The merchant's preferences disable this channel or delivery type."""


# ---------------------------------------------------------------------------
# OTP verification outcomes
# ---------------------------------------------------------------------------
class OTPVerificationError(NotificationServiceError):
    pass


class OTPExpiredError(OTPVerificationError):
    def __init__(self, **context):
        super().__init__("OTP has expired", **context)


class AttemptsExhaustedError(OTPVerificationError):
    def __init__(self, **context):
        super().__init__("maximum verification attempts exceeded", **context)


class AlreadyVerifiedError(OTPVerificationError):
    def __init__(self, **context):
        super().__init__("OTP already verified", **context)


class ReferenceMismatchError(OTPVerificationError):
    def __init__(self, **context):
        super().__init__("reference ID mismatch", **context)


class InvalidCodeError(OTPVerificationError):
    def __init__(self, attempts_remaining: int, **context):
        super().__init__("invalid OTP code", attempts_remaining=attempts_remaining, **context)
        self.attempts_remaining = attempts_remaining


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------
class StorageError(NotificationServiceError):
    """A store read or write failed."""


class DeliveryError(NotificationServiceError):
    """The delivery gateway rejected or failed to deliver a message.

    ``transient`` marks failures an upstream job may retry.
    """

    def __init__(self, message: str, transient: bool = False, **context):
        super().__init__(message, transient=transient, **context)
        self.transient = transient


class DeliveryTimeoutError(DeliveryError):
    """The gateway did not answer in time; the notification stays pending."""

    def __init__(self, message: str = "delivery timed out", **context):
        super().__init__(message, transient=True, **context)


class OTPDeliveryError(DeliveryError):
    """The OTP was stored but its code could not be delivered."""

    def __init__(self, otp_id: str, cause: Exception):
        transient = getattr(cause, "transient", False)
        super().__init__(f"failed to deliver OTP: {cause}", transient=transient, otp_id=otp_id)
        self.otp_id = otp_id
        self.cause = cause

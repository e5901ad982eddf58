"""One-time code template — delivers a verification code for a sensitive action."""

from notifications import config
from notifications.notification.notification import NotificationChannel

_PURPOSE_LABELS = {
    "payout": "payout verification code",
    "withdrawal": "withdrawal verification code",
    "settings_change": "settings change verification code",
    "login": "login verification code",
    "2fa": "2FA code",
}

# Codes that move money carry an explicit warning.
_DO_NOT_SHARE = {"payout", "withdrawal"}


class OTPCodeTemplate:
    channel = NotificationChannel.SECURITY.value

    @staticmethod
    def render(context: dict) -> dict:
        brand = context.get("brand", config.BRAND_NAME)
        purpose = context.get("purpose", "")
        code = context["code"]
        expiry_minutes = context.get("expiry_minutes", config.OTP_EXPIRY_MINUTES)

        label = _PURPOSE_LABELS.get(purpose, "verification code")
        body = f"Your {brand} {label} is: {code}. Valid for {expiry_minutes} minutes."
        if purpose in _DO_NOT_SHARE:
            body += " Do not share this code with anyone."

        return {
            "subject": f"{brand} Verification Code",
            "body": body,
        }

"""CleanupExpiredOTPs command + handler — periodic purge of stale codes."""

from notifications.domain import notifications
from notifications.otp.engine import cleanup_expired_otps
from notifications.otp.otp import OneTimePassword
from protean.fields import Integer
from protean.utils.mixins import handle


@notifications.command(part_of="OneTimePassword")
class CleanupExpiredOTPs:
    """Request to delete OTPs past the retention window."""

    retention_hours: Integer(min_value=1)


@notifications.command_handler(part_of=OneTimePassword)
class OTPMaintenanceHandler:
    @handle(CleanupExpiredOTPs)
    def cleanup_expired(self, command: CleanupExpiredOTPs):
        return cleanup_expired_otps(retention_hours=command.retention_hours)

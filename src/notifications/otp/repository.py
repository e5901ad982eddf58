"""Repository for the OneTimePassword aggregate.

Attempt and verification writes are conditional on the aggregate version:
each one re-reads the row, applies the change to what is actually stored,
and retries when a concurrent writer got there first. A cached attempts
count is never written back.
"""

from datetime import UTC, datetime, timedelta

import structlog
from notifications.domain import notifications
from notifications.errors import StorageError
from notifications.otp.otp import OneTimePassword
from protean.exceptions import ExpectedVersionError

logger = structlog.get_logger(__name__)

_MAX_WRITE_RETRIES = 5
_PAGE_SIZE = 100


@notifications.repository(part_of=OneTimePassword)
class OneTimePasswordRepository:
    # -------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------
    def find_unverified_by_code(self, merchant_id: str, purpose: str, code: str) -> OneTimePassword | None:
        """Most recently created unverified OTP carrying ``code``."""
        results = (
            self._dao.query.filter(merchant_id=str(merchant_id), purpose=purpose, code=code, verified_at=None)
            .order_by("-created_at")
            .limit(1)
            .all()
            .items
        )
        return results[0] if results else None

    def find_latest(self, merchant_id: str, purpose: str, reference_id: str | None = None) -> OneTimePassword | None:
        """Most recently created OTP for (merchant, purpose[, reference]).

        Verified rows are included: when no unverified OTP carries the code,
        verification judges the latest OTP, so replaying a code that was
        already accepted reports AlreadyVerified instead of InvalidCode.
        """
        filters = {"merchant_id": str(merchant_id), "purpose": purpose}
        if reference_id:
            filters["reference_id"] = reference_id
        results = self._dao.query.filter(**filters).order_by("-created_at").limit(1).all().items
        return results[0] if results else None

    def find_latest_by_reference(self, merchant_id: str, purpose: str, reference_id: str) -> OneTimePassword | None:
        return self.find_latest(merchant_id, purpose, reference_id)

    # -------------------------------------------------------------------
    # Conditional writes
    # -------------------------------------------------------------------
    def _apply(self, otp_id: str, change) -> OneTimePassword:
        for attempt in range(1, _MAX_WRITE_RETRIES + 1):
            otp = self.get(otp_id)
            change(otp)
            try:
                self.add(otp)
                return otp
            except ExpectedVersionError:
                logger.info("Concurrent OTP update, retrying", otp_id=str(otp_id), attempt=attempt)

        raise StorageError("OTP update kept conflicting with concurrent writers", otp_id=str(otp_id))

    def record_attempt(self, otp_id: str, now: datetime | None = None) -> OneTimePassword:
        """Atomically count one verification attempt.

        Raises the OTP's verification errors (already verified, expired,
        exhausted) as judged against the stored row.
        """
        return self._apply(otp_id, lambda otp: otp.record_attempt(now))

    def mark_verified(self, otp_id: str, now: datetime | None = None) -> OneTimePassword:
        """Set verified_at once. A second writer gets AlreadyVerifiedError."""
        return self._apply(otp_id, lambda otp: otp.mark_verified(now))

    def _all_matching(self, **filters) -> list[OneTimePassword]:
        """Every row matching ``filters``, read page by page past the default query limit."""
        rows: list[OneTimePassword] = []
        offset = 0
        while True:
            page = (
                self._dao.query.filter(**filters)
                .order_by("created_at")
                .offset(offset)
                .limit(_PAGE_SIZE)
                .all()
                .items
            )
            rows.extend(page)
            if len(page) < _PAGE_SIZE:
                return rows
            offset += _PAGE_SIZE

    def soft_invalidate_by_reference(
        self,
        merchant_id: str,
        purpose: str,
        reference_id: str | None,
        now: datetime | None = None,
    ) -> int:
        """Force live, unverified OTPs sharing (merchant, purpose, reference) to expire.

        Without a reference id, OTPs that were issued without one are the
        ones superseded.
        """
        now = now or datetime.now(UTC)
        superseded = self._all_matching(
            merchant_id=str(merchant_id),
            purpose=purpose,
            reference_id=reference_id or None,
            verified_at=None,
            expires_at__gt=now,
        )
        for otp in superseded:
            otp.invalidate(now)
            self.add(otp)
        return len(superseded)

    def delete_expired_older_than(self, retention: timedelta, now: datetime | None = None) -> int:
        """Delete OTPs whose expiry is older than ``retention``. Returns the count."""
        cutoff = (now or datetime.now(UTC)) - retention
        stale = self._all_matching(expires_at__lt=cutoff)
        for otp in stale:
            self._dao.delete(otp)
        return len(stale)

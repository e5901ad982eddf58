"""FastAPI routes for notifications and one-time passwords.

Thin adapters that translate HTTP requests into dispatcher/engine calls or
domain commands. No business logic — just schema→call→response translation.
"""

from dataclasses import asdict

from fastapi import APIRouter
from notifications.api.schemas import (
    CleanupOTPsRequest,
    CleanupOTPsResponse,
    GenerateOTPRequest,
    MoneyMovementRequest,
    NotificationListResponse,
    NotificationResponse,
    OTPResponse,
    PreferencesResponse,
    ProcessPendingRequest,
    ProcessPendingResponse,
    SendNotificationRequest,
    StatusResponse,
    UpdatePreferencesRequest,
    VerifyOTPRequest,
    VerifyOTPResponse,
)
from notifications.errors import NotificationNotFoundError
from notifications.notification.dispatch import (
    send_notification,
    send_payout_notification,
    send_transaction_notification,
)
from notifications.notification.notification import Notification
from notifications.notification.reconciliation import MarkNotificationDelivered, ProcessPendingNotifications
from notifications.otp.engine import generate_otp, resend_otp, verify_otp
from notifications.otp.maintenance import CleanupExpiredOTPs
from notifications.otp.otp import OTPSummary
from notifications.preference.management import UpdateNotificationPreferences
from notifications.preference.preference import NotificationPreference
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

router = APIRouter(prefix="/notifications", tags=["notifications"])
otp_router = APIRouter(prefix="/otp", tags=["otp"])


def _notification_response(n: Notification) -> NotificationResponse:
    return NotificationResponse(
        notification_id=str(n.id),
        merchant_id=str(n.merchant_id) if n.merchant_id else None,
        user_id=str(n.user_id) if n.user_id else None,
        type=n.notification_type,
        channel=n.channel,
        recipient=n.recipient,
        subject=n.subject,
        message=n.body,
        status=n.status,
        retry_count=n.retry_count,
        error_message=n.error_message,
        created_at=n.created_at,
        sent_at=n.sent_at,
        delivered_at=n.delivered_at,
    )


def _otp_response(summary: OTPSummary) -> OTPResponse:
    return OTPResponse(**asdict(summary))


# ---------------------------------------------------------------------------
# Sending
# ---------------------------------------------------------------------------
@router.post("", status_code=201, response_model=NotificationResponse)
async def send(body: SendNotificationRequest) -> NotificationResponse:
    """Send a notification, subject to the merchant's preferences."""
    notification = Notification.create(
        merchant_id=body.merchant_id,
        user_id=body.user_id,
        notification_type=body.type,
        channel=body.channel,
        recipient=body.recipient,
        subject=body.subject,
        body=body.message,
    )
    return _notification_response(send_notification(notification))


@router.post("/transactions", status_code=201, response_model=NotificationResponse)
async def send_transaction(body: MoneyMovementRequest) -> NotificationResponse:
    """Notify a merchant about a transaction status change."""
    notification = send_transaction_notification(
        merchant_id=body.merchant_id,
        amount=body.amount,
        currency=body.currency,
        status=body.status,
        recipient=body.recipient,
        user_id=body.user_id,
    )
    return _notification_response(notification)


@router.post("/payouts", status_code=201, response_model=NotificationResponse)
async def send_payout(body: MoneyMovementRequest) -> NotificationResponse:
    """Notify a merchant about a payout status change."""
    notification = send_payout_notification(
        merchant_id=body.merchant_id,
        amount=body.amount,
        currency=body.currency,
        status=body.status,
        recipient=body.recipient,
        user_id=body.user_id,
    )
    return _notification_response(notification)


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------
@router.get("/preferences/{merchant_id}", response_model=PreferencesResponse)
async def get_preferences(merchant_id: str) -> PreferencesResponse:
    """Get a merchant's notification preferences, creating defaults on first access."""
    pref = current_domain.repository_for(NotificationPreference).get_or_create_defaults(merchant_id)
    return PreferencesResponse(
        preference_id=str(pref.id),
        merchant_id=str(pref.merchant_id),
        email_enabled=pref.email_enabled,
        sms_enabled=pref.sms_enabled,
        push_enabled=pref.push_enabled,
        transaction_notifications=pref.transaction_notifications,
        payout_notifications=pref.payout_notifications,
        settlement_notifications=pref.settlement_notifications,
        security_notifications=pref.security_notifications,
        marketing_notifications=pref.marketing_notifications,
        email_address=pref.email_address,
        phone_number=pref.phone_number,
    )


@router.put("/preferences/{merchant_id}", response_model=StatusResponse)
async def update_preferences(merchant_id: str, body: UpdatePreferencesRequest) -> StatusResponse:
    """Update a merchant's notification preferences."""
    command = UpdateNotificationPreferences(merchant_id=merchant_id, **body.model_dump())
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Notification history
# ---------------------------------------------------------------------------
@router.get("/merchant/{merchant_id}", response_model=NotificationListResponse)
async def list_merchant_notifications(merchant_id: str) -> NotificationListResponse:
    """A merchant's notifications, newest first."""
    results = current_domain.repository_for(Notification).find_by_merchant(merchant_id)
    return NotificationListResponse(notifications=[_notification_response(n) for n in results])


@router.get("/user/{user_id}", response_model=NotificationListResponse)
async def list_user_notifications(user_id: str) -> NotificationListResponse:
    """A user's notifications, newest first."""
    results = current_domain.repository_for(Notification).find_by_user(user_id)
    return NotificationListResponse(notifications=[_notification_response(n) for n in results])


# ---------------------------------------------------------------------------
# Maintenance — periodic background job endpoints
# ---------------------------------------------------------------------------
@router.post("/maintenance/process-pending", response_model=ProcessPendingResponse)
async def process_pending(body: ProcessPendingRequest | None = None) -> ProcessPendingResponse:
    """Re-deliver notifications left pending.

    Designed to be called periodically by an external scheduler.
    """
    command = ProcessPendingNotifications(limit=body.limit if body else 100)
    processed = current_domain.process(command, asynchronous=False)
    return ProcessPendingResponse(processed=processed or 0)


# ---------------------------------------------------------------------------
# Single notification
# ---------------------------------------------------------------------------
@router.get("/{notification_id}", response_model=NotificationResponse)
async def get_notification(notification_id: str) -> NotificationResponse:
    """Get one notification by id."""
    try:
        notification = current_domain.repository_for(Notification).get(notification_id)
    except ObjectNotFoundError:
        raise NotificationNotFoundError(notification_id) from None
    return _notification_response(notification)


@router.post("/{notification_id}/delivered", response_model=StatusResponse)
async def mark_delivered(notification_id: str) -> StatusResponse:
    """Record the provider's delivery confirmation."""
    current_domain.process(MarkNotificationDelivered(notification_id=notification_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# One-time passwords
# ---------------------------------------------------------------------------
@otp_router.post("/generate", status_code=201, response_model=OTPResponse)
async def generate(body: GenerateOTPRequest) -> OTPResponse:
    """Issue an OTP and deliver its code. The code is never echoed back."""
    return _otp_response(generate_otp(**body.model_dump()))


@otp_router.post("/verify", response_model=VerifyOTPResponse)
async def verify(body: VerifyOTPRequest) -> VerifyOTPResponse:
    """Verify a submitted code."""
    return VerifyOTPResponse(otp=_otp_response(verify_otp(**body.model_dump())))


@otp_router.post("/resend", status_code=201, response_model=OTPResponse)
async def resend(body: GenerateOTPRequest) -> OTPResponse:
    """Supersede outstanding codes and issue a new one."""
    return _otp_response(resend_otp(**body.model_dump()))


@otp_router.post("/maintenance/cleanup", response_model=CleanupOTPsResponse)
async def cleanup(body: CleanupOTPsRequest | None = None) -> CleanupOTPsResponse:
    """Delete OTPs past the retention window. Safe to call repeatedly."""
    command = CleanupExpiredOTPs(retention_hours=body.retention_hours if body else None)
    deleted = current_domain.process(command, asynchronous=False)
    return CleanupOTPsResponse(deleted=deleted or 0)

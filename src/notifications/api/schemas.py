"""Pydantic request/response models for the notifications and OTP API.

API schemas are separate from Protean commands (anti-corruption pattern).
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request Models — notifications
# ---------------------------------------------------------------------------
class SendNotificationRequest(BaseModel):
    merchant_id: str | None = None
    user_id: str | None = None
    type: str = Field(..., examples=["email"], description="email, sms or push")
    channel: str = Field(..., examples=["transaction"], description="transaction, payout, settlement, security or system")
    recipient: str | None = Field(None, description="Falls back to the merchant's stored contact point")
    subject: str | None = Field(None, max_length=500)
    message: str = Field(..., min_length=1)


class MoneyMovementRequest(BaseModel):
    merchant_id: str = Field(..., min_length=1)
    user_id: str | None = None
    recipient: str | None = None
    amount: int = Field(..., ge=0, description="Amount in minor units", examples=[125050])
    currency: str = Field(..., min_length=3, max_length=3, examples=["USD"])
    status: str = Field(..., min_length=1, examples=["completed"])


class UpdatePreferencesRequest(BaseModel):
    email_enabled: bool | None = None
    sms_enabled: bool | None = None
    push_enabled: bool | None = None
    transaction_notifications: bool | None = None
    payout_notifications: bool | None = None
    settlement_notifications: bool | None = None
    security_notifications: bool | None = None
    marketing_notifications: bool | None = None
    email_address: str | None = Field(None, max_length=255)
    phone_number: str | None = Field(None, max_length=50)


class ProcessPendingRequest(BaseModel):
    limit: int = Field(100, ge=1, le=1000)


# ---------------------------------------------------------------------------
# Request Models — OTP
# ---------------------------------------------------------------------------
class GenerateOTPRequest(BaseModel):
    merchant_id: str = Field(..., min_length=1)
    user_id: str | None = None
    purpose: str = Field(..., examples=["payout"], description="payout, withdrawal, settings_change, login or 2fa")
    recipient: str = Field(..., min_length=1)
    delivery_method: str = Field(..., examples=["sms"], description="email or sms")
    expiry_minutes: int | None = Field(None, ge=1, le=60)
    max_attempts: int | None = Field(None, ge=1, le=10)
    reference_id: str | None = Field(None, max_length=255)
    metadata: dict | None = None


class VerifyOTPRequest(BaseModel):
    merchant_id: str = Field(..., min_length=1)
    purpose: str
    code: str = Field(..., min_length=1, max_length=12)
    reference_id: str | None = Field(None, max_length=255)


class CleanupOTPsRequest(BaseModel):
    retention_hours: int | None = Field(None, ge=1)


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class NotificationResponse(BaseModel):
    notification_id: str
    merchant_id: str | None = None
    user_id: str | None = None
    type: str
    channel: str
    recipient: str | None = None
    subject: str | None = None
    message: str
    status: str
    retry_count: int
    error_message: str | None = None
    created_at: datetime | None = None
    sent_at: datetime | None = None
    delivered_at: datetime | None = None


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]


class PreferencesResponse(BaseModel):
    preference_id: str
    merchant_id: str
    email_enabled: bool
    sms_enabled: bool
    push_enabled: bool
    transaction_notifications: bool
    payout_notifications: bool
    settlement_notifications: bool
    security_notifications: bool
    marketing_notifications: bool
    email_address: str | None = None
    phone_number: str | None = None


class ProcessPendingResponse(BaseModel):
    status: str = "ok"
    processed: int


class OTPResponse(BaseModel):
    otp_id: str
    merchant_id: str
    user_id: str | None = None
    purpose: str
    code: str
    recipient: str
    delivery_method: str
    expires_at: datetime
    verified_at: datetime | None = None
    attempts: int
    max_attempts: int
    reference_id: str | None = None
    metadata: dict = Field(default_factory=dict)
    created_at: datetime | None = None
    status: str


class VerifyOTPResponse(BaseModel):
    verified: bool = True
    otp: OTPResponse


class CleanupOTPsResponse(BaseModel):
    status: str = "ok"
    deleted: int

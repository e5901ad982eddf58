"""HTTP mapping for service errors.

Protean's own handlers cover ``ValidationError`` (400) and
``ObjectNotFoundError`` (404); the service taxonomy is mapped here.
"""

import re

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from notifications.errors import (
    AlreadyVerifiedError,
    AttemptsExhaustedError,
    DeliveryError,
    DeliveryTimeoutError,
    InvalidCodeError,
    NotFoundError,
    NotificationServiceError,
    OTPExpiredError,
    PolicyDeniedError,
    ReferenceMismatchError,
    StorageError,
)
from protean.integrations.fastapi import register_exception_handlers

# Most specific first; Starlette resolves handlers along the MRO anyway.
_STATUS_CODES: dict[type[NotificationServiceError], int] = {
    NotFoundError: 404,
    PolicyDeniedError: 403,
    InvalidCodeError: 400,
    ReferenceMismatchError: 400,
    AlreadyVerifiedError: 409,
    OTPExpiredError: 410,
    AttemptsExhaustedError: 429,
    DeliveryTimeoutError: 504,
    DeliveryError: 502,
    StorageError: 503,
    NotificationServiceError: 500,
}


def _error_code(exc: Exception) -> str:
    name = type(exc).__name__.removesuffix("Error")
    return re.sub(r"(?<!^)(?=[A-Z][a-z])", "_", name).lower()


async def _service_error_handler(request: Request, exc: NotificationServiceError) -> JSONResponse:
    status_code = 500
    for cls in type(exc).__mro__:
        if cls in _STATUS_CODES:
            status_code = _STATUS_CODES[cls]
            break

    content = {"error": exc.message, "code": _error_code(exc)}
    if isinstance(exc, InvalidCodeError):
        content["attempts_remaining"] = exc.attempts_remaining
    if isinstance(exc, DeliveryError):
        content["transient"] = exc.transient
    return JSONResponse(status_code=status_code, content=content)


def register_error_handlers(app: FastAPI) -> None:
    """Install Protean's handlers plus the service error mapping."""
    register_exception_handlers(app)
    for exc_cls in _STATUS_CODES:
        app.add_exception_handler(exc_cls, _service_error_handler)

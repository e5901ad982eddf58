"""Readable failure text for the notifications API, used by the load test journeys.

Error bodies come in three shapes:

- Request validation (422): {"detail": [{"loc": [...], "msg": "..."}]}
- Service errors: {"error": "msg", "code": "snake_case", ...} where wrong OTP
  codes add ``attempts_remaining`` and delivery failures add ``transient``
- Aggregate validation (400): {"error": {"field": ["msg"]}}
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from requests import Response

_MAX_TEXT = 300


def _body(response: Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _field_messages(fields: dict) -> str:
    parts = []
    for field, messages in fields.items():
        if isinstance(messages, list):
            messages = ", ".join(str(m) for m in messages)
        parts.append(f"{field}: {messages}")
    return "; ".join(parts)


def _request_messages(detail: list) -> str:
    parts = []
    for item in detail:
        # Drop the leading "body"/"query" segment; the field path is what matters
        location = ".".join(str(p) for p in item.get("loc", [])[1:])
        message = item.get("msg", str(item))
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


def _service_message(body: dict) -> str:
    text = f"[{body['code']}] {body['error']}" if body.get("code") else str(body["error"])
    if "attempts_remaining" in body:
        text += f" ({body['attempts_remaining']} attempts left)"
    if body.get("transient"):
        text += " (transient)"
    return text


def error_code(response: Response) -> str | None:
    """The service's snake_case error code, when the body carries one."""
    body = _body(response)
    if isinstance(body, dict) and isinstance(body.get("code"), str):
        return body["code"]
    return None


def extract_error_detail(response: Response) -> str:
    """One line describing why ``response`` failed."""
    body = _body(response)
    if not isinstance(body, dict):
        text = (getattr(response, "text", "") or "").strip()
        return text[:_MAX_TEXT] or "(empty response body)"

    if isinstance(body.get("detail"), list):
        return _request_messages(body["detail"])
    if isinstance(body.get("error"), dict):
        return _field_messages(body["error"])
    if "error" in body:
        return _service_message(body)
    return str(body)[:_MAX_TEXT]


def describe_failure(action: str, response: Response, expected: int | None = None) -> str:
    """Locust failure message built from ``action`` and the response."""
    status = f"expected {expected}, got {response.status_code}" if expected else str(response.status_code)
    return f"{action} failed ({status}): {extract_error_detail(response)}"

"""Template registry — maps template names to message template classes.

Each template knows the notification channel it belongs to and renders a
subject and body from a context dict.
"""

from notifications.templates.money_movement import PayoutUpdateTemplate, TransactionUpdateTemplate
from notifications.templates.otp_code import OTPCodeTemplate

TEMPLATE_REGISTRY: dict[str, type] = {
    "otp_code": OTPCodeTemplate,
    "transaction_update": TransactionUpdateTemplate,
    "payout_update": PayoutUpdateTemplate,
}


def get_template(name: str):
    """Look up a template class by name."""
    template_cls = TEMPLATE_REGISTRY.get(name)
    if template_cls is None:
        raise ValueError(f"No template registered under: {name}")
    return template_cls

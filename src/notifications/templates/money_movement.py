"""Transaction and payout update templates — status changes on money movements."""

from decimal import Decimal

from notifications.notification.notification import NotificationChannel


def format_minor_units(amount: int) -> str:
    """Render an amount held in minor units (cents) with two decimals."""
    return f"{Decimal(int(amount)) / Decimal(100):.2f}"


class TransactionUpdateTemplate:
    channel = NotificationChannel.TRANSACTION.value

    @staticmethod
    def render(context: dict) -> dict:
        amount = format_minor_units(context.get("amount", 0))
        currency = context.get("currency", "USD")
        status = context.get("status", "updated")
        return {
            "subject": "Transaction Notification",
            "body": f"Transaction of {currency} {amount} has been {status}",
        }


class PayoutUpdateTemplate:
    channel = NotificationChannel.PAYOUT.value

    @staticmethod
    def render(context: dict) -> dict:
        amount = format_minor_units(context.get("amount", 0))
        currency = context.get("currency", "USD")
        status = context.get("status", "updated")
        return {
            "subject": "Payout Notification",
            "body": f"Payout of {currency} {amount} has been {status}",
        }

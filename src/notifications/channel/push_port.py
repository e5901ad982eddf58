"""Push notification channel port — abstract interface for push providers."""

from abc import ABC, abstractmethod


class PushPort(ABC):
    """Abstract interface for push notification adapters."""

    @abstractmethod
    def send(
        self,
        device_token: str,
        title: str,
        body: str,
        data: dict | None = None,
    ) -> dict:
        """Send a push notification to a single device.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"),
            error (optional), retryable (optional, failures only)
        """
        ...

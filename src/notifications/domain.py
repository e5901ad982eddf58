"""Notifications bounded context — one-time passwords and merchant notifications.

Issues and verifies short-lived one-time codes for sensitive merchant actions
(payouts, withdrawals, settings changes, logins) and dispatches email, SMS
and push notifications gated by each merchant's stored preferences.
"""

from protean.domain import Domain

from notifications.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

# Get logger for this module
logger = get_logger(__name__)

# Domain Composition Root
notifications = Domain(name="notifications")

"""Merchant notifications load testing — Locust entry point.

Discovers all user classes from the scenarios package.
Run specific scenarios with Locust's class selection.

Usage:
    # All scenarios (web UI):
    locust -f loadtests/locustfile.py

    # OTP traffic only:
    locust -f loadtests/locustfile.py OTPUser

    # Stress test:
    locust -f loadtests/locustfile.py SystemBroadcastUser

    # Headless (CI mode):
    locust -f loadtests/locustfile.py NotificationsUser OTPUser --headless \
           -u 50 -r 5 -t 300s --csv=results/loadtest
"""

import logging
import time

import requests
from locust import events

# Import all user classes so Locust discovers them
from loadtests.helpers.response import extract_error_detail
from loadtests.scenarios.notifications import NotificationsUser, SystemBroadcastUser  # noqa: F401
from loadtests.scenarios.otp import OTPUser  # noqa: F401

logger = logging.getLogger("loadtest")


@events.request.add_listener
def on_request(request_type, name, response, exception, **_kw):
    """Log error details for every failed request.

    Fires globally for all scenarios — no per-task wiring needed.
    Expected refusals (403 policy denials, 400/429 wrong codes) are marked
    successful by their journeys but still logged here.
    """
    if exception:
        logger.error("[EXCEPTION] %s %s: %s", request_type, name, exception)
    elif response is not None and response.status_code >= 400:
        detail = extract_error_detail(response)
        logger.error("[%s] %s %s: %s", response.status_code, request_type, name, detail)


@events.test_start.add_listener
def on_test_start(environment, **_kwargs):
    """Log a marker when load test begins."""
    print(f"\n[LOADTEST] Started at {time.strftime('%H:%M:%S')}")
    print(f"[LOADTEST] Target host: {environment.host}")
    print()


@events.test_stop.add_listener
def on_test_stop(environment, **_kwargs):
    """Drain pending notifications left behind by timeouts when the test ends."""
    print(f"\n[LOADTEST] Stopped at {time.strftime('%H:%M:%S')}")
    if not environment.host:
        return
    try:
        resp = requests.post(f"{environment.host}/notifications/maintenance/process-pending", json={"limit": 1000}, timeout=30)
        print(f"[LOADTEST] Pending notifications re-delivered: {resp.json().get('processed')}\n")
    except requests.RequestException as e:
        print(f"[LOADTEST] Could not process pending notifications: {e}\n")

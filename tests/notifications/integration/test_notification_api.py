"""Integration tests for Notifications API endpoints."""

from fastapi.testclient import TestClient
from notifications.notification.notification import Notification, NotificationStatus
from notifications.preference.preference import NotificationPreference
from protean import current_domain


def _get_test_client():
    """Build a minimal FastAPI test client with notifications routes."""
    from fastapi import FastAPI
    from notifications.api.errors import register_error_handlers
    from notifications.api.routes import router

    app = FastAPI()
    app.include_router(router)
    register_error_handlers(app)
    return TestClient(app, raise_server_exceptions=False)


def _create_preference(merchant_id="m-api-1", **overrides):
    pref = NotificationPreference.create_default(merchant_id=merchant_id, email_address="ops@m.test")
    for field, value in overrides.items():
        setattr(pref, field, value)
    current_domain.repository_for(NotificationPreference).add(pref)
    return merchant_id


def _create_pending(merchant_id="m-api-1", **overrides):
    defaults = {
        "merchant_id": merchant_id,
        "notification_type": "email",
        "channel": "transaction",
        "recipient": "ops@m.test",
        "body": "Pending body",
    }
    defaults.update(overrides)
    n = Notification.create(**defaults)
    current_domain.repository_for(Notification).add(n)
    return str(n.id)


def _payload(**overrides):
    payload = {
        "merchant_id": "m-api-1",
        "type": "email",
        "channel": "transaction",
        "recipient": "owner@m.test",
        "subject": "Heads up",
        "message": "Something happened",
    }
    payload.update(overrides)
    return payload


# ---------------------------------------------------------------
# Sending
# ---------------------------------------------------------------
class TestSendAPI:
    def test_send_notification(self, email_adapter):
        client = _get_test_client()
        resp = client.post("/notifications", json=_payload())
        assert resp.status_code == 201
        data = resp.json()
        assert data["status"] == "sent"
        assert data["retry_count"] == 1
        assert data["recipient"] == "owner@m.test"
        assert len(email_adapter.sent_emails) == 1

    def test_send_backfills_recipient(self):
        _create_preference()
        client = _get_test_client()
        resp = client.post("/notifications", json=_payload(recipient=None))
        assert resp.status_code == 201
        assert resp.json()["recipient"] == "ops@m.test"

    def test_send_denied_by_preference(self):
        client = _get_test_client()
        resp = client.post("/notifications", json=_payload(type="sms", recipient="+15550100"))
        assert resp.status_code == 403
        assert resp.json()["code"] == "policy_denied"

    def test_send_without_any_recipient(self):
        _create_preference("m-api-2", email_address=None)
        client = _get_test_client()
        resp = client.post("/notifications", json=_payload(merchant_id="m-api-2", recipient=None))
        assert resp.status_code == 400

    def test_send_unknown_type(self):
        client = _get_test_client()
        resp = client.post("/notifications", json=_payload(type="fax"))
        assert resp.status_code == 400

    def test_gateway_failure(self, email_adapter):
        email_adapter.configure(should_succeed=False, failure_reason="Hard bounce")
        client = _get_test_client()
        resp = client.post("/notifications", json=_payload())
        assert resp.status_code == 502
        data = resp.json()
        assert data["error"] == "Hard bounce"
        assert data["transient"] is False

    def test_transaction_notification(self):
        client = _get_test_client()
        resp = client.post(
            "/notifications/transactions",
            json={"merchant_id": "m-api-1", "recipient": "ops@m.test", "amount": 125050, "currency": "USD", "status": "completed"},
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["channel"] == "transaction"
        assert data["message"] == "Transaction of USD 1250.50 has been completed"

    def test_payout_notification(self):
        client = _get_test_client()
        resp = client.post(
            "/notifications/payouts",
            json={"merchant_id": "m-api-1", "recipient": "ops@m.test", "amount": 500, "currency": "EUR", "status": "failed"},
        )
        assert resp.status_code == 201
        assert resp.json()["subject"] == "Payout Notification"

    def test_money_movement_validation(self):
        client = _get_test_client()
        resp = client.post(
            "/notifications/payouts",
            json={"merchant_id": "m-api-1", "amount": -1, "currency": "EUR", "status": "failed"},
        )
        assert resp.status_code == 422


# ---------------------------------------------------------------
# Preferences endpoints
# ---------------------------------------------------------------
class TestPreferencesAPI:
    def test_get_preferences_returns_defaults(self):
        client = _get_test_client()
        resp = client.get("/notifications/preferences/m-new")
        assert resp.status_code == 200
        data = resp.json()
        assert data["merchant_id"] == "m-new"
        assert data["email_enabled"] is True
        assert data["sms_enabled"] is False
        assert data["marketing_notifications"] is False

    def test_update_preferences(self):
        mid = _create_preference("m-api-up-1")
        client = _get_test_client()
        resp = client.put(f"/notifications/preferences/{mid}", json={"sms_enabled": True, "phone_number": "+15550100"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

        data = client.get(f"/notifications/preferences/{mid}").json()
        assert data["sms_enabled"] is True
        assert data["phone_number"] == "+15550100"

    def test_update_unknown_merchant(self):
        client = _get_test_client()
        resp = client.put("/notifications/preferences/m-missing", json={"sms_enabled": True})
        assert resp.status_code == 404

    def test_update_with_nothing_to_change(self):
        mid = _create_preference("m-api-up-2")
        client = _get_test_client()
        resp = client.put(f"/notifications/preferences/{mid}", json={})
        assert resp.status_code == 200


# ---------------------------------------------------------------
# History and single notification
# ---------------------------------------------------------------
class TestHistoryAPI:
    def test_list_by_merchant(self):
        client = _get_test_client()
        client.post("/notifications", json=_payload())
        client.post("/notifications", json=_payload(merchant_id="m-other"))

        resp = client.get("/notifications/merchant/m-api-1")
        assert resp.status_code == 200
        assert len(resp.json()["notifications"]) == 1

    def test_list_by_user(self):
        client = _get_test_client()
        client.post("/notifications", json=_payload(user_id="u-9"))
        resp = client.get("/notifications/user/u-9")
        assert resp.status_code == 200
        assert resp.json()["notifications"][0]["user_id"] == "u-9"

    def test_get_notification(self):
        nid = _create_pending()
        client = _get_test_client()
        resp = client.get(f"/notifications/{nid}")
        assert resp.status_code == 200
        assert resp.json()["status"] == "pending"

    def test_get_unknown_notification(self):
        client = _get_test_client()
        resp = client.get("/notifications/does-not-exist")
        assert resp.status_code == 404
        assert resp.json()["code"] == "notification_not_found"


# ---------------------------------------------------------------
# Maintenance and delivery receipts
# ---------------------------------------------------------------
class TestMaintenanceAPI:
    def test_process_pending(self):
        nid = _create_pending()
        client = _get_test_client()
        resp = client.post("/notifications/maintenance/process-pending", json={"limit": 10})
        assert resp.status_code == 200
        assert resp.json()["processed"] == 1

        stored = current_domain.repository_for(Notification).get(nid)
        assert stored.status == NotificationStatus.SENT.value

    def test_process_pending_without_body(self):
        client = _get_test_client()
        resp = client.post("/notifications/maintenance/process-pending")
        assert resp.status_code == 200
        assert resp.json()["processed"] == 0

    def test_mark_delivered(self):
        client = _get_test_client()
        nid = client.post("/notifications", json=_payload()).json()["notification_id"]

        resp = client.post(f"/notifications/{nid}/delivered")
        assert resp.status_code == 200
        assert client.get(f"/notifications/{nid}").json()["status"] == "delivered"

    def test_mark_pending_delivered_is_rejected(self):
        nid = _create_pending()
        client = _get_test_client()
        resp = client.post(f"/notifications/{nid}/delivered")
        assert resp.status_code == 400

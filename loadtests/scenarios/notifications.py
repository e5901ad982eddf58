"""Notification dispatch load test scenarios.

Stateful journeys covering preference setup, preference-gated sends
and delivery receipts.
"""

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import merchant_id, money_movement_data, notification_data, preferences_update
from loadtests.helpers.response import describe_failure, error_code
from loadtests.helpers.state import MerchantState


class MerchantNotificationJourney(SequentialTaskSet):
    """Read defaults -> store contacts -> transaction + payout emails -> history -> delivered.

    Sends omit the recipient so every one exercises contact-point backfill.
    """

    def on_start(self):
        self.state = MerchantState(merchant_id=merchant_id())

    @task
    def read_defaults(self):
        with self.client.get(
            f"/notifications/preferences/{self.state.merchant_id}",
            catch_response=True,
            name="GET /notifications/preferences/{merchant_id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(describe_failure("Read preferences", resp))
                self.interrupt()

    @task
    def store_contacts(self):
        with self.client.put(
            f"/notifications/preferences/{self.state.merchant_id}",
            json=preferences_update(),
            catch_response=True,
            name="PUT /notifications/preferences/{merchant_id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(describe_failure("Update preferences", resp))
                self.interrupt()

    def _send(self, path, payload, name):
        with self.client.post(path, json=payload, catch_response=True, name=name) as resp:
            if resp.status_code == 201:
                self.state.notification_ids.append(resp.json()["notification_id"])
            else:
                resp.failure(describe_failure("Send", resp))

    @task
    def transaction_update(self):
        self._send(
            "/notifications/transactions",
            money_movement_data(self.state.merchant_id),
            "POST /notifications/transactions",
        )

    @task
    def payout_update(self):
        self._send(
            "/notifications/payouts",
            money_movement_data(self.state.merchant_id),
            "POST /notifications/payouts",
        )

    @task
    def history(self):
        self.client.get(
            f"/notifications/merchant/{self.state.merchant_id}",
            name="GET /notifications/merchant/{merchant_id}",
        )

    @task
    def delivery_receipts(self):
        for notification_id in self.state.notification_ids:
            with self.client.post(
                f"/notifications/{notification_id}/delivered",
                catch_response=True,
                name="POST /notifications/{id}/delivered",
            ) as resp:
                if resp.status_code != 200:
                    resp.failure(describe_failure("Delivery receipt", resp))

    @task
    def done(self):
        self.interrupt()


class PolicyDeniedJourney(SequentialTaskSet):
    """Turn payouts off -> payout email is refused with 403."""

    def on_start(self):
        self.state = MerchantState(merchant_id=merchant_id())

    @task
    def disable_payouts(self):
        self.client.get(
            f"/notifications/preferences/{self.state.merchant_id}",
            name="GET /notifications/preferences/{merchant_id}",
        )
        self.client.put(
            f"/notifications/preferences/{self.state.merchant_id}",
            json={"payout_notifications": False, "email_address": "ops@loadtest.example"},
            name="PUT /notifications/preferences/{merchant_id}",
        )

    @task
    def payout_refused(self):
        with self.client.post(
            "/notifications/payouts",
            json=money_movement_data(self.state.merchant_id),
            catch_response=True,
            name="POST /notifications/payouts (denied)",
        ) as resp:
            if resp.status_code == 403 and error_code(resp) == "policy_denied":
                resp.success()
            else:
                resp.failure(describe_failure("Denied payout", resp, expected=403))

    @task
    def done(self):
        self.interrupt()


class NotificationsUser(HttpUser):
    """Locust user simulating merchant notification traffic.

    Weighted distribution:
    - 80% Full merchant journey
    - 20% Preference-denied sends
    """

    wait_time = between(0.5, 2.0)
    tasks = {
        MerchantNotificationJourney: 8,
        PolicyDeniedJourney: 2,
    }


class SystemBroadcastUser(HttpUser):
    """Stress: back-to-back system notifications, which bypass channel toggles."""

    wait_time = between(0.1, 0.3)

    def on_start(self):
        self.merchant = merchant_id()
        self.client.get(
            f"/notifications/preferences/{self.merchant}",
            name="GET /notifications/preferences/{merchant_id}",
        )
        self.client.put(
            f"/notifications/preferences/{self.merchant}",
            json={"email_address": "ops@loadtest.example"},
            name="PUT /notifications/preferences/{merchant_id}",
        )

    @task
    def broadcast(self):
        self.client.post("/notifications", json=notification_data(self.merchant), name="POST /notifications (system)")

"""OTP load test scenarios.

Codes are never echoed back by the API, so journeys exercise issuance,
wrong-code handling, resend and exhaustion. Successful verification is
covered by the service's own test suite.
"""

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import merchant_id, otp_request, wrong_code
from loadtests.helpers.response import describe_failure, error_code
from loadtests.helpers.state import OTPState


class _OTPJourney(SequentialTaskSet):
    delivery_method: str | None = None

    def on_start(self):
        self.state = OTPState(merchant_id=merchant_id())

    def _generate(self, path="/otp/generate", name="POST /otp/generate"):
        self.state.request = self.state.request or otp_request(self.state.merchant_id, self.delivery_method)
        with self.client.post(path, json=self.state.request, catch_response=True, name=name) as resp:
            if resp.status_code == 201:
                self.state.otp_id = resp.json()["otp_id"]
                self.state.attempts = 0
                self.state.current_status = "pending"
            else:
                resp.failure(describe_failure("OTP issue", resp))
                self.interrupt()

    def _verify_wrong(self, expected_status, expected_code="invalid_code"):
        payload = {
            "merchant_id": self.state.merchant_id,
            "purpose": self.state.request["purpose"],
            "code": wrong_code(),
            "reference_id": self.state.request["reference_id"],
        }
        with self.client.post("/otp/verify", json=payload, catch_response=True, name="POST /otp/verify (wrong)") as resp:
            self.state.attempts += 1
            if resp.status_code == expected_status and error_code(resp) == expected_code:
                resp.success()
            else:
                resp.failure(describe_failure("Wrong-code verify", resp, expected=expected_status))


class OTPResendJourney(_OTPJourney):
    """Generate -> wrong guess -> resend -> wrong guess.

    Models a user who mistypes, asks for a new code, and mistypes again.
    """

    @task
    def generate(self):
        self._generate()

    @task
    def first_guess(self):
        self._verify_wrong(400)

    @task
    def resend(self):
        self._generate(path="/otp/resend", name="POST /otp/resend")

    @task
    def second_guess(self):
        self._verify_wrong(400)

    @task
    def done(self):
        self.interrupt()


class OTPExhaustionJourney(_OTPJourney):
    """Generate -> three wrong guesses; the last one exhausts the code."""

    delivery_method = "sms"

    @task
    def generate(self):
        self._generate()

    @task
    def guesses(self):
        self._verify_wrong(400)
        self._verify_wrong(400)
        self._verify_wrong(429, "attempts_exhausted")
        self.state.current_status = "attempts_exhausted"

    @task
    def done(self):
        self.interrupt()


class OTPUser(HttpUser):
    """Locust user simulating OTP traffic.

    Weighted distribution:
    - 70% Resend journey
    - 30% Exhaustion journey
    """

    wait_time = between(0.5, 2.0)
    tasks = {
        OTPResendJourney: 7,
        OTPExhaustionJourney: 3,
    }

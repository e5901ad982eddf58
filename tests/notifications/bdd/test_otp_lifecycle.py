"""BDD tests for the OTP lifecycle."""

from datetime import timedelta

from notifications.channel import get_channel
from notifications.errors import NotificationServiceError
from notifications.otp.engine import generate_otp, verify_otp
from notifications.otp.otp import OneTimePassword
from protean import current_domain
from pytest_bdd import parsers, scenarios, then, when

scenarios("features/otp_lifecycle.feature")


def _stored_code(otp):
    return current_domain.repository_for(OneTimePassword).get(otp["issued"].otp_id).code


def _submit(otp, code, error, now=None):
    issued = otp["issued"]
    try:
        otp["result"] = verify_otp(issued.merchant_id, issued.purpose, code, now=now)
        error["exc"] = None
    except NotificationServiceError as exc:
        error["exc"] = exc


@when(
    parsers.cfparse('a "{purpose}" code is requested by "{method}" for "{recipient}"'),
    target_fixture="otp",
)
def request_code(merchant_id, purpose, method, recipient, error):
    otp = {"issued": None, "result": None}
    try:
        otp["issued"] = generate_otp(
            merchant_id=merchant_id,
            purpose=purpose,
            recipient=recipient,
            delivery_method=method,
        )
    except NotificationServiceError as exc:
        error["exc"] = exc
    return otp


@when("the merchant submits the correct code")
def submit_correct(otp, error):
    _submit(otp, _stored_code(otp), error)


@when(parsers.cfparse("the merchant submits the correct code {minutes:d} minutes later"))
def submit_correct_later(otp, error, minutes):
    issued = otp["issued"]
    _submit(otp, _stored_code(otp), error, now=issued.created_at + timedelta(minutes=minutes))


@when(parsers.cfparse("the merchant submits a wrong code {times:d} times"))
def submit_wrong(otp, error, times):
    wrong = "".join(str((int(d) + 1) % 10) for d in _stored_code(otp))
    for _ in range(times):
        _submit(otp, wrong, error)


@then("the returned code is masked")
def code_is_masked(otp):
    assert otp["issued"].code == "******"


@then("the code was delivered by SMS")
def delivered_by_sms(otp):
    messages = get_channel("sms").sent_messages
    assert len(messages) == 1
    assert _stored_code(otp) in messages[0]["body"]


@then("the OTP is verified")
def otp_verified(otp, error):
    assert error["exc"] is None
    assert otp["result"].status == "verified"


@then(parsers.cfparse("the last attempt fails with {error_name}"))
def last_attempt_fails(error, error_name):
    assert type(error["exc"]).__name__ == error_name

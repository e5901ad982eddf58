from notifications.utils.logging import mask_contact, redact_sensitive


class TestMaskContact:
    def test_email_keeps_first_letter_and_domain(self):
        assert mask_contact("owner@example.com") == "o***@example.com"

    def test_phone_keeps_last_four_digits(self):
        assert mask_contact("+15550100") == "*****0100"

    def test_short_values_are_left_alone(self):
        assert mask_contact("123") == "123"

    def test_empty(self):
        assert mask_contact("") == ""


class TestRedactSensitive:
    def test_codes_never_survive(self):
        event = redact_sensitive(None, "info", {"event": "OTP generated", "code": "042917"})
        assert event["code"] == "[redacted]"

    def test_recipients_are_masked(self):
        event = redact_sensitive(None, "info", {"event": "sent", "recipient": "+15550100", "to": "a@b.test"})
        assert event["recipient"] == "*****0100"
        assert event["to"] == "a***@b.test"

    def test_other_keys_untouched(self):
        event = redact_sensitive(None, "info", {"event": "sent", "merchant_id": "m1", "error_code": "x"})
        assert event == {"event": "sent", "merchant_id": "m1", "error_code": "x"}

"""
Input parsing tests.

Verifies:
- Amounts convert from major units to integer cents and reject bad input
- Required-field checks use the client-facing messages
- Emails are normalized; passwords are not touched
"""

import pytest

from titan.validation import (
    MAX_AMOUNT_CENTS,
    ValidationError,
    format_cents,
    parse_amount,
    parse_cashier_movement,
    parse_credentials,
    parse_otp_verification,
    parse_password_change,
    parse_profile_update,
    parse_registration,
    parse_transfer,
)


# =============================================================================
# AMOUNTS
# =============================================================================


class TestAmount:

    @pytest.mark.parametrize("value,cents", [
        (1, 100),
        (100.5, 10050),
        (0.01, 1),
        (19.99, 1999),
        (200, 20000),
    ])
    def test_valid(self, value, cents):
        assert parse_amount(value) == cents

    @pytest.mark.parametrize("value", [0, -1, -0.01, 0.0])
    def test_non_positive(self, value):
        with pytest.raises(ValidationError, match="Amount Invalid."):
            parse_amount(value)

    @pytest.mark.parametrize("value", ["100", True, False, [], {}, float("nan"), float("inf")])
    def test_not_a_number(self, value):
        with pytest.raises(ValidationError, match="Amount must be a number."):
            parse_amount(value)

    def test_too_many_decimals(self):
        with pytest.raises(ValidationError):
            parse_amount(1.005)

    def test_upper_bound(self):
        assert parse_amount(MAX_AMOUNT_CENTS / 100) == MAX_AMOUNT_CENTS
        with pytest.raises(ValidationError):
            parse_amount(MAX_AMOUNT_CENTS // 100 + 1)

    @pytest.mark.parametrize("value", [1e300, 10**40, 1e30, 10**400])
    def test_huge_amounts(self, value):
        with pytest.raises(ValidationError, match="Amount cannot exceed"):
            parse_amount(value)

    @pytest.mark.parametrize("cents,text", [(0, "0.00"), (5, "0.05"), (12345, "123.45"), (100, "1.00")])
    def test_format_cents(self, cents, text):
        assert format_cents(cents) == text


# =============================================================================
# PAYLOADS
# =============================================================================


class TestPayloads:

    @pytest.mark.parametrize("payload", [None, {}, {"email": "a@b.c"}, {"password": "x"}, {"email": " ", "password": "x"}])
    def test_credentials_required(self, payload):
        with pytest.raises(ValidationError, match="Email and password are required"):
            parse_credentials(payload)

    def test_credentials_normalize_email_only(self):
        data = parse_credentials({"email": "  Alice@Example.COM ", "password": " Pass word1! "})
        assert data.email == "alice@example.com"
        assert data.password == " Pass word1! "

    def test_non_object_payload(self):
        with pytest.raises(ValidationError):
            parse_credentials(["email", "password"])

    def test_invalid_email(self):
        with pytest.raises(ValidationError, match="Invalid email address"):
            parse_credentials({"email": "alice", "password": "x"})

    def test_registration_missing_field(self):
        with pytest.raises(ValidationError, match="Missing required input fields"):
            parse_registration({"email": "a@b.c", "password": "Password123!", "fullName": "A"})

    def test_registration(self):
        data = parse_registration({
            "email": "A@B.C",
            "password": "Password123!",
            "fullName": " Ann Lee ",
            "phoneNumber": "555-0101",
        })
        assert (data.email, data.full_name, data.phone_number) == ("a@b.c", "Ann Lee", "555-0101")

    def test_otp_accepts_int(self):
        assert parse_otp_verification({"email": "a@b.c", "otp": 4821}).otp == "4821"

    def test_otp_required(self):
        with pytest.raises(ValidationError, match="Email and OTP are required"):
            parse_otp_verification({"email": "a@b.c"})

    def test_password_change_required(self):
        with pytest.raises(ValidationError, match="New Password and Old Password are required"):
            parse_password_change({"oldPassword": "Password123!"})

    def test_cashier_movement(self):
        data = parse_cashier_movement({"accountNumber": 1234567890, "amount": 12.5})
        assert data.account_number == "1234567890"
        assert data.amount_cents == 1250

    def test_cashier_movement_required(self):
        with pytest.raises(ValidationError, match="Account number and amount are required"):
            parse_cashier_movement({"accountNumber": "1234567890"})

    def test_bad_account_number(self):
        with pytest.raises(ValidationError):
            parse_transfer({"referenceAccount": "12-34", "amount": 1})

    def test_profile_update_partial(self):
        data = parse_profile_update({"phoneNumber": "555-0199"})
        assert data.full_name is None
        assert data.phone_number == "555-0199"

    @pytest.mark.parametrize("payload", [None, {}, {"fullName": ""}, {"fullName": "  ", "phoneNumber": None}])
    def test_profile_update_empty(self, payload):
        with pytest.raises(ValidationError, match="Provide at least one field to update"):
            parse_profile_update(payload)

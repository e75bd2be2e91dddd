"""
Credential store tests.

Verifies:
- Password strength rules and bcrypt hashing
- Unknown email and wrong password fail identically
- Customer login issues an OTP by mail and only the OTP yields a token
- Password reset and cashier password change
"""

import pytest

from titan.services import auth_service, token_service
from titan.validation import GoneError, NotFoundError, UnauthorizedError, ValidationError

from conftest import PASSWORD, latest_otp


# =============================================================================
# PASSWORDS
# =============================================================================


class TestPasswords:

    @pytest.mark.parametrize("weak", [
        "Sh0rt!",
        "alllowercase1!",
        "ALLUPPERCASE1!",
        "NoDigitsHere!",
        "NoSpecial123",
        "Aa1!" + "x" * 70,
    ])
    def test_weak_passwords_rejected(self, weak):
        with pytest.raises(auth_service.PasswordValidationError):
            auth_service.validate_password_strength(weak)

    def test_strong_password_accepted(self):
        auth_service.validate_password_strength(PASSWORD)

    def test_hash_and_verify(self, app):
        hashed = auth_service.hash_password(PASSWORD)
        assert hashed != PASSWORD
        assert hashed.startswith("$2")
        assert auth_service.verify_password(PASSWORD, hashed)
        assert not auth_service.verify_password("Password123?", hashed)

    def test_verify_malformed_hash(self):
        assert auth_service.verify_password(PASSWORD, "not-a-bcrypt-hash") is False


# =============================================================================
# LOGIN
# =============================================================================


class TestLogin:

    def test_uniform_failure_message(self, db_session, make_account):
        make_account(email="alice@example.com")

        with pytest.raises(UnauthorizedError) as wrong_password:
            auth_service.authenticate_account("alice@example.com", "Wrong123!")
        with pytest.raises(UnauthorizedError) as unknown_email:
            auth_service.authenticate_account("nobody@example.com", PASSWORD)

        assert str(wrong_password.value) == str(unknown_email.value)

    def test_cashier_login(self, db_session, cashier):
        found, token = auth_service.login_cashier(cashier.email, PASSWORD)
        principal = token_service.verify_token(token)

        assert found.id == cashier.id
        assert principal.role == token_service.ROLE_CASHIER
        assert principal.id == cashier.id

    def test_customer_two_step_login(self, db_session, make_account, outbox):
        account = make_account(email="alice@example.com")

        returned = auth_service.begin_customer_login("alice@example.com", PASSWORD)
        assert returned.id == account.id
        assert len(outbox) == 1
        code = latest_otp(outbox, "alice@example.com")

        found, token = auth_service.complete_customer_login("alice@example.com", code)
        principal = token_service.verify_token(token)
        assert found.id == account.id
        assert principal.role == token_service.ROLE_USER
        assert principal.id == account.id

        with pytest.raises(GoneError):
            auth_service.complete_customer_login("alice@example.com", code)

    def test_wrong_password_sends_nothing(self, db_session, make_account, outbox):
        make_account(email="alice@example.com")
        with pytest.raises(UnauthorizedError):
            auth_service.begin_customer_login("alice@example.com", "Wrong123!")
        assert outbox == []

    def test_create_cashier_duplicate(self, db_session, cashier):
        with pytest.raises(ValueError):
            auth_service.create_cashier(cashier.email, PASSWORD)


# =============================================================================
# PASSWORD RESET / CHANGE
# =============================================================================


class TestPasswordManagement:

    def test_reset_unknown_email(self, db_session, outbox):
        with pytest.raises(NotFoundError):
            auth_service.request_password_reset("nobody@example.com")
        assert outbox == []

    def test_reset_flow(self, db_session, make_account, outbox):
        make_account(email="alice@example.com")
        auth_service.request_password_reset("alice@example.com")
        code = latest_otp(outbox, "alice@example.com")

        auth_service.reset_password("alice@example.com", code, "NewPassw0rd!")

        auth_service.authenticate_account("alice@example.com", "NewPassw0rd!")
        with pytest.raises(UnauthorizedError):
            auth_service.authenticate_account("alice@example.com", PASSWORD)

    def test_weak_reset_keeps_otp(self, db_session, make_account, outbox):
        make_account(email="alice@example.com")
        auth_service.request_password_reset("alice@example.com")
        code = latest_otp(outbox, "alice@example.com")

        with pytest.raises(ValidationError):
            auth_service.reset_password("alice@example.com", code, "weak")

        auth_service.reset_password("alice@example.com", code, "NewPassw0rd!")

    def test_reset_without_otp(self, db_session, make_account):
        make_account(email="alice@example.com")
        with pytest.raises(GoneError):
            auth_service.reset_password("alice@example.com", "1234", "NewPassw0rd!")

    def test_change_cashier_password(self, db_session, cashier):
        with pytest.raises(UnauthorizedError, match="Your Old Password is incorrect"):
            auth_service.change_cashier_password(cashier, "Wrong123!", "NewPassw0rd!")

        auth_service.change_cashier_password(cashier, PASSWORD, "NewPassw0rd!")
        auth_service.authenticate_cashier(cashier.email, "NewPassw0rd!")

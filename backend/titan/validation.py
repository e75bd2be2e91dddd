from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Optional


# Largest single movement: $999,999,999.99
MAX_AMOUNT_CENTS = 99_999_999_999

CENTS = Decimal("0.01")


class BankError(Exception):
    """Base for failures that map onto an HTTP status."""
    status_code = 500


class ValidationError(BankError):
    """400-level input problem."""
    status_code = 400


class InsufficientBalanceError(ValidationError):
    """400-level: balance lower than the requested debit."""


class UnauthorizedError(BankError):
    """401-level: bad credentials, OTP, or session token."""
    status_code = 401


class NotFoundError(BankError):
    """404-level: unknown account, cashier, or email."""
    status_code = 404


class ConflictError(BankError):
    """409-level business rule conflict (e.g., duplicate email)."""
    status_code = 409


class GoneError(BankError):
    """410-level: OTP absent, consumed, or expired."""
    status_code = 410


class LockedError(BankError):
    """423-level: account status forbids the operation."""
    status_code = 423


def format_cents(cents: int) -> str:
    """12345 -> '123.45'."""
    return str((Decimal(cents) * CENTS).quantize(CENTS))


def parse_amount(value: Any) -> int:
    """
    Validate a JSON amount in major units and return integer cents.

    Accepts ints and floats with at most two decimal places. Rejects
    booleans, strings, NaN/infinity, zero and negatives.
    """
    if value is None:
        raise ValidationError("Amount is required")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError("Amount must be a number.")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError("Amount must be a number.")

    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError("Amount must be a number.")

    if amount <= 0:
        raise ValidationError("Amount Invalid.")
    # Bound before quantize: huge values overflow the decimal context
    if amount > Decimal(MAX_AMOUNT_CENTS) * CENTS:
        raise ValidationError(f"Amount cannot exceed {format_cents(MAX_AMOUNT_CENTS)}")
    if amount != amount.quantize(CENTS):
        raise ValidationError("Amount cannot have more than two decimal places")

    return int(amount * 100)


def _payload_dict(payload: Any) -> dict:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


def _require(payload: dict, *fields: str, message: str) -> None:
    for field in fields:
        value = payload.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(message)


def _text(payload: dict, field: str, *, max_length: int = 255) -> str:
    value = payload.get(field)
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return value


def _email(payload: dict, field: str = "email") -> str:
    email = _text(payload, field).lower()
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        raise ValidationError("Invalid email address")
    return email


def _password(payload: dict, field: str) -> str:
    # Passwords are never stripped: whitespace is significant
    value = payload.get(field)
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    return value


def _account_number(payload: dict, field: str) -> str:
    value = payload.get(field)
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an account number")
    if isinstance(value, int):
        value = str(value)
    if not isinstance(value, str) or not value.strip().isdigit():
        raise ValidationError(f"{field} must be an account number")
    return value.strip()


def _otp(payload: dict, field: str = "otp") -> str:
    value = payload.get(field)
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str):
        raise ValidationError("OTP must be a string of digits")
    return value.strip()


@dataclass(frozen=True)
class CredentialsInput:
    email: str
    password: str


@dataclass(frozen=True)
class RegistrationInput:
    email: str
    password: str
    full_name: str
    phone_number: str


@dataclass(frozen=True)
class EmailInput:
    email: str


@dataclass(frozen=True)
class OtpVerificationInput:
    email: str
    otp: str


@dataclass(frozen=True)
class PasswordResetInput:
    email: str
    otp: str
    new_password: str


@dataclass(frozen=True)
class PasswordChangeInput:
    old_password: str
    new_password: str


@dataclass(frozen=True)
class AccountNumberInput:
    account_number: str


@dataclass(frozen=True)
class CashierMovementInput:
    account_number: str
    amount_cents: int


@dataclass(frozen=True)
class TransferInput:
    reference_account: str
    amount_cents: int


@dataclass(frozen=True)
class ProfileUpdateInput:
    full_name: Optional[str] = None
    phone_number: Optional[str] = None


def parse_credentials(payload: Any) -> CredentialsInput:
    data = _payload_dict(payload)
    _require(data, "email", "password", message="Email and password are required")
    return CredentialsInput(email=_email(data), password=_password(data, "password"))


def parse_registration(payload: Any) -> RegistrationInput:
    data = _payload_dict(payload)
    _require(data, "email", "password", "fullName", "phoneNumber", message="Missing required input fields")
    return RegistrationInput(
        email=_email(data),
        password=_password(data, "password"),
        full_name=_text(data, "fullName", max_length=128),
        phone_number=_text(data, "phoneNumber", max_length=32),
    )


def parse_email(payload: Any) -> EmailInput:
    data = _payload_dict(payload)
    _require(data, "email", message="Email is required")
    return EmailInput(email=_email(data))


def parse_otp_verification(payload: Any) -> OtpVerificationInput:
    data = _payload_dict(payload)
    _require(data, "email", "otp", message="Email and OTP are required")
    return OtpVerificationInput(email=_email(data), otp=_otp(data))


def parse_password_reset(payload: Any) -> PasswordResetInput:
    data = _payload_dict(payload)
    _require(data, "email", "otp", "newPassword", message="Missing required input fields")
    return PasswordResetInput(
        email=_email(data),
        otp=_otp(data),
        new_password=_password(data, "newPassword"),
    )


def parse_password_change(payload: Any) -> PasswordChangeInput:
    data = _payload_dict(payload)
    _require(data, "oldPassword", "newPassword", message="New Password and Old Password are required")
    return PasswordChangeInput(
        old_password=_password(data, "oldPassword"),
        new_password=_password(data, "newPassword"),
    )


def parse_account_number(payload: Any) -> AccountNumberInput:
    data = _payload_dict(payload)
    _require(data, "accountNumber", message="Account number is required")
    return AccountNumberInput(account_number=_account_number(data, "accountNumber"))


def parse_cashier_movement(payload: Any) -> CashierMovementInput:
    data = _payload_dict(payload)
    _require(data, "accountNumber", "amount", message="Account number and amount are required")
    return CashierMovementInput(
        account_number=_account_number(data, "accountNumber"),
        amount_cents=parse_amount(data.get("amount")),
    )


def parse_transfer(payload: Any) -> TransferInput:
    data = _payload_dict(payload)
    _require(data, "referenceAccount", "amount", message="Account number and amount are required")
    return TransferInput(
        reference_account=_account_number(data, "referenceAccount"),
        amount_cents=parse_amount(data.get("amount")),
    )


def parse_profile_update(payload: Any) -> ProfileUpdateInput:
    """Partial update: absent or blank fields are left unchanged."""
    data = _payload_dict(payload)

    full_name = None
    phone_number = None
    if data.get("fullName") not in (None, ""):
        full_name = _text(data, "fullName", max_length=128) or None
    if data.get("phoneNumber") not in (None, ""):
        phone_number = _text(data, "phoneNumber", max_length=32) or None

    if full_name is None and phone_number is None:
        raise ValidationError("Provide at least one field to update")

    return ProfileUpdateInput(full_name=full_name, phone_number=phone_number)

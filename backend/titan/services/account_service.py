# Overview: Service-layer operations for customer accounts; registration and read-side lookups.

"""
Account Directory

Registration plus read-mostly lookups over the same tables the ledger
mutates: profile, cashier-facing summary, transaction history, and
partial profile updates. Nothing here changes a balance.
"""

import secrets

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Account, Transaction
from ..models.accounts import ACCOUNT_STATUS_PENDING, VALID_ACCOUNT_STATUSES
from ..validation import (
    ConflictError,
    LockedError,
    NotFoundError,
    ProfileUpdateInput,
    RegistrationInput,
    ValidationError,
)


ACCOUNT_NUMBER_DIGITS = 10
ACCOUNT_NUMBER_ATTEMPTS = 5


def generate_account_number() -> str:
    """Random 10-digit account number with a non-zero leading digit."""
    low = 10 ** (ACCOUNT_NUMBER_DIGITS - 1)
    return str(low + secrets.randbelow(9 * low))


def _email_taken(email: str) -> bool:
    return db.session.query(Account.id).filter_by(email=email).first() is not None


def register_account(data: RegistrationInput) -> Account:
    """
    Create a customer account in 'pending' status with a zero balance.

    Raises:
        ConflictError: email already registered
        PasswordValidationError: password too weak
    """
    from .auth_service import hash_password

    if _email_taken(data.email):
        raise ConflictError("User already exists with the given email")

    password_hash = hash_password(data.password)

    for _ in range(ACCOUNT_NUMBER_ATTEMPTS):
        account = Account(
            account_number=generate_account_number(),
            email=data.email,
            full_name=data.full_name,
            phone_number=data.phone_number,
            password_hash=password_hash,
            balance_cents=0,
            status=ACCOUNT_STATUS_PENDING,
        )
        db.session.add(account)
        try:
            db.session.commit()
            return account
        except IntegrityError:
            db.session.rollback()
            # Either a concurrent registration took the email, or the
            # account number collided; only the latter is worth retrying
            if _email_taken(data.email):
                raise ConflictError("User already exists with the given email")

    raise RuntimeError("Could not allocate a unique account number")


def get_account(account_id: int) -> Account | None:
    return db.session.get(Account, account_id)


def get_account_by_number(account_number: str) -> Account | None:
    return db.session.query(Account).filter_by(account_number=account_number).first()


def get_profile(account_id: int) -> Account:
    account = get_account(account_id)
    if account is None:
        raise NotFoundError("User account does not exist")
    return account


def get_account_summary(account_number: str) -> Account:
    """
    Cashier-facing lookup before assisted deposits/withdrawals.

    Raises NotFoundError / LockedError (blocked accounts are not shown).
    """
    account = get_account_by_number(account_number)
    if account is None:
        raise NotFoundError("User account does not exist")
    if account.is_blocked:
        raise LockedError("User account is blocked")
    return account


def list_transactions(account_number: str) -> list[Transaction]:
    """All ledger rows for an account, newest first."""
    return (
        db.session.query(Transaction)
        .filter_by(account_number=account_number)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .all()
    )


def update_profile(account_id: int, data: ProfileUpdateInput) -> Account:
    """Partial update: fields left as None keep their current value."""
    account = get_profile(account_id)

    if data.full_name is None and data.phone_number is None:
        raise ValidationError("Provide at least one field to update")

    if data.full_name is not None:
        account.full_name = data.full_name
    if data.phone_number is not None:
        account.phone_number = data.phone_number

    db.session.commit()
    return account


def set_account_status(account_number: str, status: str) -> Account:
    """Activation/blocking step (CLI). Raises ValidationError / NotFoundError."""
    if status not in VALID_ACCOUNT_STATUSES:
        raise ValidationError(f"Invalid status: {status}. Must be one of {VALID_ACCOUNT_STATUSES}")

    account = get_account_by_number(account_number)
    if account is None:
        raise NotFoundError("User account does not exist")

    account.status = status
    db.session.commit()
    return account

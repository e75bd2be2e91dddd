# Overview: Service-layer operations for the ledger; encapsulates balance mutation and database work.

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import update

from ..extensions import db
from ..models import Account, Transaction
from ..models.accounts import ACCOUNT_STATUS_ACTIVE
from ..models.ledger import TX_DEPOSIT, TX_WITHDRAWAL, TX_TRANSFER_OUT, TX_TRANSFER_IN
from ..validation import (
    InsufficientBalanceError,
    LockedError,
    NotFoundError,
    ValidationError,
    MAX_AMOUNT_CENTS,
)
from .concurrency import lock_for_update, run_atomic
"""
Titan Ledger Invariants (authoritative)

- Balances never go negative: every debit is a conditional UPDATE
  (balance_cents >= amount) whose rowcount decides success.
- Every balance change appends Transaction rows in the same DB
  transaction; either all effects of an operation commit or none do.
- A transfer writes exactly two rows of equal magnitude:
  transfer_out on the sender, transfer_in on the receiver.
- Transaction rows are never updated or deleted.
- Amounts arrive already validated (positive integer cents); they are
  re-checked here before any storage access.
"""


INSUFFICIENT_BALANCE_MESSAGE = "Insufficient balance"


@dataclass(frozen=True)
class TransferResult:
    debit: Transaction
    credit: Transaction


def _check_amount(amount_cents: int) -> None:
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int):
        raise ValidationError("Amount must be a number.")
    if amount_cents <= 0 or amount_cents > MAX_AMOUNT_CENTS:
        raise ValidationError("Amount Invalid.")


def _locked_account(**filters) -> Account | None:
    query = db.session.query(Account).filter_by(**filters).populate_existing()
    return lock_for_update(query).first()


def _credit(account_number: str, amount_cents: int) -> None:
    result = db.session.execute(
        update(Account)
        .where(Account.account_number == account_number)
        .values(balance_cents=Account.balance_cents + amount_cents)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise NotFoundError("User account does not exist")


def _debit(account_number: str, amount_cents: int) -> None:
    """Atomic check-and-subtract; fails if the balance would go negative."""
    result = db.session.execute(
        update(Account)
        .where(
            Account.account_number == account_number,
            Account.balance_cents >= amount_cents,
        )
        .values(balance_cents=Account.balance_cents - amount_cents)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise InsufficientBalanceError(INSUFFICIENT_BALANCE_MESSAGE)


def _append(
    *,
    account_number: str,
    amount_cents: int,
    tx_type: str,
    reference_account: str | None = None,
) -> Transaction:
    record = Transaction(
        account_number=account_number,
        reference_account=reference_account,
        amount_cents=amount_cents,
        type=tx_type,
    )
    db.session.add(record)
    db.session.flush()  # ensures record.id is assigned without committing
    return record


def deposit(account_number: str, amount_cents: int) -> Transaction:
    """
    Credit amount_cents to an account (cashier-assisted).

    Raises:
        ValidationError: amount not a positive integer of cents
        NotFoundError: no such account
        LockedError: account is blocked
    """
    _check_amount(amount_cents)

    def _op():
        account = _locked_account(account_number=account_number)
        if account is None:
            raise NotFoundError("User account does not exist")
        if account.is_blocked:
            raise LockedError("User account is blocked")

        _credit(account_number, amount_cents)
        record = _append(account_number=account_number, amount_cents=amount_cents, tx_type=TX_DEPOSIT)
        db.session.commit()
        return record

    return run_atomic(_op)


def withdraw(account_number: str, amount_cents: int) -> Transaction:
    """
    Debit amount_cents from an account (cashier-assisted).

    Raises:
        ValidationError: amount not a positive integer of cents
        NotFoundError: no such account
        LockedError: account is blocked
        InsufficientBalanceError: balance lower than amount
    """
    _check_amount(amount_cents)

    def _op():
        account = _locked_account(account_number=account_number)
        if account is None:
            raise NotFoundError("User account does not exist")
        if account.is_blocked:
            raise LockedError("User account is blocked")
        if account.balance_cents < amount_cents:
            raise InsufficientBalanceError(INSUFFICIENT_BALANCE_MESSAGE)

        # The balance read above may be stale under concurrency; _debit decides
        _debit(account_number, amount_cents)
        record = _append(account_number=account_number, amount_cents=amount_cents, tx_type=TX_WITHDRAWAL)
        db.session.commit()
        return record

    return run_atomic(_op)


def transfer(sender_account_id: int, reference_account: str, amount_cents: int) -> TransferResult:
    """
    Move amount_cents from the sender (by internal id) to the account
    numbered reference_account.

    Debit, credit and both ledger rows commit together or not at all.

    Raises:
        ValidationError: bad amount, or sender and receiver are the same account
        NotFoundError: sender or receiver does not exist
        LockedError: sender not active, or receiver blocked
        InsufficientBalanceError: sender balance lower than amount
    """
    _check_amount(amount_cents)

    def _op():
        sender = _locked_account(id=sender_account_id)
        if sender is None:
            raise NotFoundError("Sender account does not exist")
        if sender.account_number == reference_account:
            raise ValidationError("Transfer denied. Cannot transfer funds to your own account.")
        if sender.status != ACCOUNT_STATUS_ACTIVE:
            raise LockedError("Transfer denied. Your account is blocked or pending")
        if sender.balance_cents < amount_cents:
            raise InsufficientBalanceError(INSUFFICIENT_BALANCE_MESSAGE)

        receiver = _locked_account(account_number=reference_account)
        if receiver is None:
            raise NotFoundError("Receiver account does not exist")
        if receiver.is_blocked:
            raise LockedError("Transfer denied. Receiver account is blocked.")

        sender_number = sender.account_number
        _debit(sender_number, amount_cents)
        debit = _append(
            account_number=sender_number,
            reference_account=reference_account,
            amount_cents=amount_cents,
            tx_type=TX_TRANSFER_OUT,
        )
        _credit(reference_account, amount_cents)
        credit = _append(
            account_number=reference_account,
            reference_account=sender_number,
            amount_cents=amount_cents,
            tx_type=TX_TRANSFER_IN,
        )
        db.session.commit()
        return TransferResult(debit=debit, credit=credit)

    return run_atomic(_op)

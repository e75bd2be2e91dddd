"""
Concurrency tests for balance mutations.

Runs ledger operations from several threads against a file-backed SQLite
database (each thread gets its own connection) and checks that the
check-and-debit is atomic: only as many debits succeed as the balance
allows, and the balance never goes negative. Losers either see the
balance shortfall or a lock error from SQLite; neither is retried.
"""

import threading

import pytest
from sqlalchemy.exc import OperationalError

from titan import create_app
from titan.extensions import db
from titan.models import Account, Transaction
from titan.models.accounts import ACCOUNT_STATUS_ACTIVE
from titan.services import ledger_service
from titan.validation import InsufficientBalanceError

from conftest import TEST_CONFIG


@pytest.fixture
def file_app(tmp_path):
    db_path = tmp_path / "concurrency.db"
    app = create_app({**TEST_CONFIG, "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}"})

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


def _seed(app, *accounts):
    """accounts: (account_number, email, balance_cents)."""
    with app.app_context():
        for number, email, balance in accounts:
            db.session.add(Account(
                account_number=number,
                email=email,
                full_name=email.split("@")[0],
                phone_number="555-0100",
                password_hash="unused",
                balance_cents=balance,
                status=ACCOUNT_STATUS_ACTIVE,
            ))
        db.session.commit()
        return {a.account_number: a.id for a in db.session.query(Account).all()}


def _run_concurrently(app, targets):
    results = []
    lock = threading.Lock()
    barrier = threading.Barrier(len(targets))

    def worker(func):
        with app.app_context():
            try:
                barrier.wait()
                func()
                outcome = "ok"
            except Exception as exc:
                outcome = exc
            finally:
                db.session.remove()
            with lock:
                results.append(outcome)

    threads = [threading.Thread(target=worker, args=(t,)) for t in targets]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results


def _state(app, number):
    with app.app_context():
        balance = db.session.query(Account.balance_cents).filter_by(account_number=number).scalar()
        rows = db.session.query(Transaction).filter_by(account_number=number).count()
        db.session.remove()
        return balance, rows


def test_two_withdrawals_of_full_balance(file_app):
    _seed(file_app, ("1000000001", "solo@example.com", 5000))

    results = _run_concurrently(file_app, [
        lambda: ledger_service.withdraw("1000000001", 5000),
        lambda: ledger_service.withdraw("1000000001", 5000),
    ])

    assert results.count("ok") == 1
    failures = [r for r in results if r != "ok"]
    assert len(failures) == 1
    assert isinstance(failures[0], (InsufficientBalanceError, OperationalError))

    balance, rows = _state(file_app, "1000000001")
    assert balance == 0
    assert rows == 1


def test_many_withdrawals_never_overdraw(file_app):
    _seed(file_app, ("1000000002", "many@example.com", 1000))

    # Ten withdrawals of 3.00 against 10.00: at most three can succeed
    results = _run_concurrently(file_app, [
        lambda: ledger_service.withdraw("1000000002", 300) for _ in range(10)
    ])

    successes = results.count("ok")
    assert successes <= 3
    assert all(r == "ok" or isinstance(r, (InsufficientBalanceError, OperationalError)) for r in results)

    balance, rows = _state(file_app, "1000000002")
    assert balance == 1000 - 300 * successes
    assert balance >= 0
    assert rows == successes


def test_concurrent_transfers_and_withdrawal_conserve_money(file_app):
    ids = _seed(
        file_app,
        ("1000000003", "payer@example.com", 10000),
        ("1000000004", "payee@example.com", 0),
    )
    payer_id = ids["1000000003"]

    results = _run_concurrently(file_app, [
        lambda: ledger_service.transfer(payer_id, "1000000004", 6000),
        lambda: ledger_service.transfer(payer_id, "1000000004", 6000),
        lambda: ledger_service.withdraw("1000000003", 6000),
    ])

    assert results.count("ok") == 1
    assert all(r == "ok" or isinstance(r, (InsufficientBalanceError, OperationalError)) for r in results)

    payer_balance, _ = _state(file_app, "1000000003")
    payee_balance, payee_rows = _state(file_app, "1000000004")
    assert payer_balance == 4000
    assert payer_balance + payee_balance in (10000, 4000)
    # Either one transfer landed (payee has it) or the withdrawal did
    assert payee_balance in (0, 6000)
    assert payee_rows == (1 if payee_balance else 0)

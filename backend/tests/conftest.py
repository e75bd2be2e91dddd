"""
Pytest fixtures for Titan backend tests.

Provides test database setup, account/cashier factories, an outbox that
captures OTP mail, and logged-in test clients.
"""

import re

import pytest
from titan import create_app
from titan.extensions import db
from titan.models import Account, Cashier
from titan.models.accounts import ACCOUNT_STATUS_ACTIVE
from titan.services import account_service, mail_service
from titan.services.auth_service import hash_password


PASSWORD = "Password123!"

TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'JWT_SECRET': 'test-jwt-secret',
    'BCRYPT_ROUNDS': 4,
    'MAIL_SUPPRESS_SEND': True,
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def outbox(monkeypatch):
    """Capture mail instead of sending it: list of {to, subject, body}."""
    sent = []

    def fake_send_mail(to_address, subject, body):
        sent.append({"to": to_address, "subject": subject, "body": body})

    monkeypatch.setattr(mail_service, "send_mail", fake_send_mail)
    return sent


@pytest.fixture(scope='function')
def make_account(db_session):
    """Factory: create a customer account directly in the database."""
    def _make(
        email="alice@example.com",
        password=PASSWORD,
        balance_cents=0,
        status=ACCOUNT_STATUS_ACTIVE,
        full_name="Alice Example",
        phone_number="555-0100",
    ) -> Account:
        account = Account(
            account_number=account_service.generate_account_number(),
            email=email,
            full_name=full_name,
            phone_number=phone_number,
            password_hash=hash_password(password),
            balance_cents=balance_cents,
            status=status,
        )
        db_session.add(account)
        db_session.commit()
        return account

    return _make


@pytest.fixture(scope='function')
def cashier(db_session):
    """Create a cashier."""
    cashier = Cashier(email="teller@titanbank.local", password_hash=hash_password(PASSWORD))
    db_session.add(cashier)
    db_session.commit()
    return cashier


@pytest.fixture(scope='function')
def cashier_client(app, cashier):
    """Test client holding a cashier session cookie."""
    client = app.test_client()
    response = client.post('/api/cashier/login', json={
        'email': cashier.email,
        'password': PASSWORD,
    })
    assert response.status_code == 200
    return client


def latest_otp(outbox, email: str) -> str:
    """Pull the most recent OTP mailed to email out of the outbox."""
    for message in reversed(outbox):
        if message["to"] == email:
            match = re.search(r"One-Time Password \(OTP\) is: (\d{4})", message["body"])
            assert match, message["body"]
            return match.group(1)
    raise AssertionError(f"No OTP mailed to {email}")


def login_user(client, outbox, email: str, password: str = PASSWORD):
    """Run both login steps; the client keeps the session cookie."""
    response = client.post('/api/user/login', json={'email': email, 'password': password})
    assert response.status_code == 200, response.get_json()
    code = latest_otp(outbox, email)
    response = client.post('/api/user/verifyOtp', json={'email': email, 'otp': code})
    assert response.status_code == 200, response.get_json()
    return response


def balance_of(account_number: str) -> int:
    """Fresh balance (cents) read, bypassing the session identity map."""
    return db.session.query(Account.balance_cents).filter_by(account_number=account_number).scalar()

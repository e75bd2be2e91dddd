# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Credential store and login flows for customers and cashiers.

SECURITY NOTES:
- Passwords and OTP codes hashed with bcrypt (cost factor BCRYPT_ROUNDS)
- New passwords must meet validate_password_strength
- Unknown email and wrong password produce the same error message
- Customers log in in two steps: password, then an emailed OTP
- Cashiers log in with password only
"""

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import Account, Cashier
from ..validation import UnauthorizedError, NotFoundError, ValidationError
from . import mail_service, otp_service, token_service


INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"

# bcrypt only looks at the first 72 bytes of its input
BCRYPT_MAX_BYTES = 72


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - 8 to 72 bytes
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if len(password.encode('utf-8')) > BCRYPT_MAX_BYTES:
        raise PasswordValidationError("Password must be at most 72 bytes long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_secret(secret: str) -> str:
    """bcrypt-hash a password or OTP code for storage."""
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(secret.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    return hash_secret(password)


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password (or OTP code) against bcrypt hash.

    Returns True if it matches, False otherwise, including for malformed
    hashes and over-long inputs. bcrypt.checkpw is timing-safe.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except (ValueError, TypeError):
        return False


def set_password(principal, new_password: str) -> None:
    """
    Overwrite the password of an Account or Cashier.

    Callers must already have proven the old password or a valid OTP.
    """
    principal.password_hash = hash_password(new_password)
    db.session.commit()


def get_account_by_email(email: str) -> Account | None:
    return db.session.query(Account).filter_by(email=email).first()


def get_cashier_by_email(email: str) -> Cashier | None:
    return db.session.query(Cashier).filter_by(email=email).first()


def authenticate_account(email: str, password: str) -> Account:
    """Raises UnauthorizedError for unknown email and wrong password alike."""
    account = get_account_by_email(email)
    if account is None or not verify_password(password, account.password_hash):
        raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)
    return account


def authenticate_cashier(email: str, password: str) -> Cashier:
    """Raises UnauthorizedError for unknown email and wrong password alike."""
    cashier = get_cashier_by_email(email)
    if cashier is None or not verify_password(password, cashier.password_hash):
        raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)
    return cashier


def create_cashier(email: str, password: str) -> Cashier:
    """Create a cashier (CLI bootstrap). Raises ValueError if email exists."""
    if get_cashier_by_email(email) is not None:
        raise ValueError("Cashier with this email already exists")

    cashier = Cashier(email=email, password_hash=hash_password(password))
    db.session.add(cashier)
    db.session.commit()
    return cashier


# =============================================================================
# LOGIN FLOWS
# =============================================================================

def login_cashier(email: str, password: str) -> tuple[Cashier, str]:
    """Password-only login. Returns (cashier, session_token)."""
    cashier = authenticate_cashier(email, password)
    token = token_service.mint_token(cashier.id, token_service.ROLE_CASHIER)
    return cashier, token


def begin_customer_login(email: str, password: str) -> Account:
    """
    Step 1 of customer login: check the password, then issue and mail an
    OTP. The code itself is never returned to the caller.
    """
    account = authenticate_account(email, password)
    code = otp_service.issue_otp(account.email)
    mail_service.send_otp_email(account.email, code)
    return account


def complete_customer_login(email: str, otp: str) -> tuple[Account, str]:
    """
    Step 2 of customer login: verify (and consume) the OTP, then mint a
    session token. Raises GoneError / UnauthorizedError on OTP failure.
    """
    otp_service.verify_otp(email, otp)

    account = get_account_by_email(email)
    if account is None:
        raise NotFoundError("No user account with given email")

    token = token_service.mint_token(account.id, token_service.ROLE_USER)
    return account, token


# =============================================================================
# PASSWORD MANAGEMENT
# =============================================================================

def request_password_reset(email: str) -> None:
    """Issue and mail a reset OTP. Raises NotFoundError for unknown email."""
    account = get_account_by_email(email)
    if account is None:
        raise NotFoundError("No user account with given email")

    code = otp_service.issue_otp(account.email)
    mail_service.send_otp_email(account.email, code)


def reset_password(email: str, otp: str, new_password: str) -> Account:
    """
    Overwrite a customer's password after OTP verification.

    The new password is validated before the OTP is consumed so a weak
    password does not burn the code.
    """
    validate_password_strength(new_password)

    otp_service.verify_otp(email, otp)

    account = get_account_by_email(email)
    if account is None:
        raise NotFoundError("No user account with given email")

    set_password(account, new_password)
    return account


def change_cashier_password(cashier: Cashier, old_password: str, new_password: str) -> None:
    if not verify_password(old_password, cashier.password_hash):
        raise UnauthorizedError("Your Old Password is incorrect")

    set_password(cashier, new_password)

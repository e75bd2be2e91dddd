# Overview: Service-layer operations for one-time passcodes.

"""
OTP Store

One outstanding code per email. Codes are 4 digits (1000-9999), stored
only as a bcrypt hash, and expire OTP_TTL_SECONDS after issuance.

Verification enforces both expiry and single use: an expired record is
deleted and reported as gone, and a matching record is deleted in the same
step that accepts it, so replaying a code fails. Wrong guesses are
counted, and after OTP_MAX_ATTEMPTS of them the code is discarded.
"""

import secrets
from datetime import timedelta

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import OtpRecord
from ..time_utils import utcnow, as_naive_utc
from ..validation import GoneError, UnauthorizedError


OTP_MIN = 1000
OTP_MAX = 9999

EXPIRED_MESSAGE = "Expired OTP"
INVALID_MESSAGE = "Invalid OTP"


def generate_code() -> str:
    """Uniform over 1000-9999 inclusive, from a CSPRNG."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


def _ttl() -> timedelta:
    return timedelta(seconds=current_app.config.get("OTP_TTL_SECONDS", 300))


def _max_attempts() -> int:
    return current_app.config.get("OTP_MAX_ATTEMPTS", 5)


def issue_otp(email: str) -> str:
    """
    Generate a code for email, replacing any outstanding one.

    Returns the plaintext code; only its hash is persisted.
    """
    # Imported here: auth_service imports this module
    from .auth_service import hash_secret

    code = generate_code()
    code_hash = hash_secret(code)
    expires_at = utcnow() + _ttl()

    record = db.session.query(OtpRecord).filter_by(email=email).first()
    if record is not None:
        record.code_hash = code_hash
        record.expires_at = expires_at
        record.failed_attempts = 0
        db.session.commit()
        return code

    try:
        db.session.add(OtpRecord(email=email, code_hash=code_hash, expires_at=expires_at))
        db.session.commit()
    except IntegrityError:
        # A concurrent request inserted first; overwrite its code
        db.session.rollback()
        record = db.session.query(OtpRecord).filter_by(email=email).one()
        record.code_hash = code_hash
        record.expires_at = expires_at
        record.failed_attempts = 0
        db.session.commit()

    return code


def _record_failure(record: OtpRecord) -> None:
    """Count a wrong guess; the code is burned once the limit is reached."""
    email = record.email
    db.session.query(OtpRecord).filter_by(id=record.id).update(
        {OtpRecord.failed_attempts: OtpRecord.failed_attempts + 1},
        synchronize_session=False,
    )
    burned = db.session.query(OtpRecord).filter(
        OtpRecord.id == record.id,
        OtpRecord.failed_attempts >= _max_attempts(),
    ).delete(synchronize_session=False)
    db.session.commit()

    if burned:
        current_app.logger.warning("OTP for %s discarded after too many wrong guesses", email)


def verify_otp(email: str, candidate: str) -> None:
    """
    Verify and consume the outstanding code for email.

    Raises:
        GoneError: no record, record expired, or consumed concurrently
        UnauthorizedError: code does not match (the record survives until
            OTP_MAX_ATTEMPTS wrong guesses, then it is deleted)
    """
    from .auth_service import verify_password

    record = db.session.query(OtpRecord).filter_by(email=email).first()
    if record is None:
        raise GoneError(EXPIRED_MESSAGE)

    if as_naive_utc(record.expires_at) <= utcnow():
        db.session.delete(record)
        db.session.commit()
        raise GoneError(EXPIRED_MESSAGE)

    if not verify_password(candidate, record.code_hash):
        _record_failure(record)
        raise UnauthorizedError(INVALID_MESSAGE)

    # Conditional delete: only one concurrent verifier can consume the code
    deleted = db.session.query(OtpRecord).filter_by(
        id=record.id, code_hash=record.code_hash
    ).delete(synchronize_session=False)
    db.session.commit()

    if deleted == 0:
        raise GoneError(EXPIRED_MESSAGE)


def purge_expired_otps() -> int:
    """Delete expired OTP records. Returns count deleted."""
    deleted = db.session.query(OtpRecord).filter(
        OtpRecord.expires_at <= utcnow()
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted

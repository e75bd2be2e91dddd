from __future__ import annotations

from ..extensions import db


class OtpRecord(db.Model):
    """
    Outstanding one-time passcode for an email address.

    At most one row per email: issuing a new code overwrites the previous
    one. Only the bcrypt hash of the code is stored. The row is deleted
    once the code is verified, found expired, or guessed wrong
    OTP_MAX_ATTEMPTS times.
    """
    __tablename__ = "otp_records"
    __table_args__ = (
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    code_hash = db.Column(db.String(255), nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    failed_attempts = db.Column(db.Integer, nullable=False, default=0, server_default="0")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())


class RevokedToken(db.Model):
    """
    Session tokens revoked before their natural expiry (logout).

    Keyed by the token's jti claim. Rows past expires_at can be purged;
    the token would be rejected on expiry anyway.
    """
    __tablename__ = "revoked_tokens"
    __table_args__ = (
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    jti = db.Column(db.String(64), nullable=False, unique=True, index=True)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

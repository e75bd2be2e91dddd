# Overview: Signed session token mint/verify; encapsulates JWT handling.

"""
Session Token Issuer/Verifier

Tokens are HS256 JWTs carrying the principal id (sub), role, a random
token id (jti), and an absolute expiry SESSION_TOKEN_TTL_SECONDS after
issuance. Validity is a function of signature and expiry, plus one table
lookup so that logout can revoke a token early (revoked_tokens).

verify_token never raises: any failure yields None and the caller treats
the request as unauthenticated.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..models import RevokedToken
from ..time_utils import utcnow


ROLE_USER = "user"
ROLE_CASHIER = "cashier"
VALID_ROLES = {ROLE_USER, ROLE_CASHIER}

REQUIRED_CLAIMS = ["sub", "role", "jti", "iat", "exp"]


@dataclass(frozen=True)
class Principal:
    """Authenticated identity attached to a request."""
    id: int
    role: str
    jti: str
    expires_at: datetime  # UTC-naive


def _secret() -> str:
    return current_app.config["JWT_SECRET"]


def _algorithm() -> str:
    return current_app.config.get("JWT_ALGORITHM", "HS256")


def mint_token(principal_id: int, role: str) -> str:
    """Sign a session token for principal_id with the given role."""
    if role not in VALID_ROLES:
        raise ValueError(f"Unknown role: {role}")

    now = datetime.now(timezone.utc)
    ttl = timedelta(seconds=current_app.config.get("SESSION_TOKEN_TTL_SECONDS", 3600))
    payload = {
        "sub": str(principal_id),
        "role": role,
        "jti": secrets.token_hex(16),
        "iat": now,
        "exp": now + ttl,
    }
    return jwt.encode(payload, _secret(), algorithm=_algorithm())


def _decode(token: str) -> Principal | None:
    try:
        claims = jwt.decode(
            token,
            _secret(),
            algorithms=[_algorithm()],
            options={"require": REQUIRED_CLAIMS},
        )
        principal_id = int(claims["sub"])
    except (jwt.InvalidTokenError, ValueError, TypeError) as exc:
        current_app.logger.info("Token verification failed: %s", exc)
        return None

    role = claims.get("role")
    if role not in VALID_ROLES:
        return None

    expires_at = datetime.fromtimestamp(claims["exp"], tz=timezone.utc).replace(tzinfo=None)
    return Principal(id=principal_id, role=role, jti=str(claims["jti"]), expires_at=expires_at)


def verify_token(token: str | None) -> Principal | None:
    """Resolve token to a Principal, or None if invalid, expired or revoked."""
    if not token:
        return None

    principal = _decode(token)
    if principal is None:
        return None

    try:
        revoked = db.session.query(RevokedToken.id).filter_by(jti=principal.jti).first()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Revocation lookup failed")
        return None

    if revoked is not None:
        return None
    return principal


def revoke_token(token: str) -> bool:
    """
    Revoke a still-valid token (logout).

    Returns True if the token was revoked now, False if it was already
    invalid or revoked.
    """
    principal = verify_token(token)
    if principal is None:
        return False

    db.session.add(RevokedToken(jti=principal.jti, expires_at=principal.expires_at))
    try:
        db.session.commit()
    except IntegrityError:
        # Revoked concurrently
        db.session.rollback()
        return False
    return True


def purge_revoked_tokens() -> int:
    """
    Delete revocation rows for tokens that have expired anyway.

    Returns count deleted.
    """
    deleted = db.session.query(RevokedToken).filter(
        RevokedToken.expires_at < utcnow()
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted

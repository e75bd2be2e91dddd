# Overview: Request authentication and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .extensions import db
from .models import Account, Cashier
from .services import token_service


def _cookie_name() -> str:
    return current_app.config.get("AUTH_COOKIE_NAME", "authToken")


def set_auth_cookie(response, token: str):
    """Attach the session token as an HttpOnly, SameSite=Strict cookie."""
    response.set_cookie(
        _cookie_name(),
        token,
        max_age=current_app.config.get("SESSION_TOKEN_TTL_SECONDS", 3600),
        httponly=True,
        samesite="Strict",
        secure=current_app.config.get("AUTH_COOKIE_SECURE", False),
    )
    return response


def clear_auth_cookie(response):
    response.delete_cookie(
        _cookie_name(),
        httponly=True,
        samesite="Strict",
        secure=current_app.config.get("AUTH_COOKIE_SECURE", False),
    )
    return response


def current_token() -> str | None:
    return request.cookies.get(_cookie_name())


def require_auth(f):
    """
    Require a valid session token in the auth cookie.

    Sets g.principal (token_service.Principal) for downstream decorators
    and routes.

    SECURITY: Returns 401 if:
    - No auth cookie
    - Bad signature, malformed, expired or revoked token
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = current_token()
        if not token:
            return jsonify({"error": "Access denied. No token provided."}), 401

        principal = token_service.verify_token(token)
        if principal is None:
            return jsonify({"error": "Invalid or expired token."}), 401

        g.principal = principal
        return f(*args, **kwargs)

    return decorated_function


def require_role(role: str):
    """
    Require the authenticated principal to hold role, and resolve it.

    Must be applied after @require_auth. Sets g.current_account for
    customers and g.current_cashier for cashiers.

    Returns 403 on role mismatch, 401 if the principal no longer exists,
    and 423 if a customer account is blocked.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            principal = getattr(g, "principal", None)
            if principal is None:
                return jsonify({"error": "Authentication required"}), 401

            if principal.role != role:
                current_app.logger.warning(
                    "Role %s denied on %s (requires %s)", principal.role, request.path, role
                )
                return jsonify({"error": "Access denied for this role"}), 403

            if role == token_service.ROLE_CASHIER:
                cashier = db.session.get(Cashier, principal.id)
                if cashier is None:
                    return jsonify({"error": "Invalid or expired token."}), 401
                g.current_cashier = cashier
            else:
                account = db.session.get(Account, principal.id)
                if account is None:
                    return jsonify({"error": "Invalid or expired token."}), 401
                if account.is_blocked:
                    return jsonify({"error": "User account is blocked"}), 423
                g.current_account = account

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_cashier(f):
    return require_auth(require_role(token_service.ROLE_CASHIER)(f))


def require_user(f):
    return require_auth(require_role(token_service.ROLE_USER)(f))

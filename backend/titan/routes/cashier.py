# Overview: Flask API routes for cashier operations; parses input and returns JSON responses.

# backend/titan/routes/cashier.py
"""
Cashier API routes

Cashiers log in with email and password (no OTP) and then act on a
customer's account by account number: lookup, deposit, withdrawal.

SECURITY:
- Session token delivered only as an HttpOnly, SameSite=Strict cookie
- Unknown email and wrong password return the same 401 message
- All routes except /login require a cashier session
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..extensions import db
from ..services import auth_service, account_service, ledger_service, token_service
from ..validation import (
    BankError,
    format_cents,
    parse_account_number,
    parse_cashier_movement,
    parse_credentials,
    parse_password_change,
)
from ..decorators import require_cashier, set_auth_cookie, clear_auth_cookie, current_token


cashier_bp = Blueprint("cashier", __name__, url_prefix="/api/cashier")


@cashier_bp.post("/login")
def login_route():
    """
    Authenticate cashier and set the session cookie.

    Request body: {"email": "...", "password": "..."}
    """
    try:
        data = parse_credentials(request.get_json(silent=True))
        cashier, token = auth_service.login_cashier(data.email, data.password)

        current_app.logger.info("Cashier %s logged in", cashier.id)
        response = jsonify({"message": "Login successful"})
        return set_auth_cookie(response, token), 200

    except BankError as e:
        if e.status_code == 401:
            current_app.logger.warning("Rejected cashier login from %s", request.remote_addr)
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to login cashier")
        return jsonify({"error": "Internal server error"}), 500


@cashier_bp.post("/logout")
@require_cashier
def logout_route():
    """Revoke the current session token and clear the cookie."""
    try:
        token_service.revoke_token(current_token())
        response = jsonify({"message": "Logout successful"})
        return clear_auth_cookie(response), 200

    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to logout cashier")
        return jsonify({"error": "Internal server error"}), 500


@cashier_bp.post("/userAccountInfo")
@require_cashier
def user_account_info_route():
    """
    Look up a customer account by number.

    Request body: {"accountNumber": "1234567890"}

    Returns:
        200: {accountNumber, fullName, balance, balanceCents}
        404: no such account
        423: account blocked
    """
    try:
        data = parse_account_number(request.get_json(silent=True))
        account = account_service.get_account_summary(data.account_number)
        return jsonify(account.to_summary_dict()), 200

    except BankError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to load account info")
        return jsonify({"error": "Internal server error"}), 500


@cashier_bp.post("/deposit")
@require_cashier
def deposit_route():
    """
    Deposit into a customer account.

    Request body: {"accountNumber": "1234567890", "amount": 100.50}

    Returns:
        200: deposit recorded
        400: missing fields or invalid amount
        404: no such account
        423: account blocked
    """
    try:
        data = parse_cashier_movement(request.get_json(silent=True))
        record = ledger_service.deposit(data.account_number, data.amount_cents)

        current_app.logger.info(
            "Cashier %s deposited %s into %s",
            g.current_cashier.id, format_cents(data.amount_cents), data.account_number,
        )
        return jsonify({
            "message": "Deposit successful",
            "transaction": record.to_dict(),
        }), 200

    except BankError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to deposit")
        return jsonify({"error": "Internal server error"}), 500


@cashier_bp.post("/withdrawal")
@require_cashier
def withdrawal_route():
    """
    Withdraw from a customer account.

    Request body: {"accountNumber": "1234567890", "amount": 40}

    Returns:
        200: withdrawal recorded
        400: missing fields, invalid amount, or insufficient balance
        404: no such account
        423: account blocked
    """
    try:
        data = parse_cashier_movement(request.get_json(silent=True))
        record = ledger_service.withdraw(data.account_number, data.amount_cents)

        current_app.logger.info(
            "Cashier %s withdrew %s from %s",
            g.current_cashier.id, format_cents(data.amount_cents), data.account_number,
        )
        return jsonify({
            "message": "Withdrawal successful",
            "transaction": record.to_dict(),
        }), 200

    except BankError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to withdraw")
        return jsonify({"error": "Internal server error"}), 500


@cashier_bp.post("/changePassword")
@require_cashier
def change_password_route():
    """
    Change the logged-in cashier's password.

    Request body: {"oldPassword": "...", "newPassword": "..."}

    SECURITY: Requires the current password.
    """
    try:
        data = parse_password_change(request.get_json(silent=True))
        auth_service.change_cashier_password(g.current_cashier, data.old_password, data.new_password)
        return jsonify({"message": "Password changed successfully"}), 200

    except BankError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to change cashier password")
        return jsonify({"error": "Internal server error"}), 500

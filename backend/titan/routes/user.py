# Overview: Flask API routes for customer operations; parses input and returns JSON responses.

# backend/titan/routes/user.py
"""
Customer API routes

LOGIN FLOW:
1. POST /login with email + password -> OTP mailed, nothing else returned
2. POST /verifyOtp with email + otp -> session cookie set

PASSWORD RESET:
1. POST /sendOtp with email -> OTP mailed
2. POST /resetPassword with email + otp + newPassword

Authenticated routes require a customer session and a non-blocked account.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..extensions import db
from ..services import auth_service, account_service, ledger_service, token_service
from ..validation import (
    BankError,
    format_cents,
    parse_credentials,
    parse_email,
    parse_otp_verification,
    parse_password_reset,
    parse_profile_update,
    parse_registration,
    parse_transfer,
)
from ..decorators import require_user, set_auth_cookie, clear_auth_cookie, current_token


user_bp = Blueprint("user", __name__, url_prefix="/api/user")


@user_bp.post("/register")
def register_route():
    """
    Register a customer account.

    Request body: {"email", "password", "fullName", "phoneNumber"}

    New accounts start in 'pending' status and cannot send transfers until
    activated (flask accounts set-status <number> active).
    """
    try:
        data = parse_registration(request.get_json(silent=True))
        account = account_service.register_account(data)

        current_app.logger.info("Registered account %s", account.account_number)
        return jsonify({
            "message": "User registered successfully",
            "accountNumber": account.account_number,
        }), 201

    except BankError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Internal server error"}), 500


@user_bp.post("/login")
def login_route():
    """
    Step 1 of login: verify password and mail an OTP.

    The response never contains the code.
    """
    try:
        data = parse_credentials(request.get_json(silent=True))
        account = auth_service.begin_customer_login(data.email, data.password)

        return jsonify({
            "message": "OTP sent to your registered email",
            "email": account.email,
        }), 200

    except BankError as e:
        if e.status_code == 401:
            current_app.logger.warning("Rejected customer login from %s", request.remote_addr)
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@user_bp.post("/verifyOtp")
def verify_otp_route():
    """
    Step 2 of login: verify the OTP and set the session cookie.

    Returns:
        200: cookie set
        401: OTP does not match
        410: no outstanding OTP (never issued, used, or expired)
    """
    try:
        data = parse_otp_verification(request.get_json(silent=True))
        account, token = auth_service.complete_customer_login(data.email, data.otp)

        current_app.logger.info("Account %s logged in", account.account_number)
        response = jsonify({"message": "OTP verified successfully"})
        return set_auth_cookie(response, token), 200

    except BankError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to verify OTP")
        return jsonify({"error": "Internal server error"}), 500


@user_bp.post("/sendOtp")
def send_otp_route():
    """Mail a password-reset OTP. 404 if the email is not registered."""
    try:
        data = parse_email(request.get_json(silent=True))
        auth_service.request_password_reset(data.email)

        return jsonify({
            "message": "OTP sent to your email",
            "email": data.email,
        }), 200

    except BankError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to send OTP")
        return jsonify({"error": "Internal server error"}), 500


@user_bp.post("/resetPassword")
def reset_password_route():
    """Reset password with an emailed OTP."""
    try:
        data = parse_password_reset(request.get_json(silent=True))
        auth_service.reset_password(data.email, data.otp, data.new_password)
        return jsonify({"message": "Password reset successful"}), 200

    except BankError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to reset password")
        return jsonify({"error": "Internal server error"}), 500


@user_bp.post("/logout")
@require_user
def logout_route():
    """Revoke the current session token and clear the cookie."""
    try:
        token_service.revoke_token(current_token())
        response = jsonify({"message": "Logout successful"})
        return clear_auth_cookie(response), 200

    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@user_bp.post("/fundTransfer")
@require_user
def fund_transfer_route():
    """
    Transfer funds from the logged-in account.

    Request body: {"referenceAccount": "1234567890", "amount": 200}

    Returns:
        200: transfer committed (both ledger rows)
        400: invalid amount, self-transfer, or insufficient balance
        404: receiver does not exist
        423: sender not active, or receiver blocked
    """
    try:
        data = parse_transfer(request.get_json(silent=True))
        sender_number = g.current_account.account_number
        result = ledger_service.transfer(g.current_account.id, data.reference_account, data.amount_cents)

        current_app.logger.info(
            "Transferred %s from %s to %s",
            format_cents(data.amount_cents), sender_number, data.reference_account,
        )
        return jsonify({
            "message": "Fund transferred successfully",
            "transaction": result.debit.to_dict(),
        }), 200

    except BankError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to transfer funds")
        return jsonify({"error": "Internal server error"}), 500


@user_bp.get("/transactionHistory")
@require_user
def transaction_history_route():
    try:
        transactions = account_service.list_transactions(g.current_account.account_number)
        return jsonify({"transactions": [t.to_dict() for t in transactions]}), 200

    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to load transaction history")
        return jsonify({"error": "Internal server error"}), 500


@user_bp.get("/accountProfile")
@require_user
def account_profile_route():
    try:
        account = account_service.get_profile(g.current_account.id)
        return jsonify({"userDetails": account.to_profile_dict()}), 200

    except BankError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to load account profile")
        return jsonify({"error": "Internal server error"}), 500


@user_bp.post("/updateProfile")
@require_user
def update_profile_route():
    """
    Update name and/or phone number. Omitted fields are left unchanged.

    Request body: {"fullName"?: "...", "phoneNumber"?: "..."}
    """
    try:
        data = parse_profile_update(request.get_json(silent=True))
        account = account_service.update_profile(g.current_account.id, data)
        return jsonify({
            "message": "Profile updated successfully",
            "userDetails": account.to_profile_dict(),
        }), 200

    except BankError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update profile")
        return jsonify({"error": "Internal server error"}), 500

# Overview: Outbound mail collaborator; fire-and-forget SMTP delivery.

"""
Mail delivery for OTP codes.

send_mail hands the message to a background thread and returns
immediately. Delivery failures are logged and never reach the caller.
With MAIL_SUPPRESS_SEND set, messages are logged (without body) instead.
"""

import smtplib
import threading
from email.message import EmailMessage

from flask import current_app


OTP_SUBJECT = "Your OTP for Verification"

OTP_BODY_TEMPLATE = (
    "Hello,\n\n"
    "Your One-Time Password (OTP) is: {code}\n\n"
    "This OTP is valid for a short duration of {minutes} minutes.\n\n"
    "Best regards,\n"
    "Titan Bank"
)


def _build_message(sender: str, to_address: str, subject: str, body: str) -> EmailMessage:
    message = EmailMessage()
    message["From"] = sender
    message["To"] = to_address
    message["Subject"] = subject
    message.set_content(body)
    return message


def _deliver(app, message: EmailMessage) -> None:
    config = app.config
    try:
        with smtplib.SMTP(config["MAIL_SERVER"], config["MAIL_PORT"], timeout=10) as smtp:
            if config.get("MAIL_USE_TLS"):
                smtp.starttls()
            if config.get("MAIL_USERNAME"):
                smtp.login(config["MAIL_USERNAME"], config.get("MAIL_PASSWORD") or "")
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError):
        app.logger.exception("Failed to send mail to %s", message["To"])


def send_mail(to_address: str, subject: str, body: str) -> None:
    """Dispatch a plain-text message without waiting for delivery."""
    app = current_app._get_current_object()

    if app.config.get("MAIL_SUPPRESS_SEND"):
        app.logger.info("Mail suppressed: to=%s subject=%s", to_address, subject)
        return

    message = _build_message(app.config["MAIL_SENDER"], to_address, subject, body)
    thread = threading.Thread(target=_deliver, args=(app, message), daemon=True)
    thread.start()


def send_otp_email(to_address: str, code: str) -> None:
    minutes = max(1, current_app.config.get("OTP_TTL_SECONDS", 300) // 60)
    send_mail(to_address, OTP_SUBJECT, OTP_BODY_TEMPLATE.format(code=code, minutes=minutes))

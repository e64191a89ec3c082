import logging
import smtplib
from email.message import EmailMessage

from flask import current_app

logger = logging.getLogger(__name__)


def send_email(to_email: str, subject: str, body: str):
    host = current_app.config.get("SMTP_HOST")
    port = current_app.config.get("SMTP_PORT", 587)
    username = current_app.config.get("SMTP_USERNAME")
    password = current_app.config.get("SMTP_PASSWORD")
    from_email = current_app.config.get("SMTP_FROM_EMAIL") or username
    use_tls = current_app.config.get("SMTP_USE_TLS", True)

    if not host or not from_email:
        logger.info("Email not configured, skipping '%s' to %s", subject, to_email)
        return False, "Email not configured"

    msg = EmailMessage()
    msg["From"] = from_email
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)

    try:
        with smtplib.SMTP(host, port, timeout=10) as server:
            if use_tls:
                server.starttls()
            if username and password:
                server.login(username, password)
            server.send_message(msg)
        return True, None
    except (smtplib.SMTPException, OSError) as exc:
        logger.warning("Failed to send '%s' to %s: %s", subject, to_email, exc)
        return False, str(exc)


def send_verification_email(user) -> tuple:
    base_url = (current_app.config.get("FRONTEND_URL") or "").rstrip("/")
    link = f"{base_url}/verify-email/{user.email_verification_token}"
    body = (
        f"Hi {user.first_name},\n\n"
        "Welcome to Royal Health Consult. Please confirm your email address:\n"
        f"{link}\n\n"
        "Thank you,\nRoyal Health Consult"
    )
    return send_email(user.email, "Verify your email", body)


def send_password_reset_email(user, raw_token: str) -> tuple:
    base_url = (current_app.config.get("FRONTEND_URL") or "").rstrip("/")
    ttl = current_app.config.get("PASSWORD_RESET_TTL_MINUTES", 10)
    link = f"{base_url}/reset-password?token={raw_token}"
    body = (
        f"Hi {user.first_name},\n\n"
        f"Use the link below to reset your password. It expires in {ttl} minutes.\n"
        f"{link}\n\n"
        "If you did not request this, you can ignore this email.\n\n"
        "Royal Health Consult"
    )
    return send_email(user.email, "Reset your password", body)

# staffdesk/services/auth.py
from __future__ import annotations

import logging
import re

from .api_client import BackendClient, BackendError

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
CODE_RE = re.compile(r"^\d{6}$")
MIN_PASSWORD_LEN = 8

LOGIN_TIMEOUT = 15
LOGOUT_TIMEOUT = 5


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


# -----------------------------------------------------------------------------
# Validação de formulários (campo -> mensagem)
# -----------------------------------------------------------------------------
def validate_login(email: str, password: str) -> dict[str, str]:
    errors: dict[str, str] = {}
    if not (email or "").strip():
        errors["email"] = "Email is required"
    elif not EMAIL_RE.match(email.strip()):
        errors["email"] = "Please enter a valid email address"

    if not password:
        errors["password"] = "Password is required"
    elif len(password) < MIN_PASSWORD_LEN:
        errors["password"] = f"Password must be at least {MIN_PASSWORD_LEN} characters"
    return errors


def validate_new_password(new_password: str, confirm: str) -> dict[str, str]:
    errors: dict[str, str] = {}
    if not new_password:
        errors["newPassword"] = "Password is required"
    elif len(new_password) < MIN_PASSWORD_LEN:
        errors["newPassword"] = f"Password must be at least {MIN_PASSWORD_LEN} characters"
    if new_password != confirm:
        errors["confirmPassword"] = "Passwords do not match"
    return errors


def validate_verification(email: str, code: str) -> dict[str, str]:
    errors: dict[str, str] = {}
    if not (email or "").strip():
        errors["email"] = "Please enter your email."
    if not CODE_RE.match((code or "").strip()):
        errors["verificationCode"] = "Please enter a valid 6-digit verification code."
    return errors


# -----------------------------------------------------------------------------
# Chamadas ao backend
# -----------------------------------------------------------------------------
def login_staff(client: BackendClient, email: str, password: str) -> dict:
    """Retorna {'token', 'user', 'message'}."""
    data = client.post(
        "/api/auth/login",
        json={"email": normalize_email(email), "password": password},
        timeout=LOGIN_TIMEOUT,
    )
    return {"token": data.get("token"), "user": data.get("user") or {}, "message": data.get("message")}


def needs_verification(error: BackendError) -> bool:
    """403 de login por e-mail ainda não verificado."""
    if error.status != 403:
        return False
    return error.payload.get("isVerified") is False or "verify" in (error.message or "")


def login_admin(client: BackendClient, email: str, password: str) -> dict:
    data = client.post(
        "/api/admin/login",
        json={"email": normalize_email(email), "password": password},
        timeout=LOGIN_TIMEOUT,
    )
    return {"token": data.get("token"), "admin": data.get("admin") or {}, "message": data.get("message")}


def logout_admin(client: BackendClient, token: str | None) -> bool:
    """Avisa o backend; falha não impede o logout local."""
    if not token:
        return False
    try:
        client.post("/api/admin/logout", token=token, timeout=LOGOUT_TIMEOUT, retries=1)
        return True
    except BackendError as e:
        logger.info("admin logout: backend call failed, continuing with local logout (%s)", e)
        return False


def admin_profile(client: BackendClient, token: str) -> dict:
    data = client.get("/api/admin/profile", token=token, require_token=True)
    return data.get("admin") or {}


def resend_verification(client: BackendClient, email: str) -> str:
    data = client.post("/api/auth/resend-verification", json={"email": normalize_email(email)},
                       timeout=LOGIN_TIMEOUT)
    return data.get("message") or "Verification email sent! Check your inbox."


def verify_email(client: BackendClient, email: str, code: str) -> str:
    data = client.post(
        "/api/auth/verify",
        json={"email": (email or "").strip(), "verificationCode": (code or "").strip()},
    )
    return data.get("message") or "Email verified."


def forgot_password(client: BackendClient, email: str) -> str:
    data = client.post("/api/auth/forgot-password", json={"email": normalize_email(email)})
    return data.get("message") or "If the email exists, a reset link has been sent."


def validate_reset_token(client: BackendClient, token: str) -> tuple[bool, str]:
    data = client.post("/api/auth/validate-reset-token", json={"token": token}, retries=1)
    if data.get("valid"):
        return True, ""
    return False, data.get("message") or "Invalid or expired token."


def reset_password(client: BackendClient, token: str, new_password: str) -> str:
    data = client.post("/api/auth/reset-password", json={"token": token, "newPassword": new_password})
    return data.get("message") or "Password reset successfully!"

# staffdesk/auth/routes.py
from __future__ import annotations

from urllib.parse import urlparse

from flask import current_app, flash, redirect, render_template, request, url_for
from flask_login import current_user, login_user, logout_user

from staffdesk.extensions import clear_session_user, store_session_user
from staffdesk.services import auth as auth_svc
from staffdesk.services.api_client import BackendAuthError, BackendRequestError, BackendUnavailable, get_backend
from . import auth_bp


def _safe_next(default: str) -> str:
    nxt = request.args.get("next") or request.form.get("next") or ""
    # só caminhos relativos ao próprio site
    parsed = urlparse(nxt)
    if nxt and not parsed.scheme and not parsed.netloc and nxt.startswith("/"):
        return nxt
    return default


# -----------------------------------------------------------------------------#
# LOGIN / LOGOUT
# -----------------------------------------------------------------------------#
@auth_bp.route("/login", methods=["GET", "POST"])
def login():
    """Login do funcionário no backend; token fica na sessão."""
    if current_user.is_authenticated and not current_user.is_admin:
        return redirect(url_for("portal.home"))

    form = {"email": ""}
    errors: dict[str, str] = {}

    if request.method == "POST":
        email = request.form.get("email") or ""
        password = request.form.get("password") or ""
        form["email"] = email
        errors = auth_svc.validate_login(email, password)
        if errors:
            return render_template("auth/login.html", form=form, errors=errors), 400

        try:
            result = auth_svc.login_staff(get_backend(), email, password)
        except (BackendAuthError, BackendRequestError) as e:
            current_app.logger.info("login: rejected email=%s (%s)", auth_svc.normalize_email(email), e.message)
            errors["form"] = e.message or "Login failed"
            return render_template("auth/login.html", form=form, errors=errors,
                                   unverified=auth_svc.needs_verification(e)), 400

        if not result["token"]:
            errors["form"] = "Login failed"
            return render_template("auth/login.html", form=form, errors=errors), 400

        user = store_session_user(result["token"], "staff", result["user"])
        login_user(user)
        current_app.logger.info("login: ok email=%s", user.email)
        flash(result["message"] or "Login successful! Welcome back!", "success")
        return redirect(_safe_next(url_for("portal.home")))

    return render_template("auth/login.html", form=form, errors=errors)


@auth_bp.route("/logout", methods=["POST", "GET"])
def logout():
    logout_user()
    clear_session_user()
    flash("Logged out successfully!", "success")
    return redirect(url_for("auth.login"))


@auth_bp.post("/resend-verification")
def resend_verification():
    email = auth_svc.normalize_email(request.form.get("email"))
    if not email:
        flash("Please enter your email first", "warning")
        return redirect(url_for("auth.login"))
    try:
        flash(auth_svc.resend_verification(get_backend(), email), "success")
    except BackendRequestError as e:
        flash(e.message or "Failed to resend verification email", "danger")
    return redirect(url_for("auth.verify_email", email=email))


# -----------------------------------------------------------------------------#
# Verificação de e-mail (código de 6 dígitos)
# -----------------------------------------------------------------------------#
@auth_bp.route("/verify-email", methods=["GET", "POST"])
def verify_email():
    form = {"email": request.values.get("email", ""), "verificationCode": ""}
    errors: dict[str, str] = {}

    if request.method == "POST":
        form["verificationCode"] = request.form.get("verificationCode", "")
        errors = auth_svc.validate_verification(form["email"], form["verificationCode"])
        if errors:
            return render_template("auth/verify_email.html", form=form, errors=errors), 400
        try:
            message = auth_svc.verify_email(get_backend(), form["email"], form["verificationCode"])
        except BackendRequestError as e:
            errors["form"] = e.message or "Invalid verification code."
            return render_template("auth/verify_email.html", form=form, errors=errors), 400
        flash(message, "success")
        return redirect(url_for("auth.login"))

    return render_template("auth/verify_email.html", form=form, errors=errors)


# -----------------------------------------------------------------------------#
# Esqueci a senha / reset
# -----------------------------------------------------------------------------#
@auth_bp.route("/forgot-password", methods=["GET", "POST"])
def forgot_password():
    message = ""
    errors: dict[str, str] = {}
    email = ""
    if request.method == "POST":
        email = auth_svc.normalize_email(request.form.get("email"))
        if not email:
            errors["email"] = "Email is required"
            return render_template("auth/forgot_password.html", email=email, errors=errors,
                                   message=message), 400
        try:
            message = auth_svc.forgot_password(get_backend(), email)
        except BackendRequestError as e:
            errors["form"] = e.message or "An error occurred. Please try again."
            return render_template("auth/forgot_password.html", email=email, errors=errors,
                                   message=message), 400
    return render_template("auth/forgot_password.html", email=email, errors=errors, message=message)


@auth_bp.route("/reset-password/<token>", methods=["GET", "POST"])
def reset_password(token: str):
    client = get_backend()

    try:
        valid, reason = auth_svc.validate_reset_token(client, token)
    except (BackendRequestError, BackendUnavailable) as e:
        valid, reason = False, e.message or "Invalid or expired token."
    if not valid:
        return render_template("auth/reset_password.html", token=token, valid=False,
                               errors={"token": reason}), 400

    errors: dict[str, str] = {}
    if request.method == "POST":
        new_password = request.form.get("newPassword") or ""
        errors = auth_svc.validate_new_password(new_password, request.form.get("confirmPassword") or "")
        if not errors:
            try:
                message = auth_svc.reset_password(client, token, new_password)
            except BackendRequestError as e:
                errors["server"] = e.message or "An error occurred. Please try again."
            else:
                flash(message, "success")
                return redirect(url_for("auth.login"))
        return render_template("auth/reset_password.html", token=token, valid=True, errors=errors), 400

    return render_template("auth/reset_password.html", token=token, valid=True, errors=errors)

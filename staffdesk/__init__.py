# staffdesk/__init__.py
from __future__ import annotations

import logging
import os
import subprocess
from datetime import date, datetime

from dotenv import find_dotenv, load_dotenv
from flask import Flask, flash, redirect, render_template, request, url_for
from flask_login import current_user, logout_user

from .config import Config
from .extensions import clear_session_user, login_manager
from .services.api_client import (
    BackendAuthError,
    BackendRequestError,
    BackendUnavailable,
    init_backend,
)
from .services.session_token import is_expired

__version__ = "0.1.0"


def create_app(config_override: dict | None = None) -> Flask:
    # Carrega .env
    load_dotenv(find_dotenv(), override=True)

    app = Flask(
        __name__,
        static_folder="../static",
        template_folder="../templates",
        instance_relative_config=True,
    )
    app.config.from_object(Config())
    app.config.setdefault("TEMPLATES_AUTO_RELOAD", True)
    if config_override:
        app.config.update(config_override)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

    def _git_cmd(args: list[str]) -> str:
        try:
            return subprocess.check_output(
                ["git", "-C", repo_root, *args],
                stderr=subprocess.DEVNULL,
                text=True,
            ).strip()
        except (OSError, subprocess.CalledProcessError):
            return ""

    app_version = os.getenv("APP_VERSION") or ""
    if not app_version and not app.config.get("TESTING"):
        app_version = _git_cmd(["describe", "--tags", "--always"])
    app.config["APP_VERSION"] = app_version or __version__

    # --------- Filtros Jinja ----------
    def datefmt(value) -> str:
        """'2025-03-04T10:00:00Z' -> 'Mar 04, 2025'"""
        if not value:
            return ""
        if isinstance(value, (date, datetime)):
            d = value
        else:
            try:
                d = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
            except ValueError:
                return str(value)
        return d.strftime("%b %d, %Y")

    def time12(value) -> str:
        """'14:30' -> '2:30 PM'"""
        if not value:
            return "Not set"
        try:
            hours, minutes = str(value).split(":")[:2]
            h = int(hours)
        except ValueError:
            return str(value)
        return f"{h % 12 or 12}:{minutes} {'AM' if h < 12 else 'PM'}"

    app.add_template_filter(datefmt, "datefmt")
    app.add_template_filter(time12, "time12")

    # --------- Contexto comum nos templates ----------
    @app.context_processor
    def inject_common():
        return {
            "config": app.config,
            "app_version": app.config.get("APP_VERSION", ""),
            "current_role": getattr(current_user, "role", None),
        }

    # --------- Extensões ----------
    login_manager.init_app(app)
    login_manager.login_view = "auth.login"
    login_manager.login_message_category = "warning"
    init_backend(app)

    # --------- Sessão expirada (exp do JWT) ----------
    @app.before_request
    def _drop_expired_session():
        if request.endpoint in (None, "static"):
            return
        if not current_user.is_authenticated:
            return
        if is_expired(current_user.token):
            admin = current_user.is_admin
            app.logger.info("session expired for %s", current_user.get_id())
            logout_user()
            clear_session_user()
            flash("Session expired. Please log in again.", "warning")
            return redirect(url_for("admin.login" if admin else "auth.login"))

    # --------- Erros do backend ----------
    @app.errorhandler(BackendAuthError)
    def _backend_auth(e: BackendAuthError):
        admin = bool(getattr(current_user, "is_admin", False)) or (request.blueprint == "admin")
        app.logger.warning("backend rejected credentials on %s: %s", request.path, e.message)
        logout_user()
        clear_session_user()
        flash("Authentication failed. Please log in again.", "danger")
        return redirect(url_for("admin.login" if admin else "auth.login"))

    @app.errorhandler(BackendUnavailable)
    def _backend_down(e: BackendUnavailable):
        app.logger.error("backend unavailable on %s: %s", request.path, e.message)
        return render_template("errors/backend_unavailable.html", error=e), 503

    @app.errorhandler(BackendRequestError)
    def _backend_rejected(e: BackendRequestError):
        app.logger.warning("backend refused %s: %s", request.path, e.message)
        return render_template("errors/backend_error.html", error=e), 502

    # --------- Blueprints ----------
    from .auth import auth_bp      # /auth
    from .admin import admin_bp    # /admin
    from .portal import portal_bp  # /portal

    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(admin_bp, url_prefix="/admin")
    app.register_blueprint(portal_bp, url_prefix="/portal")

    @app.route("/")
    def index():
        if current_user.is_authenticated:
            return redirect(url_for("admin.dashboard" if current_user.is_admin else "portal.home"))
        return render_template("index.html")

    # --------- CLI ----------
    from .cli import backend_cli
    app.cli.add_command(backend_cli)

    return app

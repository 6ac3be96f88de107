# staffdesk/admin/__init__.py
from __future__ import annotations

from flask import Blueprint, current_app, flash, session
from flask_login import current_user

from staffdesk.services.session_token import expires_within

# único ponto de criação do blueprint admin
admin_bp = Blueprint("admin", __name__)

WARNED_KEY = "_expiry_warned"


@admin_bp.before_request
def warn_session_expiring():
    """Avisa uma vez por login quando o token do admin expira em breve."""
    if not current_user.is_authenticated or not current_user.is_admin:
        return
    if session.get(WARNED_KEY):
        return
    window = current_app.config.get("SESSION_WARN_SECONDS", 1800)
    if expires_within(current_user.token, window):
        session[WARNED_KEY] = True
        flash("Your session will expire soon. Please save any work.", "warning")


# Carrega as rotas (que importam admin_bp daqui)
from . import routes  # noqa: E402,F401

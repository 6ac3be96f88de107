# staffdesk/guards.py
from functools import wraps

from flask import abort
from flask_login import current_user, login_required


def admin_only(view):
    """Permite acesso apenas a sessões de administrador."""
    @wraps(view)
    @login_required
    def wrapper(*args, **kwargs):
        if not getattr(current_user, "is_admin", False):
            abort(403)
        return view(*args, **kwargs)
    return wrapper


def staff_only(view):
    """Área do funcionário; admin usa o próprio painel."""
    @wraps(view)
    @login_required
    def wrapper(*args, **kwargs):
        if getattr(current_user, "is_admin", False):
            abort(403)
        return view(*args, **kwargs)
    return wrapper


def current_token() -> str | None:
    return getattr(current_user, "token", None)

from flask import redirect, request, session, url_for
from flask_login import LoginManager, UserMixin


login_manager = LoginManager()

SESSION_KEY = "auth"


class SessionUser(UserMixin):
    """Usuário autenticado no backend; vive apenas no cookie de sessão."""

    def __init__(self, token: str, role: str, profile: dict | None = None):
        self.token = token
        self.role = role
        self.profile = profile or {}

    @property
    def backend_id(self) -> str:
        p = self.profile
        return str(p.get("_id") or p.get("id") or p.get("userId") or p.get("email") or "")

    def get_id(self) -> str:
        return f"{self.role}:{self.backend_id}"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def email(self) -> str:
        return self.profile.get("email") or ""

    @property
    def display_name(self) -> str:
        p = self.profile
        return p.get("name") or p.get("username") or p.get("email") or "User"


def store_session_user(token: str, role: str, profile: dict | None) -> SessionUser:
    session[SESSION_KEY] = {"token": token, "role": role, "profile": profile or {}}
    session.pop("_expiry_warned", None)
    session.permanent = True
    return SessionUser(token, role, profile)


def clear_session_user() -> None:
    session.pop(SESSION_KEY, None)


@login_manager.user_loader
def _load_user(user_id: str):
    data = session.get(SESSION_KEY)
    if not data or not data.get("token"):
        return None
    user = SessionUser(data["token"], data.get("role", "staff"), data.get("profile"))
    if user.get_id() != user_id:
        return None
    return user


@login_manager.unauthorized_handler
def _unauth():
    # admin area has its own login page
    if (request.blueprint or "") == "admin":
        return redirect(url_for("admin.login", next=request.full_path))
    return redirect(url_for("auth.login", next=request.full_path))

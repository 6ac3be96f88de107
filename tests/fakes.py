"""Dublês compartilhados pelos testes: backend falso, tokens e app."""
import json as jsonlib
import time

import jwt

from staffdesk import create_app
from staffdesk.services.api_client import BackendAuthError, BackendClient

BACKEND_BASE = "http://backend.test"


def make_token(expires_in: int = 3600, **claims) -> str:
    payload = {"id": "u1", **claims}
    if expires_in is not None:
        payload["exp"] = int(time.time()) + expires_in
    return jwt.encode(payload, "test-signing-key-not-used-by-the-client-000", algorithm="HS256")


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, raw: bytes = None):
        self.status_code = status_code
        if raw is not None:
            self.content = raw
        else:
            self.content = b"" if payload is None else jsonlib.dumps(payload).encode()

    def json(self):
        return jsonlib.loads(self.content.decode())


class FakeSession:
    """Substitui requests.Session; cada item da fila é uma resposta ou uma exceção."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeBackend(BackendClient):
    """
    Backend em memória. ``routes`` mapeia (MÉTODO, caminho) para um dict de
    resposta, uma exceção a levantar ou um callable(**kwargs) -> dict.
    """

    def __init__(self, routes=None):
        super().__init__(BACKEND_BASE, sleep=lambda s: None)
        self.routes = dict(routes or {})
        self.calls = []

    def request(self, method, path, **kwargs):
        method = method.upper()
        self.calls.append((method, path, kwargs))
        if kwargs.get("require_token") and not kwargs.get("token"):
            raise BackendAuthError("No token found")
        result = self.routes.get((method, path), {})
        if isinstance(result, Exception):
            raise result
        if callable(result):
            return result(**kwargs)
        return result

    def paths(self, method=None):
        return [p for m, p, _ in self.calls if method is None or m == method]

    def last_call(self, method, path):
        for m, p, kw in reversed(self.calls):
            if m == method and p == path:
                return kw
        return None


def make_app(backend: FakeBackend, **overrides):
    config = {
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "BACKEND_API_BASE": BACKEND_BASE,
        "DASHBOARD_CALL_SPACING": 0,
    }
    config.update(overrides)
    app = create_app(config)
    app.extensions["backend_client"] = backend
    return app


STAFF_PROFILE = {"id": "u1", "username": "maria", "email": "maria@example.com", "department": "Office Helpers"}
ADMIN_PROFILE = {"id": "a1", "name": "Root", "email": "admin@example.com"}


def login_staff(client, backend: FakeBackend, token: str = None):
    backend.routes[("POST", "/api/auth/login")] = {
        "token": token or make_token(),
        "user": STAFF_PROFILE,
        "message": "Welcome back!",
    }
    return client.post("/auth/login", data={"email": "maria@example.com", "password": "secret123"})


def login_admin(client, backend: FakeBackend, token: str = None):
    backend.routes[("POST", "/api/admin/login")] = {
        "token": token or make_token(id="a1"),
        "admin": ADMIN_PROFILE,
    }
    return client.post("/admin/login", data={"email": "admin@example.com", "password": "secret123"})

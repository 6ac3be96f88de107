# staffdesk/services/api_client.py
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

import requests
from flask import current_app

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 45.0
DEFAULT_MAX_RETRIES = 3


# =============================================================================
# Erros
# =============================================================================
class BackendError(Exception):
    """Falha ao falar com o backend REST."""

    def __init__(self, message: str, status: Optional[int] = None, payload: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload or {}


class BackendUnavailable(BackendError):
    """Timeout, conexão recusada ou 5xx depois de esgotar as tentativas."""


class BackendAuthError(BackendError):
    """401/403 ou token ausente."""


class BackendRequestError(BackendError):
    """4xx (exceto auth) ou corpo com success=false."""


# falhas que uma tela pode tolerar (auth sempre propaga)
SOFT_ERRORS = (BackendUnavailable, BackendRequestError)


def _message_from(payload: dict, status: int) -> str:
    msg = payload.get("message") or payload.get("error")
    return str(msg) if msg else f"HTTP {status}"


def _decode(resp: requests.Response) -> dict:
    if not resp.content:
        return {}
    try:
        data = resp.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {"data": data}


# =============================================================================
# Cliente
# =============================================================================
class BackendClient:
    """
    Cliente HTTP do backend com bearer token e backoff exponencial.

    Política por tentativa ``n`` (1..max_retries):
    - timeout / erro de conexão -> espera ``2**n * 2`` s
    - status >= 500            -> espera ``2**n * 1`` s
    - qualquer outro erro      -> falha imediata
    Na última tentativa o erro é propagado.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self.max_retries = max(1, int(max_retries))
        self.session = session or requests.Session()
        self._sleep = sleep

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    @staticmethod
    def backoff_delay(attempt: int, *, timed_out: bool) -> float:
        factor = 2.0 if timed_out else 1.0
        return (2 ** attempt) * factor

    def request(
        self,
        method: str,
        path: str,
        *,
        token: Optional[str] = None,
        json: Any = None,
        params: Optional[dict] = None,
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
        require_token: bool = False,
    ) -> dict:
        if require_token and not token:
            raise BackendAuthError("No token found")

        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        url = self.url(path)
        attempts = max(1, int(retries or self.max_retries))
        timeout = timeout or self.timeout

        for attempt in range(1, attempts + 1):
            last = attempt == attempts
            try:
                resp = self.session.request(
                    method.upper(), url,
                    headers=headers, json=json, params=params, timeout=timeout,
                )
            except (requests.Timeout, requests.ConnectionError) as e:
                if last:
                    logger.warning("backend %s %s: gave up after %d attempts (%s)", method, path, attempt, e)
                    raise BackendUnavailable(f"Backend unreachable: {e}") from e
                delay = self.backoff_delay(attempt, timed_out=True)
                logger.warning("backend %s %s: attempt %d/%d timed out, retrying in %.0fs",
                               method, path, attempt, attempts, delay)
                self._sleep(delay)
                continue

            payload = _decode(resp)
            status = resp.status_code

            if status >= 500:
                if last:
                    logger.warning("backend %s %s: HTTP %d after %d attempts", method, path, status, attempt)
                    raise BackendUnavailable(_message_from(payload, status), status, payload)
                delay = self.backoff_delay(attempt, timed_out=False)
                logger.warning("backend %s %s: attempt %d/%d got HTTP %d, retrying in %.0fs",
                               method, path, attempt, attempts, status, delay)
                self._sleep(delay)
                continue

            if status in (401, 403):
                raise BackendAuthError(_message_from(payload, status), status, payload)
            if status >= 400:
                raise BackendRequestError(_message_from(payload, status), status, payload)

            if payload.get("success") is False:
                raise BackendRequestError(payload.get("message") or "Request failed", status, payload)
            return payload

        # laço sempre retorna ou levanta
        raise BackendUnavailable("Backend unreachable")

    def get(self, path: str, **kw) -> dict:
        return self.request("GET", path, **kw)

    def post(self, path: str, **kw) -> dict:
        return self.request("POST", path, **kw)

    def put(self, path: str, **kw) -> dict:
        return self.request("PUT", path, **kw)

    def delete(self, path: str, **kw) -> dict:
        return self.request("DELETE", path, **kw)


def init_backend(app) -> BackendClient:
    client = BackendClient(
        app.config["BACKEND_API_BASE"],
        timeout=app.config.get("BACKEND_TIMEOUT", DEFAULT_TIMEOUT),
        max_retries=app.config.get("BACKEND_MAX_RETRIES", DEFAULT_MAX_RETRIES),
    )
    app.extensions["backend_client"] = client
    return client


def get_backend() -> BackendClient:
    return current_app.extensions["backend_client"]

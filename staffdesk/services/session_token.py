# staffdesk/services/session_token.py
"""
Leitura do claim ``exp`` dos JWT emitidos pelo backend.

A assinatura NÃO é verificada aqui: quem valida é o backend. Só usamos o
``exp`` para deslogar cedo e avisar que a sessão vai expirar.
"""
from __future__ import annotations

import time
from typing import Optional

import jwt


def _claims(token: str | None) -> Optional[dict]:
    if not token:
        return None
    try:
        return jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
    except jwt.PyJWTError:
        return None


def token_expiry(token: str | None) -> Optional[float]:
    claims = _claims(token) or {}
    try:
        return float(claims["exp"])
    except (KeyError, TypeError, ValueError):
        return None


def is_expired(token: str | None, now: float | None = None) -> bool:
    """Token ilegível conta como expirado; token sem ``exp`` não expira."""
    if _claims(token) is None:
        return True
    exp = token_expiry(token)
    if exp is None:
        return False
    now = time.time() if now is None else now
    return exp < now


def expires_within(token: str | None, seconds: int = 1800, now: float | None = None) -> bool:
    exp = token_expiry(token)
    if exp is None:
        return False
    now = time.time() if now is None else now
    return exp < now + seconds

# staffdesk/cli.py
"""
Comandos de operação do backend.

Uso:
  flask --app run backend ping
  flask --app run backend wake --attempts 5
"""
from __future__ import annotations

import sys
import time

import click
from flask.cli import with_appcontext

from staffdesk.services.api_client import BackendError, get_backend


@click.group("backend")
def backend_cli():
    """Backend REST API checks."""


@backend_cli.command("ping")
@with_appcontext
def ping():
    """Single GET / without retries."""
    client = get_backend()
    try:
        data = client.get("/", retries=1, timeout=10)
    except BackendError as e:
        click.echo(f"[ERROR] {client.base_url}: {e}", err=True)
        sys.exit(1)
    status = data.get("status") or data.get("message") or "ok"
    click.echo(f"[OK] {client.base_url}: {status}")


@backend_cli.command("wake")
@click.option("--attempts", default=None, type=int, help="Attempts (default: BACKEND_MAX_RETRIES)")
@with_appcontext
def wake(attempts: int | None):
    """Wake a sleeping backend using the same backoff policy as the views."""
    client = get_backend()
    started = time.monotonic()
    try:
        client.get("/", retries=attempts)
    except BackendError as e:
        click.echo(f"[ERROR] backend did not answer after {time.monotonic() - started:.1f}s: {e}", err=True)
        sys.exit(1)
    click.echo(f"[OK] backend answered in {time.monotonic() - started:.1f}s")

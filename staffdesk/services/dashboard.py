# staffdesk/services/dashboard.py
from __future__ import annotations

import logging
import time
from typing import Callable

from .api_client import SOFT_ERRORS, BackendClient

logger = logging.getLogger(__name__)


def empty_metrics() -> dict:
    return {
        "totalEmployees": 0,
        "activeSchedules": 0,
        "pendingTasks": 0,
        "unreadNotifications": 0,
        "pendingLeaveRequests": 0,
        "systemStatus": "operational",
    }


def system_metrics(
    client: BackendClient,
    token: str,
    *,
    spacing: float = 0.5,
    sleep: Callable[[float], None] = time.sleep,
) -> dict:
    """
    Métricas do painel admin. Chamadas SEQUENCIAIS com uma pausa entre elas
    para não afogar um backend que ainda está acordando; cada falha só zera a
    própria métrica. Se todas falharem o status vira 'degraded'.
    """
    metrics = empty_metrics()
    failures = 0

    def _pause():
        if spacing > 0:
            sleep(spacing)

    try:
        data = client.get("/api/admin/all-staff", token=token, require_token=True)
        metrics["totalEmployees"] = len(data.get("staff") or [])
    except SOFT_ERRORS as e:
        failures += 1
        logger.info("dashboard: staff metrics failed: %s", e)

    _pause()
    try:
        data = client.get("/api/auth/attendance/admin/pending-leaves", token=token, require_token=True)
        metrics["pendingLeaveRequests"] = len(data.get("pendingLeaves") or [])
    except SOFT_ERRORS as e:
        failures += 1
        logger.info("dashboard: leave metrics failed: %s", e)

    _pause()
    try:
        data = client.get("/api/tasks/admin/all", token=token, require_token=True)
        tasks = data.get("tasks") or []
        metrics["pendingTasks"] = sum(1 for t in tasks if t.get("status") == "pending")
        metrics["activeSchedules"] = len(tasks)
    except SOFT_ERRORS as e:
        failures += 1
        logger.info("dashboard: task metrics failed: %s", e)

    _pause()
    try:
        data = client.get("/api/alerts/admin/statistics", token=token, require_token=True)
        totals = (data.get("stats") or {}).get("totals") or {}
        metrics["unreadNotifications"] = int(totals.get("unread") or 0)
    except SOFT_ERRORS as e:
        failures += 1
        logger.info("dashboard: notification metrics failed: %s", e)

    if failures == 4:
        metrics["systemStatus"] = "degraded"
    return metrics

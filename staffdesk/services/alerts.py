# staffdesk/services/alerts.py
from __future__ import annotations

from .api_client import BackendClient
from .tasks import PRIORITIES

ALERT_TYPES = [
    "general", "shift_reminder", "task_assigned",
    "swap_request", "emergency_cleanup", "attendance_missing",
]
DEFAULT_EXPIRES_DAYS = 7
MY_ALERT_FILTERS = ("all", "unread", "urgent", "high")


def alert_id(alert: dict) -> str:
    return str(alert.get("_id") or alert.get("id") or "")


# -----------------------------------------------------------------------------
# Funcionário
# -----------------------------------------------------------------------------
def my_alerts(client: BackendClient, token: str, flt: str = "all") -> dict:
    params = {}
    if flt == "unread":
        params["isRead"] = "false"
    elif flt in ("urgent", "high"):
        params["priority"] = flt
    data = client.get("/api/alerts/my-alerts", token=token, require_token=True, params=params)
    return {
        "alerts": data.get("alerts") or [],
        "grouped": data.get("groupedAlerts") or {},
        "unread": int(data.get("unreadCount") or 0),
    }


def mark_read(client: BackendClient, token: str, aid: str) -> None:
    client.put(f"/api/alerts/mark-read/{aid}", token=token, require_token=True, json={})


def mark_all_read(client: BackendClient, token: str) -> str:
    data = client.put("/api/alerts/mark-all-read", token=token, require_token=True, json={})
    return data.get("message") or "All alerts marked as read"


def delete_alert(client: BackendClient, token: str, aid: str) -> None:
    client.delete(f"/api/alerts/delete/{aid}", token=token, require_token=True)


# -----------------------------------------------------------------------------
# Admin
# -----------------------------------------------------------------------------
def admin_overview(client: BackendClient, token: str) -> dict:
    alerts = client.get("/api/alerts/admin/all", token=token, require_token=True)
    users = client.get("/api/auth/users", token=token, require_token=True)
    stats = client.get("/api/alerts/admin/statistics", token=token, require_token=True)
    return {
        "alerts": alerts.get("alerts") or [],
        "users": users.get("users") or [],
        "stats": stats.get("stats") or {},
    }


def alert_payload_from_form(form, *, broadcast: bool = False) -> dict:
    try:
        expires = int(form.get("expiresInDays") or DEFAULT_EXPIRES_DAYS)
    except ValueError:
        expires = DEFAULT_EXPIRES_DAYS
    payload = {
        "type": form.get("type") if form.get("type") in ALERT_TYPES else "general",
        "title": (form.get("title") or "").strip(),
        "message": (form.get("message") or "").strip(),
        "priority": form.get("priority") if form.get("priority") in PRIORITIES else "medium",
        "actionRequired": form.get("actionRequired") in ("on", "true", "1"),
        "actionUrl": (form.get("actionUrl") or "").strip(),
        "expiresInDays": max(1, expires),
    }
    if broadcast:
        payload["department"] = (form.get("department") or "").strip()
    else:
        payload["userId"] = (form.get("userId") or "").strip()
    return payload


def validate_alert(payload: dict) -> dict[str, str]:
    errors: dict[str, str] = {}
    if not payload.get("title"):
        errors["title"] = "Title is required"
    if not payload.get("message"):
        errors["message"] = "Message is required"
    if "userId" in payload and not payload["userId"]:
        errors["userId"] = "Select a user"
    return errors


def create_alert(client: BackendClient, token: str, payload: dict) -> str:
    data = client.post("/api/alerts/create", token=token, require_token=True, json=payload, retries=1)
    return data.get("message") or "Alert created successfully"


def broadcast_alert(client: BackendClient, token: str, payload: dict) -> str:
    data = client.post("/api/alerts/broadcast", token=token, require_token=True, json=payload, retries=1)
    return data.get("message") or "Alert broadcasted successfully"


def cleanup_expired(client: BackendClient, token: str) -> str:
    data = client.delete("/api/alerts/admin/cleanup-expired", token=token, require_token=True)
    return data.get("message") or "Expired alerts cleaned up"

# staffdesk/services/attendance.py
from __future__ import annotations

import logging
from datetime import date

from .api_client import SOFT_ERRORS, BackendClient, BackendError

logger = logging.getLogger(__name__)

LEAVE_TYPES = ["sick", "personal", "vacation", "emergency", "other"]
ATTENDANCE_STATUSES = ["present", "late", "absent", "leave", "half-day"]
HISTORY_PAGE_SIZE = 10
APPLY_LEAVE_TIMEOUT = 30

EMPTY_SUMMARY = {
    "totalEmployees": 0,
    "present": 0,
    "late": 0,
    "absent": 0,
    "stillWorking": 0,
    "attendanceRate": 0,
}


# =============================================================================
# Admin
# =============================================================================
def today_summary(client: BackendClient, token: str | None) -> dict:
    """
    Resumo de presença do dia. Tenta primeiro sem auth (endpoint aberto no
    backend), depois com token; se tudo falhar devolve zeros.
    """
    try:
        data = client.get("/api/auth/attendance/admin/today-summary", retries=1)
        return data.get("summary") or dict(EMPTY_SUMMARY)
    except BackendError as e:
        logger.info("today-summary without auth failed (%s); retrying with token", e)
    try:
        data = client.get("/api/auth/attendance/admin/today-summary", token=token, require_token=True)
        return data.get("summary") or dict(EMPTY_SUMMARY)
    except BackendError as e:
        logger.info("today-summary unavailable: %s", e)
        return dict(EMPTY_SUMMARY)


def pending_leaves(client: BackendClient, token: str) -> list[dict]:
    """Pedidos de folga pendentes, cada um com 'userDetails'."""
    data = client.get("/api/auth/attendance/admin/pending-leaves", token=token, require_token=True)
    leaves = list(data.get("pendingLeaves") or [])
    if not leaves:
        return leaves

    # uma chamada só para todos os usuários
    users_by_id: dict[str, dict] = {}
    try:
        users = client.get("/api/auth/users", token=token, require_token=True).get("users") or []
        users_by_id = {str(u.get("id") or u.get("_id")): u for u in users}
    except SOFT_ERRORS as e:
        logger.info("pending leaves: user lookup failed (%s)", e)

    out = []
    for leave in leaves:
        user = users_by_id.get(str(leave.get("userId")))
        out.append({
            **leave,
            "userDetails": user or {"username": leave.get("username"), "email": leave.get("email")},
        })
    return out


def decide_leave(client: BackendClient, token: str, attendance_id: str, approved: bool, notes: str = "") -> str:
    data = client.post(
        "/api/auth/attendance/admin/approve-leave",
        token=token,
        require_token=True,
        json={
            "attendanceId": attendance_id,
            "isApproved": bool(approved),
            "approvalNotes": (notes or "").strip(),
        },
    )
    return data.get("message") or ("Leave approved" if approved else "Leave rejected")


# =============================================================================
# Funcionário
# =============================================================================
def my_today(client: BackendClient, token: str) -> dict:
    data = client.get("/api/auth/attendance/today", token=token, require_token=True)
    return data.get("attendance") or {}


def my_history(client: BackendClient, token: str, page: int = 1) -> dict:
    page = max(1, int(page or 1))
    data = client.get(
        "/api/auth/attendance/history",
        token=token,
        require_token=True,
        params={"page": page, "limit": HISTORY_PAGE_SIZE},
    )
    return {
        "records": data.get("attendance") or [],
        "pagination": data.get("pagination") or {"current": page, "total": 1, "hasNext": False, "hasPrev": page > 1},
    }


def check_in(client: BackendClient, token: str) -> str:
    data = client.post("/api/auth/attendance/check-in", token=token, require_token=True,
                       json={"location": "Office"})
    return data.get("message") or "Checked in"


def check_out(client: BackendClient, token: str) -> str:
    data = client.post("/api/auth/attendance/check-out", token=token, require_token=True,
                       json={"location": "Office"})
    return data.get("message") or "Checked out"


def mark_absent(client: BackendClient, token: str, reason: str) -> str:
    data = client.post("/api/auth/attendance/mark-absent", token=token, require_token=True,
                       json={"reason": reason.strip()})
    return data.get("message") or "Marked absent"


def validate_leave(reason: str, leave_type: str, leave_date: str, today: date | None = None) -> dict[str, str]:
    errors: dict[str, str] = {}
    if not (reason or "").strip():
        errors["reason"] = "Please provide a reason for leave"
    if leave_type not in LEAVE_TYPES:
        errors["leaveType"] = "Please select a leave type"
    if not leave_date:
        errors["date"] = "Please select a leave date"
    else:
        try:
            chosen = date.fromisoformat(leave_date)
        except ValueError:
            errors["date"] = "Please select a leave date"
        else:
            if chosen <= (today or date.today()):
                errors["date"] = "Leave can only be applied for future dates. Please select a date after today."
    return errors


def apply_leave(client: BackendClient, token: str, reason: str, leave_type: str, leave_date: str) -> str:
    # POST não idempotente: uma tentativa só
    data = client.post(
        "/api/auth/attendance/apply-leave",
        token=token,
        require_token=True,
        json={"reason": reason.strip(), "leaveType": leave_type, "date": leave_date},
        timeout=APPLY_LEAVE_TIMEOUT,
        retries=1,
    )
    return data.get("message") or "Leave application submitted"


def change_status(client: BackendClient, token: str, status: str, reason: str, today: date | None = None) -> str:
    data = client.post(
        "/api/auth/attendance/change-status",
        token=token,
        require_token=True,
        json={"status": status, "reason": reason.strip(), "date": (today or date.today()).isoformat()},
    )
    return data.get("message") or "Status updated"

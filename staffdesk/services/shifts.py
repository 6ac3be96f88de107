# staffdesk/services/shifts.py
from __future__ import annotations

from .api_client import BackendClient

ADMIN_ACTIONS = ("approved", "rejected")
RESPONSE_ACTIONS = ("accepted", "rejected")


def swap_id(req: dict) -> str:
    return str(req.get("_id") or req.get("id") or "")


# -----------------------------------------------------------------------------
# Admin
# -----------------------------------------------------------------------------
def admin_overview(client: BackendClient, token: str) -> dict:
    pending = client.get("/api/shifts/admin/pending", token=token, require_token=True)
    everything = client.get("/api/shifts/admin/all", token=token, require_token=True)
    return {
        "pending": pending.get("pendingApprovals") or [],
        "all": everything.get("swapRequests") or [],
    }


def admin_decide(client: BackendClient, token: str, sid: str, action: str, notes: str = "") -> str:
    if action not in ADMIN_ACTIONS:
        raise ValueError(f"Invalid action: {action}")
    if action == "rejected" and not (notes or "").strip():
        raise ValueError("A reason is required to reject a swap request")
    data = client.put(
        f"/api/shifts/admin/approve/{sid}",
        token=token,
        require_token=True,
        json={"action": action, "approvalNotes": (notes or "").strip()},
    )
    return data.get("message") or f"Swap request {action} successfully"


# -----------------------------------------------------------------------------
# Funcionário
# -----------------------------------------------------------------------------
def my_requests(client: BackendClient, token: str) -> dict:
    data = client.get("/api/shifts/my-requests", token=token, require_token=True)
    requests_ = data.get("requests") or {}
    return {"sent": requests_.get("sent") or [], "received": requests_.get("received") or []}


def my_scheduled_shifts(client: BackendClient, token: str) -> list[dict]:
    data = client.get("/api/schedule/my-schedule", token=token, require_token=True)
    return [s for s in (data.get("schedules") or []) if s.get("status") == "scheduled"]


def available_partners(client: BackendClient, token: str, schedule_id: str) -> list[dict]:
    data = client.get(f"/api/shifts/available-partners/{schedule_id}", token=token, require_token=True)
    return list(data.get("availablePartners") or [])


def request_swap(
    client: BackendClient,
    token: str,
    *,
    target_user_id: str,
    requester_schedule_id: str,
    target_schedule_id: str,
    reason: str,
) -> str:
    data = client.post(
        "/api/shifts/request-swap",
        token=token,
        require_token=True,
        retries=1,
        json={
            "targetUserId": target_user_id,
            "requesterScheduleId": requester_schedule_id,
            "targetScheduleId": target_schedule_id,
            "reason": (reason or "").strip(),
        },
    )
    return data.get("message") or "Swap request sent successfully"


def partner_user_id(partner: dict) -> str:
    user = partner.get("userId")
    if isinstance(user, dict):
        return str(user.get("_id") or user.get("id") or "")
    return str(user or "")


def respond(client: BackendClient, token: str, sid: str, action: str, message: str = "") -> str:
    if action not in RESPONSE_ACTIONS:
        raise ValueError(f"Invalid action: {action}")
    data = client.put(
        f"/api/shifts/respond/{sid}",
        token=token,
        require_token=True,
        json={"action": action, "responseMessage": (message or "").strip()},
    )
    return data.get("message") or f"Swap request {action}"


def cancel(client: BackendClient, token: str, sid: str) -> str:
    data = client.put(f"/api/shifts/cancel/{sid}", token=token, require_token=True, json={})
    return data.get("message") or "Swap request cancelled"

# staffdesk/services/tasks.py
from __future__ import annotations

import logging
import math
from datetime import date
from typing import Iterable

from .api_client import BackendClient, SOFT_ERRORS
from .staff import find_member

logger = logging.getLogger(__name__)

CATEGORIES = [
    "Security", "Maintenance", "Cleaning", "Administrative",
    "Customer Service", "Inspection", "Training", "Emergency Response",
]
PRIORITIES = ["low", "medium", "high", "urgent"]
STATUSES = ["pending", "in-progress", "completed", "cancelled"]
VERIFICATION_RESULTS = ["pass", "fail", "recheck"]
DEFAULT_DURATION = 60

# cargo -> categoria sugerida ao escolher o responsável
JOB_TITLE_CATEGORY = {
    "Classroom Cleaner": "Cleaning",
    "Restroom Cleaner": "Cleaning",
    "Floor Care Team": "Cleaning",
    "Meeting Attendant": "Customer Service",
    "Event Setup Helper": "Administrative",
    "Document Runner": "Administrative",
    "Tea Server": "Customer Service",
    "Refreshment Helper": "Customer Service",
    "Key Handler": "Security",
    "Repair Technician": "Maintenance",
    "Waste Collector": "Cleaning",
    "Gardener": "Maintenance",
    "Outdoor Cleaner": "Cleaning",
    "Supply Assistant": "Administrative",
    "General Helper": "Administrative",
}


def task_id(task: dict) -> str:
    return str(task.get("_id") or task.get("id") or "")


def verification_label(task: dict) -> dict[str, str]:
    """Estado de verificação de qualidade de uma tarefa, para exibição."""
    vstatus = task.get("verificationStatus")
    if not vstatus or vstatus == "none":
        if task.get("status") == "completed":
            return {"status": "pending_assignment", "text": "Awaiting Assignment"}
        return {"status": "not_needed", "text": "Complete Task First"}

    if vstatus == "pending_verification":
        return {"status": "under_review", "text": "Under Review"}
    if vstatus == "completed":
        final = task.get("finalVerificationStatus")
        score = task.get("verificationScore") or "N/A"
        if final == "approved":
            return {"status": "approved", "text": f"Approved ({score}/5)"}
        if final == "rejected":
            return {"status": "rejected", "text": f"Failed ({score}/5)"}
        return {"status": "pending_review", "text": "Pending Final Review"}
    return {"status": "unknown", "text": "Unknown"}


def display_title(task: dict) -> str:
    original = task.get("originalAssignee") or {}
    if task.get("isReassigned") and original:
        return f"{task.get('title')} (Reassigned from {original.get('username') or 'unknown'})"
    return task.get("title") or ""


# =============================================================================
# Admin
# =============================================================================
def list_all(client: BackendClient, token: str) -> list[dict]:
    data = client.get("/api/tasks/admin/all", token=token, require_token=True)
    return list(data.get("tasks") or [])


def task_form_from_request(form, staff: Iterable[dict]) -> dict:
    """
    Payload de criação. Categoria e departamento em branco são deduzidos do
    responsável (cargo -> categoria, departamento do perfil).
    """
    assigned_to = (form.get("assignedTo") or "").strip()
    try:
        duration = int(form.get("estimatedDuration") or DEFAULT_DURATION)
    except ValueError:
        duration = DEFAULT_DURATION

    payload = {
        "title": (form.get("title") or "").strip(),
        "description": (form.get("description") or "").strip(),
        "assignedTo": assigned_to,
        "date": (form.get("date") or "").strip(),
        "priority": form.get("priority") if form.get("priority") in PRIORITIES else "medium",
        "category": (form.get("category") or "").strip(),
        "department": (form.get("department") or "").strip(),
        "location": (form.get("location") or "").strip(),
        "estimatedDuration": duration,
    }

    member = find_member(staff, assigned_to) if assigned_to else None
    if member:
        if not payload["category"]:
            payload["category"] = JOB_TITLE_CATEGORY.get(member.get("jobTitle") or "", "")
        if not payload["department"]:
            payload["department"] = member.get("department") or ""
    return payload


def validate_task(payload: dict) -> dict[str, str]:
    errors: dict[str, str] = {}
    for field, label in (("title", "Title"), ("assignedTo", "Assignee"), ("date", "Date")):
        if not payload.get(field):
            errors[field] = f"{label} is required"
    if payload.get("category") and payload["category"] not in CATEGORIES:
        errors["category"] = "Unknown category"
    if payload.get("estimatedDuration", 0) <= 0:
        errors["estimatedDuration"] = "Estimated duration must be positive"
    return errors


def create_task(client: BackendClient, token: str, payload: dict) -> str:
    data = client.post("/api/tasks/create", token=token, json=payload, require_token=True)
    message = "Task created successfully"
    details = data.get("reassignmentDetails")
    if details:
        src = (details.get("from") or {}).get("username") or "?"
        dst = (details.get("to") or {}).get("username") or "?"
        message += f". Auto-reassigned from {src} to {dst} due to absence."
    return message


def delete_task(client: BackendClient, token: str, tid: str) -> str:
    data = client.delete(f"/api/tasks/delete/{tid}", token=token, require_token=True)
    return data.get("message") or "Task deleted successfully"


def manual_reassign(client: BackendClient, token: str, tid: str, new_user_id: str) -> str:
    data = client.post(
        f"/api/tasks/manual-reassign/{tid}",
        token=token,
        require_token=True,
        json={"newUserId": new_user_id, "reason": "manual_override"},
    )
    return data.get("message") or "Task reassigned"


def check_reassignments(client: BackendClient, token: str, day: date | None = None) -> str:
    data = client.post(
        "/api/tasks/check-reassignments",
        token=token,
        require_token=True,
        json={"date": (day or date.today()).isoformat()},
    )
    summary = data.get("summary") or {}
    ok = int(summary.get("successful") or 0)
    failed = int(summary.get("failed") or 0)
    if ok or failed:
        return f"Reassignment check completed: {ok} tasks reassigned successfully, {failed} tasks failed to reassign"
    return "No reassignments needed - all assigned users are available!"


def dashboard(client: BackendClient, token: str, period: str = "today") -> dict:
    """Resumo do backend + verificações atrasadas + estatísticas de realocação."""
    out = {"summary": None, "overdue": [], "reassignment_stats": None}
    try:
        data = client.get("/api/tasks/admin/dashboard", token=token, require_token=True,
                          params={"period": period})
        out["summary"] = data
    except SOFT_ERRORS as e:
        logger.info("task dashboard unavailable: %s", e)

    # endpoint de verificação pode não existir no backend
    try:
        data = client.get("/api/verification/overdue", token=token, require_token=True, retries=1)
        out["overdue"] = data.get("overdueTasks") or []
    except SOFT_ERRORS as e:
        logger.info("verification overdue unavailable: %s", e)

    try:
        data = client.get("/api/tasks/reassignment-stats", token=token, require_token=True)
        out["reassignment_stats"] = data.get("stats")
    except SOFT_ERRORS as e:
        logger.info("reassignment stats unavailable: %s", e)
    return out


def needs_verification(client: BackendClient, token: str) -> list[dict]:
    data = client.get("/api/tasks/needs-verification", token=token, require_token=True)
    return list(data.get("tasks") or [])


def assign_verification_team(client: BackendClient, token: str, tid: str) -> str:
    data = client.post(f"/api/tasks/assign-verification/{tid}", token=token, require_token=True)
    return f"Verification assigned successfully to team {data.get('teamCode') or '?'}"


def assign_verifier(client: BackendClient, token: str, tid: str, verifier_ids: list[str]) -> str:
    if len(verifier_ids) != 1:
        raise ValueError("Please select exactly 1 verifier")
    client.post(
        f"/api/tasks/assign-verifier/{tid}",
        token=token,
        require_token=True,
        json={"verifierId": verifier_ids[0]},
    )
    return "Verifier assigned successfully!"


# =============================================================================
# Funcionário
# =============================================================================
def my_tasks(client: BackendClient, token: str, view: str = "today") -> dict:
    """view: today | all | verification | stats"""
    if view == "today":
        data = client.get("/api/tasks/today", token=token, require_token=True)
        return {"tasks": data.get("tasks") or [], "verificationStats": data.get("verificationStats") or {}}
    if view == "verification":
        data = client.get("/api/tasks/my-verification-tasks", token=token, require_token=True)
        return {"tasks": data.get("tasks") or [], "summary": data.get("summary") or {}}

    data = client.get("/api/tasks/my-tasks", token=token, require_token=True,
                      params={"includeVerification": "true"})
    tasks = data.get("tasks") or []
    out = {"tasks": tasks, "verificationStats": data.get("verificationStats") or {}}
    if view == "stats":
        out["stats"] = task_stats(tasks)
    return out


def _avg(values: list[float]) -> float:
    if not values:
        return 0
    # arredonda 0.5 para cima, como o painel antigo
    return math.floor(sum(values) / len(values) * 10 + 0.5) / 10


def task_stats(tasks: list[dict]) -> dict:
    total = len(tasks)
    completed = sum(1 for t in tasks if t.get("status") == "completed")
    return {
        "total": total,
        "completed": completed,
        "pending": sum(1 for t in tasks if t.get("status") == "pending"),
        "inProgress": sum(1 for t in tasks if t.get("status") == "in-progress"),
        "reassignedToMe": sum(1 for t in tasks if t.get("isReassigned") is True),
        "originallyMine": sum(1 for t in tasks if not t.get("isReassigned") or "originalAssignee" not in t),
        "completionRate": int(completed * 100 / total + 0.5) if total else 0,
        "averageRating": _avg([t["rating"] for t in tasks if (t.get("rating") or 0) > 0]),
        "verificationComplete": sum(1 for t in tasks if t.get("verificationStatus") == "completed"),
        "verificationPending": sum(1 for t in tasks if t.get("verificationStatus") == "pending_verification"),
        "verificationApproved": sum(1 for t in tasks if t.get("finalVerificationStatus") == "approved"),
        "verificationRejected": sum(1 for t in tasks if t.get("finalVerificationStatus") == "rejected"),
        "averageVerificationScore": _avg(
            [t["verificationScore"] for t in tasks if (t.get("verificationScore") or 0) > 0]
        ),
    }


def update_status(client: BackendClient, token: str, tid: str, status: str, notes: str = "") -> str:
    if status not in STATUSES:
        raise ValueError(f"Invalid status: {status}")
    data = client.put(
        f"/api/tasks/update-status/{tid}",
        token=token,
        require_token=True,
        json={"status": status, "completionNotes": notes},
    )
    message = "Task status updated successfully!"
    details = data.get("verificationDetails") or {}
    if details.get("assigned"):
        message += f" Quality verification has been assigned to secret team {details.get('teamCode')}"
    return message


def validate_verification(score_raw, result: str) -> tuple[int | None, dict[str, str]]:
    errors: dict[str, str] = {}
    score = None
    if not score_raw or not result:
        errors["form"] = "Please provide both score and result"
        return None, errors
    try:
        score = int(score_raw)
    except (TypeError, ValueError):
        errors["score"] = "Score must be between 1 and 5"
        return None, errors
    if score < 1 or score > 5:
        errors["score"] = "Score must be between 1 and 5"
    if result not in VERIFICATION_RESULTS:
        errors["result"] = "Result must be pass, fail or recheck"
    return score, errors


def submit_verification(client: BackendClient, token: str, tid: str, score: int, result: str, notes: str = "") -> str:
    client.put(
        f"/api/tasks/submit-verification/{tid}",
        token=token,
        require_token=True,
        json={"score": score, "result": result, "notes": notes},
    )
    return f"Verification submitted successfully! Score: {score}/5, result: {result.upper()}"

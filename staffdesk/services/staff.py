# staffdesk/services/staff.py
from __future__ import annotations

from typing import Iterable

from .api_client import BackendClient

DEPARTMENTS = [
    "Cleaning Staff",
    "Event Helpers",
    "Tea and Snack Staff",
    "Maintenance Staff",
    "Outdoor Cleaners",
    "Office Helpers",
]

SHIFTS = ["Morning", "Afternoon", "Evening", "Night"]


def member_id(member: dict) -> str:
    """Id de USUÁRIO (não o do perfil); é o que o backend espera em update/delete."""
    return str(member.get("userId") or member.get("_id") or member.get("id") or "")


def member_name(member: dict) -> str:
    return member.get("name") or member.get("username") or "Unknown"


def format_member(member: dict) -> str:
    """'Nome - Departamento (Cargo) | Turno Shift [09:00 - 17:00]'"""
    text = f"{member.get('name') or member.get('username') or 'Unknown User'} - " \
           f"{member.get('department') or 'No Department'}"
    if member.get("jobTitle"):
        text += f" ({member['jobTitle']})"
    if member.get("shift"):
        text += f" | {member['shift']} Shift"
    hours = member.get("workingHours") or {}
    if hours.get("start") and hours.get("end"):
        text += f" [{hours['start']} - {hours['end']}]"
    return text


# -----------------------------------------------------------------------------
# Backend
# -----------------------------------------------------------------------------
def list_staff(client: BackendClient, token: str) -> tuple[list[dict], int]:
    """Retorna (staff, quantos sem perfil completo)."""
    data = client.get("/api/admin/all-staff", token=token, require_token=True)
    return list(data.get("staff") or []), int(data.get("withoutProfiles") or 0)


def get_member(client: BackendClient, token: str, user_id: str) -> dict:
    data = client.get(f"/api/admin/staff/{user_id}", token=token, require_token=True)
    return data.get("staff") or {}


def find_member(staff: Iterable[dict], user_id: str) -> dict | None:
    for m in staff:
        if user_id in (str(m.get("userId") or ""), str(m.get("_id") or ""), str(m.get("id") or "")):
            return m
    return None


def update_member(client: BackendClient, token: str, user_id: str, payload: dict) -> str:
    data = client.put(f"/api/admin/staff/{user_id}", token=token, json=payload, require_token=True)
    return data.get("message") or "Staff information updated successfully"


def delete_member(client: BackendClient, token: str, user_id: str) -> str:
    data = client.delete(f"/api/admin/staff/{user_id}", token=token, require_token=True)
    return data.get("message") or "Staff member deleted successfully"


# -----------------------------------------------------------------------------
# Filtro / totais
# -----------------------------------------------------------------------------
def filter_staff(staff: Iterable[dict], search: str = "", department: str = "") -> list[dict]:
    term = (search or "").strip().lower()
    out = []
    for m in staff:
        if department and m.get("department") != department:
            continue
        if term:
            haystack = (
                (m.get("name") or m.get("username") or "").lower(),
                (m.get("email") or "").lower(),
                (m.get("jobTitle") or "").lower(),
            )
            if not any(term in h for h in haystack):
                continue
        out.append(m)
    return out


def profile_totals(staff: list[dict]) -> dict[str, int]:
    with_profile = sum(1 for m in staff if m.get("hasProfile"))
    return {"total": len(staff), "with_profile": with_profile, "without_profile": len(staff) - with_profile}


# -----------------------------------------------------------------------------
# Edição
# -----------------------------------------------------------------------------
def edit_defaults(member: dict) -> dict:
    hours = member.get("workingHours") or {}
    contact = member.get("emergencyContact") or {}
    return {
        "name": member.get("name") or member.get("username") or "",
        "phone": member.get("phone") or "",
        "department": member.get("department") or "Office Helpers",
        "jobTitle": member.get("jobTitle") or "General Helper",
        "shift": member.get("shift") or "Morning",
        "workingHours": {
            "start": hours.get("start") or "09:00",
            "end": hours.get("end") or "17:00",
        },
        "skills": list(member.get("skills") or []),
        "yearsWorked": member.get("yearsWorked") or 0,
        "specialTraining": list(member.get("specialTraining") or []),
        "shiftFlexibility": bool(member.get("shiftFlexibility")),
        "emergencyContact": {
            "name": contact.get("name") or "",
            "relationship": contact.get("relationship") or "",
            "phone": contact.get("phone") or "",
        },
        "notes": member.get("notes") or "",
    }


def _split_list(raw: str | None) -> list[str]:
    return [s.strip() for s in (raw or "").split(",") if s.strip()]


def edit_payload_from_form(form) -> dict:
    """Monta o payload de PUT a partir do form (campos 'pai.filho' viram dict aninhado)."""
    try:
        years = int(form.get("yearsWorked") or 0)
    except ValueError:
        years = 0
    return {
        "name": (form.get("name") or "").strip(),
        "phone": (form.get("phone") or "").strip(),
        "department": form.get("department") or "Office Helpers",
        "jobTitle": (form.get("jobTitle") or "").strip() or "General Helper",
        "shift": form.get("shift") or "Morning",
        "workingHours": {
            "start": form.get("workingHours.start") or "09:00",
            "end": form.get("workingHours.end") or "17:00",
        },
        "skills": _split_list(form.get("skills")),
        "yearsWorked": max(0, years),
        "specialTraining": _split_list(form.get("specialTraining")),
        "shiftFlexibility": form.get("shiftFlexibility") in ("on", "true", "1"),
        "emergencyContact": {
            "name": (form.get("emergencyContact.name") or "").strip(),
            "relationship": (form.get("emergencyContact.relationship") or "").strip(),
            "phone": (form.get("emergencyContact.phone") or "").strip(),
        },
        "notes": (form.get("notes") or "").strip(),
    }


def validate_edit(payload: dict) -> dict[str, str]:
    errors: dict[str, str] = {}
    if not payload.get("name") or not payload.get("phone"):
        errors["name"] = "Name and phone are required"
    contact = payload.get("emergencyContact") or {}
    if not contact.get("name") or not contact.get("phone"):
        errors["emergencyContact"] = "Emergency contact information is required"
    return errors

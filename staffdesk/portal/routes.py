# staffdesk/portal/routes.py
from __future__ import annotations

from flask import current_app, flash, redirect, render_template, request, url_for
from flask_login import current_user

from staffdesk.guards import current_token, staff_only
from staffdesk.services import alerts as alerts_svc
from staffdesk.services import attendance as attendance_svc
from staffdesk.services import shifts as shifts_svc
from staffdesk.services import tasks as tasks_svc
from staffdesk.services.api_client import SOFT_ERRORS, BackendRequestError, get_backend
from . import portal_bp

TASK_VIEWS = ("today", "all", "verification", "stats")


def _flash_result(fn, *args, fail_msg: str, **kwargs) -> bool:
    try:
        message = fn(*args, **kwargs)
    except ValueError as e:
        flash(str(e), "warning")
        return False
    except BackendRequestError as e:
        current_app.logger.info("portal action %s failed: %s", fn.__name__, e.message)
        flash(e.message or fail_msg, "danger")
        return False
    if message:
        flash(message, "success")
    return True


@portal_bp.get("/")
@staff_only
def home():
    client = get_backend()
    token = current_token()
    # home não quebra se um dos blocos falhar
    try:
        today = attendance_svc.my_today(client, token)
    except SOFT_ERRORS as e:
        current_app.logger.info("portal home: attendance unavailable (%s)", e)
        today = {}
    try:
        unread = alerts_svc.my_alerts(client, token, "unread")["unread"]
    except SOFT_ERRORS as e:
        current_app.logger.info("portal home: alerts unavailable (%s)", e)
        unread = 0
    return render_template("portal/home.html", user=current_user, today=today, unread=unread)


# =============================================================================
# Tarefas
# =============================================================================
@portal_bp.get("/tasks")
@staff_only
def tasks():
    view = request.args.get("view", "today")
    if view not in TASK_VIEWS:
        view = "today"
    data = tasks_svc.my_tasks(get_backend(), current_token(), view)
    return render_template(
        "portal/tasks.html", view=view, statuses=tasks_svc.STATUSES,
        results=tasks_svc.VERIFICATION_RESULTS, verification_label=tasks_svc.verification_label,
        display_title=tasks_svc.display_title, task_id=tasks_svc.task_id, **data,
    )


@portal_bp.post("/tasks/<task_id>/status")
@staff_only
def task_status(task_id: str):
    _flash_result(
        tasks_svc.update_status, get_backend(), current_token(), task_id,
        request.form.get("status", ""), request.form.get("completionNotes", ""),
        fail_msg="Failed to update task status",
    )
    return redirect(url_for("portal.tasks", view=request.form.get("view", "today")))


@portal_bp.post("/tasks/<task_id>/verification")
@staff_only
def task_verification(task_id: str):
    score, errors = tasks_svc.validate_verification(request.form.get("score"), request.form.get("result", ""))
    if errors:
        for msg in errors.values():
            flash(msg, "warning")
    else:
        _flash_result(
            tasks_svc.submit_verification, get_backend(), current_token(), task_id,
            score, request.form["result"], request.form.get("notes", ""),
            fail_msg="Failed to submit verification",
        )
    return redirect(url_for("portal.tasks", view="verification"))


# =============================================================================
# Presença e folgas
# =============================================================================
@portal_bp.get("/attendance")
@staff_only
def attendance():
    client = get_backend()
    token = current_token()
    page = request.args.get("page", 1, type=int)
    return render_template(
        "portal/attendance.html",
        today=attendance_svc.my_today(client, token),
        history=attendance_svc.my_history(client, token, page),
        leave_types=attendance_svc.LEAVE_TYPES,
        statuses=attendance_svc.ATTENDANCE_STATUSES,
    )


@portal_bp.post("/attendance/check-in")
@staff_only
def check_in():
    _flash_result(attendance_svc.check_in, get_backend(), current_token(), fail_msg="Check-in failed")
    return redirect(url_for("portal.attendance"))


@portal_bp.post("/attendance/check-out")
@staff_only
def check_out():
    _flash_result(attendance_svc.check_out, get_backend(), current_token(), fail_msg="Check-out failed")
    return redirect(url_for("portal.attendance"))


@portal_bp.post("/attendance/absent")
@staff_only
def mark_absent():
    reason = request.form.get("reason", "")
    if not reason.strip():
        flash("Please provide a reason for absence", "warning")
    else:
        _flash_result(attendance_svc.mark_absent, get_backend(), current_token(), reason,
                      fail_msg="Failed to mark absent")
    return redirect(url_for("portal.attendance"))


@portal_bp.post("/attendance/leave")
@staff_only
def apply_leave():
    reason = request.form.get("reason", "")
    leave_type = request.form.get("leaveType", "")
    leave_date = request.form.get("date", "")
    errors = attendance_svc.validate_leave(reason, leave_type, leave_date)
    if errors:
        for msg in errors.values():
            flash(msg, "warning")
    else:
        _flash_result(attendance_svc.apply_leave, get_backend(), current_token(), reason, leave_type,
                      leave_date, fail_msg="Failed to apply leave")
    return redirect(url_for("portal.attendance"))


@portal_bp.post("/attendance/status")
@staff_only
def change_status():
    status = request.form.get("status", "")
    reason = request.form.get("reason", "")
    if status not in attendance_svc.ATTENDANCE_STATUSES:
        flash("Please select a status", "warning")
    elif not reason.strip():
        flash("Please provide a reason for status change", "warning")
    else:
        _flash_result(attendance_svc.change_status, get_backend(), current_token(), status, reason,
                      fail_msg="Failed to change status")
    return redirect(url_for("portal.attendance"))


# =============================================================================
# Trocas de turno
# =============================================================================
@portal_bp.get("/shift-swap")
@staff_only
def shift_swap():
    client = get_backend()
    token = current_token()
    schedule_id = request.args.get("schedule", "")
    partners = shifts_svc.available_partners(client, token, schedule_id) if schedule_id else []
    return render_template(
        "portal/shift_swap.html",
        requests=shifts_svc.my_requests(client, token),
        schedules=shifts_svc.my_scheduled_shifts(client, token),
        schedule_id=schedule_id,
        partners=partners,
        swap_id=shifts_svc.swap_id,
    )


@portal_bp.post("/shift-swap")
@staff_only
def shift_swap_request():
    client = get_backend()
    token = current_token()
    schedule_id = request.form.get("requesterScheduleId", "")
    target_schedule_id = request.form.get("targetScheduleId", "")
    partners = shifts_svc.available_partners(client, token, schedule_id) if schedule_id else []
    partner = next((p for p in partners if shifts_svc.swap_id(p) == target_schedule_id), None)
    if partner is None:
        flash("Select one of the available shifts.", "warning")
        return redirect(url_for("portal.shift_swap", schedule=schedule_id))
    _flash_result(
        shifts_svc.request_swap, client, token,
        target_user_id=shifts_svc.partner_user_id(partner),
        requester_schedule_id=schedule_id,
        target_schedule_id=target_schedule_id,
        reason=request.form.get("reason", ""),
        fail_msg="Failed to send swap request",
    )
    return redirect(url_for("portal.shift_swap"))


@portal_bp.post("/shift-swap/<swap_id>/respond")
@staff_only
def shift_swap_respond(swap_id: str):
    _flash_result(
        shifts_svc.respond, get_backend(), current_token(), swap_id,
        request.form.get("action", ""), request.form.get("responseMessage", ""),
        fail_msg="Failed to respond to swap request",
    )
    return redirect(url_for("portal.shift_swap"))


@portal_bp.post("/shift-swap/<swap_id>/cancel")
@staff_only
def shift_swap_cancel(swap_id: str):
    _flash_result(shifts_svc.cancel, get_backend(), current_token(), swap_id,
                  fail_msg="Failed to cancel swap request")
    return redirect(url_for("portal.shift_swap"))


# =============================================================================
# Alertas
# =============================================================================
@portal_bp.get("/alerts")
@staff_only
def alerts():
    flt = request.args.get("filter", "all")
    if flt not in alerts_svc.MY_ALERT_FILTERS:
        flt = "all"
    data = alerts_svc.my_alerts(get_backend(), current_token(), flt)
    return render_template("portal/alerts.html", active_filter=flt, alert_id=alerts_svc.alert_id, **data)


@portal_bp.post("/alerts/<alert_id>/read")
@staff_only
def alert_read(alert_id: str):
    _flash_result(alerts_svc.mark_read, get_backend(), current_token(), alert_id,
                  fail_msg="Failed to mark alert as read")
    return redirect(url_for("portal.alerts"))


@portal_bp.post("/alerts/read-all")
@staff_only
def alert_read_all():
    _flash_result(alerts_svc.mark_all_read, get_backend(), current_token(),
                  fail_msg="Failed to mark alerts as read")
    return redirect(url_for("portal.alerts"))


@portal_bp.post("/alerts/<alert_id>/delete")
@staff_only
def alert_delete(alert_id: str):
    _flash_result(alerts_svc.delete_alert, get_backend(), current_token(), alert_id,
                  fail_msg="Failed to delete alert")
    return redirect(url_for("portal.alerts"))

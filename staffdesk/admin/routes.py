# staffdesk/admin/routes.py
from __future__ import annotations

from flask import current_app, flash, redirect, render_template, request, url_for
from flask_login import current_user, login_user, logout_user

from staffdesk.extensions import clear_session_user, store_session_user
from staffdesk.guards import admin_only, current_token
from staffdesk.services import alerts as alerts_svc
from staffdesk.services import attendance as attendance_svc
from staffdesk.services import auth as auth_svc
from staffdesk.services import dashboard as dashboard_svc
from staffdesk.services import shifts as shifts_svc
from staffdesk.services import staff as staff_svc
from staffdesk.services import tasks as tasks_svc
from staffdesk.services.api_client import BackendAuthError, BackendRequestError, get_backend

# pega o blueprint já criado em staffdesk/admin/__init__.py
from . import admin_bp


def _run_action(fn, *args, fail_msg: str, **kwargs) -> bool:
    """Executa uma ação no backend e transforma o resultado em flash."""
    try:
        flash(fn(*args, **kwargs), "success")
        return True
    except ValueError as e:
        flash(str(e), "warning")
    except BackendRequestError as e:
        current_app.logger.info("admin action %s failed: %s", fn.__name__, e.message)
        flash(e.message or fail_msg, "danger")
    return False


# =============================================================================
# Login / logout
# =============================================================================
@admin_bp.route("/login", methods=["GET", "POST"])
def login():
    if current_user.is_authenticated and current_user.is_admin:
        return redirect(url_for("admin.dashboard"))

    form = {"email": ""}
    errors: dict[str, str] = {}
    if request.method == "POST":
        form["email"] = request.form.get("email") or ""
        password = request.form.get("password") or ""
        if not form["email"].strip() or not password:
            errors["form"] = "Email and password are required"
            return render_template("admin/login.html", form=form, errors=errors), 400
        try:
            result = auth_svc.login_admin(get_backend(), form["email"], password)
        except (BackendAuthError, BackendRequestError) as e:
            current_app.logger.info("admin login: rejected email=%s (%s)",
                                    auth_svc.normalize_email(form["email"]), e.message)
            errors["form"] = e.message or "Admin login failed"
            return render_template("admin/login.html", form=form, errors=errors), 400

        if not result["token"]:
            errors["form"] = "Admin login failed"
            return render_template("admin/login.html", form=form, errors=errors), 400

        user = store_session_user(result["token"], "admin", result["admin"])
        login_user(user)
        current_app.logger.info("admin login: ok email=%s", user.email)
        flash("Admin login successful!", "success")
        return redirect(url_for("admin.dashboard"))

    return render_template("admin/login.html", form=form, errors=errors)


@admin_bp.post("/logout")
def logout():
    token = getattr(current_user, "token", None) if current_user.is_authenticated else None
    auth_svc.logout_admin(get_backend(), token)
    logout_user()
    clear_session_user()
    flash("Logged out successfully!", "success")
    return redirect(url_for("admin.login"))


# =============================================================================
# Dashboard
# =============================================================================
@admin_bp.get("/dashboard")
@admin_only
def dashboard():
    client = get_backend()
    token = current_token()
    profile = auth_svc.admin_profile(client, token)
    metrics = dashboard_svc.system_metrics(
        client, token, spacing=current_app.config.get("DASHBOARD_CALL_SPACING", 0.5)
    )
    attendance = attendance_svc.today_summary(client, token)
    return render_template("admin/dashboard.html", profile=profile, metrics=metrics, attendance=attendance)


@admin_bp.get("/attendance")
@admin_only
def attendance():
    summary = attendance_svc.today_summary(get_backend(), current_token())
    return render_template("admin/attendance.html", summary=summary)


# =============================================================================
# Funcionários
# =============================================================================
@admin_bp.get("/staff")
@admin_only
def staff_list():
    search = request.args.get("q", "")
    department = request.args.get("department", "")
    staff, without_profiles = staff_svc.list_staff(get_backend(), current_token())
    if without_profiles > 0:
        flash(f"{without_profiles} user(s) don't have complete profiles yet", "info")
    filtered = staff_svc.filter_staff(staff, search, department)
    return render_template(
        "admin/staff_list.html",
        staff=filtered,
        all_count=len(staff),
        totals=staff_svc.profile_totals(filtered),
        search=search,
        department=department,
        departments=staff_svc.DEPARTMENTS,
        member_id=staff_svc.member_id,
    )


@admin_bp.get("/staff/<user_id>")
@admin_only
def staff_view(user_id: str):
    member = staff_svc.get_member(get_backend(), current_token(), user_id)
    return render_template("admin/staff_view.html", member=member, user_id=user_id)


@admin_bp.route("/staff/<user_id>/edit", methods=["GET", "POST"])
@admin_only
def staff_edit(user_id: str):
    client = get_backend()
    token = current_token()

    if request.method == "POST":
        payload = staff_svc.edit_payload_from_form(request.form)
        errors = staff_svc.validate_edit(payload)
        if not errors:
            if _run_action(staff_svc.update_member, client, token, user_id, payload,
                           fail_msg="Failed to update staff information"):
                return redirect(url_for("admin.staff_list"))
        return render_template(
            "admin/staff_edit.html", user_id=user_id, data=payload, errors=errors,
            departments=staff_svc.DEPARTMENTS, shifts=staff_svc.SHIFTS,
        ), 400

    member = staff_svc.get_member(client, token, user_id)
    return render_template(
        "admin/staff_edit.html", user_id=user_id, data=staff_svc.edit_defaults(member), errors={},
        departments=staff_svc.DEPARTMENTS, shifts=staff_svc.SHIFTS,
    )


@admin_bp.post("/staff/<user_id>/delete")
@admin_only
def staff_delete(user_id: str):
    _run_action(staff_svc.delete_member, get_backend(), current_token(), user_id,
                fail_msg="Failed to delete staff member")
    return redirect(url_for("admin.staff_list"))


# =============================================================================
# Folgas
# =============================================================================
@admin_bp.get("/leaves")
@admin_only
def leaves():
    pending = attendance_svc.pending_leaves(get_backend(), current_token())
    return render_template("admin/leaves.html", leaves=pending)


@admin_bp.post("/leaves/<attendance_id>/decide")
@admin_only
def leave_decide(attendance_id: str):
    action = request.form.get("action")
    if action not in ("approve", "reject"):
        flash("Invalid action.", "danger")
        return redirect(url_for("admin.leaves"))
    _run_action(
        attendance_svc.decide_leave, get_backend(), current_token(), attendance_id,
        action == "approve", request.form.get("approvalNotes", ""),
        fail_msg="Failed to process leave request",
    )
    return redirect(url_for("admin.leaves"))


# =============================================================================
# Tarefas e verificação de qualidade
# =============================================================================
@admin_bp.get("/tasks")
@admin_only
def tasks():
    client = get_backend()
    token = current_token()
    view = request.args.get("view", "all")
    ctx = {
        "view": view,
        "categories": tasks_svc.CATEGORIES,
        "priorities": tasks_svc.PRIORITIES,
        "verification_label": tasks_svc.verification_label,
        "display_title": tasks_svc.display_title,
        "task_id": tasks_svc.task_id,
        "member_id": staff_svc.member_id,
        "format_member": staff_svc.format_member,
    }
    staff, _ = staff_svc.list_staff(client, token)
    ctx["staff"] = staff

    if view == "dashboard":
        ctx.update(tasks_svc.dashboard(client, token, request.args.get("period", "today")))
    elif view == "verification":
        ctx["tasks"] = tasks_svc.needs_verification(client, token)
    else:
        ctx["view"] = "all"
        ctx["tasks"] = tasks_svc.list_all(client, token)
    return render_template("admin/tasks.html", **ctx)


@admin_bp.post("/tasks")
@admin_only
def task_create():
    client = get_backend()
    token = current_token()
    staff, _ = staff_svc.list_staff(client, token)
    payload = tasks_svc.task_form_from_request(request.form, staff)
    errors = tasks_svc.validate_task(payload)
    if errors:
        for msg in errors.values():
            flash(msg, "warning")
        return redirect(url_for("admin.tasks"))
    _run_action(tasks_svc.create_task, client, token, payload, fail_msg="Failed to create task")
    return redirect(url_for("admin.tasks"))


@admin_bp.post("/tasks/<task_id>/delete")
@admin_only
def task_delete(task_id: str):
    _run_action(tasks_svc.delete_task, get_backend(), current_token(), task_id,
                fail_msg="Failed to delete task")
    return redirect(url_for("admin.tasks"))


@admin_bp.post("/tasks/<task_id>/reassign")
@admin_only
def task_reassign(task_id: str):
    new_user = (request.form.get("newUserId") or "").strip()
    if not new_user:
        flash("Select the new assignee.", "warning")
        return redirect(url_for("admin.tasks"))
    _run_action(tasks_svc.manual_reassign, get_backend(), current_token(), task_id, new_user,
                fail_msg="Reassignment failed")
    return redirect(url_for("admin.tasks"))


@admin_bp.post("/tasks/check-reassignments")
@admin_only
def task_check_reassignments():
    _run_action(tasks_svc.check_reassignments, get_backend(), current_token(),
                fail_msg="Reassignment check failed")
    return redirect(url_for("admin.tasks", view=request.form.get("view", "all")))


@admin_bp.post("/tasks/<task_id>/assign-verification")
@admin_only
def task_assign_verification(task_id: str):
    _run_action(tasks_svc.assign_verification_team, get_backend(), current_token(), task_id,
                fail_msg="Failed to assign verification")
    return redirect(url_for("admin.tasks", view="verification"))


@admin_bp.route("/tasks/<task_id>/verifier", methods=["GET", "POST"])
@admin_only
def task_verifier(task_id: str):
    client = get_backend()
    token = current_token()
    if request.method == "POST":
        verifiers = [v for v in request.form.getlist("verifierId") if v]
        if _run_action(tasks_svc.assign_verifier, client, token, task_id, verifiers,
                       fail_msg="Failed to assign verifier"):
            return redirect(url_for("admin.tasks"))
        return redirect(url_for("admin.task_verifier", task_id=task_id))

    all_tasks = tasks_svc.list_all(client, token)
    task = next((t for t in all_tasks if tasks_svc.task_id(t) == task_id), None)
    if task is None:
        flash("Task not found.", "danger")
        return redirect(url_for("admin.tasks"))
    staff, _ = staff_svc.list_staff(client, token)
    assignee = task.get("assignedTo")
    assignee_id = str(assignee.get("_id") if isinstance(assignee, dict) else assignee or "")
    # quem fez a tarefa não verifica a própria tarefa
    candidates = [m for m in staff if staff_svc.member_id(m) != assignee_id]
    return render_template(
        "admin/task_verifier.html", task=task, task_id=task_id, candidates=candidates,
        member_id=staff_svc.member_id, format_member=staff_svc.format_member,
    )


# =============================================================================
# Trocas de turno
# =============================================================================
@admin_bp.get("/shift-swaps")
@admin_only
def shift_swaps():
    view = request.args.get("view", "pending")
    data = shifts_svc.admin_overview(get_backend(), current_token())
    return render_template("admin/shift_swaps.html", view=view, swap_id=shifts_svc.swap_id, **data)


@admin_bp.post("/shift-swaps/<swap_id>/decide")
@admin_only
def shift_swap_decide(swap_id: str):
    _run_action(
        shifts_svc.admin_decide, get_backend(), current_token(), swap_id,
        request.form.get("action", ""), request.form.get("approvalNotes", ""),
        fail_msg="Failed to process swap request",
    )
    return redirect(url_for("admin.shift_swaps"))


# =============================================================================
# Alertas
# =============================================================================
@admin_bp.get("/alerts")
@admin_only
def alerts():
    data = alerts_svc.admin_overview(get_backend(), current_token())
    return render_template(
        "admin/alerts.html", alert_types=alerts_svc.ALERT_TYPES, priorities=tasks_svc.PRIORITIES,
        departments=staff_svc.DEPARTMENTS, **data,
    )


@admin_bp.post("/alerts")
@admin_only
def alert_create():
    payload = alerts_svc.alert_payload_from_form(request.form)
    errors = alerts_svc.validate_alert(payload)
    if errors:
        for msg in errors.values():
            flash(msg, "warning")
    else:
        _run_action(alerts_svc.create_alert, get_backend(), current_token(), payload,
                    fail_msg="Failed to create alert")
    return redirect(url_for("admin.alerts"))


@admin_bp.post("/alerts/broadcast")
@admin_only
def alert_broadcast():
    payload = alerts_svc.alert_payload_from_form(request.form, broadcast=True)
    errors = alerts_svc.validate_alert(payload)
    if errors:
        for msg in errors.values():
            flash(msg, "warning")
    else:
        _run_action(alerts_svc.broadcast_alert, get_backend(), current_token(), payload,
                    fail_msg="Failed to broadcast alert")
    return redirect(url_for("admin.alerts"))


@admin_bp.post("/alerts/cleanup")
@admin_only
def alert_cleanup():
    _run_action(alerts_svc.cleanup_expired, get_backend(), current_token(),
                fail_msg="Failed to cleanup expired alerts")
    return redirect(url_for("admin.alerts"))

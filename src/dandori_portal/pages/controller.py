"""Server-rendered pages under /<locale>/..."""

from __future__ import annotations

from flask import Blueprint, Flask, abort, flash, g, redirect, render_template, request, session, url_for

from ..common.auth import current_user, login_required
from ..common.datetime_utils import now_local
from ..container import Container
from ..core.constants import DEFAULT_LOCALE, LOCALES
from ..core.enums import PunchType
from ..core.exceptions import AuthenticationError, ValidationError
from ..users.controller import start_session
from .labels import FLASH, LABELS


def register(app: Flask, container: Container) -> None:
    bp = Blueprint("pages", __name__)

    @bp.url_value_preprocessor
    def pull_locale(endpoint, values):
        if values and "locale" in values:
            locale = values.pop("locale")
            if locale not in LOCALES:
                abort(404)
            g.locale = locale

    @bp.url_defaults
    def add_locale(endpoint, values):
        if "locale" not in values and app.url_map.is_endpoint_expecting(endpoint, "locale"):
            values["locale"] = g.get("locale", DEFAULT_LOCALE)

    @bp.context_processor
    def inject_labels():
        locale = g.get("locale", DEFAULT_LOCALE)
        return {"t": LABELS[locale], "locale": locale, "locales": LOCALES, "user_name": session.get("name")}

    def say(key: str) -> str:
        return FLASH[g.get("locale", DEFAULT_LOCALE)][key]

    @bp.get("/")
    def index():
        return redirect(url_for("pages.dashboard", locale=DEFAULT_LOCALE))

    @bp.route("/<locale>/login", methods=["GET", "POST"])
    def login():
        if "user_id" in session:
            return redirect(url_for("pages.dashboard"))
        if request.method == "POST":
            tenant_id = (request.form.get("tenant_id") or "").strip()
            try:
                user = container.auth_service.authenticate(
                    request.form.get("email", ""),
                    request.form.get("password", ""),
                    tenant_id=int(tenant_id) if tenant_id.isdigit() else None,
                )
            except (AuthenticationError, ValidationError) as e:
                flash(str(e), "danger")
                return render_template("login.html"), 401
            start_session(user)
            flash(say("logged_in"), "success")
            return redirect(url_for("pages.dashboard"))
        return render_template("login.html")

    @bp.get("/<locale>/logout")
    def logout():
        session.clear()
        flash(say("logged_out"), "info")
        return redirect(url_for("pages.login"))

    @bp.get("/<locale>/dashboard")
    @login_required
    def dashboard():
        actor = current_user()
        today = now_local().date()
        return render_template(
            "dashboard.html",
            record=container.attendance_service.get_today_record(actor.tenant_id, actor.user_id, today),
            pending_count=len(container.workflow_service.pending_for_user(actor.tenant_id, actor.user_id)),
            balance=container.leave_service.get_balance(actor.tenant_id, actor.user_id, today.year),
        )

    @bp.get("/<locale>/attendance")
    @login_required
    def attendance():
        actor = current_user()
        today = now_local().date()
        return render_template(
            "attendance.html",
            record=container.attendance_service.get_today_record(actor.tenant_id, actor.user_id, today),
            sessions=container.attendance_service.list_punches(actor.tenant_id, actor.user_id, today),
            punch_types=list(PunchType),
        )

    @bp.post("/<locale>/attendance/punch")
    @login_required
    def punch():
        actor = current_user()
        container.attendance_service.record_punch(
            actor.tenant_id,
            actor.user_id,
            request.form.get("punch_type"),
            location=request.form.get("location") or None,
        )
        flash(say("punched"), "success")
        return redirect(url_for("pages.attendance"))

    @bp.get("/<locale>/leave")
    @login_required
    def leave():
        actor = current_user()
        return render_template(
            "leave.html",
            balance=container.leave_service.get_balance(actor.tenant_id, actor.user_id, now_local().year),
            requests=container.leave_service.list_requests(actor.tenant_id, user_id=actor.user_id).items,
        )

    @bp.get("/<locale>/workflow")
    @login_required
    def workflow():
        actor = current_user()
        return render_template(
            "workflow.html",
            pending=container.workflow_service.pending_for_user(actor.tenant_id, actor.user_id),
        )

    @bp.get("/<locale>/payroll")
    @login_required
    def payroll():
        actor = current_user()
        return render_template(
            "payroll.html",
            slips=container.payroll_service.list_slips(actor, user_id=actor.user_id).items,
        )

    app.register_blueprint(bp)

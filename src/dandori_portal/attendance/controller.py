from __future__ import annotations

from flask import Blueprint, Flask, request, send_file

from ..common.auth import CurrentUser, api_login_required, current_user, permission_required
from ..common.datetime_utils import now_local, to_date, to_optional_date
from ..common.excel import XLSX_MIMETYPE
from ..common.responses import success_response
from ..common.validators import to_int
from ..container import Container
from ..core.exceptions import AuthorizationError, ValidationError
from ..core.permissions import has_permission


def _target_user(actor: CurrentUser, raw) -> int:
    """Own id by default; other users need attendance:read:all."""
    if raw in (None, ""):
        return actor.user_id
    user_id = to_int(raw, "user_id")
    if user_id != actor.user_id and not has_permission(actor.role, "attendance:read:all"):
        raise AuthorizationError("他のユーザーの勤怠は操作できません")
    return user_id


def register(app: Flask, container: Container) -> None:
    bp = Blueprint("attendance_api", __name__, url_prefix="/api/attendance")
    service = container.attendance_service
    reports = container.attendance_report_service

    @bp.post("/punches")
    @api_login_required
    def punch():
        actor = current_user()
        payload = request.get_json(silent=True) or {}
        record = service.record_punch(
            actor.tenant_id,
            _target_user(actor, payload.get("user_id")),
            payload.get("punch_type"),
            location=payload.get("location"),
            note=payload.get("note"),
        )
        return success_response(record, status=201)

    @bp.get("/punches")
    @api_login_required
    def punches():
        actor = current_user()
        work_date = to_optional_date(request.args.get("date"), "date") or now_local().date()
        sessions = service.list_punches(actor.tenant_id, _target_user(actor, request.args.get("user_id")), work_date)
        return success_response(sessions, count=len(sessions))

    @bp.get("/records")
    @api_login_required
    def records():
        actor = current_user()
        raw_user = request.args.get("user_id")
        if raw_user == "all":
            if not has_permission(actor.role, "attendance:read:all"):
                raise AuthorizationError("この操作を行う権限がありません")
            user_id = None
        else:
            user_id = _target_user(actor, raw_user)
        items = service.list_records(
            actor.tenant_id,
            user_id=user_id,
            start=to_optional_date(request.args.get("start"), "start"),
            end=to_optional_date(request.args.get("end"), "end"),
        )
        return success_response(items, count=len(items))

    @bp.get("/stats")
    @permission_required("attendance:read:all")
    def stats():
        actor = current_user()
        kind = request.args.get("type", "daily")
        if kind == "daily":
            day = to_optional_date(request.args.get("date"), "date") or now_local().date()
            return success_response(service.daily_stats(actor.tenant_id, day))
        if kind == "monthly":
            today = now_local().date()
            year = to_int(request.args.get("year"), "year", default=today.year)
            month = to_int(request.args.get("month"), "month", default=today.month)
            return success_response(service.monthly_stats(actor.tenant_id, year, month))
        raise ValidationError("typeは daily または monthly を指定してください")

    @bp.get("/export")
    @permission_required("attendance:read:all")
    def export():
        actor = current_user()
        start = to_date(request.args.get("start"), "start")
        end = to_date(request.args.get("end"), "end")
        user_id = request.args.get("user_id")
        report = reports.build_report(
            actor.tenant_id,
            start=start,
            end=end,
            user_id=to_int(user_id, "user_id") if user_id else None,
        )
        output = reports.export_report_xlsx(report)
        return send_file(
            output,
            mimetype=XLSX_MIMETYPE,
            as_attachment=True,
            download_name=f"attendance_{start:%Y%m%d}_{end:%Y%m%d}.xlsx",
        )

    app.register_blueprint(bp)

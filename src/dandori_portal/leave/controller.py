from __future__ import annotations

from flask import Blueprint, Flask, request

from ..common.auth import api_login_required, current_user, permission_required
from ..common.datetime_utils import now_local
from ..common.pagination import PageRequest
from ..common.responses import page_response, success_response
from ..common.validators import parse_bool, to_int
from ..container import Container
from ..core.permissions import has_permission
from .service import parse_year


def register(app: Flask, container: Container) -> None:
    bp = Blueprint("leave_api", __name__, url_prefix="/api/leave")
    service = container.leave_service

    @bp.get("/requests")
    @api_login_required
    def list_requests():
        actor = current_user()
        user_id = request.args.get("user_id")
        if has_permission(actor.role, "leave:manage"):
            user_id = to_int(user_id, "user_id") if user_id else None
        else:
            user_id = actor.user_id
        return page_response(
            service.list_requests(
                actor.tenant_id,
                user_id=user_id,
                status=request.args.get("status"),
                request=PageRequest.from_args(request.args),
            )
        )

    @bp.post("/requests")
    @api_login_required
    def create_request():
        actor = current_user()
        payload = request.get_json(silent=True) or {}
        leave = service.create_request(
            actor.tenant_id,
            actor,
            leave_type=payload.get("leave_type"),
            start_date=payload.get("start_date"),
            end_date=payload.get("end_date"),
            reason=payload.get("reason"),
            draft=parse_bool(payload.get("draft", False)),
        )
        return success_response(leave, status=201)

    @bp.post("/requests/<int:request_id>/submit")
    @api_login_required
    def submit(request_id: int):
        actor = current_user()
        return success_response(service.submit(actor.tenant_id, actor, request_id))

    @bp.post("/requests/<int:request_id>/approve")
    @api_login_required
    def approve(request_id: int):
        actor = current_user()
        payload = request.get_json(silent=True) or {}
        return success_response(service.approve(actor.tenant_id, actor, request_id, comment=payload.get("comment")))

    @bp.post("/requests/<int:request_id>/reject")
    @api_login_required
    def reject(request_id: int):
        actor = current_user()
        payload = request.get_json(silent=True) or {}
        return success_response(service.reject(actor.tenant_id, actor, request_id, reason=payload.get("reason")))

    @bp.post("/requests/<int:request_id>/cancel")
    @api_login_required
    def cancel(request_id: int):
        actor = current_user()
        return success_response(service.cancel(actor.tenant_id, actor, request_id))

    @bp.get("/balance")
    @api_login_required
    def balance():
        actor = current_user()
        user_id = request.args.get("user_id")
        if user_id and has_permission(actor.role, "leave:manage"):
            user_id = to_int(user_id, "user_id")
        else:
            user_id = actor.user_id
        year = parse_year(request.args.get("year"), now_local().year)
        return success_response(service.get_balance(actor.tenant_id, user_id, year))

    @bp.get("/stats")
    @permission_required("leave:manage")
    def stats():
        year = request.args.get("year")
        return success_response(
            service.stats(current_user().tenant_id, year=parse_year(year, 0) if year else None)
        )

    app.register_blueprint(bp)

from __future__ import annotations

from flask import Blueprint, Flask, request

from ..common.auth import api_login_required, current_user, permission_required
from ..common.responses import success_response
from ..common.validators import parse_bool, to_int
from ..container import Container


def register(app: Flask, container: Container) -> None:
    bp = Blueprint("saas_api", __name__, url_prefix="/api/saas")
    service = container.saas_service

    @bp.get("/services")
    @api_login_required
    def list_services():
        items = service.list_services(
            current_user().tenant_id,
            active_only=parse_bool(request.args.get("active_only", False)),
            category=request.args.get("category"),
        )
        return success_response(items, count=len(items))

    @bp.post("/services")
    @permission_required("saas:write")
    def create_service():
        payload = request.get_json(silent=True) or {}
        return success_response(service.create_service(current_user().tenant_id, payload), status=201)

    @bp.get("/services/<int:service_id>")
    @api_login_required
    def get_service(service_id: int):
        tenant_id = current_user().tenant_id
        return success_response(
            service.get_service(tenant_id, service_id),
            plans=service.list_plans(tenant_id, service_id),
            assignments=service.list_assignments(tenant_id, service_id=service_id),
        )

    @bp.put("/services/<int:service_id>")
    @permission_required("saas:write")
    def update_service(service_id: int):
        payload = request.get_json(silent=True) or {}
        return success_response(service.update_service(current_user().tenant_id, service_id, payload))

    @bp.delete("/services/<int:service_id>")
    @permission_required("saas:write")
    def delete_service(service_id: int):
        service.delete_service(current_user().tenant_id, service_id)
        return success_response(None)

    @bp.get("/services/<int:service_id>/plans")
    @api_login_required
    def list_plans(service_id: int):
        items = service.list_plans(current_user().tenant_id, service_id)
        return success_response(items, count=len(items))

    @bp.post("/services/<int:service_id>/plans")
    @permission_required("saas:write")
    def create_plan(service_id: int):
        payload = request.get_json(silent=True) or {}
        return success_response(service.create_plan(current_user().tenant_id, service_id, payload), status=201)

    @bp.put("/plans/<int:plan_id>")
    @permission_required("saas:write")
    def update_plan(plan_id: int):
        payload = request.get_json(silent=True) or {}
        return success_response(service.update_plan(current_user().tenant_id, plan_id, payload))

    @bp.delete("/plans/<int:plan_id>")
    @permission_required("saas:write")
    def delete_plan(plan_id: int):
        service.delete_plan(current_user().tenant_id, plan_id)
        return success_response(None)

    @bp.get("/assignments")
    @api_login_required
    def list_assignments():
        service_id = request.args.get("service_id")
        user_id = request.args.get("user_id")
        items = service.list_assignments(
            current_user().tenant_id,
            service_id=to_int(service_id, "service_id") if service_id else None,
            user_id=to_int(user_id, "user_id") if user_id else None,
            status=request.args.get("status"),
        )
        return success_response(items, count=len(items))

    @bp.post("/assignments")
    @permission_required("saas:write")
    def assign():
        payload = request.get_json(silent=True) or {}
        return success_response(service.assign(current_user().tenant_id, payload), status=201)

    @bp.post("/assignments/<int:assignment_id>/revoke")
    @permission_required("saas:write")
    def revoke(assignment_id: int):
        return success_response(service.revoke(current_user().tenant_id, assignment_id))

    @bp.get("/costs")
    @permission_required("saas:write")
    def costs():
        return success_response(service.monthly_costs(current_user().tenant_id, request.args.get("period")))

    @bp.get("/alerts")
    @permission_required("saas:write")
    def alerts():
        tenant_id = current_user().tenant_id
        return success_response(
            {
                "renewals": service.renewal_alerts(tenant_id),
                "unused_licenses": service.unused_licenses(tenant_id),
            }
        )

    app.register_blueprint(bp)

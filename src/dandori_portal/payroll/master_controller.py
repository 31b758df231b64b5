from __future__ import annotations

from flask import Blueprint, Flask, request

from ..common.auth import current_user, permission_required
from ..common.datetime_utils import to_optional_date
from ..common.responses import success_response
from ..common.validators import parse_bool, to_int
from ..container import Container


def _filters() -> dict:
    user_id = request.args.get("user_id")
    return {
        "user_id": to_int(user_id, "user_id") if user_id else None,
        "active_only": parse_bool(request.args.get("active_only", False)),
        "as_of": to_optional_date(request.args.get("as_of_date"), "as_of_date"),
    }


def register(app: Flask, container: Container) -> None:
    bp = Blueprint("payroll_master_api", __name__, url_prefix="/api/payroll-master")
    service = container.payroll_master_service

    @bp.get("/salary-settings")
    @permission_required("payroll:read:all")
    def list_settings():
        items = service.list_settings(current_user().tenant_id, **_filters())
        return success_response(items, count=len(items))

    @bp.post("/salary-settings")
    @permission_required("payroll:write")
    def create_setting():
        payload = request.get_json(silent=True) or {}
        return success_response(service.create_setting(current_user().tenant_id, payload), status=201)

    @bp.put("/salary-settings/<int:item_id>")
    @permission_required("payroll:write")
    def update_setting(item_id: int):
        payload = request.get_json(silent=True) or {}
        return success_response(service.update_setting(current_user().tenant_id, item_id, payload))

    @bp.delete("/salary-settings/<int:item_id>")
    @permission_required("payroll:write")
    def delete_setting(item_id: int):
        service.delete_setting(current_user().tenant_id, item_id)
        return success_response(None)

    @bp.get("/allowances")
    @permission_required("payroll:read:all")
    def list_allowances():
        items = service.list_allowances(current_user().tenant_id, **_filters())
        return success_response(items, count=len(items))

    @bp.post("/allowances")
    @permission_required("payroll:write")
    def create_allowance():
        payload = request.get_json(silent=True) or {}
        return success_response(service.create_allowance(current_user().tenant_id, payload), status=201)

    @bp.put("/allowances/<int:item_id>")
    @permission_required("payroll:write")
    def update_allowance(item_id: int):
        payload = request.get_json(silent=True) or {}
        return success_response(service.update_allowance(current_user().tenant_id, item_id, payload))

    @bp.delete("/allowances/<int:item_id>")
    @permission_required("payroll:write")
    def delete_allowance(item_id: int):
        service.delete_allowance(current_user().tenant_id, item_id)
        return success_response(None)

    @bp.get("/deductions")
    @permission_required("payroll:read:all")
    def list_deductions():
        items = service.list_deductions(current_user().tenant_id, **_filters())
        return success_response(items, count=len(items))

    @bp.post("/deductions")
    @permission_required("payroll:write")
    def create_deduction():
        payload = request.get_json(silent=True) or {}
        return success_response(service.create_deduction(current_user().tenant_id, payload), status=201)

    @bp.put("/deductions/<int:item_id>")
    @permission_required("payroll:write")
    def update_deduction(item_id: int):
        payload = request.get_json(silent=True) or {}
        return success_response(service.update_deduction(current_user().tenant_id, item_id, payload))

    @bp.delete("/deductions/<int:item_id>")
    @permission_required("payroll:write")
    def delete_deduction(item_id: int):
        service.delete_deduction(current_user().tenant_id, item_id)
        return success_response(None)

    app.register_blueprint(bp)

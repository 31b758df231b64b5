from __future__ import annotations

from flask import Blueprint, Flask, request

from ..common.auth import current_user, permission_required
from ..common.responses import success_response
from ..common.validators import to_int
from ..container import Container


def register(app: Flask, container: Container) -> None:
    bp = Blueprint("organization_api", __name__, url_prefix="/api/organization")
    service = container.organization_service

    @bp.get("/tree")
    @permission_required("organization:read")
    def tree():
        nodes = service.build_tree(current_user().tenant_id)
        return success_response(nodes, count=len(nodes))

    @bp.get("/units")
    @permission_required("organization:read")
    def list_units():
        units = service.list_units(current_user().tenant_id)
        return success_response(units, count=len(units))

    @bp.post("/units")
    @permission_required("organization:write")
    def create_unit():
        payload = request.get_json(silent=True) or {}
        unit = service.create_unit(
            current_user().tenant_id,
            name=payload.get("name", ""),
            code=payload.get("code", ""),
            parent_id=payload.get("parent_id"),
            manager_id=payload.get("manager_id"),
            sort_order=payload.get("sort_order", 0),
        )
        return success_response(unit, status=201)

    @bp.patch("/units/<int:unit_id>")
    @permission_required("organization:write")
    def update_unit(unit_id: int):
        payload = request.get_json(silent=True) or {}
        return success_response(service.update_unit(current_user().tenant_id, unit_id, payload))

    @bp.delete("/units/<int:unit_id>")
    @permission_required("organization:write")
    def delete_unit(unit_id: int):
        service.delete_unit(current_user().tenant_id, unit_id)
        return success_response(None)

    @bp.get("/transfers")
    @permission_required("organization:read")
    def transfers():
        user_id = request.args.get("user_id")
        records = service.transfer_history(
            current_user().tenant_id,
            user_id=to_int(user_id, "user_id") if user_id else None,
        )
        return success_response(records, count=len(records))

    @bp.post("/transfers")
    @permission_required("organization:write")
    def transfer():
        payload = request.get_json(silent=True) or {}
        record = service.transfer_member(
            current_user(),
            user_id=payload.get("user_id"),
            to_unit_id=payload.get("to_unit_id"),
            effective_date=payload.get("effective_date"),
            reason=payload.get("reason"),
        )
        return success_response(record, status=201)

    app.register_blueprint(bp)

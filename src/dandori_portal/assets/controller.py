from __future__ import annotations

from flask import Blueprint, Flask, abort, request

from ..common.auth import api_login_required, current_user, permission_required
from ..common.pagination import PageRequest
from ..common.responses import page_response, success_response
from ..common.validators import to_int
from ..container import Container
from ..core.constants import DEADLINE_LOOKAHEAD_DAYS

# URL segment -> asset kind understood by AssetService.assign
_KINDS = {"vehicles": "vehicle", "pcs": "pc"}


def register(app: Flask, container: Container) -> None:
    bp = Blueprint("assets_api", __name__, url_prefix="/api/assets")
    service = container.asset_service

    # ---- vehicles ----------------------------------------------------------------

    @bp.get("/vehicles")
    @api_login_required
    def list_vehicles():
        items = service.list_vehicles(current_user().tenant_id)
        return success_response(items, count=len(items))

    @bp.post("/vehicles")
    @permission_required("assets:write")
    def create_vehicle():
        payload = request.get_json(silent=True) or {}
        return success_response(service.create_vehicle(current_user().tenant_id, payload), status=201)

    @bp.get("/vehicles/<int:vehicle_id>")
    @api_login_required
    def get_vehicle(vehicle_id: int):
        return success_response(service.get_vehicle(current_user().tenant_id, vehicle_id))

    @bp.put("/vehicles/<int:vehicle_id>")
    @permission_required("assets:write")
    def update_vehicle(vehicle_id: int):
        payload = request.get_json(silent=True) or {}
        return success_response(service.update_vehicle(current_user().tenant_id, vehicle_id, payload))

    @bp.delete("/vehicles/<int:vehicle_id>")
    @permission_required("assets:write")
    def delete_vehicle(vehicle_id: int):
        service.delete_vehicle(current_user().tenant_id, vehicle_id)
        return success_response(None)

    @bp.get("/vehicles/<int:vehicle_id>/mileages")
    @api_login_required
    def list_mileages(vehicle_id: int):
        items = service.list_mileages(current_user().tenant_id, vehicle_id)
        return success_response(items, count=len(items))

    @bp.post("/vehicles/<int:vehicle_id>/mileages")
    @api_login_required
    def record_mileage(vehicle_id: int):
        actor = current_user()
        payload = request.get_json(silent=True) or {}
        return success_response(service.record_mileage(actor.tenant_id, vehicle_id, payload, actor), status=201)

    # ---- pcs ---------------------------------------------------------------------

    @bp.get("/pcs")
    @api_login_required
    def list_pcs():
        items = service.list_pcs(current_user().tenant_id)
        return success_response(items, count=len(items))

    @bp.post("/pcs")
    @permission_required("assets:write")
    def create_pc():
        payload = request.get_json(silent=True) or {}
        return success_response(service.create_pc(current_user().tenant_id, payload), status=201)

    @bp.get("/pcs/<int:pc_id>")
    @api_login_required
    def get_pc(pc_id: int):
        return success_response(service.get_pc(current_user().tenant_id, pc_id))

    @bp.put("/pcs/<int:pc_id>")
    @permission_required("assets:write")
    def update_pc(pc_id: int):
        payload = request.get_json(silent=True) or {}
        return success_response(service.update_pc(current_user().tenant_id, pc_id, payload))

    @bp.delete("/pcs/<int:pc_id>")
    @permission_required("assets:write")
    def delete_pc(pc_id: int):
        service.delete_pc(current_user().tenant_id, pc_id)
        return success_response(None)

    @bp.post("/pcs/<int:pc_id>/licenses")
    @permission_required("assets:write")
    def add_license(pc_id: int):
        payload = request.get_json(silent=True) or {}
        return success_response(service.add_license(current_user().tenant_id, pc_id, payload), status=201)

    @bp.delete("/pcs/<int:pc_id>/licenses/<int:license_id>")
    @permission_required("assets:write")
    def remove_license(pc_id: int, license_id: int):
        service.remove_license(current_user().tenant_id, pc_id, license_id)
        return success_response(None)

    # ---- assignment --------------------------------------------------------------

    @bp.post("/<string:segment>/<int:asset_id>/assign")
    @permission_required("assets:write")
    def assign(segment: str, asset_id: int):
        if segment not in _KINDS:
            abort(404)
        payload = request.get_json(silent=True) or {}
        return success_response(
            service.assign(current_user().tenant_id, _KINDS[segment], asset_id, payload.get("user_id"))
        )

    @bp.post("/<string:segment>/<int:asset_id>/unassign")
    @permission_required("assets:write")
    def unassign(segment: str, asset_id: int):
        if segment not in _KINDS:
            abort(404)
        return success_response(service.unassign(current_user().tenant_id, _KINDS[segment], asset_id))

    # ---- vendors -----------------------------------------------------------------

    @bp.get("/vendors")
    @api_login_required
    def list_vendors():
        items = service.list_vendors(current_user().tenant_id)
        return success_response(items, count=len(items))

    @bp.post("/vendors")
    @permission_required("assets:write")
    def create_vendor():
        payload = request.get_json(silent=True) or {}
        return success_response(service.create_vendor(current_user().tenant_id, payload), status=201)

    @bp.get("/vendors/<int:vendor_id>")
    @api_login_required
    def get_vendor(vendor_id: int):
        return success_response(service.get_vendor(current_user().tenant_id, vendor_id))

    @bp.put("/vendors/<int:vendor_id>")
    @permission_required("assets:write")
    def update_vendor(vendor_id: int):
        payload = request.get_json(silent=True) or {}
        return success_response(service.update_vendor(current_user().tenant_id, vendor_id, payload))

    @bp.delete("/vendors/<int:vendor_id>")
    @permission_required("assets:write")
    def delete_vendor(vendor_id: int):
        service.delete_vendor(current_user().tenant_id, vendor_id)
        return success_response(None)

    # ---- maintenance records -----------------------------------------------------

    @bp.get("/maintenance-records")
    @api_login_required
    def list_maintenance():
        vehicle_id = request.args.get("vehicle_id")
        return page_response(
            service.list_maintenance(
                current_user().tenant_id,
                vehicle_id=to_int(vehicle_id, "vehicle_id") if vehicle_id else None,
                maintenance_type=request.args.get("type"),
                request=PageRequest.from_args(request.args),
            )
        )

    @bp.post("/maintenance-records")
    @permission_required("assets:write")
    def create_maintenance():
        actor = current_user()
        payload = request.get_json(silent=True) or {}
        return success_response(service.add_maintenance(actor.tenant_id, payload, actor=actor), status=201)

    @bp.put("/maintenance-records/<int:record_id>")
    @permission_required("assets:write")
    def update_maintenance(record_id: int):
        payload = request.get_json(silent=True) or {}
        return success_response(service.update_maintenance(current_user().tenant_id, record_id, payload))

    @bp.delete("/maintenance-records/<int:record_id>")
    @permission_required("assets:write")
    def delete_maintenance(record_id: int):
        service.delete_maintenance(current_user().tenant_id, record_id)
        return success_response(None)

    # ---- reports -----------------------------------------------------------------

    @bp.get("/batch")
    @api_login_required
    def overview():
        return success_response(service.overview(current_user().tenant_id))

    @bp.get("/warnings")
    @api_login_required
    def warnings():
        days = to_int(request.args.get("days"), "days", default=DEADLINE_LOOKAHEAD_DAYS, minimum=1)
        items = service.deadline_warnings(current_user().tenant_id, within_days=days)
        return success_response(items, count=len(items))

    @bp.get("/costs")
    @permission_required("assets:write")
    def costs():
        return success_response(service.cost_summary(current_user().tenant_id, request.args.get("month")))

    app.register_blueprint(bp)

from __future__ import annotations

from flask import Blueprint, Flask, request, send_file

from ..common.auth import current_user, permission_required
from ..common.datetime_utils import format_period, parse_period
from ..common.excel import XLSX_MIMETYPE
from ..common.pagination import PageRequest
from ..common.responses import page_response, success_response
from ..common.validators import to_int
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    bp = Blueprint("payroll_api", __name__, url_prefix="/api/payroll")
    service = container.payroll_service
    bonuses = container.bonus_service

    @bp.post("/calculate")
    @permission_required("payroll:write")
    def calculate():
        payload = request.get_json(silent=True) or {}
        run = service.calculate(
            current_user().tenant_id,
            pay_period=payload.get("pay_period"),
            payment_date=payload.get("payment_date"),
            user_ids=payload.get("user_ids") or None,
            working_days=payload.get("working_days"),
            attendance_data=payload.get("attendance_data") or None,
        )
        return success_response(run)

    @bp.get("/pay-slips")
    @permission_required("payroll:read:own")
    def list_slips():
        user_id = request.args.get("user_id")
        return page_response(
            service.list_slips(
                current_user(),
                user_id=to_int(user_id, "user_id") if user_id else None,
                pay_period=request.args.get("pay_period"),
                status=request.args.get("status"),
                request=PageRequest.from_args(request.args),
            )
        )

    @bp.get("/pay-slips/<int:slip_id>")
    @permission_required("payroll:read:own")
    def get_slip(slip_id: int):
        return success_response(service.get_slip(current_user(), slip_id))

    @bp.patch("/pay-slips/<int:slip_id>")
    @permission_required("payroll:write")
    def update_slip(slip_id: int):
        tenant_id = current_user().tenant_id
        action = (request.get_json(silent=True) or {}).get("action")
        if action == "confirm":
            return success_response(service.confirm(tenant_id, slip_id))
        if action == "pay":
            return success_response(service.mark_paid(tenant_id, slip_id))
        raise ValidationError("actionは confirm, pay のいずれかである必要があります")

    @bp.delete("/pay-slips/<int:slip_id>")
    @permission_required("payroll:write")
    def delete_slip(slip_id: int):
        service.delete_slip(current_user().tenant_id, slip_id)
        return success_response(None)

    @bp.get("/ledger")
    @permission_required("payroll:read:all")
    def ledger():
        period = format_period(*parse_period(request.args.get("pay_period")))
        output = service.ledger_xlsx(current_user().tenant_id, period)
        return send_file(
            output,
            mimetype=XLSX_MIMETYPE,
            as_attachment=True,
            download_name=f"payroll_ledger_{period}.xlsx",
        )

    @bp.get("/bonus-slips")
    @permission_required("payroll:read:all")
    def list_bonuses():
        user_id = request.args.get("user_id")
        return page_response(
            bonuses.list_bonuses(
                current_user().tenant_id,
                user_id=to_int(user_id, "user_id") if user_id else None,
                pay_period=request.args.get("pay_period"),
                bonus_type=request.args.get("bonus_type"),
                request=PageRequest.from_args(request.args),
            )
        )

    @bp.post("/bonus-slips")
    @permission_required("payroll:write")
    def create_bonus():
        payload = request.get_json(silent=True) or {}
        return success_response(bonuses.create_bonus(current_user().tenant_id, payload), status=201)

    @bp.patch("/bonus-slips/<int:slip_id>")
    @permission_required("payroll:write")
    def update_bonus(slip_id: int):
        payload = request.get_json(silent=True) or {}
        return success_response(bonuses.update_bonus(current_user().tenant_id, slip_id, payload))

    @bp.delete("/bonus-slips/<int:slip_id>")
    @permission_required("payroll:write")
    def delete_bonus(slip_id: int):
        bonuses.delete_bonus(current_user().tenant_id, slip_id)
        return success_response(None)

    app.register_blueprint(bp)

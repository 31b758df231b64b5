from __future__ import annotations

from flask import Blueprint, Flask, request

from ..common.auth import batch_key_required, current_user, permission_required
from ..common.pagination import PageRequest
from ..common.responses import page_response, success_response
from ..common.validators import parse_bool, to_int
from ..container import Container


def register(app: Flask, container: Container) -> None:
    bp = Blueprint("dw_admin_api", __name__, url_prefix="/api/dw-admin")
    service = container.billing_service

    # ---- invoices ----------------------------------------------------------------

    @bp.get("/invoices")
    @permission_required("system:billing")
    def list_invoices():
        tenant_id = request.args.get("tenant_id")
        return page_response(
            service.list_invoices(
                tenant_id=to_int(tenant_id, "tenant_id") if tenant_id else None,
                status=request.args.get("status"),
                billing_month=request.args.get("billing_month"),
                request=PageRequest.from_args(request.args),
            )
        )

    @bp.post("/invoices")
    @permission_required("system:billing")
    def create_invoice():
        payload = request.get_json(silent=True) or {}
        return success_response(service.create_invoice(payload), status=201)

    @bp.get("/invoices/<int:invoice_id>")
    @permission_required("system:billing")
    def get_invoice(invoice_id: int):
        return success_response(service.get_invoice(invoice_id))

    @bp.put("/invoices/<int:invoice_id>")
    @permission_required("system:billing")
    def update_invoice(invoice_id: int):
        payload = request.get_json(silent=True) or {}
        return success_response(service.update_invoice(invoice_id, payload))

    @bp.delete("/invoices/<int:invoice_id>")
    @permission_required("system:billing")
    def delete_invoice(invoice_id: int):
        service.delete_invoice(invoice_id)
        return success_response(None)

    # ---- payments ----------------------------------------------------------------

    @bp.get("/payments")
    @permission_required("system:billing")
    def list_payments():
        invoice_id = request.args.get("invoice_id")
        items = service.list_payments(to_int(invoice_id, "invoice_id") if invoice_id else None)
        return success_response(items, count=len(items))

    @bp.post("/payments")
    @permission_required("system:billing")
    def record_payment():
        payload = request.get_json(silent=True) or {}
        return success_response(service.record_payment(payload), status=201)

    # ---- notifications -----------------------------------------------------------

    @bp.get("/notifications")
    @permission_required("system:billing")
    def list_notifications():
        items = service.list_notifications(
            unread_only=parse_bool(request.args.get("unread_only", False)),
            priority=request.args.get("priority"),
        )
        return success_response(items, count=len(items), unread_count=sum(1 for n in items if not n.is_read))

    @bp.post("/notifications")
    @permission_required("system:billing")
    def create_notification():
        payload = request.get_json(silent=True) or {}
        return success_response(service.create_notification(payload), status=201)

    @bp.put("/notifications")
    @permission_required("system:billing")
    def mark_read():
        payload = request.get_json(silent=True) or {}
        ids = None if parse_bool(payload.get("mark_all_read", False)) else (payload.get("ids") or [])
        updated = service.mark_read(ids, read_by=current_user().user_id)
        return success_response({"updated": updated})

    # ---- batch -------------------------------------------------------------------

    @bp.post("/batch/generate-invoices")
    @batch_key_required
    def generate_invoices():
        payload = request.get_json(silent=True) or {}
        result = service.generate_monthly_invoices(
            payload.get("billing_month"), dry_run=parse_bool(payload.get("dry_run", False))
        )
        return success_response(result)

    @bp.post("/batch/check-overdue")
    @batch_key_required
    def check_overdue():
        return success_response(service.check_overdue())

    app.register_blueprint(bp)

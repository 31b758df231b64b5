from __future__ import annotations

from flask import Blueprint, Flask, request

from ..common.auth import permission_required
from ..common.responses import success_response
from ..container import Container


def register(app: Flask, container: Container) -> None:
    bp = Blueprint("tenants_api", __name__, url_prefix="/api/dw-admin/tenants")
    service = container.tenant_service

    @bp.get("")
    @permission_required("system:billing")
    def list_tenants():
        items = service.list_tenants(status=request.args.get("status"), search=request.args.get("search"))
        return success_response(items, count=len(items))

    @bp.post("")
    @permission_required("system:billing")
    def create_tenant():
        payload = request.get_json(silent=True) or {}
        tenant = service.create_tenant(
            name=payload.get("name", ""),
            plan=payload.get("plan"),
            contact_email=payload.get("contact_email"),
            custom_pricing=payload.get("custom_pricing", False),
            address=payload.get("address"),
        )
        return success_response(tenant, status=201)

    @bp.get("/<int:tenant_id>")
    @permission_required("system:billing")
    def get_tenant(tenant_id: int):
        return success_response(service.get_tenant(tenant_id))

    @bp.patch("/<int:tenant_id>")
    @permission_required("system:billing")
    def update_tenant(tenant_id: int):
        payload = request.get_json(silent=True) or {}
        return success_response(service.update_tenant(tenant_id, payload))

    app.register_blueprint(bp)

from __future__ import annotations

from typing import Optional

from flask import Blueprint, Flask, request

from ..common.auth import CurrentUser, api_login_required, current_user, permission_required
from ..common.pagination import PageRequest
from ..common.responses import page_response, success_response
from ..common.validators import to_int
from ..container import Container
from ..core.exceptions import AuthorizationError
from ..core.permissions import has_permission


def _scoped_user(actor: CurrentUser, raw) -> Optional[int]:
    """Managers may filter by any user; everyone else only sees themselves."""
    if has_permission(actor.role, "year_end:manage"):
        return to_int(raw, "user_id") if raw not in (None, "") else None
    return actor.user_id


def _fiscal_year_arg():
    raw = request.args.get("fiscal_year")
    return to_int(raw, "fiscal_year") if raw else None


def _batch_response(outcomes):
    succeeded = sum(1 for o in outcomes if o.success)
    return success_response(
        outcomes,
        count=len(outcomes),
        summary={"total": len(outcomes), "success": succeeded, "error": len(outcomes) - succeeded},
    )


def register(app: Flask, container: Container) -> None:
    bp = Blueprint("year_end_api", __name__, url_prefix="/api/year-end")
    declarations = container.declaration_service
    results = container.year_end_service
    slips = container.withholding_slip_service

    @bp.get("/declarations")
    @api_login_required
    def list_declarations():
        actor = current_user()
        return page_response(
            declarations.list_declarations(
                actor.tenant_id,
                user_id=_scoped_user(actor, request.args.get("user_id")),
                fiscal_year=_fiscal_year_arg(),
                status=request.args.get("status"),
                request=PageRequest.from_args(request.args),
            )
        )

    @bp.post("/declarations")
    @api_login_required
    def save_declaration():
        actor = current_user()
        payload = dict(request.get_json(silent=True) or {})
        payload["user_id"] = _scoped_user(actor, payload.get("user_id")) or actor.user_id
        declaration, created = declarations.save(actor.tenant_id, payload)
        return success_response(declaration, status=201 if created else 200)

    def _own_declaration(actor: CurrentUser, declaration_id: int):
        declaration = declarations.get(actor.tenant_id, declaration_id)
        if declaration.user_id != actor.user_id and not has_permission(actor.role, "year_end:manage"):
            raise AuthorizationError("この申告書にアクセスする権限がありません")
        return declaration

    @bp.get("/declarations/<int:declaration_id>")
    @api_login_required
    def get_declaration(declaration_id: int):
        return success_response(_own_declaration(current_user(), declaration_id))

    @bp.put("/declarations/<int:declaration_id>")
    @api_login_required
    def update_declaration(declaration_id: int):
        actor = current_user()
        _own_declaration(actor, declaration_id)
        payload = request.get_json(silent=True) or {}
        return success_response(declarations.update(actor.tenant_id, declaration_id, payload))

    @bp.patch("/declarations/<int:declaration_id>")
    @api_login_required
    def declaration_action(declaration_id: int):
        actor = current_user()
        _own_declaration(actor, declaration_id)
        action = (request.get_json(silent=True) or {}).get("action")
        return success_response(declarations.apply_action(actor, declaration_id, action))

    @bp.delete("/declarations/<int:declaration_id>")
    @api_login_required
    def delete_declaration(declaration_id: int):
        actor = current_user()
        _own_declaration(actor, declaration_id)
        declarations.delete(actor.tenant_id, declaration_id)
        return success_response(None)

    @bp.get("/results")
    @api_login_required
    def list_results():
        actor = current_user()
        return page_response(
            results.list_results(
                actor.tenant_id,
                user_id=_scoped_user(actor, request.args.get("user_id")),
                fiscal_year=_fiscal_year_arg(),
                status=request.args.get("status"),
                request=PageRequest.from_args(request.args),
            )
        )

    @bp.post("/results")
    @permission_required("year_end:manage")
    def calculate_results():
        payload = request.get_json(silent=True) or {}
        outcomes = results.calculate(
            current_user().tenant_id,
            fiscal_year=payload.get("fiscal_year"),
            user_ids=payload.get("user_ids") or None,
        )
        return _batch_response(outcomes)

    @bp.patch("/results/<int:result_id>")
    @permission_required("year_end:manage")
    def result_action(result_id: int):
        action = (request.get_json(silent=True) or {}).get("action")
        return success_response(results.apply_action(current_user(), result_id, action))

    @bp.get("/withholding-slips")
    @api_login_required
    def list_slips():
        actor = current_user()
        return page_response(
            slips.list_slips(
                actor.tenant_id,
                user_id=_scoped_user(actor, request.args.get("user_id")),
                fiscal_year=_fiscal_year_arg(),
                status=request.args.get("status"),
                request=PageRequest.from_args(request.args),
            )
        )

    @bp.post("/withholding-slips")
    @permission_required("year_end:manage")
    def generate_slips():
        payload = request.get_json(silent=True) or {}
        outcomes = slips.generate(
            current_user().tenant_id,
            fiscal_year=payload.get("fiscal_year"),
            user_ids=payload.get("user_ids") or None,
        )
        return _batch_response(outcomes)

    @bp.patch("/withholding-slips/<int:slip_id>")
    @permission_required("year_end:manage")
    def slip_action(slip_id: int):
        payload = request.get_json(silent=True) or {}
        return success_response(slips.apply_action(current_user().tenant_id, slip_id, payload))

    @bp.delete("/withholding-slips/<int:slip_id>")
    @permission_required("year_end:manage")
    def delete_slip(slip_id: int):
        slips.delete(current_user().tenant_id, slip_id)
        return success_response(None)

    app.register_blueprint(bp)

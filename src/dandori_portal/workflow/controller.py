from __future__ import annotations

from flask import Blueprint, Flask, request

from ..common.auth import CurrentUser, api_login_required, current_user, permission_required
from ..common.pagination import PageRequest
from ..common.responses import page_response, success_response
from ..common.serialization import to_jsonable
from ..common.validators import parse_bool, to_int
from ..container import Container
from ..core.exceptions import AuthorizationError, ValidationError
from ..core.permissions import has_permission
from .model import WorkflowRequest
from .rules import progress


def _with_progress(item: WorkflowRequest) -> dict:
    return {**to_jsonable(item), "progress": progress(item)}


def _can_view(item: WorkflowRequest, actor: CurrentUser) -> bool:
    if item.requester_id == actor.user_id or has_permission(actor.role, "approval:team"):
        return True
    return any(actor.user_id in (s.approver_id, s.delegated_from) for s in item.steps)


def register(app: Flask, container: Container) -> None:
    bp = Blueprint("workflow_api", __name__, url_prefix="/api/workflows")
    flows_bp = Blueprint("approval_flows_api", __name__, url_prefix="/api/approval-flows")
    service = container.workflow_service
    flows = container.approval_flow_service

    @bp.get("")
    @api_login_required
    def list_requests():
        actor = current_user()
        requester_id = request.args.get("requester_id")
        approver_id = request.args.get("approver_id")
        requester_id = to_int(requester_id, "requester_id") if requester_id else None
        approver_id = to_int(approver_id, "approver_id") if approver_id else None
        # Without team approval rights a user only sees their own requests or their own queue.
        if not has_permission(actor.role, "approval:team") and approver_id != actor.user_id:
            requester_id = actor.user_id
        page = service.list_requests(
            actor.tenant_id,
            status=request.args.get("status"),
            type=request.args.get("type"),
            requester_id=requester_id,
            approver_id=approver_id,
            request=PageRequest.from_args(request.args),
        )
        items = [_with_progress(r) for r in page.items]
        return success_response(items, count=len(items), pagination=page.meta())

    @bp.post("")
    @api_login_required
    def create_request():
        actor = current_user()
        payload = request.get_json(silent=True) or {}
        item = service.create_request(
            actor.tenant_id,
            {**payload, "requester_id": actor.user_id},
            draft=parse_bool(payload.get("draft", False)),
        )
        return success_response(_with_progress(item), status=201)

    @bp.get("/pending")
    @api_login_required
    def pending():
        actor = current_user()
        items = [_with_progress(r) for r in service.pending_for_user(actor.tenant_id, actor.user_id)]
        return success_response(items, count=len(items))

    @bp.get("/overdue")
    @permission_required("approval:team")
    def overdue():
        items = service.check_overdue(current_user().tenant_id)
        return success_response(items, count=len(items))

    @bp.post("/bulk")
    @api_login_required
    def bulk():
        actor = current_user()
        payload = request.get_json(silent=True) or {}
        action = payload.get("action")
        ids = payload.get("ids") or []
        if not isinstance(ids, list) or not ids:
            raise ValidationError("idsは必須です", required=["ids"])
        if action == "approve":
            results = service.bulk_approve(actor.tenant_id, actor, ids, comment=payload.get("comment"))
        elif action == "reject":
            results = service.bulk_reject(actor.tenant_id, actor, ids, reason=payload.get("reason"))
        else:
            raise ValidationError("actionは approve, reject のいずれかである必要があります")
        succeeded = sum(1 for r in results if r.success)
        return success_response(results, count=len(results), succeeded=succeeded, failed=len(results) - succeeded)

    @bp.get("/<int:request_id>")
    @api_login_required
    def get_request(request_id: int):
        actor = current_user()
        item = service.get(actor.tenant_id, request_id)
        if not _can_view(item, actor):
            raise AuthorizationError("この申請を閲覧する権限がありません")
        return success_response(_with_progress(item))

    @bp.post("/<int:request_id>/submit")
    @api_login_required
    def submit(request_id: int):
        actor = current_user()
        return success_response(_with_progress(service.submit(actor.tenant_id, actor, request_id)))

    @bp.post("/<int:request_id>/approve")
    @api_login_required
    def approve(request_id: int):
        actor = current_user()
        payload = request.get_json(silent=True) or {}
        item = service.approve(actor.tenant_id, actor, request_id, comment=payload.get("comment"))
        return success_response(_with_progress(item))

    @bp.post("/<int:request_id>/reject")
    @api_login_required
    def reject(request_id: int):
        actor = current_user()
        payload = request.get_json(silent=True) or {}
        item = service.reject(actor.tenant_id, actor, request_id, reason=payload.get("reason"))
        return success_response(_with_progress(item))

    @bp.post("/<int:request_id>/return")
    @api_login_required
    def return_to_sender(request_id: int):
        actor = current_user()
        payload = request.get_json(silent=True) or {}
        item = service.return_to_sender(actor.tenant_id, actor, request_id, reason=payload.get("reason"))
        return success_response(_with_progress(item))

    @bp.post("/<int:request_id>/cancel")
    @api_login_required
    def cancel(request_id: int):
        actor = current_user()
        return success_response(_with_progress(service.cancel(actor.tenant_id, actor, request_id)))

    @bp.post("/<int:request_id>/delegate")
    @api_login_required
    def delegate(request_id: int):
        actor = current_user()
        payload = request.get_json(silent=True) or {}
        item = service.delegate(actor.tenant_id, actor, request_id, delegate_to=payload.get("delegate_to"))
        return success_response(_with_progress(item))

    @bp.post("/<int:request_id>/escalate")
    @permission_required("approval:team")
    def escalate(request_id: int):
        actor = current_user()
        return success_response(_with_progress(service.escalate(actor.tenant_id, request_id, actor=actor)))

    @flows_bp.get("")
    @permission_required("workflow:configure")
    def list_flows():
        return page_response(
            flows.list_flows(
                current_user().tenant_id,
                document_type=request.args.get("document_type"),
                is_active=request.args.get("is_active"),
                request=PageRequest.from_args(request.args),
                include_details=parse_bool(request.args.get("include_details", False)),
            )
        )

    @flows_bp.post("")
    @permission_required("workflow:configure")
    def create_flow():
        actor = current_user()
        flow = flows.create_flow(actor.tenant_id, request.get_json(silent=True) or {}, created_by=actor.user_id)
        return success_response(flow, status=201)

    @flows_bp.get("/<int:flow_id>")
    @permission_required("workflow:configure")
    def get_flow(flow_id: int):
        return success_response(flows.get_flow(current_user().tenant_id, flow_id))

    @flows_bp.put("/<int:flow_id>")
    @permission_required("workflow:configure")
    def update_flow(flow_id: int):
        payload = request.get_json(silent=True) or {}
        return success_response(flows.update_flow(current_user().tenant_id, flow_id, payload))

    @flows_bp.delete("/<int:flow_id>")
    @permission_required("workflow:configure")
    def delete_flow(flow_id: int):
        flows.delete_flow(current_user().tenant_id, flow_id)
        return success_response(None)

    @flows_bp.post("/<int:flow_id>/duplicate")
    @permission_required("workflow:configure")
    def duplicate_flow(flow_id: int):
        actor = current_user()
        return success_response(flows.duplicate_flow(actor.tenant_id, flow_id, created_by=actor.user_id), status=201)

    app.register_blueprint(bp)
    app.register_blueprint(flows_bp)

from __future__ import annotations

from flask import Blueprint, Flask, request

from ..common.auth import api_login_required, current_user
from ..common.responses import success_response
from ..common.validators import parse_bool
from ..container import Container


def register(app: Flask, container: Container) -> None:
    bp = Blueprint("notifications_api", __name__, url_prefix="/api/notifications")
    service = container.notification_service

    @bp.get("")
    @api_login_required
    def list_notifications():
        actor = current_user()
        items = service.list_for_user(
            actor.tenant_id,
            actor.user_id,
            unread_only=parse_bool(request.args.get("unread_only", False)),
        )
        unread = sum(1 for n in items if not n.is_read)
        return success_response(items, count=len(items), unread_count=unread)

    @bp.put("")
    @api_login_required
    def update_notifications():
        actor = current_user()
        updated = service.apply_update(actor.tenant_id, actor.user_id, request.get_json(silent=True) or {})
        return success_response({"updated": updated})

    app.register_blueprint(bp)

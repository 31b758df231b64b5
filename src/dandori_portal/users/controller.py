from __future__ import annotations

from flask import Blueprint, Flask, request, session

from ..common.auth import api_login_required, current_user, permission_required
from ..common.pagination import PageRequest
from ..common.responses import success_response
from ..common.serialization import to_jsonable
from ..common.validators import to_int
from ..container import Container
from ..core.permissions import accessible_menus


def start_session(user) -> None:
    session.clear()
    session.permanent = True
    session["user_id"] = user.user_id
    session["tenant_id"] = user.tenant_id
    session["role"] = user.role.value
    session["name"] = user.name


def register(app: Flask, container: Container) -> None:
    auth = Blueprint("auth_api", __name__, url_prefix="/api/auth")
    users = Blueprint("users_api", __name__, url_prefix="/api/users")
    service = container.user_service

    @auth.post("/login")
    def login():
        payload = request.get_json(silent=True) or {}
        tenant_id = payload.get("tenant_id")
        user = container.auth_service.authenticate(
            payload.get("email", ""),
            payload.get("password", ""),
            tenant_id=to_int(tenant_id, "tenant_id") if tenant_id not in (None, "") else None,
        )
        start_session(user)
        return success_response({**to_jsonable(user), "menus": accessible_menus(user.role)})

    @auth.post("/logout")
    def logout():
        session.clear()
        return success_response(None)

    @auth.get("/me")
    @api_login_required
    def me():
        actor = current_user()
        user = service.get_user(actor.tenant_id, actor.user_id)
        return success_response({**to_jsonable(user.profile()), "menus": accessible_menus(user.role)})

    @users.get("")
    @permission_required("user:read")
    def list_users():
        actor = current_user()
        page = service.list_users(
            actor.tenant_id,
            role=request.args.get("role"),
            status=request.args.get("status"),
            department=request.args.get("department"),
            search=request.args.get("search"),
            request=PageRequest.from_args(request.args),
        )
        profiles = [u.profile() for u in page.items]
        return success_response(profiles, count=len(profiles), pagination=page.meta())

    @users.post("")
    @permission_required("user:create")
    def create_user():
        actor = current_user()
        payload = request.get_json(silent=True) or {}
        user = service.create_user(
            actor.tenant_id,
            name=payload.get("name", ""),
            email=payload.get("email", ""),
            password=payload.get("password", ""),
            role=payload.get("role") or "employee",
            department=payload.get("department"),
            position=payload.get("position"),
            org_unit_id=payload.get("org_unit_id"),
            manager_id=payload.get("manager_id"),
            hire_date=payload.get("hire_date"),
        )
        return success_response(user.profile(), status=201)

    @users.get("/<int:user_id>")
    @api_login_required
    def get_user(user_id: int):
        actor = current_user()
        return success_response(service.get_user(actor.tenant_id, user_id).profile())

    @users.patch("/<int:user_id>")
    @permission_required("user:update")
    def update_user(user_id: int):
        payload = request.get_json(silent=True) or {}
        return success_response(service.update_user(current_user(), user_id, payload).profile())

    @users.delete("/<int:user_id>")
    @api_login_required
    def delete_user(user_id: int):
        service.delete_user(current_user(), user_id)
        return success_response(None)

    @users.post("/<int:user_id>/password")
    @api_login_required
    def change_password(user_id: int):
        payload = request.get_json(silent=True) or {}
        service.change_password(
            current_user(),
            user_id,
            current_password=payload.get("current_password", ""),
            new_password=payload.get("new_password", ""),
        )
        return success_response(None)

    app.register_blueprint(auth)
    app.register_blueprint(users)

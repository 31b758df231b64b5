from __future__ import annotations

from dataclasses import dataclass
from functools import wraps

from flask import current_app, g, redirect, request, session, url_for

from ..core.constants import DEFAULT_LOCALE
from ..core.enums import UserRole
from ..core.exceptions import AuthenticationError, AuthorizationError
from ..core.permissions import has_permission


@dataclass(frozen=True)
class CurrentUser:
    """What the API layer reads back from the Flask session."""

    user_id: int
    tenant_id: int
    role: UserRole
    name: str


def current_user() -> CurrentUser:
    if "user_id" not in session:
        raise AuthenticationError("ログインが必要です")
    return CurrentUser(
        user_id=int(session["user_id"]),
        tenant_id=int(session["tenant_id"]),
        role=UserRole(session["role"]),
        name=session.get("name", ""),
    )


def api_login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        current_user()
        return view(*args, **kwargs)

    return wrapper


def login_required(view):
    """Page views: send logged-out visitors to the login page of the current locale."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return redirect(url_for("pages.login", locale=g.get("locale", DEFAULT_LOCALE)))
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: UserRole):
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            user = current_user()
            if user.role not in roles:
                raise AuthorizationError("この操作を行う権限がありません")
            return view(*args, **kwargs)

        return wrapper

    return decorator


def permission_required(permission: str):
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            user = current_user()
            if not has_permission(user.role, permission):
                raise AuthorizationError("この操作を行う権限がありません")
            return view(*args, **kwargs)

        return wrapper

    return decorator


def batch_key_required(view):
    """Batch endpoints: X-API-Key must match BATCH_API_KEY when one is configured.

    Without a configured key only an admin session may run the batch.
    """

    @wraps(view)
    def wrapper(*args, **kwargs):
        expected = current_app.config.get("BATCH_API_KEY") or ""
        if expected:
            if request.headers.get("X-API-Key") != expected:
                raise AuthenticationError("APIキーが無効です")
        else:
            user = current_user()
            if user.role != UserRole.ADMIN:
                raise AuthorizationError("この操作を行う権限がありません")
        return view(*args, **kwargs)

    return wrapper

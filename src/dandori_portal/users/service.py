from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.auth import CurrentUser
from ..common.datetime_utils import to_optional_date
from ..common.pagination import Page, PageRequest
from ..common.validators import parse_enum, require_min_length, require_non_empty, to_int
from ..core.enums import UserRole, UserStatus
from ..core.exceptions import AuthenticationError, AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.permissions import has_permission
from .model import SessionUser, User
from .repository import UserRepository

logger = logging.getLogger(__name__)

_LOGIN_FAILED = "メールアドレスまたはパスワードが正しくありません"
_MIN_PASSWORD = 6


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str, *, tenant_id: Optional[int] = None) -> SessionUser:
        email = require_non_empty(email, "email")
        user = self._users.get_by_email(email, tenant_id=tenant_id)
        if not user or not user.is_active:
            raise AuthenticationError(_LOGIN_FAILED)

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except (TypeError, ValueError):
            # placeholder or corrupted hashes
            ok = False

        if not ok:
            raise AuthenticationError(_LOGIN_FAILED)

        logger.info("Login user_id=%s tenant_id=%s", user.id, user.tenant_id)
        return SessionUser(
            user_id=user.id,
            tenant_id=user.tenant_id,
            name=user.name,
            email=user.email,
            role=user.role,
            department=user.department,
        )


class UserService:
    """Use case: manage the accounts of one tenant."""

    def __init__(self, users: UserRepository):
        self._users = users

    def list_users(
        self,
        tenant_id: int,
        *,
        role: Optional[str] = None,
        status: Optional[str] = None,
        department: Optional[str] = None,
        search: Optional[str] = None,
        request: Optional[PageRequest] = None,
    ) -> Page[User]:
        return self._users.list(
            tenant_id,
            role=parse_enum(UserRole, role, "role") if role else None,
            status=parse_enum(UserStatus, status, "status") if status else None,
            department=department or None,
            search=(search or "").strip() or None,
            request=request or PageRequest(),
        )

    def get_user(self, tenant_id: int, user_id: int) -> User:
        user = self._users.get(tenant_id, user_id)
        if not user:
            raise NotFoundError("ユーザーが見つかりません")
        return user

    def create_user(
        self,
        tenant_id: int,
        *,
        name: str,
        email: str,
        password: str,
        role: Any = UserRole.EMPLOYEE,
        department: Optional[str] = None,
        position: Optional[str] = None,
        org_unit_id: Any = None,
        manager_id: Any = None,
        hire_date: Any = None,
    ) -> User:
        missing = [f for f, v in (("name", name), ("email", email)) if not v or not str(v).strip()]
        if missing:
            raise ValidationError(f"{', '.join(missing)}は必須です", required=missing)
        require_min_length(password, "パスワード", _MIN_PASSWORD)
        role = parse_enum(UserRole, role or UserRole.EMPLOYEE, "role")

        email = email.strip().lower()
        if self._users.get_by_email(email, tenant_id=tenant_id):
            raise ConflictError("このメールアドレスは既に登録されています")

        user = self._users.create(
            tenant_id,
            {
                "name": name.strip(),
                "email": email,
                "password_hash": generate_password_hash(password),
                "role": role,
                "status": UserStatus.ACTIVE,
                "department": department,
                "position": position,
                "org_unit_id": to_int(org_unit_id, "org_unit_id", default=0) or None,
                "manager_id": to_int(manager_id, "manager_id", default=0) or None,
                "hire_date": to_optional_date(hire_date, "hire_date"),
            },
        )
        logger.info("User created id=%s tenant_id=%s role=%s", user.id, tenant_id, role.value)
        return user

    def update_user(self, actor: CurrentUser, user_id: int, fields: Mapping[str, Any]) -> User:
        user = self.get_user(actor.tenant_id, user_id)
        values: dict[str, Any] = {}

        if "name" in fields:
            values["name"] = require_non_empty(fields["name"], "name")
        for key in ("department", "position"):
            if key in fields:
                values[key] = fields[key] or None
        if "role" in fields:
            role = parse_enum(UserRole, fields["role"], "role")
            if role != user.role and not has_permission(actor.role, "user:update"):
                raise AuthorizationError("ロールを変更する権限がありません")
            values["role"] = role
        if "status" in fields:
            values["status"] = parse_enum(UserStatus, fields["status"], "status")
        if "org_unit_id" in fields:
            values["org_unit_id"] = to_int(fields["org_unit_id"], "org_unit_id", default=0) or None
        if "manager_id" in fields:
            manager_id = to_int(fields["manager_id"], "manager_id", default=0) or None
            if manager_id == user.id:
                raise ValidationError("自分自身を上長に設定することはできません")
            if manager_id and not self._users.get(actor.tenant_id, manager_id):
                raise ValidationError("上長が見つかりません")
            values["manager_id"] = manager_id
        if "hire_date" in fields:
            values["hire_date"] = to_optional_date(fields["hire_date"], "hire_date")

        if not values:
            return user
        return self._users.update(actor.tenant_id, user_id, values)

    def change_password(self, actor: CurrentUser, user_id: int, *, current_password: str, new_password: str) -> None:
        if actor.user_id != user_id and not has_permission(actor.role, "user:update"):
            raise AuthorizationError("この操作を行う権限がありません")
        user = self.get_user(actor.tenant_id, user_id)

        if actor.user_id == user_id:
            try:
                ok = check_password_hash(user.password_hash, current_password or "")
            except (TypeError, ValueError):
                ok = False
            if not ok:
                raise ValidationError("現在のパスワードが正しくありません")

        require_min_length(new_password, "新しいパスワード", _MIN_PASSWORD)
        self._users.update(actor.tenant_id, user_id, {"password_hash": generate_password_hash(new_password)})

    def delete_user(self, actor: CurrentUser, user_id: int) -> None:
        if not has_permission(actor.role, "user:delete"):
            raise AuthorizationError("この操作を行う権限がありません")
        if actor.user_id == user_id:
            raise ValidationError("自分自身を削除することはできません")

        user = self.get_user(actor.tenant_id, user_id)
        if user.role == UserRole.ADMIN:
            raise ValidationError("管理者アカウントは削除できません")

        if not self._users.delete(actor.tenant_id, user_id):
            raise NotFoundError("ユーザーが見つかりません")
        logger.info("User deleted id=%s by=%s", user_id, actor.user_id)

"""Role-based access control tables.

Menus and feature permissions map to the roles allowed to use them.
"""

from __future__ import annotations

from .enums import UserRole

_ALL = frozenset(UserRole)
_E, _M, _X, _H, _A, _P = (
    UserRole.EMPLOYEE,
    UserRole.MANAGER,
    UserRole.EXECUTIVE,
    UserRole.HR,
    UserRole.ADMIN,
    UserRole.APPLICANT,
)

MENU_PERMISSIONS: dict[str, frozenset[UserRole]] = {
    "dashboard": _ALL,
    "attendance": _ALL,
    "leave": _ALL,
    "workflow": _ALL,
    "users": frozenset({_H, _A}),
    "members": frozenset({_M, _X, _H, _A}),
    "approval": frozenset({_M, _X, _H}),
    "payroll": frozenset({_X, _H}),
    "organization": frozenset({_X, _H, _A}),
    "assets": frozenset({_X, _H, _A}),
    "saas": frozenset({_X, _H, _A}),
    "settings": frozenset({_X, _H, _A}),
    "dw_admin": frozenset({_A}),
}

PERMISSIONS: dict[str, frozenset[UserRole]] = {
    "user:create": frozenset({_H, _A}),
    "user:read": frozenset({_M, _X, _H, _A}),
    "user:update": frozenset({_H, _A}),
    "user:delete": frozenset({_A}),
    "payroll:read:all": frozenset({_X, _H}),
    "payroll:read:own": _ALL - {_P},
    "payroll:write": frozenset({_H}),
    "organization:read": frozenset({_E, _M, _X, _H, _A}),
    "organization:write": frozenset({_X, _H, _A}),
    "approval:team": frozenset({_M, _X, _H}),
    "approval:hr": frozenset({_H}),
    "approval:executive": frozenset({_X}),
    "leave:manage": frozenset({_M, _H, _A}),
    "workflow:configure": frozenset({_H, _A}),
    "year_end:manage": frozenset({_H, _A}),
    "assets:write": frozenset({_X, _H, _A}),
    "saas:write": frozenset({_X, _H, _A}),
    "attendance:read:all": frozenset({_M, _X, _H, _A}),
    "system:settings": frozenset({_X, _H, _A}),
    "system:billing": frozenset({_A}),
}


def _as_role(role: UserRole | str) -> UserRole:
    return role if isinstance(role, UserRole) else UserRole(role)


def has_permission(role: UserRole | str, permission: str) -> bool:
    allowed = PERMISSIONS.get(permission)
    if allowed is None:
        return False
    return _as_role(role) in allowed


def has_menu_access(role: UserRole | str, menu_key: str) -> bool:
    allowed = MENU_PERMISSIONS.get(menu_key)
    if allowed is None:
        return False
    return _as_role(role) in allowed


def accessible_menus(role: UserRole | str) -> list[str]:
    r = _as_role(role)
    return [key for key, roles in MENU_PERMISSIONS.items() if r in roles]

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import UserRole, UserStatus


@dataclass(frozen=True)
class UserProfile:
    """User as exposed through the API (no password hash)."""

    id: int
    tenant_id: int
    email: str
    name: str
    role: UserRole
    status: UserStatus
    department: Optional[str]
    position: Optional[str]
    org_unit_id: Optional[int]
    manager_id: Optional[int]
    hire_date: Optional[date]
    created_at: Optional[datetime]


@dataclass(frozen=True)
class User:
    """Domain entity: an employee account inside one tenant."""

    id: int
    tenant_id: int
    email: str
    name: str
    password_hash: str
    role: UserRole
    status: UserStatus
    department: Optional[str] = None
    position: Optional[str] = None
    org_unit_id: Optional[int] = None
    manager_id: Optional[int] = None
    hire_date: Optional[date] = None
    created_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def profile(self) -> UserProfile:
        return UserProfile(
            id=self.id,
            tenant_id=self.tenant_id,
            email=self.email,
            name=self.name,
            role=self.role,
            status=self.status,
            department=self.department,
            position=self.position,
            org_unit_id=self.org_unit_id,
            manager_id=self.manager_id,
            hire_date=self.hire_date,
            created_at=self.created_at,
        )


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: int
    tenant_id: int
    name: str
    email: str
    role: UserRole
    department: Optional[str]

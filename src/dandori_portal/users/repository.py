from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence

from ..common.pagination import Page, PageRequest
from ..core.enums import UserRole, UserStatus
from .model import User


class UserRepository(Protocol):
    def get(self, tenant_id: int, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str, *, tenant_id: Optional[int] = None) -> Optional[User]:
        raise NotImplementedError

    def list(
        self,
        tenant_id: int,
        *,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
        department: Optional[str] = None,
        search: Optional[str] = None,
        request: PageRequest,
    ) -> Page[User]:
        raise NotImplementedError

    def list_active(self, tenant_id: int) -> Sequence[User]:
        raise NotImplementedError

    def list_by_ids(self, tenant_id: int, user_ids: Iterable[int]) -> Sequence[User]:
        raise NotImplementedError

    def list_by_org_units(self, tenant_id: int, unit_ids: Iterable[int]) -> Sequence[User]:
        raise NotImplementedError

    def first_active_with_role(self, tenant_id: int, role: UserRole) -> Optional[User]:
        raise NotImplementedError

    def create(self, tenant_id: int, values: Mapping[str, Any]) -> User:
        raise NotImplementedError

    def update(self, tenant_id: int, user_id: int, values: Mapping[str, Any]) -> User:
        raise NotImplementedError

    def delete(self, tenant_id: int, user_id: int) -> bool:
        raise NotImplementedError

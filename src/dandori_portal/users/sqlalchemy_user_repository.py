from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Sequence

from sqlalchemy import func, or_

from ..common.pagination import Page, PageRequest
from ..core.enums import UserRole, UserStatus
from ..core.exceptions import NotFoundError
from ..database.mapping import assign_columns, row_to_model
from ..database.repository_base import SQLAlchemyRepository
from ..database.session import session_scope
from ..database.tables.users import UserRow
from .model import User
from .repository import UserRepository


class SQLAlchemyUserRepository(SQLAlchemyRepository, UserRepository):
    def get(self, tenant_id: int, user_id: int) -> Optional[User]:
        row = self._tenant_row(UserRow, tenant_id, user_id)
        return row_to_model(User, row) if row else None

    def get_by_email(self, email: str, *, tenant_id: Optional[int] = None) -> Optional[User]:
        query = self._session.query(UserRow).filter(func.lower(UserRow.email) == email.strip().lower())
        if tenant_id is not None:
            query = query.filter(UserRow.tenant_id == tenant_id)
        row = query.order_by(UserRow.id).first()
        return row_to_model(User, row) if row else None

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
        query = self._session.query(UserRow).filter(UserRow.tenant_id == tenant_id)
        if role is not None:
            query = query.filter(UserRow.role == role.value)
        if status is not None:
            query = query.filter(UserRow.status == status.value)
        if department:
            query = query.filter(UserRow.department == department)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(or_(func.lower(UserRow.name).like(pattern), func.lower(UserRow.email).like(pattern)))
        query = query.order_by(UserRow.id)
        return self._page(query, request, User)

    def list_active(self, tenant_id: int) -> Sequence[User]:
        rows = (
            self._session.query(UserRow)
            .filter(UserRow.tenant_id == tenant_id, UserRow.status == UserStatus.ACTIVE.value)
            .order_by(UserRow.id)
            .all()
        )
        return [row_to_model(User, r) for r in rows]

    def list_by_ids(self, tenant_id: int, user_ids: Iterable[int]) -> Sequence[User]:
        ids = list(user_ids)
        if not ids:
            return []
        rows = (
            self._session.query(UserRow)
            .filter(UserRow.tenant_id == tenant_id, UserRow.id.in_(ids))
            .order_by(UserRow.id)
            .all()
        )
        return [row_to_model(User, r) for r in rows]

    def list_by_org_units(self, tenant_id: int, unit_ids: Iterable[int]) -> Sequence[User]:
        ids = list(unit_ids)
        if not ids:
            return []
        rows = (
            self._session.query(UserRow)
            .filter(UserRow.tenant_id == tenant_id, UserRow.org_unit_id.in_(ids))
            .order_by(UserRow.name)
            .all()
        )
        return [row_to_model(User, r) for r in rows]

    def first_active_with_role(self, tenant_id: int, role: UserRole) -> Optional[User]:
        row = (
            self._session.query(UserRow)
            .filter_by(tenant_id=tenant_id, role=role.value, status=UserStatus.ACTIVE.value)
            .order_by(UserRow.id)
            .first()
        )
        return row_to_model(User, row) if row else None

    def create(self, tenant_id: int, values: Mapping[str, Any]) -> User:
        with session_scope(self._db) as s:
            row = UserRow(tenant_id=tenant_id)
            assign_columns(row, values)
            s.add(row)
            s.flush()
            return row_to_model(User, row)

    def update(self, tenant_id: int, user_id: int, values: Mapping[str, Any]) -> User:
        with session_scope(self._db) as s:
            row = self._tenant_row(UserRow, tenant_id, user_id)
            if row is None:
                raise NotFoundError("ユーザーが見つかりません")
            assign_columns(row, values)
            s.flush()
            return row_to_model(User, row)

    def delete(self, tenant_id: int, user_id: int) -> bool:
        with session_scope(self._db) as s:
            row = self._tenant_row(UserRow, tenant_id, user_id)
            if row is None:
                return False
            s.delete(row)
            return True

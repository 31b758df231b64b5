from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional, Sequence

from ..common.pagination import Page, PageRequest
from ..core.enums import LeaveStatus
from ..core.exceptions import NotFoundError
from ..database.mapping import assign_columns, row_to_model
from ..database.repository_base import SQLAlchemyRepository
from ..database.session import session_scope
from ..database.tables.leave import LeaveBalanceRow, LeaveRequestRow
from .model import LeaveBalance, LeaveRequest
from .repository import LeaveRepository


def _balance(row: LeaveBalanceRow) -> LeaveBalance:
    return row_to_model(LeaveBalance, row, remaining=row.granted - row.used)


class SQLAlchemyLeaveRepository(SQLAlchemyRepository, LeaveRepository):
    def get(self, tenant_id: int, request_id: int) -> Optional[LeaveRequest]:
        row = self._tenant_row(LeaveRequestRow, tenant_id, request_id)
        return row_to_model(LeaveRequest, row) if row else None

    def list(
        self,
        tenant_id: int,
        *,
        user_id: Optional[int] = None,
        status: Optional[LeaveStatus] = None,
        request: PageRequest,
    ) -> Page[LeaveRequest]:
        query = self._session.query(LeaveRequestRow).filter(LeaveRequestRow.tenant_id == tenant_id)
        if user_id is not None:
            query = query.filter(LeaveRequestRow.user_id == user_id)
        if status is not None:
            query = query.filter(LeaveRequestRow.status == status.value)
        query = query.order_by(LeaveRequestRow.start_date.desc(), LeaveRequestRow.id.desc())
        return self._page(query, request, LeaveRequest)

    def list_for_year(self, tenant_id: int, year: Optional[int]) -> Sequence[LeaveRequest]:
        query = self._session.query(LeaveRequestRow).filter(LeaveRequestRow.tenant_id == tenant_id)
        if year is not None:
            query = query.filter(
                LeaveRequestRow.start_date >= date(year, 1, 1),
                LeaveRequestRow.start_date <= date(year, 12, 31),
            )
        rows = query.order_by(LeaveRequestRow.created_at, LeaveRequestRow.id).all()
        return [row_to_model(LeaveRequest, r) for r in rows]

    def create(self, tenant_id: int, values: Mapping[str, Any]) -> LeaveRequest:
        with session_scope(self._db) as s:
            row = LeaveRequestRow(tenant_id=tenant_id)
            assign_columns(row, values)
            s.add(row)
            s.flush()
            return row_to_model(LeaveRequest, row)

    def update(self, tenant_id: int, request_id: int, values: Mapping[str, Any]) -> LeaveRequest:
        with session_scope(self._db) as s:
            row = self._tenant_row(LeaveRequestRow, tenant_id, request_id)
            if row is None:
                raise NotFoundError("休暇申請が見つかりません")
            assign_columns(row, values)
            s.flush()
            return row_to_model(LeaveRequest, row)

    def _balance_row(self, tenant_id: int, user_id: int, year: int) -> Optional[LeaveBalanceRow]:
        return (
            self._session.query(LeaveBalanceRow)
            .filter_by(tenant_id=tenant_id, user_id=user_id, year=year)
            .one_or_none()
        )

    def get_balance(self, tenant_id: int, user_id: int, year: int) -> Optional[LeaveBalance]:
        row = self._balance_row(tenant_id, user_id, year)
        return _balance(row) if row else None

    def create_balance(self, tenant_id: int, user_id: int, year: int, granted: float) -> LeaveBalance:
        with session_scope(self._db) as s:
            row = LeaveBalanceRow(tenant_id=tenant_id, user_id=user_id, year=year, granted=granted, used=0.0)
            s.add(row)
            s.flush()
            return _balance(row)

    def add_used(self, tenant_id: int, user_id: int, year: int, delta: float) -> LeaveBalance:
        with session_scope(self._db) as s:
            row = self._balance_row(tenant_id, user_id, year)
            if row is None:
                raise NotFoundError("休暇残日数が見つかりません")
            row.used = max(row.used + delta, 0.0)
            s.flush()
            return _balance(row)

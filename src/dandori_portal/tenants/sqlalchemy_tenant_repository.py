from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Sequence

from sqlalchemy import func, or_

from ..core.enums import InvoiceStatus, TenantStatus, UserStatus
from ..core.exceptions import NotFoundError
from ..database.mapping import assign_columns, row_to_model
from ..database.repository_base import SQLAlchemyRepository
from ..database.session import session_scope
from ..database.tables.billing import InvoiceRow
from ..database.tables.tenants import TenantRow
from ..database.tables.users import UserRow
from .model import Tenant, TenantStats
from .repository import TenantRepository

_UNPAID = (InvoiceStatus.DRAFT.value, InvoiceStatus.SENT.value, InvoiceStatus.OVERDUE.value)


class SQLAlchemyTenantRepository(SQLAlchemyRepository, TenantRepository):
    def list(self, *, status: Optional[TenantStatus] = None, search: Optional[str] = None) -> Sequence[Tenant]:
        query = self._session.query(TenantRow)
        if status is not None:
            query = query.filter(TenantRow.status == status.value)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(
                or_(func.lower(TenantRow.name).like(pattern), func.lower(TenantRow.contact_email).like(pattern))
            )
        rows = query.order_by(TenantRow.created_at.desc(), TenantRow.id.desc()).all()
        return [row_to_model(Tenant, r) for r in rows]

    def get(self, tenant_id: int) -> Optional[Tenant]:
        row = self._session.get(TenantRow, tenant_id)
        return row_to_model(Tenant, row) if row else None

    def create(self, values: Mapping[str, Any]) -> Tenant:
        with session_scope(self._db) as s:
            row = TenantRow()
            assign_columns(row, values)
            s.add(row)
            s.flush()
            return row_to_model(Tenant, row)

    def update(self, tenant_id: int, values: Mapping[str, Any]) -> Tenant:
        with session_scope(self._db) as s:
            row = s.get(TenantRow, tenant_id)
            if row is None:
                raise NotFoundError("テナントが見つかりません")
            assign_columns(row, values)
            s.flush()
            return row_to_model(Tenant, row)

    def active_user_count(self, tenant_id: int) -> int:
        return (
            self._session.query(func.count(UserRow.id))
            .filter(UserRow.tenant_id == tenant_id, UserRow.status == UserStatus.ACTIVE.value)
            .scalar()
            or 0
        )

    def stats_for(self, tenant_ids: Iterable[int]) -> dict[int, TenantStats]:
        ids = list(tenant_ids)
        if not ids:
            return {}

        user_counts = dict(
            self._session.query(UserRow.tenant_id, func.count(UserRow.id))
            .filter(UserRow.tenant_id.in_(ids))
            .group_by(UserRow.tenant_id)
            .all()
        )

        acc: dict[int, dict[str, int]] = {
            tid: {"invoice_total": 0, "unpaid_count": 0, "unpaid_amount": 0, "overdue_count": 0} for tid in ids
        }
        invoices = (
            self._session.query(InvoiceRow.tenant_id, InvoiceRow.status, InvoiceRow.total)
            .filter(InvoiceRow.tenant_id.in_(ids))
            .all()
        )
        for tenant_id, status, total in invoices:
            a = acc[tenant_id]
            a["invoice_total"] += int(total or 0)
            if status in _UNPAID:
                a["unpaid_count"] += 1
                a["unpaid_amount"] += int(total or 0)
            if status == InvoiceStatus.OVERDUE.value:
                a["overdue_count"] += 1

        return {tid: TenantStats(user_count=int(user_counts.get(tid, 0)), **acc[tid]) for tid in ids}

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..common.pagination import Page, PageRequest
from ..core.enums import DWNotificationType, InvoiceStatus, NotificationPriority
from ..core.exceptions import NotFoundError
from ..database.mapping import assign_columns, row_to_model
from ..database.repository_base import SQLAlchemyRepository
from ..database.session import session_scope
from ..database.tables.billing import DWNotificationRow, InvoiceRow, PaymentRow
from .model import DWNotification, Invoice, Payment
from .repository import DWNotificationRepository, InvoiceRepository, PaymentRepository


class SQLAlchemyInvoiceRepository(SQLAlchemyRepository, InvoiceRepository):
    def list(
        self,
        *,
        tenant_id: Optional[int],
        status: Optional[InvoiceStatus],
        billing_month: Optional[str],
        request: PageRequest,
    ) -> Page[Invoice]:
        query = self._session.query(InvoiceRow)
        if tenant_id is not None:
            query = query.filter(InvoiceRow.tenant_id == tenant_id)
        if status is not None:
            query = query.filter(InvoiceRow.status == status.value)
        if billing_month:
            query = query.filter(InvoiceRow.billing_month == billing_month)
        query = query.order_by(InvoiceRow.billing_month.desc(), InvoiceRow.id.desc())
        return self._page(query, request, Invoice)

    def list_by_status(self, statuses: Iterable[InvoiceStatus]) -> Sequence[Invoice]:
        rows = (
            self._session.query(InvoiceRow)
            .filter(InvoiceRow.status.in_([s.value for s in statuses]))
            .order_by(InvoiceRow.due_date)
            .all()
        )
        return [row_to_model(Invoice, r) for r in rows]

    def get(self, invoice_id: int) -> Optional[Invoice]:
        row = self._session.get(InvoiceRow, invoice_id)
        return row_to_model(Invoice, row) if row else None

    def find_for_month(self, tenant_id: int, billing_month: str) -> Optional[Invoice]:
        row = self._session.query(InvoiceRow).filter_by(tenant_id=tenant_id, billing_month=billing_month).first()
        return row_to_model(Invoice, row) if row else None

    def numbers_with_prefix(self, prefix: str) -> Sequence[str]:
        rows = self._session.query(InvoiceRow.invoice_number).filter(InvoiceRow.invoice_number.like(f"{prefix}%")).all()
        return [r[0] for r in rows]

    def create(self, values: Mapping[str, Any]) -> Invoice:
        with session_scope(self._db) as s:
            row = InvoiceRow()
            assign_columns(row, values)
            s.add(row)
            s.flush()
            return row_to_model(Invoice, row)

    def update(self, invoice_id: int, values: Mapping[str, Any]) -> Invoice:
        with session_scope(self._db) as s:
            row = s.get(InvoiceRow, invoice_id)
            if row is None:
                raise NotFoundError("請求書が見つかりません")
            assign_columns(row, values)
            s.flush()
            return row_to_model(Invoice, row)

    def delete(self, invoice_id: int) -> bool:
        with session_scope(self._db) as s:
            row = s.get(InvoiceRow, invoice_id)
            if row is None:
                return False
            s.delete(row)
            return True


class SQLAlchemyPaymentRepository(SQLAlchemyRepository, PaymentRepository):
    def list(self, *, invoice_id: Optional[int] = None) -> Sequence[Payment]:
        query = self._session.query(PaymentRow)
        if invoice_id is not None:
            query = query.filter(PaymentRow.invoice_id == invoice_id)
        rows = query.order_by(PaymentRow.payment_date.desc(), PaymentRow.id.desc()).all()
        return [row_to_model(Payment, r) for r in rows]

    def create(self, values: Mapping[str, Any]) -> Payment:
        with session_scope(self._db) as s:
            row = PaymentRow()
            assign_columns(row, values)
            s.add(row)
            s.flush()
            return row_to_model(Payment, row)


class SQLAlchemyDWNotificationRepository(SQLAlchemyRepository, DWNotificationRepository):
    def list(self, *, unread_only: bool = False, priority: Optional[NotificationPriority] = None) -> Sequence[DWNotification]:
        query = self._session.query(DWNotificationRow)
        if unread_only:
            query = query.filter(DWNotificationRow.is_read.is_(False))
        if priority is not None:
            query = query.filter(DWNotificationRow.priority == priority.value)
        rows = query.order_by(DWNotificationRow.created_at.desc(), DWNotificationRow.id.desc()).all()
        return [row_to_model(DWNotification, r) for r in rows]

    def create(self, values: Mapping[str, Any]) -> DWNotification:
        with session_scope(self._db) as s:
            row = DWNotificationRow()
            assign_columns(row, values)
            s.add(row)
            s.flush()
            return row_to_model(DWNotification, row)

    def find_for_invoice(self, notification_type: DWNotificationType, invoice_id: int) -> Optional[DWNotification]:
        row = (
            self._session.query(DWNotificationRow)
            .filter_by(type=notification_type.value, invoice_id=invoice_id)
            .order_by(DWNotificationRow.id.desc())
            .first()
        )
        return row_to_model(DWNotification, row) if row else None

    def update(self, notification_id: int, values: Mapping[str, Any]) -> DWNotification:
        with session_scope(self._db) as s:
            row = s.get(DWNotificationRow, notification_id)
            if row is None:
                raise NotFoundError("通知が見つかりません")
            assign_columns(row, values)
            s.flush()
            return row_to_model(DWNotification, row)

    def mark_read(self, ids: Optional[Sequence[int]], *, read_by: Optional[int], now: datetime) -> int:
        with session_scope(self._db) as s:
            query = s.query(DWNotificationRow).filter(DWNotificationRow.is_read.is_(False))
            if ids is not None:
                query = query.filter(DWNotificationRow.id.in_(list(ids)))
            rows = query.all()
            for row in rows:
                row.is_read = True
                row.read_at = now
                row.read_by = read_by
            return len(rows)

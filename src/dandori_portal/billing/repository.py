from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence

from ..common.pagination import Page, PageRequest
from ..core.enums import DWNotificationType, InvoiceStatus, NotificationPriority
from .model import DWNotification, Invoice, Payment


class InvoiceRepository(Protocol):
    def list(
        self,
        *,
        tenant_id: Optional[int],
        status: Optional[InvoiceStatus],
        billing_month: Optional[str],
        request: PageRequest,
    ) -> Page[Invoice]:
        raise NotImplementedError

    def list_by_status(self, statuses: Iterable[InvoiceStatus]) -> Sequence[Invoice]:
        raise NotImplementedError

    def get(self, invoice_id: int) -> Optional[Invoice]:
        raise NotImplementedError

    def find_for_month(self, tenant_id: int, billing_month: str) -> Optional[Invoice]:
        raise NotImplementedError

    def numbers_with_prefix(self, prefix: str) -> Sequence[str]:
        raise NotImplementedError

    def create(self, values: Mapping[str, Any]) -> Invoice:
        raise NotImplementedError

    def update(self, invoice_id: int, values: Mapping[str, Any]) -> Invoice:
        raise NotImplementedError

    def delete(self, invoice_id: int) -> bool:
        raise NotImplementedError


class PaymentRepository(Protocol):
    def list(self, *, invoice_id: Optional[int] = None) -> Sequence[Payment]:
        raise NotImplementedError

    def create(self, values: Mapping[str, Any]) -> Payment:
        raise NotImplementedError


class DWNotificationRepository(Protocol):
    def list(self, *, unread_only: bool = False, priority: Optional[NotificationPriority] = None) -> Sequence[DWNotification]:
        raise NotImplementedError

    def create(self, values: Mapping[str, Any]) -> DWNotification:
        raise NotImplementedError

    def find_for_invoice(self, notification_type: DWNotificationType, invoice_id: int) -> Optional[DWNotification]:
        raise NotImplementedError

    def update(self, notification_id: int, values: Mapping[str, Any]) -> DWNotification:
        raise NotImplementedError

    def mark_read(self, ids: Optional[Sequence[int]], *, read_by: Optional[int], now: datetime) -> int:
        """Mark the given ids (every unread row when ids is None) as read."""
        raise NotImplementedError

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import DWNotificationType, InvoiceStatus, NotificationPriority


@dataclass(frozen=True)
class Invoice:
    """Monthly invoice billed by the platform operator to one tenant."""

    id: int
    tenant_id: int
    invoice_number: str
    billing_month: str
    user_count: int
    subtotal: int
    tax: int
    total: int
    status: InvoiceStatus
    issue_date: date
    due_date: date
    sent_date: Optional[date] = None
    paid_date: Optional[date] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Payment:
    id: int
    invoice_id: int
    amount: int
    payment_date: date
    payment_method: str
    reference: Optional[str] = None
    notes: Optional[str] = None
    status: str = "completed"
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class InvoiceDetail:
    invoice: Invoice
    payments: tuple[Payment, ...]
    paid_amount: int
    remaining: int


@dataclass(frozen=True)
class DWNotification:
    id: int
    type: DWNotificationType
    title: str
    description: Optional[str]
    priority: NotificationPriority
    tenant_id: Optional[int] = None
    tenant_name: Optional[str] = None
    invoice_id: Optional[int] = None
    amount: Optional[int] = None
    is_read: bool = False
    read_at: Optional[datetime] = None
    read_by: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class GenerationResult:
    billing_month: str
    generated: int
    skipped: int
    errors: list[dict]
    invoices: list[dict]


@dataclass(frozen=True)
class OverdueCheckResult:
    overdue_count: int
    updated: list[str]
    warnings: list[dict]

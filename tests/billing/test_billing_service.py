from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from dandori_portal.billing.model import DWNotification, Invoice, Payment
from dandori_portal.billing.service import BillingService, due_date, invoice_amounts, overdue_priority
from dandori_portal.core.enums import DWNotificationType, InvoiceStatus, NotificationPriority, TenantStatus
from dandori_portal.core.exceptions import ValidationError
from dandori_portal.tenants.model import Tenant


class FakeTenants:
    def __init__(self, tenants, user_counts):
        self._tenants = {t.id: t for t in tenants}
        self._counts = user_counts

    def list(self, *, status=None, search=None):
        return [t for t in self._tenants.values() if status is None or t.status == status]

    def get(self, tenant_id):
        return self._tenants.get(tenant_id)

    def active_user_count(self, tenant_id):
        return self._counts.get(tenant_id, 0)


class FakeInvoices:
    def __init__(self, invoices=()):
        self.items = {i.id: i for i in invoices}

    def list_by_status(self, statuses):
        return [i for i in self.items.values() if i.status in statuses]

    def get(self, invoice_id):
        return self.items.get(invoice_id)

    def find_for_month(self, tenant_id, billing_month):
        return next((i for i in self.items.values() if i.tenant_id == tenant_id and i.billing_month == billing_month), None)

    def numbers_with_prefix(self, prefix):
        return [i.invoice_number for i in self.items.values() if i.invoice_number.startswith(prefix)]

    def create(self, values):
        invoice = Invoice(id=max(self.items, default=0) + 1, **values)
        self.items[invoice.id] = invoice
        return invoice

    def update(self, invoice_id, values):
        self.items[invoice_id] = replace(self.items[invoice_id], **values)
        return self.items[invoice_id]


class FakePayments:
    def __init__(self):
        self.items: list[Payment] = []

    def list(self, *, invoice_id=None):
        return [p for p in self.items if invoice_id is None or p.invoice_id == invoice_id]

    def create(self, values):
        payment = Payment(id=len(self.items) + 1, **values)
        self.items.append(payment)
        return payment


class FakeNotifications:
    def __init__(self):
        self.items: dict[int, DWNotification] = {}

    def create(self, values):
        n = DWNotification(id=len(self.items) + 1, **values)
        self.items[n.id] = n
        return n

    def find_for_invoice(self, notification_type, invoice_id):
        return next((n for n in self.items.values() if n.type == notification_type and n.invoice_id == invoice_id), None)

    def update(self, notification_id, values):
        self.items[notification_id] = replace(self.items[notification_id], **values)
        return self.items[notification_id]


def _tenant(tid, *, status=TenantStatus.ACTIVE, custom_pricing=False):
    return Tenant(id=tid, name=f"Tenant {tid}", plan="standard", status=status, custom_pricing=custom_pricing)


def _invoice(iid, *, status, due, tenant_id=1, number=None, total=16_500):
    return Invoice(
        id=iid,
        tenant_id=tenant_id,
        invoice_number=number or f"INV-2025-03-{iid:03d}",
        billing_month="2025-03",
        user_count=5,
        subtotal=15_000,
        tax=1_500,
        total=total,
        status=status,
        issue_date=date(2025, 4, 1),
        due_date=due,
    )


def _service(tenants=(), counts=None, invoices=()):
    notifications = FakeNotifications()
    svc = BillingService(FakeInvoices(invoices), FakePayments(), notifications, FakeTenants(tenants, counts or {}))
    return svc, notifications


def test_due_date_is_thirty_days_after_month_end():
    assert due_date("2025-02") == date(2025, 3, 30)
    assert due_date("2025-03") == date(2025, 4, 30)


def test_invoice_amounts_with_and_without_base_fee():
    assert invoice_amounts(5, custom_pricing=False) == (15_000, 1_500, 16_500)
    assert invoice_amounts(5, custom_pricing=True) == (5_000, 500, 5_500)


def test_overdue_priority_thresholds():
    assert overdue_priority(1) == NotificationPriority.LOW
    assert overdue_priority(7) == NotificationPriority.NORMAL
    assert overdue_priority(14) == NotificationPriority.HIGH
    assert overdue_priority(30) == NotificationPriority.URGENT


def test_generate_defaults_to_previous_month_and_skips_existing():
    existing = _invoice(1, status=InvoiceStatus.SENT, due=date(2025, 4, 30), tenant_id=1, number="INV-2025-03-001")
    svc, notifications = _service(
        tenants=[_tenant(1), _tenant(2), _tenant(3), _tenant(4, status=TenantStatus.SUSPENDED)],
        counts={2: 3, 3: 10},
        invoices=[existing],
    )

    result = svc.generate_monthly_invoices(today=date(2025, 4, 1))

    assert result.billing_month == "2025-03"
    assert (result.generated, result.skipped, result.errors) == (2, 1, [])
    assert [i["invoice_number"] for i in result.invoices] == ["INV-2025-03-002", "INV-2025-03-003"]
    assert result.invoices[0]["total"] == 14_300
    assert len(notifications.items) == 2


def test_generate_dry_run_saves_nothing():
    svc, notifications = _service(tenants=[_tenant(1)], counts={1: 2})

    result = svc.generate_monthly_invoices("2025-03", dry_run=True, today=date(2025, 4, 1))

    assert result.generated == 1
    assert result.invoices[0]["invoice_number"] == "INV-2025-03-001"
    assert "id" not in result.invoices[0]
    assert not notifications.items
    assert svc.next_invoice_number(2025, 3) == "INV-2025-03-001"


def test_check_overdue_marks_and_escalates():
    invoices = [
        _invoice(1, status=InvoiceStatus.SENT, due=date(2025, 4, 20)),
        _invoice(2, status=InvoiceStatus.OVERDUE, due=date(2025, 3, 1)),
        _invoice(3, status=InvoiceStatus.SENT, due=date(2025, 5, 3)),
        _invoice(4, status=InvoiceStatus.PAID, due=date(2025, 3, 1)),
    ]
    svc, notifications = _service(tenants=[_tenant(1)], invoices=invoices)

    result = svc.check_overdue(today=date(2025, 5, 1))

    assert result.overdue_count == 2
    assert result.updated == ["INV-2025-03-001"]
    assert [w["invoice_id"] for w in result.warnings] == [3]
    kinds = sorted((n.invoice_id, n.type, n.priority) for n in notifications.items.values())
    assert kinds == [
        (1, DWNotificationType.PAYMENT_OVERDUE, NotificationPriority.NORMAL),
        (2, DWNotificationType.PAYMENT_OVERDUE, NotificationPriority.URGENT),
        (3, DWNotificationType.PAYMENT_DUE_SOON, NotificationPriority.NORMAL),
    ]

    svc.check_overdue(today=date(2025, 5, 5))
    escalated = notifications.find_for_invoice(DWNotificationType.PAYMENT_OVERDUE, 1)
    assert escalated.priority == NotificationPriority.HIGH
    assert len(notifications.items) == 4


def test_payment_cannot_exceed_remaining_and_full_payment_marks_paid():
    svc, notifications = _service(
        tenants=[_tenant(1)], invoices=[_invoice(1, status=InvoiceStatus.SENT, due=date(2025, 4, 30))]
    )

    with pytest.raises(ValidationError):
        svc.record_payment({"invoice_id": 1, "amount": 20_000}, today=date(2025, 4, 10))

    svc.record_payment({"invoice_id": 1, "amount": 6_500}, today=date(2025, 4, 10))
    assert svc.get_invoice(1).remaining == 10_000
    svc.record_payment({"invoice_id": 1, "amount": 10_000}, today=date(2025, 4, 12))

    detail = svc.get_invoice(1)
    assert detail.invoice.status == InvoiceStatus.PAID
    assert detail.invoice.paid_date == date(2025, 4, 12)
    assert detail.remaining == 0
    assert [n.type for n in notifications.items.values()] == [DWNotificationType.PAYMENT_RECEIVED]


def test_paid_invoice_amounts_are_locked():
    svc, _ = _service(tenants=[_tenant(1)], invoices=[_invoice(1, status=InvoiceStatus.PAID, due=date(2025, 4, 30))])

    with pytest.raises(ValidationError):
        svc.update_invoice(1, {"subtotal": 1_000})

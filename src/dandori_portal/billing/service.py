"""Platform-operator billing: monthly invoices, payments and operator notifications.

Tenants are billed a base fee plus a per-active-user fee every month. The
batch jobs here run from the API (``/api/dw-admin/batch/...``) or from the
``flask billing`` CLI group.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, timedelta
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import (
    format_period,
    month_bounds,
    now_local,
    parse_period,
    previous_month,
    to_date,
    to_optional_date,
)
from ..common.pagination import Page, PageRequest
from ..common.validators import parse_enum, require_fields, require_non_empty, to_int
from ..core.constants import (
    BASE_MONTHLY_FEE,
    CONSUMPTION_TAX_RATE,
    DUE_SOON_DAYS,
    PAYMENT_TERM_DAYS,
    PER_USER_FEE,
)
from ..core.enums import DWNotificationType, InvoiceStatus, NotificationPriority, TenantStatus
from ..core.exceptions import DomainError, NotFoundError, ValidationError
from ..tenants.model import Tenant
from ..tenants.repository import TenantRepository
from .model import DWNotification, GenerationResult, Invoice, InvoiceDetail, OverdueCheckResult, Payment
from .repository import DWNotificationRepository, InvoiceRepository, PaymentRepository

logger = logging.getLogger(__name__)

_LOCKED = (InvoiceStatus.PAID, InvoiceStatus.CANCELLED)
_UNPAID = (InvoiceStatus.DRAFT, InvoiceStatus.SENT)
_REMINDER_DAYS = 3


def due_date(billing_month: str) -> date:
    """Payment is due 30 days after the end of the billing month."""
    year, month = parse_period(billing_month, "billing_month")
    _, last = month_bounds(year, month)
    return last + timedelta(days=PAYMENT_TERM_DAYS)


def invoice_amounts(user_count: int, *, custom_pricing: bool) -> tuple[int, int, int]:
    """(subtotal, tax, total) of one monthly invoice."""
    subtotal = (0 if custom_pricing else BASE_MONTHLY_FEE) + user_count * PER_USER_FEE
    tax = math.floor(subtotal * CONSUMPTION_TAX_RATE)
    return subtotal, tax, subtotal + tax


def overdue_priority(days_overdue: int) -> NotificationPriority:
    if days_overdue >= 30:
        return NotificationPriority.URGENT
    if days_overdue >= 14:
        return NotificationPriority.HIGH
    if days_overdue >= 7:
        return NotificationPriority.NORMAL
    return NotificationPriority.LOW


def _sequence(number: str) -> int:
    try:
        return int(number.rsplit("-", 1)[-1])
    except ValueError:
        return 0


class BillingService:
    def __init__(
        self,
        invoices: InvoiceRepository,
        payments: PaymentRepository,
        notifications: DWNotificationRepository,
        tenants: TenantRepository,
    ):
        self._invoices = invoices
        self._payments = payments
        self._notifications = notifications
        self._tenants = tenants

    # ---- numbering ---------------------------------------------------------------

    def next_invoice_number(self, year: int, month: int) -> str:
        prefix = f"INV-{year:04d}-{month:02d}-"
        highest = max((_sequence(n) for n in self._invoices.numbers_with_prefix(prefix)), default=0)
        return f"{prefix}{highest + 1:03d}"

    # ---- monthly batch -----------------------------------------------------------

    def generate_monthly_invoices(
        self,
        billing_month: Optional[str] = None,
        *,
        dry_run: bool = False,
        today: Optional[date] = None,
    ) -> GenerationResult:
        today = today or now_local().date()
        if billing_month:
            year, month = parse_period(billing_month, "billing_month")
        else:
            year, month = previous_month(today)
        billing_month = format_period(year, month)

        generated, skipped = 0, 0
        errors: list[dict] = []
        invoices: list[dict] = []
        sequence = _sequence(self.next_invoice_number(year, month))

        for tenant in self._tenants.list(status=TenantStatus.ACTIVE):
            if self._invoices.find_for_month(tenant.id, billing_month):
                skipped += 1
                continue
            try:
                user_count = self._tenants.active_user_count(tenant.id)
                subtotal, tax, total = invoice_amounts(user_count, custom_pricing=tenant.custom_pricing)
                number = f"INV-{year:04d}-{month:02d}-{sequence:03d}"
                preview = {
                    "tenant_id": tenant.id,
                    "tenant_name": tenant.name,
                    "invoice_number": number,
                    "user_count": user_count,
                    "subtotal": subtotal,
                    "tax": tax,
                    "total": total,
                }
                if not dry_run:
                    invoice = self._invoices.create(
                        {
                            "tenant_id": tenant.id,
                            "invoice_number": number,
                            "billing_month": billing_month,
                            "user_count": user_count,
                            "subtotal": subtotal,
                            "tax": tax,
                            "total": total,
                            "status": InvoiceStatus.DRAFT,
                            "issue_date": today,
                            "due_date": due_date(billing_month),
                        }
                    )
                    preview["id"] = invoice.id
                    self._notify(
                        DWNotificationType.INVOICE_GENERATED,
                        f"請求書発行: {tenant.name}",
                        f"{billing_month}分の請求書（{number}）を作成しました",
                        NotificationPriority.LOW,
                        tenant=tenant,
                        invoice_id=invoice.id,
                        amount=total,
                    )
                sequence += 1
                generated += 1
                invoices.append(preview)
            except DomainError as e:
                logger.warning("Invoice generation failed tenant_id=%s: %s", tenant.id, e)
                errors.append({"tenant_id": tenant.id, "tenant_name": tenant.name, "error": str(e)})

        logger.info(
            "Invoice batch month=%s dry_run=%s generated=%s skipped=%s errors=%s",
            billing_month,
            dry_run,
            generated,
            skipped,
            len(errors),
        )
        return GenerationResult(
            billing_month=billing_month, generated=generated, skipped=skipped, errors=errors, invoices=invoices
        )

    # ---- overdue batch -----------------------------------------------------------

    def check_overdue(self, *, today: Optional[date] = None) -> OverdueCheckResult:
        today = today or now_local().date()
        names = {t.id: t.name for t in self._tenants.list()}
        overdue_count = 0
        updated: list[str] = []
        warnings: list[dict] = []

        for invoice in self._invoices.list_by_status((*_UNPAID, InvoiceStatus.OVERDUE)):
            tenant_name = names.get(invoice.tenant_id, "不明")
            if invoice.due_date < today:
                overdue_count += 1
                days = (today - invoice.due_date).days
                if invoice.status != InvoiceStatus.OVERDUE:
                    self._invoices.update(invoice.id, {"status": InvoiceStatus.OVERDUE})
                    updated.append(invoice.invoice_number)
                priority = overdue_priority(days)
                existing = self._notifications.find_for_invoice(DWNotificationType.PAYMENT_OVERDUE, invoice.id)
                if existing is None:
                    self._notifications.create(
                        {
                            "type": DWNotificationType.PAYMENT_OVERDUE,
                            "title": f"支払い期限超過（{days}日）",
                            "description": f"{tenant_name}の請求書（{invoice.invoice_number}）が{days}日超過しています",
                            "priority": priority,
                            "tenant_id": invoice.tenant_id,
                            "tenant_name": tenant_name,
                            "invoice_id": invoice.id,
                            "amount": invoice.total,
                        }
                    )
                elif existing.priority != priority:
                    self._notifications.update(existing.id, {"priority": priority})
                continue

            days_until = (invoice.due_date - today).days
            if invoice.status == InvoiceStatus.SENT and days_until <= DUE_SOON_DAYS:
                warnings.append(
                    {
                        "invoice_id": invoice.id,
                        "invoice_number": invoice.invoice_number,
                        "tenant_name": tenant_name,
                        "days_until_due": days_until,
                        "amount": invoice.total,
                    }
                )
                if days_until <= _REMINDER_DAYS and not self._notifications.find_for_invoice(
                    DWNotificationType.PAYMENT_DUE_SOON, invoice.id
                ):
                    self._notifications.create(
                        {
                            "type": DWNotificationType.PAYMENT_DUE_SOON,
                            "title": f"支払い期限まもなく（{days_until}日）",
                            "description": f"{tenant_name}の請求書（{invoice.invoice_number}）の支払い期限が{days_until}日後です",
                            "priority": NotificationPriority.NORMAL,
                            "tenant_id": invoice.tenant_id,
                            "tenant_name": tenant_name,
                            "invoice_id": invoice.id,
                            "amount": invoice.total,
                        }
                    )

        logger.info("Overdue check overdue=%s updated=%s due_soon=%s", overdue_count, len(updated), len(warnings))
        return OverdueCheckResult(overdue_count=overdue_count, updated=updated, warnings=warnings)

    # ---- invoices ----------------------------------------------------------------

    def list_invoices(
        self,
        *,
        tenant_id: Optional[int] = None,
        status: Optional[str] = None,
        billing_month: Optional[str] = None,
        request: Optional[PageRequest] = None,
    ) -> Page[Invoice]:
        return self._invoices.list(
            tenant_id=tenant_id,
            status=parse_enum(InvoiceStatus, status, "status") if status else None,
            billing_month=billing_month or None,
            request=request or PageRequest(),
        )

    def get_invoice(self, invoice_id: int) -> InvoiceDetail:
        invoice = self._require(invoice_id)
        payments = tuple(self._payments.list(invoice_id=invoice_id))
        paid = sum(p.amount for p in payments if p.status == "completed")
        return InvoiceDetail(invoice=invoice, payments=payments, paid_amount=paid, remaining=max(invoice.total - paid, 0))

    def create_invoice(self, payload: Mapping[str, Any], *, today: Optional[date] = None) -> Invoice:
        """Manual invoice outside the monthly batch."""
        today = today or now_local().date()
        require_fields(payload, ["tenant_id", "subtotal"])
        tenant = self._tenant(to_int(payload["tenant_id"], "tenant_id"))
        subtotal = to_int(payload["subtotal"], "subtotal")
        if subtotal <= 0:
            raise ValidationError("有効な金額を入力してください")
        if payload.get("billing_month"):
            year, month = parse_period(payload["billing_month"], "billing_month")
        else:
            year, month = today.year, today.month
        billing_month = format_period(year, month)
        if payload.get("tax") not in (None, ""):
            tax = to_int(payload["tax"], "tax", minimum=0)
        else:
            tax = math.floor(subtotal * CONSUMPTION_TAX_RATE)
        invoice = self._invoices.create(
            {
                "tenant_id": tenant.id,
                "invoice_number": self.next_invoice_number(year, month),
                "billing_month": billing_month,
                "user_count": to_int(payload.get("user_count"), "user_count", default=0, minimum=0),
                "subtotal": subtotal,
                "tax": tax,
                "total": subtotal + tax,
                "status": InvoiceStatus.DRAFT,
                "issue_date": today,
                "due_date": to_optional_date(payload.get("due_date"), "due_date") or due_date(billing_month),
                "notes": payload.get("notes"),
            }
        )
        logger.info("Invoice created number=%s tenant_id=%s", invoice.invoice_number, tenant.id)
        return invoice

    def update_invoice(self, invoice_id: int, payload: Mapping[str, Any], *, today: Optional[date] = None) -> Invoice:
        today = today or now_local().date()
        invoice = self._require(invoice_id)
        values: dict[str, Any] = {}

        if any(k in payload for k in ("subtotal", "tax")):
            if invoice.status in _LOCKED:
                raise ValidationError("支払済またはキャンセル済の請求書の金額は変更できません")
            subtotal = to_int(payload.get("subtotal", invoice.subtotal), "subtotal", minimum=0)
            tax = to_int(payload.get("tax", invoice.tax), "tax", minimum=0)
            values.update({"subtotal": subtotal, "tax": tax, "total": subtotal + tax})

        if "status" in payload:
            status = parse_enum(InvoiceStatus, payload["status"], "status")
            values["status"] = status
            if status == InvoiceStatus.SENT and not invoice.sent_date:
                values["sent_date"] = today
            if status == InvoiceStatus.PAID and not invoice.paid_date:
                values["paid_date"] = today
        for name in ("due_date", "sent_date", "paid_date"):
            if name in payload:
                values[name] = to_optional_date(payload[name], name)
        if "notes" in payload:
            values["notes"] = payload["notes"]

        if not values:
            return invoice
        return self._invoices.update(invoice_id, values)

    def delete_invoice(self, invoice_id: int) -> None:
        invoice = self._require(invoice_id)
        if invoice.status == InvoiceStatus.PAID:
            raise ValidationError("支払済の請求書は削除できません")
        if self._payments.list(invoice_id=invoice_id):
            raise ValidationError("入金記録がある請求書は削除できません")
        self._invoices.delete(invoice_id)

    # ---- payments ----------------------------------------------------------------

    def list_payments(self, invoice_id: Optional[int] = None) -> Sequence[Payment]:
        return self._payments.list(invoice_id=invoice_id)

    def record_payment(self, payload: Mapping[str, Any], *, today: Optional[date] = None) -> Payment:
        today = today or now_local().date()
        require_fields(payload, ["invoice_id"])
        amount = to_int(payload.get("amount"), "amount")
        if amount <= 0:
            raise ValidationError("入金額は0より大きい値を入力してください")
        detail = self.get_invoice(to_int(payload["invoice_id"], "invoice_id"))
        invoice = detail.invoice
        if invoice.status == InvoiceStatus.CANCELLED:
            raise ValidationError("キャンセル済の請求書には入金できません")
        if amount > detail.remaining:
            raise ValidationError(f"入金額が残高（{detail.remaining}円）を超えています")

        paid_on = to_date(payload.get("payment_date") or today, "payment_date")
        payment = self._payments.create(
            {
                "invoice_id": invoice.id,
                "amount": amount,
                "payment_date": paid_on,
                "payment_method": payload.get("payment_method") or "bank_transfer",
                "reference": payload.get("reference"),
                "notes": payload.get("notes"),
                "status": "completed",
            }
        )

        if amount == detail.remaining:
            self._invoices.update(invoice.id, {"status": InvoiceStatus.PAID, "paid_date": paid_on})
            tenant = self._tenants.get(invoice.tenant_id)
            self._notify(
                DWNotificationType.PAYMENT_RECEIVED,
                f"入金確認: {tenant.name if tenant else '不明'}",
                f"請求書（{invoice.invoice_number}）の入金を確認しました",
                NotificationPriority.NORMAL,
                tenant=tenant,
                invoice_id=invoice.id,
                amount=invoice.total,
            )
            logger.info("Invoice fully paid number=%s", invoice.invoice_number)
        return payment

    # ---- operator notifications --------------------------------------------------

    def list_notifications(self, *, unread_only: bool = False, priority: Optional[str] = None) -> Sequence[DWNotification]:
        return self._notifications.list(
            unread_only=unread_only,
            priority=parse_enum(NotificationPriority, priority, "priority") if priority else None,
        )

    def create_notification(self, payload: Mapping[str, Any]) -> DWNotification:
        require_fields(payload, ["type", "title"])
        tenant_id = payload.get("tenant_id")
        tenant = self._tenant(to_int(tenant_id, "tenant_id")) if tenant_id not in (None, "") else None
        return self._notify(
            parse_enum(DWNotificationType, payload["type"], "type"),
            require_non_empty(payload["title"], "title"),
            payload.get("description"),
            parse_enum(NotificationPriority, payload.get("priority") or NotificationPriority.NORMAL.value, "priority"),
            tenant=tenant,
            invoice_id=to_int(payload["invoice_id"], "invoice_id") if payload.get("invoice_id") else None,
            amount=to_int(payload["amount"], "amount") if payload.get("amount") not in (None, "") else None,
        )

    def mark_read(
        self, ids: Optional[Sequence[Any]], *, read_by: Optional[int] = None, now: Optional[datetime] = None
    ) -> int:
        """Mark the given notifications (all unread when ids is None) as read; returns the count."""
        parsed = [to_int(i, "ids") for i in ids] if ids is not None else None
        return self._notifications.mark_read(parsed, read_by=read_by, now=now or now_local())

    def _notify(
        self,
        notification_type: DWNotificationType,
        title: str,
        description: Optional[str],
        priority: NotificationPriority,
        *,
        tenant: Optional[Tenant] = None,
        invoice_id: Optional[int] = None,
        amount: Optional[int] = None,
    ) -> DWNotification:
        return self._notifications.create(
            {
                "type": notification_type,
                "title": title,
                "description": description,
                "priority": priority,
                "tenant_id": tenant.id if tenant else None,
                "tenant_name": tenant.name if tenant else None,
                "invoice_id": invoice_id,
                "amount": amount,
            }
        )

    # ---- helpers -----------------------------------------------------------------

    def _require(self, invoice_id: int) -> Invoice:
        invoice = self._invoices.get(invoice_id)
        if not invoice:
            raise NotFoundError("請求書が見つかりません")
        return invoice

    def _tenant(self, tenant_id: int) -> Tenant:
        tenant = self._tenants.get(tenant_id)
        if not tenant:
            raise NotFoundError("テナントが見つかりません")
        return tenant

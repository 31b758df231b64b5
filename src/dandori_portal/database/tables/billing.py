from __future__ import annotations

from datetime import datetime

from ..extension import db
from .base import TimestampMixin, tenant_fk


class InvoiceRow(db.Model, TimestampMixin):
    __tablename__ = "invoices"

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    invoice_number = db.Column(db.String(20), nullable=False, unique=True)
    billing_month = db.Column(db.String(7), nullable=False, index=True)
    user_count = db.Column(db.Integer, nullable=False, default=0)
    subtotal = db.Column(db.Integer, nullable=False, default=0)
    tax = db.Column(db.Integer, nullable=False, default=0)
    total = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(20), nullable=False, default="draft")
    issue_date = db.Column(db.Date, nullable=False)
    due_date = db.Column(db.Date, nullable=False)
    sent_date = db.Column(db.Date)
    paid_date = db.Column(db.Date)
    notes = db.Column(db.Text)


class PaymentRow(db.Model):
    __tablename__ = "payments"

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False, index=True)
    amount = db.Column(db.Integer, nullable=False)
    payment_date = db.Column(db.Date, nullable=False)
    payment_method = db.Column(db.String(30), nullable=False, default="bank_transfer")
    reference = db.Column(db.String(100))
    notes = db.Column(db.Text)
    status = db.Column(db.String(20), nullable=False, default="completed")
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)


class DWNotificationRow(db.Model):
    __tablename__ = "dw_notifications"

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(30), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    priority = db.Column(db.String(10), nullable=False, default="normal")
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), index=True)
    tenant_name = db.Column(db.String(200))
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), index=True)
    amount = db.Column(db.Integer)
    is_read = db.Column(db.Boolean, nullable=False, default=False)
    read_at = db.Column(db.DateTime)
    read_by = db.Column(db.Integer)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)

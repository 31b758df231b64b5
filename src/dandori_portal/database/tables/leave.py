from __future__ import annotations

from ..extension import db
from .base import TimestampMixin, tenant_fk


class LeaveRequestRow(db.Model, TimestampMixin):
    __tablename__ = "leave_requests"

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    user_id = db.Column(db.Integer, nullable=False, index=True)
    leave_type = db.Column(db.String(20), nullable=False)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    days = db.Column(db.Float, nullable=False)
    reason = db.Column(db.String(1000))
    status = db.Column(db.String(20), nullable=False, default="pending")
    workflow_request_id = db.Column(db.Integer)
    approver_id = db.Column(db.Integer)
    decided_at = db.Column(db.DateTime)
    rejection_reason = db.Column(db.String(1000))


class LeaveBalanceRow(db.Model, TimestampMixin):
    __tablename__ = "leave_balances"
    __table_args__ = (db.UniqueConstraint("tenant_id", "user_id", "year", name="uq_leave_balance_year"),)

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    user_id = db.Column(db.Integer, nullable=False)
    year = db.Column(db.Integer, nullable=False)
    granted = db.Column(db.Float, nullable=False, default=20.0)
    used = db.Column(db.Float, nullable=False, default=0.0)

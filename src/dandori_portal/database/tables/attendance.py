from __future__ import annotations

from datetime import datetime

from ..extension import db
from .base import TimestampMixin, tenant_fk


class AttendanceRecordRow(db.Model, TimestampMixin):
    __tablename__ = "attendance_records"
    __table_args__ = (
        db.UniqueConstraint("tenant_id", "user_id", "work_date", name="uq_attendance_user_date"),
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    user_id = db.Column(db.Integer, nullable=False, index=True)
    work_date = db.Column(db.Date, nullable=False, index=True)
    check_in = db.Column(db.DateTime)
    check_out = db.Column(db.DateTime)
    break_minutes = db.Column(db.Integer, nullable=False, default=0)
    work_minutes = db.Column(db.Integer, nullable=False, default=0)
    overtime_minutes = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(20), nullable=False, default="working")
    punctuality = db.Column(db.String(20), nullable=False, default="on_time")


class PunchRow(db.Model):
    __tablename__ = "attendance_punches"

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    user_id = db.Column(db.Integer, nullable=False, index=True)
    attendance_id = db.Column(db.Integer, db.ForeignKey("attendance_records.id"), nullable=False, index=True)
    punch_type = db.Column(db.String(20), nullable=False)
    punch_time = db.Column(db.DateTime, nullable=False)
    punch_order = db.Column(db.Integer, nullable=False, default=1)
    location = db.Column(db.String(255))
    note = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)


class DailyMetricRow(db.Model, TimestampMixin):
    __tablename__ = "daily_attendance_metrics"
    __table_args__ = (db.UniqueConstraint("tenant_id", "metric_date", name="uq_daily_metric_date"),)

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    metric_date = db.Column(db.Date, nullable=False)
    total_employees = db.Column(db.Integer, nullable=False, default=0)
    present_count = db.Column(db.Integer, nullable=False, default=0)
    attendance_rate = db.Column(db.Float, nullable=False, default=0.0)
    late_count = db.Column(db.Integer, nullable=False, default=0)
    early_leave_count = db.Column(db.Integer, nullable=False, default=0)
    overtime_minutes = db.Column(db.Integer, nullable=False, default=0)
    working_count = db.Column(db.Integer, nullable=False, default=0)
    completed_count = db.Column(db.Integer, nullable=False, default=0)
    on_break_count = db.Column(db.Integer, nullable=False, default=0)
    absent_count = db.Column(db.Integer, nullable=False, default=0)

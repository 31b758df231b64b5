from __future__ import annotations

from ..extension import db
from .base import TimestampMixin, tenant_fk


class SalarySettingRow(db.Model, TimestampMixin):
    __tablename__ = "employee_salary_settings"

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    user_id = db.Column(db.Integer, nullable=False, index=True)
    employment_type = db.Column(db.String(20), nullable=False, default="monthly")
    basic_salary = db.Column(db.Integer, nullable=False, default=0)
    hourly_rate = db.Column(db.Integer)
    working_days_per_month = db.Column(db.Integer, nullable=False, default=20)
    dependent_count = db.Column(db.Integer, nullable=False, default=0)
    resident_tax_amount = db.Column(db.Integer, nullable=False, default=0)
    effective_from = db.Column(db.Date, nullable=False)
    effective_to = db.Column(db.Date)
    is_active = db.Column(db.Boolean, nullable=False, default=True)


class AllowanceRow(db.Model, TimestampMixin):
    __tablename__ = "employee_allowances"

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    user_id = db.Column(db.Integer, nullable=False, index=True)
    allowance_code = db.Column(db.String(30), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    amount = db.Column(db.Integer, nullable=False, default=0)
    effective_from = db.Column(db.Date, nullable=False)
    effective_to = db.Column(db.Date)
    is_active = db.Column(db.Boolean, nullable=False, default=True)


class DeductionRow(db.Model, TimestampMixin):
    __tablename__ = "employee_deductions"

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    user_id = db.Column(db.Integer, nullable=False, index=True)
    deduction_code = db.Column(db.String(30), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    amount = db.Column(db.Integer, nullable=False, default=0)
    effective_from = db.Column(db.Date, nullable=False)
    effective_to = db.Column(db.Date)
    is_active = db.Column(db.Boolean, nullable=False, default=True)


class PaySlipRow(db.Model, TimestampMixin):
    __tablename__ = "pay_slips"
    __table_args__ = (
        db.UniqueConstraint("tenant_id", "user_id", "pay_period", name="uq_pay_slips_user_period"),
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    user_id = db.Column(db.Integer, nullable=False, index=True)
    pay_period = db.Column(db.String(7), nullable=False, index=True)
    payment_date = db.Column(db.Date, nullable=False)

    basic_salary = db.Column(db.Integer, nullable=False, default=0)
    position_allowance = db.Column(db.Integer, nullable=False, default=0)
    commute_allowance = db.Column(db.Integer, nullable=False, default=0)
    housing_allowance = db.Column(db.Integer, nullable=False, default=0)
    family_allowance = db.Column(db.Integer, nullable=False, default=0)
    qualification_allowance = db.Column(db.Integer, nullable=False, default=0)
    other_allowances = db.Column(db.Integer, nullable=False, default=0)
    allowances = db.Column(db.JSON, nullable=False, default=dict)
    overtime_allowance = db.Column(db.Integer, nullable=False, default=0)
    late_night_allowance = db.Column(db.Integer, nullable=False, default=0)
    holiday_allowance = db.Column(db.Integer, nullable=False, default=0)
    gross_pay = db.Column(db.Integer, nullable=False, default=0)

    health_insurance = db.Column(db.Integer, nullable=False, default=0)
    pension_insurance = db.Column(db.Integer, nullable=False, default=0)
    employment_insurance = db.Column(db.Integer, nullable=False, default=0)
    income_tax = db.Column(db.Integer, nullable=False, default=0)
    resident_tax = db.Column(db.Integer, nullable=False, default=0)
    other_deductions = db.Column(db.Integer, nullable=False, default=0)
    total_deductions = db.Column(db.Integer, nullable=False, default=0)
    net_pay = db.Column(db.Integer, nullable=False, default=0)

    working_days = db.Column(db.Float, nullable=False, default=0)
    actual_working_days = db.Column(db.Float, nullable=False, default=0)
    absence_days = db.Column(db.Float, nullable=False, default=0)
    paid_leave_days = db.Column(db.Float, nullable=False, default=0)
    overtime_hours = db.Column(db.Float, nullable=False, default=0)
    late_night_hours = db.Column(db.Float, nullable=False, default=0)
    holiday_work_hours = db.Column(db.Float, nullable=False, default=0)

    status = db.Column(db.String(20), nullable=False, default="draft")
    confirmed_at = db.Column(db.DateTime)
    paid_at = db.Column(db.DateTime)


class BonusSlipRow(db.Model, TimestampMixin):
    __tablename__ = "bonus_slips"
    __table_args__ = (
        db.UniqueConstraint("tenant_id", "user_id", "pay_period", "bonus_type", name="uq_bonus_slips_user_period"),
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    user_id = db.Column(db.Integer, nullable=False, index=True)
    bonus_type = db.Column(db.String(20), nullable=False)
    pay_period = db.Column(db.String(7), nullable=False)
    payment_date = db.Column(db.Date, nullable=False)
    gross_bonus = db.Column(db.Integer, nullable=False, default=0)
    health_insurance = db.Column(db.Integer, nullable=False, default=0)
    pension_insurance = db.Column(db.Integer, nullable=False, default=0)
    employment_insurance = db.Column(db.Integer, nullable=False, default=0)
    income_tax = db.Column(db.Integer, nullable=False, default=0)
    net_bonus = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(20), nullable=False, default="draft")

from __future__ import annotations

from ..extension import db
from .base import TimestampMixin, tenant_fk


class DeclarationRow(db.Model, TimestampMixin):
    __tablename__ = "year_end_declarations"
    __table_args__ = (
        db.UniqueConstraint("tenant_id", "user_id", "fiscal_year", name="uq_declarations_user_year"),
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    user_id = db.Column(db.Integer, nullable=False, index=True)
    fiscal_year = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), nullable=False, default="draft")

    has_spouse = db.Column(db.Boolean, nullable=False, default=False)
    spouse_name = db.Column(db.String(100))
    spouse_income = db.Column(db.Integer)
    dependent_count = db.Column(db.Integer, nullable=False, default=0)
    specific_dependent_count = db.Column(db.Integer, nullable=False, default=0)
    elderly_dependent_count = db.Column(db.Integer, nullable=False, default=0)
    dependents = db.Column(db.JSON, nullable=False, default=list)

    is_disabled = db.Column(db.Boolean, nullable=False, default=False)
    disability_type = db.Column(db.String(20))
    is_widow = db.Column(db.Boolean, nullable=False, default=False)
    is_single_parent = db.Column(db.Boolean, nullable=False, default=False)
    is_working_student = db.Column(db.Boolean, nullable=False, default=False)

    life_insurance_new = db.Column(db.Integer, nullable=False, default=0)
    life_insurance_old = db.Column(db.Integer, nullable=False, default=0)
    medical_insurance = db.Column(db.Integer, nullable=False, default=0)
    pension_insurance_new = db.Column(db.Integer, nullable=False, default=0)
    pension_insurance_old = db.Column(db.Integer, nullable=False, default=0)
    earthquake_insurance = db.Column(db.Integer, nullable=False, default=0)

    national_pension = db.Column(db.Integer, nullable=False, default=0)
    national_health_ins = db.Column(db.Integer, nullable=False, default=0)
    other_social_ins = db.Column(db.Integer, nullable=False, default=0)
    ideco_amount = db.Column(db.Integer, nullable=False, default=0)
    small_business_mutual_aid = db.Column(db.Integer, nullable=False, default=0)

    has_mortgage = db.Column(db.Boolean, nullable=False, default=False)
    mortgage_balance = db.Column(db.Integer, nullable=False, default=0)

    submitted_at = db.Column(db.DateTime)
    approved_at = db.Column(db.DateTime)
    approved_by = db.Column(db.Integer)


class YearEndResultRow(db.Model, TimestampMixin):
    __tablename__ = "year_end_results"
    __table_args__ = (
        db.UniqueConstraint("tenant_id", "user_id", "fiscal_year", name="uq_year_end_results_user_year"),
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    user_id = db.Column(db.Integer, nullable=False, index=True)
    fiscal_year = db.Column(db.Integer, nullable=False)

    total_salary = db.Column(db.Integer, nullable=False, default=0)
    total_bonus = db.Column(db.Integer, nullable=False, default=0)
    total_income = db.Column(db.Integer, nullable=False, default=0)
    employment_income_deduction = db.Column(db.Integer, nullable=False, default=0)
    employment_income = db.Column(db.Integer, nullable=False, default=0)

    basic_deduction = db.Column(db.Integer, nullable=False, default=0)
    spouse_deduction = db.Column(db.Integer, nullable=False, default=0)
    spouse_special_deduction = db.Column(db.Integer, nullable=False, default=0)
    dependent_deduction = db.Column(db.Integer, nullable=False, default=0)
    disability_deduction = db.Column(db.Integer, nullable=False, default=0)
    widow_deduction = db.Column(db.Integer, nullable=False, default=0)
    single_parent_deduction = db.Column(db.Integer, nullable=False, default=0)
    working_student_deduction = db.Column(db.Integer, nullable=False, default=0)
    social_insurance_deduction = db.Column(db.Integer, nullable=False, default=0)
    life_insurance_deduction = db.Column(db.Integer, nullable=False, default=0)
    earthquake_insurance_deduction = db.Column(db.Integer, nullable=False, default=0)
    small_business_deduction = db.Column(db.Integer, nullable=False, default=0)
    total_deductions = db.Column(db.Integer, nullable=False, default=0)

    taxable_income = db.Column(db.Integer, nullable=False, default=0)
    calculated_tax = db.Column(db.Integer, nullable=False, default=0)
    special_reconstruction_tax = db.Column(db.Integer, nullable=False, default=0)
    total_tax = db.Column(db.Integer, nullable=False, default=0)
    mortgage_deduction = db.Column(db.Integer, nullable=False, default=0)
    final_tax = db.Column(db.Integer, nullable=False, default=0)
    withheld_tax_total = db.Column(db.Integer, nullable=False, default=0)
    adjustment_amount = db.Column(db.Integer, nullable=False, default=0)
    is_refund = db.Column(db.Boolean, nullable=False, default=False)

    status = db.Column(db.String(20), nullable=False, default="calculated")
    calculated_at = db.Column(db.DateTime)
    confirmed_at = db.Column(db.DateTime)
    confirmed_by = db.Column(db.Integer)
    paid_at = db.Column(db.DateTime)


class WithholdingSlipRow(db.Model, TimestampMixin):
    __tablename__ = "withholding_slips"

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    user_id = db.Column(db.Integer, nullable=False, index=True)
    fiscal_year = db.Column(db.Integer, nullable=False, index=True)
    year_end_result_id = db.Column(db.Integer, db.ForeignKey("year_end_results.id"))

    payer_name = db.Column(db.String(200), nullable=False)
    payer_address = db.Column(db.String(500))
    recipient_name = db.Column(db.String(100), nullable=False)

    payment_amount = db.Column(db.Integer, nullable=False, default=0)
    employment_income = db.Column(db.Integer, nullable=False, default=0)
    deduction_total = db.Column(db.Integer, nullable=False, default=0)
    taxable_income = db.Column(db.Integer, nullable=False, default=0)
    withheld_tax = db.Column(db.Integer, nullable=False, default=0)
    social_insurance = db.Column(db.Integer, nullable=False, default=0)
    life_insurance = db.Column(db.Integer, nullable=False, default=0)
    earthquake_insurance = db.Column(db.Integer, nullable=False, default=0)
    mortgage_deduction = db.Column(db.Integer, nullable=False, default=0)

    has_spouse = db.Column(db.Boolean, nullable=False, default=False)
    spouse_name = db.Column(db.String(100))
    dependent_count = db.Column(db.Integer, nullable=False, default=0)
    dependents = db.Column(db.JSON, nullable=False, default=list)

    status = db.Column(db.String(20), nullable=False, default="draft")
    issue_number = db.Column(db.String(40))
    issued_at = db.Column(db.DateTime)
    delivered_at = db.Column(db.DateTime)
    delivery_method = db.Column(db.String(20))
    is_reissue = db.Column(db.Boolean, nullable=False, default=False)
    reissue_count = db.Column(db.Integer, nullable=False, default=0)
    original_slip_id = db.Column(db.Integer)

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import DeclarationStatus, DisabilityType, WithholdingSlipStatus, YearEndStatus


@dataclass(frozen=True)
class Declaration:
    """An employee's 扶養控除等申告 / 保険料控除申告 for one fiscal year."""

    id: int
    tenant_id: int
    user_id: int
    fiscal_year: int
    status: DeclarationStatus
    has_spouse: bool = False
    spouse_name: Optional[str] = None
    spouse_income: Optional[int] = None
    dependent_count: int = 0
    specific_dependent_count: int = 0
    elderly_dependent_count: int = 0
    dependents: list = field(default_factory=list)
    is_disabled: bool = False
    disability_type: Optional[DisabilityType] = None
    is_widow: bool = False
    is_single_parent: bool = False
    is_working_student: bool = False
    life_insurance_new: int = 0
    life_insurance_old: int = 0
    medical_insurance: int = 0
    pension_insurance_new: int = 0
    pension_insurance_old: int = 0
    earthquake_insurance: int = 0
    national_pension: int = 0
    national_health_ins: int = 0
    other_social_ins: int = 0
    ideco_amount: int = 0
    small_business_mutual_aid: int = 0
    has_mortgage: bool = False
    mortgage_balance: int = 0
    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class IncomeSummary:
    total_salary: int = 0
    total_bonus: int = 0
    withheld_tax: int = 0
    social_insurance: int = 0

    @property
    def total_income(self) -> int:
        return self.total_salary + self.total_bonus


@dataclass(frozen=True)
class DeductionBreakdown:
    basic_deduction: int = 0
    spouse_deduction: int = 0
    spouse_special_deduction: int = 0
    dependent_deduction: int = 0
    disability_deduction: int = 0
    widow_deduction: int = 0
    single_parent_deduction: int = 0
    working_student_deduction: int = 0
    social_insurance_deduction: int = 0
    life_insurance_deduction: int = 0
    earthquake_insurance_deduction: int = 0
    small_business_deduction: int = 0

    @property
    def total(self) -> int:
        return sum(getattr(self, name) for name in self.__dataclass_fields__)


@dataclass(frozen=True)
class YearEndResult:
    id: int
    tenant_id: int
    user_id: int
    fiscal_year: int
    total_salary: int
    total_bonus: int
    total_income: int
    employment_income_deduction: int
    employment_income: int
    basic_deduction: int
    spouse_deduction: int
    spouse_special_deduction: int
    dependent_deduction: int
    disability_deduction: int
    widow_deduction: int
    single_parent_deduction: int
    working_student_deduction: int
    social_insurance_deduction: int
    life_insurance_deduction: int
    earthquake_insurance_deduction: int
    small_business_deduction: int
    total_deductions: int
    taxable_income: int
    calculated_tax: int
    special_reconstruction_tax: int
    total_tax: int
    mortgage_deduction: int
    final_tax: int
    withheld_tax_total: int
    adjustment_amount: int
    is_refund: bool
    status: YearEndStatus
    calculated_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    confirmed_by: Optional[int] = None
    paid_at: Optional[datetime] = None


@dataclass(frozen=True)
class WithholdingSlip:
    """源泉徴収票."""

    id: int
    tenant_id: int
    user_id: int
    fiscal_year: int
    year_end_result_id: Optional[int]
    payer_name: str
    payer_address: Optional[str]
    recipient_name: str
    payment_amount: int
    employment_income: int
    deduction_total: int
    taxable_income: int
    withheld_tax: int
    social_insurance: int
    life_insurance: int
    earthquake_insurance: int
    mortgage_deduction: int
    has_spouse: bool
    spouse_name: Optional[str]
    dependent_count: int
    dependents: list
    status: WithholdingSlipStatus
    issue_number: Optional[str] = None
    issued_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    delivery_method: Optional[str] = None
    is_reissue: bool = False
    reissue_count: int = 0
    original_slip_id: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class BatchOutcome:
    user_id: int
    success: bool
    item: Optional[object] = None
    error: Optional[str] = None

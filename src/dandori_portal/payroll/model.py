from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import AllowanceCode, BonusSlipStatus, BonusType, EmploymentType, PaySlipStatus


@dataclass(frozen=True)
class SalarySetting:
    id: int
    tenant_id: int
    user_id: int
    employment_type: EmploymentType
    basic_salary: int
    hourly_rate: Optional[int]
    working_days_per_month: int
    dependent_count: int
    resident_tax_amount: int
    effective_from: date
    effective_to: Optional[date] = None
    is_active: bool = True

    def is_effective(self, on: date) -> bool:
        return self.is_active and self.effective_from <= on and (self.effective_to is None or self.effective_to >= on)


@dataclass(frozen=True)
class EmployeeAllowance:
    id: int
    tenant_id: int
    user_id: int
    allowance_code: AllowanceCode
    name: str
    amount: int
    effective_from: date
    effective_to: Optional[date] = None
    is_active: bool = True

    def is_effective(self, on: date) -> bool:
        return self.is_active and self.effective_from <= on and (self.effective_to is None or self.effective_to >= on)


@dataclass(frozen=True)
class EmployeeDeduction:
    id: int
    tenant_id: int
    user_id: int
    deduction_code: str
    name: str
    amount: int
    effective_from: date
    effective_to: Optional[date] = None
    is_active: bool = True

    def is_effective(self, on: date) -> bool:
        return self.is_active and self.effective_from <= on and (self.effective_to is None or self.effective_to >= on)


@dataclass(frozen=True)
class AttendanceFigures:
    """Monthly attendance inputs of one pay slip."""

    working_days: float
    actual_working_days: float = 0
    absence_days: float = 0
    paid_leave_days: float = 0
    overtime_hours: float = 0
    late_night_hours: float = 0
    holiday_work_hours: float = 0


@dataclass(frozen=True)
class PayInputs:
    employment_type: EmploymentType
    basic_salary: int
    hourly_rate: Optional[int]
    working_days: int
    dependent_count: int
    resident_tax: int
    attendance: AttendanceFigures
    allowances: tuple[EmployeeAllowance, ...] = ()
    deductions: tuple[EmployeeDeduction, ...] = ()


@dataclass(frozen=True)
class PayBreakdown:
    basic_salary: int
    position_allowance: int
    commute_allowance: int
    housing_allowance: int
    family_allowance: int
    qualification_allowance: int
    other_allowances: int
    allowances: dict[str, int]
    overtime_allowance: int
    late_night_allowance: int
    holiday_allowance: int
    gross_pay: int
    health_insurance: int
    pension_insurance: int
    employment_insurance: int
    income_tax: int
    resident_tax: int
    other_deductions: int
    total_deductions: int
    net_pay: int

    @property
    def social_insurance(self) -> int:
        return self.health_insurance + self.pension_insurance + self.employment_insurance


@dataclass(frozen=True)
class PaySlip:
    id: int
    tenant_id: int
    user_id: int
    pay_period: str
    payment_date: date
    basic_salary: int
    position_allowance: int
    commute_allowance: int
    housing_allowance: int
    family_allowance: int
    qualification_allowance: int
    other_allowances: int
    allowances: dict
    overtime_allowance: int
    late_night_allowance: int
    holiday_allowance: int
    gross_pay: int
    health_insurance: int
    pension_insurance: int
    employment_insurance: int
    income_tax: int
    resident_tax: int
    other_deductions: int
    total_deductions: int
    net_pay: int
    working_days: float
    actual_working_days: float
    absence_days: float
    paid_leave_days: float
    overtime_hours: float
    late_night_hours: float
    holiday_work_hours: float
    status: PaySlipStatus
    confirmed_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def social_insurance(self) -> int:
        return self.health_insurance + self.pension_insurance + self.employment_insurance


@dataclass(frozen=True)
class BonusSlip:
    id: int
    tenant_id: int
    user_id: int
    bonus_type: BonusType
    pay_period: str
    payment_date: date
    gross_bonus: int
    health_insurance: int
    pension_insurance: int
    employment_insurance: int
    income_tax: int
    net_bonus: int
    status: BonusSlipStatus
    created_at: Optional[datetime] = None

    @property
    def social_insurance(self) -> int:
        return self.health_insurance + self.pension_insurance + self.employment_insurance


@dataclass(frozen=True)
class CalculationOutcome:
    user_id: int
    success: bool
    pay_slip: Optional[PaySlip] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class CalculationRun:
    results: list[CalculationOutcome] = field(default_factory=list)
    summary: dict = field(default_factory=dict)

from __future__ import annotations

import math
from typing import Optional

from ...attendance.model import AttendanceReportRow
from ...common.datetime_utils import minutes_between
from ...core.constants import (
    DEFAULT_WORKING_DAYS,
    EMPLOYMENT_INSURANCE_RATE,
    HEALTH_INSURANCE_RATE,
    HOLIDAY_PREMIUM,
    HOURS_PER_DAY,
    LATE_NIGHT_PREMIUM,
    OVERTIME_PREMIUM,
    PENSION_INSURANCE_RATE,
)
from ...core.enums import AllowanceCode, EmploymentType
from ..model import PayBreakdown, PayInputs
from .base import PayrollCalculator
from .tax_methods import AnnualizedTaxMethod, IncomeTaxMethod

_COLUMN_CODES = (
    AllowanceCode.POSITION,
    AllowanceCode.COMMUTE,
    AllowanceCode.HOUSING,
    AllowanceCode.FAMILY,
    AllowanceCode.QUALIFICATION,
)


def insurance_premiums(amount: int) -> tuple[int, int, int]:
    """Employee share of (health, pension, employment) insurance, each floored."""
    return (
        math.floor(amount * HEALTH_INSURANCE_RATE),
        math.floor(amount * PENSION_INSURANCE_RATE),
        math.floor(amount * EMPLOYMENT_INSURANCE_RATE),
    )


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: (out - in) - break_minutes for time; monthly salary plus premiums for pay."""

    def __init__(self, tax_method: Optional[IncomeTaxMethod] = None):
        self._tax_method = tax_method or AnnualizedTaxMethod()

    @property
    def tax_method(self) -> IncomeTaxMethod:
        return self._tax_method

    def worked_minutes(self, row: AttendanceReportRow) -> int:
        if not row.check_in or not row.check_out:
            return 0
        minutes = minutes_between(row.check_in, row.check_out)
        minutes -= int(row.break_minutes or 0)
        return max(minutes, 0)

    def hourly_rate(self, inputs: PayInputs) -> int:
        if inputs.hourly_rate:
            return int(inputs.hourly_rate)
        days = inputs.working_days or DEFAULT_WORKING_DAYS
        return math.floor(inputs.basic_salary / (days * HOURS_PER_DAY))

    def calculate(self, inputs: PayInputs) -> PayBreakdown:
        att = inputs.attendance
        rate = self.hourly_rate(inputs)

        basic = int(inputs.basic_salary)
        if inputs.employment_type == EmploymentType.HOURLY and inputs.hourly_rate:
            basic = math.floor(inputs.hourly_rate * att.actual_working_days * HOURS_PER_DAY)

        per_code: dict[str, int] = {}
        for a in inputs.allowances:
            per_code[a.allowance_code.value] = per_code.get(a.allowance_code.value, 0) + int(a.amount)
        columns = {code: per_code.get(code.value, 0) for code in _COLUMN_CODES}
        allowance_total = sum(per_code.values())

        overtime = math.floor(rate * att.overtime_hours * OVERTIME_PREMIUM)
        late_night = math.floor(rate * att.late_night_hours * LATE_NIGHT_PREMIUM)
        holiday = math.floor(rate * att.holiday_work_hours * HOLIDAY_PREMIUM)
        gross = basic + allowance_total + overtime + late_night + holiday

        health, pension, employment = insurance_premiums(gross)
        insurance = health + pension + employment
        income_tax = self._tax_method.monthly_tax(gross - insurance, inputs.dependent_count)
        resident = int(inputs.resident_tax or 0)
        other = sum(int(d.amount) for d in inputs.deductions)
        total_deductions = insurance + income_tax + resident + other

        return PayBreakdown(
            basic_salary=basic,
            position_allowance=columns[AllowanceCode.POSITION],
            commute_allowance=columns[AllowanceCode.COMMUTE],
            housing_allowance=columns[AllowanceCode.HOUSING],
            family_allowance=columns[AllowanceCode.FAMILY],
            qualification_allowance=columns[AllowanceCode.QUALIFICATION],
            other_allowances=per_code.get(AllowanceCode.OTHER.value, 0),
            allowances=per_code,
            overtime_allowance=overtime,
            late_night_allowance=late_night,
            holiday_allowance=holiday,
            gross_pay=gross,
            health_insurance=health,
            pension_insurance=pension,
            employment_insurance=employment,
            income_tax=income_tax,
            resident_tax=resident,
            other_deductions=other,
            total_deductions=total_deductions,
            net_pay=gross - total_deductions,
        )

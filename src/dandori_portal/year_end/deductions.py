"""Income deductions and the year-end tax computation (pure functions)."""

from __future__ import annotations

import math
from typing import Any, Optional

from ..core.enums import DisabilityType
from ..tax.income_tax import (
    basic_deduction,
    employment_income_deduction,
    progressive_income_tax,
    reconstruction_tax,
    year_end_difference,
)
from .model import Declaration, DeductionBreakdown, IncomeSummary

SPOUSE_DEDUCTION = 380_000
SPOUSE_INCOME_LIMIT = 480_000
SPOUSE_SPECIAL_INCOME_LIMIT = 1_330_000
GENERAL_DEPENDENT = 380_000
SPECIFIC_DEPENDENT = 630_000
ELDERLY_DEPENDENT = 480_000
DISABILITY_DEDUCTIONS = {
    DisabilityType.GENERAL: 270_000,
    DisabilityType.SPECIAL: 400_000,
    DisabilityType.SPECIAL_LIVING: 750_000,
}
WIDOW_DEDUCTION = 270_000
SINGLE_PARENT_DEDUCTION = 350_000
WORKING_STUDENT_DEDUCTION = 270_000
LIFE_INSURANCE_CAP = 120_000
EARTHQUAKE_CAP = 50_000
MORTGAGE_RATE = 0.01
MORTGAGE_CAP = 400_000


def spouse_deductions(has_spouse: bool, spouse_income: Optional[int]) -> tuple[int, int]:
    """(spouse deduction, spouse special deduction)."""
    if not has_spouse:
        return 0, 0
    income = spouse_income or 0
    if income <= SPOUSE_INCOME_LIMIT:
        return SPOUSE_DEDUCTION, 0
    if income <= SPOUSE_SPECIAL_INCOME_LIMIT:
        return 0, (SPOUSE_SPECIAL_INCOME_LIMIT - income) // 50_000 * 10_000
    return 0, 0


def dependent_deduction(total: int, specific: int, elderly: int) -> int:
    general = max(total - specific - elderly, 0)
    return general * GENERAL_DEPENDENT + specific * SPECIFIC_DEPENDENT + elderly * ELDERLY_DEPENDENT


def disability_deduction(is_disabled: bool, disability_type: Optional[DisabilityType]) -> int:
    if not is_disabled:
        return 0
    return DISABILITY_DEDUCTIONS.get(disability_type, DISABILITY_DEDUCTIONS[DisabilityType.GENERAL])


def life_insurance_deduction(new: int, old: int, medical: int, pension_new: int, pension_old: int) -> int:
    total = (
        min(new, 40_000)
        + min(old, 50_000)
        + min(medical, 40_000)
        + min(pension_new, 40_000)
        + min(pension_old, 50_000)
    )
    return min(total, LIFE_INSURANCE_CAP)


def mortgage_deduction(has_mortgage: bool, balance: int) -> int:
    if not has_mortgage:
        return 0
    return min(math.floor(balance * MORTGAGE_RATE), MORTGAGE_CAP)


def deductions_for(income: IncomeSummary, employment_income: int, declaration: Optional[Declaration]) -> DeductionBreakdown:
    d = declaration
    if d is None:
        return DeductionBreakdown(
            basic_deduction=basic_deduction(employment_income),
            social_insurance_deduction=income.social_insurance,
        )

    spouse, spouse_special = spouse_deductions(d.has_spouse, d.spouse_income)
    return DeductionBreakdown(
        basic_deduction=basic_deduction(employment_income),
        spouse_deduction=spouse,
        spouse_special_deduction=spouse_special,
        dependent_deduction=dependent_deduction(d.dependent_count, d.specific_dependent_count, d.elderly_dependent_count),
        disability_deduction=disability_deduction(d.is_disabled, d.disability_type),
        widow_deduction=WIDOW_DEDUCTION if d.is_widow else 0,
        single_parent_deduction=SINGLE_PARENT_DEDUCTION if d.is_single_parent else 0,
        working_student_deduction=WORKING_STUDENT_DEDUCTION if d.is_working_student else 0,
        social_insurance_deduction=income.social_insurance + d.national_pension + d.national_health_ins + d.other_social_ins,
        life_insurance_deduction=life_insurance_deduction(
            d.life_insurance_new, d.life_insurance_old, d.medical_insurance, d.pension_insurance_new, d.pension_insurance_old
        ),
        earthquake_insurance_deduction=min(d.earthquake_insurance, EARTHQUAKE_CAP),
        small_business_deduction=d.ideco_amount + d.small_business_mutual_aid,
    )


def compute_year_end(income: IncomeSummary, declaration: Optional[Declaration]) -> dict[str, Any]:
    """Column values of a year-end result (without identity/status columns)."""
    total_income = income.total_income
    income_deduction = employment_income_deduction(total_income)
    employment_income = max(0, total_income - income_deduction)
    deductions = deductions_for(income, employment_income, declaration)

    taxable = max(0, (employment_income - deductions.total) // 1000 * 1000)
    calculated = progressive_income_tax(taxable)
    surtax = reconstruction_tax(calculated)
    total_tax = calculated + surtax
    mortgage = mortgage_deduction(declaration.has_mortgage, declaration.mortgage_balance) if declaration else 0
    final_tax = max(0, total_tax - mortgage)
    difference, is_refund, _ = year_end_difference(income.withheld_tax, final_tax)

    values: dict[str, Any] = {name: getattr(deductions, name) for name in deductions.__dataclass_fields__}
    values.update(
        {
            "total_salary": income.total_salary,
            "total_bonus": income.total_bonus,
            "total_income": total_income,
            "employment_income_deduction": min(income_deduction, total_income),
            "employment_income": employment_income,
            "total_deductions": deductions.total,
            "taxable_income": taxable,
            "calculated_tax": calculated,
            "special_reconstruction_tax": surtax,
            "total_tax": total_tax,
            "mortgage_deduction": mortgage,
            "final_tax": final_tax,
            "withheld_tax_total": income.withheld_tax,
            "adjustment_amount": difference,
            "is_refund": is_refund,
        }
    )
    return values

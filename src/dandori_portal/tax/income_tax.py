"""Japanese income-tax arithmetic (annual brackets and monthly withholding).

All amounts are integer yen. Fractions are floored unless a rule says
otherwise.
"""

from __future__ import annotations

import math
from typing import Optional

# (upper bound inclusive, rate, deduction)
PROGRESSIVE_BRACKETS: tuple[tuple[float, float, int], ...] = (
    (1_950_000, 0.05, 0),
    (3_300_000, 0.10, 97_500),
    (6_950_000, 0.20, 427_500),
    (9_000_000, 0.23, 636_000),
    (18_000_000, 0.33, 1_536_000),
    (40_000_000, 0.40, 2_796_000),
    (math.inf, 0.45, 4_796_000),
)

RECONSTRUCTION_TAX_RATE = 0.021
BASIC_DEDUCTION = 480_000
DEPENDENT_DEDUCTION = 380_000

# Monthly table used by the electronic-computation withholding method
_MONTHLY_INCOME_DEDUCTION: tuple[tuple[float, float, int], ...] = (
    (149_999, 0.40, -8_333),
    (299_999, 0.30, 6_667),
    (549_999, 0.20, 36_667),
    (708_330, 0.10, 91_667),
)
_MONTHLY_MIN_INCOME_DEDUCTION = 45_834
_MONTHLY_MIN_THRESHOLD = 135_416
_MONTHLY_MAX_INCOME_DEDUCTION = 162_500
MONTHLY_BASIC_DEDUCTION = 40_000
MONTHLY_DEPENDENT_DEDUCTION = 31_667
MAX_WITHHOLDING_DEPENDENTS = 7

_MONTHLY_RATES: tuple[tuple[float, float, int], ...] = (
    (162_500, 0.05105, 0),
    (275_000, 0.1021, 8_296),
    (579_166, 0.2042, 36_374),
    (750_000, 0.23483, 54_113),
    (1_500_000, 0.33693, 130_688),
    (3_333_333, 0.4084, 237_893),
    (math.inf, 0.45945, 408_061),
)


def employment_income_deduction(income: int) -> int:
    if income <= 1_625_000:
        return 550_000
    if income <= 1_800_000:
        return math.floor(income * 0.4 - 100_000)
    if income <= 3_600_000:
        return math.floor(income * 0.3 + 80_000)
    if income <= 6_600_000:
        return math.floor(income * 0.2 + 440_000)
    if income <= 8_500_000:
        return math.floor(income * 0.1 + 1_100_000)
    return 1_950_000


def basic_deduction(income: int) -> int:
    if income <= 24_000_000:
        return 480_000
    if income <= 24_500_000:
        return 320_000
    if income <= 25_000_000:
        return 160_000
    return 0


def progressive_income_tax(taxable: int) -> int:
    if taxable <= 0:
        return 0
    for upper, rate, deduction in PROGRESSIVE_BRACKETS:
        if taxable <= upper:
            return max(0, math.floor(taxable * rate - deduction))
    return 0


def reconstruction_tax(base: int) -> int:
    return math.floor(max(base, 0) * RECONSTRUCTION_TAX_RATE)


def annual_income_tax(income: int, social_insurance: int = 0, dependents: int = 0, other: int = 0) -> int:
    """Income tax plus the special reconstruction surtax for one year."""
    employment_income = max(0, income - employment_income_deduction(income))
    deductions = social_insurance + basic_deduction(employment_income) + dependents * DEPENDENT_DEDUCTION + other
    taxable = max(0, (employment_income - deductions) // 1000 * 1000)
    base = progressive_income_tax(taxable)
    return base + reconstruction_tax(base)


def annualized_monthly_tax(monthly_taxable: int, dependents: int = 0) -> int:
    """Simplified monthly withholding: annualize, apply brackets, divide by 12."""
    annual = monthly_taxable * 12 - BASIC_DEDUCTION - max(dependents, 0) * DEPENDENT_DEDUCTION
    annual = max(0, annual)
    return max(0, math.floor(progressive_income_tax(annual) / 12))


def _monthly_income_deduction(amount: int) -> float:
    if amount <= _MONTHLY_MIN_THRESHOLD:
        return _MONTHLY_MIN_INCOME_DEDUCTION
    for upper, rate, offset in _MONTHLY_INCOME_DEDUCTION:
        if amount <= upper:
            return amount * rate + offset
    return _MONTHLY_MAX_INCOME_DEDUCTION


def monthly_withholding_electronic(amount: int, dependents: int = 0) -> int:
    """Monthly withholding by the electronic-computation special method, rounded to 10 yen."""
    dependents = min(max(int(dependents), 0), MAX_WITHHOLDING_DEPENDENTS)
    taxable = (
        amount
        - _monthly_income_deduction(amount)
        - MONTHLY_BASIC_DEDUCTION
        - dependents * MONTHLY_DEPENDENT_DEDUCTION
    )
    if taxable <= 0:
        return 0
    for upper, rate, deduction in _MONTHLY_RATES:
        if taxable <= upper:
            tax = taxable * rate - deduction
            return max(0, math.floor(tax / 10 + 0.5) * 10)
    return 0


def bonus_withholding(bonus: int, prev_month: Optional[int], dependents: int = 0) -> int:
    """Bonus withholding by the 1/6 monthly method."""
    if bonus <= 0:
        return 0
    prev = max(prev_month or 0, 0)
    with_bonus = monthly_withholding_electronic(prev + bonus // 6, dependents)
    without = monthly_withholding_electronic(prev, dependents)
    return max(0, 6 * (with_bonus - without))


def year_end_difference(withheld: int, annual_tax: int) -> tuple[int, bool, int]:
    """Returns (difference, is_refund, amount); a positive difference is refunded."""
    difference = withheld - annual_tax
    return difference, difference > 0, abs(difference)

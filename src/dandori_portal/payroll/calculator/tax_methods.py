from __future__ import annotations

from abc import ABC, abstractmethod

from ...core.exceptions import ValidationError
from ...tax.income_tax import annualized_monthly_tax, monthly_withholding_electronic


class IncomeTaxMethod(ABC):
    """How the monthly income-tax withholding is derived from the taxable amount."""

    name: str = ""

    @abstractmethod
    def monthly_tax(self, taxable: int, dependents: int) -> int:
        raise NotImplementedError


class AnnualizedTaxMethod(IncomeTaxMethod):
    name = "annualized"

    def monthly_tax(self, taxable: int, dependents: int) -> int:
        return annualized_monthly_tax(taxable, dependents)


class ElectronicTaxMethod(IncomeTaxMethod):
    name = "electronic"

    def monthly_tax(self, taxable: int, dependents: int) -> int:
        return monthly_withholding_electronic(taxable, dependents)


_METHODS = {m.name: m for m in (AnnualizedTaxMethod, ElectronicTaxMethod)}


def tax_method_for(name: str) -> IncomeTaxMethod:
    try:
        return _METHODS[(name or "annualized").lower()]()
    except KeyError:
        raise ValidationError(f"PAYROLL_TAX_METHOD が不正です: {name}")

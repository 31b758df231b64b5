from dandori_portal.core.enums import DeclarationStatus, DisabilityType
from dandori_portal.year_end.deductions import (
    compute_year_end,
    dependent_deduction,
    disability_deduction,
    life_insurance_deduction,
    mortgage_deduction,
    spouse_deductions,
)
from dandori_portal.year_end.model import Declaration, IncomeSummary


def _declaration(**kw):
    return Declaration(id=1, tenant_id=1, user_id=1, fiscal_year=2025, status=DeclarationStatus.APPROVED, **kw)


def test_spouse_deduction_depends_on_spouse_income():
    assert spouse_deductions(False, 0) == (0, 0)
    assert spouse_deductions(True, None) == (380_000, 0)
    assert spouse_deductions(True, 480_000) == (380_000, 0)
    assert spouse_deductions(True, 1_000_000) == (0, 60_000)
    assert spouse_deductions(True, 1_400_000) == (0, 0)


def test_dependents_are_split_by_category():
    assert dependent_deduction(3, 1, 1) == 380_000 + 630_000 + 480_000
    assert dependent_deduction(0, 0, 0) == 0


def test_disability_falls_back_to_general():
    assert disability_deduction(False, DisabilityType.SPECIAL) == 0
    assert disability_deduction(True, DisabilityType.SPECIAL) == 400_000
    assert disability_deduction(True, None) == 270_000


def test_life_insurance_caps_per_kind_and_total():
    assert life_insurance_deduction(100_000, 0, 0, 0, 0) == 40_000
    assert life_insurance_deduction(100_000, 100_000, 100_000, 0, 0) == 120_000


def test_mortgage_is_one_percent_capped():
    assert mortgage_deduction(False, 30_000_000) == 0
    assert mortgage_deduction(True, 10_000_000) == 100_000
    assert mortgage_deduction(True, 50_000_000) == 400_000


def test_taxable_income_is_floored_to_thousand_yen():
    income = IncomeSummary(total_salary=5_000_500, social_insurance=700_000, withheld_tax=150_000)
    values = compute_year_end(income, None)

    assert values["employment_income"] == 3_560_400
    assert values["basic_deduction"] == 480_000
    assert values["total_deductions"] == 1_180_000
    assert values["taxable_income"] == 2_380_000
    assert values["total_tax"] == values["calculated_tax"] + values["special_reconstruction_tax"]
    assert values["adjustment_amount"] == 150_000 - values["final_tax"]


def test_declaration_adds_deductions_and_mortgage_reduces_tax():
    income = IncomeSummary(total_salary=5_000_500, social_insurance=700_000, withheld_tax=150_000)
    plain = compute_year_end(income, None)
    declared = compute_year_end(
        income,
        _declaration(has_spouse=True, dependent_count=1, national_pension=10_000, earthquake_insurance=80_000),
    )

    assert declared["spouse_deduction"] == 380_000
    assert declared["dependent_deduction"] == 380_000
    assert declared["earthquake_insurance_deduction"] == 50_000
    assert declared["social_insurance_deduction"] == 710_000
    assert declared["taxable_income"] < plain["taxable_income"]

    mortgage = compute_year_end(income, _declaration(has_mortgage=True, mortgage_balance=50_000_000))
    assert mortgage["mortgage_deduction"] == 400_000
    assert mortgage["final_tax"] == 0
    assert mortgage["is_refund"] is True
    assert mortgage["adjustment_amount"] == 150_000

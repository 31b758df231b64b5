from dandori_portal.tax.income_tax import (
    annualized_monthly_tax,
    bonus_withholding,
    employment_income_deduction,
    monthly_withholding_electronic,
    progressive_income_tax,
    year_end_difference,
)


def test_progressive_brackets():
    assert progressive_income_tax(0) == 0
    assert progressive_income_tax(1_000_000) == 50_000
    # 20% bracket: 5,000,000 * 0.2 - 427,500
    assert progressive_income_tax(5_000_000) == 572_500


def test_employment_income_deduction_floor_and_cap():
    assert employment_income_deduction(1_000_000) == 550_000
    assert employment_income_deduction(20_000_000) == 1_950_000


def test_small_salary_has_no_withholding():
    assert annualized_monthly_tax(40_000) == 0
    assert monthly_withholding_electronic(80_000) == 0


def test_withholding_decreases_with_dependents():
    assert monthly_withholding_electronic(400_000, 2) < monthly_withholding_electronic(400_000, 0)


def test_electronic_method_rounds_to_ten_yen():
    assert monthly_withholding_electronic(400_000) % 10 == 0


def test_bonus_withholding_zero_bonus():
    assert bonus_withholding(0, 300_000) == 0


def test_bonus_withholding_is_six_times_the_monthly_increase():
    prev = 300_000
    bonus = 600_000
    expected = 6 * (monthly_withholding_electronic(prev + 100_000) - monthly_withholding_electronic(prev))
    assert bonus_withholding(bonus, prev) == expected


def test_year_end_difference_refund_and_shortfall():
    assert year_end_difference(120_000, 100_000) == (20_000, True, 20_000)
    assert year_end_difference(90_000, 100_000) == (-10_000, False, 10_000)

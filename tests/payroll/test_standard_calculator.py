from datetime import date, datetime

from dandori_portal.attendance.model import AttendanceReportRow
from dandori_portal.core.enums import AttendanceStatus, EmploymentType, Punctuality
from dandori_portal.payroll.calculator.standard_calculator import StandardPayrollCalculator, insurance_premiums
from dandori_portal.payroll.model import AttendanceFigures, PayInputs


def test_standard_calculator_subtracts_break():
    row = AttendanceReportRow(
        user_id=1,
        name="A",
        email="a@example.com",
        department=None,
        work_date=date(2025, 1, 6),
        check_in=datetime(2025, 1, 6, 9, 0),
        check_out=datetime(2025, 1, 6, 18, 0),
        break_minutes=60,
        status=AttendanceStatus.COMPLETED,
        punctuality=Punctuality.ON_TIME,
    )

    calc = StandardPayrollCalculator()
    assert calc.worked_minutes(row) == 8 * 60


def test_monthly_salary_without_extras():
    inputs = PayInputs(
        employment_type=EmploymentType.MONTHLY,
        basic_salary=300_000,
        hourly_rate=None,
        working_days=20,
        dependent_count=0,
        resident_tax=10_000,
        attendance=AttendanceFigures(working_days=20, actual_working_days=20),
    )

    pay = StandardPayrollCalculator().calculate(inputs)

    health, pension, employment = insurance_premiums(300_000)
    assert pay.gross_pay == 300_000
    assert (pay.health_insurance, pay.pension_insurance, pay.employment_insurance) == (health, pension, employment)
    assert pay.total_deductions == health + pension + employment + pay.income_tax + 10_000
    assert pay.net_pay == pay.gross_pay - pay.total_deductions


def test_overtime_uses_hourly_rate_and_premium():
    inputs = PayInputs(
        employment_type=EmploymentType.MONTHLY,
        basic_salary=320_000,
        hourly_rate=None,
        working_days=20,
        dependent_count=0,
        resident_tax=0,
        attendance=AttendanceFigures(working_days=20, actual_working_days=20, overtime_hours=10),
    )

    pay = StandardPayrollCalculator().calculate(inputs)

    # 320,000 / (20 * 8) = 2,000 per hour
    assert pay.overtime_allowance == 25_000
    assert pay.gross_pay == 345_000


def test_hourly_employee_paid_for_days_worked():
    inputs = PayInputs(
        employment_type=EmploymentType.HOURLY,
        basic_salary=0,
        hourly_rate=1_200,
        working_days=20,
        dependent_count=0,
        resident_tax=0,
        attendance=AttendanceFigures(working_days=20, actual_working_days=15),
    )

    pay = StandardPayrollCalculator().calculate(inputs)

    assert pay.basic_salary == 1_200 * 15 * 8

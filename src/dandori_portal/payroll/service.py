from __future__ import annotations

import io
import logging
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..common.auth import CurrentUser
from ..common.datetime_utils import format_period, month_bounds, now_local, parse_period, to_date
from ..common.excel import rows_to_xlsx
from ..common.pagination import Page, PageRequest
from ..common.validators import parse_enum, to_float, to_int
from ..core.constants import DEFAULT_WORKING_DAYS
from ..core.enums import PaySlipStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.permissions import has_permission
from ..users.repository import UserRepository
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator
from .master_service import PayrollMasterService
from .model import AttendanceFigures, CalculationOutcome, CalculationRun, PayInputs, PaySlip
from .repository import PaySlipRepository

logger = logging.getLogger(__name__)

LEDGER_COLUMNS = {
    "user_id": "社員ID",
    "name": "氏名",
    "department": "部署",
    "basic_salary": "基本給",
    "position_allowance": "役職手当",
    "commute_allowance": "通勤手当",
    "housing_allowance": "住宅手当",
    "family_allowance": "家族手当",
    "qualification_allowance": "資格手当",
    "other_allowances": "その他手当",
    "overtime_allowance": "残業手当",
    "late_night_allowance": "深夜手当",
    "holiday_allowance": "休日手当",
    "gross_pay": "総支給額",
    "health_insurance": "健康保険",
    "pension_insurance": "厚生年金",
    "employment_insurance": "雇用保険",
    "income_tax": "所得税",
    "resident_tax": "住民税",
    "other_deductions": "その他控除",
    "total_deductions": "控除合計",
    "net_pay": "差引支給額",
    "status": "状態",
}


def _figures(raw: Mapping[str, Any], working_days: int) -> AttendanceFigures:
    return AttendanceFigures(
        working_days=to_float(raw.get("working_days"), "working_days", default=float(working_days)),
        actual_working_days=to_float(raw.get("actual_working_days"), "actual_working_days", default=float(working_days)),
        absence_days=to_float(raw.get("absence_days"), "absence_days"),
        paid_leave_days=to_float(raw.get("paid_leave_days"), "paid_leave_days"),
        overtime_hours=to_float(raw.get("overtime_hours"), "overtime_hours"),
        late_night_hours=to_float(raw.get("late_night_hours"), "late_night_hours"),
        holiday_work_hours=to_float(raw.get("holiday_work_hours"), "holiday_work_hours"),
    )


class PayrollService:
    def __init__(
        self,
        slips: PaySlipRepository,
        master: PayrollMasterService,
        users: UserRepository,
        attendance: AttendanceRepository,
        *,
        calculator: Optional[PayrollCalculator] = None,
    ):
        self._slips = slips
        self._master = master
        self._users = users
        self._attendance = attendance
        self._calculator = calculator or StandardPayrollCalculator()

    # ---- calculation -------------------------------------------------------------

    def _attendance_figures(
        self,
        tenant_id: int,
        user_id: int,
        year: int,
        month: int,
        working_days: int,
        supplied: Optional[Mapping[str, Any]],
    ) -> AttendanceFigures:
        if supplied:
            return _figures(supplied, working_days)

        start, end = month_bounds(year, month)
        records = self._attendance.list_records(tenant_id, user_id=user_id, start=start, end=end)
        if not records:
            return AttendanceFigures(working_days=working_days, actual_working_days=working_days)

        actual = sum(1 for r in records if r.check_in)
        overtime_minutes = sum(r.overtime_minutes or 0 for r in records)
        return AttendanceFigures(
            working_days=working_days,
            actual_working_days=actual,
            absence_days=max(working_days - actual, 0),
            overtime_hours=round(overtime_minutes / 60, 2),
        )

    def calculate(
        self,
        tenant_id: int,
        *,
        pay_period: Any,
        payment_date: Any,
        user_ids: Optional[Sequence[Any]] = None,
        working_days: Any = None,
        attendance_data: Optional[Mapping[Any, Mapping[str, Any]]] = None,
    ) -> CalculationRun:
        missing = [name for name, v in (("pay_period", pay_period), ("payment_date", payment_date)) if not v]
        if missing:
            raise ValidationError(f"{', '.join(missing)}は必須です", required=missing)
        year, month = parse_period(pay_period)
        period = format_period(year, month)
        paid_on = to_date(payment_date, "payment_date")
        days = to_int(working_days, "working_days", default=DEFAULT_WORKING_DAYS, minimum=1)
        attendance_data = {str(k): v for k, v in (attendance_data or {}).items()}

        if user_ids:
            users = self._users.list_by_ids(tenant_id, [to_int(u, "user_ids") for u in user_ids])
        else:
            users = self._users.list_active(tenant_id)
        if not users:
            raise NotFoundError("対象の従業員が見つかりません")

        _, period_end = month_bounds(year, month)
        results: list[CalculationOutcome] = []
        for user in users:
            try:
                slip = self._calculate_one(
                    tenant_id, user.id, period, paid_on, period_end, year, month, days,
                    attendance_data.get(str(user.id)),
                )
                results.append(CalculationOutcome(user_id=user.id, success=True, pay_slip=slip))
            except ValidationError as e:
                results.append(CalculationOutcome(user_id=user.id, success=False, error=str(e)))

        succeeded = sum(1 for r in results if r.success)
        logger.info("Payroll calculated period=%s success=%s error=%s", period, succeeded, len(results) - succeeded)
        return CalculationRun(
            results=results,
            summary={
                "total": len(results),
                "success": succeeded,
                "error": len(results) - succeeded,
                "pay_period": period,
                "payment_date": paid_on.isoformat(),
            },
        )

    def _calculate_one(self, tenant_id, user_id, period, paid_on, period_end, year, month, days, supplied) -> PaySlip:
        setting = self._master.effective_setting(tenant_id, user_id, period_end)
        if setting is None:
            raise ValidationError("給与設定がありません")
        existing = self._slips.find(tenant_id, user_id, period)
        if existing and existing.status != PaySlipStatus.DRAFT:
            raise ValidationError("確定済みの明細は更新できません")

        figures = self._attendance_figures(tenant_id, user_id, year, month, days, supplied)
        breakdown = self._calculator.calculate(
            PayInputs(
                employment_type=setting.employment_type,
                basic_salary=setting.basic_salary,
                hourly_rate=setting.hourly_rate,
                working_days=days,
                dependent_count=setting.dependent_count,
                resident_tax=setting.resident_tax_amount,
                attendance=figures,
                allowances=self._master.effective_allowances(tenant_id, user_id, period_end),
                deductions=self._master.effective_deductions(tenant_id, user_id, period_end),
            )
        )
        values = {name: getattr(breakdown, name) for name in breakdown.__dataclass_fields__}
        values.update({name: getattr(figures, name) for name in figures.__dataclass_fields__})
        values.update({"payment_date": paid_on, "status": PaySlipStatus.DRAFT})
        return self._slips.upsert(tenant_id, user_id, period, values)

    # ---- pay slips ---------------------------------------------------------------

    def list_slips(
        self,
        actor: CurrentUser,
        *,
        user_id: Optional[int] = None,
        pay_period: Optional[str] = None,
        status: Optional[str] = None,
        request: Optional[PageRequest] = None,
    ) -> Page[PaySlip]:
        if not has_permission(actor.role, "payroll:read:all"):
            user_id = actor.user_id
        return self._slips.list(
            actor.tenant_id,
            user_id=user_id,
            pay_period=pay_period or None,
            status=parse_enum(PaySlipStatus, status, "status") if status else None,
            request=request or PageRequest(),
        )

    def get_slip(self, actor: CurrentUser, slip_id: int) -> PaySlip:
        slip = self._slips.get(actor.tenant_id, slip_id)
        if not slip:
            raise NotFoundError("給与明細が見つかりません")
        if slip.user_id != actor.user_id and not has_permission(actor.role, "payroll:read:all"):
            raise AuthorizationError("この給与明細を閲覧する権限がありません")
        return slip

    def confirm(self, tenant_id: int, slip_id: int, *, now: Optional[datetime] = None) -> PaySlip:
        slip = self._require(tenant_id, slip_id)
        if slip.status != PaySlipStatus.DRAFT:
            raise ValidationError("下書きの明細のみ確定できます")
        return self._slips.update(tenant_id, slip_id, {"status": PaySlipStatus.CONFIRMED, "confirmed_at": now or now_local()})

    def mark_paid(self, tenant_id: int, slip_id: int, *, now: Optional[datetime] = None) -> PaySlip:
        slip = self._require(tenant_id, slip_id)
        if slip.status != PaySlipStatus.CONFIRMED:
            raise ValidationError("確定済みの明細のみ支払済にできます")
        return self._slips.update(tenant_id, slip_id, {"status": PaySlipStatus.PAID, "paid_at": now or now_local()})

    def delete_slip(self, tenant_id: int, slip_id: int) -> None:
        slip = self._require(tenant_id, slip_id)
        if slip.status == PaySlipStatus.PAID:
            raise ValidationError("支払済の明細は削除できません")
        self._slips.delete(tenant_id, slip_id)

    def _require(self, tenant_id: int, slip_id: int) -> PaySlip:
        slip = self._slips.get(tenant_id, slip_id)
        if not slip:
            raise NotFoundError("給与明細が見つかりません")
        return slip

    def ledger_rows(self, tenant_id: int, pay_period: Any) -> list[dict]:
        year, month = parse_period(pay_period)
        slips = self._slips.list_for_period(tenant_id, format_period(year, month))
        users = {u.id: u for u in self._users.list_by_ids(tenant_id, [s.user_id for s in slips])}
        rows = []
        for slip in slips:
            user = users.get(slip.user_id)
            row = {key: getattr(slip, key, None) for key in LEDGER_COLUMNS}
            row.update(
                {
                    "name": user.name if user else "-",
                    "department": (user.department if user else None) or "-",
                    "status": slip.status.value,
                }
            )
            rows.append(row)
        return rows

    def ledger_xlsx(self, tenant_id: int, pay_period: Any) -> io.BytesIO:
        return rows_to_xlsx(self.ledger_rows(tenant_id, pay_period), sheet_name="給与台帳", columns=LEDGER_COLUMNS)

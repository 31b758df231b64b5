from __future__ import annotations

import io
from datetime import date
from typing import Optional

from ..common.excel import rows_to_xlsx
from ..core.exceptions import ValidationError
from ..payroll.calculator.base import PayrollCalculator
from ..payroll.calculator.standard_calculator import StandardPayrollCalculator
from .model import ReportData
from .repository import AttendanceRepository

REPORT_COLUMNS = {
    "work_date": "日付",
    "name": "氏名",
    "email": "メールアドレス",
    "department": "部署",
    "check_in": "出勤",
    "check_out": "退勤",
    "break_minutes": "休憩(分)",
    "worked_hours": "実働時間",
    "punctuality": "区分",
}


def _hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


class AttendanceReportService:
    def __init__(self, attendance: AttendanceRepository, *, calculator: Optional[PayrollCalculator] = None):
        self._attendance = attendance
        self._calculator = calculator or StandardPayrollCalculator()

    def build_report(self, tenant_id: int, *, start: date, end: date, user_id: Optional[int] = None) -> ReportData:
        if end < start:
            raise ValidationError("終了日は開始日以降を指定してください")

        rows = self._attendance.get_report_rows(tenant_id, start_date=start, end_date=end, user_id=user_id)
        out_rows: list[dict] = []
        totals: dict[int, dict] = {}

        for r in rows:
            minutes = self._calculator.worked_minutes(r)
            out_rows.append(
                {
                    "user_id": r.user_id,
                    "name": r.name,
                    "email": r.email,
                    "department": r.department or "-",
                    "work_date": r.work_date.strftime("%Y-%m-%d"),
                    "check_in": r.check_in.strftime("%H:%M") if r.check_in else "-",
                    "check_out": r.check_out.strftime("%H:%M") if r.check_out else "-",
                    "break_minutes": r.break_minutes,
                    "worked_minutes": minutes,
                    "worked_hours": _hhmm(minutes),
                    "status": r.status.value,
                    "punctuality": r.punctuality.value,
                }
            )
            s = totals.setdefault(r.user_id, {"user_id": r.user_id, "name": r.name, "email": r.email, "total_minutes": 0})
            s["total_minutes"] += minutes

        summary = sorted(totals.values(), key=lambda s: s["total_minutes"], reverse=True)
        for s in summary:
            s["total_hours"] = _hhmm(s["total_minutes"])
        return ReportData(rows=out_rows, summary=summary)

    def export_report_xlsx(self, report: ReportData) -> io.BytesIO:
        return rows_to_xlsx(report.rows, sheet_name="勤怠レポート", columns=REPORT_COLUMNS)

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Optional, Sequence

from ..common.datetime_utils import month_bounds, now_local
from ..common.validators import parse_enum
from ..core.enums import AttendanceStatus, PunchType
from ..core.exceptions import ValidationError
from ..users.repository import UserRepository
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, DailyMetric, MonthlyStats, Punch, PunchSession
from .repository import AttendanceRepository
from .rules import WorkRules, compute_day, group_sessions

logger = logging.getLogger(__name__)


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        *,
        rules: Optional[WorkRules] = None,
        strategy_factory: Optional[AttendanceStrategyFactory] = None,
    ):
        self._attendance = attendance
        self._users = users
        self._rules = rules or WorkRules()
        self._factory = strategy_factory or AttendanceStrategyFactory()

    @property
    def rules(self) -> WorkRules:
        return self._rules

    def record_punch(
        self,
        tenant_id: int,
        user_id: Any,
        punch_type: Any,
        *,
        now: Optional[datetime] = None,
        location: Optional[str] = None,
        note: Optional[str] = None,
    ) -> AttendanceRecord:
        if user_id in (None, ""):
            raise ValidationError("user_idは必須です", required=["user_id"])
        kind = parse_enum(PunchType, punch_type, "punch_type")
        now = now or now_local()
        today = now.date()

        user = self._users.get(tenant_id, int(user_id))
        if not user:
            raise ValidationError("ユーザーが存在しません")

        record = self._attendance.get_record(tenant_id, user.id, today)
        punches = list(self._attendance.list_punches(record.id)) if record else []
        check_in_orders = [p.punch_order for p in punches if p.punch_type == PunchType.CHECK_IN]

        if kind == PunchType.CHECK_IN:
            order = max(check_in_orders, default=0) + 1
        else:
            if not check_in_orders:
                raise ValidationError("本日の出勤打刻がありません")
            latest = max((p for p in punches if p.punch_type == PunchType.CHECK_IN), key=lambda p: (p.punch_time, p.id))
            order = latest.punch_order

        if record is None:
            record = self._attendance.create_record(tenant_id, user.id, today)

        punch = self._attendance.add_punch(
            {
                "tenant_id": tenant_id,
                "user_id": user.id,
                "attendance_id": record.id,
                "punch_type": kind,
                "punch_time": now,
                "punch_order": order,
                "location": location,
                "note": note,
            }
        )
        punches.append(punch)
        return self._recompute(record, punches)

    def _recompute(self, record: AttendanceRecord, punches: Sequence[Punch]) -> AttendanceRecord:
        figures = compute_day(punches)
        strategy = self._factory.for_day(check_in=figures.check_in, check_out=figures.check_out, rules=self._rules)
        decision = strategy.decide(check_in=figures.check_in, check_out=figures.check_out, rules=self._rules)
        return self._attendance.update_record(
            record.id,
            {
                "check_in": figures.check_in,
                "check_out": figures.check_out,
                "break_minutes": figures.break_minutes,
                "work_minutes": figures.work_minutes,
                "overtime_minutes": figures.overtime_minutes,
                "status": figures.status,
                "punctuality": decision.punctuality,
            },
        )

    def list_punches(self, tenant_id: int, user_id: int, work_date: date) -> list[PunchSession]:
        record = self._attendance.get_record(tenant_id, user_id, work_date)
        if not record:
            return []
        return group_sessions(self._attendance.list_punches(record.id))

    def get_today_record(self, tenant_id: int, user_id: int, today: date) -> Optional[AttendanceRecord]:
        return self._attendance.get_record(tenant_id, user_id, today)

    def list_records(
        self,
        tenant_id: int,
        *,
        user_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        if start and end and end < start:
            raise ValidationError("終了日は開始日以降を指定してください")
        return self._attendance.list_records(tenant_id, user_id=user_id, start=start, end=end)

    def daily_stats(self, tenant_id: int, day: date) -> DailyMetric:
        total = len(self._users.list_active(tenant_id))
        records = [r for r in self._attendance.list_records(tenant_id, start=day, end=day) if r.check_in]
        present = len(records)

        by_status = {s: 0 for s in AttendanceStatus}
        for r in records:
            by_status[r.status] += 1

        values = {
            "total_employees": total,
            "present_count": present,
            "attendance_rate": round(present / total * 100, 1) if total else 0.0,
            "late_count": sum(1 for r in records if self._rules.is_late(r.check_in)),
            "early_leave_count": sum(1 for r in records if self._rules.is_early_leave(r.check_out)),
            "overtime_minutes": sum(self._rules.minutes_after_end(r.check_out) for r in records),
            "working_count": by_status[AttendanceStatus.WORKING],
            "completed_count": by_status[AttendanceStatus.COMPLETED],
            "on_break_count": by_status[AttendanceStatus.ON_BREAK],
            "absent_count": max(0, total - present),
        }
        return self._attendance.upsert_daily_metric(tenant_id, day, values)

    def monthly_stats(self, tenant_id: int, year: int, month: int) -> MonthlyStats:
        if not 1 <= month <= 12:
            raise ValidationError("monthは1〜12で指定してください")
        start, end = month_bounds(year, month)
        daily = list(self._attendance.list_daily_metrics(tenant_id, start, end))
        average = round(sum(d.attendance_rate for d in daily) / len(daily), 1) if daily else 0.0
        return MonthlyStats(
            year=year,
            month=month,
            days=len(daily),
            average_attendance_rate=average,
            total_late=sum(d.late_count for d in daily),
            total_early_leave=sum(d.early_leave_count for d in daily),
            total_overtime_minutes=sum(d.overtime_minutes for d in daily),
            daily=daily,
        )

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, Punctuality, PunchType


@dataclass(frozen=True)
class Punch:
    """Domain entity: one clock event (in, out, break start/end)."""

    id: int
    tenant_id: int
    user_id: int
    attendance_id: int
    punch_type: PunchType
    punch_time: datetime
    punch_order: int
    location: Optional[str] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one user's working day, recomputed from its punches."""

    id: int
    tenant_id: int
    user_id: int
    work_date: date
    check_in: Optional[datetime]
    check_out: Optional[datetime]
    break_minutes: int
    work_minutes: int
    overtime_minutes: int
    status: AttendanceStatus
    punctuality: Punctuality


@dataclass(frozen=True)
class BreakSpan:
    start: datetime
    end: Optional[datetime]


@dataclass(frozen=True)
class PunchSession:
    order: int
    check_in: Optional[datetime]
    check_out: Optional[datetime]
    breaks: list[BreakSpan] = field(default_factory=list)


@dataclass(frozen=True)
class DailyMetric:
    id: int
    tenant_id: int
    metric_date: date
    total_employees: int
    present_count: int
    attendance_rate: float
    late_count: int
    early_leave_count: int
    overtime_minutes: int
    working_count: int
    completed_count: int
    on_break_count: int
    absent_count: int


@dataclass(frozen=True)
class MonthlyStats:
    year: int
    month: int
    days: int
    average_attendance_rate: float
    total_late: int
    total_early_leave: int
    total_overtime_minutes: int
    daily: list[DailyMetric]


@dataclass(frozen=True)
class AttendanceReportRow:
    """Read-model for reports/exports."""

    user_id: int
    name: str
    email: str
    department: Optional[str]
    work_date: date
    check_in: Optional[datetime]
    check_out: Optional[datetime]
    break_minutes: int
    status: AttendanceStatus
    punctuality: Punctuality


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: list[dict]

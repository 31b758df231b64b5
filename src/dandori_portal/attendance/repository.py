from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional, Protocol, Sequence

from .model import AttendanceRecord, AttendanceReportRow, DailyMetric, Punch


class AttendanceRepository(Protocol):
    def get_record(self, tenant_id: int, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_record(self, tenant_id: int, user_id: int, work_date: date) -> AttendanceRecord:
        raise NotImplementedError

    def update_record(self, record_id: int, values: Mapping[str, Any]) -> AttendanceRecord:
        raise NotImplementedError

    def list_records(
        self,
        tenant_id: int,
        *,
        user_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_punches(self, attendance_id: int) -> Sequence[Punch]:
        raise NotImplementedError

    def add_punch(self, values: Mapping[str, Any]) -> Punch:
        raise NotImplementedError

    def upsert_daily_metric(self, tenant_id: int, metric_date: date, values: Mapping[str, Any]) -> DailyMetric:
        raise NotImplementedError

    def list_daily_metrics(self, tenant_id: int, start: date, end: date) -> Sequence[DailyMetric]:
        raise NotImplementedError

    def get_report_rows(
        self,
        tenant_id: int,
        *,
        start_date: date,
        end_date: date,
        user_id: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        raise NotImplementedError

from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional, Sequence

from ..core.enums import AttendanceStatus, Punctuality
from ..core.exceptions import NotFoundError
from ..database.mapping import assign_columns, row_to_model
from ..database.repository_base import SQLAlchemyRepository
from ..database.session import session_scope
from ..database.tables.attendance import AttendanceRecordRow, DailyMetricRow, PunchRow
from ..database.tables.users import UserRow
from .model import AttendanceRecord, AttendanceReportRow, DailyMetric, Punch
from .repository import AttendanceRepository


class SQLAlchemyAttendanceRepository(SQLAlchemyRepository, AttendanceRepository):
    def get_record(self, tenant_id: int, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        row = (
            self._session.query(AttendanceRecordRow)
            .filter_by(tenant_id=tenant_id, user_id=user_id, work_date=work_date)
            .first()
        )
        return row_to_model(AttendanceRecord, row) if row else None

    def create_record(self, tenant_id: int, user_id: int, work_date: date) -> AttendanceRecord:
        with session_scope(self._db) as s:
            row = AttendanceRecordRow(
                tenant_id=tenant_id,
                user_id=user_id,
                work_date=work_date,
                break_minutes=0,
                work_minutes=0,
                overtime_minutes=0,
                status=AttendanceStatus.WORKING.value,
                punctuality=Punctuality.ON_TIME.value,
            )
            s.add(row)
            s.flush()
            return row_to_model(AttendanceRecord, row)

    def update_record(self, record_id: int, values: Mapping[str, Any]) -> AttendanceRecord:
        with session_scope(self._db) as s:
            row = s.get(AttendanceRecordRow, record_id)
            if row is None:
                raise NotFoundError("勤怠記録が見つかりません")
            assign_columns(row, values)
            s.flush()
            return row_to_model(AttendanceRecord, row)

    def list_records(
        self,
        tenant_id: int,
        *,
        user_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        query = self._session.query(AttendanceRecordRow).filter(AttendanceRecordRow.tenant_id == tenant_id)
        if user_id is not None:
            query = query.filter(AttendanceRecordRow.user_id == user_id)
        if start is not None:
            query = query.filter(AttendanceRecordRow.work_date >= start)
        if end is not None:
            query = query.filter(AttendanceRecordRow.work_date <= end)
        rows = query.order_by(AttendanceRecordRow.work_date.desc(), AttendanceRecordRow.user_id).all()
        return [row_to_model(AttendanceRecord, r) for r in rows]

    def list_punches(self, attendance_id: int) -> Sequence[Punch]:
        rows = (
            self._session.query(PunchRow)
            .filter(PunchRow.attendance_id == attendance_id)
            .order_by(PunchRow.punch_time, PunchRow.id)
            .all()
        )
        return [row_to_model(Punch, r) for r in rows]

    def add_punch(self, values: Mapping[str, Any]) -> Punch:
        with session_scope(self._db) as s:
            row = PunchRow()
            assign_columns(row, values)
            s.add(row)
            s.flush()
            return row_to_model(Punch, row)

    def upsert_daily_metric(self, tenant_id: int, metric_date: date, values: Mapping[str, Any]) -> DailyMetric:
        with session_scope(self._db) as s:
            row = s.query(DailyMetricRow).filter_by(tenant_id=tenant_id, metric_date=metric_date).first()
            if row is None:
                row = DailyMetricRow(tenant_id=tenant_id, metric_date=metric_date)
                s.add(row)
            assign_columns(row, values)
            s.flush()
            return row_to_model(DailyMetric, row)

    def list_daily_metrics(self, tenant_id: int, start: date, end: date) -> Sequence[DailyMetric]:
        rows = (
            self._session.query(DailyMetricRow)
            .filter(
                DailyMetricRow.tenant_id == tenant_id,
                DailyMetricRow.metric_date >= start,
                DailyMetricRow.metric_date <= end,
            )
            .order_by(DailyMetricRow.metric_date)
            .all()
        )
        return [row_to_model(DailyMetric, r) for r in rows]

    def get_report_rows(
        self,
        tenant_id: int,
        *,
        start_date: date,
        end_date: date,
        user_id: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        query = (
            self._session.query(AttendanceRecordRow, UserRow)
            .join(UserRow, UserRow.id == AttendanceRecordRow.user_id)
            .filter(
                AttendanceRecordRow.tenant_id == tenant_id,
                AttendanceRecordRow.work_date >= start_date,
                AttendanceRecordRow.work_date <= end_date,
            )
        )
        if user_id is not None:
            query = query.filter(AttendanceRecordRow.user_id == user_id)
        query = query.order_by(AttendanceRecordRow.work_date, UserRow.name)

        return [
            AttendanceReportRow(
                user_id=record.user_id,
                name=user.name,
                email=user.email,
                department=user.department,
                work_date=record.work_date,
                check_in=record.check_in,
                check_out=record.check_out,
                break_minutes=int(record.break_minutes or 0),
                status=AttendanceStatus(record.status),
                punctuality=Punctuality(record.punctuality),
            )
            for record, user in query.all()
        ]

from __future__ import annotations

from datetime import date, datetime

import pytest

from dandori_portal.attendance.model import AttendanceReportRow
from dandori_portal.attendance.report import AttendanceReportService
from dandori_portal.core.enums import AttendanceStatus, Punctuality
from dandori_portal.core.exceptions import ValidationError


class FakeAttendanceRepo:
    def __init__(self, rows):
        self._rows = rows
        self.last_args = None

    def get_report_rows(self, tenant_id, *, start_date, end_date, user_id=None):
        self.last_args = {"tenant_id": tenant_id, "start_date": start_date, "end_date": end_date, "user_id": user_id}
        return self._rows


def _row(user_id, name, day, check_in, check_out, break_minutes=60):
    return AttendanceReportRow(
        user_id=user_id,
        name=name,
        email=f"{name.lower()}@example.com",
        department=None,
        work_date=day,
        check_in=check_in,
        check_out=check_out,
        break_minutes=break_minutes,
        status=AttendanceStatus.COMPLETED,
        punctuality=Punctuality.ON_TIME,
    )


def test_report_totals_with_break_minutes():
    d = date(2025, 1, 31)
    rows = [_row(1, "A", d, datetime(2025, 1, 31, 8, 30), datetime(2025, 1, 31, 17, 30))]

    report = AttendanceReportService(FakeAttendanceRepo(rows)).build_report(1, start=d, end=d)

    assert report.summary[0]["total_hours"] == "08:00"
    assert report.rows[0]["worked_hours"] == "08:00"
    assert report.rows[0]["department"] == "-"


def test_summary_sorted_by_total_time():
    d = date(2025, 1, 31)
    rows = [
        _row(1, "A", d, datetime(2025, 1, 31, 9, 0), datetime(2025, 1, 31, 13, 0), break_minutes=0),
        _row(2, "B", d, datetime(2025, 1, 31, 9, 0), datetime(2025, 1, 31, 19, 0)),
    ]

    report = AttendanceReportService(FakeAttendanceRepo(rows)).build_report(1, start=d, end=d)

    assert [s["user_id"] for s in report.summary] == [2, 1]
    assert report.summary[0]["total_minutes"] == 9 * 60


def test_open_day_shows_dash():
    d = date(2025, 1, 31)
    rows = [_row(1, "A", d, datetime(2025, 1, 31, 9, 0), None, break_minutes=0)]

    report = AttendanceReportService(FakeAttendanceRepo(rows)).build_report(1, start=d, end=d)

    assert report.rows[0]["check_out"] == "-"
    assert report.rows[0]["worked_minutes"] == 0


def test_report_forwards_filters():
    repo = FakeAttendanceRepo([])
    AttendanceReportService(repo).build_report(7, start=date(2025, 1, 1), end=date(2025, 1, 31), user_id=123)

    assert repo.last_args == {
        "tenant_id": 7,
        "start_date": date(2025, 1, 1),
        "end_date": date(2025, 1, 31),
        "user_id": 123,
    }


def test_reversed_range_is_rejected():
    with pytest.raises(ValidationError):
        AttendanceReportService(FakeAttendanceRepo([])).build_report(1, start=date(2025, 2, 1), end=date(2025, 1, 1))

from datetime import datetime

from dandori_portal.attendance.model import Punch
from dandori_portal.attendance.rules import compute_day, group_sessions
from dandori_portal.core.enums import AttendanceStatus, PunchType


def _punch(pid, kind, hh, mm, order=1):
    return Punch(
        id=pid,
        tenant_id=1,
        user_id=1,
        attendance_id=1,
        punch_type=kind,
        punch_time=datetime(2025, 1, 6, hh, mm),
        punch_order=order,
    )


def test_full_day_subtracts_breaks_and_counts_overtime():
    punches = [
        _punch(1, PunchType.CHECK_IN, 9, 0),
        _punch(2, PunchType.BREAK_START, 12, 0),
        _punch(3, PunchType.BREAK_END, 13, 0),
        _punch(4, PunchType.CHECK_OUT, 19, 0),
    ]

    day = compute_day(punches)

    assert day.break_minutes == 60
    assert day.work_minutes == 9 * 60
    assert day.overtime_minutes == 60
    assert day.status == AttendanceStatus.COMPLETED


def test_open_break_means_on_break():
    day = compute_day([_punch(1, PunchType.CHECK_IN, 9, 0), _punch(2, PunchType.BREAK_START, 12, 0)])

    assert day.status == AttendanceStatus.ON_BREAK
    assert day.work_minutes == 0
    assert day.break_minutes == 0


def test_sessions_grouped_by_punch_order():
    punches = [
        _punch(1, PunchType.CHECK_IN, 9, 0, order=1),
        _punch(2, PunchType.CHECK_OUT, 12, 0, order=1),
        _punch(3, PunchType.CHECK_IN, 13, 0, order=2),
    ]

    sessions = group_sessions(punches)

    assert [s.order for s in sessions] == [1, 2]
    assert sessions[0].check_out == datetime(2025, 1, 6, 12, 0)
    assert sessions[1].check_out is None
    assert compute_day(punches).status == AttendanceStatus.WORKING

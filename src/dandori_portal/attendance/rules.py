"""Working-time rules: punches in, daily figures out."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional, Sequence

from ..common.datetime_utils import minutes_between, parse_hhmm
from ..core.constants import STANDARD_WORK_MINUTES
from ..core.enums import AttendanceStatus, PunchType
from .model import BreakSpan, Punch, PunchSession


@dataclass(frozen=True)
class WorkRules:
    work_start: time = time(9, 0)
    work_end: time = time(18, 0)
    grace_minutes: int = 0

    @classmethod
    def from_config(cls, config) -> "WorkRules":
        return cls(
            work_start=parse_hhmm(str(config.get("WORK_START", "09:00"))),
            work_end=parse_hhmm(str(config.get("WORK_END", "18:00"))),
            grace_minutes=int(config.get("LATE_GRACE_MINUTES", 0) or 0),
        )

    def start_on(self, day: date) -> datetime:
        return datetime.combine(day, self.work_start)

    def end_on(self, day: date) -> datetime:
        return datetime.combine(day, self.work_end)

    def is_late(self, check_in: Optional[datetime]) -> bool:
        if check_in is None:
            return False
        return check_in > self.start_on(check_in.date()) + timedelta(minutes=self.grace_minutes)

    def is_early_leave(self, check_out: Optional[datetime]) -> bool:
        if check_out is None:
            return False
        return check_out < self.end_on(check_out.date())

    def minutes_after_end(self, check_out: Optional[datetime]) -> int:
        if check_out is None:
            return 0
        return max(0, minutes_between(self.end_on(check_out.date()), check_out))


@dataclass(frozen=True)
class DayFigures:
    check_in: Optional[datetime]
    check_out: Optional[datetime]
    break_minutes: int
    work_minutes: int
    overtime_minutes: int
    status: AttendanceStatus


def _ordered(punches: Sequence[Punch]) -> list[Punch]:
    return sorted(punches, key=lambda p: (p.punch_time, p.id))


def break_spans(punches: Sequence[Punch]) -> list[BreakSpan]:
    """Pair each break_start with the next break_end of the same session."""
    spans: list[BreakSpan] = []
    open_start: dict[int, datetime] = {}
    for p in _ordered(punches):
        if p.punch_type == PunchType.BREAK_START:
            open_start.setdefault(p.punch_order, p.punch_time)
        elif p.punch_type == PunchType.BREAK_END and p.punch_order in open_start:
            spans.append(BreakSpan(start=open_start.pop(p.punch_order), end=p.punch_time))
    spans.extend(BreakSpan(start=s, end=None) for s in open_start.values())
    return spans


def compute_day(punches: Sequence[Punch]) -> DayFigures:
    ordered = _ordered(punches)
    check_ins = [p.punch_time for p in ordered if p.punch_type == PunchType.CHECK_IN]
    check_outs = [p.punch_time for p in ordered if p.punch_type == PunchType.CHECK_OUT]
    check_in = check_ins[0] if check_ins else None
    check_out = check_outs[-1] if check_outs else None

    break_minutes = sum(minutes_between(s.start, s.end) for s in break_spans(ordered) if s.end is not None)

    work_minutes = 0
    if check_in and check_out:
        work_minutes = max(0, minutes_between(check_in, check_out) - break_minutes)
    overtime = max(0, work_minutes - STANDARD_WORK_MINUTES)

    last = ordered[-1].punch_type if ordered else None
    if last == PunchType.BREAK_START:
        status = AttendanceStatus.ON_BREAK
    elif last == PunchType.CHECK_OUT:
        status = AttendanceStatus.COMPLETED
    else:
        status = AttendanceStatus.WORKING

    return DayFigures(
        check_in=check_in,
        check_out=check_out,
        break_minutes=break_minutes,
        work_minutes=work_minutes,
        overtime_minutes=overtime,
        status=status,
    )


def group_sessions(punches: Sequence[Punch]) -> list[PunchSession]:
    by_order: dict[int, list[Punch]] = {}
    for p in _ordered(punches):
        by_order.setdefault(p.punch_order, []).append(p)

    sessions = []
    for order in sorted(by_order):
        items = by_order[order]
        ins = [p.punch_time for p in items if p.punch_type == PunchType.CHECK_IN]
        outs = [p.punch_time for p in items if p.punch_type == PunchType.CHECK_OUT]
        sessions.append(
            PunchSession(
                order=order,
                check_in=ins[0] if ins else None,
                check_out=outs[-1] if outs else None,
                breaks=break_spans(items),
            )
        )
    return sessions

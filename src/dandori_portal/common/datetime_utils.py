from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta
from typing import Optional

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_hhmm(value: str) -> time:
    return datetime.strptime(value, "%H:%M").time()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mock easier.
    """
    return datetime.now()


def to_date(value, field_name: str) -> date:
    """Accept a date, datetime or ISO string; raise ValidationError otherwise."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        raise ValidationError(f"{field_name}は必須です", required=[field_name])
    try:
        return parse_iso_date(str(value)[:10])
    except ValueError:
        raise ValidationError(f"{field_name}の日付形式が不正です (YYYY-MM-DD)")


def to_optional_date(value, field_name: str) -> Optional[date]:
    if value in (None, ""):
        return None
    return to_date(value, field_name)


def to_datetime(value, field_name: str) -> datetime:
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name}の日時形式が不正です")


def parse_period(value: str, field_name: str = "pay_period") -> tuple[int, int]:
    """Parse a YYYY-MM period into (year, month)."""
    try:
        parsed = datetime.strptime(str(value), "%Y-%m")
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name}の形式が不正です (YYYY-MM)")
    return parsed.year, parsed.month


def format_period(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def previous_month(today: date) -> tuple[int, int]:
    first = today.replace(day=1)
    prev = first - timedelta(days=1)
    return prev.year, prev.month


def is_weekend(d: date) -> bool:
    return d.weekday() >= 5


def minutes_between(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 60)

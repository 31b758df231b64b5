"""Pure approval rules: routing conditions, auto approval, deadlines, progress."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import is_weekend
from ..core.constants import (
    CORRECTION_DAYS_NEEDS_HR,
    DEADLINE_HOURS_BY_URGENCY,
    EXPENSE_NEEDS_ADMIN,
    EXPENSE_NEEDS_HR,
    LEAVE_DAYS_NEEDS_HR,
    OVERTIME_HOURS_NEEDS_ADMIN,
    OVERTIME_HOURS_NEEDS_HR,
)
from ..core.enums import ConditionOperator, StepStatus, Urgency, WorkflowType
from .model import ApprovalStep, FlowCondition, WorkflowRequest


@dataclass(frozen=True)
class RoutingDecision:
    needs_hr: bool = False
    needs_admin: bool = False


def _number(details: Mapping[str, Any], key: str) -> float:
    try:
        return float(details.get(key) or 0)
    except (TypeError, ValueError):
        return 0.0


def _target_date(details: Mapping[str, Any]) -> Optional[date]:
    raw = details.get("target_date")
    if isinstance(raw, date):
        return raw
    try:
        return date.fromisoformat(str(raw)[:10]) if raw else None
    except ValueError:
        return None


def evaluate_conditional_rules(kind: WorkflowType, details: Mapping[str, Any], today: date) -> RoutingDecision:
    needs_hr = False
    needs_admin = False

    if kind == WorkflowType.LEAVE_REQUEST:
        needs_hr = _number(details, "days") >= LEAVE_DAYS_NEEDS_HR
    elif kind == WorkflowType.EXPENSE_CLAIM:
        amount = _number(details, "amount")
        needs_hr = amount >= EXPENSE_NEEDS_HR
        needs_admin = amount >= EXPENSE_NEEDS_ADMIN
    elif kind == WorkflowType.OVERTIME_REQUEST:
        hours = _number(details, "hours")
        needs_hr = hours >= OVERTIME_HOURS_NEEDS_HR
        needs_admin = hours >= OVERTIME_HOURS_NEEDS_ADMIN
    elif kind == WorkflowType.ATTENDANCE_CORRECTION:
        target = _target_date(details)
        needs_hr = target is not None and (today - target).days >= CORRECTION_DAYS_NEEDS_HR

    return RoutingDecision(needs_hr=needs_hr, needs_admin=needs_admin)


def should_auto_approve(kind: WorkflowType, details: Mapping[str, Any]) -> bool:
    if kind == WorkflowType.LEAVE_REQUEST:
        return details.get("leave_type") == "paid" and 0 < _number(details, "days") <= 1
    if kind == WorkflowType.ATTENDANCE_CORRECTION:
        target = _target_date(details)
        return target is not None and is_weekend(target)
    return False


def deadline_for(urgency: Urgency, now: datetime) -> datetime:
    return now + timedelta(hours=DEADLINE_HOURS_BY_URGENCY[urgency.value])


def evaluate_condition(condition: FlowCondition, values: Mapping[str, Any]) -> bool:
    raw = values.get(condition.field)
    if raw is None or isinstance(raw, bool):
        return False
    try:
        actual = float(raw)
    except (TypeError, ValueError):
        return False

    expected = condition.value
    op = condition.operator
    if op == ConditionOperator.GTE:
        return actual >= expected
    if op == ConditionOperator.LTE:
        return actual <= expected
    if op == ConditionOperator.GT:
        return actual > expected
    if op == ConditionOperator.LT:
        return actual < expected
    if op == ConditionOperator.EQ:
        return actual == expected
    return actual != expected


def group_orders(steps: Sequence[ApprovalStep]) -> list[int]:
    return sorted({s.order for s in steps})


def current_group(request: WorkflowRequest) -> list[ApprovalStep]:
    return [s for s in request.steps if s.order == request.current_step]


def group_complete(group: Sequence[ApprovalStep]) -> bool:
    """A serial group needs its one approval; a parallel group needs required_approvals (default all)."""
    if not group:
        return True
    approved = sum(1 for s in group if s.status == StepStatus.APPROVED)
    required = group[0].required_approvals or len(group)
    return approved >= min(required, len(group))


def next_open_order(steps: Sequence[ApprovalStep], after: int) -> Optional[int]:
    for order in group_orders(steps):
        if order <= after:
            continue
        if any(s.order == order and s.status == StepStatus.PENDING and not s.is_optional for s in steps):
            return order
    return None


def progress(request: WorkflowRequest) -> int:
    if not request.steps:
        return 0
    done = sum(1 for s in request.steps if s.status in (StepStatus.APPROVED, StepStatus.REJECTED))
    return round(done / len(request.steps) * 100)

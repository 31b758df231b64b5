from datetime import date, datetime

from dandori_portal.core.enums import ConditionOperator, ExecutionMode, StepStatus, Urgency, WorkflowType
from dandori_portal.workflow.model import ApprovalStep, FlowCondition
from dandori_portal.workflow.rules import (
    deadline_for,
    evaluate_condition,
    evaluate_conditional_rules,
    group_complete,
    next_open_order,
    should_auto_approve,
)


def _step(order, approver_id, status=StepStatus.PENDING, **kw):
    return ApprovalStep(
        order=order,
        approver_id=approver_id,
        approver_name=f"u{approver_id}",
        approver_role="manager",
        status=status,
        **kw,
    )


def test_long_leave_goes_to_hr():
    today = date(2025, 4, 1)
    assert evaluate_conditional_rules(WorkflowType.LEAVE_REQUEST, {"days": 5}, today).needs_hr
    assert not evaluate_conditional_rules(WorkflowType.LEAVE_REQUEST, {"days": 4}, today).needs_hr


def test_expense_thresholds():
    today = date(2025, 4, 1)
    small = evaluate_conditional_rules(WorkflowType.EXPENSE_CLAIM, {"amount": 99_999}, today)
    assert (small.needs_admin, small.needs_hr) == (False, False)

    mid = evaluate_conditional_rules(WorkflowType.EXPENSE_CLAIM, {"amount": 100_000}, today)
    assert (mid.needs_admin, mid.needs_hr) == (True, False)

    big = evaluate_conditional_rules(WorkflowType.EXPENSE_CLAIM, {"amount": 500_000}, today)
    assert (big.needs_admin, big.needs_hr) == (True, True)


def test_overtime_thresholds():
    today = date(2025, 4, 1)
    d = evaluate_conditional_rules(WorkflowType.OVERTIME_REQUEST, {"hours": 45}, today)
    assert d.needs_hr and not d.needs_admin
    d = evaluate_conditional_rules(WorkflowType.OVERTIME_REQUEST, {"hours": 60}, today)
    assert d.needs_hr and d.needs_admin


def test_old_correction_goes_to_hr():
    today = date(2025, 4, 30)
    old = evaluate_conditional_rules(WorkflowType.ATTENDANCE_CORRECTION, {"target_date": "2025-03-31"}, today)
    recent = evaluate_conditional_rules(WorkflowType.ATTENDANCE_CORRECTION, {"target_date": "2025-04-20"}, today)
    assert old.needs_hr
    assert not recent.needs_hr


def test_garbage_amount_counts_as_zero():
    d = evaluate_conditional_rules(WorkflowType.EXPENSE_CLAIM, {"amount": "abc"}, date(2025, 4, 1))
    assert not d.needs_admin


def test_auto_approve_short_paid_leave():
    assert should_auto_approve(WorkflowType.LEAVE_REQUEST, {"leave_type": "paid", "days": 1})
    assert should_auto_approve(WorkflowType.LEAVE_REQUEST, {"leave_type": "paid", "days": 0.5})
    assert not should_auto_approve(WorkflowType.LEAVE_REQUEST, {"leave_type": "paid", "days": 2})
    assert not should_auto_approve(WorkflowType.LEAVE_REQUEST, {"leave_type": "sick", "days": 1})


def test_auto_approve_weekend_correction():
    # 2025-04-05 is a Saturday
    assert should_auto_approve(WorkflowType.ATTENDANCE_CORRECTION, {"target_date": "2025-04-05"})
    assert not should_auto_approve(WorkflowType.ATTENDANCE_CORRECTION, {"target_date": "2025-04-07"})
    assert not should_auto_approve(WorkflowType.EXPENSE_CLAIM, {"amount": 1})


def test_deadline_by_urgency():
    now = datetime(2025, 4, 1, 9, 0)
    assert deadline_for(Urgency.HIGH, now) == datetime(2025, 4, 2, 9, 0)
    assert deadline_for(Urgency.NORMAL, now) == datetime(2025, 4, 3, 9, 0)
    assert deadline_for(Urgency.LOW, now) == datetime(2025, 4, 4, 9, 0)


def test_evaluate_condition_operators():
    cond = FlowCondition(field="amount", operator=ConditionOperator.GTE, value=1000)
    assert evaluate_condition(cond, {"amount": 1000})
    assert not evaluate_condition(cond, {"amount": 999})
    assert not evaluate_condition(cond, {})
    assert not evaluate_condition(cond, {"amount": True})

    ne = FlowCondition(field="days", operator=ConditionOperator.NE, value=3)
    assert evaluate_condition(ne, {"days": "2"})


def test_parallel_group_needs_required_approvals():
    group = [
        _step(1, 1, StepStatus.APPROVED, mode=ExecutionMode.PARALLEL, required_approvals=2),
        _step(1, 2, mode=ExecutionMode.PARALLEL, required_approvals=2),
        _step(1, 3, mode=ExecutionMode.PARALLEL, required_approvals=2),
    ]
    assert not group_complete(group)
    group[1] = group[1].with_status(StepStatus.APPROVED)
    assert group_complete(group)


def test_parallel_group_defaults_to_all():
    group = [
        _step(1, 1, StepStatus.APPROVED, mode=ExecutionMode.PARALLEL),
        _step(1, 2, mode=ExecutionMode.PARALLEL),
    ]
    assert not group_complete(group)
    assert group_complete([])


def test_next_open_order_skips_optional_and_done_groups():
    steps = [
        _step(1, 1, StepStatus.APPROVED),
        _step(2, 2, is_optional=True),
        _step(3, 3, StepStatus.SKIPPED),
        _step(4, 4),
    ]
    assert next_open_order(steps, 1) == 4
    assert next_open_order(steps, 4) is None

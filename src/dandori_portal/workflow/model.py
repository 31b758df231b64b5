from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Optional

from ..core.enums import (
    ApproverType,
    ConditionOperator,
    ExecutionMode,
    FlowType,
    StepStatus,
    Urgency,
    WorkflowStatus,
    WorkflowType,
)


def _dt(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


# ---- approval flow definitions -------------------------------------------------


@dataclass(frozen=True)
class FlowApprover:
    approver_type: ApproverType
    user_id: Optional[int] = None
    role: Optional[str] = None
    position_level: Optional[int] = None
    order: int = 1

    @classmethod
    def from_dict(cls, data: dict) -> "FlowApprover":
        return cls(
            approver_type=ApproverType(data.get("approver_type", "user")),
            user_id=int(data["user_id"]) if data.get("user_id") not in (None, "") else None,
            role=data.get("role") or None,
            position_level=int(data["position_level"]) if data.get("position_level") not in (None, "") else None,
            order=int(data.get("order") or 1),
        )

    def to_dict(self) -> dict:
        return {
            "approver_type": self.approver_type.value,
            "user_id": self.user_id,
            "role": self.role,
            "position_level": self.position_level,
            "order": self.order,
        }


@dataclass(frozen=True)
class FlowStep:
    step_number: int
    name: str
    execution_mode: ExecutionMode = ExecutionMode.SERIAL
    required_approvals: Optional[int] = None
    timeout_hours: Optional[int] = None
    allow_delegate: bool = True
    allow_skip: bool = False
    approvers: list[FlowApprover] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "FlowStep":
        return cls(
            step_number=int(data.get("step_number") or 0),
            name=str(data.get("name") or ""),
            execution_mode=ExecutionMode(data.get("execution_mode") or "serial"),
            required_approvals=int(data["required_approvals"]) if data.get("required_approvals") else None,
            timeout_hours=int(data["timeout_hours"]) if data.get("timeout_hours") else None,
            allow_delegate=bool(data.get("allow_delegate", True)),
            allow_skip=bool(data.get("allow_skip", False)),
            approvers=[FlowApprover.from_dict(a) for a in data.get("approvers") or []],
        )

    def to_dict(self) -> dict:
        return {
            "step_number": self.step_number,
            "name": self.name,
            "execution_mode": self.execution_mode.value,
            "required_approvals": self.required_approvals,
            "timeout_hours": self.timeout_hours,
            "allow_delegate": self.allow_delegate,
            "allow_skip": self.allow_skip,
            "approvers": [a.to_dict() for a in sorted(self.approvers, key=lambda a: a.order)],
        }


@dataclass(frozen=True)
class FlowCondition:
    field: str
    operator: ConditionOperator
    value: float
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "FlowCondition":
        return cls(
            field=str(data.get("field") or ""),
            operator=ConditionOperator(data.get("operator")),
            value=float(data.get("value")),
            description=data.get("description"),
        )

    def to_dict(self) -> dict:
        return {
            "field": self.field,
            "operator": self.operator.value,
            "value": self.value,
            "description": self.description,
        }


@dataclass(frozen=True)
class ApprovalFlow:
    id: int
    tenant_id: int
    name: str
    description: Optional[str]
    document_type: WorkflowType
    flow_type: FlowType
    use_organization_hierarchy: bool
    organization_levels: int
    is_active: bool
    is_default: bool
    priority: int
    created_by: Optional[int]
    steps: list[FlowStep]
    conditions: list[FlowCondition]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class ApprovalFlowSummary:
    """List view of a flow without step/condition bodies."""

    id: int
    name: str
    description: Optional[str]
    document_type: WorkflowType
    flow_type: FlowType
    is_active: bool
    is_default: bool
    priority: int
    step_count: int
    condition_count: int
    updated_at: Optional[datetime] = None


# ---- workflow requests ---------------------------------------------------------


@dataclass(frozen=True)
class ApprovalStep:
    """One approver slot; slots sharing an ``order`` form a group."""

    order: int
    approver_id: int
    approver_name: str
    approver_role: str
    status: StepStatus = StepStatus.PENDING
    mode: ExecutionMode = ExecutionMode.SERIAL
    required_approvals: Optional[int] = None
    is_optional: bool = False
    allow_delegate: bool = True
    deadline: Optional[datetime] = None
    acted_at: Optional[datetime] = None
    comment: Optional[str] = None
    delegated_from: Optional[int] = None
    escalated: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "ApprovalStep":
        return cls(
            order=int(data["order"]),
            approver_id=int(data["approver_id"]),
            approver_name=data.get("approver_name") or "",
            approver_role=data.get("approver_role") or "",
            status=StepStatus(data.get("status") or "pending"),
            mode=ExecutionMode(data.get("mode") or "serial"),
            required_approvals=data.get("required_approvals"),
            is_optional=bool(data.get("is_optional", False)),
            allow_delegate=bool(data.get("allow_delegate", True)),
            deadline=_dt(data.get("deadline")),
            acted_at=_dt(data.get("acted_at")),
            comment=data.get("comment"),
            delegated_from=data.get("delegated_from"),
            escalated=bool(data.get("escalated", False)),
        )

    def to_dict(self) -> dict:
        return {
            "order": self.order,
            "approver_id": self.approver_id,
            "approver_name": self.approver_name,
            "approver_role": self.approver_role,
            "status": self.status.value,
            "mode": self.mode.value,
            "required_approvals": self.required_approvals,
            "is_optional": self.is_optional,
            "allow_delegate": self.allow_delegate,
            "deadline": _iso(self.deadline),
            "acted_at": _iso(self.acted_at),
            "comment": self.comment,
            "delegated_from": self.delegated_from,
            "escalated": self.escalated,
        }

    def with_status(self, status: StepStatus, *, at: Optional[datetime] = None, comment: Optional[str] = None) -> "ApprovalStep":
        return replace(self, status=status, acted_at=at, comment=comment)


@dataclass(frozen=True)
class TimelineEntry:
    action: str
    actor_id: Optional[int]
    actor_name: str
    at: datetime
    comment: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "TimelineEntry":
        return cls(
            action=data["action"],
            actor_id=data.get("actor_id"),
            actor_name=data.get("actor_name") or "",
            at=_dt(data["at"]),
            comment=data.get("comment"),
        )

    def to_dict(self) -> dict:
        return {
            "action": self.action,
            "actor_id": self.actor_id,
            "actor_name": self.actor_name,
            "at": _iso(self.at),
            "comment": self.comment,
        }


@dataclass(frozen=True)
class WorkflowRequest:
    id: int
    tenant_id: int
    type: WorkflowType
    title: str
    description: Optional[str]
    requester_id: int
    requester_name: str
    department: Optional[str]
    details: dict
    urgency: Urgency
    status: WorkflowStatus
    current_step: int
    steps: list[ApprovalStep]
    timeline: list[TimelineEntry]
    flow_id: Optional[int] = None
    return_reason: Optional[str] = None
    returned_by: Optional[int] = None
    returned_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


@dataclass(frozen=True)
class OverdueStep:
    request_id: int
    title: str
    step_order: int
    approver_id: int
    deadline: datetime
    hours_overdue: float


@dataclass(frozen=True)
class BulkResult:
    id: int
    success: bool
    error: Optional[str] = None

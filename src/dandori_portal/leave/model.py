from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import LeaveStatus, LeaveType


@dataclass(frozen=True)
class LeaveRequest:
    id: int
    tenant_id: int
    user_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    days: float
    reason: Optional[str]
    status: LeaveStatus
    workflow_request_id: Optional[int] = None
    approver_id: Optional[int] = None
    decided_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class LeaveBalance:
    id: int
    tenant_id: int
    user_id: int
    year: int
    granted: float
    used: float
    remaining: float


@dataclass(frozen=True)
class LeaveStats:
    year: Optional[int]
    total_requests: int
    approved_days: float
    on_leave_today: int
    by_status: dict[str, int] = field(default_factory=dict)
    by_type: dict[str, int] = field(default_factory=dict)
    by_month: dict[str, int] = field(default_factory=dict)
    by_department: dict[str, int] = field(default_factory=dict)
    pending_requests: list[LeaveRequest] = field(default_factory=list)

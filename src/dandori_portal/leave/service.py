from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime
from typing import Any, Optional

from ..common.auth import CurrentUser
from ..common.datetime_utils import now_local, to_date
from ..common.pagination import Page, PageRequest
from ..common.validators import parse_enum, to_int
from ..core.constants import DEFAULT_PAID_LEAVE_DAYS, HALF_DAY, NO_DEPARTMENT_LABEL, PENDING_LEAVE_PREVIEW
from ..core.enums import LeaveStatus, LeaveType, UserRole, WorkflowStatus, WorkflowType
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.repository import UserRepository
from ..workflow.model import WorkflowRequest
from ..workflow.service import WorkflowService
from .model import LeaveBalance, LeaveRequest, LeaveStats
from .repository import LeaveRepository

logger = logging.getLogger(__name__)

_DIRECT_APPROVERS = (UserRole.MANAGER, UserRole.HR, UserRole.ADMIN)
_LEAVE_LABELS = {
    LeaveType.PAID: "有給休暇",
    LeaveType.SICK: "病気休暇",
    LeaveType.SPECIAL: "特別休暇",
    LeaveType.COMPENSATORY: "代休",
    LeaveType.HALF_DAY_AM: "午前半休",
    LeaveType.HALF_DAY_PM: "午後半休",
}


def request_days(leave_type: LeaveType, start: date, end: date) -> float:
    if end < start:
        raise ValidationError("終了日は開始日以降を指定してください")
    if leave_type.is_half_day:
        if start != end:
            raise ValidationError("半休は開始日と終了日を同じ日にしてください")
        return HALF_DAY
    return float((end - start).days + 1)


class LeaveService:
    def __init__(self, leaves: LeaveRepository, users: UserRepository, workflow: WorkflowService):
        self._leaves = leaves
        self._users = users
        self._workflow = workflow
        workflow.on_decided(self._sync_from_workflow)

    def _sync_from_workflow(self, flow: WorkflowRequest, actor: CurrentUser) -> None:
        """Mirror a final decision on a leave_request workflow onto its leave."""
        leave_id = flow.details.get("leave_request_id")
        if flow.type != WorkflowType.LEAVE_REQUEST or leave_id is None:
            return
        leave = self._leaves.get(flow.tenant_id, int(leave_id))
        if not leave or leave.status != LeaveStatus.PENDING:
            return

        decided_at = flow.completed_at or now_local()
        if flow.status == WorkflowStatus.APPROVED:
            self._mark_approved(flow.tenant_id, leave, approver_id=actor.user_id, now=decided_at)
        elif flow.status == WorkflowStatus.REJECTED:
            reason = next((e.comment for e in reversed(flow.timeline) if e.action == "rejected"), None)
            self._leaves.update(
                flow.tenant_id,
                leave.id,
                {
                    "status": LeaveStatus.REJECTED,
                    "approver_id": actor.user_id,
                    "decided_at": decided_at,
                    "rejection_reason": reason,
                },
            )
            logger.info("Leave request rejected id=%s", leave.id)
        elif flow.status == WorkflowStatus.CANCELLED:
            self._leaves.update(flow.tenant_id, leave.id, {"status": LeaveStatus.CANCELLED})

    def get(self, tenant_id: int, request_id: int) -> LeaveRequest:
        leave = self._leaves.get(tenant_id, request_id)
        if not leave:
            raise NotFoundError("休暇申請が見つかりません")
        return leave

    def list_requests(
        self,
        tenant_id: int,
        *,
        user_id: Optional[int] = None,
        status: Optional[str] = None,
        request: Optional[PageRequest] = None,
    ) -> Page[LeaveRequest]:
        return self._leaves.list(
            tenant_id,
            user_id=user_id,
            status=parse_enum(LeaveStatus, status, "status") if status else None,
            request=request or PageRequest(),
        )

    def get_balance(self, tenant_id: int, user_id: int, year: int) -> LeaveBalance:
        balance = self._leaves.get_balance(tenant_id, user_id, year)
        if balance is None:
            balance = self._leaves.create_balance(tenant_id, user_id, year, float(DEFAULT_PAID_LEAVE_DAYS))
        return balance

    def create_request(
        self,
        tenant_id: int,
        actor: CurrentUser,
        *,
        leave_type: Any,
        start_date: Any,
        end_date: Any,
        reason: Optional[str] = None,
        draft: bool = False,
        now: Optional[datetime] = None,
    ) -> LeaveRequest:
        leave_type = parse_enum(LeaveType, leave_type, "leave_type")
        start = to_date(start_date, "start_date")
        end = to_date(end_date, "end_date")
        days = request_days(leave_type, start, end)

        if leave_type.uses_paid_balance:
            balance = self.get_balance(tenant_id, actor.user_id, start.year)
            if balance.remaining < days:
                raise ValidationError(f"有給休暇の残日数が不足しています（残り{balance.remaining:g}日）")

        leave = self._leaves.create(
            tenant_id,
            {
                "user_id": actor.user_id,
                "leave_type": leave_type,
                "start_date": start,
                "end_date": end,
                "days": days,
                "reason": reason,
                "status": LeaveStatus.DRAFT,
            },
        )
        logger.info("Leave request created id=%s user_id=%s days=%s", leave.id, actor.user_id, days)
        if draft:
            return leave
        return self._start_workflow(tenant_id, leave, now=now)

    def submit(self, tenant_id: int, actor: CurrentUser, request_id: int, *, now: Optional[datetime] = None) -> LeaveRequest:
        leave = self.get(tenant_id, request_id)
        if leave.user_id != actor.user_id:
            raise AuthorizationError("申請者のみ提出できます")
        if leave.status != LeaveStatus.DRAFT:
            raise ValidationError("下書きの申請のみ提出できます")
        return self._start_workflow(tenant_id, leave, now=now)

    def _start_workflow(self, tenant_id: int, leave: LeaveRequest, *, now: Optional[datetime] = None) -> LeaveRequest:
        label = _LEAVE_LABELS[leave.leave_type]
        flow = self._workflow.create_request(
            tenant_id,
            {
                "requester_id": leave.user_id,
                "type": WorkflowType.LEAVE_REQUEST.value,
                "title": f"{label} {leave.start_date.isoformat()}〜{leave.end_date.isoformat()}",
                "description": leave.reason,
                "details": {
                    "leave_type": leave.leave_type.value,
                    "days": leave.days,
                    "start_date": leave.start_date.isoformat(),
                    "end_date": leave.end_date.isoformat(),
                    "leave_request_id": leave.id,
                },
            },
            now=now,
        )
        leave = self._leaves.update(
            tenant_id, leave.id, {"status": LeaveStatus.PENDING, "workflow_request_id": flow.id}
        )
        if flow.status == WorkflowStatus.APPROVED:
            leave = self._mark_approved(tenant_id, leave, approver_id=None, now=flow.completed_at or now_local())
        return leave

    def _mark_approved(self, tenant_id: int, leave: LeaveRequest, *, approver_id: Optional[int], now: datetime) -> LeaveRequest:
        if leave.leave_type.uses_paid_balance:
            self.get_balance(tenant_id, leave.user_id, leave.start_date.year)
            self._leaves.add_used(tenant_id, leave.user_id, leave.start_date.year, leave.days)
        logger.info("Leave request approved id=%s", leave.id)
        return self._leaves.update(
            tenant_id,
            leave.id,
            {"status": LeaveStatus.APPROVED, "approver_id": approver_id, "decided_at": now},
        )

    def approve(
        self,
        tenant_id: int,
        approver: CurrentUser,
        request_id: int,
        *,
        comment: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> LeaveRequest:
        now = now or now_local()
        leave = self.get(tenant_id, request_id)
        if leave.status != LeaveStatus.PENDING:
            raise ValidationError("承認待ちの申請ではありません")

        if leave.workflow_request_id:
            self._workflow.approve(tenant_id, approver, leave.workflow_request_id, comment=comment, now=now)
            return self.get(tenant_id, leave.id)
        if approver.role not in _DIRECT_APPROVERS:
            raise AuthorizationError("この申請を承認する権限がありません")

        return self._mark_approved(tenant_id, leave, approver_id=approver.user_id, now=now)

    def reject(
        self,
        tenant_id: int,
        approver: CurrentUser,
        request_id: int,
        *,
        reason: Optional[str],
        now: Optional[datetime] = None,
    ) -> LeaveRequest:
        if not reason or not str(reason).strip():
            raise ValidationError("却下理由は必須です", required=["reason"])
        now = now or now_local()
        leave = self.get(tenant_id, request_id)
        if leave.status != LeaveStatus.PENDING:
            raise ValidationError("承認待ちの申請ではありません")

        if leave.workflow_request_id:
            self._workflow.reject(tenant_id, approver, leave.workflow_request_id, reason=reason, now=now)
            return self.get(tenant_id, leave.id)
        if approver.role not in _DIRECT_APPROVERS:
            raise AuthorizationError("この申請を却下する権限がありません")

        return self._leaves.update(
            tenant_id,
            leave.id,
            {
                "status": LeaveStatus.REJECTED,
                "approver_id": approver.user_id,
                "decided_at": now,
                "rejection_reason": reason,
            },
        )

    def cancel(self, tenant_id: int, actor: CurrentUser, request_id: int, *, now: Optional[datetime] = None) -> LeaveRequest:
        leave = self.get(tenant_id, request_id)
        if leave.user_id != actor.user_id and actor.role not in (UserRole.HR, UserRole.ADMIN):
            raise AuthorizationError("この申請を取り消す権限がありません")
        if leave.status in (LeaveStatus.REJECTED, LeaveStatus.CANCELLED):
            raise ValidationError("この申請は取り消しできません")

        if leave.status == LeaveStatus.APPROVED and leave.leave_type.uses_paid_balance:
            self.get_balance(tenant_id, leave.user_id, leave.start_date.year)
            self._leaves.add_used(tenant_id, leave.user_id, leave.start_date.year, -leave.days)

        if leave.workflow_request_id:
            flow = self._workflow.get(tenant_id, leave.workflow_request_id)
            if not flow.status.is_final:
                self._workflow.cancel(tenant_id, actor, flow.id, on_behalf=True, now=now)

        return self._leaves.update(tenant_id, leave.id, {"status": LeaveStatus.CANCELLED})

    def stats(self, tenant_id: int, *, year: Optional[int] = None, today: Optional[date] = None) -> LeaveStats:
        today = today or now_local().date()
        requests = list(self._leaves.list_for_year(tenant_id, year))
        departments = {
            u.id: u.department or NO_DEPARTMENT_LABEL
            for u in self._users.list_by_ids(tenant_id, {r.user_id for r in requests})
        }

        approved = [r for r in requests if r.status == LeaveStatus.APPROVED]
        pending = sorted(
            (r for r in requests if r.status == LeaveStatus.PENDING),
            key=lambda r: (r.created_at or datetime.min, r.id),
        )
        return LeaveStats(
            year=year,
            total_requests=len(requests),
            approved_days=sum(r.days for r in approved),
            on_leave_today=len({r.user_id for r in approved if r.start_date <= today <= r.end_date}),
            by_status=dict(Counter(r.status.value for r in requests)),
            by_type=dict(Counter(r.leave_type.value for r in requests)),
            by_month=dict(sorted(Counter(r.start_date.strftime("%Y-%m") for r in requests).items())),
            by_department=dict(Counter(departments.get(r.user_id, NO_DEPARTMENT_LABEL) for r in requests)),
            pending_requests=pending[:PENDING_LEAVE_PREVIEW],
        )


def parse_year(value: Any, default: int) -> int:
    return to_int(value, "year", default=default, minimum=1900)

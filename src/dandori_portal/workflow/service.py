"""Approval engine: builds approver chains and moves requests through them.

Steps sharing an ``order`` form a group. ``current_step`` holds the order of
the group being decided; serial groups have one approver, parallel groups
complete once ``required_approvals`` of their approvers have approved.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from ..common.auth import CurrentUser
from ..common.datetime_utils import now_local
from ..common.pagination import Page, PageRequest, paginate_list
from ..common.validators import parse_enum, to_int
from ..core.constants import ESCALATION_CHAIN, ESCALATION_DEADLINE_HOURS
from ..core.enums import (
    ApproverType,
    ExecutionMode,
    NotificationPriority,
    StepStatus,
    Urgency,
    UserRole,
    WorkflowStatus,
    WorkflowType,
)
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..notifications.service import NotificationService
from ..organization.service import OrganizationService
from ..users.model import User
from ..users.repository import UserRepository
from .flows import ApprovalFlowService
from .model import ApprovalFlow, ApprovalStep, BulkResult, FlowApprover, OverdueStep, TimelineEntry, WorkflowRequest
from .repository import WorkflowRequestRepository
from .rules import (
    current_group,
    deadline_for,
    evaluate_conditional_rules,
    group_complete,
    group_orders,
    next_open_order,
    should_auto_approve,
)

logger = logging.getLogger(__name__)

DecisionListener = Callable[[WorkflowRequest, CurrentUser], None]

_TYPE_LABELS = {
    WorkflowType.LEAVE_REQUEST: "休暇申請",
    WorkflowType.OVERTIME_REQUEST: "残業申請",
    WorkflowType.EXPENSE_CLAIM: "経費精算",
    WorkflowType.BUSINESS_TRIP: "出張申請",
    WorkflowType.PURCHASE_REQUEST: "購買申請",
    WorkflowType.ATTENDANCE_CORRECTION: "勤怠修正",
}


def _step(user: User, order: int, deadline: datetime, **kwargs: Any) -> ApprovalStep:
    return ApprovalStep(
        order=order,
        approver_id=user.id,
        approver_name=user.name,
        approver_role=user.role.value,
        deadline=deadline,
        **kwargs,
    )


class WorkflowService:
    def __init__(
        self,
        requests: WorkflowRequestRepository,
        users: UserRepository,
        organization: OrganizationService,
        flows: ApprovalFlowService,
        notifications: NotificationService,
    ):
        self._requests = requests
        self._users = users
        self._organization = organization
        self._flows = flows
        self._notifications = notifications
        self._decision_listeners: list[DecisionListener] = []

    def on_decided(self, listener: DecisionListener) -> None:
        """Register a callback run after a request is finally approved, rejected or cancelled."""
        self._decision_listeners.append(listener)

    def _decided(self, request: WorkflowRequest, actor: CurrentUser) -> None:
        for listener in self._decision_listeners:
            listener(request, actor)

    # ---- chain building --------------------------------------------------------

    def build_approval_chain(
        self,
        requester: User,
        kind: WorkflowType,
        details: Mapping[str, Any],
        urgency: Urgency,
        *,
        now: Optional[datetime] = None,
    ) -> list[ApprovalStep]:
        now = now or now_local()
        flow = self._flows.find_applicable_flow(requester.tenant_id, kind, details)
        if flow is not None:
            return self._chain_from_flow(flow, requester, urgency, now)
        return self._builtin_chain(requester, kind, details, urgency, now)

    def _manager_of(self, requester: User) -> Optional[User]:
        if requester.manager_id:
            manager = self._users.get(requester.tenant_id, requester.manager_id)
            if manager and manager.is_active:
                return manager
        managers = self._organization.managers_for(requester.tenant_id, requester.id)
        return managers[0] if managers else None

    def _builtin_chain(
        self,
        requester: User,
        kind: WorkflowType,
        details: Mapping[str, Any],
        urgency: Urgency,
        now: datetime,
    ) -> list[ApprovalStep]:
        decision = evaluate_conditional_rules(kind, details, now.date())
        deadline = deadline_for(urgency, now)
        approvers: list[User] = []

        if requester.role != UserRole.MANAGER:
            manager = self._manager_of(requester)
            if manager:
                approvers.append(manager)

        wants_hr = decision.needs_hr or kind == WorkflowType.LEAVE_REQUEST or urgency == Urgency.HIGH
        if wants_hr and requester.role != UserRole.HR:
            hr = self._users.first_active_with_role(requester.tenant_id, UserRole.HR)
            if hr:
                approvers.append(hr)

        if decision.needs_admin and requester.role != UserRole.ADMIN:
            admin = self._users.first_active_with_role(requester.tenant_id, UserRole.ADMIN)
            if admin:
                approvers.append(admin)

        steps: list[ApprovalStep] = []
        seen: set[int] = set()
        for approver in approvers:
            if approver.id == requester.id or approver.id in seen:
                continue
            seen.add(approver.id)
            steps.append(_step(approver, len(steps) + 1, deadline))
        return steps

    def _resolve(self, approver: FlowApprover, requester: User) -> Optional[User]:
        tenant_id = requester.tenant_id
        if approver.approver_type == ApproverType.USER and approver.user_id:
            user = self._users.get(tenant_id, approver.user_id)
            return user if user and user.is_active else None
        if approver.approver_type == ApproverType.ROLE and approver.role:
            try:
                role = UserRole(approver.role)
            except ValueError:
                return None
            return self._users.first_active_with_role(tenant_id, role)
        if approver.approver_type == ApproverType.MANAGER:
            return self._manager_of(requester)
        if approver.approver_type == ApproverType.POSITION:
            managers = self._organization.managers_for(tenant_id, requester.id)
            level = approver.position_level or 1
            return managers[level - 1] if 0 < level <= len(managers) else None
        return None

    def _chain_from_flow(
        self, flow: ApprovalFlow, requester: User, urgency: Urgency, now: datetime
    ) -> list[ApprovalStep]:
        steps: list[ApprovalStep] = []
        order = 0

        if flow.use_organization_hierarchy and flow.organization_levels > 0:
            deadline = deadline_for(urgency, now)
            for manager in self._organization.managers_for(requester.tenant_id, requester.id)[: flow.organization_levels]:
                order += 1
                steps.append(_step(manager, order, deadline))

        for flow_step in sorted(flow.steps, key=lambda s: s.step_number):
            deadline = now + timedelta(hours=flow_step.timeout_hours) if flow_step.timeout_hours else deadline_for(urgency, now)
            resolved: list[User] = []
            for approver in sorted(flow_step.approvers, key=lambda a: a.order):
                user = self._resolve(approver, requester)
                if user and user.id != requester.id and all(u.id != user.id for u in resolved):
                    resolved.append(user)
            if not resolved:
                continue

            common = {"allow_delegate": flow_step.allow_delegate, "is_optional": flow_step.allow_skip}
            if flow_step.execution_mode == ExecutionMode.PARALLEL:
                order += 1
                required = min(flow_step.required_approvals or len(resolved), len(resolved))
                for user in resolved:
                    steps.append(
                        _step(user, order, deadline, mode=ExecutionMode.PARALLEL, required_approvals=required, **common)
                    )
            else:
                for user in resolved:
                    order += 1
                    steps.append(_step(user, order, deadline, **common))
        return steps

    # ---- lookups ---------------------------------------------------------------

    def get(self, tenant_id: int, request_id: int) -> WorkflowRequest:
        request = self._requests.get(tenant_id, request_id)
        if not request:
            raise NotFoundError("申請が見つかりません")
        return request

    def list_requests(
        self,
        tenant_id: int,
        *,
        status: Optional[str] = None,
        type: Optional[str] = None,
        requester_id: Optional[int] = None,
        approver_id: Optional[int] = None,
        request: Optional[PageRequest] = None,
    ) -> Page[WorkflowRequest]:
        items: Iterable[WorkflowRequest] = self._requests.list(
            tenant_id,
            status=parse_enum(WorkflowStatus, status, "status") if status and status != "all" else None,
            type=parse_enum(WorkflowType, type, "type") if type else None,
            requester_id=requester_id,
        )
        if approver_id is not None:
            items = [
                r for r in items
                if any(s.approver_id == approver_id and s.status == StepStatus.PENDING for s in r.steps)
            ]
        return paginate_list(list(items), request or PageRequest())

    def pending_for_user(self, tenant_id: int, user_id: int) -> list[WorkflowRequest]:
        return [
            r for r in self._requests.list_open(tenant_id)
            if any(s.approver_id == user_id and s.status == StepStatus.PENDING for s in current_group(r))
        ]

    def check_overdue(self, tenant_id: int, *, now: Optional[datetime] = None) -> list[OverdueStep]:
        now = now or now_local()
        overdue: list[OverdueStep] = []
        for request in self._requests.list_open(tenant_id):
            for step in current_group(request):
                if step.status != StepStatus.PENDING or not step.deadline or step.deadline >= now:
                    continue
                overdue.append(
                    OverdueStep(
                        request_id=request.id,
                        title=request.title,
                        step_order=step.order,
                        approver_id=step.approver_id,
                        deadline=step.deadline,
                        hours_overdue=round((now - step.deadline).total_seconds() / 3600, 1),
                    )
                )
        return overdue

    # ---- lifecycle -------------------------------------------------------------

    def create_request(
        self,
        tenant_id: int,
        payload: Mapping[str, Any],
        *,
        draft: bool = False,
        now: Optional[datetime] = None,
    ) -> WorkflowRequest:
        missing = [f for f in ("requester_id", "type", "title") if payload.get(f) in (None, "")]
        if missing:
            raise ValidationError(f"{', '.join(missing)}は必須です", required=missing)

        now = now or now_local()
        requester = self._users.get(tenant_id, to_int(payload["requester_id"], "requester_id"))
        if not requester:
            raise NotFoundError("申請者が見つかりません")
        kind = parse_enum(WorkflowType, payload["type"], "type")
        urgency = parse_enum(Urgency, payload.get("urgency") or Urgency.NORMAL.value, "urgency")
        details = dict(payload.get("details") or {})

        steps = self.build_approval_chain(requester, kind, details, urgency, now=now)
        request = self._requests.create(
            tenant_id,
            {
                "type": kind,
                "title": str(payload["title"]).strip(),
                "description": payload.get("description"),
                "requester_id": requester.id,
                "requester_name": requester.name,
                "department": requester.department,
                "details": details,
                "urgency": urgency,
                "status": WorkflowStatus.DRAFT,
                "current_step": steps[0].order if steps else 1,
                "steps": steps,
                "timeline": [TimelineEntry("created", requester.id, requester.name, now)],
                "flow_id": payload.get("flow_id"),
            },
        )
        logger.info("Workflow request created id=%s type=%s steps=%s", request.id, kind.value, len(steps))
        if draft:
            return request
        return self._start(request, requester.id, requester.name, now)

    def _start(self, request: WorkflowRequest, actor_id: int, actor_name: str, now: datetime) -> WorkflowRequest:
        if should_auto_approve(request.type, request.details) or not request.steps:
            request = replace(
                request,
                status=WorkflowStatus.APPROVED,
                completed_at=now,
                steps=[s.with_status(StepStatus.SKIPPED, at=now) for s in request.steps],
                timeline=request.timeline + [TimelineEntry("auto_approved", None, "system", now)],
            )
            saved = self._requests.save(request)
            logger.info("Workflow request auto-approved id=%s", saved.id)
            return saved

        deadline = deadline_for(request.urgency, now)
        fresh = request.status == WorkflowStatus.DRAFT
        steps = [
            replace(
                s,
                status=StepStatus.PENDING,
                acted_at=None,
                comment=None,
                deadline=s.deadline if fresh and s.deadline else deadline,
            )
            for s in request.steps
        ]
        request = replace(
            request,
            status=WorkflowStatus.PENDING,
            current_step=group_orders(steps)[0],
            steps=steps,
            timeline=request.timeline + [TimelineEntry("submitted", actor_id, actor_name, now)],
        )
        saved = self._requests.save(request)
        self._notify_current_approvers(saved)
        return saved

    def submit(self, tenant_id: int, actor: CurrentUser, request_id: int, *, now: Optional[datetime] = None) -> WorkflowRequest:
        request = self.get(tenant_id, request_id)
        if request.requester_id != actor.user_id:
            raise AuthorizationError("申請者のみ提出できます")
        if request.status not in (WorkflowStatus.DRAFT, WorkflowStatus.RETURNED):
            raise ValidationError("下書きまたは差し戻し中の申請のみ提出できます")
        return self._start(request, actor.user_id, actor.name, now or now_local())

    def _own_pending_step(self, request: WorkflowRequest, user_id: int) -> ApprovalStep:
        if not request.status.is_open:
            raise ValidationError("この申請は承認待ちではありません")
        for step in current_group(request):
            if step.approver_id == user_id and step.status == StepStatus.PENDING:
                return step
        raise AuthorizationError("この申請を承認する権限がありません")

    def _replace_step(self, request: WorkflowRequest, old: ApprovalStep, new: ApprovalStep) -> list[ApprovalStep]:
        return [new if s is old else s for s in request.steps]

    def approve(
        self,
        tenant_id: int,
        approver: CurrentUser,
        request_id: int,
        *,
        comment: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> WorkflowRequest:
        now = now or now_local()
        request = self.get(tenant_id, request_id)
        step = self._own_pending_step(request, approver.user_id)

        steps = self._replace_step(request, step, step.with_status(StepStatus.APPROVED, at=now, comment=comment))
        timeline = request.timeline + [TimelineEntry("approved", approver.user_id, approver.name, now, comment)]
        request = replace(request, steps=steps, timeline=timeline)

        group = current_group(request)
        if not group_complete(group):
            saved = self._requests.save(replace(request, status=WorkflowStatus.PARTIALLY_APPROVED))
            return saved

        steps = [
            s.with_status(StepStatus.SKIPPED, at=now) if s.order == request.current_step and s.status == StepStatus.PENDING else s
            for s in request.steps
        ]
        following = next_open_order(steps, request.current_step)
        if following is None:
            steps = [s.with_status(StepStatus.SKIPPED, at=now) if s.status == StepStatus.PENDING else s for s in steps]
            saved = self._requests.save(
                replace(request, steps=steps, status=WorkflowStatus.APPROVED, completed_at=now)
            )
            logger.info("Workflow request approved id=%s", saved.id)
            self._notify_requester(saved, "承認されました")
            self._decided(saved, approver)
            return saved

        saved = self._requests.save(
            replace(request, steps=steps, status=WorkflowStatus.PARTIALLY_APPROVED, current_step=following)
        )
        self._notify_requester(saved, "一部承認されました")
        self._notify_current_approvers(saved)
        return saved

    def reject(
        self,
        tenant_id: int,
        approver: CurrentUser,
        request_id: int,
        *,
        reason: Optional[str],
        now: Optional[datetime] = None,
    ) -> WorkflowRequest:
        if not reason or not str(reason).strip():
            raise ValidationError("却下理由は必須です", required=["reason"])
        now = now or now_local()
        request = self.get(tenant_id, request_id)
        step = self._own_pending_step(request, approver.user_id)

        saved = self._requests.save(
            replace(
                request,
                steps=self._replace_step(request, step, step.with_status(StepStatus.REJECTED, at=now, comment=reason)),
                status=WorkflowStatus.REJECTED,
                completed_at=now,
                timeline=request.timeline + [TimelineEntry("rejected", approver.user_id, approver.name, now, reason)],
            )
        )
        logger.info("Workflow request rejected id=%s by=%s", saved.id, approver.user_id)
        self._notify_requester(saved, "却下されました", message=reason, priority=NotificationPriority.HIGH)
        self._decided(saved, approver)
        return saved

    def return_to_sender(
        self,
        tenant_id: int,
        approver: CurrentUser,
        request_id: int,
        *,
        reason: Optional[str],
        now: Optional[datetime] = None,
    ) -> WorkflowRequest:
        if not reason or not str(reason).strip():
            raise ValidationError("差し戻し理由は必須です", required=["reason"])
        now = now or now_local()
        request = self.get(tenant_id, request_id)
        self._own_pending_step(request, approver.user_id)

        steps = [replace(s, status=StepStatus.PENDING, acted_at=None, comment=None) for s in request.steps]
        saved = self._requests.save(
            replace(
                request,
                steps=steps,
                current_step=group_orders(steps)[0],
                status=WorkflowStatus.RETURNED,
                return_reason=reason,
                returned_by=approver.user_id,
                returned_at=now,
                timeline=request.timeline + [TimelineEntry("returned", approver.user_id, approver.name, now, reason)],
            )
        )
        self._notify_requester(saved, "差し戻されました", message=reason)
        return saved

    def cancel(
        self,
        tenant_id: int,
        actor: CurrentUser,
        request_id: int,
        *,
        on_behalf: bool = False,
        now: Optional[datetime] = None,
    ) -> WorkflowRequest:
        """Withdraw a request; ``on_behalf`` lets a linked leave cancellation skip the requester check."""
        now = now or now_local()
        request = self.get(tenant_id, request_id)
        if not on_behalf and request.requester_id != actor.user_id:
            raise AuthorizationError("申請者のみ取り消しできます")
        if request.status.is_final:
            raise ValidationError("この申請は取り消しできません")
        saved = self._requests.save(
            replace(
                request,
                status=WorkflowStatus.CANCELLED,
                completed_at=now,
                timeline=request.timeline + [TimelineEntry("cancelled", actor.user_id, actor.name, now)],
            )
        )
        self._decided(saved, actor)
        return saved

    def delegate(
        self,
        tenant_id: int,
        approver: CurrentUser,
        request_id: int,
        *,
        delegate_to: Any,
        now: Optional[datetime] = None,
    ) -> WorkflowRequest:
        now = now or now_local()
        request = self.get(tenant_id, request_id)
        step = self._own_pending_step(request, approver.user_id)
        if not step.allow_delegate:
            raise ValidationError("このステップは代理承認を許可していません")

        delegate = self._users.get(tenant_id, to_int(delegate_to, "delegate_to"))
        if not delegate or not delegate.is_active:
            raise ValidationError("代理承認者が見つかりません")
        if delegate.id in (approver.user_id, request.requester_id):
            raise ValidationError("この代理承認者は指定できません")

        moved = replace(
            step,
            approver_id=delegate.id,
            approver_name=delegate.name,
            approver_role=delegate.role.value,
            delegated_from=approver.user_id,
        )
        saved = self._requests.save(
            replace(
                request,
                steps=self._replace_step(request, step, moved),
                timeline=request.timeline
                + [TimelineEntry("delegated", approver.user_id, approver.name, now, f"{delegate.name}に委任")],
            )
        )
        self._notifications.notify(
            tenant_id,
            delegate.id,
            title=f"承認依頼が委任されました: {saved.title}",
            related_type="workflow",
            related_id=saved.id,
        )
        return saved

    def escalate(
        self,
        tenant_id: int,
        request_id: int,
        *,
        actor: Optional[CurrentUser] = None,
        now: Optional[datetime] = None,
    ) -> WorkflowRequest:
        now = now or now_local()
        request = self.get(tenant_id, request_id)
        if not request.status.is_open:
            raise ValidationError("この申請は承認待ちではありません")

        targets = [s for s in current_group(request) if s.status == StepStatus.PENDING]
        replacements: dict[int, ApprovalStep] = {}
        for step in targets:
            role = step.approver_role if step.approver_role in ESCALATION_CHAIN else ESCALATION_CHAIN[0]
            index = ESCALATION_CHAIN.index(role)
            if index == len(ESCALATION_CHAIN) - 1:
                raise ValidationError("これ以上エスカレーションできません")
            next_role = UserRole(ESCALATION_CHAIN[index + 1])
            user = self._users.first_active_with_role(tenant_id, next_role)
            if not user:
                raise ValidationError("エスカレーション先の承認者が見つかりません")
            replacements[id(step)] = replace(
                step,
                approver_id=user.id,
                approver_name=user.name,
                approver_role=user.role.value,
                deadline=now + timedelta(hours=ESCALATION_DEADLINE_HOURS),
                escalated=True,
            )

        steps = [replacements.get(id(s), s) for s in request.steps]
        saved = self._requests.save(
            replace(
                request,
                steps=steps,
                timeline=request.timeline
                + [TimelineEntry("escalated", actor.user_id if actor else None, actor.name if actor else "system", now)],
            )
        )
        logger.info("Workflow request escalated id=%s", saved.id)
        self._notify_current_approvers(saved, priority=NotificationPriority.HIGH)
        return saved

    def bulk_approve(
        self, tenant_id: int, approver: CurrentUser, ids: Sequence[Any], *, comment: Optional[str] = None
    ) -> list[BulkResult]:
        return self._bulk(ids, lambda rid: self.approve(tenant_id, approver, rid, comment=comment))

    def bulk_reject(
        self, tenant_id: int, approver: CurrentUser, ids: Sequence[Any], *, reason: Optional[str]
    ) -> list[BulkResult]:
        return self._bulk(ids, lambda rid: self.reject(tenant_id, approver, rid, reason=reason))

    def _bulk(self, ids: Sequence[Any], action) -> list[BulkResult]:
        results: list[BulkResult] = []
        for raw in ids or []:
            try:
                request_id = to_int(raw, "id")
                action(request_id)
                results.append(BulkResult(id=request_id, success=True))
            except (ValidationError, AuthorizationError, NotFoundError) as e:
                results.append(BulkResult(id=raw, success=False, error=str(e)))
        return results

    # ---- notifications ---------------------------------------------------------

    def _notify_current_approvers(self, request: WorkflowRequest, *, priority: Any = None) -> None:
        label = _TYPE_LABELS.get(request.type, "申請")
        for step in current_group(request):
            if step.status != StepStatus.PENDING:
                continue
            self._notifications.notify(
                request.tenant_id,
                step.approver_id,
                title=f"承認依頼: {label}",
                message=f"{request.requester_name}さんの「{request.title}」が承認待ちです",
                priority=priority or (NotificationPriority.HIGH if request.urgency == Urgency.HIGH else NotificationPriority.NORMAL),
                related_type="workflow",
                related_id=request.id,
            )

    def _notify_requester(self, request: WorkflowRequest, outcome: str, *, message: Optional[str] = None, priority: Any = NotificationPriority.NORMAL) -> None:
        self._notifications.notify(
            request.tenant_id,
            request.requester_id,
            title=f"「{request.title}」が{outcome}",
            message=message,
            priority=priority,
            related_type="workflow",
            related_id=request.id,
        )

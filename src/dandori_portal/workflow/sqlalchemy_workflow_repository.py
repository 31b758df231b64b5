from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..common.pagination import Page, PageRequest
from ..core.enums import WorkflowStatus, WorkflowType
from ..core.exceptions import NotFoundError
from ..database.mapping import assign_columns, row_to_model
from ..database.repository_base import SQLAlchemyRepository
from ..database.session import session_scope
from ..database.tables.workflow import ApprovalFlowRow, WorkflowRequestRow
from .model import ApprovalFlow, ApprovalStep, FlowCondition, FlowStep, TimelineEntry, WorkflowRequest
from .repository import ApprovalFlowRepository, WorkflowRequestRepository

_OPEN = (WorkflowStatus.PENDING.value, WorkflowStatus.PARTIALLY_APPROVED.value)


def _flow(row: ApprovalFlowRow) -> ApprovalFlow:
    return row_to_model(
        ApprovalFlow,
        row,
        steps=[FlowStep.from_dict(s) for s in row.steps or []],
        conditions=[FlowCondition.from_dict(c) for c in row.conditions or []],
    )


def _flow_columns(values: Mapping[str, Any]) -> dict[str, Any]:
    out = dict(values)
    if "steps" in out:
        out["steps"] = [s.to_dict() if isinstance(s, FlowStep) else s for s in out["steps"]]
    if "conditions" in out:
        out["conditions"] = [c.to_dict() if isinstance(c, FlowCondition) else c for c in out["conditions"]]
    return out


def _request(row: WorkflowRequestRow) -> WorkflowRequest:
    return row_to_model(
        WorkflowRequest,
        row,
        details=dict(row.details or {}),
        steps=[ApprovalStep.from_dict(s) for s in row.steps or []],
        timeline=[TimelineEntry.from_dict(t) for t in row.timeline or []],
    )


def _request_columns(values: Mapping[str, Any]) -> dict[str, Any]:
    out = dict(values)
    if "steps" in out:
        out["steps"] = [s.to_dict() for s in out["steps"]]
    if "timeline" in out:
        out["timeline"] = [t.to_dict() for t in out["timeline"]]
    return out


class SQLAlchemyApprovalFlowRepository(SQLAlchemyRepository, ApprovalFlowRepository):
    def list(
        self,
        tenant_id: int,
        *,
        document_type: Optional[WorkflowType] = None,
        is_active: Optional[bool] = None,
        request: Optional[PageRequest] = None,
    ) -> Page[ApprovalFlow]:
        query = self._session.query(ApprovalFlowRow).filter(ApprovalFlowRow.tenant_id == tenant_id)
        if document_type is not None:
            query = query.filter(ApprovalFlowRow.document_type == document_type.value)
        if is_active is not None:
            query = query.filter(ApprovalFlowRow.is_active.is_(is_active))
        query = query.order_by(ApprovalFlowRow.priority.desc(), ApprovalFlowRow.id)
        return self._page(query, request or PageRequest(limit=1000), ApprovalFlow, convert=_flow)

    def get(self, tenant_id: int, flow_id: int) -> Optional[ApprovalFlow]:
        row = self._tenant_row(ApprovalFlowRow, tenant_id, flow_id)
        return _flow(row) if row else None

    def create(self, tenant_id: int, values: Mapping[str, Any]) -> ApprovalFlow:
        with session_scope(self._db) as s:
            row = ApprovalFlowRow(tenant_id=tenant_id)
            assign_columns(row, _flow_columns(values))
            s.add(row)
            s.flush()
            return _flow(row)

    def update(self, tenant_id: int, flow_id: int, values: Mapping[str, Any]) -> ApprovalFlow:
        with session_scope(self._db) as s:
            row = self._tenant_row(ApprovalFlowRow, tenant_id, flow_id)
            if row is None:
                raise NotFoundError("承認フローが見つかりません")
            assign_columns(row, _flow_columns(values))
            s.flush()
            return _flow(row)

    def delete(self, tenant_id: int, flow_id: int) -> bool:
        with session_scope(self._db) as s:
            row = self._tenant_row(ApprovalFlowRow, tenant_id, flow_id)
            if row is None:
                return False
            s.delete(row)
            return True

    def clear_default(self, tenant_id: int, document_type: WorkflowType, *, except_id: Optional[int] = None) -> None:
        with session_scope(self._db) as s:
            query = s.query(ApprovalFlowRow).filter(
                ApprovalFlowRow.tenant_id == tenant_id,
                ApprovalFlowRow.document_type == document_type.value,
                ApprovalFlowRow.is_default.is_(True),
            )
            if except_id is not None:
                query = query.filter(ApprovalFlowRow.id != except_id)
            for row in query.all():
                row.is_default = False


class SQLAlchemyWorkflowRequestRepository(SQLAlchemyRepository, WorkflowRequestRepository):
    def get(self, tenant_id: int, request_id: int) -> Optional[WorkflowRequest]:
        row = self._tenant_row(WorkflowRequestRow, tenant_id, request_id)
        return _request(row) if row else None

    def list(
        self,
        tenant_id: int,
        *,
        status: Optional[WorkflowStatus] = None,
        type: Optional[WorkflowType] = None,
        requester_id: Optional[int] = None,
    ) -> Sequence[WorkflowRequest]:
        query = self._session.query(WorkflowRequestRow).filter(WorkflowRequestRow.tenant_id == tenant_id)
        if status is not None:
            query = query.filter(WorkflowRequestRow.status == status.value)
        if type is not None:
            query = query.filter(WorkflowRequestRow.type == type.value)
        if requester_id is not None:
            query = query.filter(WorkflowRequestRow.requester_id == requester_id)
        rows = query.order_by(WorkflowRequestRow.created_at.desc(), WorkflowRequestRow.id.desc()).all()
        return [_request(r) for r in rows]

    def list_open(self, tenant_id: int) -> Sequence[WorkflowRequest]:
        rows = (
            self._session.query(WorkflowRequestRow)
            .filter(WorkflowRequestRow.tenant_id == tenant_id, WorkflowRequestRow.status.in_(_OPEN))
            .order_by(WorkflowRequestRow.created_at, WorkflowRequestRow.id)
            .all()
        )
        return [_request(r) for r in rows]

    def create(self, tenant_id: int, values: Mapping[str, Any]) -> WorkflowRequest:
        with session_scope(self._db) as s:
            row = WorkflowRequestRow(tenant_id=tenant_id)
            assign_columns(row, _request_columns(values))
            s.add(row)
            s.flush()
            return _request(row)

    def save(self, request: WorkflowRequest) -> WorkflowRequest:
        with session_scope(self._db) as s:
            row = self._tenant_row(WorkflowRequestRow, request.tenant_id, request.id)
            if row is None:
                raise NotFoundError("申請が見つかりません")
            assign_columns(
                row,
                _request_columns(
                    {
                        "title": request.title,
                        "description": request.description,
                        "details": dict(request.details),
                        "urgency": request.urgency,
                        "status": request.status,
                        "current_step": request.current_step,
                        "steps": request.steps,
                        "timeline": request.timeline,
                        "return_reason": request.return_reason,
                        "returned_by": request.returned_by,
                        "returned_at": request.returned_at,
                        "completed_at": request.completed_at,
                    }
                ),
            )
            s.flush()
            return _request(row)

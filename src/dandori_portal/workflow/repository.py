from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..common.pagination import Page, PageRequest
from ..core.enums import WorkflowStatus, WorkflowType
from .model import ApprovalFlow, WorkflowRequest


class ApprovalFlowRepository(Protocol):
    def list(
        self,
        tenant_id: int,
        *,
        document_type: Optional[WorkflowType] = None,
        is_active: Optional[bool] = None,
        request: Optional[PageRequest] = None,
    ) -> Page[ApprovalFlow]:
        raise NotImplementedError

    def get(self, tenant_id: int, flow_id: int) -> Optional[ApprovalFlow]:
        raise NotImplementedError

    def create(self, tenant_id: int, values: Mapping[str, Any]) -> ApprovalFlow:
        raise NotImplementedError

    def update(self, tenant_id: int, flow_id: int, values: Mapping[str, Any]) -> ApprovalFlow:
        raise NotImplementedError

    def delete(self, tenant_id: int, flow_id: int) -> bool:
        raise NotImplementedError

    def clear_default(self, tenant_id: int, document_type: WorkflowType, *, except_id: Optional[int] = None) -> None:
        raise NotImplementedError


class WorkflowRequestRepository(Protocol):
    def get(self, tenant_id: int, request_id: int) -> Optional[WorkflowRequest]:
        raise NotImplementedError

    def list(
        self,
        tenant_id: int,
        *,
        status: Optional[WorkflowStatus] = None,
        type: Optional[WorkflowType] = None,
        requester_id: Optional[int] = None,
    ) -> Sequence[WorkflowRequest]:
        raise NotImplementedError

    def list_open(self, tenant_id: int) -> Sequence[WorkflowRequest]:
        raise NotImplementedError

    def create(self, tenant_id: int, values: Mapping[str, Any]) -> WorkflowRequest:
        raise NotImplementedError

    def save(self, request: WorkflowRequest) -> WorkflowRequest:
        """Persist every mutable field of ``request``."""
        raise NotImplementedError

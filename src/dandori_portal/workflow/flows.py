from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Mapping, Optional, Sequence, Union

from ..common.pagination import Page, PageRequest
from ..common.validators import parse_bool, parse_enum, require_non_empty, to_int
from ..core.enums import FlowType, WorkflowType
from ..core.exceptions import NotFoundError, ValidationError
from .model import ApprovalFlow, ApprovalFlowSummary, FlowCondition, FlowStep
from .repository import ApprovalFlowRepository
from .rules import evaluate_condition

logger = logging.getLogger(__name__)


def summarize(flow: ApprovalFlow) -> ApprovalFlowSummary:
    return ApprovalFlowSummary(
        id=flow.id,
        name=flow.name,
        description=flow.description,
        document_type=flow.document_type,
        flow_type=flow.flow_type,
        is_active=flow.is_active,
        is_default=flow.is_default,
        priority=flow.priority,
        step_count=len(flow.steps),
        condition_count=len(flow.conditions),
        updated_at=flow.updated_at,
    )


def _parse_steps(raw: Any) -> list[FlowStep]:
    if raw in (None, ""):
        return []
    if not isinstance(raw, list):
        raise ValidationError("stepsは配列で指定してください")
    try:
        return [s if isinstance(s, FlowStep) else FlowStep.from_dict(s) for s in raw]
    except (KeyError, TypeError, ValueError):
        raise ValidationError("承認ステップの形式が正しくありません")


def _parse_conditions(raw: Any) -> list[FlowCondition]:
    if raw in (None, ""):
        return []
    if not isinstance(raw, list):
        raise ValidationError("conditionsは配列で指定してください")
    try:
        return [c if isinstance(c, FlowCondition) else FlowCondition.from_dict(c) for c in raw]
    except (KeyError, TypeError, ValueError):
        raise ValidationError("条件の演算子または値が正しくありません")


def validate_flow(flow_type: FlowType, steps: Sequence[FlowStep]) -> None:
    if flow_type == FlowType.CUSTOM and not steps:
        raise ValidationError("カスタムフローには承認ステップが1つ以上必要です")
    numbers = [s.step_number for s in steps]
    if len(numbers) != len(set(numbers)):
        raise ValidationError("ステップ番号が重複しています")
    for step in steps:
        if not step.approvers:
            raise ValidationError(f"ステップ{step.step_number}に承認者が設定されていません")


class ApprovalFlowService:
    """Tenant-configurable approval flow definitions."""

    def __init__(self, flows: ApprovalFlowRepository):
        self._flows = flows

    def list_flows(
        self,
        tenant_id: int,
        *,
        document_type: Optional[str] = None,
        is_active: Any = None,
        request: Optional[PageRequest] = None,
        include_details: bool = False,
    ) -> Page[Union[ApprovalFlow, ApprovalFlowSummary]]:
        page = self._flows.list(
            tenant_id,
            document_type=parse_enum(WorkflowType, document_type, "document_type") if document_type else None,
            is_active=parse_bool(is_active) if is_active not in (None, "") else None,
            request=request or PageRequest(),
        )
        if include_details:
            return page
        return Page(items=[summarize(f) for f in page.items], total=page.total, request=page.request)

    def get_flow(self, tenant_id: int, flow_id: int) -> ApprovalFlow:
        flow = self._flows.get(tenant_id, flow_id)
        if not flow:
            raise NotFoundError("承認フローが見つかりません")
        return flow

    def create_flow(self, tenant_id: int, payload: Mapping[str, Any], *, created_by: Optional[int] = None) -> ApprovalFlow:
        missing = [f for f in ("name", "document_type") if not payload.get(f)]
        if missing:
            raise ValidationError(f"{', '.join(missing)}は必須です", required=missing)

        document_type = parse_enum(WorkflowType, payload["document_type"], "document_type")
        flow_type = parse_enum(FlowType, payload.get("flow_type") or FlowType.CUSTOM.value, "flow_type")
        steps = _parse_steps(payload.get("steps"))
        conditions = _parse_conditions(payload.get("conditions"))
        validate_flow(flow_type, steps)

        is_default = parse_bool(payload.get("is_default", False))
        if is_default:
            self._flows.clear_default(tenant_id, document_type)

        flow = self._flows.create(
            tenant_id,
            {
                "name": require_non_empty(payload["name"], "name"),
                "description": payload.get("description"),
                "document_type": document_type,
                "flow_type": flow_type,
                "use_organization_hierarchy": parse_bool(payload.get("use_organization_hierarchy", False)),
                "organization_levels": to_int(payload.get("organization_levels"), "organization_levels", default=0),
                "is_active": parse_bool(payload.get("is_active", True)),
                "is_default": is_default,
                "priority": to_int(payload.get("priority"), "priority", default=0),
                "created_by": created_by,
                "steps": steps,
                "conditions": conditions,
            },
        )
        logger.info("Approval flow created id=%s type=%s", flow.id, flow.document_type.value)
        return flow

    def update_flow(self, tenant_id: int, flow_id: int, payload: Mapping[str, Any]) -> ApprovalFlow:
        flow = self.get_flow(tenant_id, flow_id)
        values: dict[str, Any] = {}

        if "name" in payload:
            values["name"] = require_non_empty(payload["name"], "name")
        if "description" in payload:
            values["description"] = payload["description"]
        if "document_type" in payload:
            values["document_type"] = parse_enum(WorkflowType, payload["document_type"], "document_type")
        if "flow_type" in payload:
            values["flow_type"] = parse_enum(FlowType, payload["flow_type"], "flow_type")
        if "use_organization_hierarchy" in payload:
            values["use_organization_hierarchy"] = parse_bool(payload["use_organization_hierarchy"])
        if "organization_levels" in payload:
            values["organization_levels"] = to_int(payload["organization_levels"], "organization_levels", default=0)
        if "is_active" in payload:
            values["is_active"] = parse_bool(payload["is_active"])
        if "priority" in payload:
            values["priority"] = to_int(payload["priority"], "priority", default=0)
        if "steps" in payload:
            values["steps"] = _parse_steps(payload["steps"])
        if "conditions" in payload:
            values["conditions"] = _parse_conditions(payload["conditions"])

        validate_flow(values.get("flow_type", flow.flow_type), values.get("steps", flow.steps))

        if "is_default" in payload:
            values["is_default"] = parse_bool(payload["is_default"])
            if values["is_default"]:
                self._flows.clear_default(
                    tenant_id, values.get("document_type", flow.document_type), except_id=flow.id
                )

        if not values:
            return flow
        return self._flows.update(tenant_id, flow_id, values)

    def delete_flow(self, tenant_id: int, flow_id: int) -> None:
        if not self._flows.delete(tenant_id, flow_id):
            raise NotFoundError("承認フローが見つかりません")

    def duplicate_flow(self, tenant_id: int, flow_id: int, *, created_by: Optional[int] = None) -> ApprovalFlow:
        source = self.get_flow(tenant_id, flow_id)
        copy = replace(source, name=f"{source.name} (コピー)", is_default=False)
        return self._flows.create(
            tenant_id,
            {
                "name": copy.name,
                "description": copy.description,
                "document_type": copy.document_type,
                "flow_type": copy.flow_type,
                "use_organization_hierarchy": copy.use_organization_hierarchy,
                "organization_levels": copy.organization_levels,
                "is_active": copy.is_active,
                "is_default": False,
                "priority": copy.priority,
                "created_by": created_by,
                "steps": copy.steps,
                "conditions": copy.conditions,
            },
        )

    def find_applicable_flow(
        self, tenant_id: int, document_type: WorkflowType, values: Mapping[str, Any]
    ) -> Optional[ApprovalFlow]:
        """First active flow (by priority) whose conditions all hold, else the default."""
        flows = list(
            self._flows.list(tenant_id, document_type=document_type, is_active=True, request=PageRequest(limit=1000)).items
        )
        flows.sort(key=lambda f: f.priority, reverse=True)

        for flow in flows:
            if not flow.conditions:
                if flow.is_default:
                    return flow
                continue
            if all(evaluate_condition(c, values) for c in flow.conditions):
                return flow
        return next((f for f in flows if f.is_default), None)

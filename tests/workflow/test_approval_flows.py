from dataclasses import replace

import pytest

from dandori_portal.common.pagination import paginate_list
from dandori_portal.core.enums import WorkflowType
from dandori_portal.core.exceptions import ValidationError
from dandori_portal.workflow.flows import ApprovalFlowService
from dandori_portal.workflow.model import ApprovalFlow

MANAGER_STEP = {"step_number": 1, "name": "上長", "approvers": [{"approver_type": "manager"}]}


class FakeFlows:
    def __init__(self):
        self.flows: dict[int, ApprovalFlow] = {}
        self.last_args = None

    def list(self, tenant_id, *, document_type=None, is_active=None, request=None):
        items = [
            f for f in self.flows.values()
            if f.tenant_id == tenant_id
            and (document_type is None or f.document_type == document_type)
            and (is_active is None or f.is_active == is_active)
        ]
        return paginate_list(items, request)

    def get(self, tenant_id, flow_id):
        flow = self.flows.get(flow_id)
        return flow if flow and flow.tenant_id == tenant_id else None

    def create(self, tenant_id, values):
        flow = ApprovalFlow(id=len(self.flows) + 1, tenant_id=tenant_id, **values)
        self.flows[flow.id] = flow
        return flow

    def update(self, tenant_id, flow_id, values):
        self.flows[flow_id] = replace(self.flows[flow_id], **values)
        return self.flows[flow_id]

    def delete(self, tenant_id, flow_id):
        return self.flows.pop(flow_id, None) is not None

    def clear_default(self, tenant_id, document_type, *, except_id=None):
        self.last_args = (tenant_id, document_type, except_id)
        for flow in list(self.flows.values()):
            if flow.document_type == document_type and flow.id != except_id:
                self.flows[flow.id] = replace(flow, is_default=False)


def _create(service, **payload):
    body = {"name": "経費フロー", "document_type": "expense_claim", "steps": [MANAGER_STEP]}
    body.update(payload)
    return service.create_flow(1, body, created_by=9)


def test_only_one_default_flow_per_document_type():
    repo = FakeFlows()
    service = ApprovalFlowService(repo)
    first = _create(service, is_default=True)
    second = _create(service, name="経費フロー2", is_default=True)
    other = _create(service, name="休暇", document_type="leave_request", is_default=True)

    assert repo.flows[first.id].is_default is False
    assert repo.flows[second.id].is_default is True
    assert repo.flows[other.id].is_default is True

    service.update_flow(1, first.id, {"is_default": True})
    assert repo.last_args == (1, WorkflowType.EXPENSE_CLAIM, first.id)
    assert repo.flows[second.id].is_default is False


def test_custom_flow_needs_steps_with_approvers():
    service = ApprovalFlowService(FakeFlows())
    with pytest.raises(ValidationError):
        _create(service, steps=[])
    with pytest.raises(ValidationError):
        _create(service, steps=[{"step_number": 1, "name": "空", "approvers": []}])
    with pytest.raises(ValidationError):
        _create(service, steps=[MANAGER_STEP, MANAGER_STEP])
    with pytest.raises(ValidationError) as e:
        service.create_flow(1, {"steps": [MANAGER_STEP]})
    assert e.value.required == ["name", "document_type"]


def test_duplicate_is_renamed_and_never_default():
    repo = FakeFlows()
    service = ApprovalFlowService(repo)
    source = _create(service, is_default=True, priority=5)

    copy = service.duplicate_flow(1, source.id, created_by=3)
    assert copy.id != source.id
    assert copy.name == "経費フロー (コピー)"
    assert copy.is_default is False
    assert copy.priority == 5
    assert copy.steps == source.steps
    assert repo.flows[source.id].is_default is True


def test_applicable_flow_prefers_priority_then_default():
    service = ApprovalFlowService(FakeFlows())
    default = _create(service, name="標準", is_default=True)
    large = _create(
        service,
        name="高額",
        priority=10,
        conditions=[{"field": "amount", "operator": "gte", "value": 100000}],
    )
    _create(
        service,
        name="中額",
        priority=5,
        conditions=[{"field": "amount", "operator": "gte", "value": 50000}],
    )
    _create(service, name="停止中", priority=99, is_active=False, conditions=[])

    assert service.find_applicable_flow(1, WorkflowType.EXPENSE_CLAIM, {"amount": 200000}).id == large.id
    assert service.find_applicable_flow(1, WorkflowType.EXPENSE_CLAIM, {"amount": 60000}).name == "中額"
    assert service.find_applicable_flow(1, WorkflowType.EXPENSE_CLAIM, {"amount": 1000}).id == default.id
    # a missing field fails the condition rather than raising
    assert service.find_applicable_flow(1, WorkflowType.EXPENSE_CLAIM, {}).id == default.id
    assert service.find_applicable_flow(1, WorkflowType.BUSINESS_TRIP, {"amount": 200000}) is None

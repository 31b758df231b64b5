from __future__ import annotations

from ..extension import db
from .base import TimestampMixin, tenant_fk


class ApprovalFlowRow(db.Model, TimestampMixin):
    __tablename__ = "approval_flows"

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.String(1000))
    document_type = db.Column(db.String(40), nullable=False, index=True)
    flow_type = db.Column(db.String(20), nullable=False, default="custom")
    use_organization_hierarchy = db.Column(db.Boolean, nullable=False, default=False)
    organization_levels = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_default = db.Column(db.Boolean, nullable=False, default=False)
    priority = db.Column(db.Integer, nullable=False, default=0)
    created_by = db.Column(db.Integer)
    steps = db.Column(db.JSON, nullable=False, default=list)
    conditions = db.Column(db.JSON, nullable=False, default=list)


class WorkflowRequestRow(db.Model, TimestampMixin):
    __tablename__ = "workflow_requests"

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    type = db.Column(db.String(40), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.String(2000))
    requester_id = db.Column(db.Integer, nullable=False, index=True)
    requester_name = db.Column(db.String(100), nullable=False)
    department = db.Column(db.String(100))
    details = db.Column(db.JSON, nullable=False, default=dict)
    urgency = db.Column(db.String(10), nullable=False, default="normal")
    status = db.Column(db.String(30), nullable=False, default="pending", index=True)
    current_step = db.Column(db.Integer, nullable=False, default=1)
    steps = db.Column(db.JSON, nullable=False, default=list)
    timeline = db.Column(db.JSON, nullable=False, default=list)
    flow_id = db.Column(db.Integer)
    return_reason = db.Column(db.String(1000))
    returned_by = db.Column(db.Integer)
    returned_at = db.Column(db.DateTime)
    completed_at = db.Column(db.DateTime)

from __future__ import annotations

from datetime import datetime

from ..extension import db
from .base import TimestampMixin, tenant_fk


class OrgUnitRow(db.Model, TimestampMixin):
    __tablename__ = "org_units"
    __table_args__ = (db.UniqueConstraint("tenant_id", "code", name="uq_org_units_tenant_code"),)

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    name = db.Column(db.String(100), nullable=False)
    code = db.Column(db.String(50), nullable=False)
    parent_id = db.Column(db.Integer, index=True)
    manager_id = db.Column(db.Integer)
    level = db.Column(db.Integer, nullable=False, default=1)
    sort_order = db.Column(db.Integer, nullable=False, default=0)


class OrgTransferRow(db.Model):
    __tablename__ = "org_transfers"

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    user_id = db.Column(db.Integer, nullable=False, index=True)
    from_unit_id = db.Column(db.Integer)
    to_unit_id = db.Column(db.Integer, nullable=False)
    effective_date = db.Column(db.Date, nullable=False)
    reason = db.Column(db.String(500))
    created_by = db.Column(db.Integer)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)

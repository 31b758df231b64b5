from __future__ import annotations

from ..extension import db
from .base import TimestampMixin, tenant_fk


class SaaSServiceRow(db.Model, TimestampMixin):
    __tablename__ = "saas_services"

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    name = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(50))
    vendor = db.Column(db.String(200))
    website = db.Column(db.String(500))
    license_type = db.Column(db.String(20), nullable=False, default="user_based")
    billing_cycle = db.Column(db.String(20), nullable=False, default="monthly")
    contract_start_date = db.Column(db.Date)
    contract_end_date = db.Column(db.Date)
    auto_renew = db.Column(db.Boolean, nullable=False, default=False)
    sso_enabled = db.Column(db.Boolean, nullable=False, default=False)
    mfa_enabled = db.Column(db.Boolean, nullable=False, default=False)
    security_rating = db.Column(db.String(1))
    admin_email = db.Column(db.String(255))
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    notes = db.Column(db.Text)


class LicensePlanRow(db.Model, TimestampMixin):
    __tablename__ = "license_plans"

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    service_id = db.Column(db.Integer, db.ForeignKey("saas_services.id"), nullable=False, index=True)
    plan_name = db.Column(db.String(100), nullable=False)
    billing_cycle = db.Column(db.String(20), nullable=False, default="monthly")
    price_per_user = db.Column(db.Integer)
    fixed_price = db.Column(db.Integer)
    currency = db.Column(db.String(3), nullable=False, default="JPY")
    max_users = db.Column(db.Integer)
    is_active = db.Column(db.Boolean, nullable=False, default=True)


class LicenseAssignmentRow(db.Model, TimestampMixin):
    __tablename__ = "license_assignments"

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    service_id = db.Column(db.Integer, db.ForeignKey("saas_services.id"), nullable=False, index=True)
    plan_id = db.Column(db.Integer, db.ForeignKey("license_plans.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, nullable=False, index=True)
    department = db.Column(db.String(100))
    status = db.Column(db.String(20), nullable=False, default="active")
    assigned_date = db.Column(db.Date, nullable=False)
    revoked_date = db.Column(db.Date)
    last_used_at = db.Column(db.DateTime)
    notes = db.Column(db.Text)

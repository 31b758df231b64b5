from __future__ import annotations

from ..extension import db
from .base import TimestampMixin, tenant_fk


class UserRow(db.Model, TimestampMixin):
    __tablename__ = "users"
    __table_args__ = (db.UniqueConstraint("tenant_id", "email", name="uq_users_tenant_email"),)

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    email = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default="employee")
    status = db.Column(db.String(20), nullable=False, default="active")
    department = db.Column(db.String(100))
    position = db.Column(db.String(100))
    # plain ids: org_units.manager_id points back at users
    org_unit_id = db.Column(db.Integer, index=True)
    manager_id = db.Column(db.Integer, index=True)
    hire_date = db.Column(db.Date)

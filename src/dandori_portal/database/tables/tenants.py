from __future__ import annotations

from ..extension import db
from .base import TimestampMixin


class TenantRow(db.Model, TimestampMixin):
    __tablename__ = "tenants"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    plan = db.Column(db.String(50), nullable=False, default="standard")
    status = db.Column(db.String(20), nullable=False, default="active")
    custom_pricing = db.Column(db.Boolean, nullable=False, default=False)
    contact_email = db.Column(db.String(255))
    address = db.Column(db.String(500))

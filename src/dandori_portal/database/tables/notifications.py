from __future__ import annotations

from datetime import datetime

from ..extension import db
from .base import tenant_fk


class NotificationRow(db.Model):
    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    user_id = db.Column(db.Integer, nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.String(1000))
    category = db.Column(db.String(40), nullable=False, default="workflow")
    priority = db.Column(db.String(10), nullable=False, default="normal")
    related_type = db.Column(db.String(40))
    related_id = db.Column(db.Integer)
    is_read = db.Column(db.Boolean, nullable=False, default=False)
    read_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)

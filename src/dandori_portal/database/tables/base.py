from __future__ import annotations

from datetime import datetime

from ..extension import db


class TimestampMixin:
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


def tenant_fk():
    return db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)

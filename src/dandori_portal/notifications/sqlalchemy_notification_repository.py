from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..database.mapping import assign_columns, row_to_model
from ..database.repository_base import SQLAlchemyRepository
from ..database.session import session_scope
from ..database.tables.notifications import NotificationRow
from .model import Notification
from .repository import NotificationRepository


class SQLAlchemyNotificationRepository(SQLAlchemyRepository, NotificationRepository):
    def create(self, tenant_id: int, values: Mapping[str, Any]) -> Notification:
        with session_scope(self._db) as s:
            row = NotificationRow(tenant_id=tenant_id)
            assign_columns(row, values)
            s.add(row)
            s.flush()
            return row_to_model(Notification, row)

    def list_for_user(self, tenant_id: int, user_id: int, *, unread_only: bool = False) -> Sequence[Notification]:
        query = self._session.query(NotificationRow).filter_by(tenant_id=tenant_id, user_id=user_id)
        if unread_only:
            query = query.filter(NotificationRow.is_read.is_(False))
        rows = query.order_by(NotificationRow.created_at.desc(), NotificationRow.id.desc()).all()
        return [row_to_model(Notification, r) for r in rows]

    def mark_read(self, tenant_id: int, user_id: int, ids: Optional[Sequence[int]], now: datetime) -> int:
        with session_scope(self._db) as s:
            query = s.query(NotificationRow).filter(
                NotificationRow.tenant_id == tenant_id,
                NotificationRow.user_id == user_id,
                NotificationRow.is_read.is_(False),
            )
            if ids is not None:
                query = query.filter(NotificationRow.id.in_(list(ids)))
            rows = query.all()
            for row in rows:
                row.is_read = True
                row.read_at = now
            return len(rows)

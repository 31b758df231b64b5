from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import parse_bool, parse_enum
from ..core.enums import NotificationPriority
from ..core.exceptions import ValidationError
from .model import Notification
from .repository import NotificationRepository


class NotificationService:
    """In-app notices for employees (approval requests, decisions)."""

    def __init__(self, notifications: NotificationRepository):
        self._notifications = notifications

    def notify(
        self,
        tenant_id: int,
        user_id: int,
        *,
        title: str,
        message: Optional[str] = None,
        category: str = "workflow",
        priority: Any = NotificationPriority.NORMAL,
        related_type: Optional[str] = None,
        related_id: Optional[int] = None,
    ) -> Notification:
        return self._notifications.create(
            tenant_id,
            {
                "user_id": user_id,
                "title": title,
                "message": message,
                "category": category,
                "priority": parse_enum(NotificationPriority, priority, "priority"),
                "related_type": related_type,
                "related_id": related_id,
                "is_read": False,
            },
        )

    def list_for_user(self, tenant_id: int, user_id: int, *, unread_only: bool = False) -> Sequence[Notification]:
        return self._notifications.list_for_user(tenant_id, user_id, unread_only=unread_only)

    def mark_read(self, tenant_id: int, user_id: int, ids: Sequence[Any], *, now: Optional[datetime] = None) -> int:
        try:
            clean = [int(i) for i in ids]
        except (TypeError, ValueError):
            raise ValidationError("idsは整数の配列で指定してください")
        return self._notifications.mark_read(tenant_id, user_id, clean, now or now_local())

    def mark_all_read(self, tenant_id: int, user_id: int, *, now: Optional[datetime] = None) -> int:
        return self._notifications.mark_read(tenant_id, user_id, None, now or now_local())

    def apply_update(self, tenant_id: int, user_id: int, payload: dict) -> int:
        """PUT body: ``{"ids": [...]}`` or ``{"mark_all_read": true}``."""
        if parse_bool(payload.get("mark_all_read", False)):
            return self.mark_all_read(tenant_id, user_id)
        ids = payload.get("ids")
        if not ids or not isinstance(ids, list):
            raise ValidationError("ids または mark_all_read を指定してください", required=["ids"])
        return self.mark_read(tenant_id, user_id, ids)

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Protocol, Sequence

from .model import Notification


class NotificationRepository(Protocol):
    def create(self, tenant_id: int, values: Mapping[str, Any]) -> Notification:
        raise NotImplementedError

    def list_for_user(self, tenant_id: int, user_id: int, *, unread_only: bool = False) -> Sequence[Notification]:
        raise NotImplementedError

    def mark_read(self, tenant_id: int, user_id: int, ids: Optional[Sequence[int]], now: datetime) -> int:
        """Mark ids (every unread one when ids is None) of this user as read."""
        raise NotImplementedError

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import NotificationPriority


@dataclass(frozen=True)
class Notification:
    id: int
    tenant_id: int
    user_id: int
    title: str
    message: Optional[str]
    category: str
    priority: NotificationPriority
    related_type: Optional[str] = None
    related_id: Optional[int] = None
    is_read: bool = False
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

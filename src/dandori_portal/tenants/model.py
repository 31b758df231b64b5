from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import TenantStatus


@dataclass(frozen=True)
class Tenant:
    """A customer organization of the portal."""

    id: int
    name: str
    plan: str
    status: TenantStatus
    custom_pricing: bool
    contact_email: Optional[str] = None
    address: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class TenantStats:
    user_count: int = 0
    invoice_total: int = 0
    unpaid_count: int = 0
    unpaid_amount: int = 0
    overdue_count: int = 0


@dataclass(frozen=True)
class TenantOverview:
    tenant: Tenant
    stats: TenantStats

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import BillingCycle, Currency, LicenseStatus, LicenseType


@dataclass(frozen=True)
class SaaSService:
    id: int
    tenant_id: int
    name: str
    license_type: LicenseType
    billing_cycle: BillingCycle
    category: Optional[str] = None
    vendor: Optional[str] = None
    website: Optional[str] = None
    contract_start_date: Optional[date] = None
    contract_end_date: Optional[date] = None
    auto_renew: bool = False
    sso_enabled: bool = False
    mfa_enabled: bool = False
    security_rating: Optional[str] = None
    admin_email: Optional[str] = None
    is_active: bool = True
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class LicensePlan:
    id: int
    tenant_id: int
    service_id: int
    plan_name: str
    billing_cycle: BillingCycle
    currency: Currency
    price_per_user: Optional[int] = None
    fixed_price: Optional[int] = None
    max_users: Optional[int] = None
    is_active: bool = True


@dataclass(frozen=True)
class LicenseAssignment:
    id: int
    tenant_id: int
    service_id: int
    plan_id: int
    user_id: int
    status: LicenseStatus
    assigned_date: date
    department: Optional[str] = None
    revoked_date: Optional[date] = None
    last_used_at: Optional[datetime] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class MonthlyCostLine:
    """Cost of one active plan of one service for a month."""

    service_id: int
    service_name: str
    plan_id: int
    plan_name: str
    user_license_count: int
    user_license_cost: int
    fixed_cost: int
    total_cost: int
    currency: Currency
    active_users: list[int] = field(default_factory=list)
    inactive_users: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class MonthlyCosts:
    period: str
    lines: list[MonthlyCostLine]
    totals: dict[str, int]
    total_users: int


@dataclass(frozen=True)
class RenewalAlert:
    service_id: int
    service_name: str
    contract_end_date: date
    days_remaining: int
    auto_renew: bool


@dataclass(frozen=True)
class UnusedLicense:
    assignment_id: int
    service_id: int
    service_name: str
    user_id: int
    last_used_at: Optional[datetime]
    idle_days: int

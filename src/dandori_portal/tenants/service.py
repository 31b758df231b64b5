from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from ..billing.repository import DWNotificationRepository
from ..common.validators import parse_bool, parse_enum, require_non_empty
from ..core.enums import DWNotificationType, NotificationPriority, TenantStatus
from ..core.exceptions import NotFoundError
from .model import Tenant, TenantOverview, TenantStats
from .repository import TenantRepository

logger = logging.getLogger(__name__)

_UPDATABLE = ("name", "plan", "status", "custom_pricing", "contact_email", "address")


class TenantService:
    """Use case: tenant administration for the platform operator."""

    def __init__(self, tenants: TenantRepository, notifications: DWNotificationRepository):
        self._tenants = tenants
        self._notifications = notifications

    def list_tenants(self, *, status: Optional[str] = None, search: Optional[str] = None) -> Sequence[TenantOverview]:
        status_filter = parse_enum(TenantStatus, status, "status") if status else None
        tenants = self._tenants.list(status=status_filter, search=(search or "").strip() or None)
        stats = self._tenants.stats_for(t.id for t in tenants)
        return [TenantOverview(tenant=t, stats=stats.get(t.id, TenantStats())) for t in tenants]

    def get_tenant(self, tenant_id: int) -> TenantOverview:
        tenant = self._require(tenant_id)
        stats = self._tenants.stats_for([tenant.id]).get(tenant.id, TenantStats())
        return TenantOverview(tenant=tenant, stats=stats)

    def create_tenant(
        self,
        *,
        name: str,
        plan: Optional[str] = None,
        contact_email: Optional[str] = None,
        custom_pricing: Any = False,
        address: Optional[str] = None,
    ) -> Tenant:
        name = require_non_empty(name, "name")
        tenant = self._tenants.create(
            {
                "name": name,
                "plan": plan or "standard",
                "status": TenantStatus.ACTIVE,
                "custom_pricing": parse_bool(custom_pricing),
                "contact_email": contact_email,
                "address": address,
            }
        )
        self._notifications.create(
            {
                "type": DWNotificationType.TENANT_CREATED,
                "title": f"新規テナント: {tenant.name}",
                "description": f"{tenant.name} が登録されました",
                "priority": NotificationPriority.NORMAL,
                "tenant_id": tenant.id,
                "tenant_name": tenant.name,
            }
        )
        logger.info("Tenant created id=%s name=%s", tenant.id, tenant.name)
        return tenant

    def update_tenant(self, tenant_id: int, fields: Mapping[str, Any]) -> Tenant:
        current = self._require(tenant_id)
        values: dict[str, Any] = {}
        for key in _UPDATABLE:
            if key not in fields:
                continue
            value = fields[key]
            if key == "name":
                value = require_non_empty(value, "name")
            elif key == "status":
                value = parse_enum(TenantStatus, value, "status")
            elif key == "custom_pricing":
                value = parse_bool(value)
            values[key] = value

        if not values:
            return current

        updated = self._tenants.update(tenant_id, values)
        if updated.status == TenantStatus.SUSPENDED and current.status != TenantStatus.SUSPENDED:
            self._notifications.create(
                {
                    "type": DWNotificationType.TENANT_SUSPENDED,
                    "title": f"テナント停止: {updated.name}",
                    "description": f"{updated.name} の利用が停止されました",
                    "priority": NotificationPriority.HIGH,
                    "tenant_id": updated.id,
                    "tenant_name": updated.name,
                }
            )
            logger.info("Tenant suspended id=%s", updated.id)
        return updated

    def _require(self, tenant_id: int) -> Tenant:
        tenant = self._tenants.get(tenant_id)
        if not tenant:
            raise NotFoundError("テナントが見つかりません")
        return tenant

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence

from ..core.enums import TenantStatus
from .model import Tenant, TenantStats


class TenantRepository(Protocol):
    def list(self, *, status: Optional[TenantStatus] = None, search: Optional[str] = None) -> Sequence[Tenant]:
        raise NotImplementedError

    def get(self, tenant_id: int) -> Optional[Tenant]:
        raise NotImplementedError

    def create(self, values: Mapping[str, Any]) -> Tenant:
        raise NotImplementedError

    def update(self, tenant_id: int, values: Mapping[str, Any]) -> Tenant:
        raise NotImplementedError

    def active_user_count(self, tenant_id: int) -> int:
        raise NotImplementedError

    def stats_for(self, tenant_ids: Iterable[int]) -> dict[int, TenantStats]:
        raise NotImplementedError

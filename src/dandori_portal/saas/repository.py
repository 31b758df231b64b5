from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import LicenseStatus
from .model import LicenseAssignment, LicensePlan, SaaSService


class SaaSRepository(Protocol):
    def list_services(self, tenant_id: int, *, active_only: bool = False, category: Optional[str] = None) -> Sequence[SaaSService]:
        raise NotImplementedError

    def get_service(self, tenant_id: int, service_id: int) -> Optional[SaaSService]:
        raise NotImplementedError

    def create_service(self, tenant_id: int, values: Mapping[str, Any]) -> SaaSService:
        raise NotImplementedError

    def update_service(self, tenant_id: int, service_id: int, values: Mapping[str, Any]) -> SaaSService:
        raise NotImplementedError

    def delete_service(self, tenant_id: int, service_id: int) -> bool:
        """Also removes the service's plans and assignments."""
        raise NotImplementedError

    def list_plans(self, tenant_id: int, *, service_id: Optional[int] = None) -> Sequence[LicensePlan]:
        raise NotImplementedError

    def get_plan(self, tenant_id: int, plan_id: int) -> Optional[LicensePlan]:
        raise NotImplementedError

    def create_plan(self, tenant_id: int, values: Mapping[str, Any]) -> LicensePlan:
        raise NotImplementedError

    def update_plan(self, tenant_id: int, plan_id: int, values: Mapping[str, Any]) -> LicensePlan:
        raise NotImplementedError

    def delete_plan(self, tenant_id: int, plan_id: int) -> bool:
        raise NotImplementedError

    def list_assignments(
        self,
        tenant_id: int,
        *,
        service_id: Optional[int] = None,
        user_id: Optional[int] = None,
        status: Optional[LicenseStatus] = None,
    ) -> Sequence[LicenseAssignment]:
        raise NotImplementedError

    def get_assignment(self, tenant_id: int, assignment_id: int) -> Optional[LicenseAssignment]:
        raise NotImplementedError

    def create_assignment(self, tenant_id: int, values: Mapping[str, Any]) -> LicenseAssignment:
        raise NotImplementedError

    def update_assignment(self, tenant_id: int, assignment_id: int, values: Mapping[str, Any]) -> LicenseAssignment:
        raise NotImplementedError

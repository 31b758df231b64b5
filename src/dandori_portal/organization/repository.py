from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from .model import OrgUnit, TransferRecord


class OrganizationRepository(Protocol):
    def list_units(self, tenant_id: int) -> Sequence[OrgUnit]:
        raise NotImplementedError

    def get_unit(self, tenant_id: int, unit_id: int) -> Optional[OrgUnit]:
        raise NotImplementedError

    def get_unit_by_code(self, tenant_id: int, code: str) -> Optional[OrgUnit]:
        raise NotImplementedError

    def create_unit(self, tenant_id: int, values: Mapping[str, Any]) -> OrgUnit:
        raise NotImplementedError

    def update_unit(self, tenant_id: int, unit_id: int, values: Mapping[str, Any]) -> OrgUnit:
        raise NotImplementedError

    def set_levels(self, tenant_id: int, levels: Mapping[int, int]) -> None:
        raise NotImplementedError

    def delete_unit(self, tenant_id: int, unit_id: int) -> bool:
        raise NotImplementedError

    def add_transfer(self, tenant_id: int, values: Mapping[str, Any]) -> TransferRecord:
        raise NotImplementedError

    def list_transfers(self, tenant_id: int, *, user_id: Optional[int] = None) -> Sequence[TransferRecord]:
        raise NotImplementedError

from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..common.pagination import Page, PageRequest
from ..core.enums import MaintenanceType
from .model import MaintenanceRecord, MonthlyMileage, PCAsset, SoftwareLicense, Vehicle, Vendor


class AssetRepository(Protocol):
    """Vehicles, PCs, vendors and the records hanging off them, per tenant."""

    # vehicles
    def list_vehicles(self, tenant_id: int) -> Sequence[Vehicle]:
        raise NotImplementedError

    def get_vehicle(self, tenant_id: int, vehicle_id: int) -> Optional[Vehicle]:
        raise NotImplementedError

    def find_vehicle_by_number(self, tenant_id: int, vehicle_number: str) -> Optional[Vehicle]:
        raise NotImplementedError

    def create_vehicle(self, tenant_id: int, values: Mapping[str, Any]) -> Vehicle:
        raise NotImplementedError

    def update_vehicle(self, tenant_id: int, vehicle_id: int, values: Mapping[str, Any]) -> Vehicle:
        raise NotImplementedError

    def delete_vehicle(self, tenant_id: int, vehicle_id: int) -> bool:
        """Removes the vehicle together with its maintenance and mileage records."""
        raise NotImplementedError

    # pcs
    def list_pcs(self, tenant_id: int) -> Sequence[PCAsset]:
        raise NotImplementedError

    def get_pc(self, tenant_id: int, pc_id: int) -> Optional[PCAsset]:
        raise NotImplementedError

    def find_pc_by_number(self, tenant_id: int, asset_number: str) -> Optional[PCAsset]:
        raise NotImplementedError

    def create_pc(self, tenant_id: int, values: Mapping[str, Any]) -> PCAsset:
        raise NotImplementedError

    def update_pc(self, tenant_id: int, pc_id: int, values: Mapping[str, Any]) -> PCAsset:
        raise NotImplementedError

    def delete_pc(self, tenant_id: int, pc_id: int) -> bool:
        raise NotImplementedError

    def add_license(self, tenant_id: int, pc_id: int, values: Mapping[str, Any]) -> SoftwareLicense:
        raise NotImplementedError

    def delete_license(self, tenant_id: int, pc_id: int, license_id: int) -> bool:
        raise NotImplementedError

    # vendors
    def list_vendors(self, tenant_id: int) -> Sequence[Vendor]:
        raise NotImplementedError

    def get_vendor(self, tenant_id: int, vendor_id: int) -> Optional[Vendor]:
        raise NotImplementedError

    def create_vendor(self, tenant_id: int, values: Mapping[str, Any]) -> Vendor:
        raise NotImplementedError

    def update_vendor(self, tenant_id: int, vendor_id: int, values: Mapping[str, Any]) -> Vendor:
        raise NotImplementedError

    def delete_vendor(self, tenant_id: int, vendor_id: int) -> bool:
        raise NotImplementedError

    # maintenance records
    def list_maintenance(
        self,
        tenant_id: int,
        *,
        vehicle_id: Optional[int] = None,
        maintenance_type: Optional[MaintenanceType] = None,
        request: PageRequest,
    ) -> Page[MaintenanceRecord]:
        raise NotImplementedError

    def list_maintenance_between(self, tenant_id: int, start: date, end: date) -> Sequence[MaintenanceRecord]:
        raise NotImplementedError

    def get_maintenance(self, tenant_id: int, record_id: int) -> Optional[MaintenanceRecord]:
        raise NotImplementedError

    def create_maintenance(self, tenant_id: int, values: Mapping[str, Any]) -> MaintenanceRecord:
        raise NotImplementedError

    def update_maintenance(self, tenant_id: int, record_id: int, values: Mapping[str, Any]) -> MaintenanceRecord:
        raise NotImplementedError

    def delete_maintenance(self, tenant_id: int, record_id: int) -> bool:
        raise NotImplementedError

    # monthly mileage
    def list_mileages(self, tenant_id: int, vehicle_id: int) -> Sequence[MonthlyMileage]:
        raise NotImplementedError

    def find_mileage(self, tenant_id: int, vehicle_id: int, month: str) -> Optional[MonthlyMileage]:
        raise NotImplementedError

    def create_mileage(self, tenant_id: int, values: Mapping[str, Any]) -> MonthlyMileage:
        raise NotImplementedError

from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy import func

from ..common.pagination import Page, PageRequest
from ..core.enums import MaintenanceType
from ..core.exceptions import NotFoundError
from ..database.mapping import assign_columns, row_to_model
from ..database.repository_base import SQLAlchemyRepository
from ..database.session import session_scope
from ..database.tables.assets import (
    MaintenanceRecordRow,
    MonthlyMileageRow,
    PCAssetRow,
    SoftwareLicenseRow,
    VehicleRow,
    VendorRow,
)
from .model import MaintenanceRecord, MonthlyMileage, PCAsset, SoftwareLicense, Vehicle, Vendor
from .repository import AssetRepository


class SQLAlchemyAssetRepository(SQLAlchemyRepository, AssetRepository):
    # ---- shared helpers ----------------------------------------------------------

    def _insert(self, row_cls: type, tenant_id: int, values: Mapping[str, Any], convert):
        with session_scope(self._db) as s:
            row = row_cls(tenant_id=tenant_id)
            assign_columns(row, values)
            s.add(row)
            s.flush()
            return convert(row)

    def _modify(self, row_cls: type, tenant_id: int, row_id: int, values: Mapping[str, Any], convert, label: str):
        with session_scope(self._db) as s:
            row = self._tenant_row(row_cls, tenant_id, row_id)
            if row is None:
                raise NotFoundError(f"{label}が見つかりません")
            assign_columns(row, values)
            s.flush()
            return convert(row)

    def _remove(self, row_cls: type, tenant_id: int, row_id: int) -> bool:
        with session_scope(self._db) as s:
            row = self._tenant_row(row_cls, tenant_id, row_id)
            if row is None:
                return False
            s.delete(row)
            return True

    # ---- vehicles ----------------------------------------------------------------

    def list_vehicles(self, tenant_id: int) -> Sequence[Vehicle]:
        rows = (
            self._session.query(VehicleRow)
            .filter(VehicleRow.tenant_id == tenant_id)
            .order_by(VehicleRow.vehicle_number)
            .all()
        )
        return [row_to_model(Vehicle, r) for r in rows]

    def get_vehicle(self, tenant_id: int, vehicle_id: int) -> Optional[Vehicle]:
        row = self._tenant_row(VehicleRow, tenant_id, vehicle_id)
        return row_to_model(Vehicle, row) if row else None

    def find_vehicle_by_number(self, tenant_id: int, vehicle_number: str) -> Optional[Vehicle]:
        row = self._session.query(VehicleRow).filter_by(tenant_id=tenant_id, vehicle_number=vehicle_number).first()
        return row_to_model(Vehicle, row) if row else None

    def create_vehicle(self, tenant_id: int, values: Mapping[str, Any]) -> Vehicle:
        return self._insert(VehicleRow, tenant_id, values, lambda r: row_to_model(Vehicle, r))

    def update_vehicle(self, tenant_id: int, vehicle_id: int, values: Mapping[str, Any]) -> Vehicle:
        return self._modify(VehicleRow, tenant_id, vehicle_id, values, lambda r: row_to_model(Vehicle, r), "車両")

    def delete_vehicle(self, tenant_id: int, vehicle_id: int) -> bool:
        with session_scope(self._db) as s:
            row = self._tenant_row(VehicleRow, tenant_id, vehicle_id)
            if row is None:
                return False
            s.query(MaintenanceRecordRow).filter_by(vehicle_id=vehicle_id).delete()
            s.query(MonthlyMileageRow).filter_by(vehicle_id=vehicle_id).delete()
            s.delete(row)
            return True

    # ---- pcs ---------------------------------------------------------------------

    def _licenses(self, pc_ids: Sequence[int]) -> dict[int, list[SoftwareLicense]]:
        grouped: dict[int, list[SoftwareLicense]] = {pc_id: [] for pc_id in pc_ids}
        if not pc_ids:
            return grouped
        rows = (
            self._session.query(SoftwareLicenseRow)
            .filter(SoftwareLicenseRow.pc_asset_id.in_(list(pc_ids)))
            .order_by(SoftwareLicenseRow.id)
            .all()
        )
        for r in rows:
            grouped[r.pc_asset_id].append(row_to_model(SoftwareLicense, r))
        return grouped

    def _pc(self, row: PCAssetRow) -> PCAsset:
        return row_to_model(PCAsset, row, licenses=tuple(self._licenses([row.id])[row.id]))

    def list_pcs(self, tenant_id: int) -> Sequence[PCAsset]:
        rows = (
            self._session.query(PCAssetRow)
            .filter(PCAssetRow.tenant_id == tenant_id)
            .order_by(PCAssetRow.asset_number)
            .all()
        )
        licenses = self._licenses([r.id for r in rows])
        return [row_to_model(PCAsset, r, licenses=tuple(licenses[r.id])) for r in rows]

    def get_pc(self, tenant_id: int, pc_id: int) -> Optional[PCAsset]:
        row = self._tenant_row(PCAssetRow, tenant_id, pc_id)
        return self._pc(row) if row else None

    def find_pc_by_number(self, tenant_id: int, asset_number: str) -> Optional[PCAsset]:
        row = self._session.query(PCAssetRow).filter_by(tenant_id=tenant_id, asset_number=asset_number).first()
        return self._pc(row) if row else None

    def create_pc(self, tenant_id: int, values: Mapping[str, Any]) -> PCAsset:
        return self._insert(PCAssetRow, tenant_id, values, self._pc)

    def update_pc(self, tenant_id: int, pc_id: int, values: Mapping[str, Any]) -> PCAsset:
        return self._modify(PCAssetRow, tenant_id, pc_id, values, self._pc, "PC")

    def delete_pc(self, tenant_id: int, pc_id: int) -> bool:
        with session_scope(self._db) as s:
            row = self._tenant_row(PCAssetRow, tenant_id, pc_id)
            if row is None:
                return False
            s.query(SoftwareLicenseRow).filter_by(pc_asset_id=pc_id).delete()
            s.delete(row)
            return True

    def add_license(self, tenant_id: int, pc_id: int, values: Mapping[str, Any]) -> SoftwareLicense:
        with session_scope(self._db) as s:
            row = SoftwareLicenseRow(tenant_id=tenant_id, pc_asset_id=pc_id)
            assign_columns(row, values)
            s.add(row)
            s.flush()
            return row_to_model(SoftwareLicense, row)

    def delete_license(self, tenant_id: int, pc_id: int, license_id: int) -> bool:
        with session_scope(self._db) as s:
            row = self._tenant_row(SoftwareLicenseRow, tenant_id, license_id)
            if row is None or row.pc_asset_id != pc_id:
                return False
            s.delete(row)
            return True

    # ---- vendors -----------------------------------------------------------------

    def _work_counts(self, tenant_id: int) -> dict[int, int]:
        rows = (
            self._session.query(MaintenanceRecordRow.vendor_id, func.count(MaintenanceRecordRow.id))
            .filter(MaintenanceRecordRow.tenant_id == tenant_id, MaintenanceRecordRow.vendor_id.isnot(None))
            .group_by(MaintenanceRecordRow.vendor_id)
            .all()
        )
        return {vendor_id: count for vendor_id, count in rows}

    def _vendor(self, row: VendorRow) -> Vendor:
        return row_to_model(Vendor, row, work_count=self._work_counts(row.tenant_id).get(row.id, 0))

    def list_vendors(self, tenant_id: int) -> Sequence[Vendor]:
        rows = self._session.query(VendorRow).filter(VendorRow.tenant_id == tenant_id).order_by(VendorRow.name).all()
        counts = self._work_counts(tenant_id)
        return [row_to_model(Vendor, r, work_count=counts.get(r.id, 0)) for r in rows]

    def get_vendor(self, tenant_id: int, vendor_id: int) -> Optional[Vendor]:
        row = self._tenant_row(VendorRow, tenant_id, vendor_id)
        return self._vendor(row) if row else None

    def create_vendor(self, tenant_id: int, values: Mapping[str, Any]) -> Vendor:
        return self._insert(VendorRow, tenant_id, values, self._vendor)

    def update_vendor(self, tenant_id: int, vendor_id: int, values: Mapping[str, Any]) -> Vendor:
        return self._modify(VendorRow, tenant_id, vendor_id, values, self._vendor, "業者")

    def delete_vendor(self, tenant_id: int, vendor_id: int) -> bool:
        return self._remove(VendorRow, tenant_id, vendor_id)

    # ---- maintenance records -----------------------------------------------------

    def list_maintenance(
        self,
        tenant_id: int,
        *,
        vehicle_id: Optional[int] = None,
        maintenance_type: Optional[MaintenanceType] = None,
        request: PageRequest,
    ) -> Page[MaintenanceRecord]:
        query = self._session.query(MaintenanceRecordRow).filter(MaintenanceRecordRow.tenant_id == tenant_id)
        if vehicle_id is not None:
            query = query.filter(MaintenanceRecordRow.vehicle_id == vehicle_id)
        if maintenance_type is not None:
            query = query.filter(MaintenanceRecordRow.type == maintenance_type.value)
        query = query.order_by(MaintenanceRecordRow.date.desc(), MaintenanceRecordRow.id.desc())
        return self._page(query, request, MaintenanceRecord)

    def list_maintenance_between(self, tenant_id: int, start: date, end: date) -> Sequence[MaintenanceRecord]:
        rows = (
            self._session.query(MaintenanceRecordRow)
            .filter(
                MaintenanceRecordRow.tenant_id == tenant_id,
                MaintenanceRecordRow.date >= start,
                MaintenanceRecordRow.date <= end,
            )
            .order_by(MaintenanceRecordRow.date)
            .all()
        )
        return [row_to_model(MaintenanceRecord, r) for r in rows]

    def get_maintenance(self, tenant_id: int, record_id: int) -> Optional[MaintenanceRecord]:
        row = self._tenant_row(MaintenanceRecordRow, tenant_id, record_id)
        return row_to_model(MaintenanceRecord, row) if row else None

    def create_maintenance(self, tenant_id: int, values: Mapping[str, Any]) -> MaintenanceRecord:
        return self._insert(MaintenanceRecordRow, tenant_id, values, lambda r: row_to_model(MaintenanceRecord, r))

    def update_maintenance(self, tenant_id: int, record_id: int, values: Mapping[str, Any]) -> MaintenanceRecord:
        return self._modify(
            MaintenanceRecordRow, tenant_id, record_id, values, lambda r: row_to_model(MaintenanceRecord, r), "整備記録"
        )

    def delete_maintenance(self, tenant_id: int, record_id: int) -> bool:
        return self._remove(MaintenanceRecordRow, tenant_id, record_id)

    # ---- monthly mileage ---------------------------------------------------------

    def list_mileages(self, tenant_id: int, vehicle_id: int) -> Sequence[MonthlyMileage]:
        rows = (
            self._session.query(MonthlyMileageRow)
            .filter_by(tenant_id=tenant_id, vehicle_id=vehicle_id)
            .order_by(MonthlyMileageRow.month.desc())
            .all()
        )
        return [row_to_model(MonthlyMileage, r) for r in rows]

    def find_mileage(self, tenant_id: int, vehicle_id: int, month: str) -> Optional[MonthlyMileage]:
        row = self._session.query(MonthlyMileageRow).filter_by(tenant_id=tenant_id, vehicle_id=vehicle_id, month=month).first()
        return row_to_model(MonthlyMileage, row) if row else None

    def create_mileage(self, tenant_id: int, values: Mapping[str, Any]) -> MonthlyMileage:
        return self._insert(MonthlyMileageRow, tenant_id, values, lambda r: row_to_model(MonthlyMileage, r))

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import AssetStatus, MaintenanceType, OwnershipType, TireType, WarningLevel


@dataclass(frozen=True)
class Vehicle:
    id: int
    tenant_id: int
    vehicle_number: str
    license_plate: str
    make: str
    model: str
    year: Optional[int] = None
    color: Optional[str] = None
    assigned_user_id: Optional[int] = None
    assigned_user_name: Optional[str] = None
    assigned_date: Optional[date] = None
    ownership_type: OwnershipType = OwnershipType.OWNED
    purchase_date: Optional[date] = None
    purchase_cost: Optional[int] = None
    lease_company: Optional[str] = None
    lease_monthly_cost: Optional[int] = None
    lease_start_date: Optional[date] = None
    lease_end_date: Optional[date] = None
    inspection_date: Optional[date] = None
    maintenance_date: Optional[date] = None
    insurance_date: Optional[date] = None
    current_tire_type: Optional[TireType] = None
    status: AssetStatus = AssetStatus.ACTIVE
    mileage_tracking: bool = False
    current_mileage: int = 0
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class SoftwareLicense:
    id: int
    pc_asset_id: int
    software_name: str
    license_key: Optional[str] = None
    expiration_date: Optional[date] = None
    monthly_cost: int = 0


@dataclass(frozen=True)
class PCAsset:
    id: int
    tenant_id: int
    asset_number: str
    manufacturer: str
    model: str
    serial_number: Optional[str] = None
    cpu: Optional[str] = None
    memory: Optional[str] = None
    storage: Optional[str] = None
    os: Optional[str] = None
    assigned_user_id: Optional[int] = None
    assigned_user_name: Optional[str] = None
    assigned_date: Optional[date] = None
    ownership_type: OwnershipType = OwnershipType.OWNED
    purchase_date: Optional[date] = None
    purchase_cost: Optional[int] = None
    lease_company: Optional[str] = None
    lease_monthly_cost: Optional[int] = None
    lease_start_date: Optional[date] = None
    lease_end_date: Optional[date] = None
    warranty_expiration: Optional[date] = None
    status: AssetStatus = AssetStatus.ACTIVE
    notes: Optional[str] = None
    licenses: tuple[SoftwareLicense, ...] = ()
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Vendor:
    id: int
    tenant_id: int
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    contact_person: Optional[str] = None
    email: Optional[str] = None
    rating: Optional[int] = None
    notes: Optional[str] = None
    work_count: int = 0


@dataclass(frozen=True)
class MaintenanceRecord:
    id: int
    tenant_id: int
    vehicle_id: int
    type: MaintenanceType
    date: date
    cost: int
    vendor_id: Optional[int] = None
    mileage: Optional[int] = None
    description: Optional[str] = None
    tire_type: Optional[TireType] = None
    next_due_date: Optional[date] = None
    next_due_mileage: Optional[int] = None
    performed_by: Optional[int] = None
    performed_by_name: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class MonthlyMileage:
    id: int
    tenant_id: int
    vehicle_id: int
    month: str
    distance: int
    recorded_by: Optional[int] = None
    recorded_by_name: Optional[str] = None
    recorded_at: Optional[datetime] = None


@dataclass(frozen=True)
class DeadlineWarning:
    """One upcoming (or past) due date of a vehicle or PC."""

    asset_type: str
    asset_id: int
    asset_number: str
    item: str
    due_date: date
    days_remaining: int
    level: WarningLevel


@dataclass(frozen=True)
class CostSummary:
    month: str
    vehicle_lease_cost: int
    vehicle_maintenance_cost: int
    pc_lease_cost: int
    software_license_cost: int
    total: int


@dataclass(frozen=True)
class AssetOverview:
    vehicles: list[Vehicle] = field(default_factory=list)
    pcs: list[PCAsset] = field(default_factory=list)
    vendors: list[Vendor] = field(default_factory=list)
    maintenance_records: list[MaintenanceRecord] = field(default_factory=list)
    summary: dict[str, int] = field(default_factory=dict)

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

import pytest

from dandori_portal.assets.model import MaintenanceRecord, MonthlyMileage, PCAsset, SoftwareLicense, Vehicle, Vendor
from dandori_portal.assets.service import AssetService, warning_level
from dandori_portal.common.auth import CurrentUser
from dandori_portal.common.pagination import paginate_list
from dandori_portal.core.enums import (
    AssetStatus,
    MaintenanceType,
    OwnershipType,
    TireType,
    UserRole,
    UserStatus,
    WarningLevel,
)
from dandori_portal.core.exceptions import ConflictError, NotFoundError, ValidationError
from dandori_portal.users.model import User


class FakeUsers:
    def __init__(self, *users: User):
        self._users = {u.id: u for u in users}

    def get(self, tenant_id, user_id):
        user = self._users.get(user_id)
        return user if user and user.tenant_id == tenant_id else None


class FakeAssets:
    def __init__(self):
        self._next_id = 1
        self.vehicles: dict[int, Vehicle] = {}
        self.pcs: dict[int, PCAsset] = {}
        self.vendors: dict[int, Vendor] = {}
        self.records: dict[int, MaintenanceRecord] = {}
        self.mileages: dict[int, MonthlyMileage] = {}

    def _id(self) -> int:
        self._next_id += 1
        return self._next_id - 1

    def list_vehicles(self, tenant_id):
        return [v for v in self.vehicles.values() if v.tenant_id == tenant_id]

    def get_vehicle(self, tenant_id, vehicle_id):
        v = self.vehicles.get(vehicle_id)
        return v if v and v.tenant_id == tenant_id else None

    def find_vehicle_by_number(self, tenant_id, number):
        return next((v for v in self.list_vehicles(tenant_id) if v.vehicle_number == number), None)

    def create_vehicle(self, tenant_id, values):
        v = Vehicle(id=self._id(), tenant_id=tenant_id, **values)
        self.vehicles[v.id] = v
        return v

    def update_vehicle(self, tenant_id, vehicle_id, values):
        self.vehicles[vehicle_id] = replace(self.vehicles[vehicle_id], **values)
        return self.vehicles[vehicle_id]

    def delete_vehicle(self, tenant_id, vehicle_id):
        return self.vehicles.pop(vehicle_id, None) is not None

    def list_pcs(self, tenant_id):
        return [p for p in self.pcs.values() if p.tenant_id == tenant_id]

    def get_pc(self, tenant_id, pc_id):
        p = self.pcs.get(pc_id)
        return p if p and p.tenant_id == tenant_id else None

    def find_pc_by_number(self, tenant_id, number):
        return next((p for p in self.list_pcs(tenant_id) if p.asset_number == number), None)

    def create_pc(self, tenant_id, values):
        p = PCAsset(id=self._id(), tenant_id=tenant_id, **values)
        self.pcs[p.id] = p
        return p

    def update_pc(self, tenant_id, pc_id, values):
        self.pcs[pc_id] = replace(self.pcs[pc_id], **values)
        return self.pcs[pc_id]

    def add_license(self, tenant_id, pc_id, values):
        lic = SoftwareLicense(id=self._id(), pc_asset_id=pc_id, **values)
        self.pcs[pc_id] = replace(self.pcs[pc_id], licenses=self.pcs[pc_id].licenses + (lic,))
        return lic

    def list_vendors(self, tenant_id):
        return [replace(v, work_count=sum(1 for r in self.records.values() if r.vendor_id == v.id)) for v in self.vendors.values()]

    def get_vendor(self, tenant_id, vendor_id):
        return next((v for v in self.list_vendors(tenant_id) if v.id == vendor_id), None)

    def create_vendor(self, tenant_id, values):
        v = Vendor(id=self._id(), tenant_id=tenant_id, **values)
        self.vendors[v.id] = v
        return v

    def delete_vendor(self, tenant_id, vendor_id):
        return self.vendors.pop(vendor_id, None) is not None

    def list_maintenance(self, tenant_id, *, vehicle_id=None, maintenance_type=None, request=None):
        items = [r for r in self.records.values() if vehicle_id is None or r.vehicle_id == vehicle_id]
        return paginate_list(items, request)

    def list_maintenance_between(self, tenant_id, start, end):
        return [r for r in self.records.values() if start <= r.date <= end]

    def create_maintenance(self, tenant_id, values):
        r = MaintenanceRecord(id=self._id(), tenant_id=tenant_id, **values)
        self.records[r.id] = r
        return r

    def find_mileage(self, tenant_id, vehicle_id, month):
        return next((m for m in self.mileages.values() if m.vehicle_id == vehicle_id and m.month == month), None)

    def create_mileage(self, tenant_id, values):
        m = MonthlyMileage(id=self._id(), tenant_id=tenant_id, **values)
        self.mileages[m.id] = m
        return m


TENANT = 1
ACTOR = CurrentUser(user_id=7, tenant_id=TENANT, role=UserRole.HR, name="人事 花子")


def _service():
    user = User(
        id=7,
        tenant_id=TENANT,
        email="hr@example.com",
        name="人事 花子",
        password_hash="x",
        role=UserRole.HR,
        status=UserStatus.ACTIVE,
    )
    repo = FakeAssets()
    return AssetService(repo, FakeUsers(user)), repo


def _vehicle_payload(**extra):
    payload = {"vehicle_number": "V-001", "license_plate": "品川 300 あ 12-34", "make": "Toyota", "model": "Prius"}
    payload.update(extra)
    return payload


def test_warning_levels():
    assert warning_level(-3) == WarningLevel.CRITICAL
    assert warning_level(30) == WarningLevel.CRITICAL
    assert warning_level(31) == WarningLevel.WARNING
    assert warning_level(60) == WarningLevel.WARNING
    assert warning_level(61) == WarningLevel.INFO


def test_duplicate_vehicle_number_conflicts():
    svc, _ = _service()
    svc.create_vehicle(TENANT, _vehicle_payload())

    with pytest.raises(ConflictError):
        svc.create_vehicle(TENANT, _vehicle_payload())


def test_leased_vehicle_requires_lease_company():
    svc, _ = _service()

    with pytest.raises(ValidationError):
        svc.create_vehicle(TENANT, _vehicle_payload(ownership_type="leased"))


def test_deadline_warnings_sorted_and_filtered():
    svc, _ = _service()
    today = date(2025, 4, 1)
    svc.create_vehicle(TENANT, _vehicle_payload(inspection_date="2025-04-11", insurance_date="2025-09-01"))
    svc.create_vehicle(
        TENANT, _vehicle_payload(vehicle_number="V-002", inspection_date="2025-03-30", status="retired")
    )
    svc.create_pc(
        TENANT,
        {"asset_number": "PC-1", "manufacturer": "Dell", "model": "Latitude", "warranty_expiration": "2025-05-21",
         "lease_end_date": "2025-04-20"},
    )

    warnings = svc.deadline_warnings(TENANT, today=today)

    # owned PC: lease_end_date ignored; retired vehicle skipped; insurance beyond 90 days
    assert [(w.item, w.days_remaining, w.level) for w in warnings] == [
        ("車検", 10, WarningLevel.CRITICAL),
        ("保証期限", 50, WarningLevel.WARNING),
    ]


def test_tire_change_requires_tire_type_and_updates_vehicle():
    svc, repo = _service()
    vehicle = svc.create_vehicle(TENANT, _vehicle_payload(current_mileage=1000))

    with pytest.raises(ValidationError):
        svc.add_maintenance(TENANT, {"vehicle_id": vehicle.id, "type": "tire_change", "date": "2025-04-01"})

    record = svc.add_maintenance(
        TENANT,
        {"vehicle_id": vehicle.id, "type": "tire_change", "date": "2025-04-01", "tire_type": "winter", "mileage": 1500},
        actor=ACTOR,
    )

    assert record.type == MaintenanceType.TIRE_CHANGE
    assert record.performed_by == ACTOR.user_id
    assert repo.vehicles[vehicle.id].current_tire_type == TireType.WINTER
    assert repo.vehicles[vehicle.id].current_mileage == 1500


def test_record_mileage_rules():
    svc, repo = _service()
    untracked = svc.create_vehicle(TENANT, _vehicle_payload())
    tracked = svc.create_vehicle(TENANT, _vehicle_payload(vehicle_number="V-002", mileage_tracking=True, current_mileage=100))
    now = datetime(2025, 4, 30, 18, 0)

    with pytest.raises(ValidationError):
        svc.record_mileage(TENANT, untracked.id, {"month": "2025-04", "distance": 10}, ACTOR, now=now)
    with pytest.raises(ValidationError):
        svc.record_mileage(TENANT, tracked.id, {"month": "2025-04", "distance": -1}, ACTOR, now=now)

    entry = svc.record_mileage(TENANT, tracked.id, {"month": "2025-04", "distance": 250}, ACTOR, now=now)

    assert entry.month == "2025-04"
    assert repo.vehicles[tracked.id].current_mileage == 350
    with pytest.raises(ConflictError):
        svc.record_mileage(TENANT, tracked.id, {"month": "2025-04", "distance": 5}, ACTOR, now=now)


def test_cost_summary_counts_active_leases_maintenance_and_licenses():
    svc, _ = _service()
    leased = svc.create_vehicle(
        TENANT,
        _vehicle_payload(ownership_type="leased", lease_company="ABC Lease", lease_monthly_cost=30000,
                         lease_start_date="2024-01-01", lease_end_date="2026-12-31"),
    )
    svc.create_vehicle(
        TENANT,
        _vehicle_payload(vehicle_number="V-002", ownership_type="leased", lease_company="ABC Lease",
                         lease_monthly_cost=20000, lease_end_date="2025-03-31"),
    )
    pc = svc.create_pc(TENANT, {"asset_number": "PC-1", "manufacturer": "Dell", "model": "Latitude"})
    svc.add_license(TENANT, pc.id, {"software_name": "Office", "monthly_cost": 1500})
    svc.add_license(TENANT, pc.id, {"software_name": "Old", "monthly_cost": 900, "expiration_date": "2025-03-01"})
    svc.add_maintenance(TENANT, {"vehicle_id": leased.id, "type": "oil_change", "date": "2025-04-10", "cost": 8000})
    svc.add_maintenance(TENANT, {"vehicle_id": leased.id, "type": "oil_change", "date": "2025-05-10", "cost": 9000})

    summary = svc.cost_summary(TENANT, "2025-04")

    assert summary.month == "2025-04"
    assert summary.vehicle_lease_cost == 30000
    assert summary.vehicle_maintenance_cost == 8000
    assert summary.pc_lease_cost == 0
    assert summary.software_license_cost == 1500
    assert summary.total == 39500


def test_assign_rejects_retired_asset_and_unknown_user():
    svc, _ = _service()
    vehicle = svc.create_vehicle(TENANT, _vehicle_payload())
    retired = svc.create_vehicle(TENANT, _vehicle_payload(vehicle_number="V-002", status="retired"))

    with pytest.raises(ValidationError):
        svc.assign(TENANT, "vehicle", retired.id, 7)
    with pytest.raises(NotFoundError):
        svc.assign(TENANT, "vehicle", vehicle.id, 99)

    assigned = svc.assign(TENANT, "vehicle", vehicle.id, 7, today=date(2025, 4, 1))
    assert (assigned.assigned_user_id, assigned.assigned_date) == (7, date(2025, 4, 1))
    assert svc.unassign(TENANT, "vehicle", vehicle.id).assigned_user_id is None


def test_vendor_rating_range_and_delete_guard():
    svc, _ = _service()
    with pytest.raises(ValidationError):
        svc.create_vendor(TENANT, {"name": "整備工場", "rating": 6})

    vendor = svc.create_vendor(TENANT, {"name": "整備工場", "rating": 4})
    vehicle = svc.create_vehicle(TENANT, _vehicle_payload())
    svc.add_maintenance(TENANT, {"vehicle_id": vehicle.id, "type": "inspection", "date": "2025-04-01", "vendor_id": vendor.id})

    with pytest.raises(ValidationError):
        svc.delete_vendor(TENANT, vendor.id)

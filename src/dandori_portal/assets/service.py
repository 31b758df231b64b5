from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.auth import CurrentUser
from ..common.datetime_utils import format_period, month_bounds, now_local, parse_period, to_date, to_optional_date
from ..common.pagination import Page, PageRequest
from ..common.validators import parse_bool, parse_enum, require_fields, require_non_empty, to_int
from ..core.constants import DEADLINE_CRITICAL_DAYS, DEADLINE_LOOKAHEAD_DAYS, DEADLINE_WARNING_DAYS
from ..core.enums import AssetStatus, MaintenanceType, OwnershipType, TireType, WarningLevel
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..users.repository import UserRepository
from .model import (
    AssetOverview,
    CostSummary,
    DeadlineWarning,
    MaintenanceRecord,
    MonthlyMileage,
    PCAsset,
    SoftwareLicense,
    Vehicle,
    Vendor,
)
from .repository import AssetRepository

logger = logging.getLogger(__name__)

_OWNERSHIP_TEXT = ("purchase_date", "purchase_cost", "lease_company", "lease_monthly_cost", "lease_start_date", "lease_end_date")
_VEHICLE_TEXT = ("license_plate", "make", "model", "color", "notes")
_VEHICLE_DATES = ("inspection_date", "maintenance_date", "insurance_date")
_PC_TEXT = ("manufacturer", "model", "serial_number", "cpu", "memory", "storage", "os", "notes")
_VENDOR_TEXT = ("name", "phone", "address", "contact_person", "email", "notes")
_ASSET_KINDS = ("vehicle", "pc")

# (field, label) pairs checked by deadline_warnings
_VEHICLE_DEADLINES = (
    ("inspection_date", "車検"),
    ("maintenance_date", "点検"),
    ("insurance_date", "保険"),
    ("lease_end_date", "リース契約満了"),
)
_PC_DEADLINES = (
    ("warranty_expiration", "保証期限"),
    ("lease_end_date", "リース契約満了"),
)


def warning_level(days_remaining: int) -> WarningLevel:
    if days_remaining <= DEADLINE_CRITICAL_DAYS:
        return WarningLevel.CRITICAL
    if days_remaining <= DEADLINE_WARNING_DAYS:
        return WarningLevel.WARNING
    return WarningLevel.INFO


def _lease_covers(asset: Vehicle | PCAsset, start: date, end: date) -> bool:
    if asset.ownership_type != OwnershipType.LEASED or asset.status == AssetStatus.RETIRED:
        return False
    if not asset.lease_monthly_cost:
        return False
    if asset.lease_start_date and asset.lease_start_date > end:
        return False
    if asset.lease_end_date and asset.lease_end_date < start:
        return False
    return True


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _ownership_values(payload: Mapping[str, Any], values: dict[str, Any], *, partial: bool) -> None:
    if not partial or "ownership_type" in payload:
        values["ownership_type"] = parse_enum(
            OwnershipType, payload.get("ownership_type") or OwnershipType.OWNED.value, "ownership_type"
        )
    for name in _OWNERSHIP_TEXT:
        if partial and name not in payload:
            continue
        raw = payload.get(name)
        if name.endswith("_date"):
            values[name] = to_optional_date(raw, name)
        elif name.endswith("_cost"):
            values[name] = to_int(raw, name, minimum=0) if raw not in (None, "") else None
        else:
            values[name] = _optional_text(raw)


def _check_lease(values: Mapping[str, Any], current: Optional[Vehicle | PCAsset] = None) -> None:
    def pick(name: str):
        if name in values:
            return values[name]
        return getattr(current, name) if current else None

    if pick("ownership_type") == OwnershipType.LEASED and not pick("lease_company"):
        raise ValidationError("リース資産にはリース会社の入力が必要です", required=["lease_company"])
    start, end = pick("lease_start_date"), pick("lease_end_date")
    if start and end and end < start:
        raise ValidationError("lease_end_dateはlease_start_date以降を指定してください")


class AssetService:
    """Company vehicles, PCs, maintenance vendors and their records."""

    def __init__(self, assets: AssetRepository, users: UserRepository):
        self._assets = assets
        self._users = users

    # ---- vehicles ----------------------------------------------------------------

    def list_vehicles(self, tenant_id: int) -> Sequence[Vehicle]:
        return self._assets.list_vehicles(tenant_id)

    def get_vehicle(self, tenant_id: int, vehicle_id: int) -> Vehicle:
        vehicle = self._assets.get_vehicle(tenant_id, vehicle_id)
        if not vehicle:
            raise NotFoundError("車両が見つかりません")
        return vehicle

    def create_vehicle(self, tenant_id: int, payload: Mapping[str, Any]) -> Vehicle:
        require_fields(payload, ["vehicle_number", "license_plate", "make", "model"])
        number = require_non_empty(payload["vehicle_number"], "vehicle_number")
        if self._assets.find_vehicle_by_number(tenant_id, number):
            raise ConflictError("この車両番号は既に登録されています")
        values = self._vehicle_values(payload, partial=False)
        values["vehicle_number"] = number
        _check_lease(values)
        vehicle = self._assets.create_vehicle(tenant_id, values)
        logger.info("Vehicle registered id=%s number=%s", vehicle.id, number)
        return vehicle

    def update_vehicle(self, tenant_id: int, vehicle_id: int, payload: Mapping[str, Any]) -> Vehicle:
        vehicle = self.get_vehicle(tenant_id, vehicle_id)
        values = self._vehicle_values(payload, partial=True)
        if "vehicle_number" in payload:
            number = require_non_empty(payload["vehicle_number"], "vehicle_number")
            other = self._assets.find_vehicle_by_number(tenant_id, number)
            if other and other.id != vehicle_id:
                raise ConflictError("この車両番号は既に登録されています")
            values["vehicle_number"] = number
        _check_lease(values, vehicle)
        return self._assets.update_vehicle(tenant_id, vehicle_id, values)

    def delete_vehicle(self, tenant_id: int, vehicle_id: int) -> None:
        if not self._assets.delete_vehicle(tenant_id, vehicle_id):
            raise NotFoundError("車両が見つかりません")

    def _vehicle_values(self, payload: Mapping[str, Any], *, partial: bool) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for name in _VEHICLE_TEXT:
            if not partial or name in payload:
                values[name] = _optional_text(payload.get(name))
        for name in ("license_plate", "make", "model"):
            if name in values and not values[name]:
                raise ValidationError(f"{name}は必須です", required=[name])
        if not partial or "year" in payload:
            year = payload.get("year")
            values["year"] = to_int(year, "year", minimum=1900) if year not in (None, "") else None
        for name in _VEHICLE_DATES:
            if not partial or name in payload:
                values[name] = to_optional_date(payload.get(name), name)
        if not partial or "status" in payload:
            values["status"] = parse_enum(AssetStatus, payload.get("status") or AssetStatus.ACTIVE.value, "status")
        if not partial or "current_tire_type" in payload:
            tire = payload.get("current_tire_type")
            values["current_tire_type"] = parse_enum(TireType, tire, "current_tire_type") if tire else None
        if not partial or "mileage_tracking" in payload:
            values["mileage_tracking"] = parse_bool(payload.get("mileage_tracking", False))
        if not partial or "current_mileage" in payload:
            values["current_mileage"] = to_int(payload.get("current_mileage"), "current_mileage", default=0, minimum=0)
        _ownership_values(payload, values, partial=partial)
        return values

    # ---- pcs ---------------------------------------------------------------------

    def list_pcs(self, tenant_id: int) -> Sequence[PCAsset]:
        return self._assets.list_pcs(tenant_id)

    def get_pc(self, tenant_id: int, pc_id: int) -> PCAsset:
        pc = self._assets.get_pc(tenant_id, pc_id)
        if not pc:
            raise NotFoundError("PCが見つかりません")
        return pc

    def create_pc(self, tenant_id: int, payload: Mapping[str, Any]) -> PCAsset:
        require_fields(payload, ["asset_number", "manufacturer", "model"])
        number = require_non_empty(payload["asset_number"], "asset_number")
        if self._assets.find_pc_by_number(tenant_id, number):
            raise ConflictError("この資産番号は既に登録されています")
        values = self._pc_values(payload, partial=False)
        values["asset_number"] = number
        _check_lease(values)
        pc = self._assets.create_pc(tenant_id, values)
        logger.info("PC registered id=%s number=%s", pc.id, number)
        return pc

    def update_pc(self, tenant_id: int, pc_id: int, payload: Mapping[str, Any]) -> PCAsset:
        pc = self.get_pc(tenant_id, pc_id)
        values = self._pc_values(payload, partial=True)
        if "asset_number" in payload:
            number = require_non_empty(payload["asset_number"], "asset_number")
            other = self._assets.find_pc_by_number(tenant_id, number)
            if other and other.id != pc_id:
                raise ConflictError("この資産番号は既に登録されています")
            values["asset_number"] = number
        _check_lease(values, pc)
        return self._assets.update_pc(tenant_id, pc_id, values)

    def delete_pc(self, tenant_id: int, pc_id: int) -> None:
        if not self._assets.delete_pc(tenant_id, pc_id):
            raise NotFoundError("PCが見つかりません")

    def _pc_values(self, payload: Mapping[str, Any], *, partial: bool) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for name in _PC_TEXT:
            if not partial or name in payload:
                values[name] = _optional_text(payload.get(name))
        for name in ("manufacturer", "model"):
            if name in values and not values[name]:
                raise ValidationError(f"{name}は必須です", required=[name])
        if not partial or "warranty_expiration" in payload:
            values["warranty_expiration"] = to_optional_date(payload.get("warranty_expiration"), "warranty_expiration")
        if not partial or "status" in payload:
            values["status"] = parse_enum(AssetStatus, payload.get("status") or AssetStatus.ACTIVE.value, "status")
        _ownership_values(payload, values, partial=partial)
        return values

    def add_license(self, tenant_id: int, pc_id: int, payload: Mapping[str, Any]) -> SoftwareLicense:
        self.get_pc(tenant_id, pc_id)
        require_fields(payload, ["software_name"])
        return self._assets.add_license(
            tenant_id,
            pc_id,
            {
                "software_name": require_non_empty(payload["software_name"], "software_name"),
                "license_key": _optional_text(payload.get("license_key")),
                "expiration_date": to_optional_date(payload.get("expiration_date"), "expiration_date"),
                "monthly_cost": to_int(payload.get("monthly_cost"), "monthly_cost", default=0, minimum=0),
            },
        )

    def remove_license(self, tenant_id: int, pc_id: int, license_id: int) -> None:
        self.get_pc(tenant_id, pc_id)
        if not self._assets.delete_license(tenant_id, pc_id, license_id):
            raise NotFoundError("ライセンスが見つかりません")

    # ---- assignment --------------------------------------------------------------

    def assign(
        self, tenant_id: int, kind: str, asset_id: int, user_id: Any, *, today: Optional[date] = None
    ) -> Vehicle | PCAsset:
        asset = self._asset(tenant_id, kind, asset_id)
        if asset.status == AssetStatus.RETIRED:
            raise ValidationError("廃棄済みの資産は割り当てできません")
        user = self._users.get(tenant_id, to_int(user_id, "user_id"))
        if not user:
            raise NotFoundError("ユーザーが見つかりません")
        values = {
            "assigned_user_id": user.id,
            "assigned_user_name": user.name,
            "assigned_date": today or now_local().date(),
        }
        logger.info("Asset assigned kind=%s id=%s user_id=%s", kind, asset_id, user.id)
        return self._save_asset(tenant_id, kind, asset_id, values)

    def unassign(self, tenant_id: int, kind: str, asset_id: int) -> Vehicle | PCAsset:
        self._asset(tenant_id, kind, asset_id)
        values = {"assigned_user_id": None, "assigned_user_name": None, "assigned_date": None}
        return self._save_asset(tenant_id, kind, asset_id, values)

    def _asset(self, tenant_id: int, kind: str, asset_id: int) -> Vehicle | PCAsset:
        if kind not in _ASSET_KINDS:
            raise ValidationError("資産種別は vehicle, pc のいずれかである必要があります")
        return self.get_vehicle(tenant_id, asset_id) if kind == "vehicle" else self.get_pc(tenant_id, asset_id)

    def _save_asset(self, tenant_id: int, kind: str, asset_id: int, values: Mapping[str, Any]) -> Vehicle | PCAsset:
        if kind == "vehicle":
            return self._assets.update_vehicle(tenant_id, asset_id, values)
        return self._assets.update_pc(tenant_id, asset_id, values)

    # ---- vendors -----------------------------------------------------------------

    def list_vendors(self, tenant_id: int) -> Sequence[Vendor]:
        return self._assets.list_vendors(tenant_id)

    def get_vendor(self, tenant_id: int, vendor_id: int) -> Vendor:
        vendor = self._assets.get_vendor(tenant_id, vendor_id)
        if not vendor:
            raise NotFoundError("業者が見つかりません")
        return vendor

    def create_vendor(self, tenant_id: int, payload: Mapping[str, Any]) -> Vendor:
        require_fields(payload, ["name"])
        return self._assets.create_vendor(tenant_id, self._vendor_values(payload, partial=False))

    def update_vendor(self, tenant_id: int, vendor_id: int, payload: Mapping[str, Any]) -> Vendor:
        self.get_vendor(tenant_id, vendor_id)
        return self._assets.update_vendor(tenant_id, vendor_id, self._vendor_values(payload, partial=True))

    def delete_vendor(self, tenant_id: int, vendor_id: int) -> None:
        vendor = self.get_vendor(tenant_id, vendor_id)
        if vendor.work_count:
            raise ValidationError("整備記録がある業者は削除できません")
        self._assets.delete_vendor(tenant_id, vendor_id)

    @staticmethod
    def _vendor_values(payload: Mapping[str, Any], *, partial: bool) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for name in _VENDOR_TEXT:
            if not partial or name in payload:
                values[name] = _optional_text(payload.get(name))
        if "name" in values and not values["name"]:
            raise ValidationError("nameは必須です", required=["name"])
        if not partial or "rating" in payload:
            rating = payload.get("rating")
            if rating in (None, ""):
                values["rating"] = None
            else:
                rating = to_int(rating, "rating")
                if not 1 <= rating <= 5:
                    raise ValidationError("評価は1から5の範囲で入力してください")
                values["rating"] = rating
        return values

    # ---- maintenance -------------------------------------------------------------

    def list_maintenance(
        self,
        tenant_id: int,
        *,
        vehicle_id: Optional[int] = None,
        maintenance_type: Optional[str] = None,
        request: Optional[PageRequest] = None,
    ) -> Page[MaintenanceRecord]:
        return self._assets.list_maintenance(
            tenant_id,
            vehicle_id=vehicle_id,
            maintenance_type=parse_enum(MaintenanceType, maintenance_type, "type") if maintenance_type else None,
            request=request or PageRequest(),
        )

    def add_maintenance(
        self, tenant_id: int, payload: Mapping[str, Any], *, actor: Optional[CurrentUser] = None
    ) -> MaintenanceRecord:
        require_fields(payload, ["vehicle_id", "type", "date"])
        vehicle = self.get_vehicle(tenant_id, to_int(payload["vehicle_id"], "vehicle_id"))
        values = self._maintenance_values(tenant_id, payload, partial=False)
        values["vehicle_id"] = vehicle.id
        if values["type"] == MaintenanceType.TIRE_CHANGE and not values.get("tire_type"):
            raise ValidationError("タイヤ交換にはタイヤ種別が必要です", required=["tire_type"])
        if actor is not None:
            values.setdefault("performed_by", actor.user_id)
            values.setdefault("performed_by_name", actor.name)

        record = self._assets.create_maintenance(tenant_id, values)
        self._apply_to_vehicle(tenant_id, vehicle, record)
        logger.info("Maintenance recorded id=%s vehicle_id=%s type=%s", record.id, vehicle.id, record.type.value)
        return record

    def update_maintenance(self, tenant_id: int, record_id: int, payload: Mapping[str, Any]) -> MaintenanceRecord:
        current = self._assets.get_maintenance(tenant_id, record_id)
        if not current:
            raise NotFoundError("整備記録が見つかりません")
        values = self._maintenance_values(tenant_id, payload, partial=True)
        kind = values.get("type", current.type)
        tire = values["tire_type"] if "tire_type" in values else current.tire_type
        if kind == MaintenanceType.TIRE_CHANGE and not tire:
            raise ValidationError("タイヤ交換にはタイヤ種別が必要です", required=["tire_type"])
        record = self._assets.update_maintenance(tenant_id, record_id, values)
        self._apply_to_vehicle(tenant_id, self.get_vehicle(tenant_id, record.vehicle_id), record)
        return record

    def delete_maintenance(self, tenant_id: int, record_id: int) -> None:
        if not self._assets.delete_maintenance(tenant_id, record_id):
            raise NotFoundError("整備記録が見つかりません")

    def _apply_to_vehicle(self, tenant_id: int, vehicle: Vehicle, record: MaintenanceRecord) -> None:
        changes: dict[str, Any] = {}
        if record.type == MaintenanceType.TIRE_CHANGE and record.tire_type:
            changes["current_tire_type"] = record.tire_type
        if record.mileage is not None and record.mileage > vehicle.current_mileage:
            changes["current_mileage"] = record.mileage
        if changes:
            self._assets.update_vehicle(tenant_id, vehicle.id, changes)

    def _maintenance_values(self, tenant_id: int, payload: Mapping[str, Any], *, partial: bool) -> dict[str, Any]:
        values: dict[str, Any] = {}
        if not partial or "type" in payload:
            values["type"] = parse_enum(MaintenanceType, payload.get("type"), "type")
        if not partial or "date" in payload:
            values["date"] = to_date(payload.get("date"), "date")
        if not partial or "cost" in payload:
            values["cost"] = to_int(payload.get("cost"), "cost", default=0, minimum=0)
        for name in ("mileage", "next_due_mileage"):
            if not partial or name in payload:
                raw = payload.get(name)
                values[name] = to_int(raw, name, minimum=0) if raw not in (None, "") else None
        if not partial or "next_due_date" in payload:
            values["next_due_date"] = to_optional_date(payload.get("next_due_date"), "next_due_date")
        if not partial or "tire_type" in payload:
            tire = payload.get("tire_type")
            values["tire_type"] = parse_enum(TireType, tire, "tire_type") if tire else None
        for name in ("description", "notes"):
            if not partial or name in payload:
                values[name] = _optional_text(payload.get(name))
        if payload.get("performed_by") not in (None, ""):
            values["performed_by"] = to_int(payload["performed_by"], "performed_by")
        if payload.get("performed_by_name"):
            values["performed_by_name"] = str(payload["performed_by_name"])
        if not partial or "vendor_id" in payload:
            vendor_id = payload.get("vendor_id")
            if vendor_id in (None, ""):
                values["vendor_id"] = None
            else:
                values["vendor_id"] = self.get_vendor(tenant_id, to_int(vendor_id, "vendor_id")).id
        return values

    # ---- monthly mileage ---------------------------------------------------------

    def list_mileages(self, tenant_id: int, vehicle_id: int) -> Sequence[MonthlyMileage]:
        self.get_vehicle(tenant_id, vehicle_id)
        return self._assets.list_mileages(tenant_id, vehicle_id)

    def record_mileage(
        self,
        tenant_id: int,
        vehicle_id: int,
        payload: Mapping[str, Any],
        recorder: CurrentUser,
        *,
        now: Optional[datetime] = None,
    ) -> MonthlyMileage:
        vehicle = self.get_vehicle(tenant_id, vehicle_id)
        if not vehicle.mileage_tracking:
            raise ValidationError("この車両は走行距離の記録対象ではありません")
        require_fields(payload, ["month"])
        month = format_period(*parse_period(payload["month"], "month"))
        distance = to_int(payload.get("distance"), "distance", minimum=0)
        if self._assets.find_mileage(tenant_id, vehicle_id, month):
            raise ConflictError("この月の走行距離は既に登録されています")

        record = self._assets.create_mileage(
            tenant_id,
            {
                "vehicle_id": vehicle_id,
                "month": month,
                "distance": distance,
                "recorded_by": recorder.user_id,
                "recorded_by_name": recorder.name,
                "recorded_at": now or now_local(),
            },
        )
        self._assets.update_vehicle(tenant_id, vehicle_id, {"current_mileage": vehicle.current_mileage + distance})
        return record

    # ---- reports -----------------------------------------------------------------

    def deadline_warnings(
        self, tenant_id: int, *, today: Optional[date] = None, within_days: int = DEADLINE_LOOKAHEAD_DAYS
    ) -> list[DeadlineWarning]:
        today = today or now_local().date()
        warnings: list[DeadlineWarning] = []

        def collect(asset_type: str, asset: Vehicle | PCAsset, number: str, fields) -> None:
            if asset.status == AssetStatus.RETIRED:
                return
            for name, label in fields:
                due = getattr(asset, name)
                if due is None:
                    continue
                if name == "lease_end_date" and asset.ownership_type != OwnershipType.LEASED:
                    continue
                remaining = (due - today).days
                if remaining > within_days:
                    continue
                warnings.append(
                    DeadlineWarning(
                        asset_type=asset_type,
                        asset_id=asset.id,
                        asset_number=number,
                        item=label,
                        due_date=due,
                        days_remaining=remaining,
                        level=warning_level(remaining),
                    )
                )

        for vehicle in self._assets.list_vehicles(tenant_id):
            collect("vehicle", vehicle, vehicle.vehicle_number, _VEHICLE_DEADLINES)
        for pc in self._assets.list_pcs(tenant_id):
            collect("pc", pc, pc.asset_number, _PC_DEADLINES)
        return sorted(warnings, key=lambda w: (w.days_remaining, w.asset_type, w.asset_id))

    def cost_summary(self, tenant_id: int, month: Any = None, *, today: Optional[date] = None) -> CostSummary:
        if month:
            year, mon = parse_period(month, "month")
        else:
            today = today or now_local().date()
            year, mon = today.year, today.month
        start, end = month_bounds(year, mon)

        vehicles = self._assets.list_vehicles(tenant_id)
        pcs = self._assets.list_pcs(tenant_id)
        vehicle_lease = sum(v.lease_monthly_cost for v in vehicles if _lease_covers(v, start, end))
        pc_lease = sum(p.lease_monthly_cost for p in pcs if _lease_covers(p, start, end))
        maintenance = sum(r.cost for r in self._assets.list_maintenance_between(tenant_id, start, end))
        software = sum(
            lic.monthly_cost
            for pc in pcs
            if pc.status != AssetStatus.RETIRED
            for lic in pc.licenses
            if lic.expiration_date is None or lic.expiration_date >= start
        )
        return CostSummary(
            month=format_period(year, mon),
            vehicle_lease_cost=vehicle_lease,
            vehicle_maintenance_cost=maintenance,
            pc_lease_cost=pc_lease,
            software_license_cost=software,
            total=vehicle_lease + maintenance + pc_lease + software,
        )

    def overview(self, tenant_id: int) -> AssetOverview:
        """Everything the asset screen needs in one call."""
        vehicles = list(self._assets.list_vehicles(tenant_id))
        pcs = list(self._assets.list_pcs(tenant_id))
        vendors = list(self._assets.list_vendors(tenant_id))
        records = self._assets.list_maintenance(tenant_id, request=PageRequest(page=1, limit=100))
        return AssetOverview(
            vehicles=vehicles,
            pcs=pcs,
            vendors=vendors,
            maintenance_records=list(records.items),
            summary={
                "total_vehicles": len(vehicles),
                "active_vehicles": sum(1 for v in vehicles if v.status == AssetStatus.ACTIVE),
                "total_pcs": len(pcs),
                "active_pcs": sum(1 for p in pcs if p.status == AssetStatus.ACTIVE),
                "total_vendors": len(vendors),
                "total_maintenance_records": records.total,
            },
        )

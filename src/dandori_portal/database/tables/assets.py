from __future__ import annotations

from datetime import datetime

from ..extension import db
from .base import TimestampMixin, tenant_fk


class VehicleRow(db.Model, TimestampMixin):
    __tablename__ = "vehicles"
    __table_args__ = (
        db.UniqueConstraint("tenant_id", "vehicle_number", name="uq_vehicles_tenant_number"),
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    vehicle_number = db.Column(db.String(50), nullable=False)
    license_plate = db.Column(db.String(50), nullable=False)
    make = db.Column(db.String(100), nullable=False)
    model = db.Column(db.String(100), nullable=False)
    year = db.Column(db.Integer)
    color = db.Column(db.String(30))

    assigned_user_id = db.Column(db.Integer, index=True)
    assigned_user_name = db.Column(db.String(100))
    assigned_date = db.Column(db.Date)

    ownership_type = db.Column(db.String(20), nullable=False, default="owned")
    purchase_date = db.Column(db.Date)
    purchase_cost = db.Column(db.Integer)
    lease_company = db.Column(db.String(200))
    lease_monthly_cost = db.Column(db.Integer)
    lease_start_date = db.Column(db.Date)
    lease_end_date = db.Column(db.Date)

    inspection_date = db.Column(db.Date)
    maintenance_date = db.Column(db.Date)
    insurance_date = db.Column(db.Date)
    current_tire_type = db.Column(db.String(20))
    status = db.Column(db.String(20), nullable=False, default="active")
    mileage_tracking = db.Column(db.Boolean, nullable=False, default=False)
    current_mileage = db.Column(db.Integer, nullable=False, default=0)
    notes = db.Column(db.Text)


class PCAssetRow(db.Model, TimestampMixin):
    __tablename__ = "pc_assets"
    __table_args__ = (
        db.UniqueConstraint("tenant_id", "asset_number", name="uq_pc_assets_tenant_number"),
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    asset_number = db.Column(db.String(50), nullable=False)
    manufacturer = db.Column(db.String(100), nullable=False)
    model = db.Column(db.String(100), nullable=False)
    serial_number = db.Column(db.String(100))
    cpu = db.Column(db.String(100))
    memory = db.Column(db.String(50))
    storage = db.Column(db.String(50))
    os = db.Column(db.String(100))

    assigned_user_id = db.Column(db.Integer, index=True)
    assigned_user_name = db.Column(db.String(100))
    assigned_date = db.Column(db.Date)

    ownership_type = db.Column(db.String(20), nullable=False, default="owned")
    purchase_date = db.Column(db.Date)
    purchase_cost = db.Column(db.Integer)
    lease_company = db.Column(db.String(200))
    lease_monthly_cost = db.Column(db.Integer)
    lease_start_date = db.Column(db.Date)
    lease_end_date = db.Column(db.Date)

    warranty_expiration = db.Column(db.Date)
    status = db.Column(db.String(20), nullable=False, default="active")
    notes = db.Column(db.Text)


class SoftwareLicenseRow(db.Model):
    __tablename__ = "software_licenses"

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    pc_asset_id = db.Column(db.Integer, db.ForeignKey("pc_assets.id"), nullable=False, index=True)
    software_name = db.Column(db.String(200), nullable=False)
    license_key = db.Column(db.String(255))
    expiration_date = db.Column(db.Date)
    monthly_cost = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)


class VendorRow(db.Model, TimestampMixin):
    __tablename__ = "vendors"

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    name = db.Column(db.String(200), nullable=False)
    phone = db.Column(db.String(50))
    address = db.Column(db.String(500))
    contact_person = db.Column(db.String(100))
    email = db.Column(db.String(255))
    rating = db.Column(db.Integer)
    notes = db.Column(db.Text)


class MaintenanceRecordRow(db.Model, TimestampMixin):
    __tablename__ = "maintenance_records"

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    vehicle_id = db.Column(db.Integer, db.ForeignKey("vehicles.id"), nullable=False, index=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), index=True)
    type = db.Column(db.String(20), nullable=False)
    date = db.Column(db.Date, nullable=False)
    mileage = db.Column(db.Integer)
    cost = db.Column(db.Integer, nullable=False, default=0)
    description = db.Column(db.Text)
    tire_type = db.Column(db.String(20))
    next_due_date = db.Column(db.Date)
    next_due_mileage = db.Column(db.Integer)
    performed_by = db.Column(db.Integer)
    performed_by_name = db.Column(db.String(100))
    notes = db.Column(db.Text)


class MonthlyMileageRow(db.Model):
    __tablename__ = "monthly_mileages"
    __table_args__ = (db.UniqueConstraint("vehicle_id", "month", name="uq_monthly_mileages_vehicle_month"),)

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = tenant_fk()
    vehicle_id = db.Column(db.Integer, db.ForeignKey("vehicles.id"), nullable=False, index=True)
    month = db.Column(db.String(7), nullable=False)
    distance = db.Column(db.Integer, nullable=False, default=0)
    recorded_by = db.Column(db.Integer)
    recorded_by_name = db.Column(db.String(100))
    recorded_at = db.Column(db.DateTime, nullable=False, default=datetime.now)

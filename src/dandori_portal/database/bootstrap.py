"""Schema creation and demo data for local development."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

import mysql.connector
from flask_sqlalchemy import SQLAlchemy
from werkzeug.security import generate_password_hash

from ..core.enums import UserRole
from . import tables  # noqa: F401  (registers every table on db.metadata)
from .session import session_scope
from .tables.organization import OrgUnitRow
from .tables.tenants import TenantRow
from .tables.users import UserRow

logger = logging.getLogger(__name__)

DEMO_TENANT_NAME = "デモ株式会社"


@dataclass(frozen=True)
class DBTarget:
    host: str
    port: int
    user: str
    password: str
    database: str


def _as_target(db_config: dict) -> DBTarget:
    return DBTarget(
        host=str(db_config.get("host", "localhost")),
        port=int(db_config.get("port", 3306)),
        user=str(db_config.get("user", "root")),
        password=str(db_config.get("password", "")),
        database=str(db_config.get("database", "dandori_portal")),
    )


def ensure_database_exists(db_config: dict) -> None:
    """CREATE DATABASE IF NOT EXISTS on the MySQL server named in DB_CONFIG."""
    target = _as_target(db_config)
    conn = mysql.connector.connect(
        host=target.host,
        port=target.port,
        user=target.user,
        password=target.password,
        use_pure=True,
    )
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def init_schema(db: SQLAlchemy, *, db_config: dict | None = None) -> list[str]:
    """Create every table; returns the table names now present."""
    if db_config and db.engine.url.get_backend_name() == "mysql":
        ensure_database_exists(db_config)
    db.create_all()
    return sorted(db.metadata.tables)


def seed_demo(db: SQLAlchemy) -> int:
    """Upsert a demo tenant with org units and one user per role; returns the tenant id."""
    with session_scope(db) as s:
        tenant = s.query(TenantRow).filter_by(name=DEMO_TENANT_NAME).first()
        if tenant is None:
            tenant = TenantRow(name=DEMO_TENANT_NAME, plan="standard", contact_email="admin@dandori.example")
            s.add(tenant)
            s.flush()

        def upsert_unit(code: str, name: str, parent: OrgUnitRow | None, sort_order: int) -> OrgUnitRow:
            unit = s.query(OrgUnitRow).filter_by(tenant_id=tenant.id, code=code).first()
            if unit is None:
                unit = OrgUnitRow(tenant_id=tenant.id, code=code)
                s.add(unit)
            unit.name = name
            unit.parent_id = parent.id if parent else None
            unit.level = parent.level + 1 if parent else 1
            unit.sort_order = sort_order
            s.flush()
            return unit

        head = upsert_unit("HQ", "本社", None, 0)
        sales = upsert_unit("SALES", "営業部", head, 1)
        hr_unit = upsert_unit("HR", "人事部", head, 2)

        def upsert_user(email: str, name: str, password: str, role: UserRole, unit: OrgUnitRow, position: str) -> UserRow:
            user = s.query(UserRow).filter_by(tenant_id=tenant.id, email=email).first()
            if user is None:
                user = UserRow(tenant_id=tenant.id, email=email, hire_date=date(2020, 4, 1))
                s.add(user)
            user.name = name
            user.password_hash = generate_password_hash(password)
            user.role = role.value
            user.status = "active"
            user.org_unit_id = unit.id
            user.department = unit.name
            user.position = position
            s.flush()
            return user

        admin = upsert_user("admin@dandori.example", "管理者 太郎", "admin123", UserRole.ADMIN, head, "システム管理者")
        upsert_user("exec@dandori.example", "役員 一郎", "exec123", UserRole.EXECUTIVE, head, "取締役")
        hr = upsert_user("hr@dandori.example", "人事 花子", "hr1234", UserRole.HR, hr_unit, "人事課長")
        manager = upsert_user("manager@dandori.example", "営業 部長", "manager123", UserRole.MANAGER, sales, "部長")
        employee = upsert_user("employee@dandori.example", "社員 次郎", "employee123", UserRole.EMPLOYEE, sales, "一般")

        head.manager_id = admin.id
        sales.manager_id = manager.id
        hr_unit.manager_id = hr.id
        employee.manager_id = manager.id
        tenant_id = tenant.id

    logger.info("Demo tenant ready (tenant_id=%s)", tenant_id)
    return tenant_id

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..core.enums import LicenseStatus
from ..core.exceptions import NotFoundError
from ..database.mapping import assign_columns, row_to_model
from ..database.repository_base import SQLAlchemyRepository
from ..database.session import session_scope
from ..database.tables.saas import LicenseAssignmentRow, LicensePlanRow, SaaSServiceRow
from .model import LicenseAssignment, LicensePlan, SaaSService
from .repository import SaaSRepository


class SQLAlchemySaaSRepository(SQLAlchemyRepository, SaaSRepository):
    def _insert(self, row_cls: type, model_cls: type, tenant_id: int, values: Mapping[str, Any]):
        with session_scope(self._db) as s:
            row = row_cls(tenant_id=tenant_id)
            assign_columns(row, values)
            s.add(row)
            s.flush()
            return row_to_model(model_cls, row)

    def _modify(self, row_cls: type, model_cls: type, tenant_id: int, row_id: int, values: Mapping[str, Any], label: str):
        with session_scope(self._db) as s:
            row = self._tenant_row(row_cls, tenant_id, row_id)
            if row is None:
                raise NotFoundError(f"{label}が見つかりません")
            assign_columns(row, values)
            s.flush()
            return row_to_model(model_cls, row)

    # ---- services ----------------------------------------------------------------

    def list_services(self, tenant_id: int, *, active_only: bool = False, category: Optional[str] = None) -> Sequence[SaaSService]:
        query = self._session.query(SaaSServiceRow).filter(SaaSServiceRow.tenant_id == tenant_id)
        if active_only:
            query = query.filter(SaaSServiceRow.is_active.is_(True))
        if category:
            query = query.filter(SaaSServiceRow.category == category)
        return [row_to_model(SaaSService, r) for r in query.order_by(SaaSServiceRow.name).all()]

    def get_service(self, tenant_id: int, service_id: int) -> Optional[SaaSService]:
        row = self._tenant_row(SaaSServiceRow, tenant_id, service_id)
        return row_to_model(SaaSService, row) if row else None

    def create_service(self, tenant_id: int, values: Mapping[str, Any]) -> SaaSService:
        return self._insert(SaaSServiceRow, SaaSService, tenant_id, values)

    def update_service(self, tenant_id: int, service_id: int, values: Mapping[str, Any]) -> SaaSService:
        return self._modify(SaaSServiceRow, SaaSService, tenant_id, service_id, values, "SaaSサービス")

    def delete_service(self, tenant_id: int, service_id: int) -> bool:
        with session_scope(self._db) as s:
            row = self._tenant_row(SaaSServiceRow, tenant_id, service_id)
            if row is None:
                return False
            s.query(LicenseAssignmentRow).filter_by(service_id=service_id).delete()
            s.query(LicensePlanRow).filter_by(service_id=service_id).delete()
            s.delete(row)
            return True

    # ---- plans -------------------------------------------------------------------

    def list_plans(self, tenant_id: int, *, service_id: Optional[int] = None) -> Sequence[LicensePlan]:
        query = self._session.query(LicensePlanRow).filter(LicensePlanRow.tenant_id == tenant_id)
        if service_id is not None:
            query = query.filter(LicensePlanRow.service_id == service_id)
        return [row_to_model(LicensePlan, r) for r in query.order_by(LicensePlanRow.id).all()]

    def get_plan(self, tenant_id: int, plan_id: int) -> Optional[LicensePlan]:
        row = self._tenant_row(LicensePlanRow, tenant_id, plan_id)
        return row_to_model(LicensePlan, row) if row else None

    def create_plan(self, tenant_id: int, values: Mapping[str, Any]) -> LicensePlan:
        return self._insert(LicensePlanRow, LicensePlan, tenant_id, values)

    def update_plan(self, tenant_id: int, plan_id: int, values: Mapping[str, Any]) -> LicensePlan:
        return self._modify(LicensePlanRow, LicensePlan, tenant_id, plan_id, values, "ライセンスプラン")

    def delete_plan(self, tenant_id: int, plan_id: int) -> bool:
        with session_scope(self._db) as s:
            row = self._tenant_row(LicensePlanRow, tenant_id, plan_id)
            if row is None:
                return False
            s.query(LicenseAssignmentRow).filter_by(plan_id=plan_id).delete()
            s.delete(row)
            return True

    # ---- assignments -------------------------------------------------------------

    def list_assignments(
        self,
        tenant_id: int,
        *,
        service_id: Optional[int] = None,
        user_id: Optional[int] = None,
        status: Optional[LicenseStatus] = None,
    ) -> Sequence[LicenseAssignment]:
        query = self._session.query(LicenseAssignmentRow).filter(LicenseAssignmentRow.tenant_id == tenant_id)
        if service_id is not None:
            query = query.filter(LicenseAssignmentRow.service_id == service_id)
        if user_id is not None:
            query = query.filter(LicenseAssignmentRow.user_id == user_id)
        if status is not None:
            query = query.filter(LicenseAssignmentRow.status == status.value)
        rows = query.order_by(LicenseAssignmentRow.assigned_date.desc(), LicenseAssignmentRow.id.desc()).all()
        return [row_to_model(LicenseAssignment, r) for r in rows]

    def get_assignment(self, tenant_id: int, assignment_id: int) -> Optional[LicenseAssignment]:
        row = self._tenant_row(LicenseAssignmentRow, tenant_id, assignment_id)
        return row_to_model(LicenseAssignment, row) if row else None

    def create_assignment(self, tenant_id: int, values: Mapping[str, Any]) -> LicenseAssignment:
        return self._insert(LicenseAssignmentRow, LicenseAssignment, tenant_id, values)

    def update_assignment(self, tenant_id: int, assignment_id: int, values: Mapping[str, Any]) -> LicenseAssignment:
        return self._modify(LicenseAssignmentRow, LicenseAssignment, tenant_id, assignment_id, values, "ライセンス割当")

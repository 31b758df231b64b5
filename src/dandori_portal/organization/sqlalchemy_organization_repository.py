from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..core.exceptions import NotFoundError
from ..database.mapping import assign_columns, row_to_model
from ..database.repository_base import SQLAlchemyRepository
from ..database.session import session_scope
from ..database.tables.organization import OrgTransferRow, OrgUnitRow
from .model import OrgUnit, TransferRecord
from .repository import OrganizationRepository


class SQLAlchemyOrganizationRepository(SQLAlchemyRepository, OrganizationRepository):
    def list_units(self, tenant_id: int) -> Sequence[OrgUnit]:
        rows = (
            self._session.query(OrgUnitRow)
            .filter(OrgUnitRow.tenant_id == tenant_id)
            .order_by(OrgUnitRow.level, OrgUnitRow.sort_order, OrgUnitRow.name)
            .all()
        )
        return [row_to_model(OrgUnit, r) for r in rows]

    def get_unit(self, tenant_id: int, unit_id: int) -> Optional[OrgUnit]:
        row = self._tenant_row(OrgUnitRow, tenant_id, unit_id)
        return row_to_model(OrgUnit, row) if row else None

    def get_unit_by_code(self, tenant_id: int, code: str) -> Optional[OrgUnit]:
        row = self._session.query(OrgUnitRow).filter_by(tenant_id=tenant_id, code=code).first()
        return row_to_model(OrgUnit, row) if row else None

    def create_unit(self, tenant_id: int, values: Mapping[str, Any]) -> OrgUnit:
        with session_scope(self._db) as s:
            row = OrgUnitRow(tenant_id=tenant_id)
            assign_columns(row, values)
            s.add(row)
            s.flush()
            return row_to_model(OrgUnit, row)

    def update_unit(self, tenant_id: int, unit_id: int, values: Mapping[str, Any]) -> OrgUnit:
        with session_scope(self._db) as s:
            row = self._tenant_row(OrgUnitRow, tenant_id, unit_id)
            if row is None:
                raise NotFoundError("組織が見つかりません")
            assign_columns(row, values)
            s.flush()
            return row_to_model(OrgUnit, row)

    def set_levels(self, tenant_id: int, levels: Mapping[int, int]) -> None:
        with session_scope(self._db):
            for unit_id, level in levels.items():
                row = self._tenant_row(OrgUnitRow, tenant_id, unit_id)
                if row is not None:
                    row.level = level

    def delete_unit(self, tenant_id: int, unit_id: int) -> bool:
        with session_scope(self._db) as s:
            row = self._tenant_row(OrgUnitRow, tenant_id, unit_id)
            if row is None:
                return False
            s.delete(row)
            return True

    def add_transfer(self, tenant_id: int, values: Mapping[str, Any]) -> TransferRecord:
        with session_scope(self._db) as s:
            row = OrgTransferRow(tenant_id=tenant_id)
            assign_columns(row, values)
            s.add(row)
            s.flush()
            return row_to_model(TransferRecord, row)

    def list_transfers(self, tenant_id: int, *, user_id: Optional[int] = None) -> Sequence[TransferRecord]:
        query = self._session.query(OrgTransferRow).filter(OrgTransferRow.tenant_id == tenant_id)
        if user_id is not None:
            query = query.filter(OrgTransferRow.user_id == user_id)
        rows = query.order_by(OrgTransferRow.effective_date.desc(), OrgTransferRow.id.desc()).all()
        return [row_to_model(TransferRecord, r) for r in rows]

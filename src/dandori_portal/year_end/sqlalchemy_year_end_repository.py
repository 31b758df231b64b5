from __future__ import annotations

from typing import Any, Mapping, Optional

from ..common.pagination import Page, PageRequest
from ..core.enums import DeclarationStatus, WithholdingSlipStatus, YearEndStatus
from ..core.exceptions import NotFoundError
from ..database.mapping import assign_columns, row_to_model
from ..database.repository_base import SQLAlchemyRepository
from ..database.session import session_scope
from ..database.tables.year_end import DeclarationRow, WithholdingSlipRow, YearEndResultRow
from .model import Declaration, WithholdingSlip, YearEndResult
from .repository import DeclarationRepository, WithholdingSlipRepository, YearEndResultRepository


def _filtered(query, row_cls, tenant_id, user_id, fiscal_year, status):
    query = query.filter(row_cls.tenant_id == tenant_id)
    if user_id is not None:
        query = query.filter(row_cls.user_id == user_id)
    if fiscal_year is not None:
        query = query.filter(row_cls.fiscal_year == fiscal_year)
    if status is not None:
        query = query.filter(row_cls.status == status.value)
    return query.order_by(row_cls.fiscal_year.desc(), row_cls.user_id, row_cls.id)


class SQLAlchemyDeclarationRepository(SQLAlchemyRepository, DeclarationRepository):
    def list(
        self,
        tenant_id: int,
        *,
        user_id: Optional[int] = None,
        fiscal_year: Optional[int] = None,
        status: Optional[DeclarationStatus] = None,
        request: PageRequest,
    ) -> Page[Declaration]:
        query = _filtered(self._session.query(DeclarationRow), DeclarationRow, tenant_id, user_id, fiscal_year, status)
        return self._page(query, request, Declaration)

    def get(self, tenant_id: int, declaration_id: int) -> Optional[Declaration]:
        row = self._tenant_row(DeclarationRow, tenant_id, declaration_id)
        return row_to_model(Declaration, row) if row else None

    def find(self, tenant_id: int, user_id: int, fiscal_year: int) -> Optional[Declaration]:
        row = (
            self._session.query(DeclarationRow)
            .filter_by(tenant_id=tenant_id, user_id=user_id, fiscal_year=fiscal_year)
            .one_or_none()
        )
        return row_to_model(Declaration, row) if row else None

    def create(self, tenant_id: int, values: Mapping[str, Any]) -> Declaration:
        with session_scope(self._db) as s:
            row = DeclarationRow(tenant_id=tenant_id)
            assign_columns(row, values)
            s.add(row)
            s.flush()
            return row_to_model(Declaration, row)

    def update(self, tenant_id: int, declaration_id: int, values: Mapping[str, Any]) -> Declaration:
        with session_scope(self._db) as s:
            row = self._tenant_row(DeclarationRow, tenant_id, declaration_id)
            if row is None:
                raise NotFoundError("申告書が見つかりません")
            assign_columns(row, values)
            s.flush()
            return row_to_model(Declaration, row)

    def delete(self, tenant_id: int, declaration_id: int) -> bool:
        with session_scope(self._db) as s:
            row = self._tenant_row(DeclarationRow, tenant_id, declaration_id)
            if row is None:
                return False
            s.delete(row)
            return True


class SQLAlchemyYearEndResultRepository(SQLAlchemyRepository, YearEndResultRepository):
    def list(
        self,
        tenant_id: int,
        *,
        user_id: Optional[int] = None,
        fiscal_year: Optional[int] = None,
        status: Optional[YearEndStatus] = None,
        request: PageRequest,
    ) -> Page[YearEndResult]:
        query = _filtered(self._session.query(YearEndResultRow), YearEndResultRow, tenant_id, user_id, fiscal_year, status)
        return self._page(query, request, YearEndResult)

    def get(self, tenant_id: int, result_id: int) -> Optional[YearEndResult]:
        row = self._tenant_row(YearEndResultRow, tenant_id, result_id)
        return row_to_model(YearEndResult, row) if row else None

    def _find_row(self, tenant_id: int, user_id: int, fiscal_year: int) -> Optional[YearEndResultRow]:
        return (
            self._session.query(YearEndResultRow)
            .filter_by(tenant_id=tenant_id, user_id=user_id, fiscal_year=fiscal_year)
            .one_or_none()
        )

    def find(self, tenant_id: int, user_id: int, fiscal_year: int) -> Optional[YearEndResult]:
        row = self._find_row(tenant_id, user_id, fiscal_year)
        return row_to_model(YearEndResult, row) if row else None

    def upsert(self, tenant_id: int, user_id: int, fiscal_year: int, values: Mapping[str, Any]) -> YearEndResult:
        with session_scope(self._db) as s:
            row = self._find_row(tenant_id, user_id, fiscal_year)
            if row is None:
                row = YearEndResultRow(tenant_id=tenant_id, user_id=user_id, fiscal_year=fiscal_year)
                s.add(row)
            assign_columns(row, values)
            s.flush()
            return row_to_model(YearEndResult, row)

    def update(self, tenant_id: int, result_id: int, values: Mapping[str, Any]) -> YearEndResult:
        with session_scope(self._db) as s:
            row = self._tenant_row(YearEndResultRow, tenant_id, result_id)
            if row is None:
                raise NotFoundError("年末調整結果が見つかりません")
            assign_columns(row, values)
            s.flush()
            return row_to_model(YearEndResult, row)


class SQLAlchemyWithholdingSlipRepository(SQLAlchemyRepository, WithholdingSlipRepository):
    def list(
        self,
        tenant_id: int,
        *,
        user_id: Optional[int] = None,
        fiscal_year: Optional[int] = None,
        status: Optional[WithholdingSlipStatus] = None,
        request: PageRequest,
    ) -> Page[WithholdingSlip]:
        query = _filtered(
            self._session.query(WithholdingSlipRow), WithholdingSlipRow, tenant_id, user_id, fiscal_year, status
        )
        return self._page(query, request, WithholdingSlip)

    def get(self, tenant_id: int, slip_id: int) -> Optional[WithholdingSlip]:
        row = self._tenant_row(WithholdingSlipRow, tenant_id, slip_id)
        return row_to_model(WithholdingSlip, row) if row else None

    def find_original(self, tenant_id: int, user_id: int, fiscal_year: int) -> Optional[WithholdingSlip]:
        row = (
            self._session.query(WithholdingSlipRow)
            .filter_by(tenant_id=tenant_id, user_id=user_id, fiscal_year=fiscal_year, is_reissue=False)
            .order_by(WithholdingSlipRow.id)
            .first()
        )
        return row_to_model(WithholdingSlip, row) if row else None

    def create(self, tenant_id: int, values: Mapping[str, Any]) -> WithholdingSlip:
        with session_scope(self._db) as s:
            row = WithholdingSlipRow(tenant_id=tenant_id)
            assign_columns(row, values)
            s.add(row)
            s.flush()
            return row_to_model(WithholdingSlip, row)

    def update(self, tenant_id: int, slip_id: int, values: Mapping[str, Any]) -> WithholdingSlip:
        with session_scope(self._db) as s:
            row = self._tenant_row(WithholdingSlipRow, tenant_id, slip_id)
            if row is None:
                raise NotFoundError("源泉徴収票が見つかりません")
            assign_columns(row, values)
            s.flush()
            return row_to_model(WithholdingSlip, row)

    def delete(self, tenant_id: int, slip_id: int) -> bool:
        with session_scope(self._db) as s:
            row = self._tenant_row(WithholdingSlipRow, tenant_id, slip_id)
            if row is None:
                return False
            s.delete(row)
            return True

from __future__ import annotations

from datetime import date
from typing import Any, Generic, Mapping, Optional, Sequence, Type, TypeVar

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import or_

from ..common.pagination import Page, PageRequest
from ..core.enums import BonusType, PaySlipStatus
from ..core.exceptions import NotFoundError
from ..database.mapping import assign_columns, row_to_model
from ..database.repository_base import SQLAlchemyRepository
from ..database.session import session_scope
from ..database.tables.payroll import BonusSlipRow, PaySlipRow
from .model import BonusSlip, PaySlip
from .repository import BonusSlipRepository, MasterDataRepository, PaySlipRepository

M = TypeVar("M")


class SQLAlchemyMasterDataRepository(SQLAlchemyRepository, MasterDataRepository[M], Generic[M]):
    def __init__(self, db: SQLAlchemy, row_cls: type, model_cls: Type[M], *, label: str):
        super().__init__(db)
        self._row_cls = row_cls
        self._model_cls = model_cls
        self._label = label

    def list(
        self,
        tenant_id: int,
        *,
        user_id: Optional[int] = None,
        active_only: bool = False,
        as_of: Optional[date] = None,
    ) -> Sequence[M]:
        row_cls = self._row_cls
        query = self._session.query(row_cls).filter(row_cls.tenant_id == tenant_id)
        if user_id is not None:
            query = query.filter(row_cls.user_id == user_id)
        if active_only:
            query = query.filter(row_cls.is_active.is_(True))
        if as_of is not None:
            query = query.filter(
                row_cls.effective_from <= as_of,
                or_(row_cls.effective_to.is_(None), row_cls.effective_to >= as_of),
            )
        rows = query.order_by(row_cls.user_id, row_cls.effective_from.desc(), row_cls.id.desc()).all()
        return [row_to_model(self._model_cls, r) for r in rows]

    def get(self, tenant_id: int, item_id: int) -> Optional[M]:
        row = self._tenant_row(self._row_cls, tenant_id, item_id)
        return row_to_model(self._model_cls, row) if row else None

    def create(self, tenant_id: int, values: Mapping[str, Any]) -> M:
        with session_scope(self._db) as s:
            row = self._row_cls(tenant_id=tenant_id)
            assign_columns(row, values)
            s.add(row)
            s.flush()
            return row_to_model(self._model_cls, row)

    def update(self, tenant_id: int, item_id: int, values: Mapping[str, Any]) -> M:
        with session_scope(self._db) as s:
            row = self._tenant_row(self._row_cls, tenant_id, item_id)
            if row is None:
                raise NotFoundError(f"{self._label}が見つかりません")
            assign_columns(row, values)
            s.flush()
            return row_to_model(self._model_cls, row)

    def delete(self, tenant_id: int, item_id: int) -> bool:
        with session_scope(self._db) as s:
            row = self._tenant_row(self._row_cls, tenant_id, item_id)
            if row is None:
                return False
            s.delete(row)
            return True


def _year_periods(year: int) -> tuple[str, str]:
    return f"{year:04d}-01", f"{year:04d}-12"


class SQLAlchemyPaySlipRepository(SQLAlchemyRepository, PaySlipRepository):
    def list(
        self,
        tenant_id: int,
        *,
        user_id: Optional[int] = None,
        pay_period: Optional[str] = None,
        status: Optional[PaySlipStatus] = None,
        request: PageRequest,
    ) -> Page[PaySlip]:
        query = self._session.query(PaySlipRow).filter(PaySlipRow.tenant_id == tenant_id)
        if user_id is not None:
            query = query.filter(PaySlipRow.user_id == user_id)
        if pay_period:
            query = query.filter(PaySlipRow.pay_period == pay_period)
        if status is not None:
            query = query.filter(PaySlipRow.status == status.value)
        query = query.order_by(PaySlipRow.pay_period.desc(), PaySlipRow.user_id)
        return self._page(query, request, PaySlip)

    def list_for_period(self, tenant_id: int, pay_period: str) -> Sequence[PaySlip]:
        rows = (
            self._session.query(PaySlipRow)
            .filter_by(tenant_id=tenant_id, pay_period=pay_period)
            .order_by(PaySlipRow.user_id)
            .all()
        )
        return [row_to_model(PaySlip, r) for r in rows]

    def list_for_year(self, tenant_id: int, user_id: int, year: int) -> Sequence[PaySlip]:
        first, last = _year_periods(year)
        rows = (
            self._session.query(PaySlipRow)
            .filter(
                PaySlipRow.tenant_id == tenant_id,
                PaySlipRow.user_id == user_id,
                PaySlipRow.pay_period >= first,
                PaySlipRow.pay_period <= last,
            )
            .order_by(PaySlipRow.pay_period)
            .all()
        )
        return [row_to_model(PaySlip, r) for r in rows]

    def get(self, tenant_id: int, slip_id: int) -> Optional[PaySlip]:
        row = self._tenant_row(PaySlipRow, tenant_id, slip_id)
        return row_to_model(PaySlip, row) if row else None

    def _find_row(self, tenant_id: int, user_id: int, pay_period: str) -> Optional[PaySlipRow]:
        return (
            self._session.query(PaySlipRow)
            .filter_by(tenant_id=tenant_id, user_id=user_id, pay_period=pay_period)
            .one_or_none()
        )

    def find(self, tenant_id: int, user_id: int, pay_period: str) -> Optional[PaySlip]:
        row = self._find_row(tenant_id, user_id, pay_period)
        return row_to_model(PaySlip, row) if row else None

    def latest_before(self, tenant_id: int, user_id: int, pay_period: str) -> Optional[PaySlip]:
        row = (
            self._session.query(PaySlipRow)
            .filter(
                PaySlipRow.tenant_id == tenant_id,
                PaySlipRow.user_id == user_id,
                PaySlipRow.pay_period <= pay_period,
            )
            .order_by(PaySlipRow.pay_period.desc())
            .first()
        )
        return row_to_model(PaySlip, row) if row else None

    def upsert(self, tenant_id: int, user_id: int, pay_period: str, values: Mapping[str, Any]) -> PaySlip:
        with session_scope(self._db) as s:
            row = self._find_row(tenant_id, user_id, pay_period)
            if row is None:
                row = PaySlipRow(tenant_id=tenant_id, user_id=user_id, pay_period=pay_period)
                s.add(row)
            assign_columns(row, values)
            s.flush()
            return row_to_model(PaySlip, row)

    def update(self, tenant_id: int, slip_id: int, values: Mapping[str, Any]) -> PaySlip:
        with session_scope(self._db) as s:
            row = self._tenant_row(PaySlipRow, tenant_id, slip_id)
            if row is None:
                raise NotFoundError("給与明細が見つかりません")
            assign_columns(row, values)
            s.flush()
            return row_to_model(PaySlip, row)

    def delete(self, tenant_id: int, slip_id: int) -> bool:
        with session_scope(self._db) as s:
            row = self._tenant_row(PaySlipRow, tenant_id, slip_id)
            if row is None:
                return False
            s.delete(row)
            return True


class SQLAlchemyBonusSlipRepository(SQLAlchemyRepository, BonusSlipRepository):
    def list(
        self,
        tenant_id: int,
        *,
        user_id: Optional[int] = None,
        pay_period: Optional[str] = None,
        bonus_type: Optional[BonusType] = None,
        request: PageRequest,
    ) -> Page[BonusSlip]:
        query = self._session.query(BonusSlipRow).filter(BonusSlipRow.tenant_id == tenant_id)
        if user_id is not None:
            query = query.filter(BonusSlipRow.user_id == user_id)
        if pay_period:
            query = query.filter(BonusSlipRow.pay_period == pay_period)
        if bonus_type is not None:
            query = query.filter(BonusSlipRow.bonus_type == bonus_type.value)
        query = query.order_by(BonusSlipRow.payment_date.desc(), BonusSlipRow.id.desc())
        return self._page(query, request, BonusSlip)

    def list_for_year(self, tenant_id: int, user_id: int, year: int) -> Sequence[BonusSlip]:
        first, last = _year_periods(year)
        rows = (
            self._session.query(BonusSlipRow)
            .filter(
                BonusSlipRow.tenant_id == tenant_id,
                BonusSlipRow.user_id == user_id,
                BonusSlipRow.pay_period >= first,
                BonusSlipRow.pay_period <= last,
            )
            .order_by(BonusSlipRow.pay_period)
            .all()
        )
        return [row_to_model(BonusSlip, r) for r in rows]

    def get(self, tenant_id: int, slip_id: int) -> Optional[BonusSlip]:
        row = self._tenant_row(BonusSlipRow, tenant_id, slip_id)
        return row_to_model(BonusSlip, row) if row else None

    def find(self, tenant_id: int, user_id: int, pay_period: str, bonus_type: BonusType) -> Optional[BonusSlip]:
        row = (
            self._session.query(BonusSlipRow)
            .filter_by(tenant_id=tenant_id, user_id=user_id, pay_period=pay_period, bonus_type=bonus_type.value)
            .one_or_none()
        )
        return row_to_model(BonusSlip, row) if row else None

    def create(self, tenant_id: int, values: Mapping[str, Any]) -> BonusSlip:
        with session_scope(self._db) as s:
            row = BonusSlipRow(tenant_id=tenant_id)
            assign_columns(row, values)
            s.add(row)
            s.flush()
            return row_to_model(BonusSlip, row)

    def update(self, tenant_id: int, slip_id: int, values: Mapping[str, Any]) -> BonusSlip:
        with session_scope(self._db) as s:
            row = self._tenant_row(BonusSlipRow, tenant_id, slip_id)
            if row is None:
                raise NotFoundError("賞与明細が見つかりません")
            assign_columns(row, values)
            s.flush()
            return row_to_model(BonusSlip, row)

    def delete(self, tenant_id: int, slip_id: int) -> bool:
        with session_scope(self._db) as s:
            row = self._tenant_row(BonusSlipRow, tenant_id, slip_id)
            if row is None:
                return False
            s.delete(row)
            return True

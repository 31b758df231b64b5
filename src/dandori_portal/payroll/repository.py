from __future__ import annotations

from datetime import date
from typing import Any, Generic, Mapping, Optional, Protocol, Sequence, TypeVar

from ..common.pagination import Page, PageRequest
from ..core.enums import BonusType, PaySlipStatus
from .model import BonusSlip, PaySlip

M = TypeVar("M")


class MasterDataRepository(Protocol, Generic[M]):
    """Salary settings, allowances and deductions share one shape of storage."""

    def list(
        self,
        tenant_id: int,
        *,
        user_id: Optional[int] = None,
        active_only: bool = False,
        as_of: Optional[date] = None,
    ) -> Sequence[M]:
        raise NotImplementedError

    def get(self, tenant_id: int, item_id: int) -> Optional[M]:
        raise NotImplementedError

    def create(self, tenant_id: int, values: Mapping[str, Any]) -> M:
        raise NotImplementedError

    def update(self, tenant_id: int, item_id: int, values: Mapping[str, Any]) -> M:
        raise NotImplementedError

    def delete(self, tenant_id: int, item_id: int) -> bool:
        raise NotImplementedError


class PaySlipRepository(Protocol):
    def list(
        self,
        tenant_id: int,
        *,
        user_id: Optional[int] = None,
        pay_period: Optional[str] = None,
        status: Optional[PaySlipStatus] = None,
        request: PageRequest,
    ) -> Page[PaySlip]:
        raise NotImplementedError

    def list_for_period(self, tenant_id: int, pay_period: str) -> Sequence[PaySlip]:
        raise NotImplementedError

    def list_for_year(self, tenant_id: int, user_id: int, year: int) -> Sequence[PaySlip]:
        raise NotImplementedError

    def get(self, tenant_id: int, slip_id: int) -> Optional[PaySlip]:
        raise NotImplementedError

    def find(self, tenant_id: int, user_id: int, pay_period: str) -> Optional[PaySlip]:
        raise NotImplementedError

    def latest_before(self, tenant_id: int, user_id: int, pay_period: str) -> Optional[PaySlip]:
        raise NotImplementedError

    def upsert(self, tenant_id: int, user_id: int, pay_period: str, values: Mapping[str, Any]) -> PaySlip:
        raise NotImplementedError

    def update(self, tenant_id: int, slip_id: int, values: Mapping[str, Any]) -> PaySlip:
        raise NotImplementedError

    def delete(self, tenant_id: int, slip_id: int) -> bool:
        raise NotImplementedError


class BonusSlipRepository(Protocol):
    def list(
        self,
        tenant_id: int,
        *,
        user_id: Optional[int] = None,
        pay_period: Optional[str] = None,
        bonus_type: Optional[BonusType] = None,
        request: PageRequest,
    ) -> Page[BonusSlip]:
        raise NotImplementedError

    def list_for_year(self, tenant_id: int, user_id: int, year: int) -> Sequence[BonusSlip]:
        raise NotImplementedError

    def get(self, tenant_id: int, slip_id: int) -> Optional[BonusSlip]:
        raise NotImplementedError

    def find(self, tenant_id: int, user_id: int, pay_period: str, bonus_type: BonusType) -> Optional[BonusSlip]:
        raise NotImplementedError

    def create(self, tenant_id: int, values: Mapping[str, Any]) -> BonusSlip:
        raise NotImplementedError

    def update(self, tenant_id: int, slip_id: int, values: Mapping[str, Any]) -> BonusSlip:
        raise NotImplementedError

    def delete(self, tenant_id: int, slip_id: int) -> bool:
        raise NotImplementedError

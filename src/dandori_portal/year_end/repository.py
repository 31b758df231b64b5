from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

from ..common.pagination import Page, PageRequest
from ..core.enums import DeclarationStatus, WithholdingSlipStatus, YearEndStatus
from .model import Declaration, WithholdingSlip, YearEndResult


class DeclarationRepository(Protocol):
    def list(
        self,
        tenant_id: int,
        *,
        user_id: Optional[int] = None,
        fiscal_year: Optional[int] = None,
        status: Optional[DeclarationStatus] = None,
        request: PageRequest,
    ) -> Page[Declaration]:
        raise NotImplementedError

    def get(self, tenant_id: int, declaration_id: int) -> Optional[Declaration]:
        raise NotImplementedError

    def find(self, tenant_id: int, user_id: int, fiscal_year: int) -> Optional[Declaration]:
        raise NotImplementedError

    def create(self, tenant_id: int, values: Mapping[str, Any]) -> Declaration:
        raise NotImplementedError

    def update(self, tenant_id: int, declaration_id: int, values: Mapping[str, Any]) -> Declaration:
        raise NotImplementedError

    def delete(self, tenant_id: int, declaration_id: int) -> bool:
        raise NotImplementedError


class YearEndResultRepository(Protocol):
    def list(
        self,
        tenant_id: int,
        *,
        user_id: Optional[int] = None,
        fiscal_year: Optional[int] = None,
        status: Optional[YearEndStatus] = None,
        request: PageRequest,
    ) -> Page[YearEndResult]:
        raise NotImplementedError

    def get(self, tenant_id: int, result_id: int) -> Optional[YearEndResult]:
        raise NotImplementedError

    def find(self, tenant_id: int, user_id: int, fiscal_year: int) -> Optional[YearEndResult]:
        raise NotImplementedError

    def upsert(self, tenant_id: int, user_id: int, fiscal_year: int, values: Mapping[str, Any]) -> YearEndResult:
        raise NotImplementedError

    def update(self, tenant_id: int, result_id: int, values: Mapping[str, Any]) -> YearEndResult:
        raise NotImplementedError


class WithholdingSlipRepository(Protocol):
    def list(
        self,
        tenant_id: int,
        *,
        user_id: Optional[int] = None,
        fiscal_year: Optional[int] = None,
        status: Optional[WithholdingSlipStatus] = None,
        request: PageRequest,
    ) -> Page[WithholdingSlip]:
        raise NotImplementedError

    def get(self, tenant_id: int, slip_id: int) -> Optional[WithholdingSlip]:
        raise NotImplementedError

    def find_original(self, tenant_id: int, user_id: int, fiscal_year: int) -> Optional[WithholdingSlip]:
        """The user's non-reissue slip of the year."""
        raise NotImplementedError

    def create(self, tenant_id: int, values: Mapping[str, Any]) -> WithholdingSlip:
        raise NotImplementedError

    def update(self, tenant_id: int, slip_id: int, values: Mapping[str, Any]) -> WithholdingSlip:
        raise NotImplementedError

    def delete(self, tenant_id: int, slip_id: int) -> bool:
        raise NotImplementedError


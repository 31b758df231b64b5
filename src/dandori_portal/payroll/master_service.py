from __future__ import annotations

import logging
from datetime import date
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import to_date, to_optional_date
from ..common.validators import parse_bool, parse_enum, require_fields, require_non_empty, to_int
from ..core.enums import AllowanceCode, EmploymentType
from ..core.exceptions import NotFoundError, ValidationError
from ..users.repository import UserRepository
from .model import EmployeeAllowance, EmployeeDeduction, SalarySetting
from .repository import MasterDataRepository

logger = logging.getLogger(__name__)


def effective_setting(settings: Sequence[SalarySetting], on: date) -> Optional[SalarySetting]:
    """The effective setting with the latest effective_from."""
    candidates = [s for s in settings if s.is_effective(on)]
    if not candidates:
        return None
    return max(candidates, key=lambda s: (s.effective_from, s.id))


def _period_fields(payload: Mapping[str, Any], values: dict[str, Any], *, partial: bool) -> None:
    if not partial or "effective_from" in payload:
        values["effective_from"] = to_date(payload.get("effective_from"), "effective_from")
    if not partial or "effective_to" in payload:
        values["effective_to"] = to_optional_date(payload.get("effective_to"), "effective_to")
    if not partial or "is_active" in payload:
        values["is_active"] = parse_bool(payload.get("is_active", True))
    if values.get("effective_to") and values.get("effective_from") and values["effective_to"] < values["effective_from"]:
        raise ValidationError("effective_toはeffective_from以降を指定してください")


class PayrollMasterService:
    """Per-employee salary settings, allowances and deductions."""

    def __init__(
        self,
        settings: MasterDataRepository[SalarySetting],
        allowances: MasterDataRepository[EmployeeAllowance],
        deductions: MasterDataRepository[EmployeeDeduction],
        users: UserRepository,
    ):
        self._settings = settings
        self._allowances = allowances
        self._deductions = deductions
        self._users = users

    def _check_user(self, tenant_id: int, user_id: Any) -> int:
        user_id = to_int(user_id, "user_id")
        if not self._users.get(tenant_id, user_id):
            raise NotFoundError("ユーザーが見つかりません")
        return user_id

    # ---- salary settings ---------------------------------------------------------

    def list_settings(
        self,
        tenant_id: int,
        *,
        user_id: Optional[int] = None,
        active_only: bool = False,
        as_of: Optional[date] = None,
    ) -> Sequence[SalarySetting]:
        return self._settings.list(tenant_id, user_id=user_id, active_only=active_only, as_of=as_of)

    def effective_setting(self, tenant_id: int, user_id: int, on: date) -> Optional[SalarySetting]:
        return effective_setting(self._settings.list(tenant_id, user_id=user_id, active_only=True), on)

    def create_setting(self, tenant_id: int, payload: Mapping[str, Any]) -> SalarySetting:
        require_fields(payload, ["user_id", "effective_from", "basic_salary"])
        values = self._setting_values(payload, partial=False)
        values["user_id"] = self._check_user(tenant_id, payload["user_id"])
        setting = self._settings.create(tenant_id, values)
        logger.info("Salary setting created id=%s user_id=%s", setting.id, setting.user_id)
        return setting

    def update_setting(self, tenant_id: int, setting_id: int, payload: Mapping[str, Any]) -> SalarySetting:
        if not self._settings.get(tenant_id, setting_id):
            raise NotFoundError("給与設定が見つかりません")
        return self._settings.update(tenant_id, setting_id, self._setting_values(payload, partial=True))

    def delete_setting(self, tenant_id: int, setting_id: int) -> None:
        if not self._settings.delete(tenant_id, setting_id):
            raise NotFoundError("給与設定が見つかりません")

    def _setting_values(self, payload: Mapping[str, Any], *, partial: bool) -> dict[str, Any]:
        values: dict[str, Any] = {}
        if not partial or "employment_type" in payload:
            values["employment_type"] = parse_enum(
                EmploymentType, payload.get("employment_type") or EmploymentType.MONTHLY.value, "employment_type"
            )
        if not partial or "basic_salary" in payload:
            values["basic_salary"] = to_int(payload.get("basic_salary"), "basic_salary", minimum=0)
        if not partial or "hourly_rate" in payload:
            rate = payload.get("hourly_rate")
            values["hourly_rate"] = to_int(rate, "hourly_rate", minimum=0) if rate not in (None, "") else None
        if not partial or "working_days_per_month" in payload:
            values["working_days_per_month"] = to_int(
                payload.get("working_days_per_month"), "working_days_per_month", default=20, minimum=1
            )
        if not partial or "dependent_count" in payload:
            values["dependent_count"] = to_int(payload.get("dependent_count"), "dependent_count", default=0, minimum=0)
        if not partial or "resident_tax_amount" in payload:
            values["resident_tax_amount"] = to_int(
                payload.get("resident_tax_amount"), "resident_tax_amount", default=0, minimum=0
            )
        _period_fields(payload, values, partial=partial)
        return values

    # ---- allowances ------------------------------------------------------------

    def list_allowances(
        self,
        tenant_id: int,
        *,
        user_id: Optional[int] = None,
        active_only: bool = False,
        as_of: Optional[date] = None,
    ) -> Sequence[EmployeeAllowance]:
        return self._allowances.list(tenant_id, user_id=user_id, active_only=active_only, as_of=as_of)

    def effective_allowances(self, tenant_id: int, user_id: int, on: date) -> tuple[EmployeeAllowance, ...]:
        return tuple(a for a in self._allowances.list(tenant_id, user_id=user_id) if a.is_effective(on))

    def create_allowance(self, tenant_id: int, payload: Mapping[str, Any]) -> EmployeeAllowance:
        require_fields(payload, ["user_id", "allowance_code", "name", "amount", "effective_from"])
        values = self._allowance_values(payload, partial=False)
        values["user_id"] = self._check_user(tenant_id, payload["user_id"])
        return self._allowances.create(tenant_id, values)

    def update_allowance(self, tenant_id: int, allowance_id: int, payload: Mapping[str, Any]) -> EmployeeAllowance:
        if not self._allowances.get(tenant_id, allowance_id):
            raise NotFoundError("手当が見つかりません")
        return self._allowances.update(tenant_id, allowance_id, self._allowance_values(payload, partial=True))

    def delete_allowance(self, tenant_id: int, allowance_id: int) -> None:
        if not self._allowances.delete(tenant_id, allowance_id):
            raise NotFoundError("手当が見つかりません")

    def _allowance_values(self, payload: Mapping[str, Any], *, partial: bool) -> dict[str, Any]:
        values: dict[str, Any] = {}
        if not partial or "allowance_code" in payload:
            values["allowance_code"] = parse_enum(AllowanceCode, payload.get("allowance_code"), "allowance_code")
        if not partial or "name" in payload:
            values["name"] = require_non_empty(payload.get("name"), "name")
        if not partial or "amount" in payload:
            values["amount"] = to_int(payload.get("amount"), "amount", minimum=0)
        _period_fields(payload, values, partial=partial)
        return values

    # ---- deductions ------------------------------------------------------------

    def list_deductions(
        self,
        tenant_id: int,
        *,
        user_id: Optional[int] = None,
        active_only: bool = False,
        as_of: Optional[date] = None,
    ) -> Sequence[EmployeeDeduction]:
        return self._deductions.list(tenant_id, user_id=user_id, active_only=active_only, as_of=as_of)

    def effective_deductions(self, tenant_id: int, user_id: int, on: date) -> tuple[EmployeeDeduction, ...]:
        return tuple(d for d in self._deductions.list(tenant_id, user_id=user_id) if d.is_effective(on))

    def create_deduction(self, tenant_id: int, payload: Mapping[str, Any]) -> EmployeeDeduction:
        require_fields(payload, ["user_id", "deduction_code", "name", "amount", "effective_from"])
        values = self._deduction_values(payload, partial=False)
        values["user_id"] = self._check_user(tenant_id, payload["user_id"])
        return self._deductions.create(tenant_id, values)

    def update_deduction(self, tenant_id: int, deduction_id: int, payload: Mapping[str, Any]) -> EmployeeDeduction:
        if not self._deductions.get(tenant_id, deduction_id):
            raise NotFoundError("控除が見つかりません")
        return self._deductions.update(tenant_id, deduction_id, self._deduction_values(payload, partial=True))

    def delete_deduction(self, tenant_id: int, deduction_id: int) -> None:
        if not self._deductions.delete(tenant_id, deduction_id):
            raise NotFoundError("控除が見つかりません")

    def _deduction_values(self, payload: Mapping[str, Any], *, partial: bool) -> dict[str, Any]:
        values: dict[str, Any] = {}
        if not partial or "deduction_code" in payload:
            values["deduction_code"] = require_non_empty(payload.get("deduction_code"), "deduction_code")
        if not partial or "name" in payload:
            values["name"] = require_non_empty(payload.get("name"), "name")
        if not partial or "amount" in payload:
            values["amount"] = to_int(payload.get("amount"), "amount", minimum=0)
        _period_fields(payload, values, partial=partial)
        return values

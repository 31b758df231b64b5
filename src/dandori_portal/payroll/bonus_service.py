from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from ..common.datetime_utils import format_period, parse_period, to_date
from ..common.pagination import Page, PageRequest
from ..common.validators import parse_enum, require_fields, to_int
from ..core.enums import BonusSlipStatus, BonusType
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..tax.income_tax import bonus_withholding
from ..users.repository import UserRepository
from .calculator.standard_calculator import insurance_premiums
from .master_service import PayrollMasterService
from .model import BonusSlip
from .repository import BonusSlipRepository, PaySlipRepository

logger = logging.getLogger(__name__)

_AMOUNT_FIELDS = ("health_insurance", "pension_insurance", "employment_insurance", "income_tax")


class BonusService:
    def __init__(
        self,
        bonuses: BonusSlipRepository,
        slips: PaySlipRepository,
        master: PayrollMasterService,
        users: UserRepository,
    ):
        self._bonuses = bonuses
        self._slips = slips
        self._master = master
        self._users = users

    def list_bonuses(
        self,
        tenant_id: int,
        *,
        user_id: Optional[int] = None,
        pay_period: Optional[str] = None,
        bonus_type: Optional[str] = None,
        request: Optional[PageRequest] = None,
    ) -> Page[BonusSlip]:
        return self._bonuses.list(
            tenant_id,
            user_id=user_id,
            pay_period=pay_period or None,
            bonus_type=parse_enum(BonusType, bonus_type, "bonus_type") if bonus_type else None,
            request=request or PageRequest(),
        )

    def _previous_taxable(self, tenant_id: int, user_id: int, pay_period: str) -> int:
        slip = self._slips.latest_before(tenant_id, user_id, pay_period)
        if not slip:
            return 0
        return max(slip.gross_pay - slip.social_insurance, 0)

    def compute_amounts(self, tenant_id: int, user_id: int, pay_period: str, gross: int, supplied: Mapping[str, Any]) -> dict[str, int]:
        """Insurance and income tax of a bonus; supplied amounts win over computed ones."""
        health, pension, employment = insurance_premiums(gross)
        amounts = {"health_insurance": health, "pension_insurance": pension, "employment_insurance": employment}
        for key in amounts:
            if supplied.get(key) not in (None, ""):
                amounts[key] = to_int(supplied[key], key, minimum=0)

        if supplied.get("income_tax") not in (None, ""):
            amounts["income_tax"] = to_int(supplied["income_tax"], "income_tax", minimum=0)
        else:
            setting = self._master.effective_setting(tenant_id, user_id, to_date(f"{pay_period}-01", "pay_period"))
            dependents = setting.dependent_count if setting else 0
            taxable = max(gross - sum(amounts.values()), 0)
            amounts["income_tax"] = bonus_withholding(
                taxable, self._previous_taxable(tenant_id, user_id, pay_period), dependents
            )
        amounts["net_bonus"] = gross - sum(amounts[k] for k in _AMOUNT_FIELDS)
        return amounts

    def create_bonus(self, tenant_id: int, payload: Mapping[str, Any]) -> BonusSlip:
        require_fields(payload, ["user_id", "bonus_type", "pay_period", "payment_date"])
        user_id = to_int(payload["user_id"], "user_id")
        if not self._users.get(tenant_id, user_id):
            raise NotFoundError("ユーザーが見つかりません")
        bonus_type = parse_enum(BonusType, payload["bonus_type"], "bonus_type")
        period = format_period(*parse_period(payload["pay_period"]))
        if self._bonuses.find(tenant_id, user_id, period, bonus_type):
            raise ConflictError("同じ期間・種別の賞与明細が既に存在します")

        gross = to_int(payload.get("gross_bonus"), "gross_bonus", default=0, minimum=0)
        slip = self._bonuses.create(
            tenant_id,
            {
                "user_id": user_id,
                "bonus_type": bonus_type,
                "pay_period": period,
                "payment_date": to_date(payload["payment_date"], "payment_date"),
                "gross_bonus": gross,
                "status": BonusSlipStatus.DRAFT,
                **self.compute_amounts(tenant_id, user_id, period, gross, payload),
            },
        )
        logger.info("Bonus slip created id=%s user_id=%s", slip.id, user_id)
        return slip

    def update_bonus(self, tenant_id: int, slip_id: int, payload: Mapping[str, Any]) -> BonusSlip:
        slip = self._require(tenant_id, slip_id)
        if slip.status == BonusSlipStatus.PAID:
            raise ValidationError("支払済の賞与明細は更新できません")

        action = payload.get("action")
        if action == "approve":
            return self.approve(tenant_id, slip_id)
        if action == "pay":
            return self.mark_paid(tenant_id, slip_id)

        values: dict[str, Any] = {}
        if "payment_date" in payload:
            values["payment_date"] = to_date(payload["payment_date"], "payment_date")
        if "gross_bonus" in payload or any(k in payload for k in _AMOUNT_FIELDS):
            gross = to_int(payload.get("gross_bonus", slip.gross_bonus), "gross_bonus", minimum=0)
            values["gross_bonus"] = gross
            values.update(self.compute_amounts(tenant_id, slip.user_id, slip.pay_period, gross, payload))
        if not values:
            return slip
        return self._bonuses.update(tenant_id, slip_id, values)

    def approve(self, tenant_id: int, slip_id: int) -> BonusSlip:
        slip = self._require(tenant_id, slip_id)
        if slip.status != BonusSlipStatus.DRAFT:
            raise ValidationError("下書きの賞与明細のみ承認できます")
        return self._bonuses.update(tenant_id, slip_id, {"status": BonusSlipStatus.APPROVED})

    def mark_paid(self, tenant_id: int, slip_id: int) -> BonusSlip:
        slip = self._require(tenant_id, slip_id)
        if slip.status != BonusSlipStatus.APPROVED:
            raise ValidationError("承認済の賞与明細のみ支払済にできます")
        return self._bonuses.update(tenant_id, slip_id, {"status": BonusSlipStatus.PAID})

    def delete_bonus(self, tenant_id: int, slip_id: int) -> None:
        slip = self._require(tenant_id, slip_id)
        if slip.status == BonusSlipStatus.PAID:
            raise ValidationError("支払済の賞与明細は削除できません")
        self._bonuses.delete(tenant_id, slip_id)

    def _require(self, tenant_id: int, slip_id: int) -> BonusSlip:
        slip = self._bonuses.get(tenant_id, slip_id)
        if not slip:
            raise NotFoundError("賞与明細が見つかりません")
        return slip

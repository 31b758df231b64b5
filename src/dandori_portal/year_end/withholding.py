from __future__ import annotations

import logging
import string
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.pagination import Page, PageRequest
from ..common.validators import parse_enum, to_int
from ..core.enums import DeclarationStatus, WithholdingSlipStatus, YearEndStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..tenants.repository import TenantRepository
from ..users.repository import UserRepository
from .model import BatchOutcome, WithholdingSlip
from .repository import DeclarationRepository, WithholdingSlipRepository, YearEndResultRepository
from .service import resolve_users

logger = logging.getLogger(__name__)

_DIGITS = string.digits + string.ascii_uppercase
_COPIED = (
    "user_id",
    "fiscal_year",
    "year_end_result_id",
    "payer_name",
    "payer_address",
    "recipient_name",
    "payment_amount",
    "employment_income",
    "deduction_total",
    "taxable_income",
    "withheld_tax",
    "social_insurance",
    "life_insurance",
    "earthquake_insurance",
    "mortgage_deduction",
    "has_spouse",
    "spouse_name",
    "dependent_count",
    "dependents",
)


def base36(number: int) -> str:
    if number == 0:
        return "0"
    out = []
    while number:
        number, rem = divmod(number, 36)
        out.append(_DIGITS[rem])
    return "".join(reversed(out))


def issue_number(fiscal_year: int, now: datetime) -> str:
    return f"WS-{fiscal_year}-{base36(int(now.timestamp() * 1000))}"


class WithholdingSlipService:
    def __init__(
        self,
        slips: WithholdingSlipRepository,
        results: YearEndResultRepository,
        declarations: DeclarationRepository,
        users: UserRepository,
        tenants: TenantRepository,
    ):
        self._slips = slips
        self._results = results
        self._declarations = declarations
        self._users = users
        self._tenants = tenants

    def list_slips(
        self,
        tenant_id: int,
        *,
        user_id: Optional[int] = None,
        fiscal_year: Optional[int] = None,
        status: Optional[str] = None,
        request: Optional[PageRequest] = None,
    ) -> Page[WithholdingSlip]:
        return self._slips.list(
            tenant_id,
            user_id=user_id,
            fiscal_year=fiscal_year,
            status=parse_enum(WithholdingSlipStatus, status, "status") if status else None,
            request=request or PageRequest(),
        )

    def get(self, tenant_id: int, slip_id: int) -> WithholdingSlip:
        slip = self._slips.get(tenant_id, slip_id)
        if not slip:
            raise NotFoundError("源泉徴収票が見つかりません")
        return slip

    def generate(self, tenant_id: int, *, fiscal_year: Any, user_ids: Optional[Sequence[Any]] = None) -> list[BatchOutcome]:
        fiscal_year = to_int(fiscal_year, "fiscal_year", minimum=2000)
        tenant = self._tenants.get(tenant_id)
        if not tenant:
            raise NotFoundError("テナントが見つかりません")

        outcomes: list[BatchOutcome] = []
        for user in resolve_users(self._users, tenant_id, user_ids):
            result = self._results.find(tenant_id, user.id, fiscal_year)
            if not result or result.status not in (YearEndStatus.CONFIRMED, YearEndStatus.PAID):
                outcomes.append(BatchOutcome(user_id=user.id, success=False, error="年末調整結果がありません"))
                continue

            declaration = self._declarations.find(tenant_id, user.id, fiscal_year)
            if declaration and declaration.status != DeclarationStatus.APPROVED:
                declaration = None
            values = {
                "user_id": user.id,
                "fiscal_year": fiscal_year,
                "year_end_result_id": result.id,
                "payer_name": tenant.name,
                "payer_address": tenant.address,
                "recipient_name": user.name,
                "payment_amount": result.total_income,
                "employment_income": result.employment_income,
                "deduction_total": result.total_deductions,
                "taxable_income": result.taxable_income,
                "withheld_tax": result.final_tax,
                "social_insurance": result.social_insurance_deduction,
                "life_insurance": result.life_insurance_deduction,
                "earthquake_insurance": result.earthquake_insurance_deduction,
                "mortgage_deduction": result.mortgage_deduction,
                "has_spouse": declaration.has_spouse if declaration else False,
                "spouse_name": declaration.spouse_name if declaration else None,
                "dependent_count": declaration.dependent_count if declaration else 0,
                "dependents": list(declaration.dependents) if declaration else [],
                "status": WithholdingSlipStatus.DRAFT,
            }
            existing = self._slips.find_original(tenant_id, user.id, fiscal_year)
            if existing:
                slip = self._slips.update(tenant_id, existing.id, values)
            else:
                slip = self._slips.create(tenant_id, values)
            outcomes.append(BatchOutcome(user_id=user.id, success=True, item=slip))
        return outcomes

    def apply_action(
        self, tenant_id: int, slip_id: int, payload: Mapping[str, Any], *, now: Optional[datetime] = None
    ) -> WithholdingSlip:
        action = payload.get("action")
        if action == "issue":
            return self.issue(tenant_id, slip_id, now=now)
        if action == "deliver":
            return self.deliver(tenant_id, slip_id, method=payload.get("delivery_method"), now=now)
        if action == "reissue":
            return self.reissue(tenant_id, slip_id, now=now)
        raise ValidationError("actionは issue, deliver, reissue のいずれかである必要があります")

    def issue(self, tenant_id: int, slip_id: int, *, now: Optional[datetime] = None) -> WithholdingSlip:
        now = now or now_local()
        slip = self.get(tenant_id, slip_id)
        if slip.status != WithholdingSlipStatus.DRAFT:
            raise ValidationError("下書きの源泉徴収票のみ発行できます")
        issued = self._slips.update(
            tenant_id,
            slip_id,
            {"status": WithholdingSlipStatus.ISSUED, "issued_at": now, "issue_number": issue_number(slip.fiscal_year, now)},
        )
        logger.info("Withholding slip issued id=%s number=%s", issued.id, issued.issue_number)
        return issued

    def deliver(
        self, tenant_id: int, slip_id: int, *, method: Optional[str] = None, now: Optional[datetime] = None
    ) -> WithholdingSlip:
        slip = self.get(tenant_id, slip_id)
        if slip.status != WithholdingSlipStatus.ISSUED:
            raise ValidationError("発行済みの源泉徴収票のみ交付できます")
        return self._slips.update(
            tenant_id,
            slip_id,
            {
                "status": WithholdingSlipStatus.DELIVERED,
                "delivered_at": now or now_local(),
                "delivery_method": method or "download",
            },
        )

    def reissue(self, tenant_id: int, slip_id: int, *, now: Optional[datetime] = None) -> WithholdingSlip:
        now = now or now_local()
        source = self.get(tenant_id, slip_id)
        if source.status == WithholdingSlipStatus.DRAFT:
            raise ValidationError("未発行の源泉徴収票は再発行できません")
        values = {name: getattr(source, name) for name in _COPIED}
        values.update(
            {
                "is_reissue": True,
                "reissue_count": source.reissue_count + 1,
                "original_slip_id": source.original_slip_id or source.id,
                "status": WithholdingSlipStatus.ISSUED,
                "issued_at": now,
                "issue_number": issue_number(source.fiscal_year, now),
            }
        )
        return self._slips.create(tenant_id, values)

    def delete(self, tenant_id: int, slip_id: int) -> None:
        slip = self.get(tenant_id, slip_id)
        if slip.status == WithholdingSlipStatus.DELIVERED:
            raise ValidationError("交付済みの源泉徴収票は削除できません")
        self._slips.delete(tenant_id, slip_id)

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.auth import CurrentUser
from ..common.datetime_utils import now_local
from ..common.pagination import Page, PageRequest
from ..common.validators import parse_bool, parse_enum, require_fields, to_int
from ..core.enums import (
    BonusSlipStatus,
    DeclarationStatus,
    DisabilityType,
    PaySlipStatus,
    UserRole,
    YearEndStatus,
)
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..payroll.repository import BonusSlipRepository, PaySlipRepository
from ..users.model import User
from ..users.repository import UserRepository
from .deductions import compute_year_end
from .model import BatchOutcome, Declaration, IncomeSummary, YearEndResult
from .repository import DeclarationRepository, YearEndResultRepository

logger = logging.getLogger(__name__)

_INT_FIELDS = (
    "dependent_count",
    "specific_dependent_count",
    "elderly_dependent_count",
    "life_insurance_new",
    "life_insurance_old",
    "medical_insurance",
    "pension_insurance_new",
    "pension_insurance_old",
    "earthquake_insurance",
    "national_pension",
    "national_health_ins",
    "other_social_ins",
    "ideco_amount",
    "small_business_mutual_aid",
    "mortgage_balance",
)
_BOOL_FIELDS = ("has_spouse", "is_disabled", "is_widow", "is_single_parent", "is_working_student", "has_mortgage")
_EDITABLE = (DeclarationStatus.DRAFT, DeclarationStatus.REJECTED)
_DECIDERS = (UserRole.HR, UserRole.ADMIN)


def resolve_users(users: UserRepository, tenant_id: int, user_ids: Optional[Sequence[Any]]) -> Sequence[User]:
    if user_ids:
        found = users.list_by_ids(tenant_id, [to_int(u, "user_ids") for u in user_ids])
    else:
        found = users.list_active(tenant_id)
    if not found:
        raise NotFoundError("対象の従業員が見つかりません")
    return found


class DeclarationService:
    def __init__(self, declarations: DeclarationRepository, users: UserRepository):
        self._declarations = declarations
        self._users = users

    def list_declarations(
        self,
        tenant_id: int,
        *,
        user_id: Optional[int] = None,
        fiscal_year: Optional[int] = None,
        status: Optional[str] = None,
        request: Optional[PageRequest] = None,
    ) -> Page[Declaration]:
        return self._declarations.list(
            tenant_id,
            user_id=user_id,
            fiscal_year=fiscal_year,
            status=parse_enum(DeclarationStatus, status, "status") if status else None,
            request=request or PageRequest(),
        )

    def get(self, tenant_id: int, declaration_id: int) -> Declaration:
        declaration = self._declarations.get(tenant_id, declaration_id)
        if not declaration:
            raise NotFoundError("申告書が見つかりません")
        return declaration

    def _values(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for name in _INT_FIELDS:
            if name in payload:
                values[name] = to_int(payload[name], name, default=0, minimum=0)
        for name in _BOOL_FIELDS:
            if name in payload:
                values[name] = parse_bool(payload[name])
        if "spouse_name" in payload:
            values["spouse_name"] = payload["spouse_name"] or None
        if "spouse_income" in payload:
            income = payload["spouse_income"]
            values["spouse_income"] = to_int(income, "spouse_income", minimum=0) if income not in (None, "") else None
        if "disability_type" in payload:
            raw = payload["disability_type"]
            values["disability_type"] = parse_enum(DisabilityType, raw, "disability_type") if raw else None
        if "dependents" in payload:
            if not isinstance(payload["dependents"], list):
                raise ValidationError("dependentsは配列で指定してください")
            values["dependents"] = payload["dependents"]
        return values

    @staticmethod
    def _check_counts(values: Mapping[str, Any], current: Optional[Declaration] = None) -> None:
        def pick(name: str) -> int:
            if name in values:
                return values[name]
            return getattr(current, name) if current else 0

        if pick("specific_dependent_count") + pick("elderly_dependent_count") > pick("dependent_count"):
            raise ValidationError("特定扶養・老人扶養の人数が扶養親族の人数を超えています")

    def save(self, tenant_id: int, payload: Mapping[str, Any]) -> tuple[Declaration, bool]:
        """Create the declaration or update the existing one; returns (declaration, created)."""
        require_fields(payload, ["user_id", "fiscal_year"])
        user_id = to_int(payload["user_id"], "user_id")
        fiscal_year = to_int(payload["fiscal_year"], "fiscal_year", minimum=2000)
        if not self._users.get(tenant_id, user_id):
            raise NotFoundError("ユーザーが見つかりません")

        values = self._values(payload)
        existing = self._declarations.find(tenant_id, user_id, fiscal_year)
        self._check_counts(values, existing)
        if existing:
            if existing.status not in _EDITABLE:
                raise ValidationError("提出済みまたは承認済みの申告書は更新できません")
            return self._declarations.update(tenant_id, existing.id, values), False

        values.update({"user_id": user_id, "fiscal_year": fiscal_year, "status": DeclarationStatus.DRAFT})
        return self._declarations.create(tenant_id, values), True

    def update(self, tenant_id: int, declaration_id: int, payload: Mapping[str, Any]) -> Declaration:
        declaration = self.get(tenant_id, declaration_id)
        if declaration.status not in _EDITABLE:
            raise ValidationError("提出済みまたは承認済みの申告書は更新できません")
        values = self._values(payload)
        self._check_counts(values, declaration)
        return self._declarations.update(tenant_id, declaration_id, values)

    def apply_action(
        self, actor: CurrentUser, declaration_id: int, action: Optional[str], *, now: Optional[datetime] = None
    ) -> Declaration:
        now = now or now_local()
        declaration = self.get(actor.tenant_id, declaration_id)

        if action == "submit":
            if declaration.status not in _EDITABLE:
                raise ValidationError("下書きまたは差し戻しの申告書のみ提出できます")
            values = {"status": DeclarationStatus.SUBMITTED, "submitted_at": now}
        elif action in ("approve", "reject"):
            if actor.role not in _DECIDERS:
                raise AuthorizationError("この操作を行う権限がありません")
            if declaration.status != DeclarationStatus.SUBMITTED:
                raise ValidationError("提出済みの申告書のみ承認・却下できます")
            if action == "approve":
                values = {"status": DeclarationStatus.APPROVED, "approved_at": now, "approved_by": actor.user_id}
            else:
                values = {"status": DeclarationStatus.REJECTED}
        else:
            raise ValidationError("actionは submit, approve, reject のいずれかである必要があります")
        return self._declarations.update(actor.tenant_id, declaration_id, values)

    def delete(self, tenant_id: int, declaration_id: int) -> None:
        declaration = self.get(tenant_id, declaration_id)
        if declaration.status == DeclarationStatus.APPROVED:
            raise ValidationError("承認済みの申告書は削除できません")
        self._declarations.delete(tenant_id, declaration_id)


class YearEndService:
    def __init__(
        self,
        results: YearEndResultRepository,
        declarations: DeclarationRepository,
        slips: PaySlipRepository,
        bonuses: BonusSlipRepository,
        users: UserRepository,
    ):
        self._results = results
        self._declarations = declarations
        self._slips = slips
        self._bonuses = bonuses
        self._users = users

    def list_results(
        self,
        tenant_id: int,
        *,
        user_id: Optional[int] = None,
        fiscal_year: Optional[int] = None,
        status: Optional[str] = None,
        request: Optional[PageRequest] = None,
    ) -> Page[YearEndResult]:
        return self._results.list(
            tenant_id,
            user_id=user_id,
            fiscal_year=fiscal_year,
            status=parse_enum(YearEndStatus, status, "status") if status else None,
            request=request or PageRequest(),
        )

    def get(self, tenant_id: int, result_id: int) -> YearEndResult:
        result = self._results.get(tenant_id, result_id)
        if not result:
            raise NotFoundError("年末調整結果が見つかりません")
        return result

    def income_summary(self, tenant_id: int, user_id: int, fiscal_year: int) -> Optional[IncomeSummary]:
        slips = [
            s for s in self._slips.list_for_year(tenant_id, user_id, fiscal_year)
            if s.status in (PaySlipStatus.CONFIRMED, PaySlipStatus.PAID)
        ]
        bonuses = [
            b for b in self._bonuses.list_for_year(tenant_id, user_id, fiscal_year)
            if b.status in (BonusSlipStatus.APPROVED, BonusSlipStatus.PAID)
        ]
        if not slips and not bonuses:
            return None
        return IncomeSummary(
            total_salary=sum(s.gross_pay for s in slips),
            total_bonus=sum(b.gross_bonus for b in bonuses),
            withheld_tax=sum(s.income_tax for s in slips) + sum(b.income_tax for b in bonuses),
            social_insurance=sum(s.social_insurance for s in slips) + sum(b.social_insurance for b in bonuses),
        )

    def calculate(
        self,
        tenant_id: int,
        *,
        fiscal_year: Any,
        user_ids: Optional[Sequence[Any]] = None,
        now: Optional[datetime] = None,
    ) -> list[BatchOutcome]:
        fiscal_year = to_int(fiscal_year, "fiscal_year", minimum=2000)
        now = now or now_local()
        outcomes: list[BatchOutcome] = []
        for user in resolve_users(self._users, tenant_id, user_ids):
            try:
                outcomes.append(
                    BatchOutcome(user_id=user.id, success=True, item=self._calculate_one(tenant_id, user.id, fiscal_year, now))
                )
            except ValidationError as e:
                outcomes.append(BatchOutcome(user_id=user.id, success=False, error=str(e)))
        logger.info(
            "Year-end calculated fiscal_year=%s success=%s/%s",
            fiscal_year,
            sum(1 for o in outcomes if o.success),
            len(outcomes),
        )
        return outcomes

    def _calculate_one(self, tenant_id: int, user_id: int, fiscal_year: int, now: datetime) -> YearEndResult:
        existing = self._results.find(tenant_id, user_id, fiscal_year)
        if existing and existing.status != YearEndStatus.CALCULATED:
            raise ValidationError("確定済みの年末調整結果は再計算できません")

        income = self.income_summary(tenant_id, user_id, fiscal_year)
        if income is None:
            raise ValidationError("給与データがありません")

        declaration = self._declarations.find(tenant_id, user_id, fiscal_year)
        if declaration and declaration.status != DeclarationStatus.APPROVED:
            declaration = None

        values = compute_year_end(income, declaration)
        values.update({"status": YearEndStatus.CALCULATED, "calculated_at": now})
        return self._results.upsert(tenant_id, user_id, fiscal_year, values)

    def apply_action(
        self, actor: CurrentUser, result_id: int, action: Optional[str], *, now: Optional[datetime] = None
    ) -> YearEndResult:
        now = now or now_local()
        result = self.get(actor.tenant_id, result_id)
        if action == "confirm":
            if result.status != YearEndStatus.CALCULATED:
                raise ValidationError("計算済みの結果のみ確定できます")
            values = {"status": YearEndStatus.CONFIRMED, "confirmed_at": now, "confirmed_by": actor.user_id}
        elif action == "pay":
            if result.status != YearEndStatus.CONFIRMED:
                raise ValidationError("確定済みの結果のみ精算済にできます")
            values = {"status": YearEndStatus.PAID, "paid_at": now}
        else:
            raise ValidationError("actionは confirm, pay のいずれかである必要があります")
        return self._results.update(actor.tenant_id, result_id, values)

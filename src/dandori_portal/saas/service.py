from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import format_period, month_bounds, now_local, parse_period, to_optional_date
from ..common.validators import parse_bool, parse_enum, require_fields, require_non_empty, to_int
from ..core.constants import IDLE_LICENSE_DAYS, RENEWAL_ALERT_DAYS
from ..core.enums import BillingCycle, Currency, LicenseStatus, LicenseType
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..users.repository import UserRepository
from .model import (
    LicenseAssignment,
    LicensePlan,
    MonthlyCostLine,
    MonthlyCosts,
    RenewalAlert,
    SaaSService,
    UnusedLicense,
)
from .repository import SaaSRepository

logger = logging.getLogger(__name__)

SECURITY_RATINGS = ("A", "B", "C", "D")
_SERVICE_TEXT = ("category", "vendor", "website", "admin_email", "notes")
_SERVICE_FLAGS = ("auto_renew", "sso_enabled", "mfa_enabled")


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value).strip() or None


def monthly_amount(amount: int, cycle: BillingCycle) -> int:
    """Yearly prices are spread over 12 months, rounding down."""
    return amount // 12 if cycle == BillingCycle.YEARLY else amount


def plan_cost(service: SaaSService, plan: LicensePlan, seats: int) -> tuple[int, int]:
    """(user license cost, fixed cost) of one plan for a month."""
    if service.license_type == LicenseType.FIXED:
        return 0, monthly_amount(plan.fixed_price or 0, plan.billing_cycle)
    user_cost = monthly_amount(seats * (plan.price_per_user or 0), plan.billing_cycle)
    return user_cost, monthly_amount(plan.fixed_price or 0, plan.billing_cycle)


class SaaSManagementService:
    def __init__(self, saas: SaaSRepository, users: UserRepository):
        self._saas = saas
        self._users = users

    # ---- services ----------------------------------------------------------------

    def list_services(self, tenant_id: int, *, active_only: bool = False, category: Optional[str] = None) -> Sequence[SaaSService]:
        return self._saas.list_services(tenant_id, active_only=active_only, category=category or None)

    def get_service(self, tenant_id: int, service_id: int) -> SaaSService:
        service = self._saas.get_service(tenant_id, service_id)
        if not service:
            raise NotFoundError("SaaSサービスが見つかりません")
        return service

    def create_service(self, tenant_id: int, payload: Mapping[str, Any]) -> SaaSService:
        require_fields(payload, ["name"])
        service = self._saas.create_service(tenant_id, self._service_values(payload, partial=False))
        logger.info("SaaS service registered id=%s name=%s", service.id, service.name)
        return service

    def update_service(self, tenant_id: int, service_id: int, payload: Mapping[str, Any]) -> SaaSService:
        current = self.get_service(tenant_id, service_id)
        values = self._service_values(payload, partial=True)
        start = values.get("contract_start_date", current.contract_start_date)
        end = values.get("contract_end_date", current.contract_end_date)
        if start and end and end < start:
            raise ValidationError("契約終了日は契約開始日以降を指定してください")
        return self._saas.update_service(tenant_id, service_id, values)

    def delete_service(self, tenant_id: int, service_id: int) -> None:
        if not self._saas.delete_service(tenant_id, service_id):
            raise NotFoundError("SaaSサービスが見つかりません")

    def _service_values(self, payload: Mapping[str, Any], *, partial: bool) -> dict[str, Any]:
        values: dict[str, Any] = {}
        if not partial or "name" in payload:
            values["name"] = require_non_empty(payload.get("name"), "name")
        for name in _SERVICE_TEXT:
            if not partial or name in payload:
                values[name] = _text(payload.get(name))
        if not partial or "license_type" in payload:
            values["license_type"] = parse_enum(
                LicenseType, payload.get("license_type") or LicenseType.USER_BASED.value, "license_type"
            )
        if not partial or "billing_cycle" in payload:
            values["billing_cycle"] = parse_enum(
                BillingCycle, payload.get("billing_cycle") or BillingCycle.MONTHLY.value, "billing_cycle"
            )
        for name in ("contract_start_date", "contract_end_date"):
            if not partial or name in payload:
                values[name] = to_optional_date(payload.get(name), name)
        for name in _SERVICE_FLAGS:
            if not partial or name in payload:
                values[name] = parse_bool(payload.get(name, False))
        if not partial or "is_active" in payload:
            values["is_active"] = parse_bool(payload.get("is_active", True))
        if not partial or "security_rating" in payload:
            rating = _text(payload.get("security_rating"))
            if rating is not None:
                rating = rating.upper()
                if rating not in SECURITY_RATINGS:
                    raise ValidationError("security_ratingは A, B, C, D のいずれかである必要があります")
            values["security_rating"] = rating
        start, end = values.get("contract_start_date"), values.get("contract_end_date")
        if start and end and end < start:
            raise ValidationError("契約終了日は契約開始日以降を指定してください")
        return values

    # ---- plans -------------------------------------------------------------------

    def list_plans(self, tenant_id: int, service_id: int) -> Sequence[LicensePlan]:
        self.get_service(tenant_id, service_id)
        return self._saas.list_plans(tenant_id, service_id=service_id)

    def create_plan(self, tenant_id: int, service_id: int, payload: Mapping[str, Any]) -> LicensePlan:
        self.get_service(tenant_id, service_id)
        require_fields(payload, ["plan_name"])
        values = self._plan_values(payload, partial=False)
        values["service_id"] = service_id
        return self._saas.create_plan(tenant_id, values)

    def update_plan(self, tenant_id: int, plan_id: int, payload: Mapping[str, Any]) -> LicensePlan:
        self._plan(tenant_id, plan_id)
        return self._saas.update_plan(tenant_id, plan_id, self._plan_values(payload, partial=True))

    def delete_plan(self, tenant_id: int, plan_id: int) -> None:
        if not self._saas.delete_plan(tenant_id, plan_id):
            raise NotFoundError("ライセンスプランが見つかりません")

    def _plan(self, tenant_id: int, plan_id: int) -> LicensePlan:
        plan = self._saas.get_plan(tenant_id, plan_id)
        if not plan:
            raise NotFoundError("ライセンスプランが見つかりません")
        return plan

    @staticmethod
    def _plan_values(payload: Mapping[str, Any], *, partial: bool) -> dict[str, Any]:
        values: dict[str, Any] = {}
        if not partial or "plan_name" in payload:
            values["plan_name"] = require_non_empty(payload.get("plan_name"), "plan_name")
        if not partial or "billing_cycle" in payload:
            values["billing_cycle"] = parse_enum(
                BillingCycle, payload.get("billing_cycle") or BillingCycle.MONTHLY.value, "billing_cycle"
            )
        if not partial or "currency" in payload:
            values["currency"] = parse_enum(Currency, payload.get("currency") or Currency.JPY.value, "currency")
        for name in ("price_per_user", "fixed_price", "max_users"):
            if not partial or name in payload:
                raw = payload.get(name)
                values[name] = to_int(raw, name, minimum=0) if raw not in (None, "") else None
        if not partial or "is_active" in payload:
            values["is_active"] = parse_bool(payload.get("is_active", True))
        return values

    # ---- assignments -------------------------------------------------------------

    def list_assignments(
        self,
        tenant_id: int,
        *,
        service_id: Optional[int] = None,
        user_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> Sequence[LicenseAssignment]:
        return self._saas.list_assignments(
            tenant_id,
            service_id=service_id,
            user_id=user_id,
            status=parse_enum(LicenseStatus, status, "status") if status else None,
        )

    def assign(self, tenant_id: int, payload: Mapping[str, Any], *, today: Optional[date] = None) -> LicenseAssignment:
        require_fields(payload, ["service_id", "plan_id", "user_id"])
        service = self.get_service(tenant_id, to_int(payload["service_id"], "service_id"))
        plan = self._plan(tenant_id, to_int(payload["plan_id"], "plan_id"))
        if plan.service_id != service.id:
            raise ValidationError("プランが指定のサービスに属していません")
        user = self._users.get(tenant_id, to_int(payload["user_id"], "user_id"))
        if not user:
            raise NotFoundError("ユーザーが見つかりません")

        active = self._saas.list_assignments(tenant_id, service_id=service.id, status=LicenseStatus.ACTIVE)
        if any(a.user_id == user.id for a in active):
            raise ConflictError("このユーザーには既にライセンスが割り当てられています")
        if plan.max_users is not None and sum(1 for a in active if a.plan_id == plan.id) >= plan.max_users:
            raise ValidationError(f"このプランの上限ユーザー数({plan.max_users})に達しています")

        assignment = self._saas.create_assignment(
            tenant_id,
            {
                "service_id": service.id,
                "plan_id": plan.id,
                "user_id": user.id,
                "department": _text(payload.get("department")) or user.department,
                "status": LicenseStatus.ACTIVE,
                "assigned_date": today or now_local().date(),
                "notes": _text(payload.get("notes")),
            },
        )
        logger.info("License assigned service_id=%s user_id=%s", service.id, user.id)
        return assignment

    def revoke(self, tenant_id: int, assignment_id: int, *, today: Optional[date] = None) -> LicenseAssignment:
        assignment = self._saas.get_assignment(tenant_id, assignment_id)
        if not assignment:
            raise NotFoundError("ライセンス割当が見つかりません")
        if assignment.status == LicenseStatus.INACTIVE:
            raise ValidationError("このライセンスは既に解除されています")
        return self._saas.update_assignment(
            tenant_id,
            assignment_id,
            {"status": LicenseStatus.INACTIVE, "revoked_date": today or now_local().date()},
        )

    # ---- reports -----------------------------------------------------------------

    def monthly_costs(self, tenant_id: int, period: Any = None, *, today: Optional[date] = None) -> MonthlyCosts:
        if period:
            year, month = parse_period(period, "period")
        else:
            today = today or now_local().date()
            year, month = today.year, today.month
        _, month_end = month_bounds(year, month)

        assignments_by_plan: dict[int, list[LicenseAssignment]] = defaultdict(list)
        for a in self._saas.list_assignments(tenant_id):
            assignments_by_plan[a.plan_id].append(a)

        lines: list[MonthlyCostLine] = []
        totals: dict[str, int] = defaultdict(int)
        seen_users: set[int] = set()
        for service in self._saas.list_services(tenant_id, active_only=True):
            for plan in self._saas.list_plans(tenant_id, service_id=service.id):
                if not plan.is_active:
                    continue
                assigned = assignments_by_plan.get(plan.id, [])
                active = [a.user_id for a in assigned if a.status == LicenseStatus.ACTIVE and a.assigned_date <= month_end]
                inactive = [a.user_id for a in assigned if a.status == LicenseStatus.INACTIVE]
                user_cost, fixed_cost = plan_cost(service, plan, len(active))
                line = MonthlyCostLine(
                    service_id=service.id,
                    service_name=service.name,
                    plan_id=plan.id,
                    plan_name=plan.plan_name,
                    user_license_count=len(active),
                    user_license_cost=user_cost,
                    fixed_cost=fixed_cost,
                    total_cost=user_cost + fixed_cost,
                    currency=plan.currency,
                    active_users=active,
                    inactive_users=inactive,
                )
                lines.append(line)
                totals[plan.currency.value] += line.total_cost
                seen_users.update(active)
        return MonthlyCosts(
            period=format_period(year, month),
            lines=lines,
            totals=dict(totals),
            total_users=len(seen_users),
        )

    def renewal_alerts(
        self, tenant_id: int, *, today: Optional[date] = None, within_days: int = RENEWAL_ALERT_DAYS
    ) -> list[RenewalAlert]:
        today = today or now_local().date()
        alerts = []
        for service in self._saas.list_services(tenant_id, active_only=True):
            if not service.contract_end_date:
                continue
            remaining = (service.contract_end_date - today).days
            if 0 <= remaining <= within_days:
                alerts.append(
                    RenewalAlert(
                        service_id=service.id,
                        service_name=service.name,
                        contract_end_date=service.contract_end_date,
                        days_remaining=remaining,
                        auto_renew=service.auto_renew,
                    )
                )
        return sorted(alerts, key=lambda a: a.days_remaining)

    def unused_licenses(
        self, tenant_id: int, *, now: Optional[datetime] = None, idle_days: int = IDLE_LICENSE_DAYS
    ) -> list[UnusedLicense]:
        now = now or now_local()
        names = {s.id: s.name for s in self._saas.list_services(tenant_id)}
        unused = []
        for a in self._saas.list_assignments(tenant_id, status=LicenseStatus.ACTIVE):
            if a.last_used_at:
                idle = (now - a.last_used_at).days
            else:
                idle = (now.date() - a.assigned_date).days
            if idle < idle_days:
                continue
            unused.append(
                UnusedLicense(
                    assignment_id=a.id,
                    service_id=a.service_id,
                    service_name=names.get(a.service_id, "-"),
                    user_id=a.user_id,
                    last_used_at=a.last_used_at,
                    idle_days=idle,
                )
            )
        return unused

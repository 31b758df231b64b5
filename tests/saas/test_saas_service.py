from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

import pytest

from dandori_portal.core.enums import BillingCycle, Currency, LicenseStatus, LicenseType, UserRole, UserStatus
from dandori_portal.core.exceptions import ConflictError, ValidationError
from dandori_portal.saas.model import LicenseAssignment, LicensePlan, SaaSService
from dandori_portal.saas.service import SaaSManagementService, monthly_amount, plan_cost
from dandori_portal.users.model import User

TENANT = 1


class FakeUsers:
    def get(self, tenant_id, user_id):
        if user_id > 10:
            return None
        return User(
            id=user_id,
            tenant_id=tenant_id,
            email=f"u{user_id}@example.com",
            name=f"User {user_id}",
            password_hash="x",
            role=UserRole.EMPLOYEE,
            status=UserStatus.ACTIVE,
            department="営業部",
        )


class FakeSaaS:
    def __init__(self, services=(), plans=(), assignments=()):
        self.services = {s.id: s for s in services}
        self.plans = {p.id: p for p in plans}
        self.assignments = {a.id: a for a in assignments}

    def list_services(self, tenant_id, *, active_only=False, category=None):
        return [s for s in self.services.values() if not active_only or s.is_active]

    def get_service(self, tenant_id, service_id):
        return self.services.get(service_id)

    def list_plans(self, tenant_id, *, service_id=None):
        return [p for p in self.plans.values() if service_id is None or p.service_id == service_id]

    def get_plan(self, tenant_id, plan_id):
        return self.plans.get(plan_id)

    def list_assignments(self, tenant_id, *, service_id=None, user_id=None, status=None):
        return [
            a
            for a in self.assignments.values()
            if (service_id is None or a.service_id == service_id)
            and (user_id is None or a.user_id == user_id)
            and (status is None or a.status == status)
        ]

    def get_assignment(self, tenant_id, assignment_id):
        return self.assignments.get(assignment_id)

    def create_assignment(self, tenant_id, values):
        a = LicenseAssignment(id=len(self.assignments) + 100, tenant_id=tenant_id, **values)
        self.assignments[a.id] = a
        return a

    def update_assignment(self, tenant_id, assignment_id, values):
        self.assignments[assignment_id] = replace(self.assignments[assignment_id], **values)
        return self.assignments[assignment_id]


def _service(sid=1, license_type=LicenseType.USER_BASED, **extra):
    return SaaSService(
        id=sid, tenant_id=TENANT, name=f"Service {sid}", license_type=license_type,
        billing_cycle=BillingCycle.MONTHLY, **extra,
    )


def _plan(pid=1, sid=1, **extra):
    values = dict(plan_name=f"Plan {pid}", billing_cycle=BillingCycle.MONTHLY, currency=Currency.JPY)
    values.update(extra)
    return LicensePlan(id=pid, tenant_id=TENANT, service_id=sid, **values)


def _assignment(aid, user_id, *, plan_id=1, sid=1, status=LicenseStatus.ACTIVE, assigned=date(2025, 1, 10), **extra):
    return LicenseAssignment(
        id=aid, tenant_id=TENANT, service_id=sid, plan_id=plan_id, user_id=user_id,
        status=status, assigned_date=assigned, **extra,
    )


def test_yearly_amount_spread_over_twelve_months():
    assert monthly_amount(12_000, BillingCycle.YEARLY) == 1_000
    assert monthly_amount(1_000, BillingCycle.YEARLY) == 83
    assert monthly_amount(1_000, BillingCycle.MONTHLY) == 1_000


def test_plan_cost_fixed_ignores_seats():
    service = _service(license_type=LicenseType.FIXED)
    plan = _plan(price_per_user=500, fixed_price=30_000)

    assert plan_cost(service, plan, seats=10) == (0, 30_000)


def test_plan_cost_user_based_adds_fixed_price():
    plan = _plan(price_per_user=500, fixed_price=2_000)

    assert plan_cost(_service(), plan, seats=3) == (1_500, 2_000)


def test_monthly_costs_per_currency_and_active_users():
    repo = FakeSaaS(
        services=[_service(1), _service(2), _service(3, is_active=False)],
        plans=[
            _plan(1, 1, price_per_user=1_000),
            _plan(2, 2, price_per_user=10, currency=Currency.USD),
            _plan(3, 3, price_per_user=999),
        ],
        assignments=[
            _assignment(1, 1),
            _assignment(2, 2),
            _assignment(3, 3, status=LicenseStatus.INACTIVE),
            _assignment(4, 4, assigned=date(2025, 3, 5)),
            _assignment(5, 1, plan_id=2, sid=2),
            _assignment(6, 5, plan_id=3, sid=3),
        ],
    )
    svc = SaaSManagementService(repo, FakeUsers())

    costs = svc.monthly_costs(TENANT, "2025-02")

    assert costs.period == "2025-02"
    first = costs.lines[0]
    assert first.active_users == [1, 2]
    assert first.inactive_users == [3]
    assert first.total_cost == 2_000
    assert costs.totals == {"JPY": 2_000, "USD": 10}
    assert costs.total_users == 2


def test_assign_rejects_duplicate_and_full_plan():
    repo = FakeSaaS(
        services=[_service(1)],
        plans=[_plan(1, 1, price_per_user=1_000, max_users=2)],
        assignments=[_assignment(1, 1)],
    )
    svc = SaaSManagementService(repo, FakeUsers())

    with pytest.raises(ConflictError):
        svc.assign(TENANT, {"service_id": 1, "plan_id": 1, "user_id": 1})

    created = svc.assign(TENANT, {"service_id": 1, "plan_id": 1, "user_id": 2}, today=date(2025, 4, 1))
    assert created.department == "営業部"
    with pytest.raises(ValidationError):
        svc.assign(TENANT, {"service_id": 1, "plan_id": 1, "user_id": 3})


def test_revoke_twice_fails():
    repo = FakeSaaS(services=[_service(1)], plans=[_plan(1, 1)], assignments=[_assignment(1, 1)])
    svc = SaaSManagementService(repo, FakeUsers())

    revoked = svc.revoke(TENANT, 1, today=date(2025, 4, 1))

    assert revoked.status == LicenseStatus.INACTIVE
    assert revoked.revoked_date == date(2025, 4, 1)
    with pytest.raises(ValidationError):
        svc.revoke(TENANT, 1)


def test_renewal_alerts_window():
    today = date(2025, 4, 1)
    repo = FakeSaaS(
        services=[
            _service(1, contract_end_date=date(2025, 4, 30)),
            _service(2, contract_end_date=date(2025, 7, 1)),
            _service(3, contract_end_date=date(2025, 3, 31)),
            _service(4, contract_end_date=date(2025, 4, 1), auto_renew=True),
        ]
    )
    svc = SaaSManagementService(repo, FakeUsers())

    alerts = svc.renewal_alerts(TENANT, today=today)

    assert [(a.service_id, a.days_remaining) for a in alerts] == [(4, 0), (1, 29)]


def test_unused_licenses_use_last_login_or_assignment_date():
    now = datetime(2025, 6, 30, 12, 0)
    repo = FakeSaaS(
        services=[_service(1)],
        plans=[_plan(1, 1)],
        assignments=[
            _assignment(1, 1, last_used_at=datetime(2025, 6, 1, 9, 0)),
            _assignment(2, 2, last_used_at=datetime(2025, 1, 1, 9, 0)),
            _assignment(3, 3, assigned=date(2025, 1, 10)),
            _assignment(4, 4, assigned=date(2025, 6, 1)),
        ],
    )
    svc = SaaSManagementService(repo, FakeUsers())

    unused = svc.unused_licenses(TENANT, now=now)

    assert [u.assignment_id for u in unused] == [2, 3]
    assert unused[1].last_used_at is None

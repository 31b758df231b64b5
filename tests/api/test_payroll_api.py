from dandori_portal.payroll.calculator.standard_calculator import insurance_premiums
from dandori_portal.tax.income_tax import bonus_withholding

RUN = {"pay_period": "2026-04", "payment_date": "2026-04-25"}


def _setup_salary(client, login):
    employee = login("employee@dandori.example", "employee123")
    login("hr@dandori.example", "hr1234")
    res = client.post(
        "/api/payroll-master/salary-settings",
        json={"user_id": employee["user_id"], "effective_from": "2026-01-01", "basic_salary": 300_000},
    )
    assert res.status_code == 201
    return employee


def test_calculate_reports_users_without_settings(client, login):
    employee = _setup_salary(client, login)

    run = client.post("/api/payroll/calculate", json=RUN).get_json()["data"]
    assert run["summary"]["total"] == 5
    assert run["summary"]["success"] == 1
    assert run["summary"]["error"] == 4
    assert run["summary"]["pay_period"] == "2026-04"

    ok = [r for r in run["results"] if r["success"]]
    assert [r["user_id"] for r in ok] == [employee["user_id"]]
    assert ok[0]["pay_slip"]["basic_salary"] == 300_000
    assert {r["error"] for r in run["results"] if not r["success"]} == {"給与設定がありません"}


def test_recalculation_updates_the_same_slip(client, login):
    employee = _setup_salary(client, login)
    first = client.post("/api/payroll/calculate", json={**RUN, "user_ids": [employee["user_id"]]}).get_json()["data"]
    second = client.post(
        "/api/payroll/calculate",
        json={**RUN, "user_ids": [employee["user_id"]], "attendance_data": {str(employee["user_id"]): {"overtime_hours": 10}}},
    ).get_json()["data"]

    assert first["results"][0]["pay_slip"]["id"] == second["results"][0]["pay_slip"]["id"]
    assert second["results"][0]["pay_slip"]["overtime_allowance"] > 0

    slips = client.get("/api/payroll/pay-slips?pay_period=2026-04").get_json()
    assert slips["count"] == 1


def test_confirmed_slip_is_not_recalculated(client, login):
    employee = _setup_salary(client, login)
    run = client.post("/api/payroll/calculate", json={**RUN, "user_ids": [employee["user_id"]]}).get_json()["data"]
    slip_id = run["results"][0]["pay_slip"]["id"]

    res = client.patch(f"/api/payroll/pay-slips/{slip_id}", json={"action": "confirm"})
    assert res.get_json()["data"]["status"] == "confirmed"

    run = client.post("/api/payroll/calculate", json={**RUN, "user_ids": [employee["user_id"]]}).get_json()["data"]
    assert run["results"][0]["success"] is False
    assert run["results"][0]["error"] == "確定済みの明細は更新できません"

    assert client.patch(f"/api/payroll/pay-slips/{slip_id}", json={"action": "confirm"}).status_code == 400


def test_calculate_requires_period_and_payment_date(client, login):
    login("hr@dandori.example", "hr1234")
    res = client.post("/api/payroll/calculate", json={})
    assert res.status_code == 400
    assert res.get_json()["required"] == ["pay_period", "payment_date"]

    login("employee@dandori.example", "employee123")
    assert client.post("/api/payroll/calculate", json=RUN).status_code == 403


def test_duplicate_bonus_is_a_conflict(client, login):
    employee = _setup_salary(client, login)
    body = {"user_id": employee["user_id"], "bonus_type": "summer", "pay_period": "2026-06", "payment_date": "2026-06-30", "gross_bonus": 500_000}

    assert client.post("/api/payroll/bonus-slips", json=body).status_code == 201
    res = client.post("/api/payroll/bonus-slips", json=body)
    assert res.status_code == 409
    assert client.post("/api/payroll/bonus-slips", json={**body, "bonus_type": "special"}).status_code == 201


def test_bonus_tax_uses_previous_month_slip(client, login):
    employee = _setup_salary(client, login)
    run = client.post("/api/payroll/calculate", json={**RUN, "user_ids": [employee["user_id"]]}).get_json()["data"]
    slip = run["results"][0]["pay_slip"]
    prev_taxable = slip["gross_pay"] - slip["health_insurance"] - slip["pension_insurance"] - slip["employment_insurance"]

    gross = 600_000
    res = client.post(
        "/api/payroll/bonus-slips",
        json={"user_id": employee["user_id"], "bonus_type": "summer", "pay_period": "2026-06", "payment_date": "2026-06-30", "gross_bonus": gross},
    )
    bonus = res.get_json()["data"]

    taxable = gross - sum(insurance_premiums(gross))
    assert bonus["income_tax"] == bonus_withholding(taxable, prev_taxable, 0)
    assert bonus["income_tax"] != bonus_withholding(taxable, 0, 0)
    assert bonus["net_bonus"] == gross - sum(insurance_premiums(gross)) - bonus["income_tax"]

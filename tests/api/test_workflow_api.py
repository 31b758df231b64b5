from datetime import timedelta

from dandori_portal.common.datetime_utils import now_local


def test_expense_claim_goes_to_manager(client, login):
    login("employee@dandori.example", "employee123")
    res = client.post(
        "/api/workflows",
        json={"type": "expense_claim", "title": "交通費", "details": {"amount": 50_000}},
    )
    assert res.status_code == 201
    created = res.get_json()["data"]
    assert created["status"] == "pending"
    assert [s["approver_role"] for s in created["steps"]] == ["manager"]
    assert created["progress"] == 0

    login("manager@dandori.example", "manager123")
    pending = client.get("/api/workflows/pending").get_json()["data"]
    assert [p["id"] for p in pending] == [created["id"]]

    res = client.post(f"/api/workflows/{created['id']}/approve", json={"comment": "OK"})
    assert res.status_code == 200
    approved = res.get_json()["data"]
    assert approved["status"] == "approved"
    assert approved["progress"] == 100


def test_requester_cannot_approve_own_request(client, login):
    login("employee@dandori.example", "employee123")
    created = client.post(
        "/api/workflows",
        json={"type": "expense_claim", "title": "備品", "details": {"amount": 3_000}},
    ).get_json()["data"]

    res = client.post(f"/api/workflows/{created['id']}/approve")
    assert res.status_code in (400, 403)
    assert res.get_json()["success"] is False


def test_missing_title_is_rejected(client, login):
    login("employee@dandori.example", "employee123")
    res = client.post("/api/workflows", json={"type": "expense_claim"})
    assert res.status_code == 400
    assert "title" in res.get_json()["required"]


def _expense(client, login, amount=50_000, title="交通費"):
    login("employee@dandori.example", "employee123")
    res = client.post("/api/workflows", json={"type": "expense_claim", "title": title, "details": {"amount": amount}})
    assert res.status_code == 201
    return res.get_json()["data"]


def test_request_detail_is_limited_to_participants(client, login):
    created = _expense(client, login)
    url = f"/api/workflows/{created['id']}"

    assert client.get(url).status_code == 200
    login("manager@dandori.example", "manager123")
    assert client.get(url).status_code == 200
    login("hr@dandori.example", "hr1234")
    assert client.get(url).status_code == 200

    login("admin@dandori.example", "admin123")
    res = client.get(url)
    assert res.status_code == 403
    assert res.get_json()["success"] is False


def test_reject_needs_reason_and_closes_request(client, login):
    created = _expense(client, login)
    login("manager@dandori.example", "manager123")

    res = client.post(f"/api/workflows/{created['id']}/reject", json={})
    assert res.status_code == 400
    assert res.get_json()["required"] == ["reason"]

    res = client.post(f"/api/workflows/{created['id']}/reject", json={"reason": "領収書がありません"})
    assert res.get_json()["data"]["status"] == "rejected"

    res = client.post(f"/api/workflows/{created['id']}/approve")
    assert res.status_code == 400


def test_returned_request_can_be_resubmitted(client, login):
    created = _expense(client, login)
    login("manager@dandori.example", "manager123")
    res = client.post(f"/api/workflows/{created['id']}/return", json={"reason": "金額を修正してください"})
    returned = res.get_json()["data"]
    assert returned["status"] == "returned"
    assert returned["return_reason"] == "金額を修正してください"

    login("manager@dandori.example", "manager123")
    assert client.post(f"/api/workflows/{created['id']}/submit").status_code == 403

    login("employee@dandori.example", "employee123")
    res = client.post(f"/api/workflows/{created['id']}/submit")
    assert res.status_code == 200
    assert res.get_json()["data"]["status"] == "pending"


def test_delegated_step_moves_to_delegate(client, login):
    created = _expense(client, login)
    employee_id = created["requester_id"]
    hr = login("hr@dandori.example", "hr1234")

    login("manager@dandori.example", "manager123")
    res = client.post(f"/api/workflows/{created['id']}/delegate", json={"delegate_to": employee_id})
    assert res.status_code == 400

    res = client.post(f"/api/workflows/{created['id']}/delegate", json={"delegate_to": hr["user_id"]})
    step = res.get_json()["data"]["steps"][0]
    assert step["approver_id"] == hr["user_id"]
    assert step["delegated_from"] is not None

    assert client.post(f"/api/workflows/{created['id']}/approve").status_code == 403
    login("hr@dandori.example", "hr1234")
    res = client.post(f"/api/workflows/{created['id']}/approve")
    assert res.get_json()["data"]["status"] == "approved"


def test_escalation_walks_up_the_role_chain(client, login):
    created = _expense(client, login)
    url = f"/api/workflows/{created['id']}/escalate"

    login("admin@dandori.example", "admin123")
    assert client.post(url).status_code == 403

    login("hr@dandori.example", "hr1234")
    step = client.post(url).get_json()["data"]["steps"][0]
    assert step["approver_role"] == "hr"
    assert step["escalated"] is True

    step = client.post(url).get_json()["data"]["steps"][0]
    assert step["approver_role"] == "admin"

    res = client.post(url)
    assert res.status_code == 400


def test_bulk_approve_reports_each_id(client, login):
    first = _expense(client, login, title="交通費A")
    second = _expense(client, login, title="交通費B")
    login("manager@dandori.example", "manager123")

    res = client.post("/api/workflows/bulk", json={"action": "approve", "ids": [first["id"], second["id"], 9999]})
    body = res.get_json()
    assert body["succeeded"] == 2
    assert body["failed"] == 1
    assert [r["success"] for r in body["data"]] == [True, True, False]

    assert client.post("/api/workflows/bulk", json={"action": "approve", "ids": []}).status_code == 400
    assert client.post("/api/workflows/bulk", json={"action": "hold", "ids": [first["id"]]}).status_code == 400


def test_overdue_steps_are_listed(app, client, login):
    created = _expense(client, login)
    service = app.extensions["dandori_container"].workflow_service
    tenant_id = app.config["DEMO_TENANT_ID"]

    with app.app_context():
        assert service.check_overdue(tenant_id) == []
        overdue = service.check_overdue(tenant_id, now=now_local() + timedelta(days=30))
    assert [o.request_id for o in overdue] == [created["id"]]
    assert overdue[0].hours_overdue > 0


def test_one_day_paid_leave_is_auto_approved(client, login):
    login("employee@dandori.example", "employee123")
    res = client.post(
        "/api/workflows",
        json={"type": "leave_request", "title": "有給", "details": {"leave_type": "paid", "days": 1}},
    )
    created = res.get_json()["data"]
    assert created["status"] == "approved"
    assert {s["status"] for s in created["steps"]} == {"skipped"}

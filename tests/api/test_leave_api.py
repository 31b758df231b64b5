def _request_leave(client, login, **overrides):
    login("employee@dandori.example", "employee123")
    payload = {"leave_type": "paid", "start_date": "2026-11-02", "end_date": "2026-11-04", "reason": "家族旅行"}
    payload.update(overrides)
    res = client.post("/api/leave/requests", json=payload)
    assert res.status_code == 201, res.get_json()
    return res.get_json()["data"]


def _leave(client, login, leave_id):
    login("hr@dandori.example", "hr1234")
    items = client.get("/api/leave/requests?limit=100").get_json()["data"]
    return next(i for i in items if i["id"] == leave_id)


def _balance(client, login):
    login("employee@dandori.example", "employee123")
    return client.get("/api/leave/balance?year=2026").get_json()["data"]


def test_leave_approved_from_workflow_endpoints_charges_balance(client, login):
    leave = _request_leave(client, login)
    assert leave["status"] == "pending"
    assert leave["days"] == 3
    wf_id = leave["workflow_request_id"]

    login("manager@dandori.example", "manager123")
    res = client.post(f"/api/workflows/{wf_id}/approve", json={"comment": "OK"})
    assert res.get_json()["data"]["status"] == "partially_approved"
    assert _leave(client, login, leave["id"])["status"] == "pending"

    login("hr@dandori.example", "hr1234")
    res = client.post(f"/api/workflows/{wf_id}/approve")
    assert res.get_json()["data"]["status"] == "approved"

    synced = _leave(client, login, leave["id"])
    assert synced["status"] == "approved"
    assert synced["approver_id"] is not None
    balance = _balance(client, login)
    assert balance["used"] == 3.0
    assert balance["remaining"] == 17.0

    login("hr@dandori.example", "hr1234")
    res = client.post(f"/api/leave/requests/{leave['id']}/approve")
    assert res.status_code == 400


def test_leave_rejected_from_workflow_endpoint(client, login):
    leave = _request_leave(client, login)

    login("manager@dandori.example", "manager123")
    res = client.post(f"/api/workflows/{leave['workflow_request_id']}/reject", json={"reason": "繁忙期のため"})
    assert res.status_code == 200

    synced = _leave(client, login, leave["id"])
    assert synced["status"] == "rejected"
    assert synced["rejection_reason"] == "繁忙期のため"
    assert _balance(client, login)["used"] == 0.0


def test_leave_cancelled_when_requester_withdraws_workflow(client, login):
    leave = _request_leave(client, login)

    res = client.post(f"/api/workflows/{leave['workflow_request_id']}/cancel")
    assert res.status_code == 200
    assert _leave(client, login, leave["id"])["status"] == "cancelled"


def test_mixed_leave_and_workflow_approvals_charge_once(client, login):
    leave = _request_leave(client, login)

    login("manager@dandori.example", "manager123")
    res = client.post(f"/api/leave/requests/{leave['id']}/approve")
    assert res.get_json()["data"]["status"] == "pending"

    login("hr@dandori.example", "hr1234")
    res = client.post(f"/api/leave/requests/{leave['id']}/approve")
    assert res.status_code == 200
    assert res.get_json()["data"]["status"] == "approved"
    assert _balance(client, login)["used"] == 3.0


def test_half_day_counts_as_half(client, login):
    leave = _request_leave(client, login, leave_type="half_day_am", start_date="2026-11-05", end_date="2026-11-05")
    assert leave["days"] == 0.5

    res = client.post(
        "/api/leave/requests",
        json={"leave_type": "half_day_pm", "start_date": "2026-11-05", "end_date": "2026-11-06"},
    )
    assert res.status_code == 400


def test_request_beyond_remaining_balance_is_rejected(client, login):
    login("employee@dandori.example", "employee123")
    res = client.post(
        "/api/leave/requests",
        json={"leave_type": "paid", "start_date": "2026-11-01", "end_date": "2026-11-21"},
    )
    assert res.status_code == 400
    assert "残日数" in res.get_json()["error"]

    # sick leave does not draw on the paid balance
    res = client.post(
        "/api/leave/requests",
        json={"leave_type": "sick", "start_date": "2026-11-01", "end_date": "2026-11-21"},
    )
    assert res.status_code == 201


def test_cancelling_approved_leave_restores_days(client, login):
    leave = _request_leave(client, login)
    wf_id = leave["workflow_request_id"]
    login("manager@dandori.example", "manager123")
    client.post(f"/api/workflows/{wf_id}/approve")
    login("hr@dandori.example", "hr1234")
    client.post(f"/api/workflows/{wf_id}/approve")
    assert _balance(client, login)["used"] == 3.0

    login("employee@dandori.example", "employee123")
    res = client.post(f"/api/leave/requests/{leave['id']}/cancel")
    assert res.status_code == 200
    assert res.get_json()["data"]["status"] == "cancelled"
    assert _balance(client, login)["remaining"] == 20.0

    login("employee@dandori.example", "employee123")
    res = client.post(f"/api/leave/requests/{leave['id']}/cancel")
    assert res.status_code == 400


def test_other_employee_cannot_cancel_leave(client, login):
    leave = _request_leave(client, login)
    login("manager@dandori.example", "manager123")
    res = client.post(f"/api/leave/requests/{leave['id']}/cancel")
    assert res.status_code == 403


def test_leave_stats_group_by_status_and_type(client, login):
    approved = _request_leave(client, login)
    _request_leave(client, login, leave_type="sick", start_date="2026-12-01", end_date="2026-12-01")
    wf_id = approved["workflow_request_id"]
    login("manager@dandori.example", "manager123")
    client.post(f"/api/workflows/{wf_id}/approve")
    login("hr@dandori.example", "hr1234")
    client.post(f"/api/workflows/{wf_id}/approve")

    stats = client.get("/api/leave/stats?year=2026").get_json()["data"]
    assert stats["total_requests"] == 2
    assert stats["approved_days"] == 3.0
    assert stats["by_status"] == {"approved": 1, "pending": 1}
    assert stats["by_type"] == {"paid": 1, "sick": 1}
    assert stats["by_month"] == {"2026-11": 1, "2026-12": 1}
    assert stats["by_department"] == {"営業部": 2}
    assert [p["leave_type"] for p in stats["pending_requests"]] == ["sick"]

    login("employee@dandori.example", "employee123")
    assert client.get("/api/leave/stats").status_code == 403


def test_one_day_paid_leave_is_approved_immediately(client, login):
    leave = _request_leave(client, login, start_date="2026-11-09", end_date="2026-11-09")
    assert leave["status"] == "approved"
    assert _balance(client, login)["used"] == 1.0

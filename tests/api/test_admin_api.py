def _units(client):
    return {u["code"]: u for u in client.get("/api/organization/units").get_json()["data"]}


def test_unit_cannot_move_under_itself_or_its_descendants(client, login):
    login("hr@dandori.example", "hr1234")
    units = _units(client)

    res = client.patch(f"/api/organization/units/{units['HQ']['id']}", json={"parent_id": units["SALES"]["id"]})
    assert res.status_code == 400
    res = client.patch(f"/api/organization/units/{units['SALES']['id']}", json={"parent_id": units["SALES"]["id"]})
    assert res.status_code == 400


def test_reparenting_recomputes_levels(client, login):
    login("hr@dandori.example", "hr1234")
    units = _units(client)
    res = client.post(
        "/api/organization/units", json={"name": "第一営業課", "code": "SALES1", "parent_id": units["SALES"]["id"]}
    )
    assert res.status_code == 201
    assert res.get_json()["data"]["level"] == 3
    assert client.post("/api/organization/units", json={"name": "重複", "code": "SALES1"}).status_code == 409

    res = client.patch(f"/api/organization/units/{units['SALES']['id']}", json={"parent_id": units["HR"]["id"]})
    assert res.get_json()["data"]["level"] == 3
    assert _units(client)["SALES1"]["level"] == 4

    assert client.delete(f"/api/organization/units/{units['SALES']['id']}").status_code == 400
    assert client.delete(f"/api/organization/units/{_units(client)['SALES1']['id']}").status_code == 200


def test_transfer_moves_member_and_changes_managers(app, client, login):
    employee = login("employee@dandori.example", "employee123")
    manager = login("manager@dandori.example", "manager123")
    hr = login("hr@dandori.example", "hr1234")
    admin = login("admin@dandori.example", "admin123")
    organization = app.extensions["dandori_container"].organization_service
    tenant_id = app.config["DEMO_TENANT_ID"]

    with app.app_context():
        assert [u.id for u in organization.managers_for(tenant_id, employee["user_id"])] == [manager["user_id"], admin["user_id"]]

    login("hr@dandori.example", "hr1234")
    units = _units(client)
    body = {"user_id": employee["user_id"], "to_unit_id": units["HR"]["id"], "effective_date": "2026-04-01", "reason": "定期異動"}
    res = client.post("/api/organization/transfers", json=body)
    assert res.status_code == 201
    record = res.get_json()["data"]
    assert record["from_unit_id"] == units["SALES"]["id"]
    assert record["to_unit_id"] == units["HR"]["id"]

    assert client.post("/api/organization/transfers", json=body).status_code == 400
    history = client.get(f"/api/organization/transfers?user_id={employee['user_id']}").get_json()["data"]
    assert [h["id"] for h in history] == [record["id"]]
    assert client.get(f"/api/users/{employee['user_id']}").get_json()["data"]["department"] == "人事部"

    with app.app_context():
        assert [u.id for u in organization.managers_for(tenant_id, employee["user_id"])] == [hr["user_id"], admin["user_id"]]


def test_user_delete_guards(client, login):
    employee = login("employee@dandori.example", "employee123")
    login("hr@dandori.example", "hr1234")
    assert client.delete(f"/api/users/{employee['user_id']}").status_code == 403

    admin = login("admin@dandori.example", "admin123")
    assert client.delete(f"/api/users/{admin['user_id']}").status_code == 400

    res = client.post(
        "/api/users",
        json={"name": "副管理者", "email": "admin2@dandori.example", "password": "admin2pass", "role": "admin"},
    )
    assert res.status_code == 201
    assert client.delete(f"/api/users/{res.get_json()['data']['id']}").status_code == 400

    assert client.delete(f"/api/users/{employee['user_id']}").status_code == 200
    assert client.get(f"/api/users/{employee['user_id']}").status_code == 404


def test_user_cannot_be_own_manager(client, login):
    employee = login("employee@dandori.example", "employee123")
    login("hr@dandori.example", "hr1234")
    url = f"/api/users/{employee['user_id']}"

    assert client.patch(url, json={"manager_id": employee["user_id"]}).status_code == 400
    assert client.patch(url, json={"manager_id": 99999}).status_code == 400
    res = client.patch(url, json={"manager_id": None})
    assert res.status_code == 200
    assert res.get_json()["data"]["manager_id"] is None


def test_duplicate_email_is_a_conflict(client, login):
    login("admin@dandori.example", "admin123")
    res = client.post(
        "/api/users", json={"name": "別人", "email": "employee@dandori.example", "password": "password123"}
    )
    assert res.status_code == 409


def test_tenant_overview_includes_stats(client, login, app):
    client.post(
        "/api/dw-admin/batch/generate-invoices", json={"billing_month": "2025-03"}, headers={"X-API-Key": "test-batch-key"}
    )
    login("admin@dandori.example", "admin123")
    overview = client.get(f"/api/dw-admin/tenants/{app.config['DEMO_TENANT_ID']}").get_json()["data"]

    assert overview["stats"]["user_count"] == 5
    assert overview["stats"]["invoice_total"] == 16_500
    assert overview["stats"]["unpaid_count"] == 1
    assert overview["stats"]["overdue_count"] == 0

    login("hr@dandori.example", "hr1234")
    assert client.get("/api/dw-admin/tenants").status_code == 403


def test_notifications_need_ids_or_mark_all(client, login):
    login("employee@dandori.example", "employee123")
    client.post("/api/workflows", json={"type": "expense_claim", "title": "交通費", "details": {"amount": 5_000}})

    login("manager@dandori.example", "manager123")
    res = client.put("/api/notifications", json={})
    assert res.status_code == 400
    assert res.get_json()["required"] == ["ids"]
    assert client.put("/api/notifications", json={"ids": ["x"]}).status_code == 400

    listed = client.get("/api/notifications").get_json()
    assert listed["unread_count"] == 1
    res = client.put("/api/notifications", json={"ids": [listed["data"][0]["id"]]})
    assert res.get_json()["data"] == {"updated": 1}
    assert client.get("/api/notifications?unread_only=true").get_json()["count"] == 0

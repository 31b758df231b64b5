def _declaration(client, login, **payload):
    login("employee@dandori.example", "employee123")
    res = client.post("/api/year-end/declarations", json={"fiscal_year": 2025, **payload})
    return res


def test_declaration_is_locked_once_submitted(client, login):
    res = _declaration(client, login, dependent_count=1, specific_dependent_count=2)
    assert res.status_code == 400

    res = _declaration(client, login, has_spouse=True, spouse_income=0)
    assert res.status_code == 201
    declaration = res.get_json()["data"]
    res = _declaration(client, login, dependent_count=2)
    assert res.status_code == 200
    assert res.get_json()["data"]["id"] == declaration["id"]

    url = f"/api/year-end/declarations/{declaration['id']}"
    assert client.patch(url, json={"action": "approve"}).status_code == 403
    res = client.patch(url, json={"action": "submit"})
    assert res.get_json()["data"]["status"] == "submitted"
    assert client.put(url, json={"dependent_count": 3}).status_code == 400
    assert _declaration(client, login, dependent_count=3).status_code == 400

    login("manager@dandori.example", "manager123")
    assert client.get(url).status_code == 403

    login("hr@dandori.example", "hr1234")
    res = client.patch(url, json={"action": "approve"})
    assert res.get_json()["data"]["status"] == "approved"
    assert res.get_json()["data"]["approved_by"] is not None
    assert client.delete(url).status_code == 400


def test_rejected_declaration_can_be_edited_again(client, login):
    declaration = _declaration(client, login).get_json()["data"]
    url = f"/api/year-end/declarations/{declaration['id']}"
    client.patch(url, json={"action": "submit"})

    login("hr@dandori.example", "hr1234")
    assert client.patch(url, json={"action": "reject"}).get_json()["data"]["status"] == "rejected"

    login("employee@dandori.example", "employee123")
    res = client.put(url, json={"life_insurance_new": 50_000})
    assert res.status_code == 200
    assert res.get_json()["data"]["life_insurance_new"] == 50_000
    assert client.delete(url).status_code == 200


def _confirmed_result(client, login):
    employee = login("employee@dandori.example", "employee123")
    login("hr@dandori.example", "hr1234")
    client.post(
        "/api/payroll-master/salary-settings",
        json={"user_id": employee["user_id"], "effective_from": "2025-01-01", "basic_salary": 300_000},
    )
    run = client.post(
        "/api/payroll/calculate",
        json={"pay_period": "2025-12", "payment_date": "2025-12-25", "user_ids": [employee["user_id"]]},
    ).get_json()["data"]
    client.patch(f"/api/payroll/pay-slips/{run['results'][0]['pay_slip']['id']}", json={"action": "confirm"})

    res = client.post("/api/year-end/results", json={"fiscal_year": 2025, "user_ids": [employee["user_id"]]})
    body = res.get_json()
    assert body["summary"] == {"total": 1, "success": 1, "error": 0}
    result = body["data"][0]["item"]
    assert result["taxable_income"] % 1000 == 0
    client.patch(f"/api/year-end/results/{result['id']}", json={"action": "confirm"})
    return employee, result


def test_confirmed_result_is_not_recalculated(client, login):
    employee, _ = _confirmed_result(client, login)
    body = client.post("/api/year-end/results", json={"fiscal_year": 2025, "user_ids": [employee["user_id"]]}).get_json()
    assert body["data"][0]["success"] is False
    assert body["data"][0]["error"] == "確定済みの年末調整結果は再計算できません"


def test_withholding_slip_lifecycle(client, login):
    employee, result = _confirmed_result(client, login)

    body = client.post("/api/year-end/withholding-slips", json={"fiscal_year": 2025}).get_json()
    assert body["summary"]["success"] == 1
    slip = next(o["item"] for o in body["data"] if o["success"])
    assert slip["user_id"] == employee["user_id"]
    assert slip["withheld_tax"] == result["final_tax"]
    assert slip["status"] == "draft"
    url = f"/api/year-end/withholding-slips/{slip['id']}"

    assert client.patch(url, json={"action": "reissue"}).status_code == 400
    assert client.patch(url, json={"action": "deliver"}).status_code == 400

    issued = client.patch(url, json={"action": "issue"}).get_json()["data"]
    assert issued["status"] == "issued"
    assert issued["issue_number"].startswith("WS-2025-")
    assert client.patch(url, json={"action": "issue"}).status_code == 400

    delivered = client.patch(url, json={"action": "deliver"}).get_json()["data"]
    assert delivered["status"] == "delivered"
    assert delivered["delivery_method"] == "download"
    assert client.delete(url).status_code == 400

    copy = client.patch(url, json={"action": "reissue"}).get_json()["data"]
    assert copy["id"] != slip["id"]
    assert copy["is_reissue"] is True
    assert copy["reissue_count"] == 1
    assert copy["original_slip_id"] == slip["id"]
    assert copy["status"] == "issued"
    assert client.delete(f"/api/year-end/withholding-slips/{copy['id']}").status_code == 200

    assert client.patch(url, json={"action": "void"}).status_code == 400

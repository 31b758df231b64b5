def test_batch_requires_api_key(client):
    res = client.post("/api/dw-admin/batch/generate-invoices", json={"billing_month": "2025-03"})
    assert res.status_code == 401


def test_generate_invoices_for_demo_tenant(client):
    headers = {"X-API-Key": "test-batch-key"}
    res = client.post(
        "/api/dw-admin/batch/generate-invoices", json={"billing_month": "2025-03"}, headers=headers
    )
    body = res.get_json()["data"]
    assert res.status_code == 200
    assert body["generated"] == 1
    # 10,000 base + 5 users x 1,000, plus 10% tax
    assert body["invoices"][0]["total"] == 16_500
    assert body["invoices"][0]["invoice_number"] == "INV-2025-03-001"

    again = client.post(
        "/api/dw-admin/batch/generate-invoices", json={"billing_month": "2025-03"}, headers=headers
    ).get_json()["data"]
    assert (again["generated"], again["skipped"]) == (0, 1)

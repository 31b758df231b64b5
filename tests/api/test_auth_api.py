def test_me_requires_session(client):
    res = client.get("/api/auth/me")
    assert res.status_code == 401
    assert res.get_json()["success"] is False


def test_login_and_me(client, login):
    user = login("hr@dandori.example", "hr1234")
    assert user["role"] == "hr"
    assert "payroll" in user["menus"]

    res = client.get("/api/auth/me")
    body = res.get_json()
    assert res.status_code == 200
    assert body["data"]["email"] == "hr@dandori.example"


def test_wrong_password(client, app):
    res = client.post(
        "/api/auth/login",
        json={"email": "hr@dandori.example", "password": "nope", "tenant_id": app.config["DEMO_TENANT_ID"]},
    )
    assert res.status_code == 401


def test_employee_cannot_create_users(client, login):
    login("employee@dandori.example", "employee123")
    res = client.post("/api/users", json={"name": "x", "email": "x@example.com", "password": "secret123"})
    assert res.status_code == 403


def test_logout_clears_session(client, login):
    login("employee@dandori.example", "employee123")
    client.post("/api/auth/logout")
    assert client.get("/api/auth/me").status_code == 401

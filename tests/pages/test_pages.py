def test_root_redirects_to_japanese_dashboard(client):
    res = client.get("/")
    assert res.status_code == 302
    assert res.headers["Location"].endswith("/ja/dashboard")


def test_logged_out_visitor_goes_to_login_of_same_locale(client):
    res = client.get("/en/dashboard")
    assert res.status_code == 302
    assert res.headers["Location"].endswith("/en/login")


def test_unknown_locale_is_404(client):
    assert client.get("/xx/dashboard").status_code == 404


def test_login_form_then_dashboard(client, app):
    res = client.post(
        "/en/login",
        data={"email": "employee@dandori.example", "password": "employee123", "tenant_id": str(app.config["DEMO_TENANT_ID"])},
    )
    assert res.status_code == 302
    assert res.headers["Location"].endswith("/en/dashboard")

    page = client.get("/en/dashboard")
    assert page.status_code == 200
    assert b"Dashboard" in page.data
    assert 'id="pending-count"' in page.get_data(as_text=True)


def test_bad_login_rerenders_form(client):
    res = client.post("/ja/login", data={"email": "employee@dandori.example", "password": "x"})
    assert res.status_code == 401
    assert "ログイン" in res.get_data(as_text=True)


def test_punch_from_attendance_page(client, app):
    client.post("/ja/login", data={"email": "employee@dandori.example", "password": "employee123"})
    res = client.post("/ja/attendance/punch", data={"punch_type": "check_in"})
    assert res.status_code == 302
    assert res.headers["Location"].endswith("/ja/attendance")
    assert client.get("/ja/attendance").status_code == 200

import pytest

from dandori_portal.database.bootstrap import seed_demo
from dandori_portal.database.extension import db
from dandori_portal.main import create_app


@pytest.fixture()
def app():
    app = create_app("config.testing")
    with app.app_context():
        app.config["DEMO_TENANT_ID"] = seed_demo(db)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def login(client, app):
    def _login(email, password):
        res = client.post(
            "/api/auth/login",
            json={"email": email, "password": password, "tenant_id": app.config["DEMO_TENANT_ID"]},
        )
        assert res.status_code == 200, res.get_json()
        return res.get_json()["data"]

    return _login

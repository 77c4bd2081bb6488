import pytest

from catalog_api import create_app, init_db, shutdown
from catalog_api.config import TestingConfig


@pytest.fixture
def app(tmp_path):
    app = create_app(TestingConfig, overrides={
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'catalog.db'}",
    })
    init_db(app)
    yield app
    shutdown(app)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def signup(client):
    """Register a user and return ``(user_dict, token)``."""
    def _signup(name="A", email="a@x.com", password="pw"):
        resp = client.post("/users", json={"name": name, "email": email, "password": password})
        assert resp.status_code == 201, resp.get_json()
        body = resp.get_json()
        return body["user"], body["token"]
    return _signup
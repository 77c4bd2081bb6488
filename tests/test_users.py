from sqlalchemy.orm import Query

from catalog_api import users
from catalog_api.model import User, db
from catalog_api.security import verify_token


def auth(token):
    return {"Authorization": f"Bearer {token}"}


def test_signup_returns_user_and_token(client, app):
    resp = client.post("/users", json={"name": "A", "email": "a@x.com", "password": "pw"})

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["success"] is True
    assert body["user"]["id"]
    assert body["user"]["email"] == "a@x.com"
    assert "password" not in body["user"]
    assert resp.headers["Authorization"] == f"Bearer {body['token']}"
    assert verify_token(body["token"], app.config["SECRET_KEY"]) == body["user"]["id"]


def test_signup_stores_hashed_password(client, app, signup):
    user, _ = signup(password="plaintext")
    with app.app_context():
        stored = db.session.get(User, user["id"])
        assert stored.password != "plaintext"


def test_duplicate_email_is_rejected(client, app, signup):
    signup(email="dup@x.com")
    resp = client.post("/users", json={"name": "B", "email": "dup@x.com", "password": "other"})

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "User with that email already exists"
    with app.app_context():
        assert db.session.query(User).filter_by(email="dup@x.com").count() == 1


def test_signup_validation_error(client):
    resp = client.post("/users", json={"name": "A", "email": "a@x.com"})
    assert resp.status_code == 400
    assert "password" in resp.get_json()["message"]


def test_signup_rejects_non_json_body(client):
    resp = client.post("/users", data="name=A", content_type="text/plain")
    assert resp.status_code == 400


def test_login_success(client, app, signup):
    user, _ = signup(email="log@x.com", password="secret")
    resp = client.post("/users/login", json={"email": "log@x.com", "password": "secret"})

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["user"] == user
    assert resp.headers["Authorization"] == f"Bearer {body['token']}"
    assert verify_token(body["token"], app.config["SECRET_KEY"]) == user["id"]


def test_login_wrong_password(client, signup):
    signup(email="log@x.com", password="secret")
    resp = client.post("/users/login", json={"email": "log@x.com", "password": "nope"})

    assert resp.status_code == 400
    body = resp.get_json()
    assert body == {"message": "Invalid email or password"}
    assert "Authorization" not in resp.headers


def test_login_unknown_email(client):
    resp = client.post("/users/login", json={"email": "ghost@x.com", "password": "pw"})
    assert resp.status_code == 400
    assert "token" not in resp.get_json()


def test_login_malformed_payload(client):
    resp = client.post("/users/login", json={"email": "a@x.com"})
    assert resp.status_code == 400


def test_logout_clears_bearer(client):
    resp = client.get("/users/logout")
    assert resp.status_code == 200
    assert resp.get_json()["success"] is True
    assert resp.headers["Authorization"].strip() == "Bearer"


def test_me_requires_token(client):
    resp = client.get("/users/me")
    assert resp.status_code == 401
    assert resp.headers["WWW-Authenticate"] == "Bearer"


def test_me_rejects_bad_token(client):
    resp = client.get("/users/me", headers=auth("not-a-token"))
    assert resp.status_code == 401


def test_me_rejects_wrong_scheme(client, signup):
    _, token = signup()
    resp = client.get("/users/me", headers={"Authorization": f"Token {token}"})
    assert resp.status_code == 401


def test_me_returns_public_fields(client, signup):
    user, token = signup(name="Ann", email="ann@x.com")
    resp = client.get("/users/me", headers=auth(token))

    assert resp.status_code == 200
    assert resp.get_json()["user"] == {"id": user["id"], "name": "Ann", "email": "ann@x.com"}


def test_me_returns_null_for_vanished_user(client, app, signup):
    user, token = signup()
    with app.app_context():
        db.session.delete(db.session.get(User, user["id"]))
        db.session.commit()

    resp = client.get("/users/me", headers=auth(token))
    assert resp.status_code == 200
    assert resp.get_json()["user"] is None


def test_signup_rejects_blank_fields(client, app):
    resp = client.post("/users", json={"name": "", "email": "", "password": ""})

    assert resp.status_code == 400
    assert "token" not in resp.get_json()
    with app.app_context():
        assert db.session.query(User).count() == 0


def test_signup_then_login_round_trip(client, signup):
    user, _ = signup(email="round@x.com", password="pw")
    resp = client.post("/users/login", json={"email": "round@x.com", "password": "pw"})
    assert resp.status_code == 200
    assert resp.get_json()["user"]["id"] == user["id"]


def test_concurrent_duplicate_signup_hits_unique_constraint(client, app, signup, monkeypatch):
    signup(email="race@x.com")
    # the existence check misses, as if another request committed in between
    monkeypatch.setattr(Query, "first", lambda self: None)

    resp = client.post("/users", json={"name": "B", "email": "race@x.com", "password": "pw"})
    monkeypatch.undo()

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "User with that email already exists"
    with app.app_context():
        assert db.session.query(User).filter_by(email="race@x.com").count() == 1


def test_token_failure_leaves_no_user_behind(client, app, monkeypatch):
    def broken_issue(*args, **kwargs):
        raise ValueError("signing key /etc/secret unreadable")

    monkeypatch.setattr(users, "issue_token", broken_issue)
    resp = client.post("/users", json={"name": "A", "email": "a@x.com", "password": "pw"})

    assert resp.status_code == 500
    assert resp.get_json() == {"message": "Internal Server Error"}
    assert b"/etc/secret" not in resp.data
    with app.app_context():
        assert db.session.query(User).count() == 0

from conftest import register, login_headers


def test_register_returns_user(client):
    resp = register(client)
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["user"]["email"] == "alice@example.com"
    assert body["user"]["name"] == "Alice"
    assert "password" not in body["user"]


def test_register_duplicate_email_rejected(client):
    assert register(client).status_code == 201
    resp = register(client, name="Other Alice")
    assert resp.status_code == 400
    assert resp.json()["error"] == "Email already registered"


def test_register_duplicate_email_is_case_insensitive_on_domain(client):
    assert register(client).status_code == 201
    resp = register(client, email="alice@EXAMPLE.com")
    assert resp.status_code == 400


def test_register_requires_all_fields(client):
    resp = client.post("/api/register", json={"name": "Alice", "email": "alice@example.com"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "All fields are required"

    resp = client.post("/api/register", json={"name": "  ", "email": "a@example.com", "password": "x"})
    assert resp.status_code == 400


def test_register_rejects_invalid_email(client):
    resp = register(client, email="not-an-email")
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid email address"


def test_password_is_not_stored_in_plaintext(client):
    from db import SessionLocal
    from models import User

    register(client, password="secret123")
    with SessionLocal() as db:
        user = db.query(User).filter(User.email == "alice@example.com").one()
        assert user.password != "secret123"
        assert user.password.startswith("$2")


def test_login_wrong_password(client):
    register(client)
    resp = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "wrong"})
    assert resp.status_code == 401
    assert resp.json()["error"] == "Invalid password"


def test_login_unknown_email(client):
    resp = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "x"})
    assert resp.status_code == 404
    assert resp.json()["error"] == "Email not found"


def test_login_sets_session_cookie(client):
    register(client)
    resp = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "secret123"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["email"] == "alice@example.com"
    assert "zipflow_session" in resp.cookies

    # the cookie alone is enough to resolve the session
    session = client.get("/api/auth/session")
    assert session.status_code == 200
    assert session.json()["user"]["name"] == "Alice"


def test_logout_clears_cookie(client):
    register(client)
    client.post("/api/auth/login", json={"email": "alice@example.com", "password": "secret123"})
    resp = client.post("/api/auth/logout")
    assert resp.status_code == 200
    set_cookie = resp.headers["set-cookie"]
    assert set_cookie.startswith("zipflow_session=")
    assert "Max-Age=0" in set_cookie


def test_session_with_bearer_token(client):
    headers = login_headers(client)
    resp = client.get("/api/auth/session", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["user"]["email"] == "alice@example.com"


def test_session_rejects_garbage_token(client):
    resp = client.get("/api/auth/session", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized"}


def test_expired_token_is_rejected(client):
    from datetime import timedelta
    from utils.jwt_utils import create_access_token

    register(client)
    token = create_access_token(user_id=1, expires_delta=timedelta(seconds=-1))
    resp = client.get("/api/auth/session", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_register_rejects_password_over_72_bytes(client):
    resp = register(client, password="p" * 100)
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Password too long"
    assert "72" in body["details"]

    # multi-byte characters count by their encoded length
    resp = register(client, password="é" * 40)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Password too long"


def test_password_of_exactly_72_bytes_works(client):
    password = "p" * 72
    assert register(client, password=password).status_code == 201
    resp = client.post("/api/auth/login", json={"email": "alice@example.com", "password": password})
    assert resp.status_code == 200


def test_login_with_overlong_password_is_invalid(client):
    register(client)
    resp = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "p" * 100})
    assert resp.status_code == 401
    assert resp.json()["error"] == "Invalid password"


def test_login_malformed_email_is_not_found(client):
    register(client)
    resp = client.post("/api/auth/login", json={"email": "not-an-email", "password": "secret123"})
    assert resp.status_code == 404
    assert resp.json()["error"] == "Email not found"

from datetime import timedelta

from core.security import create_access_token, create_refresh_token, decode_refresh_token, hash_password, verify_password
from models.user import User
from tests.factories import auth_header, fake_phone, fake_register_payload


def register(client, **overrides):
    payload = fake_register_payload(**overrides)
    res = client.post("/auth/register", json=payload)
    assert res.status_code == 201, res.text
    return payload, res.json()["data"]


def test_register_returns_tokens(client, db_session):
    payload, data = register(client)

    assert data["user"]["email"] == payload["email"]
    assert data["user"]["role"] == "user"
    assert "password" not in data["user"]
    assert data["accessToken"] and data["refreshToken"]

    user = db_session.query(User).filter(User.email == payload["email"]).first()
    assert user.password_hash != payload["password"]
    assert verify_password(payload["password"], user.password_hash)
    assert user.refresh_token_hash is not None


def test_register_duplicate_email(client):
    payload, _ = register(client)

    res = client.post("/auth/register", json=fake_register_payload(email=payload["email"]))

    assert res.status_code == 409
    assert res.json()["success"] is False


def test_register_duplicate_phone(client):
    phone = fake_phone()
    register(client, phone=phone)

    res = client.post("/auth/register", json=fake_register_payload(phone=phone))

    assert res.status_code == 409


def test_register_validation(client):
    res = client.post("/auth/register", json=fake_register_payload(email="not-an-email"))
    assert res.status_code == 422

    res = client.post("/auth/register", json=fake_register_payload(password="Zq7!x"))
    assert res.status_code == 422
    assert "Zq7!x" not in res.text


def test_login_success(client):
    payload, _ = register(client)

    res = client.post("/auth/login", json={"email": payload["email"], "password": payload["password"]})

    assert res.status_code == 200, res.text
    data = res.json()["data"]
    me = client.get("/auth/me", headers=auth_header(data["accessToken"]))
    assert me.status_code == 200
    assert me.json()["email"] == payload["email"]


def test_login_wrong_password(client):
    payload, _ = register(client)

    res = client.post("/auth/login", json={"email": payload["email"], "password": "WrongPass999"})

    assert res.status_code == 401
    assert res.json()["message"] == "Invalid credentials"


def test_login_unknown_email(client):
    res = client.post("/auth/login", json={"email": "nobody@example.com", "password": "whatever123"})

    assert res.status_code == 401
    assert res.json()["message"] == "Invalid credentials"


def test_refresh_token_rotates(client):
    _, data = register(client)
    old_refresh = data["refreshToken"]

    res = client.post("/auth/refresh-token", json={"refreshToken": old_refresh})
    assert res.status_code == 200, res.text
    new_refresh = res.json()["data"]["refreshToken"]
    assert new_refresh != old_refresh

    # the previous refresh token is no longer accepted
    res = client.post("/auth/refresh-token", json={"refreshToken": old_refresh})
    assert res.status_code == 401

    res = client.post("/auth/refresh-token", json={"refreshToken": new_refresh})
    assert res.status_code == 200


def test_refresh_rejects_access_token(client):
    _, data = register(client)

    res = client.post("/auth/refresh-token", json={"refreshToken": data["accessToken"]})

    assert res.status_code == 401


def test_refresh_rejects_expired_token(client):
    _, data = register(client)
    sub = decode_refresh_token(data["refreshToken"])["sub"]
    expired = create_refresh_token({"sub": sub}, expires_delta=timedelta(seconds=-10))

    res = client.post("/auth/refresh-token", json={"refreshToken": expired})

    assert res.status_code == 401


def test_me_requires_token(client):
    assert client.get("/auth/me").status_code == 401
    assert client.get("/auth/me", headers=auth_header("garbage")).status_code == 401


def test_me_rejects_refresh_token(client):
    _, data = register(client)

    res = client.get("/auth/me", headers=auth_header(data["refreshToken"]))

    assert res.status_code == 401


def test_me_rejects_unknown_subject(client):
    token = create_access_token({"sub": "00000000-0000-0000-0000-000000000000", "role": "user"})

    res = client.get("/auth/me", headers=auth_header(token))

    assert res.status_code == 401


def test_password_hash_roundtrip():
    hashed = hash_password("SecurePass123")

    assert hashed.startswith("$argon2")
    assert verify_password("SecurePass123", hashed)
    assert not verify_password("SecurePass124", hashed)
    assert not verify_password("SecurePass123", None)

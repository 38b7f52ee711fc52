from __future__ import annotations

from sqlalchemy import select

import src.integrations.email.delivery as delivery_module
from src.auth.jwt import CLAIM_TOKEN_PURPOSE, create_access_token, decode_access_token
from src.storage.models import User
from src.storage.security import hash_password, verify_password
from tests.conftest import FakeResendClient, make_profile


SIGNUP = {
    "email": "Maker@X.com",
    "password": "testpass123",
    "name": "Test User",
    "number": "+1234567899",
    "usertype": "maker",
    "industry": ["Technology"],
    "purpose": "Learning",
    "role": "Admin",
}


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _signup(client, **overrides) -> dict:
    response = client.post("/users/signup", json={**SIGNUP, **overrides})
    assert response.status_code == 201
    return response.json()


def test_password_hash_round_trip() -> None:
    encoded = hash_password("s3cret-pass", rounds=1000)

    assert encoded.startswith("pbkdf2_sha256$1000$")
    assert verify_password("s3cret-pass", encoded) is True
    assert verify_password("wrong", encoded) is False
    assert verify_password("s3cret-pass", "plaintext") is False
    assert verify_password("s3cret-pass", "pbkdf2_sha256$x$y$z") is False


def test_signup_creates_individual_user_and_token(client, session) -> None:
    payload = _signup(client)

    user = payload["user"]
    assert user["email"] == "maker@x.com"
    assert user["role"] == "Individual"
    assert user["usertype"] == ["maker"]
    assert user["purpose"] == ["Learning"]
    assert "password" not in user and "passwordHash" not in user

    context = decode_access_token(payload["token"])
    assert context.email == "maker@x.com"
    assert context.user_id == user["id"]
    assert context.purpose is None

    row = session.scalar(select(User).where(User.email == "maker@x.com"))
    assert row is not None
    assert row.password_hash != SIGNUP["password"]


def test_signup_rejects_duplicates_and_missing_fields(client) -> None:
    _signup(client)

    duplicate = client.post("/users/signup", json={**SIGNUP, "email": "maker@x.com"})
    assert duplicate.status_code == 400
    assert duplicate.json()["detail"] == "User already exists"

    missing = client.post("/users/signup", json={"email": "other@x.com", "password": "test123"})
    assert missing.status_code == 400
    assert missing.json() == {"detail": "Missing required fields", "fields": ["name", "number"]}


def test_login_and_reauth(client) -> None:
    created = _signup(client)

    login = client.post("/users/login", json={"email": "MAKER@x.com", "password": "testpass123"})
    assert login.status_code == 200
    assert login.json()["user"]["id"] == created["user"]["id"]

    wrong = client.post("/users/login", json={"email": "maker@x.com", "password": "nope"})
    assert wrong.status_code == 401
    assert wrong.json()["detail"] == "Invalid credentials"

    unknown = client.post("/users/login", json={"email": "ghost@x.com", "password": "nope"})
    assert unknown.status_code == 401
    assert unknown.json()["detail"] == "Invalid credentials"

    incomplete = client.post("/users/login", json={"email": "maker@x.com"})
    assert incomplete.status_code == 400

    reauth = client.get("/users/reauth", headers=_auth(login.json()["token"]))
    assert reauth.status_code == 200
    assert reauth.json()["user"]["email"] == "maker@x.com"
    assert decode_access_token(reauth.json()["token"]).user_id == created["user"]["id"]

    assert client.get("/users/reauth").status_code == 401


def test_reauth_without_account_is_not_found(client) -> None:
    claim, _ = create_access_token("owner@x.com", purpose=CLAIM_TOKEN_PURPOSE)
    response = client.get("/users/reauth", headers=_auth(claim))
    assert response.status_code == 404
    assert response.json()["detail"] == "User not found"


def test_lookup_by_contact(client) -> None:
    _signup(client)

    assert client.get("/users/by-contact", params={"email": "maker@x.com"}).json() == {"email": "maker@x.com"}
    assert client.get("/users/by-contact", params={"number": "+1234567899"}).json() == {"email": "maker@x.com"}
    assert client.get("/users/by-contact", params={"number": "000"}).status_code == 404
    assert client.get("/users/by-contact").status_code == 404


def test_login_token_can_update_makerspace_after_claim_expired(client) -> None:
    claim = client.post("/makerspace/onboard", json={"email": "owner@x.com"}).json()["token"]
    created = client.post("/makerspace/", json=make_profile(), headers=_auth(claim)).json()
    _signup(client, email="editor@x.com")
    login_token = client.post("/users/login", json={"email": "editor@x.com", "password": "testpass123"}).json()["token"]

    response = client.put(
        f"/makerspace/{created['id']}",
        json={"description": "Edited by a signed-in user"},
        headers=_auth(login_token),
    )

    assert response.status_code == 200
    assert response.json()["profile"]["description"] == "Edited by a signed-in user"


def test_password_reset_flow(client, monkeypatch) -> None:
    monkeypatch.setenv("EMAIL_FROM_ADDRESS", "accounts@makerhub.io")
    monkeypatch.setenv("APP_PUBLIC_BASE_URL", "https://makerhub.io")
    fake_client = FakeResendClient()
    monkeypatch.setattr(delivery_module, "get_resend_client", lambda: fake_client)
    _signup(client)

    forgot = client.post("/users/forgot-password", json={"email": "maker@x.com"})
    assert forgot.status_code == 200
    assert forgot.json() == {"message": "Password reset link sent to your email"}
    text = fake_client.calls[0]["text"]
    assert "https://makerhub.io/reset/password?token=" in text
    reset_token = text.split("token=", 1)[1].split()[0]

    assert client.get("/users/reauth", headers=_auth(reset_token)).status_code == 401

    reset = client.post("/users/reset-password", json={"token": reset_token, "newPassword": "brand-new-pass"})
    assert reset.status_code == 200

    assert client.post("/users/login", json={"email": "maker@x.com", "password": "testpass123"}).status_code == 401
    assert client.post("/users/login", json={"email": "maker@x.com", "password": "brand-new-pass"}).status_code == 200

    replay = client.post("/users/reset-password", json={"token": reset_token, "newPassword": "again-pass"})
    assert replay.status_code == 400
    assert replay.json()["detail"] == "Invalid or expired reset token"


def test_password_reset_rejects_bad_requests(client) -> None:
    _signup(client)
    login_token = client.post("/users/login", json={"email": "maker@x.com", "password": "testpass123"}).json()["token"]

    assert client.post("/users/forgot-password", json={}).status_code == 400
    assert client.post("/users/forgot-password", json={"email": "ghost@x.com"}).status_code == 404

    missing = client.post("/users/reset-password", json={"token": login_token})
    assert missing.status_code == 400
    assert missing.json()["detail"] == "Token and new password are required"

    wrong_purpose = client.post("/users/reset-password", json={"token": login_token, "newPassword": "x-pass"})
    assert wrong_purpose.status_code == 400
    assert wrong_purpose.json()["detail"] == "Invalid reset token"

    garbage = client.post("/users/reset-password", json={"token": "garbage", "newPassword": "x-pass"})
    assert garbage.status_code == 400
    assert garbage.json()["detail"] == "Invalid or expired reset token"

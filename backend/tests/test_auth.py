from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from astrotracker.core.errors import ConflictError
from astrotracker.models import User
from astrotracker.repositories import UserRepository
from astrotracker.schemas.auth import RegisterIn
from astrotracker.services.auth_service import AuthService
from main import app

from conftest import PASSWORD, login, register
from fakes import FakeEmailService


def test_register_returns_created_profile(client):
    r = register(client)
    assert r.status_code == 201
    body = r.json()
    assert body["email"] == "ada@example.com"
    assert body["first_name"] == "Ada"
    assert "password_hash" not in body


def test_register_same_email_twice_conflicts(client):
    assert register(client).status_code == 201
    r = register(client, email="ADA@example.com")
    assert r.status_code == 409
    assert r.json()["code"] == "CONFLICT"


def test_register_rejects_weak_password(client):
    r = register(client, password="weakpassword")
    assert r.status_code == 400
    assert r.json()["code"] == "VALIDATION_ERROR"


def test_register_rejects_mismatched_confirmation(client):
    r = client.post(
        "/api/auth/register",
        json={
            "email": "bob@example.com",
            "password": PASSWORD,
            "confirm_password": PASSWORD + "x",
            "first_name": "Bob",
            "last_name": "Builder",
        },
    )
    assert r.status_code == 400


def test_login_returns_token_and_user(client):
    register(client)
    r = login(client)
    assert r.status_code == 200
    body = r.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["email"] == "ada@example.com"
    assert body["user"]["role"] == "User"


def test_login_wrong_password_is_unauthorized(client):
    register(client)
    r = login(client, password="Wr0ng!Pass")
    assert r.status_code == 401
    assert r.json()["code"] == "UNAUTHORIZED"


def test_login_unknown_email_is_unauthorized(client):
    assert login(client, email="nobody@example.com").status_code == 401


def test_validate_token_resolves_user(client):
    register(client)
    token = login(client).json()["access_token"]
    r = client.post("/api/auth/validate", json={"token": token})
    assert r.status_code == 200
    body = r.json()
    assert body["is_valid"] is True
    assert body["user"]["email"] == "ada@example.com"


def test_validate_garbage_token_is_invalid(client):
    r = client.post("/api/auth/validate", json={"token": "not-a-jwt"})
    assert r.status_code == 200
    assert r.json()["is_valid"] is False


def test_me_requires_token(client):
    r = client.get("/api/auth/me")
    assert r.status_code in (401, 403)


def test_me_returns_current_user(client, auth_headers):
    r = client.get("/api/auth/me", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["last_name"] == "Lovelace"


def test_update_profile_picture(client, auth_headers):
    r = client.put(
        "/api/auth/profile-picture",
        json={"profile_picture": "data:image/png;base64,AAAA"},
        headers=auth_headers,
    )
    assert r.status_code == 200
    assert r.json()["profile_picture"] == "data:image/png;base64,AAAA"


def test_update_profile_picture_rejects_blank(client, auth_headers):
    r = client.put("/api/auth/profile-picture", json={"profile_picture": "  "}, headers=auth_headers)
    assert r.status_code == 400


def test_forgot_password_does_not_reveal_unknown_email(client, outbox):
    register(client)
    known = client.post("/api/auth/forgot-password", json={"email": "ada@example.com"})
    unknown = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})
    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()
    assert len(outbox.sent) == 1
    assert outbox.sent[0]["to"] == "ada@example.com"


def _reset_token_from(outbox) -> str:
    body = outbox.sent[-1]["body"]
    link = body.split('href="', 1)[1].split('"', 1)[0]
    assert link.startswith("http://frontend.test/reset-password?")
    return parse_qs(urlparse(link).query)["token"][0]


def test_reset_password_flow_and_token_is_single_use(client, outbox):
    register(client)
    client.post("/api/auth/forgot-password", json={"email": "ada@example.com"})
    token = _reset_token_from(outbox)

    assert client.get(f"/api/auth/validate-reset-token/{token}").json()["success"] is True

    new_password = "N3w!Passw0rd"
    payload = {
        "email": "ada@example.com",
        "token": token,
        "new_password": new_password,
        "confirm_password": new_password,
    }
    r = client.post("/api/auth/reset-password", json=payload)
    assert r.status_code == 200

    assert login(client, password=PASSWORD).status_code == 401
    assert login(client, password=new_password).status_code == 200

    again = client.post("/api/auth/reset-password", json=payload)
    assert again.status_code == 400
    assert client.get(f"/api/auth/validate-reset-token/{token}").json()["success"] is False


def test_reset_password_rejects_expired_token(client, outbox, session):
    register(client)
    client.post("/api/auth/forgot-password", json={"email": "ada@example.com"})
    token = _reset_token_from(outbox)

    users = UserRepository(session)
    user = users.get_by_email("ada@example.com")
    user.password_reset_token_expires = datetime.now(timezone.utc) - timedelta(minutes=1)
    users.update(user)

    r = client.post(
        "/api/auth/reset-password",
        json={
            "email": "ada@example.com",
            "token": token,
            "new_password": "N3w!Passw0rd",
            "confirm_password": "N3w!Passw0rd",
        },
    )
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid or expired token"


def test_deactivated_user_cannot_login(client, session):
    register(client)
    users = UserRepository(session)
    user = users.get_by_email("ada@example.com")
    assert isinstance(user, User)
    assert users.deactivate(user.id) is True
    assert login(client).status_code == 401
    # the address stays taken
    assert register(client).status_code == 409


def test_register_losing_a_race_on_the_email_index_conflicts(session):
    users = UserRepository(session)
    users.create(User(email="ada@example.com", password_hash="h", first_name="Ada", last_name="L"))
    # the other registration commits after our existence check
    users.email_exists = lambda email: False
    service = AuthService(users, FakeEmailService())

    with pytest.raises(ConflictError):
        service.register(
            RegisterIn(
                email="ada@example.com",
                password=PASSWORD,
                confirm_password=PASSWORD,
                first_name="Ada",
                last_name="Lovelace",
            )
        )
    assert users.get_by_email("ada@example.com").password_hash == "h"


def test_reset_password_rejects_wrong_token(client, outbox):
    register(client)
    client.post("/api/auth/forgot-password", json={"email": "ada@example.com"})
    token = _reset_token_from(outbox)

    for wrong in (token[:-1] + ("A" if token[-1] != "A" else "B"), "jeton-é"):
        r = client.post(
            "/api/auth/reset-password",
            json={
                "email": "ada@example.com",
                "token": wrong,
                "new_password": "N3w!Passw0rd",
                "confirm_password": "N3w!Passw0rd",
            },
        )
        assert r.status_code == 400
    assert login(client).status_code == 200


def test_forgot_password_without_smtp_fails_for_known_account():
    client = TestClient(app, raise_server_exceptions=False)
    register(client)
    r = client.post("/api/auth/forgot-password", json={"email": "ada@example.com"})
    assert r.status_code == 500
    assert r.json()["code"] == "INTERNAL_ERROR"

    unknown = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})
    assert unknown.status_code == 200

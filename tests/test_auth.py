from __future__ import annotations

from fastapi.testclient import TestClient

from campus_library.core.settings import get_app_settings
from campus_library.security.hash import hash_password, verify_password

PASSWORD = "Str0ngPassword!"


def test_password_hashing_roundtrip():
    password = "s3cureP@ss!"
    hashed = hash_password(password)

    assert hashed != password
    assert verify_password(password, hashed)
    assert not verify_password("wrong-password", hashed)


def test_register_reader_returns_token_and_awards_points(client: TestClient, factory):
    reader = factory.reader()

    body = reader.body
    assert body["message"] == "Reader registered successfully."
    assert body["tokenType"] == "bearer"
    assert body["user"]["role"] == "reader"
    assert body["user"]["totalPoints"] == 10
    assert "password" not in body["user"]
    assert "passwordHash" not in body["user"]

    history = client.get("/readers/me/points", headers=reader.headers)
    assert history.status_code == 200
    entries = history.json()
    assert [entry["activityType"] for entry in entries] == ["reader_registration"]


def test_register_duplicate_email(client: TestClient, factory):
    hall_id = factory.hall()
    dept_id = factory.department()
    payload = {
        "name": "Nusrat",
        "email": "nusrat@campuslib.edu",
        "password": PASSWORD,
        "passwordConfirmation": PASSWORD,
        "hallId": hall_id,
        "deptId": dept_id,
    }
    assert client.post("/auth/register/reader", json=payload).status_code == 201

    duplicate = client.post("/auth/register/reader", json={**payload, "email": "NUSRAT@campuslib.edu"})
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"]["code"] == "email_taken"


def test_register_rejects_short_password(client: TestClient, factory):
    payload = {
        "name": "Short",
        "email": "short@campuslib.edu",
        "password": "short",
        "passwordConfirmation": "short",
        "hallId": factory.hall(),
        "deptId": factory.department(),
    }
    response = client.post("/auth/register/reader", json=payload)
    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["message"] == "Validation Error"
    assert "password" in detail["errors"]


def test_register_rejects_mismatched_confirmation(client: TestClient):
    payload = {
        "name": "Mismatch",
        "email": "mismatch@campuslib.edu",
        "password": PASSWORD,
        "passwordConfirmation": PASSWORD + "x",
    }
    response = client.post("/auth/register/admin", json=payload)
    assert response.status_code == 422


def test_register_reader_unknown_hall(client: TestClient, factory):
    payload = {
        "name": "Lost",
        "email": "lost@campuslib.edu",
        "password": PASSWORD,
        "passwordConfirmation": PASSWORD,
        "hallId": "missing",
        "deptId": factory.department(),
    }
    response = client.post("/auth/register/reader", json=payload)
    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "hall_not_found"


def test_admin_registration_can_be_disabled(client: TestClient, app_settings):
    closed = app_settings.model_copy(update={"admin_registration_enabled": False})
    client.app.dependency_overrides[get_app_settings] = lambda: closed

    payload = {
        "name": "Root",
        "email": "root@campuslib.edu",
        "password": PASSWORD,
        "passwordConfirmation": PASSWORD,
    }
    response = client.post("/auth/register/admin", json=payload)
    assert response.status_code == 403
    assert response.json()["detail"]["code"] == "registration_closed"


def test_login_wrong_password(client: TestClient, factory):
    reader = factory.reader()
    email = reader.body["user"]["email"]

    response = client.post("/auth/login/reader", json={"email": email, "password": "WrongPass1!"})
    assert response.status_code == 401
    assert response.json()["detail"]["code"] == "invalid_credentials"


def test_login_is_scoped_to_principal_type(client: TestClient, factory):
    reader = factory.reader()
    email = reader.body["user"]["email"]

    as_volunteer = client.post("/auth/login/volunteer", json={"email": email, "password": PASSWORD})
    assert as_volunteer.status_code == 401

    as_reader = client.post("/auth/login/reader", json={"email": email, "password": PASSWORD})
    assert as_reader.status_code == 200
    assert as_reader.json()["user"]["id"] == reader.id


def test_me_requires_token(client: TestClient):
    response = client.get("/auth/me")
    assert response.status_code == 401
    assert response.json()["detail"]["code"] == "not_authenticated"


def test_me_rejects_garbage_token(client: TestClient):
    response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["detail"]["code"] == "invalid_token"


def test_me_returns_principal(client: TestClient, factory):
    volunteer = factory.volunteer()

    response = client.get("/auth/me", headers=volunteer.headers)
    assert response.status_code == 200
    body = response.json()
    assert body["id"] == volunteer.id
    assert body["role"] == "volunteer"
    assert body["isAvailable"] is True


def test_logout_revokes_token(client: TestClient, factory):
    admin = factory.admin()

    response = client.post("/auth/logout", headers=admin.headers)
    assert response.status_code == 204

    after = client.get("/auth/me", headers=admin.headers)
    assert after.status_code == 401
    assert after.json()["detail"]["code"] == "invalid_session"


def test_logout_keeps_other_tokens_alive(client: TestClient, factory):
    reader = factory.reader()
    email = reader.body["user"]["email"]
    second = client.post("/auth/login/reader", json={"email": email, "password": PASSWORD}).json()["token"]

    assert client.post("/auth/logout", headers=reader.headers).status_code == 204

    still_valid = client.get("/auth/me", headers={"Authorization": f"Bearer {second}"})
    assert still_valid.status_code == 200

from __future__ import annotations

from fastapi.testclient import TestClient


def test_available_volunteers_in_hall(client: TestClient, factory):
    hall_id = factory.hall()
    on_duty = factory.volunteer(hall_id=hall_id, roomNo=214)
    away = factory.volunteer(hall_id=hall_id)
    factory.volunteer()
    reader = factory.reader(hall_id=hall_id)

    client.patch("/volunteers/me/availability", headers=away.headers)

    response = client.get("/volunteers", params={"hall_id": hall_id}, headers=reader.headers)
    assert response.status_code == 200
    listed = response.json()
    assert [item["id"] for item in listed] == [on_duty.id]
    assert listed[0]["roomNo"] == 214
    assert "passwordHash" not in listed[0]


def test_available_volunteers_requires_known_hall(client: TestClient, factory):
    reader = factory.reader()

    assert client.get("/volunteers", params={"hall_id": "missing"}, headers=reader.headers).status_code == 404
    assert client.get("/volunteers", params={"hall_id": "missing"}).status_code == 401


def test_toggle_availability(client: TestClient, factory):
    volunteer = factory.volunteer()
    reader = factory.reader()

    first = client.patch("/volunteers/me/availability", headers=volunteer.headers)
    assert first.status_code == 200
    assert first.json()["isAvailable"] is False

    second = client.patch("/volunteers/me/availability", headers=volunteer.headers)
    assert second.json()["isAvailable"] is True

    assert client.patch("/volunteers/me/availability", headers=reader.headers).status_code == 403


def test_verify_volunteer(client: TestClient, factory):
    admin = factory.admin()
    volunteer = factory.volunteer()

    pending = client.get("/volunteers/unverified", headers=admin.headers).json()
    assert [item["id"] for item in pending] == [volunteer.id]

    verified = client.patch(f"/volunteers/{volunteer.id}/verify", headers=admin.headers)
    assert verified.status_code == 200
    assert verified.json()["isVerified"] is True

    again = client.patch(f"/volunteers/{volunteer.id}/verify", headers=admin.headers)
    assert again.status_code == 400
    assert again.json()["detail"]["code"] == "already_verified"

    assert client.get("/volunteers/unverified", headers=admin.headers).json() == []


def test_vetting_is_admin_only(client: TestClient, factory):
    volunteer = factory.volunteer()

    assert client.get("/volunteers/unverified", headers=volunteer.headers).status_code == 403
    assert client.patch(f"/volunteers/{volunteer.id}/verify", headers=volunteer.headers).status_code == 403


def test_delete_volunteer_revokes_tokens(client: TestClient, factory):
    admin = factory.admin()
    volunteer = factory.volunteer()

    response = client.delete(f"/volunteers/{volunteer.id}", headers=admin.headers)
    assert response.status_code == 204

    me = client.get("/auth/me", headers=volunteer.headers)
    assert me.status_code == 401

    assert client.delete(f"/volunteers/{volunteer.id}", headers=admin.headers).status_code == 404

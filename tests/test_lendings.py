from __future__ import annotations

from datetime import date

from fastapi.testclient import TestClient
from sqlalchemy import update

from campus_library.models import BookCollection


def _open_lending(client: TestClient, factory, copies: int = 2):
    hall_id = factory.hall()
    book_id = factory.book(title="Gitanjali")
    factory.collection(book_id, hall_id, total=copies)
    reader = factory.reader(hall_id=hall_id)
    volunteer = factory.volunteer(hall_id=hall_id)

    request_id = client.post(
        "/requests",
        json={"bookId": book_id, "hallId": hall_id},
        headers=reader.headers,
    ).json()["id"]
    fulfilled = client.patch(f"/requests/{request_id}/fulfill", headers=volunteer.headers).json()
    return {
        "book_id": book_id,
        "hall_id": hall_id,
        "reader": reader,
        "volunteer": volunteer,
        "request_id": request_id,
        "lending_id": fulfilled["lending"]["id"],
    }


def test_return_restores_copy_and_awards_points(client: TestClient, factory):
    ctx = _open_lending(client, factory)
    assert factory.copies(ctx["book_id"], ctx["hall_id"]) == (1, 2)

    response = client.patch(f"/lendings/{ctx['lending_id']}/return", headers=ctx["volunteer"].headers)
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "returned"
    assert body["returnDate"] == date.today().isoformat()

    assert factory.copies(ctx["book_id"], ctx["hall_id"]) == (2, 2)

    me = client.get("/auth/me", headers=ctx["reader"].headers).json()
    assert me["totalPoints"] == 10 + 10

    history = client.get("/readers/me/points", headers=ctx["reader"].headers).json()
    activities = sorted(entry["activityType"] for entry in history)
    assert activities == ["book_return", "reader_registration"]


def test_return_never_exceeds_total(client: TestClient, factory, session_factory):
    ctx = _open_lending(client, factory, copies=1)

    # Someone restocked the shelf by hand while the copy was out.
    with session_factory() as db:
        db.execute(update(BookCollection).values(available_copies=BookCollection.total_copies))
        db.commit()

    response = client.patch(f"/lendings/{ctx['lending_id']}/return", headers=ctx["volunteer"].headers)
    assert response.status_code == 200
    assert factory.copies(ctx["book_id"], ctx["hall_id"]) == (1, 1)


def test_returned_lending_is_terminal(client: TestClient, factory):
    ctx = _open_lending(client, factory)
    headers = ctx["volunteer"].headers
    client.patch(f"/lendings/{ctx['lending_id']}/return", headers=headers)

    assert client.patch(f"/lendings/{ctx['lending_id']}/return", headers=headers).status_code == 400
    assert client.patch(f"/lendings/{ctx['lending_id']}/lost", headers=headers).status_code == 400
    assert factory.copies(ctx["book_id"], ctx["hall_id"]) == (2, 2)


def test_mark_lost_retires_the_copy(client: TestClient, factory):
    ctx = _open_lending(client, factory, copies=2)

    response = client.patch(f"/lendings/{ctx['lending_id']}/lost", headers=ctx["volunteer"].headers)
    assert response.status_code == 200
    assert response.json()["status"] == "lost"
    assert factory.copies(ctx["book_id"], ctx["hall_id"]) == (1, 1)

    again = client.patch(f"/lendings/{ctx['lending_id']}/return", headers=ctx["volunteer"].headers)
    assert again.status_code == 400


def test_delete_pending_lending_reopens_request(client: TestClient, factory):
    ctx = _open_lending(client, factory)

    response = client.delete(f"/lendings/{ctx['lending_id']}", headers=ctx["volunteer"].headers)
    assert response.status_code == 204
    assert factory.copies(ctx["book_id"], ctx["hall_id"]) == (2, 2)

    request = client.get(f"/requests/{ctx['request_id']}", headers=ctx["reader"].headers).json()
    assert request["status"] == "pending"
    assert request["lendingId"] is None

    assert client.get(f"/lendings/{ctx['lending_id']}", headers=ctx["volunteer"].headers).status_code == 404


def test_delete_lost_lending_reinstates_the_copy(client: TestClient, factory):
    ctx = _open_lending(client, factory, copies=1)
    headers = ctx["volunteer"].headers

    client.patch(f"/lendings/{ctx['lending_id']}/lost", headers=headers)
    assert factory.copies(ctx["book_id"], ctx["hall_id"]) == (0, 0)

    response = client.delete(f"/lendings/{ctx['lending_id']}", headers=headers)
    assert response.status_code == 204
    assert factory.copies(ctx["book_id"], ctx["hall_id"]) == (1, 1)

    request = client.get(f"/requests/{ctx['request_id']}", headers=ctx["reader"].headers).json()
    assert request["status"] == "pending"


def test_delete_returned_lending_keeps_inventory(client: TestClient, factory):
    ctx = _open_lending(client, factory)
    client.patch(f"/lendings/{ctx['lending_id']}/return", headers=ctx["volunteer"].headers)

    response = client.delete(f"/lendings/{ctx['lending_id']}", headers=ctx["volunteer"].headers)
    assert response.status_code == 204
    assert factory.copies(ctx["book_id"], ctx["hall_id"]) == (2, 2)


def test_lending_actions_require_staff(client: TestClient, factory):
    ctx = _open_lending(client, factory)
    reader_headers = ctx["reader"].headers

    assert client.patch(f"/lendings/{ctx['lending_id']}/return", headers=reader_headers).status_code == 403
    assert client.patch(f"/lendings/{ctx['lending_id']}/lost", headers=reader_headers).status_code == 403
    assert client.delete(f"/lendings/{ctx['lending_id']}", headers=reader_headers).status_code == 403
    assert client.get("/lendings", headers=reader_headers).status_code == 403


def test_admin_can_return_books(client: TestClient, factory):
    ctx = _open_lending(client, factory)
    admin = factory.admin()

    response = client.patch(f"/lendings/{ctx['lending_id']}/return", headers=admin.headers)
    assert response.status_code == 200


def test_list_defaults_to_volunteer_hall(client: TestClient, factory):
    ctx = _open_lending(client, factory)
    elsewhere = factory.volunteer()
    admin = factory.admin()

    own_hall = client.get("/lendings", headers=ctx["volunteer"].headers).json()
    assert [item["id"] for item in own_hall] == [ctx["lending_id"]]
    assert own_hall[0]["request"]["book"]["title"] == "Gitanjali"

    assert client.get("/lendings", headers=elsewhere.headers).json() == []
    explicit = client.get("/lendings", params={"hall_id": ctx["hall_id"]}, headers=elsewhere.headers).json()
    assert len(explicit) == 1

    assert len(client.get("/lendings", headers=admin.headers).json()) == 1

    client.patch(f"/lendings/{ctx['lending_id']}/return", headers=admin.headers)
    assert client.get("/lendings", headers=ctx["volunteer"].headers).json() == []
    returned = client.get("/lendings", params={"status": "returned"}, headers=ctx["volunteer"].headers).json()
    assert len(returned) == 1


def test_reader_sees_only_own_lendings(client: TestClient, factory):
    ctx = _open_lending(client, factory)
    stranger = factory.reader()

    assert client.get(f"/lendings/{ctx['lending_id']}", headers=ctx["reader"].headers).status_code == 200
    assert client.get(f"/lendings/{ctx['lending_id']}", headers=stranger.headers).status_code == 403

    mine = client.get("/lendings/mine", headers=ctx["reader"].headers).json()
    assert [item["id"] for item in mine] == [ctx["lending_id"]]
    assert client.get("/lendings/mine", headers=stranger.headers).json() == []

from __future__ import annotations

from fastapi.testclient import TestClient


def test_review_awards_points_once_and_blocks_duplicates(client: TestClient, factory):
    reader = factory.reader()
    book_id = factory.book()

    created = client.post("/reviews", json={"bookId": book_id, "rating": 4, "comment": "Lovely"}, headers=reader.headers)
    assert created.status_code == 201
    assert created.json()["rating"] == 4

    duplicate = client.post("/reviews", json={"bookId": book_id, "rating": 2}, headers=reader.headers)
    assert duplicate.status_code == 409

    me = client.get("/auth/me", headers=reader.headers).json()
    assert me["totalPoints"] == 10 + 25


def test_review_validation(client: TestClient, factory):
    reader = factory.reader()
    book_id = factory.book()

    out_of_range = client.post("/reviews", json={"bookId": book_id, "rating": 6}, headers=reader.headers)
    assert out_of_range.status_code == 422
    assert "rating" in out_of_range.json()["detail"]["errors"]

    unknown_book = client.post("/reviews", json={"bookId": "missing", "rating": 3}, headers=reader.headers)
    assert unknown_book.status_code == 404


def test_only_readers_write_reviews(client: TestClient, factory):
    volunteer = factory.volunteer()
    book_id = factory.book()

    response = client.post("/reviews", json={"bookId": book_id, "rating": 3}, headers=volunteer.headers)
    assert response.status_code == 403


def test_review_update_and_delete_permissions(client: TestClient, factory):
    owner = factory.reader()
    stranger = factory.reader()
    admin = factory.admin()
    book_id = factory.book()
    review_id = client.post("/reviews", json={"bookId": book_id, "rating": 3}, headers=owner.headers).json()["id"]

    assert client.patch(f"/reviews/{review_id}", json={"rating": 1}, headers=stranger.headers).status_code == 403

    updated = client.patch(f"/reviews/{review_id}", json={"rating": 5, "comment": "Grew on me"}, headers=owner.headers)
    assert updated.status_code == 200
    assert updated.json()["rating"] == 5
    assert updated.json()["comment"] == "Grew on me"

    assert client.delete(f"/reviews/{review_id}", headers=stranger.headers).status_code == 403
    assert client.delete(f"/reviews/{review_id}", headers=admin.headers).status_code == 204
    assert client.get(f"/reviews/{review_id}").status_code == 404

    # Points already earned stay on the ledger.
    history = client.get("/readers/me/points", headers=owner.headers).json()
    assert "book_review" in {entry["activityType"] for entry in history}


def test_list_reviews_by_book(client: TestClient, factory):
    first_book = factory.book()
    second_book = factory.book()
    reader = factory.reader()
    client.post("/reviews", json={"bookId": first_book, "rating": 4}, headers=reader.headers)
    client.post("/reviews", json={"bookId": second_book, "rating": 2}, headers=reader.headers)

    assert len(client.get("/reviews").json()) == 2
    only_first = client.get("/reviews", params={"book_id": first_book}).json()
    assert [item["bookId"] for item in only_first] == [first_book]


def test_wishlist_add_is_idempotent(client: TestClient, factory):
    reader = factory.reader()
    book_id = factory.book(title="Kapalkundala")

    first = client.post("/wishlist", json={"bookId": book_id}, headers=reader.headers)
    assert first.status_code == 201
    assert first.json()["book"]["title"] == "Kapalkundala"

    second = client.post("/wishlist", json={"bookId": book_id}, headers=reader.headers)
    assert second.status_code == 200
    assert second.json()["id"] == first.json()["id"]

    listed = client.get("/wishlist", headers=reader.headers).json()
    assert len(listed) == 1


def test_wishlist_remove(client: TestClient, factory):
    reader = factory.reader()
    other = factory.reader()
    book_id = factory.book()
    client.post("/wishlist", json={"bookId": book_id}, headers=reader.headers)

    assert client.delete(f"/wishlist/{book_id}", headers=other.headers).status_code == 404
    assert client.delete(f"/wishlist/{book_id}", headers=reader.headers).status_code == 204
    assert client.delete(f"/wishlist/{book_id}", headers=reader.headers).status_code == 404
    assert client.get("/wishlist", headers=reader.headers).json() == []


def test_wishlist_unknown_book(client: TestClient, factory):
    reader = factory.reader()
    response = client.post("/wishlist", json={"bookId": "missing"}, headers=reader.headers)
    assert response.status_code == 404

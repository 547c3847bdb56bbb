from __future__ import annotations

import io
from pathlib import Path

from fastapi.testclient import TestClient
from sqlalchemy import func, select

from campus_library.models import BookCollection, Request, Wishlist

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _create_book(client: TestClient, headers: dict, **fields):
    data = {"title": "Debi", **fields}
    return client.post("/books", data=data, headers=headers)


def test_create_book_with_names_reuses_existing_rows(client: TestClient, factory):
    admin = factory.admin()

    first = _create_book(client, admin.headers, title="Debi", author_name="Humayun Ahmed", category_name="Mystery")
    assert first.status_code == 201, first.text
    body = first.json()
    assert body["author"]["name"] == "Humayun Ahmed"
    assert body["category"]["name"] == "Mystery"
    assert body["imageUrl"] is None

    second = _create_book(client, admin.headers, title="Nishithini", author_name="humayun ahmed")
    assert second.status_code == 201
    assert second.json()["authorId"] == body["authorId"]

    authors = client.get("/authors").json()
    assert len(authors) == 1


def test_create_book_with_unknown_author_id(client: TestClient, factory):
    volunteer = factory.volunteer()

    response = _create_book(client, volunteer.headers, author_id="missing")
    assert response.status_code == 422
    assert "author_id" in response.json()["detail"]["errors"]


def test_create_book_requires_title(client: TestClient, factory):
    admin = factory.admin()

    response = client.post("/books", data={"description": "untitled"}, headers=admin.headers)
    assert response.status_code == 422
    assert "title" in response.json()["detail"]["errors"]


def test_create_book_requires_staff(client: TestClient, factory):
    reader = factory.reader()

    assert _create_book(client, reader.headers).status_code == 403
    assert client.post("/books", data={"title": "Anon"}).status_code == 401


def test_create_book_stores_cover(client: TestClient, factory, app_settings):
    admin = factory.admin()

    response = client.post(
        "/books",
        data={"title": "Lalsalu"},
        files={"image": ("cover.png", io.BytesIO(PNG_BYTES), "image/png")},
        headers=admin.headers,
    )
    assert response.status_code == 201, response.text
    image_url = response.json()["imageUrl"]
    assert image_url.startswith("/storage/book_covers/")
    assert image_url.endswith(".png")

    stored = Path(app_settings.cover_storage_dir) / image_url.rsplit("/", 1)[-1]
    assert stored.read_bytes() == PNG_BYTES


def test_create_book_rejects_non_image(client: TestClient, factory):
    admin = factory.admin()

    response = client.post(
        "/books",
        data={"title": "Lalsalu"},
        files={"image": ("notes.txt", io.BytesIO(b"hello"), "text/plain")},
        headers=admin.headers,
    )
    assert response.status_code == 422
    assert "image" in response.json()["detail"]["errors"]


def test_create_book_rejects_oversized_image(client: TestClient, factory, app_settings):
    admin = factory.admin()
    too_big = b"\x89PNG" + b"\x00" * app_settings.cover_max_bytes

    response = client.post(
        "/books",
        data={"title": "Lalsalu"},
        files={"image": ("cover.png", io.BytesIO(too_big), "image/png")},
        headers=admin.headers,
    )
    assert response.status_code == 422


def test_update_book_replaces_and_clears_cover(client: TestClient, factory, app_settings):
    admin = factory.admin()
    created = client.post(
        "/books",
        data={"title": "Padma Nadir Majhi"},
        files={"image": ("cover.png", io.BytesIO(PNG_BYTES), "image/png")},
        headers=admin.headers,
    ).json()
    old_file = Path(app_settings.cover_storage_dir) / created["imageUrl"].rsplit("/", 1)[-1]

    renamed = client.patch(
        f"/books/{created['id']}",
        data={"title": "Padma River Boatman", "publisher_name": "Muktadhara"},
        headers=admin.headers,
    )
    assert renamed.status_code == 200
    assert renamed.json()["title"] == "Padma River Boatman"
    assert renamed.json()["publisher"]["name"] == "Muktadhara"
    assert renamed.json()["imageUrl"] == created["imageUrl"]

    cleared = client.patch(f"/books/{created['id']}", data={"clear_image": "true"}, headers=admin.headers)
    assert cleared.status_code == 200
    assert cleared.json()["imageUrl"] is None
    assert not old_file.exists()


def test_update_book_switches_author(client: TestClient, factory):
    admin = factory.admin()
    created = _create_book(client, admin.headers, title="Srikanta", author_name="Rabindranath Tagore").json()

    response = client.patch(
        f"/books/{created['id']}",
        data={"author_name": "Sarat Chandra Chattopadhyay"},
        headers=admin.headers,
    )
    assert response.status_code == 200
    assert response.json()["author"]["name"] == "Sarat Chandra Chattopadhyay"
    assert response.json()["authorId"] != created["authorId"]


def test_delete_book_is_admin_only(client: TestClient, factory, session_factory):
    volunteer = factory.volunteer()
    admin = factory.admin()
    hall_id = factory.hall()
    book_id = factory.book()
    factory.collection(book_id, hall_id, total=2)
    reader = factory.reader(hall_id=hall_id)
    client.post("/requests", json={"bookId": book_id, "hallId": hall_id}, headers=reader.headers)
    client.post("/wishlist", json={"bookId": book_id}, headers=reader.headers)

    assert client.delete(f"/books/{book_id}", headers=volunteer.headers).status_code == 403
    assert client.delete(f"/books/{book_id}", headers=admin.headers).status_code == 204
    assert client.get(f"/books/{book_id}").status_code == 404

    with session_factory() as db:
        for model in (BookCollection, Request, Wishlist):
            remaining = db.execute(
                select(func.count()).select_from(model).where(model.book_id == book_id)
            ).scalar_one()
            assert remaining == 0, model.__name__


def test_list_books_envelope_and_filters(client: TestClient, factory):
    hall_a = factory.hall()
    hall_b = factory.hall()
    dune = factory.book(title="Dune", author="Frank Herbert")
    emma = factory.book(title="Emma", author="Jane Austen")
    factory.book(title="Persuasion", author="Jane Austen")
    factory.collection(dune, hall_a, total=2)
    factory.collection(emma, hall_b, total=1, available=0)

    response = client.get("/books", params={"per_page": 2})
    assert response.status_code == 200
    body = response.json()
    assert body["meta"] == {"currentPage": 1, "perPage": 2, "total": 3, "lastPage": 2}
    assert len(body["data"]) == 2

    by_author = client.get("/books", params={"search": "austen"}).json()
    assert {item["title"] for item in by_author["data"]} == {"Emma", "Persuasion"}

    in_hall = client.get("/books", params={"hall_id": hall_a}).json()
    assert [item["title"] for item in in_hall["data"]] == ["Dune"]
    assert in_hall["data"][0]["totalAvailableCopies"] == 2
    assert in_hall["data"][0]["availableStatus"] is True

    # A hall whose copies are all out does not list the book.
    assert client.get("/books", params={"hall_id": hall_b}).json()["data"] == []


def test_list_books_sorting(client: TestClient, factory):
    hall_id = factory.hall()
    popular = factory.book(title="Aranyak")
    quiet = factory.book(title="Chander Pahar")
    factory.collection(popular, hall_id, total=5)
    factory.collection(quiet, hall_id, total=5)

    for _ in range(2):
        reader = factory.reader()
        client.post("/requests", json={"bookId": popular, "hallId": hall_id}, headers=reader.headers)
        client.post("/reviews", json={"bookId": quiet, "rating": 5}, headers=reader.headers)

    best_reads = client.get("/books", params={"sort_by": "best_reads"}).json()["data"]
    assert best_reads[0]["id"] == popular
    assert best_reads[0]["requestCount"] == 2

    top_rated = client.get("/books", params={"sort_by": "top_rated"}).json()["data"]
    assert top_rated[0]["id"] == quiet
    assert top_rated[0]["rating"] == 5.0
    assert top_rated[0]["ratingCount"] == 2

    ascending = client.get("/books", params={"sort_by": "top_rated", "sort_order": "asc"}).json()["data"]
    assert ascending[0]["id"] == popular

    bad = client.get("/books", params={"sort_by": "alphabetical"})
    assert bad.status_code == 422


def test_search_suggestions(client: TestClient, factory):
    factory.book(title="The Hungry Tide", author="Amitav Ghosh")
    factory.book(title="Tide of Iron")
    factory.book(title="Sea of Poppies")

    too_short = client.get("/books/search", params={"title": "ti"})
    assert too_short.status_code == 422

    response = client.get("/books/search", params={"title": "tide"})
    assert response.status_code == 200
    titles = [item["title"] for item in response.json()]
    assert titles == ["The Hungry Tide", "Tide of Iron"]
    assert response.json()[0]["authorName"] == "Amitav Ghosh"


def test_book_detail(client: TestClient, factory):
    hall_id = factory.hall(name="Rokeya Hall")
    book_id = factory.book(title="Sultana's Dream", author="Begum Rokeya")
    factory.collection(book_id, hall_id, total=3)
    reader = factory.reader()
    client.post("/reviews", json={"bookId": book_id, "rating": 4, "comment": "Visionary"}, headers=reader.headers)

    response = client.get(f"/books/{book_id}")
    assert response.status_code == 200
    body = response.json()
    assert body["author"] == "Begum Rokeya"
    assert body["publisher"] == "Unknown"
    assert body["availability"] is True
    assert body["averageRating"] == 4.0
    assert body["ratingCount"] == 1
    assert body["reviews"][0]["comment"] == "Visionary"
    assert body["halls"] == [
        {"hallId": hall_id, "hallName": "Rokeya Hall", "availableCopies": 3, "totalCopies": 3}
    ]


def test_collections_upsert_moves_available_by_delta(client: TestClient, factory):
    volunteer = factory.volunteer()
    hall_a = factory.hall()
    hall_b = factory.hall()
    book_id = factory.book()
    factory.collection(book_id, hall_a, total=3, available=1)

    response = client.put(
        f"/books/{book_id}/collections",
        json={"collections": [{"hallId": hall_a, "totalCopies": 5}, {"hallId": hall_b, "totalCopies": 2}]},
        headers=volunteer.headers,
    )
    assert response.status_code == 200, response.text
    assert factory.copies(book_id, hall_a) == (3, 5)
    assert factory.copies(book_id, hall_b) == (2, 2)

    listed = client.get(f"/books/{book_id}/collections", headers=volunteer.headers).json()
    assert len(listed) == 2


def test_collections_upsert_cannot_drop_below_copies_on_loan(client: TestClient, factory):
    volunteer = factory.volunteer()
    hall_id = factory.hall()
    book_id = factory.book()
    factory.collection(book_id, hall_id, total=3, available=1)

    response = client.put(
        f"/books/{book_id}/collections",
        json={"collections": [{"hallId": hall_id, "totalCopies": 1}]},
        headers=volunteer.headers,
    )
    assert response.status_code == 422
    assert factory.copies(book_id, hall_id) == (1, 3)


def test_collections_upsert_rejects_repeated_hall(client: TestClient, factory):
    volunteer = factory.volunteer()
    hall_id = factory.hall()
    book_id = factory.book()

    response = client.put(
        f"/books/{book_id}/collections",
        json={"collections": [{"hallId": hall_id, "totalCopies": 1}, {"hallId": hall_id, "totalCopies": 2}]},
        headers=volunteer.headers,
    )
    assert response.status_code == 422


def test_collection_direct_edit_is_validated(client: TestClient, factory):
    admin = factory.admin()
    hall_id = factory.hall()
    book_id = factory.book()
    collection_id = factory.collection(book_id, hall_id, total=2)

    invalid = client.patch(f"/collections/{collection_id}", json={"availableCopies": 3}, headers=admin.headers)
    assert invalid.status_code == 422

    valid = client.patch(
        f"/collections/{collection_id}",
        json={"totalCopies": 4, "availableCopies": 3},
        headers=admin.headers,
    )
    assert valid.status_code == 200
    assert valid.json()["availableCopies"] == 3

    assert client.delete(f"/collections/{collection_id}", headers=admin.headers).status_code == 204
    assert client.get(f"/books/{book_id}/collections", headers=admin.headers).json() == []

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select

from campus_library.models import Activity, PointHistory, PointSystem, Reader
from campus_library.services.point_service import PointRuleMissingError, PointService, seed_point_rules


def test_rules_are_seeded_once(session_factory):
    with session_factory() as db:
        assert seed_point_rules(db) == 0
        assert db.execute(select(func.count()).select_from(PointSystem)).scalar_one() == 7


def test_list_rules_endpoint(client: TestClient):
    response = client.get("/points/rules")
    assert response.status_code == 200
    rules = {rule["activityType"]: rule["points"] for rule in response.json()}
    assert rules["reader_registration"] == 10
    assert rules["book_return"] == 10
    assert rules["book_review"] == 25
    assert rules["delayed_return"] == -5


def test_award_uses_configured_points(client: TestClient, factory, session_factory):
    reader = factory.reader()

    with session_factory() as db:
        db.get(PointSystem, Activity.BOOK_REVIEW.value).points = 40
        db.commit()

        row = db.get(Reader, reader.id)
        PointService(db).award(row, Activity.BOOK_REVIEW)
        db.commit()

        assert db.get(Reader, reader.id).total_points == 50
        entries = db.execute(select(PointHistory).where(PointHistory.reader_id == reader.id)).scalars().all()
        assert sorted(entry.points for entry in entries) == [10, 40]


def test_missing_rule_raises(client: TestClient, factory, session_factory):
    reader = factory.reader()

    with session_factory() as db:
        db.delete(db.get(PointSystem, Activity.EVENT_PARTICIPATION.value))
        db.commit()

        with pytest.raises(PointRuleMissingError):
            PointService(db).award(db.get(Reader, reader.id), Activity.EVENT_PARTICIPATION)


def test_registration_points_recorded_once(client: TestClient, factory, session_factory):
    reader = factory.reader()

    with session_factory() as db:
        entries = (
            db.execute(
                select(PointHistory).where(
                    PointHistory.reader_id == reader.id,
                    PointHistory.activity_type == Activity.READER_REGISTRATION.value,
                )
            )
            .scalars()
            .all()
        )
    assert len(entries) == 1
    assert entries[0].points == 10


def test_dashboard_summarises_reader_activity(client: TestClient, factory):
    hall_id = factory.hall()
    first = factory.book()
    second = factory.book()
    factory.collection(first, hall_id, total=1)
    factory.collection(second, hall_id, total=1)
    reader = factory.reader(hall_id=hall_id)
    volunteer = factory.volunteer(hall_id=hall_id)

    lent = client.post("/requests", json={"bookId": first, "hallId": hall_id}, headers=reader.headers).json()["id"]
    client.post("/requests", json={"bookId": second, "hallId": hall_id}, headers=reader.headers)
    client.patch(f"/requests/{lent}/fulfill", headers=volunteer.headers)
    client.post("/wishlist", json={"bookId": second}, headers=reader.headers)
    client.post("/reviews", json={"bookId": first, "rating": 5}, headers=reader.headers)

    response = client.get("/readers/me/dashboard", headers=reader.headers)
    assert response.status_code == 200
    body = response.json()
    assert body["totalPoints"] == 10 + 25
    assert len(body["pendingRequests"]) == 1
    assert len(body["activeLendings"]) == 1
    assert body["booksRead"] == 0
    assert body["reviewsWritten"] == 1
    assert body["wishlistCount"] == 1
    assert len(body["recentPoints"]) == 2

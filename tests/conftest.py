from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from dataclasses import dataclass
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from campus_library.core.settings import AppSettings, get_app_settings
from campus_library.db.session import enable_sqlite_foreign_keys, get_session
from campus_library.main import app
from campus_library.models import Author, Base, Book, BookCollection, Department, Hall
from campus_library.security.jwt import JWTSettings, get_jwt_settings
from campus_library.services.point_service import seed_point_rules

PASSWORD = "Str0ngPassword!"


@pytest.fixture(scope="session")
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    enable_sqlite_foreign_keys(engine)
    return engine


@pytest.fixture()
def session_factory(engine):
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    with TestingSessionLocal() as db:
        seed_point_rules(db)
    return TestingSessionLocal


@pytest.fixture()
def app_settings(tmp_path) -> AppSettings:
    return AppSettings(
        admin_registration_enabled=True,
        default_loan_days=14,
        cover_storage_dir=str(tmp_path / "covers"),
        cover_url_prefix="/storage/book_covers",
        cover_max_bytes=1024,
    )


@pytest.fixture()
def client(session_factory, app_settings):
    def _override_get_session() -> Session:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_session] = _override_get_session
    app.dependency_overrides[get_app_settings] = lambda: app_settings
    app.dependency_overrides[get_jwt_settings] = lambda: JWTSettings(secret_key="test-secret", issuer="campus-library")

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@dataclass
class Account:
    id: str
    token: str
    body: dict

    @property
    def headers(self) -> dict[str, str]:
        return auth(self.token)


class LibraryFactory:
    """Builds rows straight in the database and accounts through the API."""

    def __init__(self, session_factory, client: TestClient) -> None:
        self.session_factory = session_factory
        self.client = client
        self._counter = 0

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    def _add(self, entity):
        with self.session_factory() as db:
            db.add(entity)
            db.commit()
            return entity.id

    def hall(self, name: Optional[str] = None) -> str:
        return self._add(Hall(name=name or f"Hall {self._next()}"))

    def department(self, name: Optional[str] = None) -> str:
        return self._add(Department(name=name or f"Department {self._next()}"))

    def book(self, title: Optional[str] = None, author: Optional[str] = None) -> str:
        with self.session_factory() as db:
            book = Book(title=title or f"Book {self._next()}")
            if author:
                book.author = Author(name=author)
            db.add(book)
            db.commit()
            return book.id

    def collection(self, book_id: str, hall_id: str, total: int, available: Optional[int] = None) -> str:
        return self._add(
            BookCollection(
                book_id=book_id,
                hall_id=hall_id,
                total_copies=total,
                available_copies=total if available is None else available,
            )
        )

    def copies(self, book_id: str, hall_id: str) -> tuple[int, int]:
        """Return (available, total) for a book in a hall."""
        with self.session_factory() as db:
            collection = db.execute(
                select(BookCollection).where(
                    BookCollection.book_id == book_id,
                    BookCollection.hall_id == hall_id,
                )
            ).scalar_one()
            return collection.available_copies, collection.total_copies

    def _register(self, role: str, payload: dict) -> Account:
        n = self._next()
        body = {
            "name": f"{role.title()} {n}",
            "email": f"{role}{n}@campuslib.edu",
            "password": PASSWORD,
            "passwordConfirmation": PASSWORD,
            **payload,
        }
        response = self.client.post(f"/auth/register/{role}", json=body)
        assert response.status_code == 201, response.text
        data = response.json()
        return Account(id=data["user"]["id"], token=data["token"], body=data)

    def reader(self, hall_id: Optional[str] = None, dept_id: Optional[str] = None, **extra) -> Account:
        return self._register(
            "reader",
            {"hallId": hall_id or self.hall(), "deptId": dept_id or self.department(), **extra},
        )

    def volunteer(self, hall_id: Optional[str] = None, dept_id: Optional[str] = None, **extra) -> Account:
        return self._register(
            "volunteer",
            {"hallId": hall_id or self.hall(), "deptId": dept_id or self.department(), **extra},
        )

    def admin(self, **extra) -> Account:
        return self._register("admin", extra)


@pytest.fixture()
def factory(session_factory, client) -> LibraryFactory:
    return LibraryFactory(session_factory, client)

from __future__ import annotations

import logging
from typing import Literal, Optional

from fastapi import Depends, HTTPException, UploadFile, status
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from campus_library.core.errors import validation_error
from campus_library.crud.catalog import get_or_create_by_name
from campus_library.db.session import get_session
from campus_library.models.catalog import Author, Book, BookCollection, Category, Hall, NamedEntityMixin, Publisher
from campus_library.models.circulation import Request
from campus_library.models.engagement import Review
from campus_library.models.principal import Reader
from campus_library.schemas.catalog import (
    BookCreate,
    BookDetail,
    BookListItem,
    BookReviewItem,
    BookSuggestion,
    BookUpdate,
    HallAvailability,
)
from campus_library.schemas.common import Page, PageMeta
from campus_library.services.storage import CoverStorage, get_cover_storage

logger = logging.getLogger(__name__)

SortBy = Literal["recently_added", "top_rated", "best_reads"]
SortOrder = Literal["asc", "desc"]

SUGGESTION_LIMIT = 10
UNKNOWN = "Unknown"


class BookService:
    """Business logic layer for the book catalogue."""

    def __init__(self, db: Session, storage: CoverStorage):
        self.db = db
        self.storage = storage

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def get_book_by_id(self, book_id: str) -> Book:
        book = (
            self.db.query(Book)
            .options(joinedload(Book.author), joinedload(Book.publisher), joinedload(Book.category))
            .filter(Book.id == book_id)
            .populate_existing()
            .first()
        )
        if not book:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Book not found.",
            )
        return book

    def _resolve(
        self,
        model: type[NamedEntityMixin],
        field: str,
        entity_id: Optional[str],
        name: Optional[str],
    ) -> Optional[str]:
        """Turn an ``<field>_id`` / ``<field>_name`` pair into a row id."""
        if entity_id:
            if self.db.get(model, entity_id) is None:
                raise validation_error(**{f"{field}_id": f"The selected {field} id is invalid."})
            return entity_id
        if name:
            return get_or_create_by_name(model, name, self.db).id
        return None

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Unable to process the book with the provided data.",
            ) from exc

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #
    def list_books(
        self,
        *,
        page: int = 1,
        per_page: int = 10,
        search: Optional[str] = None,
        hall_id: Optional[str] = None,
        category_id: Optional[str] = None,
        author_id: Optional[str] = None,
        sort_by: SortBy = "recently_added",
        sort_order: SortOrder = "desc",
    ) -> Page[BookListItem]:
        ratings = (
            select(
                Review.book_id.label("book_id"),
                func.avg(Review.rating).label("average_rating"),
                func.count(Review.id).label("rating_count"),
            )
            .group_by(Review.book_id)
            .subquery()
        )
        requests = (
            select(Request.book_id.label("book_id"), func.count(Request.id).label("request_count"))
            .group_by(Request.book_id)
            .subquery()
        )
        copies = (
            select(
                BookCollection.book_id.label("book_id"),
                func.sum(BookCollection.available_copies).label("available"),
            )
            .group_by(BookCollection.book_id)
            .subquery()
        )

        average_rating = func.coalesce(ratings.c.average_rating, 0)
        rating_count = func.coalesce(ratings.c.rating_count, 0)
        request_count = func.coalesce(requests.c.request_count, 0)
        available = func.coalesce(copies.c.available, 0)

        stmt = (
            select(
                Book,
                Author.name.label("author_name"),
                Category.name.label("category_name"),
                average_rating.label("average_rating"),
                rating_count.label("rating_count"),
                request_count.label("request_count"),
                available.label("available"),
            )
            .outerjoin(Author, Book.author_id == Author.id)
            .outerjoin(Category, Book.category_id == Category.id)
            .outerjoin(ratings, ratings.c.book_id == Book.id)
            .outerjoin(requests, requests.c.book_id == Book.id)
            .outerjoin(copies, copies.c.book_id == Book.id)
        )

        if search and search.strip():
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(or_(Book.title.ilike(pattern), Author.name.ilike(pattern)))
        if hall_id:
            in_hall = select(BookCollection.book_id).where(
                BookCollection.hall_id == hall_id,
                BookCollection.available_copies > 0,
            )
            stmt = stmt.where(Book.id.in_(in_hall))
        if category_id:
            stmt = stmt.where(Book.category_id == category_id)
        if author_id:
            stmt = stmt.where(Book.author_id == author_id)

        total = self.db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()

        sort_column = {
            "recently_added": Book.created_at,
            "top_rated": average_rating,
            "best_reads": request_count,
        }[sort_by]
        ordering = sort_column.asc() if sort_order == "asc" else sort_column.desc()
        stmt = stmt.order_by(ordering, Book.title.asc()).offset((page - 1) * per_page).limit(per_page)

        items = [
            BookListItem(
                id=book.id,
                title=book.title,
                author=author_name or UNKNOWN,
                category=category_name or UNKNOWN,
                image_url=book.image_url,
                rating=round(float(avg or 0), 2),
                rating_count=int(count or 0),
                request_count=int(req_count or 0),
                total_available_copies=int(avail or 0),
                available_status=int(avail or 0) > 0,
            )
            for book, author_name, category_name, avg, count, req_count, avail in self.db.execute(stmt)
        ]
        return Page[BookListItem](data=items, meta=PageMeta.build(page=page, per_page=per_page, total=total))

    def search_suggestions(self, title: str) -> list[BookSuggestion]:
        books = (
            self.db.query(Book)
            .options(joinedload(Book.author), joinedload(Book.publisher), joinedload(Book.category))
            .filter(Book.title.ilike(f"%{title.strip()}%"))
            .order_by(Book.title.asc())
            .limit(SUGGESTION_LIMIT)
            .all()
        )
        return [
            BookSuggestion(
                id=book.id,
                title=book.title,
                description=book.description,
                image_url=book.image_url,
                author_id=book.author_id,
                publisher_id=book.publisher_id,
                category_id=book.category_id,
                author_name=book.author.name if book.author else None,
                publisher_name=book.publisher.name if book.publisher else None,
                category_name=book.category.name if book.category else None,
            )
            for book in books
        ]

    def get_detail(self, book_id: str) -> BookDetail:
        book = self.get_book_by_id(book_id)

        reviews = (
            self.db.query(Review, Reader.name)
            .join(Reader, Review.reader_id == Reader.id)
            .filter(Review.book_id == book.id)
            .order_by(Review.reviewed_on.desc(), Review.created_at.desc())
            .all()
        )
        halls = (
            self.db.query(BookCollection, Hall.name)
            .join(Hall, BookCollection.hall_id == Hall.id)
            .filter(BookCollection.book_id == book.id)
            .order_by(Hall.name.asc())
            .all()
        )

        ratings = [review.rating for review, _ in reviews]
        average = round(sum(ratings) / len(ratings), 2) if ratings else 0.0

        return BookDetail(
            id=book.id,
            title=book.title,
            description=book.description,
            author=book.author.name if book.author else UNKNOWN,
            publisher=book.publisher.name if book.publisher else UNKNOWN,
            category=book.category.name if book.category else UNKNOWN,
            image_url=book.image_url,
            availability=any(collection.available_copies > 0 for collection, _ in halls),
            average_rating=average,
            rating_count=len(ratings),
            reviews=[
                BookReviewItem(
                    id=review.id,
                    reader_name=reader_name,
                    reviewed_on=review.reviewed_on,
                    rating=review.rating,
                    comment=review.comment,
                )
                for review, reader_name in reviews
            ],
            halls=[
                HallAvailability(
                    hall_id=collection.hall_id,
                    hall_name=hall_name,
                    available_copies=collection.available_copies,
                    total_copies=collection.total_copies,
                )
                for collection, hall_name in halls
            ],
        )

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #
    def create_book(self, payload: BookCreate, image: Optional[UploadFile] = None) -> Book:
        book = Book(
            title=payload.title.strip(),
            description=payload.description,
            author_id=self._resolve(Author, "author", payload.author_id, payload.author_name),
            publisher_id=self._resolve(Publisher, "publisher", payload.publisher_id, payload.publisher_name),
            category_id=self._resolve(Category, "category", payload.category_id, payload.category_name),
        )
        if image is not None and image.filename:
            book.image_url = self.storage.save(image)

        self.db.add(book)
        try:
            self._commit()
        except HTTPException:
            self.storage.delete(book.image_url)
            raise
        logger.info("Created book %s (%s)", book.id, book.title)
        return self.get_book_by_id(book.id)

    def update_book(self, book_id: str, payload: BookUpdate, image: Optional[UploadFile] = None) -> Book:
        book = self.get_book_by_id(book_id)
        fields = payload.model_fields_set

        if payload.title is not None:
            book.title = payload.title.strip()
        if "description" in fields:
            book.description = payload.description
        if payload.author_id or payload.author_name:
            book.author_id = self._resolve(Author, "author", payload.author_id, payload.author_name)
        if payload.publisher_id or payload.publisher_name:
            book.publisher_id = self._resolve(Publisher, "publisher", payload.publisher_id, payload.publisher_name)
        if payload.category_id or payload.category_name:
            book.category_id = self._resolve(Category, "category", payload.category_id, payload.category_name)

        old_image = book.image_url
        new_image = None
        if image is not None and image.filename:
            new_image = self.storage.save(image)
            book.image_url = new_image
        elif payload.clear_image:
            book.image_url = None

        try:
            self._commit()
        except HTTPException:
            self.storage.delete(new_image)
            raise
        if old_image and old_image != book.image_url:
            self.storage.delete(old_image)
        logger.info("Updated book %s", book.id)
        return self.get_book_by_id(book.id)

    def delete_book(self, book_id: str) -> None:
        book = self.get_book_by_id(book_id)
        image_url = book.image_url
        self.db.delete(book)
        self._commit()
        self.storage.delete(image_url)
        logger.info("Deleted book %s", book_id)


def get_book_service(
    db: Session = Depends(get_session),
    storage: CoverStorage = Depends(get_cover_storage),
) -> BookService:
    return BookService(db, storage)

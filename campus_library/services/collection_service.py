from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from campus_library.core.errors import validation_error
from campus_library.db.session import get_session
from campus_library.models.catalog import Book, BookCollection, Hall
from campus_library.schemas.catalog import CollectionUpdate, CollectionUpsert

logger = logging.getLogger(__name__)


class CollectionService:
    """Per-hall inventory of a book."""

    def __init__(self, db: Session):
        self.db = db

    def _get_book(self, book_id: str) -> Book:
        book = self.db.get(Book, book_id)
        if book is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found.")
        return book

    def _get_collection(self, collection_id: str) -> BookCollection:
        collection = (
            self.db.query(BookCollection)
            .options(joinedload(BookCollection.hall))
            .filter(BookCollection.id == collection_id)
            .first()
        )
        if collection is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Collection not found.")
        return collection

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="The collection conflicts with the current inventory.",
            ) from exc

    def list_for_book(self, book_id: str) -> list[BookCollection]:
        self._get_book(book_id)
        return (
            self.db.query(BookCollection)
            .options(joinedload(BookCollection.hall))
            .join(Hall, BookCollection.hall_id == Hall.id)
            .filter(BookCollection.book_id == book_id)
            .order_by(Hall.name.asc())
            .all()
        )

    def upsert(self, book_id: str, payload: CollectionUpsert) -> list[BookCollection]:
        """Set the total copies per hall.

        A new row starts fully available. An existing row shifts its available
        count by the same delta as its total, so copies that are out on loan
        stay accounted for.
        """
        self._get_book(book_id)
        existing = {
            collection.hall_id: collection
            for collection in self.db.query(BookCollection).filter(BookCollection.book_id == book_id)
        }

        for index, item in enumerate(payload.collections):
            if self.db.get(Hall, item.hall_id) is None:
                raise validation_error(**{f"collections.{index}.hallId": "The selected hall id is invalid."})

            collection = existing.get(item.hall_id)
            if collection is None:
                self.db.add(
                    BookCollection(
                        book_id=book_id,
                        hall_id=item.hall_id,
                        total_copies=item.total_copies,
                        available_copies=item.total_copies,
                    )
                )
                continue

            delta = item.total_copies - collection.total_copies
            available = collection.available_copies + delta
            if available < 0:
                self.db.rollback()
                on_loan = collection.total_copies - collection.available_copies
                raise validation_error(
                    **{
                        f"collections.{index}.totalCopies": (
                            f"{on_loan} copies are on loan from this hall; the total cannot go below that."
                        )
                    }
                )
            collection.total_copies = item.total_copies
            collection.available_copies = available

        self._commit()
        logger.info("Updated inventory of book %s across %d halls", book_id, len(payload.collections))
        return self.list_for_book(book_id)

    def update(self, collection_id: str, payload: CollectionUpdate) -> BookCollection:
        collection = self._get_collection(collection_id)
        total = payload.total_copies if payload.total_copies is not None else collection.total_copies
        available = payload.available_copies if payload.available_copies is not None else collection.available_copies
        if available > total:
            raise validation_error(availableCopies="Available copies cannot exceed total copies.")

        collection.total_copies = total
        collection.available_copies = available
        self._commit()
        self.db.refresh(collection)
        return collection

    def delete(self, collection_id: str) -> None:
        collection = self._get_collection(collection_id)
        self.db.delete(collection)
        self._commit()
        logger.info("Deleted collection %s", collection_id)


def get_collection_service(db: Session = Depends(get_session)) -> CollectionService:
    return CollectionService(db)

from __future__ import annotations

from fastapi import Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from campus_library.db.session import get_session
from campus_library.models.catalog import Book
from campus_library.models.engagement import Wishlist
from campus_library.models.principal import Reader


class WishlistService:
    def __init__(self, db: Session):
        self.db = db

    def _find(self, reader: Reader, book_id: str):
        return (
            self.db.query(Wishlist)
            .options(joinedload(Wishlist.book))
            .filter(Wishlist.reader_id == reader.id, Wishlist.book_id == book_id)
            .first()
        )

    def add(self, reader: Reader, book_id: str) -> tuple[Wishlist, bool]:
        """Add a book to the reader's wishlist. Returns the row and whether it is new."""
        if self.db.get(Book, book_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found.")

        existing = self._find(reader, book_id)
        if existing is not None:
            return existing, False

        entry = Wishlist(reader_id=reader.id, book_id=book_id)
        self.db.add(entry)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race with an identical insert; the row exists now.
            self.db.rollback()
            return self._find(reader, book_id), False
        return self._find(reader, book_id), True

    def remove(self, reader: Reader, book_id: str) -> None:
        entry = self._find(reader, book_id)
        if entry is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Book is not in your wishlist.",
            )
        self.db.delete(entry)
        self.db.commit()

    def list(self, reader: Reader) -> list[Wishlist]:
        return (
            self.db.query(Wishlist)
            .options(joinedload(Wishlist.book))
            .filter(Wishlist.reader_id == reader.id)
            .order_by(Wishlist.added_on.desc(), Wishlist.created_at.desc())
            .all()
        )


def get_wishlist_service(db: Session = Depends(get_session)) -> WishlistService:
    return WishlistService(db)

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campus_library.db.session import get_session
from campus_library.models.catalog import Book
from campus_library.models.engagement import Activity, Review
from campus_library.models.principal import PrincipalMixin, PrincipalRole, Reader
from campus_library.schemas.engagement import ReviewCreate, ReviewUpdate
from campus_library.services.point_service import PointService

logger = logging.getLogger(__name__)


class ReviewService:
    """Ratings and comments readers leave on books."""

    def __init__(self, db: Session):
        self.db = db

    def _get_review(self, review_id: str) -> Review:
        review = self.db.get(Review, review_id)
        if review is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Review not found.")
        return review

    def _ensure_owner_or_admin(self, review: Review, actor: PrincipalMixin) -> None:
        if actor.role == PrincipalRole.ADMIN:
            return
        if actor.role != PrincipalRole.READER or review.reader_id != actor.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only change your own reviews.",
            )

    def create_review(self, payload: ReviewCreate, reader: Reader) -> Review:
        if self.db.get(Book, payload.book_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found.")

        duplicate = (
            self.db.query(Review)
            .filter(Review.reader_id == reader.id, Review.book_id == payload.book_id)
            .first()
        )
        if duplicate:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="You have already reviewed this book.",
            )

        review = Review(
            reader_id=reader.id,
            book_id=payload.book_id,
            rating=payload.rating,
            comment=payload.comment,
        )
        self.db.add(review)
        PointService(self.db).award(reader, Activity.BOOK_REVIEW, book_id=payload.book_id)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="You have already reviewed this book.",
            ) from exc
        self.db.refresh(review)
        logger.info("Reader %s reviewed book %s", reader.id, payload.book_id)
        return review

    def list_reviews(self, *, book_id: Optional[str] = None, skip: int = 0, limit: int = 20) -> list[Review]:
        query = self.db.query(Review)
        if book_id:
            query = query.filter(Review.book_id == book_id)
        return query.order_by(Review.reviewed_on.desc(), Review.created_at.desc()).offset(skip).limit(limit).all()

    def get_review(self, review_id: str) -> Review:
        return self._get_review(review_id)

    def update_review(self, review_id: str, payload: ReviewUpdate, actor: PrincipalMixin) -> Review:
        review = self._get_review(review_id)
        self._ensure_owner_or_admin(review, actor)

        data = payload.model_dump(exclude_unset=True)
        if data.get("rating") is not None:
            review.rating = data["rating"]
        if "comment" in data:
            review.comment = data["comment"]
        self.db.commit()
        self.db.refresh(review)
        return review

    def delete_review(self, review_id: str, actor: PrincipalMixin) -> None:
        review = self._get_review(review_id)
        self._ensure_owner_or_admin(review, actor)
        self.db.delete(review)
        self.db.commit()
        logger.info("Review %s deleted by %s %s", review_id, actor.role.value, actor.id)


def get_review_service(db: Session = Depends(get_session)) -> ReviewService:
    return ReviewService(db)

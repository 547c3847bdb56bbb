from __future__ import annotations

import enum
from datetime import date
from typing import Optional, TYPE_CHECKING

from sqlalchemy import CheckConstraint, Date, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campus_library.models.principal import Base, TimestampMixin, new_uuid

if TYPE_CHECKING:
    from campus_library.models.catalog import Book
    from campus_library.models.principal import Reader


class Activity(str, enum.Enum):
    BOOK_RETURN = "book_return"
    BOOK_LENDING = "book_lending"
    BOOK_REVIEW = "book_review"
    VOLUNTEER_TASK = "volunteer_task"
    EVENT_PARTICIPATION = "event_participation"
    READER_REGISTRATION = "reader_registration"
    DELAYED_RETURN = "delayed_return"


# activity -> (points, description)
DEFAULT_POINT_RULES: dict[Activity, tuple[int, str]] = {
    Activity.BOOK_RETURN: (10, "Returned in time"),
    Activity.BOOK_LENDING: (5, "Borrowed book"),
    Activity.BOOK_REVIEW: (25, "Reviewed book"),
    Activity.VOLUNTEER_TASK: (10, "Completed a volunteer task."),
    Activity.EVENT_PARTICIPATION: (15, "Participated in an event."),
    Activity.READER_REGISTRATION: (10, "Registering as a reader."),
    Activity.DELAYED_RETURN: (-5, "Returned late"),
}


class PointSystem(TimestampMixin, Base):
    """Lookup table mapping an activity to the points it earns."""

    __tablename__ = "point_systems"

    activity_type: Mapped[str] = mapped_column(String(64), primary_key=True)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)


class PointHistory(TimestampMixin, Base):
    """Append-only ledger entry for points earned by a reader."""

    __tablename__ = "point_histories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    reader_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("readers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    activity_type: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("point_systems.activity_type"),
        nullable=False,
    )
    book_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("books.id", ondelete="SET NULL"),
        nullable=True,
    )
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    earned_date: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)

    reader: Mapped["Reader"] = relationship("Reader", back_populates="point_histories")
    rule: Mapped[PointSystem] = relationship("PointSystem")


class Review(TimestampMixin, Base):
    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("reader_id", "book_id", name="uq_reviews_reader_book"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    reader_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("readers.id", ondelete="CASCADE"),
        nullable=False,
    )
    book_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reviewed_on: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)

    reader: Mapped["Reader"] = relationship("Reader", back_populates="reviews")
    book: Mapped["Book"] = relationship("Book", back_populates="reviews")


class Wishlist(TimestampMixin, Base):
    __tablename__ = "wishlists"
    __table_args__ = (UniqueConstraint("reader_id", "book_id", name="uq_wishlists_reader_book"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    reader_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("readers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    book_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=False,
    )
    added_on: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)

    reader: Mapped["Reader"] = relationship("Reader", back_populates="wishlist")
    book: Mapped["Book"] = relationship("Book", back_populates="wishlisted_by")

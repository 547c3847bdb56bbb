from __future__ import annotations

from typing import Optional, TYPE_CHECKING

from sqlalchemy import CheckConstraint, Enum as SAEnum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campus_library.models.principal import Base, Gender, TimestampMixin, new_uuid

if TYPE_CHECKING:
    from campus_library.models.circulation import Request
    from campus_library.models.engagement import Review, Wishlist


class NamedEntityMixin(TimestampMixin):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"{type(self).__name__}(id={self.id!r}, name={self.name!r})"


class Author(NamedEntityMixin, Base):
    __tablename__ = "authors"


class Publisher(NamedEntityMixin, Base):
    __tablename__ = "publishers"


class Category(NamedEntityMixin, Base):
    __tablename__ = "categories"


class Department(NamedEntityMixin, Base):
    __tablename__ = "departments"


class Hall(NamedEntityMixin, Base):
    """A dormitory that holds its own shelf of books."""

    __tablename__ = "halls"

    gender: Mapped[Optional[Gender]] = mapped_column(SAEnum(Gender, name="gender"), nullable=True)

    collections: Mapped[list["BookCollection"]] = relationship("BookCollection", back_populates="hall")


class Book(TimestampMixin, Base):
    """SQLAlchemy model representing a catalogued title."""

    __tablename__ = "books"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)
    author_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("authors.id", ondelete="SET NULL"),
        nullable=True,
    )
    publisher_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("publishers.id", ondelete="SET NULL"),
        nullable=True,
    )
    category_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
    )

    author: Mapped[Optional[Author]] = relationship("Author")
    publisher: Mapped[Optional[Publisher]] = relationship("Publisher")
    category: Mapped[Optional[Category]] = relationship("Category")
    collections: Mapped[list["BookCollection"]] = relationship(
        "BookCollection",
        back_populates="book",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    requests: Mapped[list["Request"]] = relationship(
        "Request",
        back_populates="book",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    reviews: Mapped[list["Review"]] = relationship(
        "Review",
        back_populates="book",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    wishlisted_by: Mapped[list["Wishlist"]] = relationship(
        "Wishlist",
        back_populates="book",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"Book(id={self.id!r}, title={self.title!r})"


class BookCollection(TimestampMixin, Base):
    """Copy counters for one book in one hall."""

    __tablename__ = "book_collections"
    __table_args__ = (
        UniqueConstraint("book_id", "hall_id", name="uq_book_collections_book_hall"),
        CheckConstraint("available_copies >= 0", name="ck_book_collections_available_non_negative"),
        CheckConstraint("available_copies <= total_copies", name="ck_book_collections_available_le_total"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    book_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=False,
    )
    hall_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("halls.id", ondelete="CASCADE"),
        nullable=False,
    )
    available_copies: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    total_copies: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    book: Mapped[Book] = relationship("Book", back_populates="collections")
    hall: Mapped[Hall] = relationship("Hall", back_populates="collections")

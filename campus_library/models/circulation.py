from __future__ import annotations

import enum
from datetime import date
from typing import Optional, TYPE_CHECKING

from sqlalchemy import Date, Enum as SAEnum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campus_library.models.principal import Base, TimestampMixin, new_uuid

if TYPE_CHECKING:
    from campus_library.models.catalog import Book, Hall
    from campus_library.models.principal import Reader, Volunteer


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    FULFILLED = "fulfilled"
    CANCELLED = "cancelled"


class LendingStatus(str, enum.Enum):
    PENDING = "pending"
    RETURNED = "returned"
    LOST = "lost"


class Request(TimestampMixin, Base):
    """A reader's intent to borrow a book from a given hall."""

    __tablename__ = "requests"

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
    hall_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("halls.id", ondelete="CASCADE"),
        nullable=False,
    )
    request_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        default=date.today,
    )
    status: Mapped[RequestStatus] = mapped_column(
        SAEnum(RequestStatus, name="request_status"),
        nullable=False,
        default=RequestStatus.PENDING,
        server_default=RequestStatus.PENDING.name,
    )
    # Plain column: the owning side of the 1:1 link is Lending.request_id.
    lending_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    reader: Mapped["Reader"] = relationship("Reader", back_populates="requests")
    book: Mapped["Book"] = relationship("Book", back_populates="requests")
    hall: Mapped["Hall"] = relationship("Hall")
    lending: Mapped[Optional["Lending"]] = relationship(
        "Lending",
        back_populates="request",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"Request(id={self.id!r}, status={self.status.value!r})"


class Lending(TimestampMixin, Base):
    """A loan created when a volunteer hands over a requested book."""

    __tablename__ = "lendings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    request_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("requests.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    volunteer_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("volunteers.id", ondelete="SET NULL"),
        nullable=True,
    )
    issue_date: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)
    return_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[LendingStatus] = mapped_column(
        SAEnum(LendingStatus, name="lending_status"),
        nullable=False,
        default=LendingStatus.PENDING,
        server_default=LendingStatus.PENDING.name,
    )

    request: Mapped[Request] = relationship("Request", back_populates="lending")
    volunteer: Mapped[Optional["Volunteer"]] = relationship("Volunteer", back_populates="lendings")

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"Lending(id={self.id!r}, status={self.status.value!r})"

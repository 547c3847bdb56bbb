from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import ClassVar, Optional, TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, ForeignKey, Integer, String, false, func, true
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

if TYPE_CHECKING:
    from campus_library.models.catalog import Department, Hall
    from campus_library.models.circulation import Lending, Request
    from campus_library.models.engagement import PointHistory, Review, Wishlist


class Base(DeclarativeBase):
    """Base declarative class for SQLAlchemy models."""


def new_uuid() -> str:
    return str(uuid.uuid4())


class PrincipalRole(str, enum.Enum):
    READER = "reader"
    VOLUNTEER = "volunteer"
    ADMIN = "admin"


class Gender(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class PrincipalMixin(TimestampMixin):
    """Columns shared by every account type that can sign in."""

    role: ClassVar[PrincipalRole]

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    contact: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"{type(self).__name__}(id={self.id!r}, email={self.email!r})"


class Reader(PrincipalMixin, Base):
    """A student who borrows books and earns points."""

    __tablename__ = "readers"

    role: ClassVar[PrincipalRole] = PrincipalRole.READER

    registration_no: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    session: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    hall_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("halls.id", ondelete="SET NULL"),
        nullable=True,
    )
    dept_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
    )
    gender: Mapped[Optional[Gender]] = mapped_column(SAEnum(Gender, name="gender"), nullable=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    total_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    hall: Mapped[Optional["Hall"]] = relationship("Hall")
    department: Mapped[Optional["Department"]] = relationship("Department")
    requests: Mapped[list["Request"]] = relationship(
        "Request",
        back_populates="reader",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    reviews: Mapped[list["Review"]] = relationship(
        "Review",
        back_populates="reader",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    wishlist: Mapped[list["Wishlist"]] = relationship(
        "Wishlist",
        back_populates="reader",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    point_histories: Mapped[list["PointHistory"]] = relationship(
        "PointHistory",
        back_populates="reader",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Volunteer(PrincipalMixin, Base):
    """A hall volunteer who hands out and takes back books."""

    __tablename__ = "volunteers"

    role: ClassVar[PrincipalRole] = PrincipalRole.VOLUNTEER

    registration_no: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    session: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    room_no: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    hall_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("halls.id", ondelete="SET NULL"),
        nullable=True,
    )
    dept_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
    )
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())

    hall: Mapped[Optional["Hall"]] = relationship("Hall")
    department: Mapped[Optional["Department"]] = relationship("Department")
    lendings: Mapped[list["Lending"]] = relationship("Lending", back_populates="volunteer")


class Admin(PrincipalMixin, Base):
    """Library administrator."""

    __tablename__ = "admins"

    role: ClassVar[PrincipalRole] = PrincipalRole.ADMIN


PRINCIPAL_MODELS: dict[PrincipalRole, type[PrincipalMixin]] = {
    PrincipalRole.READER: Reader,
    PrincipalRole.VOLUNTEER: Volunteer,
    PrincipalRole.ADMIN: Admin,
}

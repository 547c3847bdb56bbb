from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, Index, String, false, func
from sqlalchemy.orm import Mapped, mapped_column

from campus_library.models.principal import Base, PrincipalRole, new_uuid


class AccessToken(Base):
    """Persistent record of a bearer token issued to a reader, volunteer or admin."""

    __tablename__ = "access_tokens"
    __table_args__ = (
        Index("ix_access_tokens_principal", "principal_type", "principal_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    # No FK: the principal may live in any of the three account tables.
    principal_type: Mapped[PrincipalRole] = mapped_column(
        SAEnum(PrincipalRole, name="principal_role"),
        nullable=False,
    )
    principal_id: Mapped[str] = mapped_column(String(36), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    last_used_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    revoked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    revoked_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

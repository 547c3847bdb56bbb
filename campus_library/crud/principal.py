from __future__ import annotations

from typing import Optional, TypeVar

from pydantic import BaseModel, EmailStr, Field, ValidationError
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from campus_library.models.principal import PrincipalMixin

P = TypeVar("P", bound=PrincipalMixin)


class _EmailLookup(BaseModel):
    """Internal schema used to validate inbound email lookups."""

    email: EmailStr = Field(max_length=255)


def _validated_email(email: str) -> str:
    """Validate and normalise an email string before use in queries."""
    try:
        payload = _EmailLookup(email=email)
    except ValidationError as exc:
        # Raise a ValueError so callers can translate into domain-specific errors.
        raise ValueError("Invalid email address provided.") from exc
    return payload.email


def get_principal_by_email(model: type[P], email: str, db: Session) -> Optional[P]:
    """
    Fetch a Reader, Volunteer or Admin by email using a parameterised ORM query.

    Parameters
    ----------
    model:
        Account table to search.
    email:
        Lookup email captured from user input; compared case-insensitively.
    db:
        Active SQLAlchemy session.
    """

    validated_email = _validated_email(email)
    stmt = select(model).where(func.lower(model.email) == validated_email.lower())
    return db.execute(stmt).scalar_one_or_none()

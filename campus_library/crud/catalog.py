from __future__ import annotations

from typing import TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from campus_library.models.catalog import NamedEntityMixin

N = TypeVar("N", bound=NamedEntityMixin)


def get_or_create_by_name(model: type[N], name: str, db: Session) -> N:
    """Return the row whose name matches case-insensitively, adding one if none exists.

    The new row is only flushed; the caller's transaction decides whether it sticks.
    """
    cleaned = name.strip()
    stmt = select(model).where(func.lower(model.name) == cleaned.lower()).limit(1)
    existing = db.execute(stmt).scalars().first()
    if existing is not None:
        return existing

    entity = model(name=cleaned)
    db.add(entity)
    db.flush()
    return entity

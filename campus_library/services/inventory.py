"""Copy-counter updates for :class:`BookCollection` rows.

Every change is a single conditional UPDATE so concurrent transactions cannot
push ``available_copies`` below zero or above ``total_copies``; a helper
returns ``False`` when its guard did not match.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from campus_library.models.catalog import BookCollection


def find_collection(db: Session, book_id: str, hall_id: str) -> Optional[BookCollection]:
    stmt = select(BookCollection).where(
        BookCollection.book_id == book_id,
        BookCollection.hall_id == hall_id,
    )
    return db.execute(stmt).scalar_one_or_none()


def _guarded_update(db: Session, collection: BookCollection, guard, values: dict) -> bool:
    stmt = (
        update(BookCollection)
        .where(BookCollection.id == collection.id, guard)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    db.refresh(collection)
    return result.rowcount == 1


def take_copy(db: Session, collection: BookCollection) -> bool:
    """Hand out one copy; fails when none is available."""
    return _guarded_update(
        db,
        collection,
        BookCollection.available_copies > 0,
        {"available_copies": BookCollection.available_copies - 1},
    )


def restore_copy(db: Session, collection: BookCollection) -> bool:
    """Put one copy back on the shelf; fails when the shelf is already full."""
    return _guarded_update(
        db,
        collection,
        BookCollection.available_copies < BookCollection.total_copies,
        {"available_copies": BookCollection.available_copies + 1},
    )


def retire_copy(db: Session, collection: BookCollection) -> bool:
    """Drop one lent-out copy from the hall's total, e.g. after it was lost."""
    return _guarded_update(
        db,
        collection,
        BookCollection.total_copies > BookCollection.available_copies,
        {"total_copies": BookCollection.total_copies - 1},
    )


def reinstate_copy(db: Session, collection: BookCollection) -> bool:
    """Bring a retired copy back into the hall, both on the shelf and in the total."""
    return _guarded_update(
        db,
        collection,
        BookCollection.available_copies <= BookCollection.total_copies,
        {
            "available_copies": BookCollection.available_copies + 1,
            "total_copies": BookCollection.total_copies + 1,
        },
    )

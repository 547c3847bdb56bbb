from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from campus_library.db.session import get_session
from campus_library.models.engagement import DEFAULT_POINT_RULES, Activity, PointHistory, PointSystem
from campus_library.models.principal import Reader

logger = logging.getLogger(__name__)


class PointRuleMissingError(RuntimeError):
    """Raised when an activity has no row in the point_systems table."""


def seed_point_rules(db: Session) -> int:
    """Insert any default point rules that are not configured yet. Returns rows added."""
    existing = set(db.execute(select(PointSystem.activity_type)).scalars())
    added = 0
    for activity, (points, description) in DEFAULT_POINT_RULES.items():
        if activity.value in existing:
            continue
        db.add(PointSystem(activity_type=activity.value, points=points, description=description))
        added += 1
    if added:
        db.commit()
        logger.info("Seeded %d point rules", added)
    return added


class PointService:
    """Awards points to readers and keeps the append-only ledger."""

    def __init__(self, db: Session):
        self.db = db

    def get_rule(self, activity: Activity) -> PointSystem:
        rule = self.db.get(PointSystem, activity.value)
        if rule is None:
            raise PointRuleMissingError(f"No point rule configured for '{activity.value}'.")
        return rule

    def award(self, reader: Reader, activity: Activity, book_id: Optional[str] = None) -> PointHistory:
        """Add the activity's points to the reader and append a ledger row.

        Does not commit: the caller owns the transaction so the points land
        together with the state change that earned them.
        """
        rule = self.get_rule(activity)
        reader.total_points = (reader.total_points or 0) + rule.points
        entry = PointHistory(
            reader_id=reader.id,
            activity_type=rule.activity_type,
            book_id=book_id,
            points=rule.points,
        )
        self.db.add(reader)
        self.db.add(entry)
        logger.info("Reader %s earned %d points for %s", reader.id, rule.points, activity.value)
        return entry

    def list_rules(self) -> list[PointSystem]:
        return list(self.db.execute(select(PointSystem).order_by(PointSystem.activity_type)).scalars())

    def history_for(self, reader: Reader, *, limit: Optional[int] = None) -> list[PointHistory]:
        stmt = (
            select(PointHistory)
            .where(PointHistory.reader_id == reader.id)
            .order_by(PointHistory.created_at.desc(), PointHistory.earned_date.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.db.execute(stmt).scalars())


def get_point_service(db: Session = Depends(get_session)) -> PointService:
    return PointService(db)

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from campus_library.db.session import get_session
from campus_library.models.circulation import Lending, LendingStatus, Request, RequestStatus
from campus_library.models.engagement import Activity
from campus_library.models.principal import PrincipalMixin, PrincipalRole, Reader, Volunteer
from campus_library.services.inventory import find_collection, reinstate_copy, restore_copy, retire_copy
from campus_library.services.point_service import PointService

logger = logging.getLogger(__name__)

STAFF_ROLES = {PrincipalRole.VOLUNTEER, PrincipalRole.ADMIN}


class LendingService:
    """Business logic for closing, undoing and listing lendings."""

    def __init__(self, db: Session):
        self.db = db
        self.points = PointService(db)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _query(self):
        return self.db.query(Lending).options(
            joinedload(Lending.request).joinedload(Request.book),
            joinedload(Lending.request).joinedload(Request.hall),
            joinedload(Lending.request).joinedload(Request.reader),
        )

    def _get_lending(self, lending_id: str) -> Lending:
        lending = self._query().filter(Lending.id == lending_id).first()
        if not lending:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Lending not found.",
            )
        return lending

    def _ensure_pending(self, lending: Lending) -> None:
        if lending.status != LendingStatus.PENDING:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Lending is already {lending.status.value}.",
            )

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Unable to update lending.",
            ) from exc

    def _give_back_copy(self, lending: Lending) -> None:
        request = lending.request
        collection = find_collection(self.db, request.book_id, request.hall_id)
        if collection is None:
            logger.warning(
                "No collection for book %s in hall %s; lending %s closed without restocking",
                request.book_id,
                request.hall_id,
                lending.id,
            )
            return
        if not restore_copy(self.db, collection):
            logger.warning(
                "Collection %s is already at capacity (%d); lending %s closed without restocking",
                collection.id,
                collection.total_copies,
                lending.id,
            )

    def _reinstate_lost_copy(self, lending: Lending) -> None:
        request = lending.request
        collection = find_collection(self.db, request.book_id, request.hall_id)
        if collection is None or not reinstate_copy(self.db, collection):
            logger.warning("Could not reinstate the copy retired by lost lending %s", lending.id)

    # ------------------------------------------------------------------ #
    # Public interface
    # ------------------------------------------------------------------ #
    def return_book(self, lending_id: str, actor: PrincipalMixin) -> Lending:
        lending = self._get_lending(lending_id)
        self._ensure_pending(lending)

        lending.status = LendingStatus.RETURNED
        lending.return_date = date.today()

        reader = lending.request.reader
        if reader is not None:
            self.points.award(reader, Activity.BOOK_RETURN, book_id=lending.request.book_id)
        self._give_back_copy(lending)

        self._commit()
        logger.info("Lending %s returned, processed by %s %s", lending.id, actor.role.value, actor.id)
        return self._get_lending(lending.id)

    def mark_lost(self, lending_id: str, actor: PrincipalMixin) -> Lending:
        """Close the lending as lost and drop the copy from the hall's total."""
        lending = self._get_lending(lending_id)
        self._ensure_pending(lending)

        lending.status = LendingStatus.LOST

        request = lending.request
        collection = find_collection(self.db, request.book_id, request.hall_id)
        if collection is None or not retire_copy(self.db, collection):
            logger.warning("Could not retire a copy for lost lending %s", lending.id)

        self._commit()
        logger.info("Lending %s marked lost by %s %s", lending.id, actor.role.value, actor.id)
        return self._get_lending(lending.id)

    def delete_lending(self, lending_id: str, actor: PrincipalMixin) -> None:
        """Undo a lending: return any copy it still holds and reopen its request."""
        lending = self._get_lending(lending_id)
        request = lending.request

        if lending.status == LendingStatus.PENDING:
            self._give_back_copy(lending)
        elif lending.status == LendingStatus.LOST:
            self._reinstate_lost_copy(lending)

        request.status = RequestStatus.PENDING
        request.lending_id = None
        self.db.delete(lending)
        self._commit()
        logger.info(
            "Lending %s deleted by %s %s; request %s reopened",
            lending_id,
            actor.role.value,
            actor.id,
            request.id,
        )

    def list_lendings(
        self,
        *,
        actor: PrincipalMixin,
        hall_id: Optional[str] = None,
        status_filter: Optional[LendingStatus] = LendingStatus.PENDING,
        skip: int = 0,
        limit: int = 20,
    ) -> list[Lending]:
        if hall_id is None and isinstance(actor, Volunteer):
            hall_id = actor.hall_id

        query = self._query()
        if hall_id:
            query = query.join(Lending.request).filter(Request.hall_id == hall_id)
        if status_filter is not None:
            query = query.filter(Lending.status == status_filter)

        query = query.order_by(Lending.return_date.desc(), Lending.created_at.desc())
        return query.offset(skip).limit(limit).all()

    def get_lending(self, lending_id: str, actor: PrincipalMixin) -> Lending:
        lending = self._get_lending(lending_id)
        if actor.role not in STAFF_ROLES and lending.request.reader_id != actor.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to access this lending.",
            )
        return lending

    def my_reads(self, reader: Reader, *, skip: int = 0, limit: int = 20) -> list[Lending]:
        return (
            self._query()
            .join(Lending.request)
            .filter(Request.reader_id == reader.id)
            .order_by(Lending.issue_date.desc(), Lending.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )


def get_lending_service(db: Session = Depends(get_session)) -> LendingService:
    return LendingService(db)

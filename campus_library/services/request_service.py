from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from campus_library.core.errors import validation_error
from campus_library.core.settings import AppSettings, get_app_settings
from campus_library.db.session import get_session
from campus_library.models.catalog import Book, Hall
from campus_library.models.circulation import Lending, LendingStatus, Request, RequestStatus
from campus_library.models.principal import PrincipalMixin, PrincipalRole, Reader, Volunteer
from campus_library.schemas.circulation import RequestCreate
from campus_library.services.inventory import find_collection, take_copy

logger = logging.getLogger(__name__)

STAFF_ROLES = {PrincipalRole.VOLUNTEER, PrincipalRole.ADMIN}


class RequestService:
    """Business logic for book requests and their fulfilment into lendings."""

    def __init__(self, db: Session, settings: AppSettings):
        self.db = db
        self.settings = settings

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _get_request(self, request_id: str) -> Request:
        request = (
            self.db.query(Request)
            .options(joinedload(Request.book), joinedload(Request.hall), joinedload(Request.reader))
            .filter(Request.id == request_id)
            .first()
        )
        if not request:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Request not found.",
            )
        return request

    def _ensure_can_access(self, request: Request, actor: PrincipalMixin) -> None:
        if actor.role in STAFF_ROLES:
            return
        if request.reader_id != actor.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to access this request.",
            )

    def _ensure_pending(self, request: Request, action: str) -> None:
        if request.status != RequestStatus.PENDING:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Only pending requests can be {action}.",
            )

    def _commit(self, failure: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=failure,
            ) from exc

    # ------------------------------------------------------------------ #
    # Public interface
    # ------------------------------------------------------------------ #
    def create_request(self, payload: RequestCreate, reader: Reader) -> Request:
        if self.db.get(Book, payload.book_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found.")
        if self.db.get(Hall, payload.hall_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Hall not found.")

        collection = find_collection(self.db, payload.book_id, payload.hall_id)
        if collection is None or collection.available_copies <= 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Book not available in the specified hall or no copies left.",
            )

        duplicate = (
            self.db.query(Request)
            .filter(
                Request.reader_id == reader.id,
                Request.book_id == payload.book_id,
                Request.hall_id == payload.hall_id,
                Request.status == RequestStatus.PENDING,
            )
            .first()
        )
        if duplicate:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="You already have a pending request for this book in this hall.",
            )

        # No copy is reserved here; availability is settled at fulfilment.
        request = Request(
            reader_id=reader.id,
            book_id=payload.book_id,
            hall_id=payload.hall_id,
            request_date=date.today(),
            status=RequestStatus.PENDING,
        )
        self.db.add(request)
        self._commit("Unable to create request.")
        logger.info("Reader %s requested book %s in hall %s", reader.id, payload.book_id, payload.hall_id)
        return self._get_request(request.id)

    def list_requests(
        self,
        *,
        actor: PrincipalMixin,
        skip: int = 0,
        limit: int = 20,
        status_filter: Optional[RequestStatus] = None,
        hall_id: Optional[str] = None,
        reader_id: Optional[str] = None,
    ) -> list[Request]:
        query = self.db.query(Request).options(
            joinedload(Request.book),
            joinedload(Request.hall),
            joinedload(Request.reader),
        )
        if actor.role not in STAFF_ROLES:
            query = query.filter(Request.reader_id == actor.id)
        elif reader_id:
            query = query.filter(Request.reader_id == reader_id)

        if status_filter is not None:
            query = query.filter(Request.status == status_filter)
        if hall_id:
            query = query.filter(Request.hall_id == hall_id)

        query = query.order_by(Request.request_date.desc(), Request.created_at.desc())
        return query.offset(skip).limit(limit).all()

    def get_request(self, request_id: str, actor: PrincipalMixin) -> Request:
        request = self._get_request(request_id)
        self._ensure_can_access(request, actor)
        return request

    def cancel_request(self, request_id: str, actor: PrincipalMixin) -> Request:
        request = self._get_request(request_id)
        self._ensure_can_access(request, actor)
        self._ensure_pending(request, "cancelled")

        request.status = RequestStatus.CANCELLED
        self._commit("Unable to cancel request.")
        logger.info("Request %s cancelled by %s %s", request.id, actor.role.value, actor.id)
        return request

    def fulfill_request(
        self,
        request_id: str,
        volunteer: Volunteer,
        return_date: Optional[date] = None,
    ) -> tuple[Request, Lending]:
        request = self._get_request(request_id)
        self._ensure_pending(request, "fulfilled")

        today = date.today()
        if return_date is None:
            return_date = today + timedelta(days=self.settings.default_loan_days)
        if return_date < today:
            raise validation_error(return_date="The return date must be today or later.")

        collection = find_collection(self.db, request.book_id, request.hall_id)
        if collection is None or not take_copy(self.db, collection):
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Cannot fulfill request: Book not available in the specified hall or no copies left.",
            )

        lending = Lending(
            request_id=request.id,
            volunteer_id=volunteer.id,
            issue_date=today,
            return_date=return_date,
            status=LendingStatus.PENDING,
        )
        self.db.add(lending)
        self.db.flush()

        request.status = RequestStatus.FULFILLED
        request.lending_id = lending.id
        self._commit("Request was fulfilled concurrently.")
        self.db.refresh(request)
        logger.info(
            "Request %s fulfilled by volunteer %s as lending %s (%d copies left)",
            request.id,
            volunteer.id,
            lending.id,
            collection.available_copies,
        )
        return request, lending

    def delete_request(self, request_id: str, actor: PrincipalMixin) -> None:
        """Remove a request. Copies are only taken at fulfilment, so stock is left as is."""
        request = self._get_request(request_id)
        self._ensure_can_access(request, actor)

        if request.status == RequestStatus.FULFILLED:
            if actor.role not in STAFF_ROLES:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Fulfilled requests can only be removed by library staff.",
                )
            if request.lending is not None and request.lending.status == LendingStatus.PENDING:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="The book is still on loan. Undo or close the lending first.",
                )

        # Pending requests never held a copy, so there is nothing to give back.
        self.db.delete(request)
        self._commit("Unable to delete request.")
        logger.info("Request %s deleted by %s %s", request_id, actor.role.value, actor.id)


def get_request_service(
    db: Session = Depends(get_session),
    settings: AppSettings = Depends(get_app_settings),
) -> RequestService:
    return RequestService(db, settings)

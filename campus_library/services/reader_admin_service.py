from __future__ import annotations

from typing import List, Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, joinedload

from campus_library.db.session import get_session
from campus_library.models.catalog import Department, Hall
from campus_library.models.circulation import Lending, LendingStatus, Request, RequestStatus
from campus_library.models.engagement import Review, Wishlist
from campus_library.models.principal import Reader
from campus_library.schemas.circulation import LendingOut, RequestOut
from campus_library.schemas.engagement import PointHistoryOut, ReaderDashboard
from campus_library.schemas.principal import ReaderOut, ReaderUpdate
from campus_library.services.point_service import PointService
from campus_library.services.token_service import TokenService, get_token_service

RECENT_POINTS = 5


class ReaderAdminService:
    """Administrative reader management plus the reader's own dashboard."""

    def __init__(self, session: Session, tokens: TokenService) -> None:
        self.session = session
        self.tokens = tokens

    def _get_reader(self, reader_id: str) -> Reader:
        reader = self.session.get(Reader, reader_id)
        if not reader:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "reader_not_found", "message": "Reader not found."},
            )
        return reader

    def list_readers(self, skip: int = 0, limit: int = 20, search: Optional[str] = None) -> List[ReaderOut]:
        stmt = select(Reader).order_by(Reader.created_at.desc())

        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(
                or_(
                    Reader.email.ilike(pattern),
                    Reader.name.ilike(pattern),
                    Reader.registration_no.ilike(pattern),
                )
            )

        stmt = stmt.offset(skip).limit(limit)

        readers = self.session.execute(stmt).scalars().all()
        return [ReaderOut.model_validate(reader) for reader in readers]

    def get_reader_by_id(self, reader_id: str) -> ReaderOut:
        return ReaderOut.model_validate(self._get_reader(reader_id))

    def update_reader(self, reader_id: str, payload: ReaderUpdate) -> ReaderOut:
        reader = self._get_reader(reader_id)
        update_data = payload.model_dump(exclude_unset=True)

        if update_data.get("hall_id") and self.session.get(Hall, update_data["hall_id"]) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "hall_not_found", "message": "Hall not found."},
            )
        if update_data.get("dept_id") and self.session.get(Department, update_data["dept_id"]) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "department_not_found", "message": "Department not found."},
            )

        for field in ("name", "is_verified"):
            if update_data.get(field) is not None:
                setattr(reader, field, update_data[field])
        for field in ("contact", "registration_no", "session", "hall_id", "dept_id", "gender"):
            if field in update_data:
                setattr(reader, field, update_data[field])

        self.session.add(reader)
        self.session.commit()
        self.session.refresh(reader)
        return ReaderOut.model_validate(reader)

    def delete_reader(self, reader_id: str) -> None:
        reader = self._get_reader(reader_id)
        self.tokens.revoke_all_for_principal(reader)
        self.session.delete(reader)
        self.session.commit()

    def dashboard(self, reader: Reader) -> ReaderDashboard:
        pending = (
            self.session.query(Request)
            .options(joinedload(Request.book), joinedload(Request.hall))
            .filter(Request.reader_id == reader.id, Request.status == RequestStatus.PENDING)
            .order_by(Request.request_date.desc())
            .all()
        )
        lendings = (
            self.session.query(Lending)
            .join(Lending.request)
            .options(joinedload(Lending.request).joinedload(Request.book))
            .filter(Request.reader_id == reader.id)
            .all()
        )

        def _count(model, *criteria) -> int:
            return self.session.execute(select(func.count()).select_from(model).where(*criteria)).scalar_one()

        return ReaderDashboard(
            total_points=reader.total_points,
            pending_requests=[RequestOut.model_validate(request) for request in pending],
            active_lendings=[
                LendingOut.model_validate(lending) for lending in lendings if lending.status == LendingStatus.PENDING
            ],
            books_read=sum(1 for lending in lendings if lending.status == LendingStatus.RETURNED),
            reviews_written=_count(Review, Review.reader_id == reader.id),
            wishlist_count=_count(Wishlist, Wishlist.reader_id == reader.id),
            recent_points=[
                PointHistoryOut.model_validate(entry)
                for entry in PointService(self.session).history_for(reader, limit=RECENT_POINTS)
            ],
        )


def get_reader_admin_service(
    session: Session = Depends(get_session),
    tokens: TokenService = Depends(get_token_service),
) -> ReaderAdminService:
    return ReaderAdminService(session=session, tokens=tokens)

from __future__ import annotations

import logging
from typing import List

from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from campus_library.db.session import get_session
from campus_library.models.catalog import Hall
from campus_library.models.principal import Volunteer
from campus_library.services.token_service import TokenService, get_token_service

logger = logging.getLogger(__name__)


class VolunteerService:
    """Volunteer availability and administrative vetting."""

    def __init__(self, session: Session, tokens: TokenService) -> None:
        self.session = session
        self.tokens = tokens

    def _get_volunteer(self, volunteer_id: str) -> Volunteer:
        volunteer = self.session.get(Volunteer, volunteer_id)
        if not volunteer:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "volunteer_not_found", "message": "Volunteer not found."},
            )
        return volunteer

    def available_in_hall(self, hall_id: str) -> List[Volunteer]:
        if self.session.get(Hall, hall_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "hall_not_found", "message": "Hall not found."},
            )
        stmt = (
            select(Volunteer)
            .where(
                Volunteer.hall_id == hall_id,
                Volunteer.is_available.is_(True),
            )
            .order_by(Volunteer.name.asc())
        )
        return list(self.session.execute(stmt).scalars())

    def toggle_availability(self, volunteer: Volunteer) -> Volunteer:
        volunteer.is_available = not volunteer.is_available
        self.session.add(volunteer)
        self.session.commit()
        self.session.refresh(volunteer)
        logger.info("Volunteer %s is now %s", volunteer.id, "available" if volunteer.is_available else "away")
        return volunteer

    def list_unverified(self, skip: int = 0, limit: int = 20) -> List[Volunteer]:
        stmt = (
            select(Volunteer)
            .where(Volunteer.is_verified.is_(False))
            .order_by(Volunteer.created_at.asc())
            .offset(skip)
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars())

    def verify(self, volunteer_id: str) -> Volunteer:
        volunteer = self._get_volunteer(volunteer_id)
        if volunteer.is_verified:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "already_verified", "message": "Volunteer is already verified."},
            )
        volunteer.is_verified = True
        self.session.add(volunteer)
        self.session.commit()
        self.session.refresh(volunteer)
        logger.info("Volunteer %s verified", volunteer.id)
        return volunteer

    def delete(self, volunteer_id: str) -> None:
        volunteer = self._get_volunteer(volunteer_id)
        self.tokens.revoke_all_for_principal(volunteer)
        self.session.delete(volunteer)
        self.session.commit()
        logger.info("Volunteer %s deleted", volunteer_id)


def get_volunteer_service(
    session: Session = Depends(get_session),
    tokens: TokenService = Depends(get_token_service),
) -> VolunteerService:
    return VolunteerService(session=session, tokens=tokens)

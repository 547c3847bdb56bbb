from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status

from campus_library.models.principal import Admin, PrincipalMixin, Volunteer
from campus_library.schemas.principal import VolunteerContact, VolunteerOut
from campus_library.security.principal import require_admin, require_principal, require_volunteer
from campus_library.services.volunteer_service import VolunteerService, get_volunteer_service

router = APIRouter(prefix="/volunteers", tags=["volunteers"])


@router.get("", response_model=list[VolunteerContact])
def list_available_volunteers(
    hall_id: str = Query(...),
    principal: PrincipalMixin = Depends(require_principal),
    service: VolunteerService = Depends(get_volunteer_service),
) -> list[VolunteerContact]:
    """Volunteers of a hall who are currently on duty."""
    return [VolunteerContact.model_validate(volunteer) for volunteer in service.available_in_hall(hall_id)]


@router.patch("/me/availability", response_model=VolunteerOut)
def toggle_availability(
    volunteer: Volunteer = Depends(require_volunteer),
    service: VolunteerService = Depends(get_volunteer_service),
) -> VolunteerOut:
    return VolunteerOut.model_validate(service.toggle_availability(volunteer))


@router.get("/unverified", response_model=list[VolunteerOut])
def list_unverified_volunteers(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    admin: Admin = Depends(require_admin),
    service: VolunteerService = Depends(get_volunteer_service),
) -> list[VolunteerOut]:
    return [VolunteerOut.model_validate(volunteer) for volunteer in service.list_unverified(skip=skip, limit=limit)]


@router.patch("/{volunteer_id}/verify", response_model=VolunteerOut)
def verify_volunteer(
    volunteer_id: str,
    admin: Admin = Depends(require_admin),
    service: VolunteerService = Depends(get_volunteer_service),
) -> VolunteerOut:
    return VolunteerOut.model_validate(service.verify(volunteer_id))


@router.delete("/{volunteer_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_volunteer(
    volunteer_id: str,
    admin: Admin = Depends(require_admin),
    service: VolunteerService = Depends(get_volunteer_service),
) -> Response:
    service.delete(volunteer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

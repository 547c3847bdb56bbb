from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from campus_library.models.circulation import LendingStatus
from campus_library.models.principal import PrincipalMixin, Reader
from campus_library.schemas.circulation import LendingOut
from campus_library.security.principal import require_principal, require_reader, require_staff
from campus_library.services.lending_service import LendingService, get_lending_service

router = APIRouter(prefix="/lendings", tags=["lendings"])


@router.get(
    "",
    response_model=list[LendingOut],
)
def list_lendings(
    hall_id: Optional[str] = Query(default=None),
    status_filter: LendingStatus = Query(LendingStatus.PENDING, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    staff: PrincipalMixin = Depends(require_staff),
    service: LendingService = Depends(get_lending_service),
) -> list[LendingOut]:
    """Lendings of a hall; volunteers default to their own hall."""
    lendings = service.list_lendings(
        actor=staff,
        hall_id=hall_id,
        status_filter=status_filter,
        skip=skip,
        limit=limit,
    )
    return [LendingOut.model_validate(lending) for lending in lendings]


@router.get(
    "/mine",
    response_model=list[LendingOut],
)
def my_reads(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    reader: Reader = Depends(require_reader),
    service: LendingService = Depends(get_lending_service),
) -> list[LendingOut]:
    return [LendingOut.model_validate(lending) for lending in service.my_reads(reader, skip=skip, limit=limit)]


@router.get(
    "/{lending_id}",
    response_model=LendingOut,
)
def get_lending(
    lending_id: str,
    principal: PrincipalMixin = Depends(require_principal),
    service: LendingService = Depends(get_lending_service),
) -> LendingOut:
    return LendingOut.model_validate(service.get_lending(lending_id, principal))


@router.patch(
    "/{lending_id}/return",
    response_model=LendingOut,
)
def return_book(
    lending_id: str,
    staff: PrincipalMixin = Depends(require_staff),
    service: LendingService = Depends(get_lending_service),
) -> LendingOut:
    """Close a lending as returned and put the copy back on the shelf."""
    return LendingOut.model_validate(service.return_book(lending_id, staff))


@router.patch(
    "/{lending_id}/lost",
    response_model=LendingOut,
)
def mark_lost(
    lending_id: str,
    staff: PrincipalMixin = Depends(require_staff),
    service: LendingService = Depends(get_lending_service),
) -> LendingOut:
    return LendingOut.model_validate(service.mark_lost(lending_id, staff))


@router.delete(
    "/{lending_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
def delete_lending(
    lending_id: str,
    staff: PrincipalMixin = Depends(require_staff),
    service: LendingService = Depends(get_lending_service),
) -> Response:
    """Undo a lending and reopen its request."""
    service.delete_lending(lending_id, staff)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

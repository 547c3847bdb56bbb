from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status

from campus_library.models.circulation import RequestStatus
from campus_library.models.principal import PrincipalMixin, Reader, Volunteer
from campus_library.schemas.circulation import FulfillResult, LendingOut, RequestCreate, RequestFulfill, RequestOut
from campus_library.security.principal import require_principal, require_reader, require_volunteer
from campus_library.services.request_service import RequestService, get_request_service

router = APIRouter(prefix="/requests", tags=["requests"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=RequestOut,
)
def create_request(
    payload: RequestCreate,
    reader: Reader = Depends(require_reader),
    service: RequestService = Depends(get_request_service),
) -> RequestOut:
    """Ask for a book from a specific hall."""
    request = service.create_request(payload, reader)
    return RequestOut.model_validate(request)


@router.get(
    "",
    response_model=list[RequestOut],
)
def list_requests(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    status_filter: Optional[RequestStatus] = Query(default=None, alias="status"),
    hall_id: Optional[str] = Query(default=None),
    reader_id: Optional[str] = Query(default=None),
    principal: PrincipalMixin = Depends(require_principal),
    service: RequestService = Depends(get_request_service),
) -> list[RequestOut]:
    requests = service.list_requests(
        actor=principal,
        skip=skip,
        limit=limit,
        status_filter=status_filter,
        hall_id=hall_id,
        reader_id=reader_id,
    )
    return [RequestOut.model_validate(request) for request in requests]


@router.get(
    "/{request_id}",
    response_model=RequestOut,
)
def get_request(
    request_id: str,
    principal: PrincipalMixin = Depends(require_principal),
    service: RequestService = Depends(get_request_service),
) -> RequestOut:
    return RequestOut.model_validate(service.get_request(request_id, principal))


@router.patch(
    "/{request_id}/fulfill",
    response_model=FulfillResult,
)
def fulfill_request(
    request_id: str,
    payload: Optional[RequestFulfill] = Body(default=None),
    volunteer: Volunteer = Depends(require_volunteer),
    service: RequestService = Depends(get_request_service),
) -> FulfillResult:
    """Hand the book over: creates the lending and takes one copy off the shelf."""
    return_date = payload.return_date if payload is not None else None
    request, lending = service.fulfill_request(request_id, volunteer, return_date=return_date)
    return FulfillResult(
        message="Request fulfilled successfully.",
        request=RequestOut.model_validate(request),
        lending=LendingOut.model_validate(lending),
    )


@router.patch(
    "/{request_id}/cancel",
    response_model=RequestOut,
)
def cancel_request(
    request_id: str,
    principal: PrincipalMixin = Depends(require_principal),
    service: RequestService = Depends(get_request_service),
) -> RequestOut:
    return RequestOut.model_validate(service.cancel_request(request_id, principal))


@router.delete(
    "/{request_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
def delete_request(
    request_id: str,
    principal: PrincipalMixin = Depends(require_principal),
    service: RequestService = Depends(get_request_service),
) -> Response:
    service.delete_request(request_id, principal)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

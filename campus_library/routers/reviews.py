from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from campus_library.models.principal import PrincipalMixin, Reader
from campus_library.schemas.engagement import ReviewCreate, ReviewOut, ReviewUpdate
from campus_library.security.principal import require_principal, require_reader
from campus_library.services.review_service import ReviewService, get_review_service

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ReviewOut)
def create_review(
    payload: ReviewCreate,
    reader: Reader = Depends(require_reader),
    service: ReviewService = Depends(get_review_service),
) -> ReviewOut:
    """Rate a book and earn review points."""
    return ReviewOut.model_validate(service.create_review(payload, reader))


@router.get("", response_model=list[ReviewOut])
def list_reviews(
    book_id: Optional[str] = Query(default=None),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    service: ReviewService = Depends(get_review_service),
) -> list[ReviewOut]:
    reviews = service.list_reviews(book_id=book_id, skip=skip, limit=limit)
    return [ReviewOut.model_validate(review) for review in reviews]


@router.get("/{review_id}", response_model=ReviewOut)
def get_review(review_id: str, service: ReviewService = Depends(get_review_service)) -> ReviewOut:
    return ReviewOut.model_validate(service.get_review(review_id))


@router.patch("/{review_id}", response_model=ReviewOut)
def update_review(
    review_id: str,
    payload: ReviewUpdate,
    principal: PrincipalMixin = Depends(require_principal),
    service: ReviewService = Depends(get_review_service),
) -> ReviewOut:
    return ReviewOut.model_validate(service.update_review(review_id, payload, principal))


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_review(
    review_id: str,
    principal: PrincipalMixin = Depends(require_principal),
    service: ReviewService = Depends(get_review_service),
) -> Response:
    service.delete_review(review_id, principal)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

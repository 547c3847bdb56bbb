from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from campus_library.models.principal import Admin
from campus_library.schemas.catalog import CollectionOut, CollectionUpdate
from campus_library.security.principal import require_admin
from campus_library.services.collection_service import CollectionService, get_collection_service

router = APIRouter(prefix="/collections", tags=["collections"])


@router.patch("/{collection_id}", response_model=CollectionOut)
def update_collection(
    collection_id: str,
    payload: CollectionUpdate,
    admin: Admin = Depends(require_admin),
    service: CollectionService = Depends(get_collection_service),
) -> CollectionOut:
    """Correct a hall's copy counters by hand. Admin-only."""
    return CollectionOut.model_validate(service.update(collection_id, payload))


@router.delete(
    "/{collection_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
def delete_collection(
    collection_id: str,
    admin: Admin = Depends(require_admin),
    service: CollectionService = Depends(get_collection_service),
) -> Response:
    service.delete(collection_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

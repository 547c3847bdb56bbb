from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from campus_library.models.principal import Reader
from campus_library.schemas.engagement import WishlistCreate, WishlistOut
from campus_library.security.principal import require_reader
from campus_library.services.wishlist_service import WishlistService, get_wishlist_service

router = APIRouter(prefix="/wishlist", tags=["wishlist"])


@router.get("", response_model=list[WishlistOut])
def list_wishlist(
    reader: Reader = Depends(require_reader),
    service: WishlistService = Depends(get_wishlist_service),
) -> list[WishlistOut]:
    return [WishlistOut.model_validate(entry) for entry in service.list(reader)]


@router.post("", response_model=WishlistOut, status_code=status.HTTP_201_CREATED)
def add_to_wishlist(
    payload: WishlistCreate,
    response: Response,
    reader: Reader = Depends(require_reader),
    service: WishlistService = Depends(get_wishlist_service),
) -> WishlistOut:
    """Add a book; adding it twice returns the existing entry with 200."""
    entry, created = service.add(reader, payload.book_id)
    if not created:
        response.status_code = status.HTTP_200_OK
    return WishlistOut.model_validate(entry)


@router.delete("/{book_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def remove_from_wishlist(
    book_id: str,
    reader: Reader = Depends(require_reader),
    service: WishlistService = Depends(get_wishlist_service),
) -> Response:
    service.remove(reader, book_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

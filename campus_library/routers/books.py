from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from campus_library.models.principal import PrincipalMixin
from campus_library.schemas.catalog import (
    BookCreate,
    BookDetail,
    BookListItem,
    BookOut,
    BookSuggestion,
    BookUpdate,
    CollectionOut,
    CollectionUpsert,
)
from campus_library.schemas.common import Page
from campus_library.security.principal import require_admin, require_staff
from campus_library.services.book_service import BookService, SortBy, SortOrder, get_book_service
from campus_library.services.collection_service import CollectionService, get_collection_service

router = APIRouter(prefix="/books", tags=["books"])


def _book_form(
    title: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    author_id: Optional[str] = Form(default=None),
    author_name: Optional[str] = Form(default=None),
    publisher_id: Optional[str] = Form(default=None),
    publisher_name: Optional[str] = Form(default=None),
    category_id: Optional[str] = Form(default=None),
    category_name: Optional[str] = Form(default=None),
) -> dict:
    return {
        "title": title,
        "description": description,
        "author_id": author_id,
        "author_name": author_name,
        "publisher_id": publisher_id,
        "publisher_name": publisher_name,
        "category_id": category_id,
        "category_name": category_name,
    }


def book_create_form(fields: dict = Depends(_book_form)) -> BookCreate:
    try:
        return BookCreate(**fields)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False)) from exc


def book_update_form(
    fields: dict = Depends(_book_form),
    clear_image: bool = Form(default=False),
) -> BookUpdate:
    # Only fields the client actually sent count as set.
    data = {key: value for key, value in fields.items() if value is not None}
    try:
        return BookUpdate(**data, clear_image=clear_image)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False)) from exc


@router.get(
    "",
    response_model=Page[BookListItem],
)
def list_books(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(default=None),
    hall_id: Optional[str] = Query(default=None),
    category_id: Optional[str] = Query(default=None),
    author_id: Optional[str] = Query(default=None),
    sort_by: SortBy = Query("recently_added"),
    sort_order: SortOrder = Query("desc"),
    service: BookService = Depends(get_book_service),
) -> Page[BookListItem]:
    """Return a page of books with ratings, demand and availability."""
    return service.list_books(
        page=page,
        per_page=per_page,
        search=search,
        hall_id=hall_id,
        category_id=category_id,
        author_id=author_id,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get(
    "/search",
    response_model=list[BookSuggestion],
)
def search_books(
    title: str = Query(..., min_length=3),
    service: BookService = Depends(get_book_service),
) -> list[BookSuggestion]:
    """Title suggestions for the book form."""
    return service.search_suggestions(title)


@router.get(
    "/{book_id}",
    response_model=BookDetail,
)
def get_book(
    book_id: str,
    service: BookService = Depends(get_book_service),
) -> BookDetail:
    return service.get_detail(book_id)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=BookOut,
)
def create_book(
    payload: BookCreate = Depends(book_create_form),
    image: Optional[UploadFile] = File(default=None),
    staff: PrincipalMixin = Depends(require_staff),
    service: BookService = Depends(get_book_service),
) -> BookOut:
    """Create a book from a multipart form. Staff only."""
    book = service.create_book(payload, image=image)
    return BookOut.model_validate(book)


@router.patch(
    "/{book_id}",
    response_model=BookOut,
)
def update_book(
    book_id: str,
    payload: BookUpdate = Depends(book_update_form),
    image: Optional[UploadFile] = File(default=None),
    staff: PrincipalMixin = Depends(require_staff),
    service: BookService = Depends(get_book_service),
) -> BookOut:
    book = service.update_book(book_id, payload, image=image)
    return BookOut.model_validate(book)


@router.delete(
    "/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
def delete_book(
    book_id: str,
    admin: PrincipalMixin = Depends(require_admin),
    service: BookService = Depends(get_book_service),
) -> Response:
    """Delete a book, its collections and its cover. Admin-only."""
    service.delete_book(book_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{book_id}/collections",
    response_model=list[CollectionOut],
)
def list_collections(
    book_id: str,
    staff: PrincipalMixin = Depends(require_staff),
    service: CollectionService = Depends(get_collection_service),
) -> list[CollectionOut]:
    return [CollectionOut.model_validate(collection) for collection in service.list_for_book(book_id)]


@router.put(
    "/{book_id}/collections",
    response_model=list[CollectionOut],
)
def upsert_collections(
    book_id: str,
    payload: CollectionUpsert,
    staff: PrincipalMixin = Depends(require_staff),
    service: CollectionService = Depends(get_collection_service),
) -> list[CollectionOut]:
    """Set per-hall copy totals for a book."""
    collections = service.upsert(book_id, payload)
    return [CollectionOut.model_validate(collection) for collection in collections]

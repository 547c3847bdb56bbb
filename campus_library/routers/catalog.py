"""Routers for the small lookup tables.

Authors, publishers, categories, halls and departments share the same shape,
so one factory builds a router per table. Payload types are bound per call,
which is why this module does not postpone annotation evaluation.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from campus_library.db.session import get_session
from campus_library.models.catalog import Author, Category, Department, Hall, NamedEntityMixin, Publisher
from campus_library.models.principal import Admin
from campus_library.schemas.catalog import HallCreate, HallOut, HallUpdate
from campus_library.schemas.common import NamedEntityCreate, NamedEntityOut, NamedEntityUpdate
from campus_library.security.principal import require_admin
from campus_library.services.catalog_service import CatalogService


def build_catalog_router(
    prefix: str,
    model: type[NamedEntityMixin],
    label: str,
    create_schema: type[BaseModel] = NamedEntityCreate,
    update_schema: type[BaseModel] = NamedEntityUpdate,
    out_schema: type[BaseModel] = NamedEntityOut,
) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[prefix.strip("/")])

    def get_service(db: Session = Depends(get_session)) -> CatalogService:
        return CatalogService(db, model, label)

    @router.get("", response_model=list[out_schema])
    def list_entities(
        skip: int = Query(0, ge=0),
        limit: int = Query(20, ge=1, le=100),
        search: Optional[str] = Query(default=None),
        service: CatalogService = Depends(get_service),
    ):
        return [out_schema.model_validate(entity) for entity in service.list(skip=skip, limit=limit, search=search)]

    @router.get("/{entity_id}", response_model=out_schema)
    def get_entity(entity_id: str, service: CatalogService = Depends(get_service)):
        return out_schema.model_validate(service.get(entity_id))

    @router.post("", status_code=status.HTTP_201_CREATED, response_model=out_schema)
    def create_entity(
        payload: create_schema,
        admin: Admin = Depends(require_admin),
        service: CatalogService = Depends(get_service),
    ):
        return out_schema.model_validate(service.create(payload))

    @router.patch("/{entity_id}", response_model=out_schema)
    def update_entity(
        entity_id: str,
        payload: update_schema,
        admin: Admin = Depends(require_admin),
        service: CatalogService = Depends(get_service),
    ):
        return out_schema.model_validate(service.update(entity_id, payload))

    @router.delete("/{entity_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
    def delete_entity(
        entity_id: str,
        admin: Admin = Depends(require_admin),
        service: CatalogService = Depends(get_service),
    ) -> Response:
        service.delete(entity_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router


authors_router = build_catalog_router("/authors", Author, "Author")
publishers_router = build_catalog_router("/publishers", Publisher, "Publisher")
categories_router = build_catalog_router("/categories", Category, "Category")
departments_router = build_catalog_router("/departments", Department, "Department")
halls_router = build_catalog_router(
    "/halls",
    Hall,
    "Hall",
    create_schema=HallCreate,
    update_schema=HallUpdate,
    out_schema=HallOut,
)

routers = [authors_router, publishers_router, categories_router, departments_router, halls_router]

from __future__ import annotations

from typing import Generic, Optional, TypeVar

from fastapi import HTTPException, status
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campus_library.models.catalog import NamedEntityMixin

N = TypeVar("N", bound=NamedEntityMixin)


class CatalogService(Generic[N]):
    """CRUD for the small lookup tables: authors, publishers, categories, halls, departments."""

    def __init__(self, db: Session, model: type[N], label: str):
        self.db = db
        self.model = model
        self.label = label

    def _not_found(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{self.label} not found.",
        )

    def list(self, *, skip: int = 0, limit: int = 20, search: Optional[str] = None) -> list[N]:
        stmt = select(self.model).order_by(self.model.name.asc())
        if search and search.strip():
            stmt = stmt.where(self.model.name.ilike(f"%{search.strip()}%"))
        stmt = stmt.offset(skip).limit(limit)
        return list(self.db.execute(stmt).scalars())

    def get(self, entity_id: str) -> N:
        entity = self.db.get(self.model, entity_id)
        if entity is None:
            raise self._not_found()
        return entity

    def create(self, payload: BaseModel) -> N:
        entity = self.model(**payload.model_dump())
        self.db.add(entity)
        self._commit()
        self.db.refresh(entity)
        return entity

    def update(self, entity_id: str, payload: BaseModel) -> N:
        entity = self.get(entity_id)
        for field, value in payload.model_dump(exclude_unset=True).items():
            if field == "name" and value is None:
                continue
            setattr(entity, field, value)
        self._commit()
        self.db.refresh(entity)
        return entity

    def delete(self, entity_id: str) -> None:
        entity = self.get(entity_id)
        self.db.delete(entity)
        self._commit()

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"{self.label} is still referenced or conflicts with an existing row.",
            ) from exc

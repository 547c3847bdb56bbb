from __future__ import annotations

import math
from datetime import datetime
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class PageMeta(BaseModel):
    current_page: int = Field(alias="currentPage")
    per_page: int = Field(alias="perPage")
    total: int
    last_page: int = Field(alias="lastPage")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def build(cls, *, page: int, per_page: int, total: int) -> "PageMeta":
        return cls(
            current_page=page,
            per_page=per_page,
            total=total,
            last_page=max(1, math.ceil(total / per_page)),
        )


class Page(BaseModel, Generic[T]):
    data: list[T]
    meta: PageMeta


class MessageOut(BaseModel):
    message: str


class NamedLite(BaseModel):
    id: str
    name: str

    model_config = ConfigDict(from_attributes=True)


class NamedEntityCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class NamedEntityUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class NamedEntityOut(BaseModel):
    id: str
    name: str
    created_at: datetime = Field(alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

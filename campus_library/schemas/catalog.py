from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from campus_library.models.principal import Gender
from campus_library.schemas.common import NamedEntityCreate, NamedEntityOut, NamedEntityUpdate, NamedLite


class HallCreate(NamedEntityCreate):
    gender: Optional[Gender] = None


class HallUpdate(NamedEntityUpdate):
    gender: Optional[Gender] = None


class HallOut(NamedEntityOut):
    gender: Optional[Gender] = None


class BookCreate(BaseModel):
    """Book form payload; each relation may be given by id or by name."""

    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    author_id: Optional[str] = None
    author_name: Optional[str] = Field(default=None, max_length=255)
    publisher_id: Optional[str] = None
    publisher_name: Optional[str] = Field(default=None, max_length=255)
    category_id: Optional[str] = None
    category_name: Optional[str] = Field(default=None, max_length=255)

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class BookUpdate(BookCreate):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    clear_image: bool = False


class BookOut(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    author_id: Optional[str] = Field(default=None, alias="authorId")
    publisher_id: Optional[str] = Field(default=None, alias="publisherId")
    category_id: Optional[str] = Field(default=None, alias="categoryId")
    author: Optional[NamedLite] = None
    publisher: Optional[NamedLite] = None
    category: Optional[NamedLite] = None
    created_at: datetime = Field(alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class BookLite(BaseModel):
    id: str
    title: str
    image_url: Optional[str] = Field(default=None, alias="imageUrl")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class BookListItem(BaseModel):
    id: str
    title: str
    author: str
    category: str
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    rating: float
    rating_count: int = Field(alias="ratingCount")
    request_count: int = Field(alias="requestCount")
    total_available_copies: int = Field(alias="totalAvailableCopies")
    available_status: bool = Field(alias="availableStatus")

    model_config = ConfigDict(populate_by_name=True)


class BookSuggestion(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    author_id: Optional[str] = Field(default=None, alias="authorId")
    publisher_id: Optional[str] = Field(default=None, alias="publisherId")
    category_id: Optional[str] = Field(default=None, alias="categoryId")
    author_name: Optional[str] = Field(default=None, alias="authorName")
    publisher_name: Optional[str] = Field(default=None, alias="publisherName")
    category_name: Optional[str] = Field(default=None, alias="categoryName")

    model_config = ConfigDict(populate_by_name=True)


class BookReviewItem(BaseModel):
    id: str
    reader_name: str = Field(alias="readerName")
    reviewed_on: date = Field(alias="reviewedOn")
    rating: int
    comment: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class HallAvailability(BaseModel):
    hall_id: str = Field(alias="hallId")
    hall_name: str = Field(alias="hallName")
    available_copies: int = Field(alias="availableCopies")
    total_copies: int = Field(alias="totalCopies")

    model_config = ConfigDict(populate_by_name=True)


class BookDetail(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    author: str
    publisher: str
    category: str
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    availability: bool
    average_rating: float = Field(alias="averageRating")
    rating_count: int = Field(alias="ratingCount")
    reviews: list[BookReviewItem]
    halls: list[HallAvailability]

    model_config = ConfigDict(populate_by_name=True)


class CollectionOut(BaseModel):
    id: str
    book_id: str = Field(alias="bookId")
    hall_id: str = Field(alias="hallId")
    hall: Optional[NamedLite] = None
    available_copies: int = Field(alias="availableCopies")
    total_copies: int = Field(alias="totalCopies")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class CollectionUpsertItem(BaseModel):
    hall_id: str = Field(alias="hallId")
    total_copies: int = Field(alias="totalCopies", ge=0)

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class CollectionUpsert(BaseModel):
    collections: list[CollectionUpsertItem]

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _unique_halls(self) -> "CollectionUpsert":
        hall_ids = [item.hall_id for item in self.collections]
        if len(hall_ids) != len(set(hall_ids)):
            raise ValueError("each hall may appear only once")
        return self


class CollectionUpdate(BaseModel):
    total_copies: Optional[int] = Field(default=None, alias="totalCopies", ge=0)
    available_copies: Optional[int] = Field(default=None, alias="availableCopies", ge=0)

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

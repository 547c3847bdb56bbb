from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from campus_library.models.circulation import LendingStatus, RequestStatus
from campus_library.schemas.catalog import BookLite
from campus_library.schemas.common import NamedLite


class RequestCreate(BaseModel):
    book_id: str = Field(alias="bookId")
    hall_id: str = Field(alias="hallId")

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class RequestFulfill(BaseModel):
    return_date: Optional[date] = Field(default=None, alias="returnDate")

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class ReaderLite(BaseModel):
    id: str
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class RequestOut(BaseModel):
    id: str
    reader_id: str = Field(alias="readerId")
    book_id: str = Field(alias="bookId")
    hall_id: str = Field(alias="hallId")
    request_date: date = Field(alias="requestDate")
    status: RequestStatus
    lending_id: Optional[str] = Field(default=None, alias="lendingId")
    created_at: datetime = Field(alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")
    reader: Optional[ReaderLite] = None
    book: Optional[BookLite] = None
    hall: Optional[NamedLite] = None

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class LendingOut(BaseModel):
    id: str
    request_id: str = Field(alias="requestId")
    volunteer_id: Optional[str] = Field(default=None, alias="volunteerId")
    issue_date: date = Field(alias="issueDate")
    return_date: Optional[date] = Field(default=None, alias="returnDate")
    status: LendingStatus
    created_at: datetime = Field(alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")
    request: Optional[RequestOut] = None

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class FulfillResult(BaseModel):
    message: str
    request: RequestOut
    lending: LendingOut

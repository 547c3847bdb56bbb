from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from campus_library.schemas.catalog import BookLite
from campus_library.schemas.circulation import LendingOut, RequestOut


class ReviewCreate(BaseModel):
    book_id: str = Field(alias="bookId")
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=1000)

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=1000)

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class ReviewOut(BaseModel):
    id: str
    reader_id: str = Field(alias="readerId")
    book_id: str = Field(alias="bookId")
    rating: int
    comment: Optional[str] = None
    reviewed_on: date = Field(alias="reviewedOn")
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class WishlistCreate(BaseModel):
    book_id: str = Field(alias="bookId")

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class WishlistOut(BaseModel):
    id: str
    book_id: str = Field(alias="bookId")
    added_on: date = Field(alias="addedOn")
    book: Optional[BookLite] = None

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class PointRuleOut(BaseModel):
    activity_type: str = Field(alias="activityType")
    points: int
    description: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class PointHistoryOut(BaseModel):
    id: str
    activity_type: str = Field(alias="activityType")
    book_id: Optional[str] = Field(default=None, alias="bookId")
    points: int
    earned_date: date = Field(alias="earnedDate")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class ReaderDashboard(BaseModel):
    total_points: int = Field(alias="totalPoints")
    pending_requests: list[RequestOut] = Field(alias="pendingRequests")
    active_lendings: list[LendingOut] = Field(alias="activeLendings")
    books_read: int = Field(alias="booksRead")
    reviews_written: int = Field(alias="reviewsWritten")
    wishlist_count: int = Field(alias="wishlistCount")
    recent_points: list[PointHistoryOut] = Field(alias="recentPoints")

    model_config = ConfigDict(populate_by_name=True)

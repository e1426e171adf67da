"""Common Pydantic schemas shared across the API."""

from datetime import datetime
from typing import Annotated, Generic, TypeVar, Optional
from pydantic import AfterValidator, BaseModel, Field

from core.utils.datetime import ensure_utc


T = TypeVar("T")

# SQLite hands back naive datetimes; everything stored is UTC
UTCDateTime = Annotated[datetime, AfterValidator(ensure_utc)]


class PaginationParams(BaseModel):
    """Pagination query parameters."""

    page: int = Field(default=1, ge=1, description="Page number (1-indexed)")
    page_size: int = Field(default=20, ge=1, le=100, description="Items per page")

    @property
    def offset(self) -> int:
        """Calculate offset from page and page_size."""
        return (self.page - 1) * self.page_size


class PaginatedResponse(BaseModel, Generic[T]):
    """Paginated response wrapper."""

    items: list[T] = Field(description="List of items for this page")
    total: int = Field(ge=0, description="Total number of items across all pages")
    page: int = Field(ge=1, description="Current page number")
    page_size: int = Field(ge=1, le=100, description="Items per page")
    total_pages: int = Field(ge=0, description="Total number of pages")

    @classmethod
    def create(
        cls,
        items: list[T],
        total: int,
        pagination: PaginationParams,
    ) -> "PaginatedResponse[T]":
        """Create a paginated response."""
        total_pages = (total + pagination.page_size - 1) // pagination.page_size
        return cls(
            items=items,
            total=total,
            page=pagination.page,
            page_size=pagination.page_size,
            total_pages=total_pages,
        )


class TimestampMixin(BaseModel):
    """Mixin for timestamp fields."""

    created_at: UTCDateTime = Field(description="Timestamp when the resource was created")
    updated_at: UTCDateTime = Field(description="Timestamp when the resource was last updated")


class ErrorDetail(BaseModel):
    """Body of an error response."""

    code: str = Field(description="Error code for programmatic handling")
    message: str = Field(description="Human readable message")
    path: str
    method: str
    details: Optional[dict | list] = None
    request_id: Optional[str] = None


class ErrorResponse(BaseModel):
    """Error response envelope."""

    error: ErrorDetail

"""Company API schemas."""

from decimal import Decimal
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field

from api.schemas.common import TimestampMixin
from database.models.companies import CompanySize


class CompanyCreate(BaseModel):
    """Schema for creating a company. Names are unique regardless of case."""

    name: str = Field(..., description="Company name, 2 to 100 characters")
    industry: Optional[str] = Field(None, max_length=100)
    size: Optional[CompanySize] = None
    location: Optional[str] = Field(None, max_length=100)
    headquarters: Optional[str] = Field(None, max_length=100)
    website: Optional[str] = Field(None, max_length=255)
    linkedin_url: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    founded_year: Optional[int] = Field(None, ge=1600, le=2100)
    is_public: Optional[bool] = None
    glassdoor_rating: Optional[Decimal] = None
    notes: Optional[str] = None


class CompanyResponse(TimestampMixin):
    """Schema for company response."""

    id: UUID
    name: str
    industry: Optional[str] = None
    size: Optional[CompanySize] = None
    location: Optional[str] = None
    headquarters: Optional[str] = None
    website: Optional[str] = None
    linkedin_url: Optional[str] = None
    description: Optional[str] = None
    founded_year: Optional[int] = None
    is_public: bool
    glassdoor_rating: Optional[Decimal] = None
    notes: Optional[str] = None
    is_active: bool
    added_by: Optional[UUID] = None
    location_display: str

    class Config:
        from_attributes = True


class CompanyDeleteResponse(BaseModel):
    """Rows removed by a company deletion, per table."""

    company_id: UUID
    deleted: dict[str, int]


class CompanyUpdate(CompanyCreate):
    name: Optional[str] = None

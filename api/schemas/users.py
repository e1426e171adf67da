"""User profile API schemas."""

from typing import Optional
from uuid import UUID
from pydantic import BaseModel, EmailStr, Field, field_validator

from api.schemas.common import TimestampMixin
from database.models.users import ExperienceLevel


class UserProfileFields(BaseModel):
    phone_number: Optional[str] = Field(None, max_length=20)
    location: Optional[str] = Field(None, max_length=100)
    linkedin_url: Optional[str] = Field(None, max_length=255)
    github_url: Optional[str] = Field(None, max_length=255)
    portfolio_url: Optional[str] = Field(None, max_length=255)
    current_job_title: Optional[str] = Field(None, max_length=100)
    experience_level: Optional[ExperienceLevel] = None
    preferred_salary_min: Optional[int] = Field(None, ge=0)
    preferred_salary_max: Optional[int] = Field(None, ge=0)

    @field_validator("phone_number", mode="before")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        """Validate phone number format."""
        if v is None:
            return None
        phone = v.strip()
        if phone and not any(c.isdigit() for c in phone):
            raise ValueError("Phone must contain at least one digit")
        return phone


class UserCreate(UserProfileFields):
    """Profile registration for an already authenticated identity."""

    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)


class UserUpdate(UserProfileFields):
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)


class UserResponse(TimestampMixin):
    """Schema for user profile response."""

    id: UUID
    email: EmailStr
    first_name: str
    last_name: str
    full_name: str
    phone_number: Optional[str] = None
    location: Optional[str] = None
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    portfolio_url: Optional[str] = None
    current_job_title: Optional[str] = None
    experience_level: ExperienceLevel
    preferred_salary_min: Optional[int] = None
    preferred_salary_max: Optional[int] = None
    is_active: bool

    class Config:
        from_attributes = True

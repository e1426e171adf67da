"""Document API schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field

from api.schemas.common import TimestampMixin, UTCDateTime
from database.models.documents import Document, DocumentType


class DocumentCreate(BaseModel):
    """Metadata of a file already written to storage."""

    name: str = Field(..., max_length=100)
    type: DocumentType
    version: Optional[str] = Field(None, max_length=20)
    file_path: str = Field(..., max_length=500, description="Storage key of the file")
    file_name: str = Field(..., max_length=255)
    file_size: int = Field(..., ge=0, description="Size in bytes")
    mime_type: str = Field(..., max_length=100)
    notes: Optional[str] = None
    tags: Optional[list[str]] = None
    job_application_id: Optional[UUID] = None
    is_public: Optional[bool] = None
    expires_at: Optional[datetime] = None


class VisibilityUpdate(BaseModel):
    is_public: bool
    expires_at: Optional[datetime] = None


class DocumentResponse(TimestampMixin):
    """Schema for document response."""

    id: UUID
    user_id: UUID
    job_application_id: Optional[UUID] = None
    name: str
    type: DocumentType
    version: str
    file_path: str
    file_name: str
    file_size: int
    mime_type: str
    notes: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    is_active: bool
    is_public: bool
    expires_at: Optional[UTCDateTime] = None
    download_count: int
    share_link: Optional[str] = None
    size_display: str = ""

    class Config:
        from_attributes = True

    @classmethod
    def from_model(cls, document: Document, share_link: Optional[str]) -> "DocumentResponse":
        response = cls.model_validate(document)
        response.share_link = share_link
        response.size_display = document.formatted_file_size()
        return response

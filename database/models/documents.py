"""
Document Models

Metadata for files a user has uploaded. The bytes live in external storage;
``file_path`` is the key used to retrieve them.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    Boolean,
    ForeignKey,
    Integer,
    DateTime,
    Text,
    JSON,
    Uuid,
    Index,
)
from database.engine import Base
from database.models.applications import label_enum
from core.utils.datetime import ensure_utc, now as utc_now
from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING
import uuid

if TYPE_CHECKING:
    from database.models.users import User
    from database.models.applications import JobApplication


class DocumentType(str, PyEnum):
    RESUME = "Resume"
    COVER_LETTER = "Cover Letter"
    PORTFOLIO = "Portfolio"
    TRANSCRIPT = "Transcript"
    CERTIFICATE = "Certificate"
    REFERENCE_LETTER = "Reference Letter"
    WRITING_SAMPLE = "Writing Sample"
    CODE_SAMPLE = "Code Sample"
    OTHER = "Other"


class Document(Base):
    """
    Uploaded document, optionally linked to one job application.

    Soft-deleted through ``is_active``; hard-deleted only when the linked
    application or the owning user is deleted.
    """

    __tablename__ = "documents"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    job_application_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("job_applications.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[DocumentType] = mapped_column(label_enum(DocumentType, 30), nullable=False)
    version: Mapped[str] = mapped_column(String(20), nullable=False, default="1.0")
    file_path: Mapped[str] = mapped_column(String(500), nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    share_url: Mapped[str | None] = mapped_column(String(255), unique=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    download_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    user: Mapped["User"] = relationship("User", back_populates="documents")
    job_application: Mapped["JobApplication | None"] = relationship(
        "JobApplication", back_populates="documents"
    )

    __table_args__ = (
        Index("idx_documents_user_active", "user_id", "is_active"),
        Index("idx_documents_user_type", "user_id", "type"),
    )

    def is_expired(self, at: datetime | None = None) -> bool:
        if not self.expires_at:
            return False
        return (ensure_utc(at) if at else utc_now()) > ensure_utc(self.expires_at)

    def can_be_shared(self, at: datetime | None = None) -> bool:
        return bool(self.is_public and self.share_url and not self.is_expired(at))

    def formatted_file_size(self) -> str:
        size = float(self.file_size)
        if size == 0:
            return "0 Bytes"
        for unit in ("Bytes", "KB", "MB"):
            if size < 1024:
                return f"{round(size, 2):g} {unit}"
            size /= 1024
        return f"{round(size, 2):g} GB"

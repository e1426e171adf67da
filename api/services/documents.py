"""
Document service functions for API endpoints.

Only metadata is stored here; file bytes live wherever ``file_path``
points. Removing a document through this service is a soft delete.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
import logging
import secrets
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.exceptions import NotFoundError, ValidationError
from core.utils.datetime import ensure_utc, now as utc_now
from core.utils.validators import sanitize_filename
from database.engine import transaction
from database.models.applications import JobApplication
from database.models.documents import Document, DocumentType
from api.services.validation import (
    coerce_enum,
    non_negative_int,
    reject_unknown_fields,
    require_length,
)

logger = logging.getLogger(__name__)

DOCUMENT_FIELDS = {
    "name",
    "type",
    "version",
    "file_path",
    "file_name",
    "file_size",
    "mime_type",
    "notes",
    "tags",
    "job_application_id",
    "is_public",
    "expires_at",
}
REQUIRED_FIELDS = ("name", "type", "file_path", "file_name", "file_size", "mime_type")


def generate_share_token() -> str:
    """Random 32 character hex token identifying a shared document."""
    return secrets.token_hex(16)


def share_link(document: Document) -> Optional[str]:
    """Public link for a shared document, or None when not shared."""
    if not document.share_url:
        return None
    return f"{settings.share_url_base.rstrip('/')}/{document.share_url}"


def _apply_visibility(document: Document, is_public: bool) -> None:
    document.is_public = is_public
    if is_public and not document.share_url:
        document.share_url = generate_share_token()
    elif not is_public:
        document.share_url = None


def _clean_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    cleaned: Dict[str, Any] = {}
    for name, value in fields.items():
        if name == "name":
            cleaned[name] = require_length(value, name, 1, 100)
        elif name == "type":
            cleaned[name] = coerce_enum(DocumentType, value, name)
        elif name == "file_size":
            size = non_negative_int(value, name)
            if size is None:
                raise ValidationError("file_size is required", {"field": name})
            cleaned[name] = size
        elif name == "file_name":
            cleaned[name] = sanitize_filename(require_length(value, name, 1, 255))
        elif name in ("file_path", "mime_type"):
            cleaned[name] = require_length(value, name, 1, 500)
        elif name == "tags":
            if value is None:
                cleaned[name] = []
            elif not isinstance(value, list) or not all(isinstance(t, str) for t in value):
                raise ValidationError("tags must be a list of strings", {"field": name})
            else:
                cleaned[name] = value
        elif name == "expires_at" and value is not None:
            cleaned[name] = ensure_utc(value)
        else:
            cleaned[name] = value
    return cleaned


async def _fetch_document(
    session: AsyncSession, user_id: uuid.UUID, document_id: uuid.UUID
) -> Document:
    result = await session.execute(
        select(Document).where(
            Document.id == document_id,
            Document.user_id == user_id,
            Document.is_active.is_(True),
        )
    )
    document = result.scalar_one_or_none()
    if document is None:
        raise NotFoundError("Document not found", {"document_id": str(document_id)})
    return document


async def create_document(
    session: AsyncSession, user_id: uuid.UUID, fields: Dict[str, Any]
) -> Document:
    """
    Register an uploaded document.

    Args:
        session: Database session
        user_id: Owner of the document
        fields: Document metadata; job_application_id, if given, must be
            one of the user's applications

    Returns:
        The created document

    Raises:
        ValidationError: On missing or malformed fields
        NotFoundError: If the linked application is not the user's
    """
    reject_unknown_fields(fields, DOCUMENT_FIELDS)
    missing = [name for name in REQUIRED_FIELDS if fields.get(name) is None]
    if missing:
        raise ValidationError(
            f"Missing required field(s): {', '.join(missing)}", {"fields": missing}
        )
    cleaned = _clean_fields(fields)
    is_public = bool(cleaned.pop("is_public", False))

    async with transaction(session, "Failed to create document"):
        application_id = cleaned.get("job_application_id")
        if application_id is not None:
            owned = await session.execute(
                select(JobApplication.id).where(
                    JobApplication.id == application_id,
                    JobApplication.user_id == user_id,
                )
            )
            if owned.scalar_one_or_none() is None:
                raise NotFoundError(
                    "Job application not found",
                    {"application_id": str(application_id)},
                )
        document = Document(user_id=user_id, **cleaned)
        _apply_visibility(document, is_public)
        session.add(document)

    logger.info("Created document %s for user %s", document.id, user_id)
    return document


async def list_documents(
    session: AsyncSession,
    user_id: uuid.UUID,
    type: Optional[str] = None,
    job_application_id: Optional[uuid.UUID] = None,
) -> List[Document]:
    """List the user's active documents, newest first."""
    query = select(Document).where(
        Document.user_id == user_id,
        Document.is_active.is_(True),
    )
    if type:
        query = query.where(Document.type == coerce_enum(DocumentType, type, "type"))
    if job_application_id is not None:
        query = query.where(Document.job_application_id == job_application_id)
    result = await session.execute(query.order_by(Document.created_at.desc()))
    return list(result.scalars().all())


async def set_visibility(
    session: AsyncSession,
    user_id: uuid.UUID,
    document_id: uuid.UUID,
    is_public: bool,
    expires_at: Optional[datetime] = None,
) -> Document:
    """
    Make a document public (issuing a share token) or private (revoking it).

    Raises:
        NotFoundError: If absent, inactive or owned by someone else
    """
    async with transaction(session, "Failed to update document"):
        document = await _fetch_document(session, user_id, document_id)
        _apply_visibility(document, is_public)
        if expires_at is not None:
            document.expires_at = ensure_utc(expires_at)
        document.updated_at = utc_now()
    return document


async def delete_document(
    session: AsyncSession, user_id: uuid.UUID, document_id: uuid.UUID
) -> None:
    """
    Soft delete a document. The row stays; it just stops being listed.

    Raises:
        NotFoundError: If absent, already deleted or owned by someone else
    """
    async with transaction(session, "Failed to delete document"):
        document = await _fetch_document(session, user_id, document_id)
        document.is_active = False
        _apply_visibility(document, False)
        document.updated_at = utc_now()
    logger.info("Soft deleted document %s", document_id)


async def open_shared_document(session: AsyncSession, token: str) -> Document:
    """
    Resolve a share token and count the download.

    Raises:
        NotFoundError: If no active public document has the token, or its
            share has expired
    """
    async with transaction(session, "Failed to open shared document"):
        result = await session.execute(
            select(Document).where(
                Document.share_url == token,
                Document.is_public.is_(True),
                Document.is_active.is_(True),
            )
        )
        document = result.scalar_one_or_none()
        if document is None or not document.can_be_shared():
            raise NotFoundError("Shared document not found")
        document.download_count += 1
    return document

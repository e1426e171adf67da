"""
Document endpoints.

Files are uploaded to storage by the client; these endpoints manage their
metadata and public sharing.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_active_user
from api.schemas.documents import DocumentCreate, DocumentResponse, VisibilityUpdate
from api.services import documents as document_service
from database.engine import get_db
from database.models.documents import DocumentType
from database.models.users import User

router = APIRouter()

# Public, no identity required
shared_router = APIRouter()


@router.post(
    "",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register document",
)
async def create_document(
    request: DocumentCreate,
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> DocumentResponse:
    document = await document_service.create_document(
        db, current_user.id, request.model_dump(exclude_unset=True)
    )
    return DocumentResponse.from_model(document, document_service.share_link(document))


@router.get(
    "",
    response_model=list[DocumentResponse],
    summary="List documents",
    description="Active documents only, newest first",
)
async def list_documents(
    document_type: Optional[DocumentType] = Query(None, alias="type"),
    job_application_id: Optional[uuid.UUID] = Query(None),
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> list[DocumentResponse]:
    documents = await document_service.list_documents(
        db, current_user.id, type=document_type, job_application_id=job_application_id
    )
    return [
        DocumentResponse.from_model(document, document_service.share_link(document))
        for document in documents
    ]


@router.patch(
    "/{document_id}/visibility",
    response_model=DocumentResponse,
    summary="Share or unshare document",
)
async def update_visibility(
    request: VisibilityUpdate,
    document_id: uuid.UUID = Path(..., description="Document ID"),
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> DocumentResponse:
    document = await document_service.set_visibility(
        db, current_user.id, document_id, request.is_public, request.expires_at
    )
    return DocumentResponse.from_model(document, document_service.share_link(document))


@router.delete(
    "/{document_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete document",
    description="Soft delete; the file itself is left in storage",
)
async def delete_document(
    document_id: uuid.UUID = Path(..., description="Document ID"),
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> Response:
    await document_service.delete_document(db, current_user.id, document_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@shared_router.get(
    "/{token}",
    response_model=DocumentResponse,
    summary="Open shared document",
    description="Resolves a share link and counts the download",
)
async def open_shared_document(
    token: str = Path(..., min_length=1, max_length=255),
    db: AsyncSession = Depends(get_db),
) -> DocumentResponse:
    document = await document_service.open_shared_document(db, token)
    return DocumentResponse.from_model(document, document_service.share_link(document))

"""
Job application endpoints.

CRUD over the caller's applications plus status transitions and the
status timeline.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_active_user
from api.schemas.applications import (
    ApplicationCreate,
    ApplicationResponse,
    ApplicationUpdate,
    StatusChangeRequest,
    TimelineEntry,
    TimelineResponse,
)
from api.schemas.common import PaginatedResponse, PaginationParams
from api.services import applications as application_service
from api.services import cascade as cascade_service
from core.utils.datetime import now as utc_now
from database.engine import get_db
from database.models.applications import ApplicationStatus, Priority
from database.models.users import User

router = APIRouter()


@router.post(
    "",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create application",
    description="Create an application; its first status history entry is written with it",
)
async def create_application(
    request: ApplicationCreate,
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    application = await application_service.create_application(
        db, current_user.id, request.model_dump(exclude_unset=True)
    )
    return ApplicationResponse.from_model(application)


@router.get(
    "",
    response_model=PaginatedResponse[ApplicationResponse],
    summary="List applications",
)
async def list_applications(
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    priority: Optional[Priority] = Query(None),
    is_starred: Optional[bool] = Query(None),
    is_archived: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, description="Matches job title, location and notes"),
    sort_by: str = Query("updated_at"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> PaginatedResponse[ApplicationResponse]:
    pagination = PaginationParams(page=page, page_size=page_size)
    items, total = await application_service.list_applications(
        db,
        current_user.id,
        status=status_filter,
        priority=priority,
        is_starred=is_starred,
        is_archived=is_archived,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        limit=pagination.page_size,
        offset=pagination.offset,
    )
    moment = utc_now()
    return PaginatedResponse[ApplicationResponse].create(
        [ApplicationResponse.from_model(item, moment) for item in items],
        total,
        pagination,
    )


@router.get(
    "/{application_id}",
    response_model=ApplicationResponse,
    summary="Get application",
)
async def get_application(
    application_id: uuid.UUID = Path(..., description="Application ID"),
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    application = await application_service.get_application(
        db, current_user.id, application_id
    )
    return ApplicationResponse.from_model(application)


@router.patch(
    "/{application_id}",
    response_model=ApplicationResponse,
    summary="Update application",
    description="Partial update. A changed status is recorded in the timeline.",
)
async def update_application(
    request: ApplicationUpdate,
    application_id: uuid.UUID = Path(..., description="Application ID"),
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    application = await application_service.update_application(
        db, current_user.id, application_id, request.model_dump(exclude_unset=True)
    )
    return ApplicationResponse.from_model(application)


@router.post(
    "/{application_id}/status",
    response_model=ApplicationResponse,
    summary="Change application status",
    description="Setting the current status again is a no-op",
)
async def change_status(
    request: StatusChangeRequest,
    application_id: uuid.UUID = Path(..., description="Application ID"),
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    application = await application_service.update_application_status(
        db,
        current_user.id,
        application_id,
        request.status,
        changed_by=request.changed_by,
        notes=request.notes,
        metadata=request.metadata,
    )
    return ApplicationResponse.from_model(application)


@router.get(
    "/{application_id}/timeline",
    response_model=TimelineResponse,
    summary="Status timeline",
    description="Status history, oldest first, each entry classified",
)
async def get_timeline(
    application_id: uuid.UUID = Path(..., description="Application ID"),
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> TimelineResponse:
    application = await application_service.get_application(
        db, current_user.id, application_id
    )
    history = await application_service.get_timeline(db, current_user.id, application_id)
    moment = utc_now()
    return TimelineResponse(
        application_id=application.id,
        current_status=application.status,
        entries=[TimelineEntry.from_history(entry, moment) for entry in history],
    )


@router.delete(
    "/{application_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete application",
    description="Removes the application with its history, keywords and linked documents",
)
async def delete_application(
    application_id: uuid.UUID = Path(..., description="Application ID"),
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> Response:
    await cascade_service.delete_application(db, current_user.id, application_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

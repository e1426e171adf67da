"""Company endpoints. Companies are shared; only the user who added one may change it."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_active_user
from api.schemas.common import PaginatedResponse, PaginationParams
from api.schemas.companies import (
    CompanyCreate,
    CompanyDeleteResponse,
    CompanyResponse,
    CompanyUpdate,
)
from api.services import cascade as cascade_service
from api.services import companies as company_service
from database.engine import get_db
from database.models.users import User

router = APIRouter()


@router.post(
    "",
    response_model=CompanyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create company",
    description="Names are unique ignoring case; a duplicate returns 409",
)
async def create_company(
    request: CompanyCreate,
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> CompanyResponse:
    company = await company_service.create_company(
        db, current_user.id, request.model_dump(exclude_unset=True)
    )
    return CompanyResponse.model_validate(company)


@router.get(
    "",
    response_model=PaginatedResponse[CompanyResponse],
    summary="List companies",
)
async def list_companies(
    search: Optional[str] = Query(None, description="Matches the company name"),
    industry: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> PaginatedResponse[CompanyResponse]:
    pagination = PaginationParams(page=page, page_size=page_size)
    items, total = await company_service.list_companies(
        db,
        search=search,
        industry=industry,
        limit=pagination.page_size,
        offset=pagination.offset,
    )
    return PaginatedResponse[CompanyResponse].create(
        [CompanyResponse.model_validate(item) for item in items],
        total,
        pagination,
    )


@router.get(
    "/{company_id}",
    response_model=CompanyResponse,
    summary="Get company",
)
async def get_company(
    company_id: uuid.UUID = Path(..., description="Company ID"),
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> CompanyResponse:
    company = await company_service.get_company(db, company_id)
    return CompanyResponse.model_validate(company)


@router.patch(
    "/{company_id}",
    response_model=CompanyResponse,
    summary="Update company",
)
async def update_company(
    request: CompanyUpdate,
    company_id: uuid.UUID = Path(..., description="Company ID"),
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> CompanyResponse:
    company = await company_service.update_company(
        db, current_user.id, company_id, request.model_dump(exclude_unset=True)
    )
    return CompanyResponse.model_validate(company)


@router.delete(
    "/{company_id}",
    response_model=CompanyDeleteResponse,
    summary="Delete company",
    description=(
        "Only the user who added a company may delete it. Their applications at "
        "the company go with it; the company row stays while other users still "
        "reference it"
    ),
)
async def delete_company(
    company_id: uuid.UUID = Path(..., description="Company ID"),
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> CompanyDeleteResponse:
    counts = await cascade_service.delete_company(db, current_user.id, company_id)
    return CompanyDeleteResponse(company_id=company_id, deleted=counts)

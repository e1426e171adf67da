"""Keyword endpoints, nested under an application."""

import uuid

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_active_user
from api.schemas.keywords import (
    ApplicationKeywordResponse,
    KeywordAttach,
    SkillMatchSummary,
)
from api.services import keywords as keyword_service
from database.engine import get_db
from database.models.users import User

router = APIRouter()


@router.post(
    "/{application_id}/keywords",
    response_model=ApplicationKeywordResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Attach keyword",
    description="The gap score is computed from required level against the user's level",
)
async def add_keyword(
    request: KeywordAttach,
    application_id: uuid.UUID = Path(..., description="Application ID"),
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationKeywordResponse:
    association = await keyword_service.add_keyword(
        db, current_user.id, application_id, request.model_dump(exclude_unset=True)
    )
    return ApplicationKeywordResponse.from_model(association)


@router.get(
    "/{application_id}/keywords",
    response_model=list[ApplicationKeywordResponse],
    summary="List keywords",
)
async def list_keywords(
    application_id: uuid.UUID = Path(..., description="Application ID"),
    gaps_only: bool = Query(False),
    strengths_only: bool = Query(False),
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> list[ApplicationKeywordResponse]:
    associations = await keyword_service.list_application_keywords(
        db,
        current_user.id,
        application_id,
        gaps_only=gaps_only,
        strengths_only=strengths_only,
    )
    return [ApplicationKeywordResponse.from_model(a) for a in associations]


@router.get(
    "/{application_id}/keywords/summary",
    response_model=SkillMatchSummary,
    summary="Skill match summary",
)
async def get_skill_summary(
    application_id: uuid.UUID = Path(..., description="Application ID"),
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> SkillMatchSummary:
    summary = await keyword_service.skill_match_summary(
        db, current_user.id, application_id
    )
    return SkillMatchSummary(**summary)

"""
Keyword service functions for API endpoints.

Associates keywords with a user's applications and keeps each
association's gap score in step with its fields.
"""

from typing import Any, Dict, List, Optional
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.exceptions import ConflictError, NotFoundError, ValidationError
from database.engine import transaction
from database.models.applications import JobApplication
from database.models.keywords import (
    ApplicationKeyword,
    Keyword,
    KeywordCategory,
    KeywordPriority,
    KeywordSource,
    SkillLevel,
)
from api.services.validation import (
    coerce_enum,
    non_negative_int,
    reject_unknown_fields,
    require_length,
)

logger = logging.getLogger(__name__)

ASSOCIATION_FIELDS = {
    "source",
    "match_strength",
    "in_resume",
    "resume_frequency",
    "job_frequency",
    "is_required",
    "is_preferred",
    "skill_level",
    "years_required",
    "user_skill_level",
    "user_years_experience",
    "priority",
    "notes",
}
KEYWORD_FIELDS = {"word", "category"}

ENUM_FIELDS = {
    "source": KeywordSource,
    "skill_level": SkillLevel,
    "user_skill_level": SkillLevel,
    "priority": KeywordPriority,
}
COUNT_FIELDS = {
    "resume_frequency",
    "job_frequency",
    "years_required",
    "user_years_experience",
}


def _clean_association(fields: Dict[str, Any]) -> Dict[str, Any]:
    cleaned: Dict[str, Any] = {}
    for name, value in fields.items():
        if name in ENUM_FIELDS:
            cleaned[name] = coerce_enum(ENUM_FIELDS[name], value, name)
        elif name in COUNT_FIELDS:
            cleaned[name] = non_negative_int(value, name)
        elif name == "match_strength":
            if not isinstance(value, (int, float)) or not 0 <= value <= 10:
                raise ValidationError(
                    "match_strength must be between 0 and 10", {"field": name}
                )
            cleaned[name] = float(value)
        elif name in ("in_resume", "is_required", "is_preferred"):
            cleaned[name] = bool(value)
        else:
            cleaned[name] = value
    # NOT NULL columns fall back to their defaults
    nullable = {"years_required", "notes"}
    return {k: v for k, v in cleaned.items() if v is not None or k in nullable}


async def _ensure_application(
    session: AsyncSession, user_id: uuid.UUID, application_id: uuid.UUID
) -> None:
    result = await session.execute(
        select(JobApplication.id).where(
            JobApplication.id == application_id,
            JobApplication.user_id == user_id,
        )
    )
    if result.scalar_one_or_none() is None:
        raise NotFoundError(
            "Job application not found", {"application_id": str(application_id)}
        )


async def get_or_create_keyword(
    session: AsyncSession, word: str, category: KeywordCategory = KeywordCategory.OTHER
) -> Keyword:
    """
    Look a keyword up by its lower-cased form, creating it if needed.

    Each call counts as one more use of the keyword. Does not commit.
    """
    normalized = word.strip().lower()
    result = await session.execute(select(Keyword).where(Keyword.word == normalized))
    keyword = result.scalar_one_or_none()
    if keyword is None:
        keyword = Keyword(word=normalized, category=category, frequency=1)
        session.add(keyword)
        await session.flush()
    else:
        keyword.frequency += 1
    return keyword


async def add_keyword(
    session: AsyncSession,
    user_id: uuid.UUID,
    application_id: uuid.UUID,
    fields: Dict[str, Any],
) -> ApplicationKeyword:
    """
    Attach a keyword to one of the user's applications.

    Args:
        session: Database session
        user_id: Owner of the application
        application_id: Application to attach to
        fields: ``word`` (required), ``category`` and association fields

    Returns:
        The association with its computed gap score and keyword loaded

    Raises:
        ValidationError: On malformed fields
        NotFoundError: If the application is not the user's
        ConflictError: If the keyword is already attached
    """
    reject_unknown_fields(fields, KEYWORD_FIELDS | ASSOCIATION_FIELDS)
    fields = dict(fields)
    word = require_length(fields.pop("word", None), "word", 1, 100)
    category = coerce_enum(
        KeywordCategory, fields.pop("category", None) or KeywordCategory.OTHER, "category"
    )
    cleaned = _clean_association(fields)

    conflict = f"Keyword '{word.lower()}' is already attached to this application"
    async with transaction(
        session, "Failed to add keyword", conflict_message=conflict
    ):
        await _ensure_application(session, user_id, application_id)
        keyword = await get_or_create_keyword(session, word, category)

        existing = await session.execute(
            select(ApplicationKeyword.id).where(
                ApplicationKeyword.job_application_id == application_id,
                ApplicationKeyword.keyword_id == keyword.id,
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(conflict, {"word": keyword.word})

        association = ApplicationKeyword(
            job_application_id=application_id,
            keyword=keyword,
            **cleaned,
        )
        _apply_defaults(association)
        association.recalculate_gap_score()
        session.add(association)

    logger.info(
        "Attached keyword %s to application %s (gap %.2f)",
        keyword.word,
        application_id,
        association.gap_score,
    )
    return association


def _apply_defaults(association: ApplicationKeyword) -> None:
    # Column defaults only apply at INSERT; the gap score needs them now
    if association.is_required is None:
        association.is_required = False
    if association.is_preferred is None:
        association.is_preferred = False
    if association.skill_level is None:
        association.skill_level = SkillLevel.NOT_SPECIFIED
    if association.user_skill_level is None:
        association.user_skill_level = SkillLevel.NONE
    if association.user_years_experience is None:
        association.user_years_experience = 0


async def list_application_keywords(
    session: AsyncSession,
    user_id: uuid.UUID,
    application_id: uuid.UUID,
    gaps_only: bool = False,
    strengths_only: bool = False,
) -> List[ApplicationKeyword]:
    """
    Keywords attached to an application.

    Gaps are ordered largest first, strengths strongest first, otherwise
    by match strength.
    """
    await _ensure_application(session, user_id, application_id)
    query = (
        select(ApplicationKeyword)
        .options(selectinload(ApplicationKeyword.keyword))
        .where(ApplicationKeyword.job_application_id == application_id)
    )
    if gaps_only:
        query = query.where(ApplicationKeyword.gap_score > 0).order_by(
            ApplicationKeyword.gap_score.desc()
        )
    elif strengths_only:
        query = query.where(ApplicationKeyword.gap_score < 0).order_by(
            ApplicationKeyword.gap_score.asc()
        )
    else:
        query = query.order_by(ApplicationKeyword.match_strength.desc())
    result = await session.execute(query)
    return list(result.scalars().all())


async def skill_match_summary(
    session: AsyncSession, user_id: uuid.UUID, application_id: uuid.UUID
) -> Dict[str, Any]:
    """
    Roll up the keyword associations of an application.

    Returns:
        Dictionary with total_keywords, required_keywords, matched_keywords
        (present in the resume), skill_gaps, strengths and
        average_match_strength (None when there are no keywords)
    """
    associations = await list_application_keywords(session, user_id, application_id)
    total = len(associations)
    average: Optional[float] = None
    if total:
        average = round(sum(a.match_strength for a in associations) / total, 2)
    return {
        "total_keywords": total,
        "required_keywords": sum(1 for a in associations if a.is_required),
        "matched_keywords": sum(1 for a in associations if a.in_resume),
        "skill_gaps": sum(1 for a in associations if a.is_skill_gap),
        "strengths": sum(1 for a in associations if a.is_strength),
        "average_match_strength": average,
    }

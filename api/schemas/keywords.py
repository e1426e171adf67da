"""Keyword API schemas."""

from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field

from database.models.keywords import (
    ApplicationKeyword,
    KeywordCategory,
    KeywordPriority,
    KeywordSource,
    SkillLevel,
)


class KeywordAttach(BaseModel):
    """Schema for attaching a keyword to an application."""

    word: str = Field(..., min_length=1, max_length=100)
    category: Optional[KeywordCategory] = None
    source: Optional[KeywordSource] = None
    match_strength: Optional[float] = Field(None, ge=0, le=10)
    in_resume: Optional[bool] = None
    resume_frequency: Optional[int] = Field(None, ge=0)
    job_frequency: Optional[int] = Field(None, ge=0)
    is_required: Optional[bool] = None
    is_preferred: Optional[bool] = None
    skill_level: Optional[SkillLevel] = None
    years_required: Optional[int] = Field(None, ge=0)
    user_skill_level: Optional[SkillLevel] = None
    user_years_experience: Optional[int] = Field(None, ge=0)
    priority: Optional[KeywordPriority] = None
    notes: Optional[str] = None


class ApplicationKeywordResponse(BaseModel):
    id: UUID
    job_application_id: UUID
    keyword_id: UUID
    word: str
    category: KeywordCategory
    source: KeywordSource
    match_strength: float
    match_percentage: int
    in_resume: bool
    is_required: bool
    is_preferred: bool
    skill_level: SkillLevel
    years_required: Optional[int] = None
    user_skill_level: SkillLevel
    user_years_experience: int
    gap_score: float
    is_skill_gap: bool
    is_strength: bool
    priority: KeywordPriority
    notes: Optional[str] = None

    @classmethod
    def from_model(cls, association: ApplicationKeyword) -> "ApplicationKeywordResponse":
        return cls(
            id=association.id,
            job_application_id=association.job_application_id,
            keyword_id=association.keyword.id,
            word=association.keyword.word,
            category=association.keyword.category,
            source=association.source,
            match_strength=association.match_strength,
            match_percentage=association.match_percentage,
            in_resume=association.in_resume,
            is_required=association.is_required,
            is_preferred=association.is_preferred,
            skill_level=association.skill_level,
            years_required=association.years_required,
            user_skill_level=association.user_skill_level,
            user_years_experience=association.user_years_experience,
            gap_score=association.gap_score,
            is_skill_gap=association.is_skill_gap,
            is_strength=association.is_strength,
            priority=association.priority,
            notes=association.notes,
        )


class SkillMatchSummary(BaseModel):
    total_keywords: int
    required_keywords: int
    matched_keywords: int
    skill_gaps: int
    strengths: int
    average_match_strength: Optional[float] = None

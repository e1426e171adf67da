"""
Keyword Models

A shared keyword vocabulary plus the per-application join that records how
a keyword relates to a posting and to the user's own experience.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    Boolean,
    ForeignKey,
    Integer,
    Float,
    DateTime,
    Text,
    Uuid,
    Index,
    UniqueConstraint,
)
from database.engine import Base
from database.models.applications import Priority, label_enum
from core.utils.datetime import now as utc_now
from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING
import uuid

if TYPE_CHECKING:
    from database.models.applications import JobApplication


class KeywordCategory(str, PyEnum):
    TECHNICAL_SKILL = "Technical Skill"
    SOFT_SKILL = "Soft Skill"
    PROGRAMMING_LANGUAGE = "Programming Language"
    FRAMEWORK = "Framework"
    TOOL = "Tool"
    CERTIFICATION = "Certification"
    INDUSTRY = "Industry"
    ROLE = "Role"
    OTHER = "Other"


class KeywordSource(str, PyEnum):
    JOB_DESCRIPTION = "Job Description"
    JOB_REQUIREMENTS = "Job Requirements"
    USER_ADDED = "User Added"
    AI_EXTRACTED = "AI Extracted"
    RESUME_MATCH = "Resume Match"


class SkillLevel(str, PyEnum):
    """Proficiency scale shared by posting requirements and the user."""

    NONE = "None"
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    EXPERT = "Expert"
    NOT_SPECIFIED = "Not Specified"


class KeywordPriority(str, PyEnum):
    LOW = Priority.LOW.value
    MEDIUM = Priority.MEDIUM.value
    HIGH = Priority.HIGH.value
    CRITICAL = "Critical"


# Ranked scale used for gap scoring; NOT_SPECIFIED is deliberately absent
SKILL_LEVEL_SCALE: tuple[SkillLevel, ...] = (
    SkillLevel.NONE,
    SkillLevel.BEGINNER,
    SkillLevel.INTERMEDIATE,
    SkillLevel.ADVANCED,
    SkillLevel.EXPERT,
)


def _scale_index(level: SkillLevel | None) -> int:
    try:
        return SKILL_LEVEL_SCALE.index(level)
    except ValueError:
        return -1


def calculate_gap_score(
    *,
    is_required: bool,
    is_preferred: bool,
    skill_level: SkillLevel | None,
    user_skill_level: SkillLevel | None,
    years_required: int | None,
    user_years_experience: int | None,
) -> float:
    """
    Skill gap between a posting requirement and the user's proficiency.

    Positive means a gap, negative means the user exceeds the requirement,
    zero is neutral. Keywords neither required nor preferred always score 0.
    """
    if not is_required and not is_preferred:
        return 0.0

    user_years = user_years_experience or 0
    score = 0.0

    if is_required and user_skill_level == SkillLevel.NONE:
        score = 5.0
    elif years_required and user_years < years_required:
        score = min((years_required - user_years) * 0.5, 3.0)
    elif years_required and user_years > years_required:
        score = -0.5

    required_index = _scale_index(skill_level)
    user_index = _scale_index(user_skill_level)
    if required_index > user_index:
        score += (required_index - user_index) * 0.5
    elif user_index > required_index:
        score -= (user_index - required_index) * 0.2

    return round(score, 2)


class Keyword(Base):
    """A normalised (lower-cased) keyword."""

    __tablename__ = "keywords"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    word: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    category: Mapped[KeywordCategory] = mapped_column(
        label_enum(KeywordCategory, 30), nullable=False, default=KeywordCategory.OTHER
    )
    frequency: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    applications: Mapped[list["ApplicationKeyword"]] = relationship(
        "ApplicationKeyword", back_populates="keyword", passive_deletes=True
    )


class ApplicationKeyword(Base):
    """Join between an application and a keyword, with match metadata."""

    __tablename__ = "application_keywords"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    job_application_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("job_applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    keyword_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("keywords.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    source: Mapped[KeywordSource] = mapped_column(
        label_enum(KeywordSource, 30), nullable=False, default=KeywordSource.JOB_DESCRIPTION
    )
    match_strength: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    in_resume: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    resume_frequency: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    job_frequency: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    is_required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_preferred: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    skill_level: Mapped[SkillLevel] = mapped_column(
        label_enum(SkillLevel, 20), nullable=False, default=SkillLevel.NOT_SPECIFIED
    )
    years_required: Mapped[int | None] = mapped_column(Integer)
    user_skill_level: Mapped[SkillLevel] = mapped_column(
        label_enum(SkillLevel, 20), nullable=False, default=SkillLevel.NONE
    )
    user_years_experience: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    gap_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    priority: Mapped[KeywordPriority] = mapped_column(
        label_enum(KeywordPriority, 10), nullable=False, default=KeywordPriority.MEDIUM
    )
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    job_application: Mapped["JobApplication"] = relationship(
        "JobApplication", back_populates="keywords"
    )
    keyword: Mapped["Keyword"] = relationship("Keyword", back_populates="applications")

    __table_args__ = (
        UniqueConstraint(
            "job_application_id", "keyword_id", name="uq_application_keywords_pair"
        ),
        Index("idx_application_keywords_gap", "job_application_id", "gap_score"),
    )

    def recalculate_gap_score(self) -> float:
        """Recompute and store ``gap_score`` from the current fields."""
        self.gap_score = calculate_gap_score(
            is_required=self.is_required,
            is_preferred=self.is_preferred,
            skill_level=self.skill_level,
            user_skill_level=self.user_skill_level,
            years_required=self.years_required,
            user_years_experience=self.user_years_experience,
        )
        return self.gap_score

    @property
    def is_skill_gap(self) -> bool:
        return self.gap_score > 0

    @property
    def is_strength(self) -> bool:
        return self.gap_score < 0

    @property
    def match_percentage(self) -> int:
        return round(self.match_strength / 10 * 100)

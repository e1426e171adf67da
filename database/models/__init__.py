"""ORM models. Importing this package registers every table on Base.metadata."""

from database.models.users import User, ExperienceLevel
from database.models.companies import Company, CompanySize
from database.models.applications import (
    ApplicationStatus,
    JobApplication,
    JobBoardSource,
    JobExperienceLevel,
    Priority,
    WorkMode,
    WorkType,
)
from database.models.status_history import ChangedBy, StatusHistory
from database.models.documents import Document, DocumentType
from database.models.keywords import (
    ApplicationKeyword,
    Keyword,
    KeywordCategory,
    KeywordPriority,
    KeywordSource,
    SkillLevel,
)

__all__ = [
    "ApplicationKeyword",
    "ApplicationStatus",
    "ChangedBy",
    "Company",
    "CompanySize",
    "Document",
    "DocumentType",
    "ExperienceLevel",
    "JobApplication",
    "JobBoardSource",
    "JobExperienceLevel",
    "Keyword",
    "KeywordCategory",
    "KeywordPriority",
    "KeywordSource",
    "Priority",
    "SkillLevel",
    "StatusHistory",
    "User",
    "WorkMode",
    "WorkType",
]

"""Job application API schemas."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID
from pydantic import BaseModel, Field

from api.schemas.common import TimestampMixin, UTCDateTime
from core.lifecycle import TransitionKind, classify_transition, days_since, transition_label
from core.utils.datetime import ensure_utc
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


class ApplicationFields(BaseModel):
    """Optional application fields shared by create and update."""

    job_description: Optional[str] = None
    job_requirements: Optional[str] = None
    job_url: Optional[str] = Field(None, max_length=500)
    job_board_source: Optional[JobBoardSource] = None
    location: Optional[str] = Field(None, max_length=100)
    work_type: Optional[WorkType] = None
    work_mode: Optional[WorkMode] = None
    salary_min: Optional[int] = Field(None, ge=0)
    salary_max: Optional[int] = Field(None, ge=0)
    salary_currency: Optional[str] = Field(None, min_length=3, max_length=3)
    experience_level: Optional[JobExperienceLevel] = None
    status: Optional[ApplicationStatus] = None
    priority: Optional[Priority] = None
    applied_date: Optional[datetime] = None
    last_contact_date: Optional[datetime] = None
    follow_up_date: Optional[datetime] = None
    interview_date: Optional[datetime] = None
    expected_response_date: Optional[datetime] = None
    response_received: Optional[bool] = None
    contact_person: Optional[str] = Field(None, max_length=100)
    contact_email: Optional[str] = Field(None, max_length=100)
    contact_phone: Optional[str] = Field(None, max_length=20)
    recruiter_name: Optional[str] = Field(None, max_length=100)
    recruiter_email: Optional[str] = Field(None, max_length=100)
    hiring_manager_name: Optional[str] = Field(None, max_length=100)
    hiring_manager_email: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None
    interview_notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    custom_fields: Optional[dict[str, Any]] = None
    is_starred: Optional[bool] = None
    is_archived: Optional[bool] = None


class ApplicationCreate(ApplicationFields):
    """Schema for creating an application. Status defaults to Interested."""

    company_id: UUID
    job_title: str = Field(..., description="Job title, 2 to 100 characters")


class ApplicationUpdate(ApplicationFields):
    """Schema for a partial update. Only the fields sent are changed."""

    company_id: Optional[UUID] = None
    job_title: Optional[str] = None
    status_notes: Optional[str] = Field(
        None, description="Notes recorded on the status history entry"
    )
    changed_by: Optional[ChangedBy] = None


class StatusChangeRequest(BaseModel):
    """Schema for moving an application to a new status."""

    status: ApplicationStatus
    changed_by: ChangedBy = ChangedBy.USER
    notes: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class CompanySummary(BaseModel):
    id: UUID
    name: str
    industry: Optional[str] = None
    location: Optional[str] = None

    class Config:
        from_attributes = True


class ApplicationResponse(TimestampMixin):
    """Schema for application response."""

    id: UUID
    user_id: UUID
    company_id: UUID
    company: Optional[CompanySummary] = None
    job_title: str
    job_description: Optional[str] = None
    job_requirements: Optional[str] = None
    job_url: Optional[str] = None
    job_board_source: JobBoardSource
    location: Optional[str] = None
    work_type: WorkType
    work_mode: Optional[WorkMode] = None
    salary_min: Optional[int] = None
    salary_max: Optional[int] = None
    salary_currency: str
    experience_level: Optional[JobExperienceLevel] = None
    status: ApplicationStatus
    priority: Priority
    applied_date: Optional[UTCDateTime] = None
    last_contact_date: Optional[UTCDateTime] = None
    follow_up_date: Optional[UTCDateTime] = None
    interview_date: Optional[UTCDateTime] = None
    expected_response_date: Optional[UTCDateTime] = None
    response_received: bool
    contact_person: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    recruiter_name: Optional[str] = None
    recruiter_email: Optional[str] = None
    hiring_manager_name: Optional[str] = None
    hiring_manager_email: Optional[str] = None
    notes: Optional[str] = None
    interview_notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    custom_fields: Optional[dict[str, Any]] = None
    is_starred: bool
    is_archived: bool

    # Derived
    salary_range: str = "Not specified"
    follow_up_overdue: bool = False
    days_since_application: Optional[int] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_model(
        cls, application: JobApplication, now: Optional[datetime] = None
    ) -> "ApplicationResponse":
        response = cls.model_validate(application)
        response.salary_range = application.salary_range_display()
        response.follow_up_overdue = application.is_overdue(now)
        response.days_since_application = application.days_since_applied(now)
        return response


class TimelineEntry(BaseModel):
    """One status history row with its classification."""

    id: UUID
    sequence: int
    from_status: Optional[ApplicationStatus] = None
    to_status: ApplicationStatus
    changed_by: ChangedBy
    notes: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: UTCDateTime
    kind: TransitionKind
    label: str
    days_ago: int

    @classmethod
    def from_history(
        cls, entry: StatusHistory, now: Optional[datetime] = None
    ) -> "TimelineEntry":
        return cls(
            id=entry.id,
            sequence=entry.sequence,
            from_status=entry.from_status,
            to_status=entry.to_status,
            changed_by=entry.changed_by,
            notes=entry.notes,
            metadata=entry.details or {},
            created_at=ensure_utc(entry.created_at),
            kind=classify_transition(entry.from_status, entry.to_status),
            label=transition_label(entry.from_status, entry.to_status),
            days_ago=days_since(entry.created_at, now),
        )


class TimelineResponse(BaseModel):
    application_id: UUID
    current_status: ApplicationStatus
    entries: list[TimelineEntry]


class RecentChange(TimelineEntry):
    """A timeline entry with enough context to show it on its own."""

    application_id: UUID
    job_title: str
    company_name: Optional[str] = None

    @classmethod
    def from_history(
        cls, entry: StatusHistory, now: Optional[datetime] = None
    ) -> "RecentChange":
        base = TimelineEntry.from_history(entry, now)
        application = entry.job_application
        return cls(
            **base.model_dump(),
            application_id=application.id,
            job_title=application.job_title,
            company_name=application.company.name if application.company else None,
        )

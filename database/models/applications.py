"""
Application Models

Job applications tracked by a single user, from first interest to a final
outcome. Status changes are recorded in StatusHistory by the application
service; nothing on this model writes history implicitly.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    Boolean,
    ForeignKey,
    Integer,
    DateTime,
    Text,
    JSON,
    Uuid,
    func,
    Enum as SQLEnum,
    Index,
)
from database.engine import Base
from core.utils.datetime import days_elapsed, ensure_utc, now as utc_now
from datetime import datetime
from enum import Enum as PyEnum
from typing import Any, TYPE_CHECKING
import uuid

if TYPE_CHECKING:
    from database.models.users import User
    from database.models.companies import Company
    from database.models.documents import Document
    from database.models.status_history import StatusHistory
    from database.models.keywords import ApplicationKeyword


def _enum_values(enum: type[PyEnum]) -> list[str]:
    return [member.value for member in enum]


def label_enum(enum: type[PyEnum], length: int = 50) -> SQLEnum:
    """String-backed enum column storing the human readable values."""
    return SQLEnum(
        enum, native_enum=False, length=length, values_callable=_enum_values
    )


# ==================== Application Enums ===================== #
class ApplicationStatus(str, PyEnum):
    """Pipeline status of an application. Order matters, see core.lifecycle."""

    INTERESTED = "Interested"
    APPLIED = "Applied"
    APPLICATION_VIEWED = "Application Viewed"
    PHONE_SCREENING = "Phone Screening"
    TECHNICAL_INTERVIEW = "Technical Interview"
    ONSITE_INTERVIEW = "On-site Interview"
    FINAL_INTERVIEW = "Final Interview"
    REFERENCE_CHECK = "Reference Check"
    OFFER_EXTENDED = "Offer Extended"
    OFFER_ACCEPTED = "Offer Accepted"
    OFFER_DECLINED = "Offer Declined"
    REJECTED = "Rejected"
    WITHDRAWN = "Withdrawn"
    ON_HOLD = "On Hold"


class JobBoardSource(str, PyEnum):
    """Where the posting was found."""

    LINKEDIN = "LinkedIn"
    INDEED = "Indeed"
    GLASSDOOR = "Glassdoor"
    ANGELLIST = "AngelList"
    ZIPRECRUITER = "ZipRecruiter"
    MONSTER = "Monster"
    CAREERBUILDER = "CareerBuilder"
    COMPANY_WEBSITE = "Company Website"
    REFERRAL = "Referral"
    RECRUITER_CONTACT = "Recruiter Contact"
    JOB_FAIR = "Job Fair"
    OTHER = "Other"


class WorkType(str, PyEnum):
    FULL_TIME = "Full-time"
    PART_TIME = "Part-time"
    CONTRACT = "Contract"
    TEMPORARY = "Temporary"
    INTERNSHIP = "Internship"
    FREELANCE = "Freelance"


class WorkMode(str, PyEnum):
    REMOTE = "Remote"
    ONSITE = "On-site"
    HYBRID = "Hybrid"


class JobExperienceLevel(str, PyEnum):
    ENTRY = "Entry Level"
    ASSOCIATE = "Associate"
    MID_SENIOR = "Mid-Senior Level"
    DIRECTOR = "Director"
    EXECUTIVE = "Executive"


class Priority(str, PyEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


# ==================== Application Model ===================== #
class JobApplication(Base):
    """
    A user's candidacy for one job at one company.

    Root aggregate of the lifecycle: StatusHistory, ApplicationKeyword and
    linked Document rows exist only because of it and are removed with it.
    """

    __tablename__ = "job_applications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # References
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Posting
    job_title: Mapped[str] = mapped_column(String(100), nullable=False)
    job_description: Mapped[str | None] = mapped_column(Text)
    job_requirements: Mapped[str | None] = mapped_column(Text)
    job_url: Mapped[str | None] = mapped_column(String(500))
    job_board_source: Mapped[JobBoardSource] = mapped_column(
        label_enum(JobBoardSource), nullable=False, default=JobBoardSource.OTHER
    )
    location: Mapped[str | None] = mapped_column(String(100))
    work_type: Mapped[WorkType] = mapped_column(
        label_enum(WorkType, 20), nullable=False, default=WorkType.FULL_TIME
    )
    work_mode: Mapped[WorkMode | None] = mapped_column(label_enum(WorkMode, 20))
    salary_min: Mapped[int | None] = mapped_column(Integer)
    salary_max: Mapped[int | None] = mapped_column(Integer)
    salary_currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    experience_level: Mapped[JobExperienceLevel | None] = mapped_column(
        label_enum(JobExperienceLevel, 30)
    )

    # Lifecycle
    status: Mapped[ApplicationStatus] = mapped_column(
        label_enum(ApplicationStatus),
        nullable=False,
        default=ApplicationStatus.INTERESTED,
        index=True,
    )
    priority: Mapped[Priority] = mapped_column(
        label_enum(Priority, 10), nullable=False, default=Priority.MEDIUM, index=True
    )

    # Dates
    applied_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    last_contact_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    follow_up_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), index=True
    )
    interview_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    expected_response_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
    )
    response_received: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    # Contacts
    contact_person: Mapped[str | None] = mapped_column(String(100))
    contact_email: Mapped[str | None] = mapped_column(String(100))
    contact_phone: Mapped[str | None] = mapped_column(String(20))
    recruiter_name: Mapped[str | None] = mapped_column(String(100))
    recruiter_email: Mapped[str | None] = mapped_column(String(100))
    hiring_manager_name: Mapped[str | None] = mapped_column(String(100))
    hiring_manager_email: Mapped[str | None] = mapped_column(String(100))

    # Free text
    notes: Mapped[str | None] = mapped_column(Text)
    interview_notes: Mapped[str | None] = mapped_column(Text)
    rejection_reason: Mapped[str | None] = mapped_column(Text)
    custom_fields: Mapped[dict[str, Any] | None] = mapped_column(JSON)

    # Flags
    is_starred: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Timestamps (set by the service so they share the clock with history rows)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="job_applications")
    company: Mapped["Company"] = relationship("Company", back_populates="applications")
    status_history: Mapped[list["StatusHistory"]] = relationship(
        "StatusHistory",
        back_populates="job_application",
        order_by="StatusHistory.sequence",
        passive_deletes=True,
    )
    documents: Mapped[list["Document"]] = relationship(
        "Document", back_populates="job_application", passive_deletes=True
    )
    keywords: Mapped[list["ApplicationKeyword"]] = relationship(
        "ApplicationKeyword", back_populates="job_application", passive_deletes=True
    )

    __table_args__ = (
        Index("idx_job_applications_user_status", "user_id", "status"),
        Index("idx_job_applications_user_applied", "user_id", "applied_date"),
    )

    def is_overdue(self, at: datetime | None = None) -> bool:
        """True once the follow-up date has passed."""
        if not self.follow_up_date:
            return False
        return (ensure_utc(at) if at else utc_now()) > ensure_utc(self.follow_up_date)

    def days_since_applied(self, at: datetime | None = None) -> int | None:
        if not self.applied_date:
            return None
        return days_elapsed(self.applied_date, at)

    def salary_range_display(self) -> str:
        if self.salary_min is None and self.salary_max is None:
            return "Not specified"
        currency = self.salary_currency
        if self.salary_min is not None and self.salary_max is not None:
            return f"{currency} {self.salary_min:,} - {self.salary_max:,}"
        if self.salary_min is not None:
            return f"{currency} {self.salary_min:,}+"
        return f"Up to {currency} {self.salary_max:,}"

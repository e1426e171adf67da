"""
Company Models

Companies are shared reference data that outlive the applications pointing
at them. Only the user recorded in added_by may change or delete one.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    Boolean,
    Integer,
    Numeric,
    DateTime,
    Text,
    Uuid,
    func,
    Index,
    Enum as SQLEnum,
)
from database.engine import Base
from core.utils.datetime import now as utc_now
from datetime import datetime
from decimal import Decimal
from enum import Enum as PyEnum
from typing import TYPE_CHECKING
import uuid

if TYPE_CHECKING:
    from database.models.applications import JobApplication


class CompanySize(str, PyEnum):
    """Headcount buckets."""

    TINY = "1-10"
    SMALL = "11-50"
    MEDIUM = "51-200"
    MID = "201-500"
    LARGE = "501-1000"
    XLARGE = "1001-5000"
    ENTERPRISE = "5001-10000"
    MEGA = "10000+"


class Company(Base):
    """A company the user is tracking applications against."""

    __tablename__ = "companies"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    industry: Mapped[str | None] = mapped_column(String(100), index=True)
    size: Mapped[CompanySize | None] = mapped_column(
        SQLEnum(
            CompanySize,
            native_enum=False,
            length=20,
            values_callable=lambda enum: [member.value for member in enum],
        )
    )
    location: Mapped[str | None] = mapped_column(String(100))
    headquarters: Mapped[str | None] = mapped_column(String(100))
    website: Mapped[str | None] = mapped_column(String(255))
    linkedin_url: Mapped[str | None] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text)
    founded_year: Mapped[int | None] = mapped_column(Integer)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    glassdoor_rating: Mapped[Decimal | None] = mapped_column(Numeric(2, 1))
    notes: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    added_by: Mapped[uuid.UUID | None] = mapped_column(Uuid)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    applications: Mapped[list["JobApplication"]] = relationship(
        "JobApplication", back_populates="company", passive_deletes=True
    )

    @property
    def location_display(self) -> str:
        return self.location or self.headquarters or "Location not specified"


# Names are unique regardless of case
Index("uq_companies_name_lower", func.lower(Company.name), unique=True)

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    Boolean,
    Integer,
    DateTime,
    Uuid,
    Enum as SQLEnum,
)
from database.engine import Base
from core.utils.datetime import now as utc_now
from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING
import uuid

if TYPE_CHECKING:
    from database.models.applications import JobApplication
    from database.models.documents import Document


# ==================== User Enums ===================== #
class ExperienceLevel(str, PyEnum):
    ENTRY = "entry"
    MID = "mid"
    SENIOR = "senior"
    EXECUTIVE = "executive"


class User(Base):
    """
    A job seeker. Credentials and sessions live with the external auth
    provider; this row only carries identity and profile data.
    """

    __tablename__: str = "users"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(
        String(100), unique=True, nullable=False, index=True
    )
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    phone_number: Mapped[str | None] = mapped_column(String(20))
    location: Mapped[str | None] = mapped_column(String(100))
    linkedin_url: Mapped[str | None] = mapped_column(String(255))
    github_url: Mapped[str | None] = mapped_column(String(255))
    portfolio_url: Mapped[str | None] = mapped_column(String(255))
    current_job_title: Mapped[str | None] = mapped_column(String(100))
    experience_level: Mapped[ExperienceLevel] = mapped_column(
        SQLEnum(ExperienceLevel, native_enum=False, length=20),
        nullable=False,
        default=ExperienceLevel.ENTRY,
    )
    preferred_salary_min: Mapped[int | None] = mapped_column(Integer)
    preferred_salary_max: Mapped[int | None] = mapped_column(Integer)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    # Relationships (deletion goes through api.services.cascade, not the ORM)
    job_applications: Mapped[list["JobApplication"]] = relationship(
        "JobApplication", back_populates="user", passive_deletes=True
    )
    documents: Mapped[list["Document"]] = relationship(
        "Document", back_populates="user", passive_deletes=True
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

"""
Status history ledger.

One immutable row per status transition of a JobApplication. Rows are only
ever inserted by api.services.applications and only ever removed by the
cascade coordinator together with their application.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    ForeignKey,
    Integer,
    DateTime,
    Text,
    JSON,
    Uuid,
    Index,
    UniqueConstraint,
)
from database.engine import Base
from database.models.applications import ApplicationStatus, label_enum
from core.utils.datetime import now as utc_now
from datetime import datetime
from enum import Enum as PyEnum
from typing import Any, TYPE_CHECKING
import uuid

if TYPE_CHECKING:
    from database.models.applications import JobApplication


class ChangedBy(str, PyEnum):
    """Who caused a status transition."""

    USER = "User"
    SYSTEM = "System"
    AUTO = "Auto"


class StatusHistory(Base):
    """
    A single status transition.

    ``sequence`` is 1 for the creation entry (the only row allowed a null
    ``from_status``) and increases by one per transition; the unique
    (application, sequence) pair rejects two racing transitions.
    """

    __tablename__ = "status_history"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    job_application_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("job_applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    from_status: Mapped[ApplicationStatus | None] = mapped_column(
        label_enum(ApplicationStatus), nullable=True
    )
    to_status: Mapped[ApplicationStatus] = mapped_column(
        label_enum(ApplicationStatus), nullable=False, index=True
    )
    changed_by: Mapped[ChangedBy] = mapped_column(
        label_enum(ChangedBy, 10), nullable=False, default=ChangedBy.USER
    )
    notes: Mapped[str | None] = mapped_column(Text)
    # "metadata" is reserved on declarative classes
    details: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSON, nullable=False, default=dict
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, index=True
    )

    job_application: Mapped["JobApplication"] = relationship(
        "JobApplication", back_populates="status_history"
    )

    __table_args__ = (
        UniqueConstraint(
            "job_application_id", "sequence", name="uq_status_history_application_sequence"
        ),
        Index("idx_status_history_application_created", "job_application_id", "created_at"),
    )

"""
Application service functions for API endpoints.

Every write that changes JobApplication.status appends exactly one
StatusHistory row in the same transaction. Nothing else in the codebase
writes history rows.
"""

from typing import Any, Dict, List, Optional, Tuple
import logging
import uuid

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.exceptions import CompanyNotFoundError, NotFoundError, ValidationError
from core.utils.datetime import now as utc_now
from database.engine import transaction
from database.models.applications import (
    ApplicationStatus,
    JobApplication,
    JobBoardSource,
    JobExperienceLevel,
    Priority,
    WorkMode,
    WorkType,
)
from database.models.companies import Company
from database.models.status_history import ChangedBy, StatusHistory
from api.services.validation import (
    check_salary_range,
    coerce_enum,
    non_negative_int,
    optional_email,
    optional_url,
    reject_unknown_fields,
    require_length,
)

logger = logging.getLogger(__name__)

ENUM_FIELDS = {
    "job_board_source": JobBoardSource,
    "work_type": WorkType,
    "work_mode": WorkMode,
    "experience_level": JobExperienceLevel,
    "status": ApplicationStatus,
    "priority": Priority,
}
NULLABLE_ENUM_FIELDS = {"work_mode", "experience_level"}
EMAIL_FIELDS = {"contact_email", "recruiter_email", "hiring_manager_email"}
FLAG_FIELDS = {"response_received", "is_starred", "is_archived"}

EDITABLE_FIELDS = {
    "company_id",
    "job_title",
    "job_description",
    "job_requirements",
    "job_url",
    "location",
    "salary_min",
    "salary_max",
    "salary_currency",
    "applied_date",
    "last_contact_date",
    "follow_up_date",
    "interview_date",
    "expected_response_date",
    "contact_person",
    "contact_phone",
    "recruiter_name",
    "hiring_manager_name",
    "notes",
    "interview_notes",
    "rejection_reason",
    "custom_fields",
} | set(ENUM_FIELDS) | EMAIL_FIELDS | FLAG_FIELDS

# Accepted on update only; they describe the status transition
TRANSITION_FIELDS = {"status_notes", "changed_by"}

SORTABLE_FIELDS = {
    "applied_date": JobApplication.applied_date,
    "updated_at": JobApplication.updated_at,
    "created_at": JobApplication.created_at,
    "job_title": JobApplication.job_title,
    "status": JobApplication.status,
    "priority": JobApplication.priority,
}


def _clean_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Validate and normalise application fields. Raises before any write."""
    cleaned: Dict[str, Any] = {}
    for name, value in fields.items():
        if name in ENUM_FIELDS:
            cleaned[name] = coerce_enum(
                ENUM_FIELDS[name], value, name, nullable=name in NULLABLE_ENUM_FIELDS
            )
        elif name == "job_title":
            cleaned[name] = require_length(value, name, 2, 100)
        elif name in ("salary_min", "salary_max"):
            cleaned[name] = non_negative_int(value, name)
        elif name == "salary_currency":
            if not isinstance(value, str) or len(value.strip()) != 3:
                raise ValidationError(
                    "salary_currency must be a 3 letter code", {"field": name}
                )
            cleaned[name] = value.strip().upper()
        elif name == "job_url":
            cleaned[name] = optional_url(value, name, normalize=True)
        elif name in EMAIL_FIELDS:
            cleaned[name] = optional_email(value, name)
        elif name in FLAG_FIELDS:
            if not isinstance(value, bool):
                raise ValidationError(f"{name} must be true or false", {"field": name})
            cleaned[name] = value
        elif name == "company_id":
            if value is None:
                raise ValidationError("company_id is required", {"field": name})
            cleaned[name] = value
        else:
            cleaned[name] = value
    return cleaned


async def _resolve_company(session: AsyncSession, company_id: uuid.UUID) -> Company:
    company = await session.get(Company, company_id)
    if company is None:
        raise CompanyNotFoundError(
            "Company not found", {"company_id": str(company_id)}
        )
    return company


async def _fetch_application(
    session: AsyncSession,
    user_id: uuid.UUID,
    application_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> JobApplication:
    query = select(JobApplication).where(
        JobApplication.id == application_id,
        JobApplication.user_id == user_id,
    )
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    application = result.scalar_one_or_none()
    if application is None:
        raise NotFoundError(
            "Job application not found", {"application_id": str(application_id)}
        )
    return application


async def _next_sequence(session: AsyncSession, application_id: uuid.UUID) -> int:
    result = await session.execute(
        select(func.coalesce(func.max(StatusHistory.sequence), 0)).where(
            StatusHistory.job_application_id == application_id
        )
    )
    return int(result.scalar_one()) + 1


async def _record_transition(
    session: AsyncSession,
    application: JobApplication,
    new_status: ApplicationStatus,
    changed_by: ChangedBy,
    notes: Optional[str],
    metadata: Optional[Dict[str, Any]],
) -> Optional[StatusHistory]:
    """
    Write the new status and its history row, or nothing if unchanged.

    Must run inside the caller's transaction with the application row
    already locked.
    """
    old_status = application.status
    if new_status == old_status:
        return None

    moment = utc_now()
    entry = StatusHistory(
        job_application_id=application.id,
        sequence=await _next_sequence(session, application.id),
        from_status=old_status,
        to_status=new_status,
        changed_by=changed_by,
        notes=notes,
        details=metadata or {},
        created_at=moment,
    )
    application.status = new_status
    application.updated_at = moment
    session.add(entry)
    logger.info(
        "Application %s status %s -> %s by %s",
        application.id,
        old_status.value,
        new_status.value,
        changed_by.value,
    )
    return entry


async def get_application(
    session: AsyncSession, user_id: uuid.UUID, application_id: uuid.UUID
) -> JobApplication:
    """
    Get one of the user's applications with its company loaded.

    Raises:
        NotFoundError: If absent or owned by someone else
    """
    result = await session.execute(
        select(JobApplication)
        .options(selectinload(JobApplication.company))
        .where(
            JobApplication.id == application_id,
            JobApplication.user_id == user_id,
        )
        .execution_options(populate_existing=True)
    )
    application = result.scalar_one_or_none()
    if application is None:
        raise NotFoundError(
            "Job application not found", {"application_id": str(application_id)}
        )
    return application


async def list_applications(
    session: AsyncSession,
    user_id: uuid.UUID,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    is_starred: Optional[bool] = None,
    is_archived: Optional[bool] = None,
    search: Optional[str] = None,
    sort_by: str = "updated_at",
    sort_order: str = "desc",
    limit: int = 20,
    offset: int = 0,
) -> Tuple[List[JobApplication], int]:
    """
    List the user's applications with filtering.

    Args:
        session: Database session
        user_id: Owner of the applications
        status: Filter by status label
        priority: Filter by priority label
        is_starred: Filter by starred flag
        is_archived: Filter by archived flag
        search: Case-insensitive match on title, notes or location
        sort_by: One of SORTABLE_FIELDS
        sort_order: asc or desc
        limit: Maximum number of results
        offset: Pagination offset

    Returns:
        Tuple of (applications for this page, total matching count)
    """
    query = select(JobApplication).where(JobApplication.user_id == user_id)

    if status:
        query = query.where(
            JobApplication.status == coerce_enum(ApplicationStatus, status, "status")
        )
    if priority:
        query = query.where(
            JobApplication.priority == coerce_enum(Priority, priority, "priority")
        )
    if is_starred is not None:
        query = query.where(JobApplication.is_starred == is_starred)
    if is_archived is not None:
        query = query.where(JobApplication.is_archived == is_archived)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.where(
            or_(
                JobApplication.job_title.ilike(pattern),
                JobApplication.notes.ilike(pattern),
                JobApplication.location.ilike(pattern),
            )
        )

    # Get total count
    count_query = select(func.count()).select_from(query.subquery())
    total = (await session.execute(count_query)).scalar() or 0

    if sort_by not in SORTABLE_FIELDS:
        raise ValidationError(
            f"sort_by must be one of: {', '.join(sorted(SORTABLE_FIELDS))}",
            {"field": "sort_by"},
        )
    sort_column = SORTABLE_FIELDS[sort_by]
    if sort_order.lower() == "asc":
        query = query.order_by(sort_column.asc(), JobApplication.id)
    else:
        query = query.order_by(sort_column.desc(), JobApplication.id)

    query = (
        query.options(selectinload(JobApplication.company))
        .limit(limit)
        .offset(offset)
    )
    result = await session.execute(query)
    return list(result.scalars().all()), total


async def create_application(
    session: AsyncSession, user_id: uuid.UUID, fields: Dict[str, Any]
) -> JobApplication:
    """
    Create an application together with its initial history row.

    Args:
        session: Database session
        user_id: Owner of the new application
        fields: Application fields; job_title and company_id are required,
            status defaults to Interested

    Returns:
        The created application

    Raises:
        ValidationError: On malformed fields (nothing is written)
        InvalidSalaryRangeError: If salary_min > salary_max
        CompanyNotFoundError: If company_id does not resolve
    """
    reject_unknown_fields(fields, EDITABLE_FIELDS)
    if "job_title" not in fields:
        raise ValidationError("job_title is required", {"field": "job_title"})
    if "company_id" not in fields:
        raise ValidationError("company_id is required", {"field": "company_id"})

    cleaned = _clean_fields(fields)
    check_salary_range(cleaned.get("salary_min"), cleaned.get("salary_max"))
    status = cleaned.pop("status", None) or ApplicationStatus.INTERESTED

    async with transaction(session, "Failed to create application"):
        company = await _resolve_company(session, cleaned.pop("company_id"))
        moment = utc_now()
        application = JobApplication(
            user_id=user_id,
            company=company,
            status=status,
            created_at=moment,
            updated_at=moment,
            **cleaned,
        )
        session.add(application)
        await session.flush()

        session.add(
            StatusHistory(
                job_application_id=application.id,
                sequence=1,
                from_status=None,
                to_status=status,
                changed_by=ChangedBy.USER,
                notes="Application created",
                details={},
                created_at=moment,
            )
        )

    logger.info(
        "Created application %s (%s) for user %s",
        application.id,
        status.value,
        user_id,
    )
    return await get_application(session, user_id, application.id)


async def update_application(
    session: AsyncSession,
    user_id: uuid.UUID,
    application_id: uuid.UUID,
    fields: Dict[str, Any],
) -> JobApplication:
    """
    Apply a partial update.

    A history row is written only when ``status`` is present and differs
    from the current status; ``status_notes`` and ``changed_by`` describe
    that transition.

    Raises:
        NotFoundError: If absent or owned by someone else
        ValidationError: On malformed fields
        InvalidSalaryRangeError: If the merged salary range is inverted
    """
    reject_unknown_fields(fields, EDITABLE_FIELDS | TRANSITION_FIELDS)
    fields = dict(fields)
    status_notes = fields.pop("status_notes", None)
    changed_by = coerce_enum(
        ChangedBy, fields.pop("changed_by", None) or ChangedBy.USER, "changed_by"
    )
    cleaned = _clean_fields(fields)
    new_status = cleaned.pop("status", None)

    async with transaction(
        session,
        "Failed to update application",
        conflict_message="Application was modified concurrently",
    ):
        application = await _fetch_application(
            session, user_id, application_id, for_update=True
        )
        check_salary_range(
            cleaned.get("salary_min", application.salary_min),
            cleaned.get("salary_max", application.salary_max),
        )
        changed = False
        if "company_id" in cleaned:
            company_id = cleaned.pop("company_id")
            if company_id != application.company_id:
                application.company = await _resolve_company(session, company_id)
                changed = True

        for name, value in cleaned.items():
            if getattr(application, name) != value:
                setattr(application, name, value)
                changed = True
        if changed:
            application.updated_at = utc_now()

        if new_status is not None:
            await _record_transition(
                session, application, new_status, changed_by, status_notes, None
            )

    return await get_application(session, user_id, application_id)


async def update_application_status(
    session: AsyncSession,
    user_id: uuid.UUID,
    application_id: uuid.UUID,
    new_status: ApplicationStatus | str,
    changed_by: ChangedBy | str = ChangedBy.USER,
    notes: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> JobApplication:
    """
    Move an application to a new status.

    Setting the current status again is a no-op: no history row is
    written and the application is returned unchanged.

    Args:
        session: Database session
        user_id: Owner of the application
        application_id: The application to move
        new_status: Target status
        changed_by: Actor recorded on the history row
        notes: Optional notes for the history row
        metadata: Free-form details stored with the history row

    Returns:
        The application after the transition

    Raises:
        NotFoundError: If absent or owned by someone else
        ValidationError: If the status or actor is unknown
        ConflictError: If a concurrent transition won the race
    """
    new_status = coerce_enum(ApplicationStatus, new_status, "status")
    changed_by = coerce_enum(ChangedBy, changed_by, "changed_by")

    async with transaction(
        session,
        "Failed to update application status",
        conflict_message="Application status was changed concurrently",
    ):
        application = await _fetch_application(
            session, user_id, application_id, for_update=True
        )
        await _record_transition(
            session, application, new_status, changed_by, notes, metadata
        )

    return await get_application(session, user_id, application_id)


async def get_timeline(
    session: AsyncSession, user_id: uuid.UUID, application_id: uuid.UUID
) -> List[StatusHistory]:
    """
    Get the status history of an application, oldest first.

    Raises:
        NotFoundError: If absent or owned by someone else
    """
    await _fetch_application(session, user_id, application_id)
    result = await session.execute(
        select(StatusHistory)
        .where(StatusHistory.job_application_id == application_id)
        .order_by(StatusHistory.sequence.asc())
    )
    return list(result.scalars().all())


async def recent_status_changes(
    session: AsyncSession, user_id: uuid.UUID, limit: int = 20
) -> List[StatusHistory]:
    """
    Latest status changes across all of the user's applications.

    Returns:
        History rows, newest first, with application and company loaded
    """
    result = await session.execute(
        select(StatusHistory)
        .join(JobApplication, StatusHistory.job_application_id == JobApplication.id)
        .where(JobApplication.user_id == user_id)
        .options(
            selectinload(StatusHistory.job_application).selectinload(
                JobApplication.company
            )
        )
        .order_by(StatusHistory.created_at.desc(), StatusHistory.sequence.desc())
        .limit(limit)
    )
    return list(result.scalars().all())

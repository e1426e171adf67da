"""
Cascade deletion of job applications and their owners.

Dependent rows are removed explicitly, children before parents, in one
transaction. Foreign key cascades exist on PostgreSQL but are not relied
upon: the step list below is the contract on every backend.
"""

from dataclasses import dataclass
from typing import Any, Iterable, List, Sequence
import logging
import uuid

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import NotFoundError
from database.engine import transaction
from database.models.applications import JobApplication
from database.models.companies import Company
from database.models.documents import Document
from database.models.keywords import ApplicationKeyword
from database.models.status_history import StatusHistory
from database.models.users import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CascadeStep:
    """Delete rows of ``model`` whose ``column`` is one of the given ids."""

    model: Any
    column: str

    @property
    def name(self) -> str:
        return self.model.__tablename__

    async def run(self, session: AsyncSession, ids: Sequence[uuid.UUID]) -> int:
        result = await session.execute(
            delete(self.model).where(getattr(self.model, self.column).in_(ids))
        )
        return result.rowcount or 0


# Order matters: every child table before the application row itself
APPLICATION_CASCADE: tuple[CascadeStep, ...] = (
    CascadeStep(StatusHistory, "job_application_id"),
    CascadeStep(ApplicationKeyword, "job_application_id"),
    CascadeStep(Document, "job_application_id"),
    CascadeStep(JobApplication, "id"),
)


async def cascade_delete_applications(
    session: AsyncSession,
    application_ids: Iterable[uuid.UUID],
    steps: Sequence[CascadeStep] = APPLICATION_CASCADE,
) -> dict[str, int]:
    """
    Run every cascade step for the given applications.

    Does not commit; the caller owns the transaction.

    Args:
        session: Session with an open transaction
        application_ids: Applications to remove
        steps: Ordered delete steps

    Returns:
        Deleted row count per table
    """
    ids = list(application_ids)
    counts: dict[str, int] = {}
    if not ids:
        return counts
    for step in steps:
        counts[step.name] = await step.run(session, ids)
    return counts


async def delete_application(
    session: AsyncSession,
    user_id: uuid.UUID,
    application_id: uuid.UUID,
    steps: Sequence[CascadeStep] = APPLICATION_CASCADE,
) -> dict[str, int]:
    """
    Delete an application and everything that exists only because of it.

    The referenced company and documents not linked to the application
    are left alone.

    Args:
        session: Database session
        user_id: Requesting user, must own the application
        application_id: Application to delete
        steps: Ordered delete steps

    Returns:
        Deleted row count per table

    Raises:
        NotFoundError: If absent or owned by someone else (nothing deleted)
        StorageError: If any step fails (everything rolled back)
    """
    async with transaction(session, "Failed to delete application"):
        owned = await session.execute(
            select(JobApplication.id).where(
                JobApplication.id == application_id,
                JobApplication.user_id == user_id,
            )
        )
        if owned.scalar_one_or_none() is None:
            raise NotFoundError(
                "Job application not found", {"application_id": str(application_id)}
            )
        counts = await cascade_delete_applications(session, [application_id], steps)

    logger.info("Deleted application %s: %s", application_id, counts)
    return counts


async def delete_company(
    session: AsyncSession,
    user_id: uuid.UUID,
    company_id: uuid.UUID,
    steps: Sequence[CascadeStep] = APPLICATION_CASCADE,
) -> dict[str, int]:
    """
    Delete a company the user added, with the user's applications at it.

    Other users' applications are never touched. While any of them still
    reference the company its row is kept and ``companies`` counts 0.

    Raises:
        NotFoundError: If absent or added by someone else (nothing deleted)
        StorageError: If any step fails (everything rolled back)
    """
    async with transaction(session, "Failed to delete company"):
        company = await session.get(Company, company_id)
        if company is None or company.added_by != user_id:
            raise NotFoundError("Company not found", {"company_id": str(company_id)})
        application_ids = await _application_ids(
            session,
            JobApplication.company_id == company_id,
            JobApplication.user_id == user_id,
        )
        counts = await cascade_delete_applications(session, application_ids, steps)
        shared = await _application_ids(session, JobApplication.company_id == company_id)
        if shared:
            counts[Company.__tablename__] = 0
        else:
            await session.execute(delete(Company).where(Company.id == company_id))
            counts[Company.__tablename__] = 1

    logger.info("Deleted company %s: %s", company_id, counts)
    return counts


async def delete_user(
    session: AsyncSession,
    user_id: uuid.UUID,
    steps: Sequence[CascadeStep] = APPLICATION_CASCADE,
) -> dict[str, int]:
    """
    Delete a user with all their applications and documents.

    Raises:
        NotFoundError: If the user does not exist
        StorageError: If any step fails (everything rolled back)
    """
    async with transaction(session, "Failed to delete user"):
        if await session.get(User, user_id) is None:
            raise NotFoundError("User not found", {"user_id": str(user_id)})
        application_ids = await _application_ids(
            session, JobApplication.user_id == user_id
        )
        counts = await cascade_delete_applications(session, application_ids, steps)
        # Documents not linked to any application
        result = await session.execute(delete(Document).where(Document.user_id == user_id))
        counts[Document.__tablename__] = (
            counts.get(Document.__tablename__, 0) + (result.rowcount or 0)
        )
        await session.execute(delete(User).where(User.id == user_id))
        counts[User.__tablename__] = 1

    logger.info("Deleted user %s: %s", user_id, counts)
    return counts


async def _application_ids(session: AsyncSession, *criteria) -> List[uuid.UUID]:
    result = await session.execute(select(JobApplication.id).where(*criteria))
    return list(result.scalars().all())

"""
Tests for cascade deletion of applications, companies and users.
"""

import uuid
from dataclasses import dataclass
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from api.services import applications as application_service
from api.services import cascade
from api.services import documents as document_service
from api.services import keywords as keyword_service
from core.exceptions import NotFoundError, StorageError
from database.engine import Base, enable_sqlite_foreign_keys
from database.models.applications import JobApplication
from database.models.companies import Company
from database.models.documents import Document
from database.models.keywords import ApplicationKeyword, Keyword
from database.models.status_history import StatusHistory
from database.models.users import User


async def _count(session, model, *criteria) -> int:
    result = await session.execute(select(func.count()).select_from(model).where(*criteria))
    return result.scalar_one()


def _document_fields(**overrides):
    fields = {
        "name": "Resume 2026",
        "type": "Resume",
        "file_path": "uploads/resume.pdf",
        "file_name": "resume.pdf",
        "file_size": 2048,
        "mime_type": "application/pdf",
    }
    fields.update(overrides)
    return fields


@pytest_asyncio.fixture
async def populated(session, user, company):
    """An application with two transitions, a keyword and a linked document,
    plus an unlinked document owned by the same user."""
    application = await application_service.create_application(
        session, user.id, {"company_id": company.id, "job_title": "Site Reliability Engineer"}
    )
    await application_service.update_application_status(
        session, user.id, application.id, "Applied"
    )
    await keyword_service.add_keyword(
        session, user.id, application.id, {"word": "Kubernetes", "is_required": True}
    )
    linked = await document_service.create_document(
        session, user.id, _document_fields(job_application_id=application.id)
    )
    unlinked = await document_service.create_document(
        session, user.id, _document_fields(name="Cover letter", type="Cover Letter")
    )
    return {"application": application, "linked": linked, "unlinked": unlinked}


class FailingStep(cascade.CascadeStep):
    """Step that fails the way a dropped connection would."""

    async def run(self, session, ids):
        raise OperationalError("DELETE", {}, Exception("connection lost"))


class TestDeleteApplication:
    """delete_application removes the aggregate and nothing else."""

    @pytest.mark.asyncio
    async def test_removes_dependents(self, session, user, company, populated):
        application_id = populated["application"].id

        counts = await cascade.delete_application(session, user.id, application_id)

        assert counts == {
            "status_history": 2,
            "application_keywords": 1,
            "documents": 1,
            "job_applications": 1,
        }
        assert await _count(session, JobApplication) == 0
        assert await _count(
            session, StatusHistory, StatusHistory.job_application_id == application_id
        ) == 0
        assert await _count(session, ApplicationKeyword) == 0

    @pytest.mark.asyncio
    async def test_keeps_unlinked_documents_and_company(
        self, session, user, company, populated
    ):
        await cascade.delete_application(session, user.id, populated["application"].id)

        remaining = await session.execute(select(Document.id))
        assert list(remaining.scalars().all()) == [populated["unlinked"].id]
        assert await _count(session, Company, Company.id == company.id) == 1
        # Keywords are shared vocabulary
        assert await _count(session, Keyword) == 1

    @pytest.mark.asyncio
    async def test_not_found_before_any_delete(
        self, session, user, other_user, populated
    ):
        with pytest.raises(NotFoundError):
            await cascade.delete_application(
                session, other_user.id, populated["application"].id
            )
        assert await _count(session, JobApplication) == 1

    @pytest.mark.asyncio
    async def test_missing_application(self, session, user):
        with pytest.raises(NotFoundError):
            await cascade.delete_application(session, user.id, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_failing_step_rolls_back_everything(self, session, user, populated):
        application_id = populated["application"].id
        steps = (
            cascade.CascadeStep(StatusHistory, "job_application_id"),
            FailingStep(ApplicationKeyword, "job_application_id"),
            cascade.CascadeStep(Document, "job_application_id"),
            cascade.CascadeStep(JobApplication, "id"),
        )

        with pytest.raises(StorageError) as exc_info:
            await cascade.delete_application(session, user.id, application_id, steps=steps)

        assert exc_info.value.message == "Failed to delete application"
        assert isinstance(exc_info.value.__cause__, OperationalError)
        # The history delete ran before the failure and was rolled back
        assert await _count(
            session, StatusHistory, StatusHistory.job_application_id == application_id
        ) == 2
        assert await _count(session, ApplicationKeyword) == 1
        assert await _count(session, Document) == 2
        assert await _count(session, JobApplication) == 1


@dataclass(frozen=True)
class ReadingStep(cascade.CascadeStep):
    """Step that lets another connection read just before it deletes."""

    read: Any = None

    async def run(self, session, ids):
        await self.read()
        return await super().run(session, ids)


@pytest_asyncio.fixture
async def file_session_factory(tmp_path):
    """Sessions on a file-backed database, each on its own connection."""
    file_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'tracker.db'}")
    enable_sqlite_foreign_keys(file_engine.sync_engine)
    async with file_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(file_engine, class_=AsyncSession, expire_on_commit=False)
    await file_engine.dispose()


class TestConcurrentRead:
    """A reader never observes a half-deleted application."""

    async def _snapshot(self, session, application_id):
        applications = await _count(
            session, JobApplication, JobApplication.id == application_id
        )
        history = await _count(
            session, StatusHistory, StatusHistory.job_application_id == application_id
        )
        # End the read so no lock outlives it
        await session.rollback()
        return applications, history

    @pytest.mark.asyncio
    async def test_reader_sees_old_state_until_commit(self, file_session_factory):
        async with file_session_factory() as writer, file_session_factory() as reader:
            owner = User(
                id=uuid.uuid4(), email="ada@example.com", first_name="Ada", last_name="Lovelace"
            )
            acme = Company(name="Acme Corp", added_by=owner.id)
            writer.add_all([owner, acme])
            await writer.commit()
            application = await application_service.create_application(
                writer, owner.id, {"company_id": acme.id, "job_title": "Site Reliability Engineer"}
            )
            await application_service.update_application_status(
                writer, owner.id, application.id, "Applied"
            )

            snapshots = []

            async def read():
                snapshots.append(await self._snapshot(reader, application.id))

            steps = tuple(
                ReadingStep(step.model, step.column, read)
                for step in cascade.APPLICATION_CASCADE
            )
            await cascade.delete_application(writer, owner.id, application.id, steps=steps)
            await read()

        # One read before each step, all before commit, then one after it
        assert snapshots == [(1, 2)] * len(steps) + [(0, 0)]


class TestDeleteCompany:
    """Deleting a company takes the caller's applications with it."""

    @pytest.mark.asyncio
    async def test_cascades_to_applications(self, session, user, company, populated):
        counts = await cascade.delete_company(session, user.id, company.id)

        assert counts["companies"] == 1
        assert counts["job_applications"] == 1
        assert await _count(session, Company) == 0
        assert await _count(session, JobApplication) == 0
        assert await _count(session, StatusHistory) == 0
        assert await _count(session, Document) == 1

    @pytest.mark.asyncio
    async def test_other_users_applications_survive(
        self, session, user, other_user, company, populated
    ):
        survivor = await application_service.create_application(
            session, other_user.id, {"company_id": company.id, "job_title": "Data Analyst"}
        )

        counts = await cascade.delete_company(session, user.id, company.id)

        assert counts["job_applications"] == 1
        assert counts["companies"] == 0
        remaining = await session.execute(select(JobApplication.id))
        assert list(remaining.scalars().all()) == [survivor.id]
        assert await _count(
            session, StatusHistory, StatusHistory.job_application_id == survivor.id
        ) == 1
        assert await _count(session, Company, Company.id == company.id) == 1

    @pytest.mark.asyncio
    async def test_added_by_someone_else(self, session, other_user, company, populated):
        with pytest.raises(NotFoundError):
            await cascade.delete_company(session, other_user.id, company.id)

        assert await _count(session, Company) == 1
        assert await _count(session, JobApplication) == 1

    @pytest.mark.asyncio
    async def test_missing_company(self, session, user):
        with pytest.raises(NotFoundError):
            await cascade.delete_company(session, user.id, uuid.uuid4())


class TestDeleteUser:
    """Deleting a user removes everything they own."""

    @pytest.mark.asyncio
    async def test_removes_everything_owned(
        self, session, user, other_user, company, populated
    ):
        survivor = await application_service.create_application(
            session, other_user.id, {"company_id": company.id, "job_title": "Data Analyst"}
        )

        counts = await cascade.delete_user(session, user.id)

        assert counts["users"] == 1
        assert counts["documents"] == 2
        assert await _count(session, User, User.id == user.id) == 0
        assert await _count(session, Document) == 0
        remaining = await session.execute(select(JobApplication.id))
        assert list(remaining.scalars().all()) == [survivor.id]
        assert await _count(session, Company) == 1

    @pytest.mark.asyncio
    async def test_missing_user(self, session):
        with pytest.raises(NotFoundError):
            await cascade.delete_user(session, uuid.uuid4())

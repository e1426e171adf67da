"""
Tests for the application service: creation, updates, status transitions
and the status history ledger they write.
"""

import uuid
from datetime import timedelta

import pytest
from sqlalchemy import func, select

from api.services import applications as application_service
from api.services.cascade import delete_application
from core.exceptions import (
    CompanyNotFoundError,
    ConflictError,
    InvalidSalaryRangeError,
    NotFoundError,
    ValidationError,
)
from core.lifecycle import TransitionKind, classify_transition
from core.utils.datetime import now as utc_now
from database.models.applications import ApplicationStatus, JobApplication, Priority
from database.models.status_history import ChangedBy, StatusHistory


async def _count(session, model, *criteria) -> int:
    result = await session.execute(select(func.count()).select_from(model).where(*criteria))
    return result.scalar_one()


async def _history(session, application_id) -> list[StatusHistory]:
    result = await session.execute(
        select(StatusHistory)
        .where(StatusHistory.job_application_id == application_id)
        .order_by(StatusHistory.sequence)
    )
    return list(result.scalars().all())


async def _assert_ledger_consistent(session, application: JobApplication):
    """Latest history row matches the live status; the first has no from."""
    history = await _history(session, application.id)
    assert history, "every application has at least one history row"
    assert history[0].from_status is None
    assert all(entry.from_status is not None for entry in history[1:])
    assert history[-1].to_status == application.status
    for earlier, later in zip(history, history[1:]):
        assert later.from_status == earlier.to_status
        assert later.sequence == earlier.sequence + 1


@pytest.fixture
def base_fields(company):
    return {"company_id": company.id, "job_title": "Backend Engineer"}


# ==================== Creation ==================== #

class TestCreateApplication:
    """Creating an application writes the initial history row with it."""

    @pytest.mark.asyncio
    async def test_default_status_is_interested(self, session, user, base_fields):
        application = await application_service.create_application(
            session, user.id, base_fields
        )

        assert application.status == ApplicationStatus.INTERESTED
        history = await _history(session, application.id)
        assert len(history) == 1
        assert history[0].from_status is None
        assert history[0].to_status == ApplicationStatus.INTERESTED
        assert history[0].changed_by == ChangedBy.USER
        assert history[0].sequence == 1

    @pytest.mark.asyncio
    async def test_explicit_status(self, session, user, base_fields):
        application = await application_service.create_application(
            session, user.id, {**base_fields, "status": "Applied", "priority": "High"}
        )

        assert application.status == ApplicationStatus.APPLIED
        assert application.priority == Priority.HIGH
        await _assert_ledger_consistent(session, application)

    @pytest.mark.asyncio
    async def test_company_is_loaded(self, session, user, company, base_fields):
        application = await application_service.create_application(
            session, user.id, base_fields
        )
        assert application.company.name == company.name

    @pytest.mark.asyncio
    async def test_inverted_salary_writes_nothing(self, session, user, base_fields):
        with pytest.raises(InvalidSalaryRangeError):
            await application_service.create_application(
                session,
                user.id,
                {**base_fields, "salary_min": 100000, "salary_max": 80000},
            )

        assert await _count(session, JobApplication) == 0
        assert await _count(session, StatusHistory) == 0

    @pytest.mark.asyncio
    async def test_salary_range_error_is_a_validation_error(self, session, user, base_fields):
        with pytest.raises(ValidationError):
            await application_service.create_application(
                session,
                user.id,
                {**base_fields, "salary_min": 2, "salary_max": 1},
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("overrides", [
        {"job_title": "X"},
        {"job_title": "x" * 101},
        {"status": "Ghosted"},
        {"priority": "Urgent"},
        {"contact_email": "not-an-email"},
        {"salary_min": -1},
        {"salary_currency": "DOLLARS"},
        {"favourite_colour": "blue"},
    ])
    async def test_rejects_malformed_fields(self, session, user, base_fields, overrides):
        with pytest.raises(ValidationError):
            await application_service.create_application(
                session, user.id, {**base_fields, **overrides}
            )
        assert await _count(session, JobApplication) == 0

    @pytest.mark.asyncio
    async def test_requires_job_title(self, session, user, company):
        with pytest.raises(ValidationError):
            await application_service.create_application(
                session, user.id, {"company_id": company.id}
            )

    @pytest.mark.asyncio
    async def test_unknown_company(self, session, user):
        with pytest.raises(CompanyNotFoundError):
            await application_service.create_application(
                session, user.id, {"company_id": uuid.uuid4(), "job_title": "Engineer"}
            )
        assert await _count(session, StatusHistory) == 0


# ==================== Status transitions ==================== #

class TestStatusTransitions:
    """update_application_status and the history it records."""

    @pytest.mark.asyncio
    async def test_transition_appends_history(self, session, user, base_fields):
        application = await application_service.create_application(
            session, user.id, {**base_fields, "status": "Applied"}
        )

        updated = await application_service.update_application_status(
            session,
            user.id,
            application.id,
            ApplicationStatus.TECHNICAL_INTERVIEW,
            notes="Recruiter called",
            metadata={"round": 1},
        )

        assert updated.status == ApplicationStatus.TECHNICAL_INTERVIEW
        history = await _history(session, application.id)
        assert len(history) == 2
        latest = history[-1]
        assert latest.from_status == ApplicationStatus.APPLIED
        assert latest.to_status == ApplicationStatus.TECHNICAL_INTERVIEW
        assert latest.notes == "Recruiter called"
        assert latest.details == {"round": 1}
        assert latest.sequence == 2
        assert classify_transition(latest.from_status, latest.to_status) is TransitionKind.POSITIVE

    @pytest.mark.asyncio
    async def test_same_status_is_noop(self, session, user, base_fields):
        application = await application_service.create_application(
            session, user.id, {**base_fields, "status": "Applied"}
        )
        before = application.updated_at

        result = await application_service.update_application_status(
            session, user.id, application.id, "Applied"
        )

        assert result.status == ApplicationStatus.APPLIED
        assert await _count(
            session, StatusHistory, StatusHistory.job_application_id == application.id
        ) == 1
        assert result.updated_at == before

    @pytest.mark.asyncio
    async def test_negative_transition_recorded(self, session, user, base_fields):
        application = await application_service.create_application(
            session, user.id, {**base_fields, "status": "Applied"}
        )
        await application_service.update_application_status(
            session, user.id, application.id, "Rejected", changed_by="System"
        )

        latest = (await _history(session, application.id))[-1]
        assert latest.changed_by == ChangedBy.SYSTEM
        assert classify_transition(latest.from_status, latest.to_status) is TransitionKind.NEGATIVE

    @pytest.mark.asyncio
    async def test_ledger_stays_consistent(self, session, user, base_fields):
        application = await application_service.create_application(
            session, user.id, base_fields
        )
        for target in ("Applied", "Phone Screening", "Phone Screening", "On Hold",
                       "Phone Screening", "Final Interview", "Offer Extended"):
            application = await application_service.update_application_status(
                session, user.id, application.id, target
            )

        await _assert_ledger_consistent(session, application)
        assert len(await _history(session, application.id)) == 7

    @pytest.mark.asyncio
    async def test_unknown_status_rejected(self, session, user, base_fields):
        application = await application_service.create_application(
            session, user.id, base_fields
        )
        with pytest.raises(ValidationError):
            await application_service.update_application_status(
                session, user.id, application.id, "Ghosted"
            )

    @pytest.mark.asyncio
    async def test_other_users_application_not_found(
        self, session, user, other_user, base_fields
    ):
        application = await application_service.create_application(
            session, user.id, base_fields
        )
        with pytest.raises(NotFoundError):
            await application_service.update_application_status(
                session, other_user.id, application.id, "Applied"
            )
        assert len(await _history(session, application.id)) == 1

    @pytest.mark.asyncio
    async def test_racing_transition_is_a_conflict(
        self, session, user, base_fields, monkeypatch
    ):
        """A second writer claiming a taken sequence is rejected and rolled back."""
        application = await application_service.create_application(
            session, user.id, base_fields
        )

        async def stale_sequence(session, application_id):
            return 1

        monkeypatch.setattr(application_service, "_next_sequence", stale_sequence)
        with pytest.raises(ConflictError):
            await application_service.update_application_status(
                session, user.id, application.id, "Applied"
            )
        monkeypatch.undo()

        current = await application_service.get_application(session, user.id, application.id)
        assert current.status == ApplicationStatus.INTERESTED
        await _assert_ledger_consistent(session, current)


# ==================== Updates ==================== #

class TestUpdateApplication:
    """Partial updates, with and without a status change."""

    @pytest.mark.asyncio
    async def test_update_without_status_writes_no_history(
        self, session, user, base_fields
    ):
        application = await application_service.create_application(
            session, user.id, base_fields
        )
        updated = await application_service.update_application(
            session, user.id, application.id, {"notes": "Great team", "is_starred": True}
        )

        assert updated.notes == "Great team"
        assert updated.is_starred is True
        assert len(await _history(session, application.id)) == 1

    @pytest.mark.asyncio
    async def test_update_with_status_writes_one_row(self, session, user, base_fields):
        application = await application_service.create_application(
            session, user.id, base_fields
        )
        updated = await application_service.update_application(
            session,
            user.id,
            application.id,
            {"status": "Applied", "status_notes": "Sent via portal", "location": "Berlin"},
        )

        assert updated.status == ApplicationStatus.APPLIED
        assert updated.location == "Berlin"
        history = await _history(session, application.id)
        assert [(h.from_status, h.to_status) for h in history] == [
            (None, ApplicationStatus.INTERESTED),
            (ApplicationStatus.INTERESTED, ApplicationStatus.APPLIED),
        ]
        assert history[-1].notes == "Sent via portal"

    @pytest.mark.asyncio
    async def test_current_values_leave_updated_at_alone(self, session, user, base_fields):
        application = await application_service.create_application(
            session, user.id, base_fields
        )
        before = application.updated_at

        updated = await application_service.update_application(
            session,
            user.id,
            application.id,
            {"status": "Interested", "job_title": base_fields["job_title"]},
        )

        assert updated.updated_at == before
        assert len(await _history(session, application.id)) == 1

    @pytest.mark.asyncio
    async def test_merged_salary_range_checked(self, session, user, base_fields):
        application = await application_service.create_application(
            session, user.id, {**base_fields, "salary_min": 90000}
        )
        with pytest.raises(InvalidSalaryRangeError):
            await application_service.update_application(
                session, user.id, application.id, {"salary_max": 50000}
            )

        current = await application_service.get_application(session, user.id, application.id)
        assert current.salary_max is None

    @pytest.mark.asyncio
    async def test_missing_application(self, session, user):
        with pytest.raises(NotFoundError):
            await application_service.update_application(
                session, user.id, uuid.uuid4(), {"notes": "x"}
            )


# ==================== Reads ==================== #

class TestReads:
    """Listing, timeline and recent changes."""

    @pytest.mark.asyncio
    async def test_list_filters_and_scopes_to_user(
        self, session, user, other_user, base_fields
    ):
        await application_service.create_application(
            session, user.id, {**base_fields, "job_title": "Data Engineer", "status": "Applied"}
        )
        await application_service.create_application(
            session, user.id, {**base_fields, "job_title": "Platform Engineer"}
        )
        await application_service.create_application(
            session, other_user.id, {**base_fields, "status": "Applied"}
        )

        items, total = await application_service.list_applications(session, user.id)
        assert total == 2
        assert len(items) == 2

        applied, total = await application_service.list_applications(
            session, user.id, status="Applied"
        )
        assert total == 1
        assert applied[0].job_title == "Data Engineer"

        found, total = await application_service.list_applications(
            session, user.id, search="platform"
        )
        assert total == 1

    @pytest.mark.asyncio
    async def test_list_sorting_and_paging(self, session, user, base_fields):
        for title in ("Charlie", "Alpha", "Bravo"):
            await application_service.create_application(
                session, user.id, {**base_fields, "job_title": f"{title} Engineer"}
            )

        items, total = await application_service.list_applications(
            session, user.id, sort_by="job_title", sort_order="asc", limit=2, offset=0
        )
        assert total == 3
        assert [a.job_title for a in items] == ["Alpha Engineer", "Bravo Engineer"]

    @pytest.mark.asyncio
    async def test_list_rejects_unknown_sort(self, session, user):
        with pytest.raises(ValidationError):
            await application_service.list_applications(session, user.id, sort_by="salary")

    @pytest.mark.asyncio
    async def test_timeline_oldest_first(self, session, user, base_fields):
        application = await application_service.create_application(
            session, user.id, base_fields
        )
        await application_service.update_application_status(
            session, user.id, application.id, "Applied"
        )

        timeline = await application_service.get_timeline(session, user.id, application.id)
        assert [entry.sequence for entry in timeline] == [1, 2]
        assert timeline[0].from_status is None

    @pytest.mark.asyncio
    async def test_recent_changes_newest_first(self, session, user, base_fields):
        application = await application_service.create_application(
            session, user.id, base_fields
        )
        await application_service.update_application_status(
            session, user.id, application.id, "Applied"
        )

        changes = await application_service.recent_status_changes(session, user.id)
        assert changes[0].to_status == ApplicationStatus.APPLIED
        assert changes[0].job_application.company.name == "Acme Corp"

    @pytest.mark.asyncio
    async def test_overdue_follow_up(self, session, user, base_fields):
        application = await application_service.create_application(
            session,
            user.id,
            {**base_fields, "follow_up_date": utc_now() - timedelta(days=1)},
        )
        assert application.is_overdue()


# ==================== Full scenario ==================== #

@pytest.mark.asyncio
async def test_create_update_delete_scenario(session, user, base_fields):
    application = await application_service.create_application(
        session, user.id, {**base_fields, "status": "Interested"}
    )
    history = await _history(session, application.id)
    assert [(h.from_status, h.to_status) for h in history] == [
        (None, ApplicationStatus.INTERESTED)
    ]

    application = await application_service.update_application(
        session, user.id, application.id, {"status": "Applied"}
    )
    history = await _history(session, application.id)
    assert [(h.from_status, h.to_status) for h in history] == [
        (None, ApplicationStatus.INTERESTED),
        (ApplicationStatus.INTERESTED, ApplicationStatus.APPLIED),
    ]
    assert application.status == ApplicationStatus.APPLIED

    application_id = application.id
    await delete_application(session, user.id, application_id)

    assert await _count(
        session, StatusHistory, StatusHistory.job_application_id == application_id
    ) == 0
    with pytest.raises(NotFoundError):
        await application_service.get_application(session, user.id, application_id)

"""
Tests for user profile registration and updates.
"""

import uuid

import pytest

from api.services import users as user_service
from core.exceptions import (
    ConflictError,
    InvalidSalaryRangeError,
    NotFoundError,
    ValidationError,
)
from database.models.users import ExperienceLevel


class TestCreateUser:
    """Registering profiles."""

    @pytest.mark.asyncio
    async def test_register_with_issued_id(self, session):
        identity = uuid.uuid4()
        user = await user_service.create_user(
            session,
            "Alan@Example.com",
            {"first_name": "Alan", "last_name": "Turing", "experience_level": "senior"},
            user_id=identity,
        )

        assert user.id == identity
        assert user.email == "Alan@example.com"
        assert user.experience_level == ExperienceLevel.SENIOR
        assert user.full_name == "Alan Turing"

    @pytest.mark.asyncio
    async def test_duplicate_email(self, session, user):
        with pytest.raises(ConflictError):
            await user_service.create_user(
                session, user.email, {"first_name": "Ada", "last_name": "Byron"}
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email,fields", [
        ("not-an-email", {"first_name": "A", "last_name": "B"}),
        ("", {"first_name": "A", "last_name": "B"}),
        ("a@example.com", {"first_name": "A"}),
        ("a@example.com", {"first_name": "A", "last_name": "B", "role": "admin"}),
        ("a@example.com", {"first_name": "A", "last_name": "B", "github_url": "nope nope"}),
    ])
    async def test_rejects_malformed(self, session, email, fields):
        with pytest.raises(ValidationError):
            await user_service.create_user(session, email, fields)


class TestUpdateProfile:
    """Partial profile updates."""

    @pytest.mark.asyncio
    async def test_update(self, session, user):
        updated = await user_service.update_profile(
            session,
            user.id,
            {"current_job_title": "Analyst", "linkedin_url": "linkedin.com/in/ada"},
        )
        assert updated.current_job_title == "Analyst"
        assert updated.linkedin_url == "https://linkedin.com/in/ada"

    @pytest.mark.asyncio
    async def test_merged_salary_range(self, session, user):
        await user_service.update_profile(session, user.id, {"preferred_salary_min": 120000})
        with pytest.raises(InvalidSalaryRangeError):
            await user_service.update_profile(
                session, user.id, {"preferred_salary_max": 100000}
            )

    @pytest.mark.asyncio
    async def test_missing_user(self, session):
        with pytest.raises(NotFoundError):
            await user_service.update_profile(session, uuid.uuid4(), {"location": "Oslo"})

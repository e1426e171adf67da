"""
Tests for keyword associations and skill gap scoring.
"""

import uuid

import pytest
import pytest_asyncio

from api.services import applications as application_service
from api.services import keywords as keyword_service
from core.exceptions import ConflictError, NotFoundError, ValidationError
from database.models.keywords import (
    KeywordCategory,
    SkillLevel as L,
    calculate_gap_score,
)


def _score(**overrides):
    fields = {
        "is_required": True,
        "is_preferred": False,
        "skill_level": L.INTERMEDIATE,
        "user_skill_level": L.INTERMEDIATE,
        "years_required": None,
        "user_years_experience": 0,
    }
    fields.update(overrides)
    return calculate_gap_score(**fields)


class TestGapScore:
    """Sign and size of the gap score."""

    def test_neither_required_nor_preferred_is_neutral(self):
        assert _score(is_required=False, skill_level=L.EXPERT, user_skill_level=L.NONE) == 0.0

    def test_matching_level_is_neutral(self):
        assert _score() == 0.0

    def test_missing_required_skill(self):
        assert _score(skill_level=L.ADVANCED, user_skill_level=L.NONE) == 6.5

    def test_lower_level_is_a_gap(self):
        assert _score(skill_level=L.ADVANCED, user_skill_level=L.BEGINNER) == 1.0

    def test_higher_level_is_a_strength(self):
        assert _score(
            is_required=False, is_preferred=True, user_skill_level=L.EXPERT
        ) == -0.4

    @pytest.mark.parametrize("required,user,expected", [
        (5, 1, 2.0),
        (10, 0, 3.0),
        (2, 5, -0.5),
        (3, 3, 0.0),
    ])
    def test_years_of_experience(self, required, user, expected):
        assert _score(years_required=required, user_years_experience=user) == expected

    def test_unspecified_level_is_below_the_scale(self):
        assert _score(skill_level=L.NOT_SPECIFIED, user_skill_level=L.BEGINNER) == -0.4


@pytest_asyncio.fixture
async def application(session, user, company):
    return await application_service.create_application(
        session, user.id, {"company_id": company.id, "job_title": "Backend Engineer"}
    )


class TestAddKeyword:
    """Attaching keywords to an application."""

    @pytest.mark.asyncio
    async def test_attach_computes_gap(self, session, user, application):
        association = await keyword_service.add_keyword(
            session,
            user.id,
            application.id,
            {
                "word": "  PostgreSQL ",
                "category": "Tool",
                "is_required": True,
                "skill_level": "Advanced",
                "user_skill_level": "Beginner",
            },
        )

        assert association.keyword.word == "postgresql"
        assert association.keyword.category == KeywordCategory.TOOL
        assert association.gap_score == 1.0
        assert association.is_skill_gap
        assert not association.is_strength

    @pytest.mark.asyncio
    async def test_keyword_reused_across_applications(self, session, user, company, application):
        other = await application_service.create_application(
            session, user.id, {"company_id": company.id, "job_title": "Data Engineer"}
        )
        first = await keyword_service.add_keyword(session, user.id, application.id, {"word": "Python"})
        second = await keyword_service.add_keyword(session, user.id, other.id, {"word": "python"})

        assert first.keyword_id == second.keyword_id
        assert second.keyword.frequency == 2

    @pytest.mark.asyncio
    async def test_duplicate_is_conflict(self, session, user, application):
        await keyword_service.add_keyword(session, user.id, application.id, {"word": "Go"})
        with pytest.raises(ConflictError):
            await keyword_service.add_keyword(session, user.id, application.id, {"word": "GO"})

    @pytest.mark.asyncio
    async def test_other_users_application(self, session, other_user, application):
        with pytest.raises(NotFoundError):
            await keyword_service.add_keyword(
                session, other_user.id, application.id, {"word": "Rust"}
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("fields", [
        {},
        {"word": ""},
        {"word": "Rust", "match_strength": 11},
        {"word": "Rust", "skill_level": "Wizard"},
        {"word": "Rust", "years_required": -2},
    ])
    async def test_rejects_malformed(self, session, user, application, fields):
        with pytest.raises(ValidationError):
            await keyword_service.add_keyword(session, user.id, application.id, fields)


class TestKeywordQueries:
    """Listing and summarising an application's keywords."""

    @pytest_asyncio.fixture
    async def attached(self, session, user, application):
        keywords = [
            {"word": "Kubernetes", "is_required": True, "skill_level": "Advanced",
             "user_skill_level": "Beginner", "match_strength": 4},
            {"word": "Python", "is_preferred": True, "user_skill_level": "Expert",
             "in_resume": True, "match_strength": 9},
            {"word": "Teamwork", "category": "Soft Skill", "in_resume": True,
             "match_strength": 5},
        ]
        for fields in keywords:
            await keyword_service.add_keyword(session, user.id, application.id, fields)

    @pytest.mark.asyncio
    async def test_list_all_by_match_strength(self, session, user, application, attached):
        associations = await keyword_service.list_application_keywords(
            session, user.id, application.id
        )
        assert [a.keyword.word for a in associations] == ["python", "teamwork", "kubernetes"]

    @pytest.mark.asyncio
    async def test_gaps_and_strengths(self, session, user, application, attached):
        gaps = await keyword_service.list_application_keywords(
            session, user.id, application.id, gaps_only=True
        )
        strengths = await keyword_service.list_application_keywords(
            session, user.id, application.id, strengths_only=True
        )
        assert [a.keyword.word for a in gaps] == ["kubernetes"]
        assert [a.keyword.word for a in strengths] == ["python"]

    @pytest.mark.asyncio
    async def test_summary(self, session, user, application, attached):
        summary = await keyword_service.skill_match_summary(session, user.id, application.id)

        assert summary == {
            "total_keywords": 3,
            "required_keywords": 1,
            "matched_keywords": 2,
            "skill_gaps": 1,
            "strengths": 1,
            "average_match_strength": 6.0,
        }

    @pytest.mark.asyncio
    async def test_summary_without_keywords(self, session, user, application):
        summary = await keyword_service.skill_match_summary(session, user.id, application.id)
        assert summary["total_keywords"] == 0
        assert summary["average_match_strength"] is None

    @pytest.mark.asyncio
    async def test_missing_application(self, session, user):
        with pytest.raises(NotFoundError):
            await keyword_service.list_application_keywords(session, user.id, uuid.uuid4())

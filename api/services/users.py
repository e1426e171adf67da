"""
User service functions for API endpoints.

Profiles only; credentials are handled by the upstream auth provider.
Account deletion is in api.services.cascade.
"""

from typing import Any, Dict
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.utils.datetime import now as utc_now
from database.engine import transaction
from database.models.users import ExperienceLevel, User
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

PROFILE_FIELDS = {
    "first_name",
    "last_name",
    "phone_number",
    "location",
    "linkedin_url",
    "github_url",
    "portfolio_url",
    "current_job_title",
    "experience_level",
    "preferred_salary_min",
    "preferred_salary_max",
}


def _clean_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    cleaned: Dict[str, Any] = {}
    for name, value in fields.items():
        if name in ("first_name", "last_name"):
            cleaned[name] = require_length(value, name, 1, 50)
        elif name in ("linkedin_url", "github_url", "portfolio_url"):
            cleaned[name] = optional_url(value, name, normalize=True)
        elif name == "experience_level":
            cleaned[name] = coerce_enum(ExperienceLevel, value, name)
        elif name in ("preferred_salary_min", "preferred_salary_max"):
            cleaned[name] = non_negative_int(value, name)
        else:
            cleaned[name] = value
    return cleaned


async def create_user(
    session: AsyncSession,
    email: str,
    fields: Dict[str, Any],
    user_id: uuid.UUID | None = None,
) -> User:
    """
    Register a profile for an authenticated identity.

    Args:
        session: Database session
        email: Email address, unique across users
        fields: Profile fields; first_name and last_name are required
        user_id: Identity issued by the auth provider, generated if omitted

    Raises:
        ValidationError: On malformed fields
        ConflictError: If the email or id is already registered
    """
    reject_unknown_fields(fields, PROFILE_FIELDS)
    normalized_email = optional_email(email, "email")
    if normalized_email is None:
        raise ValidationError("email is required", {"field": "email"})
    for required in ("first_name", "last_name"):
        if required not in fields:
            raise ValidationError(f"{required} is required", {"field": required})
    cleaned = _clean_fields(fields)
    check_salary_range(
        cleaned.get("preferred_salary_min"), cleaned.get("preferred_salary_max")
    )

    conflict = "A user with this email already exists"
    async with transaction(session, "Failed to create user", conflict_message=conflict):
        existing = await session.execute(
            select(User.id).where(User.email == normalized_email)
        )
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(conflict, {"email": normalized_email})
        user = User(email=normalized_email, **cleaned)
        if user_id is not None:
            user.id = user_id
        session.add(user)

    logger.info("Registered user %s", user.id)
    return user


async def get_user(session: AsyncSession, user_id: uuid.UUID) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found", {"user_id": str(user_id)})
    return user


async def update_profile(
    session: AsyncSession, user_id: uuid.UUID, fields: Dict[str, Any]
) -> User:
    """
    Apply a partial profile update.

    Raises:
        NotFoundError: If the user does not exist
        ValidationError: On malformed fields
        InvalidSalaryRangeError: If the merged preferred salary range is inverted
    """
    reject_unknown_fields(fields, PROFILE_FIELDS)
    cleaned = _clean_fields(fields)

    async with transaction(session, "Failed to update profile"):
        user = await get_user(session, user_id)
        check_salary_range(
            cleaned.get("preferred_salary_min", user.preferred_salary_min),
            cleaned.get("preferred_salary_max", user.preferred_salary_max),
        )
        for name, value in cleaned.items():
            setattr(user, name, value)
        user.updated_at = utc_now()
    return user

"""
Company service functions for API endpoints.

Deletion lives in api.services.cascade because it removes applications.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple
import logging
import uuid

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.utils.datetime import now as utc_now
from database.engine import transaction
from database.models.companies import Company, CompanySize
from api.services.validation import (
    coerce_enum,
    optional_url,
    reject_unknown_fields,
    require_length,
)

logger = logging.getLogger(__name__)

COMPANY_FIELDS = {
    "name",
    "industry",
    "size",
    "location",
    "headquarters",
    "website",
    "linkedin_url",
    "description",
    "founded_year",
    "is_public",
    "glassdoor_rating",
    "notes",
}


def _clean_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    cleaned: Dict[str, Any] = {}
    for name, value in fields.items():
        if name == "name":
            cleaned[name] = require_length(value, name, 2, 100)
        elif name == "size":
            cleaned[name] = coerce_enum(CompanySize, value, name, nullable=True)
        elif name in ("website", "linkedin_url"):
            cleaned[name] = optional_url(value, name, normalize=True)
        elif name == "glassdoor_rating" and value is not None:
            try:
                rating = Decimal(str(value))
            except InvalidOperation:
                rating = None
            if rating is None or not Decimal("1.0") <= rating <= Decimal("5.0"):
                raise ValidationError(
                    "glassdoor_rating must be between 1.0 and 5.0", {"field": name}
                )
            cleaned[name] = rating.quantize(Decimal("0.1"))
        elif name == "is_public":
            cleaned[name] = bool(value)
        else:
            cleaned[name] = value
    return cleaned


async def _name_taken(
    session: AsyncSession, name: str, exclude_id: Optional[uuid.UUID] = None
) -> bool:
    query = select(Company.id).where(func.lower(Company.name) == name.lower())
    if exclude_id is not None:
        query = query.where(Company.id != exclude_id)
    result = await session.execute(query.limit(1))
    return result.scalar_one_or_none() is not None


async def create_company(
    session: AsyncSession, user_id: Optional[uuid.UUID], fields: Dict[str, Any]
) -> Company:
    """
    Create a company.

    Args:
        session: Database session
        user_id: User adding the company, recorded as added_by
        fields: Company fields; name is required

    Returns:
        The created company

    Raises:
        ValidationError: On malformed fields
        ConflictError: If a company with the same name (any case) exists
    """
    reject_unknown_fields(fields, COMPANY_FIELDS)
    if "name" not in fields:
        raise ValidationError("name is required", {"field": "name"})
    cleaned = _clean_fields(fields)

    conflict = f"Company '{cleaned['name']}' already exists"
    async with transaction(session, "Failed to create company", conflict_message=conflict):
        if await _name_taken(session, cleaned["name"]):
            raise ConflictError(conflict, {"name": cleaned["name"]})
        company = Company(added_by=user_id, **cleaned)
        session.add(company)

    logger.info("Created company %s (%s)", company.id, company.name)
    return company


async def update_company(
    session: AsyncSession,
    user_id: uuid.UUID,
    company_id: uuid.UUID,
    fields: Dict[str, Any],
) -> Company:
    """
    Apply a partial update to a company the user added.

    Raises:
        NotFoundError: If the company does not exist or was added by someone else
        ConflictError: If renamed to an existing name
    """
    reject_unknown_fields(fields, COMPANY_FIELDS)
    cleaned = _clean_fields(fields)

    async with transaction(
        session, "Failed to update company", conflict_message="Company name already exists"
    ):
        company = await get_company(session, company_id)
        if company.added_by != user_id:
            raise NotFoundError("Company not found", {"company_id": str(company_id)})
        if "name" in cleaned and await _name_taken(session, cleaned["name"], company_id):
            raise ConflictError(
                f"Company '{cleaned['name']}' already exists", {"name": cleaned["name"]}
            )
        for name, value in cleaned.items():
            setattr(company, name, value)
        company.updated_at = utc_now()

    return company


async def get_company(session: AsyncSession, company_id: uuid.UUID) -> Company:
    company = await session.get(Company, company_id)
    if company is None:
        raise NotFoundError("Company not found", {"company_id": str(company_id)})
    return company


async def list_companies(
    session: AsyncSession,
    search: Optional[str] = None,
    industry: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> Tuple[List[Company], int]:
    """
    List active companies ordered by name.

    Returns:
        Tuple of (companies for this page, total matching count)
    """
    query = select(Company).where(Company.is_active.is_(True))
    if search:
        query = query.where(Company.name.ilike(f"%{search.strip()}%"))
    if industry:
        query = query.where(Company.industry.ilike(f"%{industry.strip()}%"))

    total = (
        await session.execute(select(func.count()).select_from(query.subquery()))
    ).scalar() or 0

    result = await session.execute(
        query.order_by(Company.name.asc()).limit(limit).offset(offset)
    )
    return list(result.scalars().all()), total

"""Analytics endpoints over the caller's applications."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_active_user
from api.schemas.analytics import ActivityEntry, OverviewResponse, TimeInStatusEntry
from api.schemas.applications import RecentChange
from api.services import analytics as analytics_service
from api.services import applications as application_service
from core.utils.datetime import now as utc_now
from database.engine import get_db
from database.models.users import User

router = APIRouter()


@router.get(
    "/overview",
    response_model=OverviewResponse,
    summary="Dashboard overview",
    description="Totals, recent activity, follow-ups and response rate from one snapshot",
)
async def get_overview(
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> OverviewResponse:
    return OverviewResponse(**await analytics_service.overview(db, current_user.id))


@router.get(
    "/status-distribution",
    response_model=dict[str, int],
    summary="Applications per status",
)
async def get_status_distribution(
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, int]:
    return await analytics_service.status_distribution(db, current_user.id)


@router.get(
    "/time-in-status",
    response_model=list[TimeInStatusEntry],
    summary="Average days between status pairs",
)
async def get_time_in_status(
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> list[TimeInStatusEntry]:
    rows = await analytics_service.average_time_in_status(db, current_user.id)
    return [TimeInStatusEntry(**row) for row in rows]


@router.get(
    "/activity",
    response_model=list[ActivityEntry],
    summary="Status changes per day",
)
async def get_activity(
    days: int = Query(30, ge=1, le=365),
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> list[ActivityEntry]:
    rows = await analytics_service.status_activity(db, current_user.id, days=days)
    return [ActivityEntry(**row) for row in rows]


@router.get(
    "/recent-changes",
    response_model=list[RecentChange],
    summary="Latest status changes",
)
async def get_recent_changes(
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(require_active_user),
    db: AsyncSession = Depends(get_db),
) -> list[RecentChange]:
    history = await application_service.recent_status_changes(
        db, current_user.id, limit=limit
    )
    moment = utc_now()
    return [RecentChange.from_history(entry, moment) for entry in history]

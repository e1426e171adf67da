"""
Read-only statistics over a user's applications and status history.

Each function reads everything it needs with a single SELECT and derives
the numbers in Python, so one response never mixes two snapshots.
"""

from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.lifecycle import CLOSED_STATUSES, RESPONSE_STATUSES
from core.utils.datetime import (
    days_ago,
    ensure_utc,
    fractional_days_between,
    now as utc_now,
)
from database.models.applications import ApplicationStatus, JobApplication
from database.models.status_history import StatusHistory

logger = logging.getLogger(__name__)

RECENT_WINDOW_DAYS = settings.recent_window_days

_STATUS_ORDER = {status: index for index, status in enumerate(ApplicationStatus)}


def empty_distribution() -> Dict[str, int]:
    """Zero count for every status, in enumeration order."""
    return {status.value: 0 for status in ApplicationStatus}


def _distribution(statuses: List[ApplicationStatus]) -> Dict[str, int]:
    distribution = empty_distribution()
    for status in statuses:
        distribution[status.value] += 1
    return distribution


def response_rate(statuses: List[ApplicationStatus]) -> float:
    """
    Share of submitted applications that got any response, in percent.

    Applications still at Interested were never submitted and are not
    counted. Returns 0.0 when nothing has been submitted.
    """
    applied = sum(1 for status in statuses if status != ApplicationStatus.INTERESTED)
    if applied == 0:
        return 0.0
    responses = sum(1 for status in statuses if status in RESPONSE_STATUSES)
    return round(responses / applied * 100, 1)


async def status_distribution(
    session: AsyncSession, user_id: uuid.UUID
) -> Dict[str, int]:
    """
    Count applications per status.

    Returns:
        Mapping over all statuses in enumeration order; unused statuses are 0
    """
    result = await session.execute(
        select(JobApplication.status).where(JobApplication.user_id == user_id)
    )
    return _distribution(list(result.scalars().all()))


async def overview(
    session: AsyncSession,
    user_id: uuid.UUID,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Headline numbers for the dashboard.

    Args:
        session: Database session
        user_id: Owner of the applications
        now: Reference instant, defaults to the current time

    Returns:
        Dictionary with total_applications, recent_applications,
        upcoming_follow_ups, response_rate and status_distribution
    """
    now = ensure_utc(now) if now is not None else utc_now()
    recent_cutoff = days_ago(RECENT_WINDOW_DAYS, now)

    result = await session.execute(
        select(
            JobApplication.status,
            JobApplication.created_at,
            JobApplication.follow_up_date,
        ).where(JobApplication.user_id == user_id)
    )
    rows = result.all()
    statuses = [row.status for row in rows]

    recent = sum(1 for row in rows if ensure_utc(row.created_at) >= recent_cutoff)
    upcoming = sum(
        1
        for row in rows
        if row.follow_up_date is not None
        and ensure_utc(row.follow_up_date) >= now
        and row.status not in CLOSED_STATUSES
    )

    return {
        "total_applications": len(rows),
        "recent_applications": recent,
        "upcoming_follow_ups": upcoming,
        "response_rate": response_rate(statuses),
        "status_distribution": _distribution(statuses),
    }


async def average_time_in_status(
    session: AsyncSession, user_id: uuid.UUID
) -> List[Dict[str, Any]]:
    """
    Average days an application spent after each kind of transition.

    For every non-initial history row, the time until the next row of the
    same application is one sample for its (from_status, to_status) pair.
    Rows with no next row yet are still in progress and give no sample;
    pairs without samples are left out.

    Returns:
        List of dicts with from_status, to_status, average_days and
        samples, sorted by from_status then to_status in pipeline order
    """
    result = await session.execute(
        select(
            StatusHistory.job_application_id,
            StatusHistory.from_status,
            StatusHistory.to_status,
            StatusHistory.created_at,
        )
        .join(JobApplication, StatusHistory.job_application_id == JobApplication.id)
        .where(JobApplication.user_id == user_id)
        .order_by(StatusHistory.job_application_id, StatusHistory.sequence)
    )
    rows = result.all()

    samples: Dict[Tuple[ApplicationStatus, ApplicationStatus], List[float]]
    samples = defaultdict(list)
    for current, following in zip(rows, rows[1:]):
        if current.job_application_id != following.job_application_id:
            continue
        if current.from_status is None:
            continue
        samples[(current.from_status, current.to_status)].append(
            fractional_days_between(current.created_at, following.created_at)
        )

    averages = []
    for from_status, to_status in sorted(
        samples, key=lambda pair: (_STATUS_ORDER[pair[0]], _STATUS_ORDER[pair[1]])
    ):
        values = samples[(from_status, to_status)]
        averages.append({
            "from_status": from_status.value,
            "to_status": to_status.value,
            "average_days": round(sum(values) / len(values), 2),
            "samples": len(values),
        })
    return averages


async def status_activity(
    session: AsyncSession,
    user_id: uuid.UUID,
    days: int = 30,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """
    Daily count of transitions into each status over a trailing window.

    Returns:
        List of dicts with date (ISO, UTC), status and count, ordered by
        date then status enumeration order
    """
    now = ensure_utc(now) if now is not None else utc_now()
    since = days_ago(days, now)

    result = await session.execute(
        select(StatusHistory.to_status, StatusHistory.created_at)
        .join(JobApplication, StatusHistory.job_application_id == JobApplication.id)
        .where(
            JobApplication.user_id == user_id,
            StatusHistory.created_at >= since,
        )
    )

    counts: Dict[Tuple[str, ApplicationStatus], int] = defaultdict(int)
    for row in result.all():
        created_at = ensure_utc(row.created_at)
        if created_at > now:
            continue
        counts[(created_at.date().isoformat(), row.to_status)] += 1

    activity = [
        {"date": day, "status": status.value, "count": count}
        for (day, status), count in counts.items()
    ]
    activity.sort(
        key=lambda item: (item["date"], _STATUS_ORDER[ApplicationStatus(item["status"])])
    )
    return activity

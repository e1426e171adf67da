"""Analytics API schemas."""

from pydantic import BaseModel, Field

from database.models.applications import ApplicationStatus


class OverviewResponse(BaseModel):
    """Headline numbers for a user's applications."""

    total_applications: int
    recent_applications: int = Field(description="Created within the recent window")
    upcoming_follow_ups: int = Field(
        description="Follow-up date still ahead on applications that are not closed"
    )
    response_rate: float = Field(
        description="Percent of submitted applications that got a response"
    )
    status_distribution: dict[str, int] = Field(
        description="Count for every status, zero when unused"
    )


class TimeInStatusEntry(BaseModel):
    from_status: ApplicationStatus
    to_status: ApplicationStatus
    average_days: float
    samples: int


class ActivityEntry(BaseModel):
    date: str = Field(description="UTC date, YYYY-MM-DD")
    status: ApplicationStatus
    count: int

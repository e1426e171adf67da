"""
Application lifecycle rules.

The status progression and the status sets used to classify transitions
and compute analytics. Everything here is pure; nothing touches the
database.
"""

from datetime import datetime
from enum import Enum

from core.utils.datetime import days_elapsed
from database.models.applications import ApplicationStatus


# Forward pipeline stages, earliest first
STATUS_PROGRESSION: tuple[ApplicationStatus, ...] = (
    ApplicationStatus.INTERESTED,
    ApplicationStatus.APPLIED,
    ApplicationStatus.APPLICATION_VIEWED,
    ApplicationStatus.PHONE_SCREENING,
    ApplicationStatus.TECHNICAL_INTERVIEW,
    ApplicationStatus.ONSITE_INTERVIEW,
    ApplicationStatus.FINAL_INTERVIEW,
    ApplicationStatus.REFERENCE_CHECK,
    ApplicationStatus.OFFER_EXTENDED,
    ApplicationStatus.OFFER_ACCEPTED,
)

NEGATIVE_STATUSES: frozenset[ApplicationStatus] = frozenset(
    {
        ApplicationStatus.REJECTED,
        ApplicationStatus.WITHDRAWN,
        ApplicationStatus.OFFER_DECLINED,
    }
)

NEUTRAL_STATUSES: frozenset[ApplicationStatus] = frozenset({ApplicationStatus.ON_HOLD})

# The employer reacted in some way
RESPONSE_STATUSES: frozenset[ApplicationStatus] = frozenset(
    {
        ApplicationStatus.APPLICATION_VIEWED,
        ApplicationStatus.PHONE_SCREENING,
        ApplicationStatus.TECHNICAL_INTERVIEW,
        ApplicationStatus.ONSITE_INTERVIEW,
        ApplicationStatus.FINAL_INTERVIEW,
        ApplicationStatus.REFERENCE_CHECK,
        ApplicationStatus.OFFER_EXTENDED,
        ApplicationStatus.OFFER_ACCEPTED,
        ApplicationStatus.OFFER_DECLINED,
    }
)

# No further follow-up is expected
CLOSED_STATUSES: frozenset[ApplicationStatus] = frozenset(
    {
        ApplicationStatus.OFFER_ACCEPTED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.WITHDRAWN,
    }
)


class TransitionKind(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
    NOT_POSITIVE = "not_positive"


def coerce_status(value: ApplicationStatus | str | None) -> ApplicationStatus | None:
    """
    Convert a raw value to an ApplicationStatus.

    Args:
        value: Enum member, its label, or None

    Returns:
        The matching status, or None when the value is unknown
    """
    if value is None or isinstance(value, ApplicationStatus):
        return value
    try:
        return ApplicationStatus(value)
    except ValueError:
        return None


def classify_transition(
    from_status: ApplicationStatus | str | None,
    to_status: ApplicationStatus | str,
) -> TransitionKind:
    """
    Classify a status transition.

    Rules are checked in order: a negative target, a neutral target, an
    initial entry (no from status), then forward movement along
    STATUS_PROGRESSION. Anything else, including labels that are not a
    known status, is NOT_POSITIVE.

    Args:
        from_status: Status before the transition, None for the initial entry
        to_status: Status after the transition

    Returns:
        TransitionKind for the pair
    """
    target = coerce_status(to_status)
    if target in NEGATIVE_STATUSES:
        return TransitionKind.NEGATIVE
    if target in NEUTRAL_STATUSES:
        return TransitionKind.NEUTRAL
    if from_status is None:
        return TransitionKind.POSITIVE

    source = coerce_status(from_status)
    if source in STATUS_PROGRESSION and target in STATUS_PROGRESSION:
        if STATUS_PROGRESSION.index(target) > STATUS_PROGRESSION.index(source):
            return TransitionKind.POSITIVE
    return TransitionKind.NOT_POSITIVE


def is_positive_change(
    from_status: ApplicationStatus | str | None,
    to_status: ApplicationStatus | str,
) -> bool:
    return classify_transition(from_status, to_status) is TransitionKind.POSITIVE


def _label(status: ApplicationStatus | str) -> str:
    return status.value if isinstance(status, ApplicationStatus) else str(status)


def transition_label(
    from_status: ApplicationStatus | str | None,
    to_status: ApplicationStatus | str,
) -> str:
    """Human readable description of a transition."""
    if from_status is None:
        return f"Initial status: {_label(to_status)}"
    return f"{_label(from_status)} → {_label(to_status)}"


def days_since(created_at: datetime, now: datetime | None = None) -> int:
    """Whole days, rounded up, between a history entry and ``now``."""
    return days_elapsed(created_at, now)

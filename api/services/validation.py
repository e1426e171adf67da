"""
Field validation shared by the service layer.

Services receive plain dictionaries so they can be called without the HTTP
layer; these helpers turn raw values into model values or raise
ValidationError before anything is written.
"""

from enum import Enum
from typing import Any, Dict, Iterable, Optional, TypeVar

from core.exceptions import InvalidSalaryRangeError, ValidationError
from core.utils.validators import (
    normalize_job_url,
    validate_email,
    validate_length,
    validate_url,
)

E = TypeVar("E", bound=Enum)


def reject_unknown_fields(fields: Dict[str, Any], allowed: Iterable[str]) -> None:
    unknown = sorted(set(fields) - set(allowed))
    if unknown:
        raise ValidationError(
            f"Unknown field(s): {', '.join(unknown)}", {"fields": unknown}
        )


def coerce_enum(
    enum: type[E], value: Any, field: str, *, nullable: bool = False
) -> Optional[E]:
    """
    Convert a label (or member) to an enum member.

    Args:
        enum: Target enum class
        value: Member, label, or None
        field: Field name used in the error message
        nullable: Whether None is acceptable

    Returns:
        The enum member, or None when nullable and value is None

    Raises:
        ValidationError: If the value is not a member of the enum
    """
    if value is None:
        if nullable:
            return None
        raise ValidationError(f"{field} is required", {"field": field})
    if isinstance(value, enum):
        return value
    try:
        return enum(value)
    except ValueError:
        allowed = [member.value for member in enum]
        raise ValidationError(
            f"{field} must be one of: {', '.join(allowed)}",
            {"field": field, "allowed": allowed},
        ) from None


def require_length(value: Any, field: str, min_length: int, max_length: int) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field} is required", {"field": field})
    valid, error = validate_length(value, min_length, max_length)
    if not valid:
        raise ValidationError(f"{field} {error}", {"field": field})
    return value.strip()


def optional_email(value: Optional[str], field: str) -> Optional[str]:
    if not value:
        return None
    valid, result = validate_email(value)
    if not valid:
        raise ValidationError(f"{field} is not a valid email address", {"field": field})
    return result


def optional_url(value: Optional[str], field: str, *, normalize: bool = False) -> Optional[str]:
    if not value:
        return None
    url = normalize_job_url(value) if normalize else value.strip()
    valid, error = validate_url(url)
    if not valid:
        raise ValidationError(f"{field}: {error}", {"field": field})
    return url


def non_negative_int(value: Any, field: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{field} must be a non-negative integer", {"field": field})
    return value


def check_salary_range(salary_min: Optional[int], salary_max: Optional[int]) -> None:
    """Raise InvalidSalaryRangeError when both bounds are set and inverted."""
    if salary_min is not None and salary_max is not None and salary_min > salary_max:
        raise InvalidSalaryRangeError(
            "Minimum salary cannot be greater than maximum salary",
            {"salary_min": salary_min, "salary_max": salary_max},
        )

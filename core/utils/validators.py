"""Validation utilities for common data types."""

import re
from typing import Optional
from email_validator import validate_email as _validate_email, EmailNotValidError


def validate_email(email: str) -> tuple[bool, Optional[str]]:
    """
    Validate email address format.

    Args:
        email: Email address to validate

    Returns:
        Tuple of (is_valid, normalized_email or error_message)
    """
    try:
        validation = _validate_email(email, check_deliverability=False)
        return True, validation.normalized
    except EmailNotValidError as e:
        return False, str(e)


_URL_PATTERN = re.compile(
    r'^https?://'  # http:// or https://
    r'(?:(?:[A-Z0-9](?:[A-Z0-9-]{0,61}[A-Z0-9])?\.)+[A-Z]{2,63}\.?|'  # domain...
    r'localhost|'  # localhost...
    r'\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})'  # ...or ip
    r'(?::\d+)?'  # optional port
    r'(?:/?|[/?]\S+)$', re.IGNORECASE
)


def validate_url(url: str) -> tuple[bool, Optional[str]]:
    """
    Validate URL format.

    Args:
        url: URL to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url:
        return False, "URL is required"

    if not _URL_PATTERN.match(url):
        return False, "Invalid URL format"

    return True, None


def normalize_job_url(url: str) -> str:
    """
    Repair the usual hand-typed URL mistakes.

    ``https:example.com`` becomes ``https://example.com`` and a bare
    ``example.com`` gets an ``https://`` scheme.

    Args:
        url: URL as typed by the user

    Returns:
        Normalized URL (may still be invalid)
    """
    url = url.strip()
    if url.startswith('https:') and not url.startswith('https://'):
        url = url.replace('https:', 'https://', 1)
    if url.startswith('http:') and not url.startswith('http://'):
        url = url.replace('http:', 'http://', 1)
    if not url.startswith(('http://', 'https://')):
        url = 'https://' + url
    return url


def validate_length(
    value: str, min_length: int, max_length: int
) -> tuple[bool, Optional[str]]:
    """
    Validate that a stripped string length is within [min_length, max_length].

    Returns:
        Tuple of (is_valid, error_message)
    """
    length = len(value.strip()) if value else 0
    if length < min_length or length > max_length:
        return False, f"must be between {min_length} and {max_length} characters"
    return True, None


def sanitize_filename(filename: str) -> str:
    """
    Sanitize filename by removing dangerous characters.

    Args:
        filename: Original filename

    Returns:
        Sanitized filename
    """
    # Remove path separators and other dangerous chars
    sanitized = re.sub(r'[<>:"/\\|?*\x00-\x1f]', '', filename)

    # Replace spaces with underscores
    sanitized = sanitized.replace(' ', '_')

    # Limit length
    if len(sanitized) > 255:
        name, ext = sanitized.rsplit('.', 1) if '.' in sanitized else (sanitized, '')
        sanitized = name[:250] + ('.' + ext if ext else '')

    return sanitized

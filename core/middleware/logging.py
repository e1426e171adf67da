"""
Structured logging middleware with PII masking.

Applications carry recruiter and contact details, so request bodies and
query strings are masked before they reach the logs.
"""

import logging
import time
import json
import re
import uuid
from typing import Callable, Any, Optional
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import traceback

logger = logging.getLogger(__name__)


# Field names whose values are never logged
SENSITIVE_FIELD_PATTERNS = [
    re.compile(r'password', re.IGNORECASE),
    re.compile(r'token', re.IGNORECASE),
    re.compile(r'api[_-]?key', re.IGNORECASE),
    re.compile(r'secret', re.IGNORECASE),
    re.compile(r'authorization', re.IGNORECASE),
    re.compile(r'cookie', re.IGNORECASE),
    re.compile(r'session', re.IGNORECASE),
    re.compile(r'share[_-]?url', re.IGNORECASE),
]

# PII found inside free text
PII_PATTERNS = [
    (re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b'), '[EMAIL]'),
    (re.compile(r'\+\d{1,3}[-.\s]?\d{1,4}[-.\s]?\d{1,4}[-.\s]?\d{1,9}'), '[PHONE]'),
    (re.compile(r'\b\d{3}[-.]?\d{3}[-.]?\d{4}\b'), '[PHONE]'),
    (re.compile(r'\b\d{3}-\d{2}-\d{4}\b'), '[SSN]'),
]

SKIP_PATHS = ('/health', '/ready')


def is_sensitive_field(field_name: str) -> bool:
    return any(pattern.search(field_name) for pattern in SENSITIVE_FIELD_PATTERNS)


def mask_text(value: str) -> str:
    for pattern, replacement in PII_PATTERNS:
        value = pattern.sub(replacement, value)
    return value


def mask_sensitive_data(data: Any, depth: int = 0, max_depth: int = 10) -> Any:
    """
    Recursively mask sensitive data in dictionaries and lists.

    Args:
        data: Data structure to mask
        depth: Current recursion depth
        max_depth: Maximum recursion depth

    Returns:
        Copy of the data with sensitive fields redacted and PII masked
    """
    if depth > max_depth:
        return "[MAX_DEPTH_EXCEEDED]"

    if isinstance(data, dict):
        return {
            key: "[REDACTED]"
            if is_sensitive_field(str(key))
            else mask_sensitive_data(value, depth + 1, max_depth)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [mask_sensitive_data(item, depth + 1, max_depth) for item in data]
    if isinstance(data, str):
        return mask_text(data)
    return data


def mask_headers(headers: dict) -> dict:
    """
    Mask sensitive headers, keeping the scheme of Authorization values.

    Args:
        headers: Dictionary of HTTP headers

    Returns:
        Headers with sensitive values masked
    """
    masked = {}
    for key, value in headers.items():
        if not is_sensitive_field(key):
            masked[key] = value
        elif key.lower() == 'authorization' and ' ' in value:
            masked[key] = f"{value.split(' ', 1)[0]} [REDACTED]"
        else:
            masked[key] = "[REDACTED]"
    return masked


def should_log_request(path: str) -> bool:
    return not path.startswith(SKIP_PATHS)


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    One JSON line when a request starts and one when it completes.

    Features:
    - Request ID tracking (x-request-id is echoed back on the response)
    - Acting user id taken from the X-User-Id header
    - Optional masked request bodies
    - Timing with slow/moderate/fast markers
    """

    def __init__(
        self,
        app: ASGIApp,
        log_request_body: bool = False,
        log_response_body: bool = False,
        max_body_size: int = 1024,
    ):
        """
        Initialize logging middleware.

        Args:
            app: The ASGI application
            log_request_body: Whether to log request bodies (masked)
            log_response_body: Whether to log response sizes
            max_body_size: Maximum body size to log (bytes)
        """
        super().__init__(app)
        self.log_request_body = log_request_body
        self.log_response_body = log_response_body
        self.max_body_size = max_body_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get('x-request-id', str(uuid.uuid4()))
        request.state.request_id = request_id

        if not should_log_request(request.url.path):
            response = await call_next(request)
            response.headers['x-request-id'] = request_id
            return response

        start_time = time.time()
        user_id = request.headers.get('x-user-id')

        request_log = {
            'event': 'request_started',
            'request_id': request_id,
            'user_id': user_id,
            'method': request.method,
            'path': request.url.path,
            'query_params': mask_sensitive_data(dict(request.query_params)),
            'user_agent': request.headers.get('user-agent', 'unknown'),
        }

        if self.log_request_body and request.method in ('POST', 'PUT', 'PATCH'):
            body = await self._get_request_body(request)
            if body is not None:
                request_log['body'] = mask_sensitive_data(body)

        logger.info(json.dumps(request_log, default=str))

        response: Optional[Response] = None
        error_details = None
        try:
            response = await call_next(request)
        except Exception as exc:
            error_details = {'type': type(exc).__name__, 'message': mask_text(str(exc))}
            logger.error(
                f"Request processing error: {request.method} {request.url.path}",
                exc_info=True,
                extra={'request_id': request_id, 'user_id': user_id},
            )
            raise
        finally:
            duration = time.time() - start_time
            response_log = {
                'event': 'request_completed',
                'request_id': request_id,
                'user_id': user_id,
                'method': request.method,
                'path': request.url.path,
                'duration_ms': round(duration * 1000, 2),
                'status_code': response.status_code if response else 500,
            }
            if error_details:
                response_log['error'] = error_details
            if self.log_response_body and response is not None:
                response_log['content_length'] = response.headers.get('content-length')

            if duration > 5.0:
                response_log['performance'] = 'slow'
            elif duration > 1.0:
                response_log['performance'] = 'moderate'
            else:
                response_log['performance'] = 'fast'

            status_code = response_log['status_code']
            if status_code >= 500:
                logger.error(json.dumps(response_log, default=str))
            elif status_code >= 400:
                logger.warning(json.dumps(response_log, default=str))
            else:
                logger.info(json.dumps(response_log, default=str))

            if response is not None:
                response.headers['x-request-id'] = request_id

        return response

    async def _get_request_body(self, request: Request) -> Any:
        """
        Read a JSON request body for logging.

        Returns:
            Parsed body, a truncation marker, or None if it is not JSON
        """
        if 'application/json' not in request.headers.get('content-type', ''):
            return None
        body_bytes = await request.body()
        if len(body_bytes) > self.max_body_size:
            return {'_truncated': True, '_size': len(body_bytes)}
        try:
            return json.loads(body_bytes.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.debug(f"Could not parse request body: {e}")
            return None


class StructuredFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': self.formatTime(record, self.datefmt),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        for attr in ('request_id', 'user_id'):
            if hasattr(record, attr):
                log_data[attr] = getattr(record, attr)

        if record.exc_info and record.exc_info[0] is not None:
            log_data['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': traceback.format_exception(*record.exc_info),
            }

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = "INFO", json_logs: bool = True):
    """
    Configure application-wide logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_logs: Whether to format logs as JSON
    """
    level = getattr(logging, log_level.upper())
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    if json_logs:
        console_handler.setFormatter(StructuredFormatter())
    else:
        console_handler.setFormatter(
            logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        )
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
    logging.getLogger('aiosqlite').setLevel(logging.WARNING)

"""
Tests for structured logging middleware and PII masking.
"""

import json
import logging
from unittest.mock import patch

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from core.middleware.logging import (
    StructuredFormatter,
    StructuredLoggingMiddleware,
    is_sensitive_field,
    mask_headers,
    mask_sensitive_data,
    mask_text,
    setup_logging,
    should_log_request,
)


class TestSensitiveFieldDetection:
    """Field names whose values are never logged."""

    @pytest.mark.parametrize("field_name,expected", [
        ("password", True),
        ("api_key", True),
        ("API-KEY", True),
        ("Authorization", True),
        ("share_url", True),
        ("session_id", True),
        ("job_title", False),
        ("company_id", False),
        ("notes", False),
    ])
    def test_sensitive_field_patterns(self, field_name, expected):
        assert is_sensitive_field(field_name) is expected


class TestPIIMasking:
    """Contact details inside free text."""

    def test_email(self):
        assert mask_text("Recruiter is jane.doe@acme.com") == "Recruiter is [EMAIL]"

    @pytest.mark.parametrize("text", [
        "Call 555-123-4567 tomorrow",
        "Call +44 20 7946 0958 tomorrow",
    ])
    def test_phone(self, text):
        masked = mask_text(text)
        assert "[PHONE]" in masked
        assert masked.startswith("Call ")

    def test_plain_text_untouched(self):
        assert mask_text("Phone screen went well") == "Phone screen went well"


class TestDataStructureMasking:

    def test_application_payload(self):
        payload = {
            "job_title": "Backend Engineer",
            "recruiter_email": "sam@globex.com",
            "contact_phone": "555-987-6543",
            "custom_fields": {"referral_token": "abc", "team": "Payments"},
            "tags": ["remote", "ping me at me@example.org"],
        }

        masked = mask_sensitive_data(payload)

        assert masked["job_title"] == "Backend Engineer"
        assert masked["recruiter_email"] == "[EMAIL]"
        assert masked["contact_phone"] == "[PHONE]"
        assert masked["custom_fields"] == {"referral_token": "[REDACTED]", "team": "Payments"}
        assert masked["tags"] == ["remote", "ping me at [EMAIL]"]
        # Input is not modified
        assert payload["recruiter_email"] == "sam@globex.com"

    def test_non_strings_pass_through(self):
        assert mask_sensitive_data({"salary_min": 90000, "is_starred": None}) == {
            "salary_min": 90000,
            "is_starred": None,
        }

    def test_max_depth(self):
        nested = {"a": {"b": {"c": {"d": "deep"}}}}
        masked = mask_sensitive_data(nested, max_depth=2)
        assert masked["a"]["b"]["c"] == "[MAX_DEPTH_EXCEEDED]"


class TestHeaderMasking:

    def test_authorization_keeps_scheme(self):
        masked = mask_headers({"Authorization": "Bearer abc.def", "Accept": "*/*"})
        assert masked == {"Authorization": "Bearer [REDACTED]", "Accept": "*/*"}

    def test_cookie(self):
        assert mask_headers({"cookie": "sid=1"}) == {"cookie": "[REDACTED]"}

    def test_user_id_header_is_kept(self):
        assert mask_headers({"X-User-Id": "42"}) == {"X-User-Id": "42"}


class TestStructuredLoggingMiddleware:

    @pytest.fixture
    def client(self):
        app = FastAPI()
        app.add_middleware(StructuredLoggingMiddleware, log_request_body=True)

        @app.get("/applications")
        async def list_applications():
            return []

        @app.post("/applications")
        async def create_application(request: Request):
            await request.json()
            return {"created": True}

        @app.get("/health")
        async def health():
            return {"status": "healthy"}

        return TestClient(app)

    def _logged_events(self, mock_logger):
        events = []
        for method in (mock_logger.info, mock_logger.warning, mock_logger.error):
            for call in method.call_args_list:
                try:
                    events.append(json.loads(call.args[0]))
                except (ValueError, IndexError):
                    continue
        return events

    def test_start_and_completion_logged(self, client):
        with patch("core.middleware.logging.logger") as mock_logger:
            response = client.get("/applications", headers={"X-User-Id": "user-1"})

        assert response.status_code == 200
        events = self._logged_events(mock_logger)
        assert [e["event"] for e in events] == ["request_started", "request_completed"]
        assert all(e["user_id"] == "user-1" for e in events)
        assert events[1]["status_code"] == 200
        assert events[1]["performance"] == "fast"
        assert "duration_ms" in events[1]

    def test_request_id_generated_and_preserved(self, client):
        generated = client.get("/applications")
        assert generated.headers["x-request-id"]

        preserved = client.get("/applications", headers={"x-request-id": "req-7"})
        assert preserved.headers["x-request-id"] == "req-7"

    def test_health_check_not_logged(self, client):
        with patch("core.middleware.logging.logger") as mock_logger:
            response = client.get("/health")

        assert response.status_code == 200
        assert not mock_logger.info.called
        assert "x-request-id" in response.headers

    def test_body_masked(self, client):
        with patch("core.middleware.logging.logger") as mock_logger:
            client.post(
                "/applications",
                json={"job_title": "SRE", "contact_email": "hr@initech.com"},
            )

        started = self._logged_events(mock_logger)[0]
        assert started["body"] == {"job_title": "SRE", "contact_email": "[EMAIL]"}

    def test_should_log_request(self):
        assert should_log_request("/api/v1/applications")
        assert not should_log_request("/health")
        assert not should_log_request("/ready")


class TestLoggingSetup:

    def test_formatter_emits_json(self):
        record = logging.LogRecord(
            "api.services.applications", logging.INFO, __file__, 1,
            "Created application %s", ("abc",), None,
        )
        record.request_id = "req-1"

        data = json.loads(StructuredFormatter().format(record))

        assert data["message"] == "Created application abc"
        assert data["level"] == "INFO"
        assert data["request_id"] == "req-1"

    def test_setup_logging_json_format(self):
        setup_logging(log_level="DEBUG", json_logs=True)
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, StructuredFormatter)

    def test_setup_logging_text_format(self):
        setup_logging(log_level="INFO", json_logs=False)
        assert not isinstance(logging.getLogger().handlers[0].formatter, StructuredFormatter)

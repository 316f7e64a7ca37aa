"""Tests for domain error handler to verify structured JSON error responses."""
import json

import pytest
from fastapi.responses import JSONResponse

from program_tracker.core.error_handlers import ERROR_STATUS_MAP, domain_error_handler
from program_tracker.core.exceptions import (
    ConflictError,
    DomainError,
    InvalidStateError,
    NotFoundError,
    StoreError,
    ValidationError,
)


class MockRequest:
    """Mock FastAPI Request object for testing."""

    def __init__(self, request_id: str = "test-request-123"):
        self.state = type('State', (), {'request_id': request_id})()


class TestDomainErrorExceptions:
    """Test domain exception classes and their error codes."""

    def test_domain_error_base(self):
        error = DomainError(code="TEST_001", message="Test error message", details={"key": "value"})

        assert error.code == "TEST_001"
        assert error.message == "Test error message"
        assert error.details == {"key": "value"}
        assert str(error) == "Test error message"

    def test_not_found_error(self):
        error = NotFoundError("enrollment", "Enrollment not found", {"enrollment_id": 123})

        assert error.code == "NF_ENROLLMENT_001"
        assert error.message == "Enrollment not found"
        assert error.details == {"enrollment_id": 123}

    def test_not_found_error_default_message(self):
        error = NotFoundError("program")

        assert error.code == "NF_PROGRAM_001"
        assert error.message == "program not found"
        assert error.details == {}

    def test_validation_error(self):
        error = ValidationError("day_number", "must be 1 or greater")

        assert error.code == "VAL_DAY_NUMBER_001"
        assert error.message == "Validation failed for day_number: must be 1 or greater"
        assert error.details == {"field": "day_number"}

    def test_conflict_error_default(self):
        error = ConflictError("Resource already exists")

        assert error.code == "CF_001"
        assert error.details == {}

    def test_conflict_error_custom(self):
        error = ConflictError(
            "User already has an open enrollment",
            code="CF_ENROLLMENT_ACTIVE",
            details={"user_id": 1},
        )

        assert error.code == "CF_ENROLLMENT_ACTIVE"
        assert error.details == {"user_id": 1}

    def test_invalid_state_error(self):
        error = InvalidStateError("day", "Cannot complete day 3 while it is upcoming", {"state": "upcoming"})

        assert error.code == "IS_DAY_001"
        assert error.details == {"state": "upcoming"}

    def test_store_error_retryable(self):
        error = StoreError("timed out", code="ST_TIMEOUT", retryable=True, details={"operation": "enroll"})

        assert error.retryable is True
        assert error.details == {"operation": "enroll", "retryable": True}

    def test_store_error_default(self):
        error = StoreError("disk full")

        assert error.code == "ST_001"
        assert error.retryable is False


class TestErrorStatusMap:
    """Test ERROR_STATUS_MAP mapping."""

    def test_status_map_complete(self):
        for error_type in (NotFoundError, ValidationError, ConflictError, InvalidStateError, StoreError):
            assert error_type in ERROR_STATUS_MAP

    def test_statuses(self):
        assert ERROR_STATUS_MAP[NotFoundError] == 404
        assert ERROR_STATUS_MAP[ValidationError] == 400
        assert ERROR_STATUS_MAP[ConflictError] == 409
        assert ERROR_STATUS_MAP[InvalidStateError] == 409
        assert ERROR_STATUS_MAP[StoreError] == 503


class TestDomainErrorHandler:
    """Test domain_error_handler function."""

    @pytest.mark.asyncio
    async def test_not_found_error_response(self):
        error = NotFoundError("enrollment", "Enrollment 999 not found", {"enrollment_id": 999})
        request = MockRequest(request_id="req-123")

        response = await domain_error_handler(request, error)

        assert isinstance(response, JSONResponse)
        assert response.status_code == 404
        data = json.loads(response.body.decode())
        assert data["data"] is None
        assert data["meta"]["request_id"] == "req-123"
        assert "timestamp" in data["meta"]
        assert data["errors"] == [
            {
                "code": "NF_ENROLLMENT_001",
                "message": "Enrollment 999 not found",
                "details": {"enrollment_id": 999},
            }
        ]

    @pytest.mark.asyncio
    async def test_invalid_state_error_response(self):
        error = InvalidStateError("enrollment", "Cannot pause an enrollment that is enrolled")

        response = await domain_error_handler(MockRequest(), error)

        assert response.status_code == 409
        data = json.loads(response.body.decode())
        assert data["errors"][0]["code"] == "IS_ENROLLMENT_001"

    @pytest.mark.asyncio
    async def test_store_error_response(self):
        error = StoreError("complete_day timed out", code="ST_TIMEOUT", retryable=True)

        response = await domain_error_handler(MockRequest(), error)

        assert response.status_code == 503
        data = json.loads(response.body.decode())
        assert data["errors"][0]["details"]["retryable"] is True

    @pytest.mark.asyncio
    async def test_unmapped_error_is_500(self):
        error = DomainError("X_001", "Something odd")

        response = await domain_error_handler(MockRequest(), error)

        assert response.status_code == 500

    @pytest.mark.asyncio
    async def test_request_without_id(self):
        class BareRequest:
            state = type('State', (), {})()

        response = await domain_error_handler(BareRequest(), NotFoundError("program"))

        data = json.loads(response.body.decode())
        assert data["meta"]["request_id"] is None

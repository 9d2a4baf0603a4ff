"""
Tests for the error taxonomy, ServiceResult and the DRF exception handler.

Why it matters: Every surface maps failures through these pieces, so a
wrong status here is a wrong status everywhere.
"""

from unittest.mock import Mock

import pytest
from rest_framework import status
from rest_framework.exceptions import NotAuthenticated

from core.exceptions import (
    ERROR_STATUS_CODES,
    AuthenticationError,
    ConflictError,
    ErrorCode,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    api_exception_handler,
)
from core.services import ServiceResult


class TestErrorTaxonomy:
    @pytest.mark.parametrize(
        ("code", "expected"),
        [
            (ErrorCode.UNAUTHENTICATED, 401),
            (ErrorCode.FORBIDDEN, 403),
            (ErrorCode.NOT_FOUND, 404),
            (ErrorCode.INVALID_INPUT, 400),
            (ErrorCode.CONFLICT, 409),
            (ErrorCode.INTERNAL_ERROR, 500),
        ],
    )
    def test_error_codes_map_to_http_status(self, code, expected):
        assert ERROR_STATUS_CODES[code] == expected

    def test_exception_carries_code_and_details(self):
        error = NotFoundError("Message not found", details={"message_id": "m1"})

        assert error.status_code == status.HTTP_404_NOT_FOUND
        assert error.to_dict() == {
            "error": "Message not found",
            "error_code": ErrorCode.NOT_FOUND,
            "details": {"message_id": "m1"},
        }
        assert str(error) == "[NOT_FOUND] Message not found"

    @pytest.mark.parametrize(
        ("error_class", "code", "expected"),
        [
            (ValidationError, ErrorCode.INVALID_INPUT, 400),
            (PermissionDeniedError, ErrorCode.FORBIDDEN, 403),
            (NotFoundError, ErrorCode.NOT_FOUND, 404),
            (ConflictError, ErrorCode.CONFLICT, 409),
        ],
    )
    def test_subclasses_carry_their_taxonomy(self, error_class, code, expected):
        error = error_class("nope")

        assert error.error_code == code
        assert error.status_code == expected

    def test_authentication_error_defaults(self):
        error = AuthenticationError("Token is invalid or expired")

        assert error.error_code == ErrorCode.UNAUTHENTICATED
        assert error.status_code == status.HTTP_401_UNAUTHORIZED


class TestServiceResult:
    def test_success_is_truthy(self):
        result = ServiceResult.success({"id": 1})

        assert result
        assert result.data == {"id": 1}

    def test_failure_status_follows_error_code(self):
        result = ServiceResult.failure("Chat not found", error_code=ErrorCode.NOT_FOUND)

        assert not result
        assert result.status_code == status.HTTP_404_NOT_FOUND
        assert result.to_response() == {
            "error": "Chat not found",
            "error_code": ErrorCode.NOT_FOUND,
        }

    def test_failure_without_code_is_a_bad_request(self):
        result = ServiceResult.failure("Nope", errors={"field": ["bad"]})

        assert result.status_code == status.HTTP_400_BAD_REQUEST
        assert result.to_response()["errors"] == {"field": ["bad"]}


class TestApiExceptionHandler:
    def test_drf_exceptions_keep_default_rendering(self):
        response = api_exception_handler(NotAuthenticated(), {"view": Mock()})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_application_errors_use_their_status(self):
        response = api_exception_handler(
            ConflictError("User is already a member"), {"view": Mock()}
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error_code"] == ErrorCode.CONFLICT

    def test_unexpected_errors_are_generic_500(self):
        """
        Why it matters: Internal details must never leak to clients.
        """
        response = api_exception_handler(RuntimeError("db password is hunter2"), {})

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert "hunter2" not in str(response.data)
        assert response.data["error_code"] == ErrorCode.INTERNAL_ERROR

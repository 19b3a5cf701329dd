"""Unit tests for mapping service errors onto responses."""

import json

import pytest

from trivia_api.api.response_patterns import GENERIC_ERROR_MESSAGE, APIResponseHandler
from trivia_api.core.errors import (
    BusyError,
    ClientError,
    QueueTimeoutError,
    TransientInfraError,
)
from trivia_api.core.result_types import Err, Ok


class TestAPIResponseHandler:
    """Test status codes and message exposure."""

    @pytest.mark.parametrize(
        ("error", "status"),
        [
            (ClientError("Limit cannot exceed 20 questions"), 400),
            (BusyError("Server is too busy. Please try again later."), 503),
            (QueueTimeoutError("Request timeout while waiting in queue"), 503),
            (TransientInfraError("Database unavailable: reset"), 500),
        ],
    )
    def test_status_codes(self, error, status: int) -> None:
        """Test each error kind maps to its HTTP status."""
        response = APIResponseHandler.error_response(error, is_production=False)

        assert response.status_code == status
        assert json.loads(response.body)["status"] == "error"

    def test_caller_facing_messages_survive_production(self) -> None:
        """Test admission messages are always shown."""
        error = BusyError("Server is too busy. Please try again later.")

        message = APIResponseHandler.public_message(error, is_production=True)

        assert message == "Server is too busy. Please try again later."

    def test_internal_messages_hidden_in_production(self) -> None:
        """Test infrastructure details are replaced by a generic message."""
        error = TransientInfraError("Database unavailable: host db.internal")

        assert (
            APIResponseHandler.public_message(error, is_production=True)
            == GENERIC_ERROR_MESSAGE
        )
        assert "db.internal" in APIResponseHandler.public_message(
            error, is_production=False
        )

    def test_client_errors_have_no_timestamp(self) -> None:
        """Test 4xx bodies carry only status and message."""
        response = APIResponseHandler.error_response(
            ClientError("Limit must be a positive integer"), is_production=True
        )

        assert json.loads(response.body) == {
            "status": "error",
            "message": "Limit must be a positive integer",
        }

    def test_from_result(self) -> None:
        """Test Ok values are unwrapped and Err values converted."""
        assert APIResponseHandler.from_result(Ok("batch"), is_production=False) == "batch"

        response = APIResponseHandler.from_result(
            Err(ClientError("bad")), is_production=False
        )
        assert response.status_code == 400

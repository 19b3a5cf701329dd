"""Unit tests for error classification."""

import asyncio

import asyncpg
import pytest

from trivia_api.core.errors import (
    BusyError,
    ClientError,
    ErrorKind,
    FatalConfigError,
    QueueTimeoutError,
    RowValidationError,
    TransientInfraError,
    TriviaError,
    classify_database_error,
)


class TestErrorKind:
    """Test the properties attached to each kind."""

    def test_only_transient_errors_are_retryable(self) -> None:
        """Test retryability is limited to transient infrastructure errors."""
        retryable = {kind for kind in ErrorKind if kind.retryable}

        assert retryable == {ErrorKind.TRANSIENT}

    @pytest.mark.parametrize(
        ("error", "status"),
        [
            (ClientError("bad limit"), 400),
            (BusyError("busy"), 503),
            (QueueTimeoutError("timeout"), 503),
            (TransientInfraError("down"), 500),
            (FatalConfigError("no pool"), 500),
            (TriviaError("bug"), 500),
        ],
    )
    def test_http_status(self, error: TriviaError, status: int) -> None:
        """Test the status code each error maps to."""
        assert error.http_status == status

    def test_row_validation_error_lists_problems(self) -> None:
        """Test row validation errors keep the row id and problems."""
        error = RowValidationError(7, ["options: too short", "difficulty: invalid"])

        assert error.row_id == 7
        assert error.kind is ErrorKind.VALIDATION_DROP
        assert "Invalid question 7" in error.message
        assert "options: too short" in error.message


class TestClassifyDatabaseError:
    """Test mapping of driver and network exceptions."""

    @pytest.mark.parametrize(
        ("exc", "kind"),
        [
            (ConnectionResetError("reset"), ErrorKind.TRANSIENT),
            (ConnectionRefusedError("refused"), ErrorKind.TRANSIENT),
            (OSError("network unreachable"), ErrorKind.TRANSIENT),
            (asyncpg.InterfaceError("connection is closed"), ErrorKind.TRANSIENT),
            (asyncpg.TooManyConnectionsError("too many"), ErrorKind.TRANSIENT),
            (asyncpg.PostgresError("server error"), ErrorKind.TRANSIENT),
            (asyncio.TimeoutError(), ErrorKind.OPERATION_TIMEOUT),
            (TimeoutError("timed out"), ErrorKind.OPERATION_TIMEOUT),
            (asyncpg.QueryCanceledError("statement timeout"), ErrorKind.OPERATION_TIMEOUT),
            (asyncpg.UniqueViolationError("duplicate"), ErrorKind.CONSTRAINT),
            (asyncpg.DataError("bad input"), ErrorKind.INTERNAL),
            (ValueError("bug"), ErrorKind.INTERNAL),
        ],
    )
    def test_classification(self, exc: BaseException, kind: ErrorKind) -> None:
        """Test each exception gets the expected kind."""
        assert classify_database_error(exc).kind is kind

    def test_tagged_error_is_returned_unchanged(self) -> None:
        """Test classification is idempotent."""
        error = BusyError("busy")

        assert classify_database_error(error) is error

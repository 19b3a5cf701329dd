# TriviaCore - Trivia Questions API
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Error taxonomy for the question-serving core.

Errors are tagged with an :class:`ErrorKind` at the point they originate so
that callers never have to inspect driver error codes or message text to
decide whether to retry or which HTTP status to answer with.
"""

import asyncio
from enum import Enum

import asyncpg
from beartype import beartype


class ErrorKind(str, Enum):
    """Classification of every failure the core can surface."""

    CLIENT = "client_error"
    BUSY = "server_busy"
    QUEUE_TIMEOUT = "queue_timeout"
    TRANSIENT = "transient_infra"
    OPERATION_TIMEOUT = "operation_timeout"
    CONSTRAINT = "constraint_violation"
    VALIDATION_DROP = "validation_drop"
    FATAL_CONFIG = "fatal_config"
    INTERNAL = "internal"

    @property
    def retryable(self) -> bool:
        """Only transient infrastructure failures are worth another attempt."""
        return self is ErrorKind.TRANSIENT

    @property
    def http_status(self) -> int:
        """HTTP status answered when this kind reaches the API layer."""
        return _HTTP_STATUS[self]


_HTTP_STATUS: dict[ErrorKind, int] = {
    ErrorKind.CLIENT: 400,
    ErrorKind.BUSY: 503,
    ErrorKind.QUEUE_TIMEOUT: 503,
    ErrorKind.TRANSIENT: 500,
    ErrorKind.OPERATION_TIMEOUT: 500,
    ErrorKind.CONSTRAINT: 500,
    ErrorKind.VALIDATION_DROP: 500,
    ErrorKind.FATAL_CONFIG: 500,
    ErrorKind.INTERNAL: 500,
}


class TriviaError(Exception):
    """Base error carrying its classification."""

    default_kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, *, kind: ErrorKind | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind or self.default_kind

    @property
    def retryable(self) -> bool:
        return self.kind.retryable

    @property
    def http_status(self) -> int:
        return self.kind.http_status

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, kind={self.kind.value})"


class ClientError(TriviaError):
    """Invalid request parameters."""

    default_kind = ErrorKind.CLIENT


class BusyError(TriviaError):
    """Admission queue is full."""

    default_kind = ErrorKind.BUSY


class QueueTimeoutError(TriviaError):
    """Operation waited in the admission queue for too long."""

    default_kind = ErrorKind.QUEUE_TIMEOUT


class TransientInfraError(TriviaError):
    """Connection or query failure expected to clear on its own."""

    default_kind = ErrorKind.TRANSIENT


class OperationTimeoutError(TriviaError):
    """The database operation itself timed out."""

    default_kind = ErrorKind.OPERATION_TIMEOUT


class ConstraintViolationError(TriviaError):
    """Integrity constraint violated; repeating the statement cannot succeed."""

    default_kind = ErrorKind.CONSTRAINT


class RowValidationError(TriviaError):
    """A single stored row does not match the question schema."""

    default_kind = ErrorKind.VALIDATION_DROP

    def __init__(self, row_id: object, problems: list[str]) -> None:
        super().__init__(f"Invalid question {row_id}: {'; '.join(problems)}")
        self.row_id = row_id
        self.problems = problems


class FatalConfigError(TriviaError):
    """The connection pool cannot be constructed at all."""

    default_kind = ErrorKind.FATAL_CONFIG


_TRANSIENT_DRIVER_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.PostgresConnectionError,
    asyncpg.InterfaceError,
    asyncpg.TooManyConnectionsError,
    asyncpg.CannotConnectNowError,
    asyncpg.OperatorInterventionError,
    ConnectionError,
    OSError,
)


@beartype
def classify_database_error(exc: BaseException) -> TriviaError:
    """Convert a driver/network exception into a tagged :class:`TriviaError`.

    Timeouts, constraint violations and malformed data are terminal. Network
    and server-side failures are retryable. Anything that is not a database
    or network failure is treated as an internal bug and never retried.
    """
    if isinstance(exc, TriviaError):
        return exc

    # TimeoutError is an OSError subclass; it must be matched first.
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError, asyncpg.QueryCanceledError)):
        return OperationTimeoutError(f"Database operation timed out: {exc}")

    if isinstance(exc, asyncpg.UniqueViolationError):
        return ConstraintViolationError(f"Unique constraint violated: {exc}")

    if isinstance(exc, asyncpg.DataError):
        return TriviaError(f"Query data validation failed: {exc}")

    if isinstance(exc, _TRANSIENT_DRIVER_ERRORS):
        return TransientInfraError(f"Database unavailable: {exc}")

    if isinstance(exc, asyncpg.PostgresError):
        return TransientInfraError(f"Database query failed: {exc}")

    return TriviaError(f"Unexpected error: {type(exc).__name__}: {exc}")

# TriviaCore - Trivia Questions API
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Mapping of service results onto HTTP responses."""

import logging
from datetime import datetime, timezone
from typing import TypeVar

from beartype import beartype
from fastapi.responses import JSONResponse

from ..core.errors import ErrorKind, TriviaError
from ..core.result_types import Err, Ok
from ..schemas.responses import ErrorResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")

GENERIC_ERROR_MESSAGE = "An error occurred while processing your request"

_CALLER_FACING_KINDS = (ErrorKind.CLIENT, ErrorKind.BUSY, ErrorKind.QUEUE_TIMEOUT)


class APIResponseHandler:
    """Converts ``Ok``/``Err`` values from the service layer into responses."""

    @staticmethod
    @beartype
    def public_message(error: TriviaError, *, is_production: bool) -> str:
        """Message safe to show to clients.

        Client and admission errors carry messages written for the caller.
        Everything else only exposes details outside production.
        """
        if error.kind in _CALLER_FACING_KINDS:
            return error.message
        return GENERIC_ERROR_MESSAGE if is_production else error.message

    @staticmethod
    @beartype
    def error_response(error: TriviaError, *, is_production: bool) -> JSONResponse:
        status_code = error.http_status
        if status_code >= 500 and error.kind not in _CALLER_FACING_KINDS:
            logger.error(f"Request failed: {error!r}")

        body = ErrorResponse(
            message=APIResponseHandler.public_message(
                error, is_production=is_production
            ),
            timestamp=datetime.now(timezone.utc) if status_code >= 500 else None,
        )
        return JSONResponse(
            status_code=status_code,
            content=body.model_dump(mode="json", exclude_none=True),
        )

    @staticmethod
    def from_result(
        result: Ok[T] | Err[TriviaError], *, is_production: bool
    ) -> T | JSONResponse:
        """Unwrap ``Ok`` or convert ``Err`` into an error response."""
        if result.is_err():
            return APIResponseHandler.error_response(
                result.unwrap_err(), is_production=is_production
            )
        return result.unwrap()


@beartype
def error_content(message: str) -> dict[str, str]:
    """JSON body for errors raised outside the service layer."""
    return {"status": "error", "message": message}

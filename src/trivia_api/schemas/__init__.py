# TriviaCore - Trivia Questions API
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""HTTP response schemas."""

from .responses import (
    APIInfo,
    ErrorResponse,
    HealthResponse,
    PoolHealthResponse,
    QuestionListResponse,
)

__all__ = [
    "APIInfo",
    "ErrorResponse",
    "HealthResponse",
    "PoolHealthResponse",
    "QuestionListResponse",
]

# TriviaCore - Trivia Questions API
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Response schemas for the HTTP API."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from ..models.question import QuestionRecord

_RESPONSE_CONFIG = ConfigDict(
    frozen=True,
    extra="forbid",
    validate_assignment=True,
    str_strip_whitespace=True,
    validate_default=True,
)


class QuestionListResponse(BaseModel):
    """Successful question batch."""

    model_config = _RESPONSE_CONFIG

    status: Literal["success"] = Field(default="success")
    data: list[QuestionRecord] = Field(..., description="Questions, at most `limit`")
    source: Literal["database", "mock"] = Field(
        ..., description="Whether the batch came from the database or sample data"
    )


class ErrorResponse(BaseModel):
    """Standardized error body."""

    model_config = _RESPONSE_CONFIG

    status: Literal["error"] = Field(default="error")
    message: str = Field(..., description="Human-readable error message")
    timestamp: datetime | None = Field(default=None)


class HealthResponse(BaseModel):
    """Service health."""

    model_config = _RESPONSE_CONFIG

    status: Literal["healthy", "unhealthy"] = Field(...)
    timestamp: datetime = Field(...)
    service: str = Field(...)
    database: Literal["connected", "disconnected"] = Field(...)
    error: str | None = Field(default=None, description="Omitted in production")


class PoolHealthResponse(BaseModel):
    """Pool, admission queue and cache metrics."""

    model_config = _RESPONSE_CONFIG

    timestamp: datetime = Field(...)
    pool: dict[str, Any] = Field(...)
    admission: dict[str, Any] = Field(...)
    cache: dict[str, Any] = Field(...)


class APIInfo(BaseModel):
    """API information response."""

    model_config = _RESPONSE_CONFIG

    name: str = Field(..., description="API name")
    version: str = Field(..., description="API version")
    status: str = Field(..., description="API status")
    environment: str = Field(..., description="Environment name")

# TriviaCore - Trivia Questions API
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Trivia question domain models."""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from attrs import field, frozen
from beartype import beartype
from pydantic import ConfigDict, Field, ValidationError, field_validator

from ..core.errors import RowValidationError
from ..core.result_types import Err, Ok
from .base import BaseModelConfig


class Difficulty(str, Enum):
    """Closed set of difficulty levels."""

    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


class QuestionSource(str, Enum):
    """Where a batch of questions came from."""

    DATABASE = "database"
    MOCK = "mock"


class QuestionRecord(BaseModelConfig):
    """A stored trivia question as served to clients.

    ``options[correct_answer]`` is the correct option.
    """

    # Database rows carry extra columns such as created_at.
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        str_strip_whitespace=True,
        validate_default=True,
        use_enum_values=True,
    )

    id: int | str = Field(..., description="Question identifier")
    question: str = Field(..., min_length=10, max_length=500)
    options: list[str] = Field(..., min_length=4, max_length=4)
    correct_answer: int = Field(..., ge=0, le=3, description="Index of the correct option")
    text_hint: str = Field(..., description="Text hint")
    image_hint: str | None = Field(default=None, description="Hint image reference")
    explanation: str = Field(...)
    category: str = Field(..., min_length=1)
    difficulty: Difficulty = Field(...)

    @field_validator("image_hint", mode="before")
    @classmethod
    def empty_image_hint_is_none(cls, v: Any) -> Any:
        """Normalize empty strings to ``None``."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @classmethod
    def from_row(
        cls, row: Mapping[str, Any]
    ) -> "Ok[QuestionRecord] | Err[RowValidationError]":
        """Validate a raw database row.

        Returns:
            ``Ok`` with the record, or ``Err`` describing every problem found.
        """
        try:
            return Ok(cls.model_validate(dict(row)))
        except ValidationError as e:
            problems = [
                f"{'.'.join(str(p) for p in err['loc']) or 'row'}: {err['msg']}"
                for err in e.errors()
            ]
            return Err(RowValidationError(row.get("id"), problems))


class QuestionQuery(BaseModelConfig):
    """Validated parameters of a question request."""

    limit: int = Field(..., ge=1)
    category: str | None = Field(default=None)
    difficulty: Difficulty | None = Field(default=None)

    @field_validator("category")
    @classmethod
    @beartype
    def blank_category_is_none(cls, v: str | None) -> str | None:
        return v or None

    def cache_params(self) -> dict[str, Any]:
        """Normalized parameters identifying this request shape."""
        return {
            "limit": self.limit,
            "category": self.category,
            "difficulty": self.difficulty,
        }


@frozen
class QuestionBatch:
    """Questions returned for one request and their origin."""

    questions: tuple[QuestionRecord, ...] = field()
    source: QuestionSource = field()

    def __len__(self) -> int:
        return len(self.questions)

# TriviaCore - Trivia Questions API
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Question query service: validation, caching, admission and fallback.

A request flows through these stages:

1. parameters are validated (client errors never reach the database),
2. the TTL cache is consulted,
3. identical concurrent misses are collapsed by :class:`SingleFlight`,
4. the query is admitted through the :class:`AdmissionQueue`,
5. it runs on a pooled connection inside :func:`with_retry`,
6. rows are validated one by one; invalid rows are dropped,
7. with no valid rows left the bundled sample questions are served.
"""

import logging
import random
import re
from collections.abc import Iterable, Mapping
from typing import Any

from beartype import beartype

from ..core.admission import AdmissionQueue
from ..core.cache import CacheKey, TTLCache
from ..core.database import Database
from ..core.errors import ClientError, TriviaError
from ..core.result_types import Err, Ok
from ..core.retry import RetryPolicy, with_retry
from ..core.single_flight import SingleFlight
from ..models.question import (
    Difficulty,
    QuestionBatch,
    QuestionQuery,
    QuestionRecord,
    QuestionSource,
)
from .sample_questions import SAMPLE_QUESTIONS

logger = logging.getLogger(__name__)

DEFAULT_QUESTIONS_LIMIT = 10
MAX_QUESTIONS_LIMIT = 20

_LEADING_INT = re.compile(r"\s*[+-]?\d+")

_BASE_QUERY = """
    SELECT
        id,
        question,
        options,
        correct_answer,
        text_hint,
        image_hint,
        explanation,
        category,
        difficulty,
        created_at
    FROM public.trivia_questions
"""


@beartype
def build_query(
    limit: int, category: str | None = None, difficulty: str | None = None
) -> tuple[str, list[Any]]:
    """Build the randomized selection query and its parameters.

    ``$1`` is always the limit; filters are optional and combined with AND.
    """
    conditions: list[str] = []
    params: list[Any] = [limit]

    if category:
        params.append(category)
        conditions.append(f"category = ${len(params)}")

    if difficulty:
        params.append(difficulty)
        conditions.append(f"difficulty = ${len(params)}")

    where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    query = f"""{_BASE_QUERY}
    {where_clause}
    ORDER BY RANDOM()
    LIMIT $1
"""
    return query, params


@beartype
def parse_limit(limit: int | str | None) -> int | None:
    """Parse the leading integer of ``limit``, or ``None`` if there is none."""
    if limit is None or isinstance(limit, int):
        return limit
    match = _LEADING_INT.match(limit)
    return int(match.group()) if match else None


class QuestionService:
    """Serves random question batches from the database."""

    def __init__(
        self,
        database: Database,
        cache: TTLCache,
        admission: AdmissionQueue,
        *,
        retry_policy: RetryPolicy | None = None,
        single_flight: SingleFlight[list[Any]] | None = None,
        default_limit: int = DEFAULT_QUESTIONS_LIMIT,
        max_limit: int = MAX_QUESTIONS_LIMIT,
        sample_questions: Iterable[Mapping[str, Any]] = SAMPLE_QUESTIONS,
        rng: random.Random | None = None,
    ) -> None:
        self._database = database
        self._cache = cache
        self._admission = admission
        self._retry_policy = retry_policy or RetryPolicy()
        self._single_flight = single_flight
        self._default_limit = default_limit
        self._max_limit = max_limit
        self._sample_questions = tuple(sample_questions)
        self._rng = rng or random.Random()

    @property
    def max_limit(self) -> int:
        return self._max_limit

    @beartype
    def validate_params(
        self,
        limit: int | str | None = None,
        category: str | None = None,
        difficulty: str | None = None,
    ) -> Ok[QuestionQuery] | Err[ClientError]:
        """Validate raw request parameters.

        ``limit`` is read from its leading integer digits, so ``"10abc"`` means
        10. A missing, unparsable or zero limit falls back to the default.
        """
        parsed_limit = parse_limit(limit) or self._default_limit

        if parsed_limit > self._max_limit:
            return Err(ClientError(f"Limit cannot exceed {self._max_limit} questions"))
        if parsed_limit < 1:
            return Err(ClientError("Limit must be a positive integer"))

        if difficulty and difficulty not in Difficulty.values():
            return Err(
                ClientError("Invalid difficulty level. Must be Easy, Medium, or Hard")
            )

        return Ok(
            QuestionQuery(
                limit=parsed_limit,
                category=category or None,
                difficulty=difficulty or None,
            )
        )

    async def get_questions(
        self,
        limit: int | str | None = None,
        category: str | None = None,
        difficulty: str | None = None,
    ) -> Ok[QuestionBatch] | Err[TriviaError]:
        """Return up to ``limit`` questions matching the optional filters."""
        validated = self.validate_params(limit, category, difficulty)
        if validated.is_err():
            return validated
        query = validated.unwrap()

        cache_key = CacheKey.from_params("questions", query.cache_params()).key
        cached = self._cache.get(cache_key)
        if cached is not None:
            logger.debug("Cache hit")
            return Ok(cached)

        try:
            rows = await self._load(cache_key, query)
        except TriviaError as e:
            logger.error(f"Error in get_questions: {e!r}")
            return Err(e)

        questions = self._validate_rows(rows, "database")
        if questions:
            batch = QuestionBatch(
                questions=tuple(questions), source=QuestionSource.DATABASE
            )
            self._cache.set(cache_key, batch)
            return Ok(batch)

        return self._fallback(query)

    async def _load(self, cache_key: str, query: QuestionQuery) -> list[Any]:
        sql, params = build_query(query.limit, query.category, query.difficulty)

        async def fetch_rows() -> list[Any]:
            return await with_retry(
                lambda: self._database.fetch(sql, *params), self._retry_policy
            )

        async def admitted_fetch() -> list[Any]:
            return await self._admission.submit(fetch_rows)

        if self._single_flight is not None:
            return await self._single_flight.do(cache_key, admitted_fetch)
        return await admitted_fetch()

    @staticmethod
    def _validate_rows(
        rows: Iterable[Mapping[str, Any]], source: str
    ) -> list[QuestionRecord]:
        valid: list[QuestionRecord] = []
        for row in rows:
            result = QuestionRecord.from_row(row)
            if result.is_err():
                logger.warning(f"Dropping {source} row: {result.unwrap_err().message}")
                continue
            valid.append(result.unwrap())
        return valid

    def _fallback(self, query: QuestionQuery) -> Ok[QuestionBatch] | Err[TriviaError]:
        logger.info("Attempting to use sample data as fallback")
        questions = self._validate_rows(self._sample_questions, "sample")
        if not questions:
            return Err(
                TriviaError(
                    "No valid questions available "
                    "(both database and sample data failed validation)"
                )
            )

        self._rng.shuffle(questions)
        return Ok(
            QuestionBatch(
                questions=tuple(questions[: query.limit]), source=QuestionSource.MOCK
            )
        )

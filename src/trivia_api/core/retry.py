# TriviaCore - Trivia Questions API
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Retry with exponential backoff for individual database operations."""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from attrs import field, frozen
from beartype import beartype

from .errors import TriviaError, classify_database_error

logger = logging.getLogger(__name__)

T = TypeVar("T")

Classifier = Callable[[BaseException], TriviaError]
Sleeper = Callable[[float], Awaitable[None]]


@frozen
class RetryPolicy:
    """Immutable backoff configuration.

    ``max_retries`` is the total number of attempts. The delay before retry
    ``n`` (0-based) is ``base_delay * 2**n`` capped at ``max_delay``, plus up
    to ``jitter`` (a fraction) of random extra delay.
    """

    max_retries: int = field(default=3)
    base_delay: float = field(default=1.0)
    max_delay: float = field(default=10.0)
    jitter: float = field(default=0.0)

    @max_retries.validator
    def _check_max_retries(self, attribute: object, value: int) -> None:
        if value < 1:
            raise ValueError("max_retries must be at least 1")

    @jitter.validator
    def _check_jitter(self, attribute: object, value: float) -> None:
        if not 0 <= value <= 0.3:
            raise ValueError("jitter must be between 0 and 0.3")

    @beartype
    def delay_for(self, attempt: int, rng: random.Random | None = None) -> float:
        """Backoff delay after the failed 0-based ``attempt``."""
        delay = min(self.base_delay * (2**attempt), self.max_delay)
        if self.jitter > 0:
            delay += (rng or random).random() * self.jitter * delay
        return delay


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    *,
    classify: Classifier = classify_database_error,
    sleep: Sleeper = asyncio.sleep,
) -> T:
    """Invoke ``operation``, retrying failures classified as retryable.

    Non-retryable failures propagate after the first attempt. After the last
    attempt the classified error of that attempt propagates, chained to the
    original exception.
    """
    policy = policy or RetryPolicy()
    last_error: TriviaError | None = None
    last_exc: Exception | None = None

    for attempt in range(policy.max_retries):
        try:
            return await operation()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            error = classify(exc)
            logger.warning(
                f"Attempt {attempt + 1}/{policy.max_retries} failed: {error.message}"
            )
            if not error.retryable:
                if error is exc:
                    raise
                raise error from exc

            last_error, last_exc = error, exc

            if attempt < policy.max_retries - 1:
                delay = policy.delay_for(attempt)
                logger.info(f"Retrying in {delay:.2f}s...")
                await sleep(delay)

    assert last_error is not None
    if last_error is last_exc:
        raise last_error
    raise last_error from last_exc

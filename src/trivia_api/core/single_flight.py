# TriviaCore - Trivia Questions API
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Collapse concurrent identical operations into one in-flight call."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from attrs import define, field

logger = logging.getLogger(__name__)

T = TypeVar("T")


@define
class _Call:
    task: asyncio.Task[Any] = field()
    waiters: int = field(default=0)


class SingleFlight(Generic[T]):
    """Share the result of one running operation among callers of a key.

    The first caller for a key starts the operation; callers arriving while
    it runs await the same result. Each caller waits through
    :func:`asyncio.shield`, so cancelling one caller leaves the others
    unaffected. The operation is cancelled only when its last caller is.
    """

    def __init__(self) -> None:
        self._calls: dict[str, _Call] = {}
        self._shared = 0

    @property
    def in_flight(self) -> int:
        return len(self._calls)

    @property
    def shared_count(self) -> int:
        """Number of callers that joined an existing call."""
        return self._shared

    async def do(self, key: str, operation: Callable[[], Awaitable[T]]) -> T:
        call = self._calls.get(key)
        if call is None:
            call = _Call(task=asyncio.ensure_future(operation()))
            self._calls[key] = call
            call.task.add_done_callback(lambda _task, k=key, c=call: self._forget(k, c))
        else:
            self._shared += 1
            logger.debug(f"Joining in-flight call for {key}")

        call.waiters += 1
        try:
            return await asyncio.shield(call.task)
        finally:
            call.waiters -= 1
            if call.waiters == 0 and not call.task.done():
                call.task.cancel()

    def _forget(self, key: str, call: _Call) -> None:
        if self._calls.get(key) is call:
            del self._calls[key]

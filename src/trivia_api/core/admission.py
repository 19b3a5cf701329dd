# TriviaCore - Trivia Questions API
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Bounded admission queue protecting the database from request bursts.

At most ``max_concurrent`` operations run at once. Further operations wait
in a FIFO queue of at most ``max_queue_length`` entries; each waiter carries
its own timeout. When the queue is full new operations are rejected
immediately with :class:`BusyError`.

Slots are handed over explicitly: a completing operation releases its slot
and schedules a drain on the event loop, and the drain marks the head waiter
as admitted (counting it as active) before waking it. A waiter is therefore
either admitted, timed out or cancelled, never more than one of those.
"""

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from attrs import define, field, frozen
from beartype import beartype

from .errors import BusyError, QueueTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@define
class QueuedRequest:
    """A waiter together with its timeout handle."""

    future: asyncio.Future[None] = field()
    enqueued_at: float = field()
    timer: asyncio.TimerHandle | None = field(default=None)

    def cancel_timer(self) -> None:
        """Cancel the wait timeout; safe to call more than once."""
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None


@frozen
class AdmissionStats:
    """Admission queue counters snapshot."""

    active: int = field()
    waiting: int = field()
    max_concurrent: int = field()
    max_queue_length: int = field()
    completed: int = field()
    rejected_busy: int = field()
    timed_out: int = field()
    cancelled: int = field()


class AdmissionQueue:
    """Concurrency limiter with a bounded, timed FIFO wait queue."""

    def __init__(
        self,
        max_concurrent: int = 30,
        max_queue_length: int = 500,
        queue_timeout_seconds: float = 15.0,
    ) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        if max_queue_length < 0:
            raise ValueError("max_queue_length cannot be negative")
        if queue_timeout_seconds <= 0:
            raise ValueError("queue_timeout_seconds must be positive")

        self._max_concurrent = max_concurrent
        self._max_queue_length = max_queue_length
        self._timeout = queue_timeout_seconds

        self._active = 0
        self._waiting: deque[QueuedRequest] = deque()
        self._drain_scheduled = False

        self._completed = 0
        self._rejected_busy = 0
        self._timed_out = 0
        self._cancelled = 0

    @property
    def active_count(self) -> int:
        return self._active

    @property
    def waiting_count(self) -> int:
        return len(self._waiting)

    async def submit(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation`` once an execution slot is available.

        Raises:
            BusyError: every slot is taken and the wait queue is full.
            QueueTimeoutError: no slot freed up within the wait timeout.
        """
        # New arrivals only bypass the queue when nobody is waiting, so a
        # pending drain cannot be overtaken.
        if self._active < self._max_concurrent and not self._waiting:
            self._active += 1
            return await self._run(operation)

        if len(self._waiting) >= self._max_queue_length:
            self._rejected_busy += 1
            logger.warning(
                f"Admission queue full ({len(self._waiting)} waiting, "
                f"{self._active} active); rejecting request"
            )
            raise BusyError("Server is too busy. Please try again later.")

        await self._wait_for_slot()
        return await self._run(operation)

    async def _wait_for_slot(self) -> None:
        loop = asyncio.get_running_loop()
        request = QueuedRequest(future=loop.create_future(), enqueued_at=loop.time())
        request.timer = loop.call_later(self._timeout, self._expire, request)
        self._waiting.append(request)
        self._schedule_drain()

        try:
            await request.future
        except asyncio.CancelledError:
            self._abandon(request)
            raise

    def _abandon(self, request: QueuedRequest) -> None:
        """Clean up after a waiter whose caller was cancelled."""
        request.cancel_timer()
        future = request.future
        if future.done() and not future.cancelled() and future.exception() is None:
            # Admitted just before the cancellation was delivered: hand the
            # slot back.
            self._release()
            return
        try:
            self._waiting.remove(request)
        except ValueError:
            return
        self._cancelled += 1
        logger.debug("Queued request cancelled by caller")

    def _expire(self, request: QueuedRequest) -> None:
        request.timer = None
        try:
            self._waiting.remove(request)
        except ValueError:
            return
        if request.future.done():
            return
        self._timed_out += 1
        waited = asyncio.get_running_loop().time() - request.enqueued_at
        logger.warning(f"Request timed out after {waited:.2f}s in admission queue")
        request.future.set_exception(
            QueueTimeoutError("Request timeout while waiting in queue")
        )

    async def _run(self, operation: Callable[[], Awaitable[T]]) -> T:
        try:
            result = await operation()
            self._completed += 1
            return result
        finally:
            self._release()

    def _release(self) -> None:
        self._active -= 1
        self._schedule_drain()

    def _schedule_drain(self) -> None:
        if self._waiting and not self._drain_scheduled:
            self._drain_scheduled = True
            asyncio.get_running_loop().call_soon(self._drain)

    def _drain(self) -> None:
        self._drain_scheduled = False
        while self._waiting and self._active < self._max_concurrent:
            request = self._waiting.popleft()
            request.cancel_timer()
            if request.future.done():
                continue
            self._active += 1
            request.future.set_result(None)

    @beartype
    def stats(self) -> AdmissionStats:
        return AdmissionStats(
            active=self._active,
            waiting=len(self._waiting),
            max_concurrent=self._max_concurrent,
            max_queue_length=self._max_queue_length,
            completed=self._completed,
            rejected_busy=self._rejected_busy,
            timed_out=self._timed_out,
            cancelled=self._cancelled,
        )

    def as_dict(self) -> dict[str, Any]:
        stats = self.stats()
        return {
            "active": stats.active,
            "waiting": stats.waiting,
            "max_concurrent": stats.max_concurrent,
            "max_queue_length": stats.max_queue_length,
            "completed": stats.completed,
            "rejected_busy": stats.rejected_busy,
            "timed_out": stats.timed_out,
            "cancelled": stats.cancelled,
        }

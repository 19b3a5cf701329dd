# TriviaCore - Trivia Questions API
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Per-client sliding-window rate limiting middleware."""

import time
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any

from attrs import define, field, frozen
from beartype import beartype
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware


@frozen
class RateLimitRule:
    """Immutable rate limiting rule configuration."""

    max_requests: int = field(default=2000)
    window_seconds: float = field(default=900.0)


@define
class ClientRateTracker:
    """Track request timestamps for a specific client."""

    client_id: str = field()
    requests: deque[float] = field(factory=deque)
    last_request_time: float = field(default=0.0)

    @beartype
    def add_request(self, timestamp: float) -> None:
        """Add a new request timestamp."""
        self.requests.append(timestamp)
        self.last_request_time = timestamp

    @beartype
    def cleanup_old_requests(self, current_time: float, window_seconds: float) -> None:
        """Remove requests older than the tracking window."""
        cutoff = current_time - window_seconds
        while self.requests and self.requests[0] <= cutoff:
            self.requests.popleft()

    @beartype
    def can_make_request(self, rule: RateLimitRule, current_time: float) -> bool:
        self.cleanup_old_requests(current_time, rule.window_seconds)
        return len(self.requests) < rule.max_requests


class RateLimiter:
    """In-memory rate limiter keyed by client address."""

    def __init__(
        self,
        rule: RateLimitRule | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.rule = rule or RateLimitRule()
        self.clients: dict[str, ClientRateTracker] = {}
        self._clock = clock

    @beartype
    def client_id_for(self, request: Request) -> str:
        """Extract client ID from request."""
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
        if request.client:
            return request.client.host
        return "unknown"

    @beartype
    def check(self, client_id: str) -> tuple[bool, dict[str, Any]]:
        """Record a request for ``client_id`` if it is within the limit."""
        now = self._clock()
        tracker = self.clients.get(client_id)
        if tracker is None:
            tracker = self.clients[client_id] = ClientRateTracker(client_id=client_id)

        allowed = tracker.can_make_request(self.rule, now)
        if allowed:
            tracker.add_request(now)

        return allowed, {
            "limit": self.rule.max_requests,
            "remaining": max(0, self.rule.max_requests - len(tracker.requests)),
            "window_seconds": self.rule.window_seconds,
        }

    @beartype
    def cleanup_inactive_clients(self) -> int:
        """Drop trackers for clients idle longer than one window."""
        cutoff = self._clock() - self.rule.window_seconds
        inactive = [
            client_id
            for client_id, tracker in self.clients.items()
            if tracker.last_request_time < cutoff
        ]
        for client_id in inactive:
            del self.clients[client_id]
        return len(inactive)


class RateLimitingMiddleware(BaseHTTPMiddleware):
    """FastAPI middleware for rate limiting."""

    skip_paths = ("/docs", "/redoc", "/openapi.json")

    def __init__(
        self,
        app: Any,
        rule: RateLimitRule | None = None,
        enabled: bool = True,
        limiter: RateLimiter | None = None,
    ) -> None:
        super().__init__(app)
        self.enabled = enabled
        self.rate_limiter = limiter or RateLimiter(rule)

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Apply rate limiting to incoming requests."""
        if not self.enabled or request.url.path.startswith(self.skip_paths):
            return await call_next(request)

        if len(self.rate_limiter.clients) > 10_000:
            self.rate_limiter.cleanup_inactive_clients()

        client_id = self.rate_limiter.client_id_for(request)
        allowed, info = self.rate_limiter.check(client_id)
        headers = {
            "RateLimit-Limit": str(info["limit"]),
            "RateLimit-Remaining": str(info["remaining"]),
        }

        if not allowed:
            return JSONResponse(
                status_code=429,
                content={
                    "status": "error",
                    "message": "Too many requests from this IP, please try again later.",
                },
                headers={**headers, "Retry-After": str(int(info["window_seconds"]))},
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response

"""In-process sliding-window rate limiting keyed by route class and client address."""

import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request

from designfolio.core.config import Settings, get_settings
from designfolio.core.errors import RateLimited

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimit:
    """Allow ``requests`` hits per ``window`` seconds."""

    requests: int
    window: int
    message: str


RATE_LIMITS: dict[str, RateLimit] = {
    "auth": RateLimit(
        requests=5,
        window=15 * 60,
        message="Too many authentication attempts! Please try again in 15 minutes!",
    ),
    "api": RateLimit(
        requests=100,
        window=15 * 60,
        message="Too many requests! Please try again in 15 minutes!",
    ),
    "register": RateLimit(
        requests=3,
        window=60 * 60,
        message="Too many accounts created! Please try again in an hour!",
    ),
    "upload": RateLimit(
        requests=20,
        window=60 * 60,
        message="Upload attempts limit exceeded! Please try again in an hour!",
    ),
}


@dataclass(frozen=True)
class RateLimitStatus:
    limit: int
    remaining: int
    retry_after: int | None = None

    @property
    def allowed(self) -> bool:
        return self.retry_after is None


class SlidingWindowRateLimiter:
    """
    Keeps request timestamps per key; thread-safe for FastAPI's threadpool.

    Keys whose newest hit has left its window are swept at most once per
    ``sweep_interval`` seconds, so memory tracks active clients only.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float = 60.0,
    ) -> None:
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._hits: dict[str, deque[float]] = {}
        # key -> time at which its newest hit leaves the window
        self._expires: dict[str, float] = {}
        self._next_sweep = clock() + sweep_interval
        self._lock = threading.Lock()

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)

    def _sweep(self, now: float) -> None:
        stale = [key for key, expires in self._expires.items() if expires <= now]
        for key in stale:
            del self._expires[key]
            del self._hits[key]
        self._next_sweep = now + self._sweep_interval

    def hit(self, key: str, limit: RateLimit) -> RateLimitStatus:
        """Record one request for ``key`` unless it is already over ``limit``."""
        now = self._clock()
        window_start = now - limit.window
        with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)
            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= window_start:
                hits.popleft()
            if len(hits) >= limit.requests:
                retry_after = max(1, int(hits[0] + limit.window - now))
                return RateLimitStatus(limit=limit.requests, remaining=0, retry_after=retry_after)
            hits.append(now)
            self._expires[key] = now + limit.window
            return RateLimitStatus(limit=limit.requests, remaining=limit.requests - len(hits))

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
            self._expires.clear()


@lru_cache
def get_rate_limiter() -> SlidingWindowRateLimiter:
    """Process-wide limiter instance."""
    return SlidingWindowRateLimiter()


def client_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def rate_limit(name: str) -> Callable[..., None]:
    """Build a dependency enforcing the named limit; unknown names fail at import time."""
    limit = RATE_LIMITS[name]

    def dependency(
        request: Request,
        settings: Annotated[Settings, Depends(get_settings)],
        limiter: Annotated[SlidingWindowRateLimiter, Depends(get_rate_limiter)],
    ) -> None:
        if not settings.RATE_LIMIT_ENABLED:
            return
        address = client_address(request)
        status_ = limiter.hit(f"{name}:{address}", limit)
        if not status_.allowed:
            logger.warning(
                "rate limit exceeded limit=%s client=%s route=%s %s",
                name,
                address,
                request.method,
                request.url.path,
            )
            raise RateLimited(
                limit.message,
                headers={
                    "Retry-After": str(status_.retry_after),
                    "RateLimit-Limit": str(status_.limit),
                    "RateLimit-Remaining": "0",
                },
            )

    return dependency

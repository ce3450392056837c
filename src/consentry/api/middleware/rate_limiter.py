"""
Rate Limiting Middleware

Per-client token buckets in front of the public consent endpoints.
Widgets are embedded on third-party sites, so the only stable client
key is the caller's address as reported by the proxy chain.

Bucket updates never await, so a bucket is only ever touched by one
coroutine at a time on the event loop.
"""

import json
import time
from dataclasses import dataclass
from typing import Callable, NamedTuple, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from consentry.config.logging_config import get_logger
from consentry.config.settings import RateLimitSettings
from consentry.infrastructure.metrics import RATE_LIMIT_EXCEEDED
from consentry.services.identity.device_classifier import RequestSignals

logger = get_logger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True)
class RateLimitConfig:
    requests_per_minute: int = 100
    burst_size: int = 0
    retry_after_seconds: int = 60
    # Buckets untouched for this long are forgotten
    idle_seconds: int = 600

    @property
    def capacity(self) -> int:
        return self.requests_per_minute + self.burst_size

    @property
    def refill_per_second(self) -> float:
        return self.requests_per_minute / 60.0

    @classmethod
    def from_settings(cls, settings: RateLimitSettings) -> "RateLimitConfig":
        return cls(
            requests_per_minute=settings.requests_per_minute,
            burst_size=settings.burst_size,
            retry_after_seconds=settings.retry_after_seconds,
        )


@dataclass
class TokenBucket:
    """Refills continuously at `rate` tokens/second up to `capacity`."""

    rate: float
    capacity: int
    tokens: float
    updated_at: float

    @classmethod
    def full(cls, rate: float, capacity: int, now: float) -> "TokenBucket":
        return cls(rate=rate, capacity=capacity, tokens=float(capacity), updated_at=now)

    def take(self, now: float, cost: int = 1) -> bool:
        elapsed = max(0.0, now - self.updated_at)
        self.tokens = min(float(self.capacity), self.tokens + elapsed * self.rate)
        self.updated_at = now

        if self.tokens < cost:
            return False
        self.tokens -= cost
        return True

    @property
    def remaining(self) -> int:
        return int(self.tokens)


class RateLimitDecision(NamedTuple):
    allowed: bool
    remaining: int


class RateLimiter:
    """
    One bucket per client key, created full on first sight.

    Usage:
        limiter = RateLimiter(RateLimitConfig(requests_per_minute=100))
        decision = limiter.check("ip:203.0.113.7")
    """

    def __init__(self, config: Optional[RateLimitConfig] = None, clock: Clock = time.monotonic) -> None:
        self.config = config or RateLimitConfig()
        self._clock = clock
        self._buckets: dict[str, TokenBucket] = {}
        self._swept_at = clock()

    def check(self, client_key: str) -> RateLimitDecision:
        now = self._clock()
        self._forget_idle(now)

        bucket = self._buckets.get(client_key)
        if bucket is None:
            bucket = TokenBucket.full(self.config.refill_per_second, self.config.capacity, now)
            self._buckets[client_key] = bucket

        allowed = bucket.take(now)
        if not allowed:
            RATE_LIMIT_EXCEEDED.labels(client_type="ip").inc()
            logger.warning("Rate limit exceeded", client_key=client_key)

        return RateLimitDecision(allowed, bucket.remaining)

    def _forget_idle(self, now: float) -> None:
        if now - self._swept_at < self.config.idle_seconds:
            return
        self._swept_at = now
        cutoff = now - self.config.idle_seconds
        self._buckets = {
            key: bucket for key, bucket in self._buckets.items()
            if bucket.updated_at >= cutoff
        }

    @property
    def bucket_count(self) -> int:
        return len(self._buckets)


def client_key(request: Request) -> str:
    """Proxy-reported address first, then the socket peer."""
    address = RequestSignals.from_headers(request.headers).client_ip
    if not address:
        address = request.client.host if request.client else "unknown"
    return f"ip:{address}"


def _too_many_requests(retry_after: int) -> Response:
    body = {
        "success": False,
        "error": "Too many requests. Please try again later.",
        "code": "RATE_LIMIT_EXCEEDED",
    }
    return Response(
        content=json.dumps(body),
        status_code=429,
        media_type="application/json",
        headers={
            "Retry-After": str(retry_after),
            "X-RateLimit-Remaining": "0",
            # Browsers drop the body of a cross-origin 429 without this
            "Access-Control-Allow-Origin": "*",
        },
    )


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Applies the limiter to consent traffic.

    Preflights, health probes and the metrics scrape are never limited.
    """

    UNLIMITED_PATHS = frozenset({"/metrics", "/docs", "/openapi.json"})

    def __init__(self, app, config: Optional[RateLimitConfig] = None, enabled: bool = True) -> None:
        super().__init__(app)
        self.limiter = RateLimiter(config)
        self.enabled = enabled

    def _is_limited(self, request: Request) -> bool:
        path = request.url.path
        return (
            self.enabled
            and request.method != "OPTIONS"
            and path not in self.UNLIMITED_PATHS
            and "/health" not in path
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self._is_limited(request):
            return await call_next(request)

        decision = self.limiter.check(client_key(request))
        if not decision.allowed:
            return _too_many_requests(self.limiter.config.retry_after_seconds)

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        return response

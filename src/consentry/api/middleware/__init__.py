"""HTTP middleware package."""

from consentry.api.middleware.error_handler import ErrorHandlerMiddleware
from consentry.api.middleware.rate_limiter import (
    RateLimitConfig,
    RateLimiter,
    RateLimitMiddleware,
    TokenBucket,
)

__all__ = [
    "ErrorHandlerMiddleware",
    "RateLimitConfig",
    "RateLimiter",
    "RateLimitMiddleware",
    "TokenBucket",
]

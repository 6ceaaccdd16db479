"""
Rate Limiting Module
Sliding-window rate limiting for FastAPI endpoints, backed by Redis when
``REDIS_URL`` is configured and by an in-process store otherwise.
"""

import ipaddress
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

import redis.asyncio as aioredis
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from recruitment.core.config import settings
from recruitment.core.exceptions import RateLimitError

logger = logging.getLogger(__name__)


# =============================================================================
# Rate Limit Configuration
# =============================================================================


class RateLimitTier(str, Enum):
    """Rate limit tiers for different endpoint groups."""

    STRICT = "strict"  # auth, users, admin
    DEFAULT = "default"  # questions, applications, answers, reviewer


@dataclass
class RateLimitConfig:
    """Rate limit configuration for a tier."""

    requests: int  # Number of requests allowed
    window: int  # Time window in seconds


def get_tier_config(tier: RateLimitTier) -> RateLimitConfig:
    if tier is RateLimitTier.STRICT:
        return RateLimitConfig(settings.rate_limit_strict_requests, settings.rate_limit_strict_window)
    return RateLimitConfig(settings.rate_limit_default_requests, settings.rate_limit_default_window)


class RateLimiter(Protocol):
    async def is_rate_limited(self, key: str, limit: int, window: int) -> tuple[bool, int, int]: ...

    async def close(self) -> None: ...


# =============================================================================
# Redis Rate Limiter
# =============================================================================


class RedisRateLimiter:
    """
    Redis-based sliding window rate limiter.

    Uses a sorted set of request timestamps per key so that limits hold
    across every worker sharing the Redis instance.
    """

    def __init__(self, redis_url: str):
        self.redis_url = redis_url
        self._redis: Optional[aioredis.Redis] = None

    async def get_redis(self) -> aioredis.Redis:
        if self._redis is None:
            self._redis = aioredis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._redis

    async def close(self) -> None:
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    async def is_rate_limited(
        self,
        key: str,
        limit: int,
        window: int,
    ) -> tuple[bool, int, int]:
        """
        Check if a key is rate limited using a sliding window.

        Returns:
            Tuple of (is_limited, remaining_requests, retry_after_seconds)
        """
        redis = await self.get_redis()
        now = time.time()
        window_start = now - window

        pipe = redis.pipeline()
        pipe.zremrangebyscore(key, "-inf", window_start)
        pipe.zcard(key)
        pipe.zadd(key, {str(now): now})
        pipe.expire(key, window + 1)
        pipe.zrange(key, 0, 0, withscores=True)
        results = await pipe.execute()

        current_count = results[1]
        oldest_entries = results[4]

        remaining = max(0, limit - current_count - 1)
        is_limited = current_count >= limit

        retry_after = 0
        if is_limited and oldest_entries:
            oldest_timestamp = oldest_entries[0][1]
            retry_after = int(window - (now - oldest_timestamp)) + 1

        return is_limited, remaining, retry_after


# =============================================================================
# In-Memory Rate Limiter
# =============================================================================


class InMemoryRateLimiter:
    """
    In-process sliding window limiter.

    Counters live in this process only; used when no Redis is configured
    and as the fallback when Redis is unreachable.
    """

    def __init__(self, cleanup_interval: int = 60):
        self._requests: dict[str, list[float]] = {}
        self._last_cleanup = time.time()
        self._cleanup_interval = cleanup_interval

    def _cleanup_if_needed(self, max_window: int) -> None:
        now = time.time()
        if now - self._last_cleanup < self._cleanup_interval:
            return

        self._last_cleanup = now
        for key in list(self._requests):
            self._requests[key] = [ts for ts in self._requests[key] if now - ts < max_window]
            if not self._requests[key]:
                del self._requests[key]

    async def is_rate_limited(
        self,
        key: str,
        limit: int,
        window: int,
    ) -> tuple[bool, int, int]:
        """
        Check if a key is rate limited.

        Returns:
            Tuple of (is_limited, remaining_requests, retry_after_seconds)
        """
        self._cleanup_if_needed(max(window, 3600))
        now = time.time()
        window_start = now - window

        timestamps = [ts for ts in self._requests.get(key, []) if ts > window_start]
        self._requests[key] = timestamps

        if len(timestamps) >= limit:
            oldest = min(timestamps) if timestamps else now
            retry_after = int(window - (now - oldest)) + 1
            return True, 0, retry_after

        timestamps.append(now)
        return False, max(0, limit - len(timestamps)), 0

    async def close(self) -> None:
        self._requests.clear()


# Global limiter instances
_rate_limiter: Optional[RateLimiter] = None
_fallback_limiter: Optional[InMemoryRateLimiter] = None
_redis_available: bool = True


def get_rate_limiter() -> RateLimiter:
    """Get the process-wide limiter, creating it from settings on first use."""
    global _rate_limiter
    if _rate_limiter is None:
        if settings.redis_url:
            _rate_limiter = RedisRateLimiter(settings.redis_url)
        else:
            _rate_limiter = InMemoryRateLimiter()
    return _rate_limiter


def get_fallback_limiter() -> InMemoryRateLimiter:
    global _fallback_limiter
    if _fallback_limiter is None:
        _fallback_limiter = InMemoryRateLimiter()
    return _fallback_limiter


async def close_rate_limiter() -> None:
    """Close and forget the global limiters."""
    global _rate_limiter, _fallback_limiter, _redis_available
    if _rate_limiter:
        await _rate_limiter.close()
        _rate_limiter = None
    _fallback_limiter = None
    _redis_available = True


# =============================================================================
# Helper Functions
# =============================================================================

CLIENT_IP_HEADERS = ("X-Real-IP", "X-Forwarded-For", "CF-Connecting-IP", "True-Client-IP")


def _valid_ip(value: str) -> Optional[str]:
    try:
        return str(ipaddress.ip_address(value.strip()))
    except ValueError:
        return None


def get_client_ip(request: Request) -> str:
    """
    Resolve the client address, honouring common proxy headers.

    ``X-Forwarded-For`` contributes its first (client-most) entry; values
    that are not valid IP addresses are skipped.
    """
    for header in CLIENT_IP_HEADERS:
        value = request.headers.get(header)
        if not value:
            continue
        if header == "X-Forwarded-For":
            value = value.split(",")[0]
        ip = _valid_ip(value)
        if ip:
            return ip
    return request.client.host if request.client else "unknown"


def build_rate_limit_key(tier: RateLimitTier, ip_address: str) -> str:
    return f"rate_limit:{tier.value}:ip_{ip_address}"


# =============================================================================
# Rate Limit Dependency
# =============================================================================


class RateLimitDependency:
    """
    FastAPI dependency for rate limiting.

    Usage:
        router = APIRouter(dependencies=[Depends(RateLimitDependency(RateLimitTier.STRICT))])
    """

    def __init__(self, tier: RateLimitTier = RateLimitTier.DEFAULT):
        self.tier = tier

    async def _check(self, key: str, limit: int, window: int) -> tuple[bool, int, int]:
        global _redis_available

        limiter = get_rate_limiter()
        if isinstance(limiter, InMemoryRateLimiter):
            return await limiter.is_rate_limited(key, limit, window)

        try:
            result = await limiter.is_rate_limited(key, limit, window)
            _redis_available = True
            return result
        except aioredis.RedisError as e:
            if _redis_available:
                logger.warning(f"Redis rate limiting unavailable, using in-memory fallback: {e}")
                _redis_available = False
            return await get_fallback_limiter().is_rate_limited(key, limit, window)

    async def __call__(self, request: Request) -> None:
        if not settings.rate_limit_enabled:
            return

        config = get_tier_config(self.tier)
        limit, window = config.requests, config.window

        key = build_rate_limit_key(self.tier, get_client_ip(request))
        is_limited, remaining, retry_after = await self._check(key, limit, window)

        # Read by RateLimitMiddleware for response headers
        request.state.rate_limit_limit = limit
        request.state.rate_limit_remaining = remaining
        request.state.rate_limit_reset = int(time.time()) + window

        if is_limited:
            raise RateLimitError(
                retry_after=retry_after,
                headers={
                    "Retry-After": str(retry_after),
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(request.state.rate_limit_reset),
                },
            )


# =============================================================================
# Rate Limit Middleware
# =============================================================================


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Adds X-RateLimit-* headers when a limited route recorded its usage."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        response = await call_next(request)

        if hasattr(request.state, "rate_limit_limit"):
            response.headers["X-RateLimit-Limit"] = str(request.state.rate_limit_limit)
            response.headers["X-RateLimit-Remaining"] = str(getattr(request.state, "rate_limit_remaining", 0))
            response.headers["X-RateLimit-Reset"] = str(getattr(request.state, "rate_limit_reset", 0))

        return response

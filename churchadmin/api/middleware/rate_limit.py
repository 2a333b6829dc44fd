"""Rate limiting middleware for FastAPI.

Per-client-address sliding window limits using Redis as a backend.

Features:
- Per-IP limits, stricter on the login endpoint
- Configurable limits via environment variables
- Redis-based for multi-process deployments
- HTTP 429 responses with Retry-After and X-RateLimit-* headers
- Excludes health check endpoints
- Fails open: an unreachable Redis or a limiter error never blocks a request
"""

import hashlib
import logging
import time
import uuid
from typing import Optional, Tuple

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
import redis.asyncio as redis

from churchadmin.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Paths excluded from rate limiting
EXCLUDED_PATHS = {
    "/health",
    "/health/live",
    "/health/ready",
    "/health/detailed",
}

LOGIN_PATH_SUFFIX = "/auth/login"


class RateLimiter:
    """
    Sliding window rate limiter using a Redis sorted set per key.

    Each request is stored with its timestamp as score; entries older than
    the window are trimmed before counting.
    """

    def __init__(self, redis_url: Optional[str] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.redis_url = redis_url or self.settings.redis_url
        self._redis: Optional[redis.Redis] = None

        self.default_limit = self.settings.rate_limit_default
        self.default_window = self.settings.rate_limit_window
        self.login_limit = self.settings.rate_limit_login

    async def get_redis(self) -> Optional[redis.Redis]:
        """Get or create Redis connection."""
        if self._redis is None:
            client = None
            try:
                client = redis.from_url(
                    self.redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                    socket_connect_timeout=2,
                    socket_timeout=2,
                )
                await client.ping()
            except Exception as e:
                logger.warning(f"Rate limiter backend unavailable: {e}")
                if client is not None:
                    await client.aclose()
                return None
            self._redis = client
        return self._redis

    def _get_key(self, identifier: str, endpoint: str = "default") -> str:
        """Generate Redis key for rate limiting."""
        # Hash the identifier for privacy
        hashed = hashlib.sha256(identifier.encode()).hexdigest()[:16]
        return f"ratelimit:{endpoint}:{hashed}"

    async def is_allowed(
        self,
        identifier: str,
        endpoint: str = "default",
        limit: Optional[int] = None,
        window: Optional[int] = None,
    ) -> Tuple[bool, int, int, int]:
        """
        Check if request is allowed under rate limit.

        Returns:
            Tuple of (allowed, remaining, limit, reset_time)
        """
        limit = limit or self.default_limit
        window = window or self.default_window

        r = await self.get_redis()
        if r is None:
            # Redis unavailable - allow request but don't count it
            return True, limit, limit, 0

        key = self._get_key(identifier, endpoint)
        now = time.time()
        window_start = now - window
        member = f"{now:.6f}:{uuid.uuid4().hex[:8]}"

        try:
            async with r.pipeline(transaction=True) as pipe:
                pipe.zremrangebyscore(key, 0, window_start)
                pipe.zcard(key)
                pipe.zadd(key, {member: now})
                pipe.expire(key, window)
                results = await pipe.execute()
        except Exception as e:
            logger.warning(f"Rate limiter error, allowing request: {e}")
            self._redis = None
            return True, limit, limit, 0

        current_count = results[1]
        reset_time = int(now) + window

        if current_count >= limit:
            return False, 0, limit, reset_time

        return True, max(0, limit - current_count - 1), limit, reset_time

    async def close(self):
        """Close Redis connection."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None


class RateLimitMiddleware(BaseHTTPMiddleware):
    """FastAPI middleware applying per-address limits, stricter on login."""

    def __init__(self, app, limiter: Optional[RateLimiter] = None):
        super().__init__(app)
        self.limiter = limiter or RateLimiter()

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path in EXCLUDED_PATHS:
            return await call_next(request)

        identifier, limit, endpoint = self._get_rate_params(request)

        allowed, remaining, total, reset_time = await self.limiter.is_allowed(
            identifier=identifier,
            endpoint=endpoint,
            limit=limit,
        )

        if not allowed:
            retry_after = reset_time - int(time.time())
            logger.info(f"Rate limit exceeded on {endpoint} for {identifier}")
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"error": "Too many requests. Please try again later."},
                headers={
                    "Retry-After": str(max(1, retry_after)),
                    "X-RateLimit-Limit": str(total),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(reset_time),
                },
            )

        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(total)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        if reset_time:
            response.headers["X-RateLimit-Reset"] = str(reset_time)

        return response

    def _get_rate_params(self, request: Request) -> Tuple[str, int, str]:
        """
        Determine rate limit parameters based on request.

        Returns:
            Tuple of (identifier, limit, endpoint_category)
        """
        client_ip = get_client_ip(request)
        if request.url.path.endswith(LOGIN_PATH_SUFFIX):
            return client_ip, self.limiter.login_limit, "login"
        return client_ip, self.limiter.default_limit, "default"


def get_client_ip(request: Request) -> str:
    """Extract client IP from request, handling proxies."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    if request.client:
        return request.client.host

    return "unknown"

import time
from typing import Callable, List, Optional, Tuple
from collections import defaultdict, deque
import asyncio

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi.util import get_remote_address
from redis import Redis
from app.core.logging import security_logger
from app.core.security import token_subject


# In-memory rate limiter for development (fallback)
class InMemoryRateLimiter:
    def __init__(self):
        self.clients = defaultdict(deque)
        self.lock = asyncio.Lock()

    async def is_allowed(self, key: str, limit: int, window: int) -> bool:
        async with self.lock:
            now = time.time()
            client_requests = self.clients[key]

            while client_requests and client_requests[0] < now - window:
                client_requests.popleft()

            if len(client_requests) >= limit:
                return False

            client_requests.append(now)
            return True


# Redis-based sliding window for multi-worker deployments
class RedisRateLimiter:
    def __init__(self, redis_client: Redis):
        self.redis = redis_client

    async def is_allowed(self, key: str, limit: int, window: int) -> bool:
        try:
            pipe = self.redis.pipeline()
            now = time.time()

            pipe.zremrangebyscore(key, 0, now - window)
            pipe.zcard(key)
            pipe.zadd(key, {str(now): now})
            pipe.expire(key, window)

            results = pipe.execute()
            current_count = results[1]

            return current_count < limit

        except Exception as e:
            security_logger.error("Redis rate limiter error", error=str(e))
            # Fail open when Redis is unreachable
            return True


_rate_limiter_instance: Optional[InMemoryRateLimiter] = None
_redis_rate_limiter: Optional[RedisRateLimiter] = None


def get_rate_limiter() -> InMemoryRateLimiter:
    global _rate_limiter_instance
    if _rate_limiter_instance is None:
        _rate_limiter_instance = InMemoryRateLimiter()
    return _rate_limiter_instance


def setup_redis_rate_limiter(redis_url: str = "redis://localhost:6379") -> None:
    global _redis_rate_limiter
    try:
        redis_client = Redis.from_url(redis_url, decode_responses=True)
        _redis_rate_limiter = RedisRateLimiter(redis_client)
        security_logger.info("Redis rate limiter configured")
    except Exception as e:
        security_logger.warning("Failed to setup Redis rate limiter, using in-memory fallback", error=str(e))


def get_active_rate_limiter():
    return _redis_rate_limiter if _redis_rate_limiter else get_rate_limiter()


# (path prefix, method or None for any, limit, window seconds); first match wins
RATE_LIMIT_RULES: List[Tuple[str, Optional[str], int, int]] = [
    ("/auth", None, 5, 60),
    ("/api", "POST", 20, 60),
    ("/users/me/avatar", "POST", 10, 60),
    ("", None, 100, 60),
]

EXEMPT_PATHS = {"/health", "/", "/docs", "/redoc", "/openapi.json", "/metrics"}


def rate_limit_key_func(request: Request) -> str:
    """Rate limit per token subject when a valid bearer token is sent, per client address otherwise"""
    scheme, _, token = request.headers.get("authorization", "").partition(" ")
    if scheme.lower() == "bearer" and token:
        subject = token_subject(token.strip())
        if subject:
            return f"user:{subject}"
    return get_remote_address(request)


def resolve_limit(path: str, method: str) -> Tuple[str, int, int]:
    for prefix, rule_method, limit, window in RATE_LIMIT_RULES:
        if path.startswith(prefix) and (rule_method is None or rule_method == method):
            return prefix or "default", limit, window
    return "default", 100, 60


async def rate_limit_middleware(request: Request, call_next: Callable):
    """Sliding-window rate limiting keyed by client and rule"""
    if request.url.path in EXEMPT_PATHS:
        return await call_next(request)

    rule, limit, window = resolve_limit(request.url.path, request.method)
    client_key = f"ratelimit:{rule}:{rate_limit_key_func(request)}"

    is_allowed = await get_active_rate_limiter().is_allowed(client_key, limit, window)

    if not is_allowed:
        security_logger.warning(
            "Rate limit exceeded",
            client=client_key,
            path=request.url.path,
            method=request.method
        )
        return JSONResponse(
            status_code=429,
            content={"detail": f"Rate limit exceeded. Maximum {limit} requests per {window} seconds."}
        )

    return await call_next(request)

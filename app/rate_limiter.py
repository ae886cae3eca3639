"""
Per-IP rate limiting for the public and paid endpoints (register, login,
text generation, address autocomplete).

Counts are kept in process memory and written through to Redis every few
seconds, so a restarted or sibling worker picks up the current window without
a Redis round trip per request. If Redis cannot be reached the limiter fails
closed and the endpoint answers 503.
"""

import logging
import os
import time
from dataclasses import dataclass
from threading import Lock
from typing import Optional

import redis
from fastapi import HTTPException, Request, status

logger = logging.getLogger(__name__)

REDIS_SYNC_INTERVAL = 10  # seconds between write-throughs of a window
CLEANUP_INTERVAL = 60

redis_client: Optional[redis.Redis] = None


@dataclass
class Window:
    count: int
    resets_at: int
    synced_at: int = 0

    def ttl(self, now: int) -> int:
        return max(0, self.resets_at - now)


_windows: dict[str, Window] = {}
_windows_lock = Lock()
_last_cleanup = 0


def get_redis_client() -> redis.Redis:
    """Lazily connect to REDIS_URL; raises when the server does not answer a ping"""
    global redis_client

    if redis_client is None:
        redis_url = os.getenv("REDIS_URL", "redis://localhost:6379/0")
        logger.info(f"🔄 Connecting to Redis for rate limiting: {redis_url.split('@')[-1]}")
        client = redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30,
            max_connections=20,
        )
        try:
            client.ping()
        except redis.RedisError as e:
            logger.error(f"❌ Failed to connect to Redis: {e}")
            raise
        redis_client = client
        logger.info("✅ Redis connected")

    return redis_client


def _drop_expired_windows(now: int):
    global _last_cleanup
    if now - _last_cleanup < CLEANUP_INTERVAL:
        return
    expired = [key for key, window in _windows.items() if now >= window.resets_at]
    for key in expired:
        del _windows[key]
    if expired:
        logger.debug(f"🧹 Dropped {len(expired)} expired rate limit window(s)")
    _last_cleanup = now


def _load_window(key: str, window_seconds: int, client: redis.Redis, now: int) -> Window:
    try:
        stored, ttl = client.get(key), client.ttl(key)
    except redis.RedisError as e:
        logger.warning(f"⚠️ Could not read rate limit window {key} from Redis: {e}")
        stored, ttl = None, 0

    if stored and ttl > 0:
        return Window(count=int(stored), resets_at=now + ttl, synced_at=now)
    return Window(count=0, resets_at=now + window_seconds, synced_at=now)


def check_rate_limit(
    key: str, limit: int, window_seconds: int, client: redis.Redis
) -> tuple[bool, int, int]:
    """Count one request against `key`. Returns (allowed, count, seconds until reset)"""
    now = int(time.time())

    with _windows_lock:
        _drop_expired_windows(now)

        window = _windows.get(key)
        if window is None:
            window = _windows[key] = _load_window(key, window_seconds, client, now)
        elif now >= window.resets_at:
            window.count, window.resets_at, window.synced_at = 0, now + window_seconds, 0

        allowed = window.count < limit
        if allowed:
            window.count += 1

        if now - window.synced_at >= REDIS_SYNC_INTERVAL:
            try:
                client.set(key, window.count, ex=window.ttl(now) or window_seconds)
                window.synced_at = now
            except redis.RedisError as e:
                logger.warning(f"⚠️ Could not sync rate limit window {key} to Redis: {e}")

        return allowed, window.count, window.ttl(now)


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def rate_limit_dependency(request: Request, limit: int, window_seconds: int, key_prefix: str):
    try:
        client = get_redis_client()
    except Exception as e:
        logger.error(f"❌ Rate limiting unavailable, refusing {request.url.path}: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Rate limiting service temporarily unavailable",
        ) from e

    key = f"{key_prefix}:{_client_ip(request)}"
    allowed, count, ttl = check_rate_limit(key, limit, window_seconds, client)
    if not allowed:
        logger.warning(f"🚫 Rate limit exceeded for {key} ({count}/{limit})")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Too many requests. Try again in {ttl} seconds.",
            headers={"Retry-After": str(ttl)},
        )


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str = "rate_limit"):
    """
    Build a FastAPI dependency enforcing `limit` requests per `window_seconds` per client IP.

        rate_limit_login = create_rate_limiter(limit=10, window_seconds=60, key_prefix="login")
    """

    async def rate_limiter(request: Request):
        await rate_limit_dependency(request, limit, window_seconds, key_prefix)

    return rate_limiter

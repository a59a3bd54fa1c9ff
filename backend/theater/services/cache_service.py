"""
Redis caching service for show listings.

CACHING STRATEGY
================

What we cache:
  - The show listing response (JSON-serialized)
  - Cache key pattern: "shows:list:days={days}&stats={include_stats}"

Why:
  - The listing is the entry point of every external integration and is
    polled far more often than seats change hands
  - Without stats it only changes once a day, when the schedule rolls over

Invalidation strategy:
  - On booking, cancellation, hold, release and admin reset: delete every
    "shows:list:*" key (availability stats changed)
  - Short TTL as safety net, since lapsed holds change availability without
    any write happening

Never cached:
  - Seat maps and block previews. They are served from the in-memory
    inventory, which is the source of truth; a stale seat map is how a
    client ends up trying to book a seat that is already gone.
"""

import json
from typing import Optional

import redis.asyncio as redis
from theater.core.config import get_settings
from theater.core.logging import get_logger
from theater.core.metrics import record_cache_operation, redis_connection_errors

logger = get_logger(__name__)
settings = get_settings()

SHOW_LIST_PREFIX = "shows:list:"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            await _redis_client.ping()
            logger.info("redis_connected", url=settings.REDIS_URL)
        except redis.RedisError as e:
            redis_connection_errors.inc()
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def _make_show_list_key(days: int, include_stats: bool) -> str:
    return f"{SHOW_LIST_PREFIX}days={days}&stats={include_stats}"


async def get_cached_shows(days: int, include_stats: bool) -> Optional[dict]:
    """Retrieve a cached show listing response."""
    client = await get_redis()
    if not client:
        return None

    key = _make_show_list_key(days, include_stats)
    try:
        data = await client.get(key)
        record_cache_operation("get", hit=data is not None)
        if data:
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
    except redis.RedisError as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_shows(days: int, include_stats: bool, data: dict) -> None:
    """Cache a show listing response with TTL."""
    client = await get_redis()
    if not client:
        return

    key = _make_show_list_key(days, include_stats)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        record_cache_operation("set", hit=False)
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except redis.RedisError as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_show_cache() -> None:
    """
    Invalidate all cached show listings.
    Uses SCAN to find and delete all keys matching the prefix.
    """
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{SHOW_LIST_PREFIX}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except redis.RedisError as e:
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        keyspace = await client.info("keyspace")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
            "keys": keyspace,
        }
    except redis.RedisError as e:
        return {"status": "error", "error": str(e)}

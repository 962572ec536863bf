"""
Redis caching service for the per-region roster counts.

CACHING STRATEGY
================

What we cache:
  - The list_counts summary (confirmed / waiting list / max per region),
    JSON-serialized under a single key: "registrations:counts"

Why:
  - The admin dashboard and status widgets poll the counts constantly
    while registration is open
  - Computing them is a grouped COUNT over registrations plus the ledger

Invalidation strategy:
  - Every mutating endpoint (submit, edit, status/region change, delete,
    capacity change) deletes the key after its transition commits
  - Short TTL as safety net, counts move quickly during a rush

Why NOT cache individual registrations or the ledger itself:
  - The ledger is the source of truth for claims; a stale copy would be
    worse than no copy
  - Individual reads are rare admin actions

Redis is optional: when disabled or unreachable every call degrades to a
miss and the database serves the request.
"""

import json
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError
from event_registration.core.config import get_settings
from event_registration.core.logging import get_logger
from event_registration.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

COUNTS_KEY = "registrations:counts"

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
        except (RedisError, OSError) as e:
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


async def get_cached_counts() -> Optional[list[dict]]:
    client = await get_redis()
    if not client:
        return None

    try:
        data = await client.get(COUNTS_KEY)
        record_cache_operation("get", hit=data is not None)
        if data:
            logger.debug("cache_hit", key=COUNTS_KEY)
            return json.loads(data)
        logger.debug("cache_miss", key=COUNTS_KEY)
    except (RedisError, OSError) as e:
        logger.error("cache_get_error", key=COUNTS_KEY, error=str(e))

    return None


async def set_cached_counts(counts: list[dict]) -> None:
    client = await get_redis()
    if not client:
        return

    try:
        await client.setex(COUNTS_KEY, settings.REDIS_CACHE_TTL, json.dumps(counts, default=str))
        record_cache_operation("set", hit=False)
        logger.debug("cache_set", key=COUNTS_KEY, ttl=settings.REDIS_CACHE_TTL)
    except (RedisError, OSError) as e:
        logger.error("cache_set_error", key=COUNTS_KEY, error=str(e))


async def invalidate_counts_cache() -> None:
    client = await get_redis()
    if not client:
        return

    try:
        deleted = await client.delete(COUNTS_KEY)
        logger.info("cache_invalidated", keys_deleted=deleted)
    except (RedisError, OSError) as e:
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except (RedisError, OSError) as e:
        return {"status": "error", "error": str(e)}

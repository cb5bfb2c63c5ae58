"""
Redis caching service for trip search results.

CACHING STRATEGY
================

What we cache:
  - Trip search responses (JSON-serialized list of trip views)
  - Cache key pattern: "trips:search:date={date}&src={source}&dst={destination}"

Why:
  - Searching by date/source/destination is the most frequent rider read
  - It joins routes and trips; serving from Redis skips both queries

Invalidation strategy:
  - Any booking, cancellation, trip or route change deletes every search key
    (all of them start with "trips:search:" so one SCAN finds them)
  - A short TTL is the safety net for anything missed

What is NOT cached:
  - Single-trip reads and the booking path. Booking always reads the live
    counter and the inventory controller re-checks it atomically, so a stale
    search result can at worst show a seat that is already gone.

Redis is optional. When it is disabled or unreachable every call degrades
to a cache miss and the API keeps working against the database.
"""

import json
from typing import Optional

import redis.asyncio as redis
from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

SEARCH_KEY_PREFIX = "trips:search:"

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
        except Exception as e:
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


def _make_search_key(date: str, source: str, destination: str) -> str:
    return f"{SEARCH_KEY_PREFIX}date={date}&src={source.strip().lower()}&dst={destination.strip().lower()}"


async def get_cached_search(date: str, source: str, destination: str) -> Optional[list]:
    client = await get_redis()
    if not client:
        return None

    key = _make_search_key(date, source, destination)
    try:
        data = await client.get(key)
        record_cache_operation("get", hit=data is not None)
        if data:
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_search(date: str, source: str, destination: str, data: list) -> None:
    client = await get_redis()
    if not client:
        return

    key = _make_search_key(date, source, destination)
    try:
        await client.setex(key, settings.TRIP_SEARCH_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.TRIP_SEARCH_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_trip_cache() -> None:
    """Drop every cached search result."""
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{SEARCH_KEY_PREFIX}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except Exception as e:
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
    except Exception as e:
        return {"status": "error", "error": str(e)}

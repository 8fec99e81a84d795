"""Health check utilities for the cache store.

Provides uptime tracking and a status summary suitable for a monitoring
endpoint or a CLI probe.
"""
import time
from typing import Dict, Any, TYPE_CHECKING

from tablecache.core.exceptions import CacheError
from tablecache.core.logging import get_logger

if TYPE_CHECKING:
    from tablecache.core.database import Database
    from tablecache.core.cache import CacheStore

logger = get_logger(__name__)

HEALTH_CHECK_KEY = "_tablecache_health_check"


def get_uptime(cache: "CacheStore") -> float:
    """Get seconds since the store started, 0.0 if it is not running."""
    started_at = cache.started_at
    return time.time() - started_at if started_at else 0.0


async def check_database(database: "Database") -> bool:
    """Check database connectivity."""
    try:
        return await database.ping()
    except CacheError as e:
        logger.warning("Database health check failed", error=str(e))
        return False


async def check_cache(cache: "CacheStore") -> bool:
    """Write, read back and evict a probe entry."""
    try:
        await cache.put(HEALTH_CHECK_KEY, "ok", ttl=10)
        result = await cache.get(HEALTH_CHECK_KEY, refresh=False)
        await cache.evict(HEALTH_CHECK_KEY)
        return result.get() == "ok"
    except CacheError as e:
        logger.warning("Cache health check failed", error=str(e))
        return False


async def get_health_status(cache: "CacheStore") -> Dict[str, Any]:
    """Get health status for the store.

    The probe entry's put and evict show up in the store statistics.

    Returns:
        Dict containing status, uptime, size, checks, statistics and feature flags.
    """
    await cache.startup()
    db_healthy = await check_database(cache.database)
    cache_healthy = await check_cache(cache)

    overall_status = "healthy" if (db_healthy and cache_healthy) else "degraded"
    size = await cache.size() if cache_healthy else None
    settings = cache.settings
    sweeper = cache.sweeper

    return {
        "status": overall_status,
        "uptime_seconds": round(get_uptime(cache), 3),
        "size": size,
        "dialect": cache.database.dialect_name if cache.database.engine else None,
        "checks": {
            "database": db_healthy,
            "cache": cache_healthy,
        },
        "statistics": cache.get_statistics().to_dict(),
        "features": {
            "null_values": settings.allow_null_values,
            "background_cleanup": settings.background_cleanup_enabled,
            "auto_create_table": settings.auto_create_table,
        },
        "sweeper": {
            "running": sweeper.running if sweeper else False,
            "sweeps": sweeper.sweeps if sweeper else 0,
        },
    }

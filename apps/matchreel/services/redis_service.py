"""
Redis service providing a centralized Redis client singleton.

Redis backs the long-lived tier of the sheet read cache. It is optional at
runtime: when it is disabled or unreachable every helper here degrades to a
no-op and callers fall through to the spreadsheet.

Usage:
    from matchreel.services.redis_service import redis_get, redis_set

    async def my_function():
        await redis_set("key", "value", expiry_seconds=300)
        value = await redis_get("key")
"""

import logging
import os
import time
from typing import Optional

from redis.asyncio import Redis

from matchreel.services.settings_service import get_bool_env

logger = logging.getLogger(__name__)

# Connection settings
SOCKET_CONNECT_TIMEOUT = 2
SOCKET_TIMEOUT = 5
RETRY_ON_TIMEOUT = True

# After a failed connect, don't try again for this long
RECONNECT_BACKOFF_SECONDS = 30

# Global Redis client (singleton)
_redis_client: Optional[Redis] = None
_connection_tested: bool = False
_last_failure_at: Optional[float] = None


def _get_config() -> dict:
    """Read Redis configuration from environment at call time."""
    return {
        "host": os.getenv("REDIS_HOST", "localhost"),
        "port": int(os.getenv("REDIS_PORT", "6379")),
        "db": int(os.getenv("REDIS_DB", "0")),
        "password": os.getenv("REDIS_PASSWORD") or None,
    }


async def get_redis_client() -> Optional[Redis]:
    """
    Get or create the Redis client singleton.

    Returns:
        Redis client or None if Redis is disabled (REDIS_ENABLED=false),
        unreachable, or failed recently
    """
    global _redis_client, _connection_tested, _last_failure_at

    if not get_bool_env("REDIS_ENABLED", True):
        return None

    # Return existing client if connection was already tested
    if _redis_client is not None and _connection_tested:
        try:
            await _redis_client.ping()
            return _redis_client
        except Exception as e:
            logger.warning(f"Redis connection lost, recreating client: {e}")
            await _close_client()

    if _last_failure_at is not None and time.monotonic() - _last_failure_at < RECONNECT_BACKOFF_SECONDS:
        return None

    cfg = _get_config()
    try:
        client_kwargs = {
            "host": cfg["host"],
            "port": cfg["port"],
            "db": cfg["db"],
            "decode_responses": True,
            "socket_connect_timeout": SOCKET_CONNECT_TIMEOUT,
            "socket_timeout": SOCKET_TIMEOUT,
            "retry_on_timeout": RETRY_ON_TIMEOUT,
        }
        if cfg["password"]:
            client_kwargs["password"] = cfg["password"]

        _redis_client = Redis(**client_kwargs)

        # Test connection
        await _redis_client.ping()
        _connection_tested = True
        _last_failure_at = None
        logger.info(f"Connected to Redis at {cfg['host']}:{cfg['port']}/{cfg['db']}")
        return _redis_client

    except Exception as e:
        logger.warning(f"Failed to connect to Redis at {cfg['host']}:{cfg['port']}/{cfg['db']}: {e}")
        _redis_client = None
        _connection_tested = False
        _last_failure_at = time.monotonic()
        return None


async def _close_client() -> None:
    """Internal helper to close and reset the client."""
    global _redis_client, _connection_tested

    if _redis_client is not None:
        try:
            await _redis_client.aclose()
        except Exception as e:
            logger.debug(f"Ignoring error while closing Redis client: {e}")
        _redis_client = None
    _connection_tested = False


async def close_redis_connection() -> None:
    """
    Close the Redis connection.

    Called from the FastAPI lifespan on shutdown.
    """
    global _redis_client, _connection_tested

    if _redis_client is not None:
        try:
            await _redis_client.aclose()
            logger.info("Closed Redis connection")
        except Exception as e:
            logger.warning(f"Error closing Redis connection: {e}")
        finally:
            _redis_client = None
            _connection_tested = False


async def is_redis_available() -> bool:
    """Check if Redis is available and responding to ping."""
    try:
        client = await get_redis_client()
        return client is not None
    except Exception:
        return False


# ============================================================================
# Convenience functions for common operations
# ============================================================================

async def redis_get(key: str) -> Optional[str]:
    """
    Get a value from Redis.

    Returns:
        The value or None if not found or Redis unavailable
    """
    try:
        client = await get_redis_client()
        if client:
            return await client.get(key)
    except Exception as e:
        logger.warning(f"Redis GET error for key {key}: {e}")
    return None


async def redis_set(
    key: str,
    value: str,
    expiry_seconds: Optional[int] = None
) -> bool:
    """
    Set a value in Redis with optional expiry.

    Returns:
        True if successful, False otherwise
    """
    try:
        client = await get_redis_client()
        if client:
            if expiry_seconds:
                await client.setex(key, expiry_seconds, value)
            else:
                await client.set(key, value)
            return True
    except Exception as e:
        logger.warning(f"Redis SET error for key {key}: {e}")
    return False


async def redis_delete(key: str) -> bool:
    """
    Delete a key from Redis.

    Returns:
        True if successful, False otherwise
    """
    try:
        client = await get_redis_client()
        if client:
            await client.delete(key)
            return True
    except Exception as e:
        logger.warning(f"Redis DELETE error for key {key}: {e}")
    return False


async def redis_incr(key: str) -> Optional[int]:
    """
    Increment an integer counter in Redis.

    Returns:
        The new value, or None if Redis is unavailable
    """
    try:
        client = await get_redis_client()
        if client:
            return await client.incr(key)
    except Exception as e:
        logger.warning(f"Redis INCR error for key {key}: {e}")
    return None

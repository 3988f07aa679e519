"""
Read cache for spreadsheet rows.

Two tiers sit in front of the row store:

1. ``RequestCache`` - an explicit object created per request (or per script
   run) and passed through the service calls. Entries are keyed by
   ``(tag, operation, *args)`` and live as long as the object does.
2. Redis - rows per sheet with a wall-clock TTL, shared by every process.

Every write to a sheet must call ``invalidate`` for that sheet; the
repositories do this after each create, update and delete. ``invalidate``
also bumps a per-sheet generation counter in Redis, and a load that saw the
counter move while it was reading the sheet discards what it stored.
"""

import asyncio
import json
import logging
from typing import Any, AsyncGenerator, Awaitable, Callable, Dict, Hashable, List, Optional, Tuple

from matchreel.services import redis_service, settings_service, sheets_service

logger = logging.getLogger(__name__)

REDIS_KEY_PREFIX = "matchreel:rows:"
GENERATION_KEY_PREFIX = "matchreel:gen:"

CacheKey = Tuple[Hashable, ...]


class RequestCache:
    """
    Read-through memo for one logical request.

    Concurrent loads of the same key share a single in-flight task, so
    ``asyncio.gather`` over overlapping reads still hits the store once.
    A load that fails is evicted and retried by the next caller.
    """

    def __init__(self) -> None:
        self._entries: Dict[CacheKey, "asyncio.Future[Any]"] = {}
        self.loads = 0

    async def get_or_load(self, key: CacheKey, loader: Callable[[], Awaitable[Any]]) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            self.loads += 1
            entry = asyncio.ensure_future(loader())
            self._entries[key] = entry
        try:
            return await asyncio.shield(entry)
        except Exception:
            if self._entries.get(key) is entry:
                del self._entries[key]
            raise

    def invalidate(self, tag: Hashable) -> None:
        """Drop every entry whose key starts with ``tag``."""
        for key in [k for k in self._entries if k[0] == tag]:
            del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def _redis_key(sheet_name: str) -> str:
    return f"{REDIS_KEY_PREFIX}{sheet_name}"


async def _get_cached_rows(sheet_name: str) -> Optional[List[List[Any]]]:
    """Get rows for a sheet from Redis, or None on a miss."""
    raw = await redis_service.redis_get(_redis_key(sheet_name))
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning(f"Discarding unreadable cached rows for sheet {sheet_name}")
        await redis_service.redis_delete(_redis_key(sheet_name))
        return None


async def _set_cached_rows(sheet_name: str, rows: List[List[Any]]) -> None:
    await redis_service.redis_set(
        _redis_key(sheet_name),
        json.dumps(rows, ensure_ascii=False),
        expiry_seconds=settings_service.get_sheet_cache_ttl_seconds(),
    )


def _generation_key(sheet_name: str) -> str:
    return f"{GENERATION_KEY_PREFIX}{sheet_name}"


async def _load_rows(sheet_name: str) -> List[List[Any]]:
    cached = await _get_cached_rows(sheet_name)
    if cached is not None:
        logger.debug(f"Redis cache hit for sheet {sheet_name}")
        return cached

    generation = await redis_service.redis_get(_generation_key(sheet_name))
    rows = await asyncio.to_thread(sheets_service.get_rows, sheet_name)
    await _set_cached_rows(sheet_name, rows)

    # an invalidate during the fetch moved the generation; the snapshot is stale
    if await redis_service.redis_get(_generation_key(sheet_name)) != generation:
        logger.debug(f"Sheet {sheet_name} changed during load, dropping cached rows")
        await redis_service.redis_delete(_redis_key(sheet_name))
    return rows


async def read_rows(
    sheet_name: str,
    cache: Optional[RequestCache] = None,
    fresh: bool = False,
) -> List[List[Any]]:
    """
    Read all rows of a sheet, header included.

    Args:
        sheet_name: Worksheet name
        cache: Request-scoped cache, if the caller has one
        fresh: Skip both cache tiers and read the sheet directly. Write
            paths use this so row positions are never stale.

    Returns:
        Raw rows exactly as the row store returned them. Callers must not
        mutate the returned lists, which may be shared.
    """
    if fresh:
        return await asyncio.to_thread(sheets_service.get_rows, sheet_name)

    if cache is None:
        return await _load_rows(sheet_name)

    return await cache.get_or_load((sheet_name, "rows"), lambda: _load_rows(sheet_name))


async def invalidate(sheet_name: str, cache: Optional[RequestCache] = None) -> None:
    """Drop a sheet from both cache tiers after it was written."""
    if cache is not None:
        cache.invalidate(sheet_name)
    await redis_service.redis_incr(_generation_key(sheet_name))
    await redis_service.redis_delete(_redis_key(sheet_name))


async def get_request_cache() -> AsyncGenerator[RequestCache, None]:
    """
    Dependency function for FastAPI to get a request-scoped cache.

    Usage in FastAPI routes:
        async def my_route(cache: RequestCache = Depends(get_request_cache)):
            ...
    """
    cache = RequestCache()
    try:
        yield cache
    finally:
        cache.clear()

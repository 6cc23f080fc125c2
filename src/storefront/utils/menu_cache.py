# src/storefront/utils/menu_cache.py
from __future__ import annotations

import time
import asyncio
import copy
import logging
from collections import OrderedDict
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.storefront.crud.menu import get_public_menus

logger = logging.getLogger(__name__)

# key -> {"epoch": int, "expires": float, "menus": List[dict]}
_CACHE: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()

# key -> asyncio.Lock
_KEY_LOCKS: Dict[str, asyncio.Lock] = {}

# Global “epoch”: bump it to force all cache entries stale immediately
_CACHE_EPOCH: int = 1


def _cache_key(location: Optional[str], handle: Optional[str]) -> str:
    return f"{(location or '').strip().upper()}|{(handle or '').strip()}"


def _get_key_lock(key: str) -> asyncio.Lock:
    # no await between lookup and insert, so this is atomic on the event loop
    lock = _KEY_LOCKS.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _KEY_LOCKS[key] = lock
    return lock


def _prune_locks() -> None:
    # only cached keys and fills in progress keep a lock
    for key in [k for k, lock in _KEY_LOCKS.items() if k not in _CACHE and not lock.locked()]:
        del _KEY_LOCKS[key]


def _cache_get(key: str, now: float) -> Optional[List[Dict[str, Any]]]:
    cached = _CACHE.get(key)
    if not cached:
        return None

    # epoch mismatch => treat as miss
    if int(cached.get("epoch", 0)) != _CACHE_EPOCH:
        return None

    if float(cached.get("expires", 0)) <= now:
        return None

    _CACHE.move_to_end(key, last=True)
    return copy.deepcopy(cached["menus"])


def _cache_set(key: str, menus: List[Dict[str, Any]]) -> None:
    ttl = max(1.0, float(settings.MENU_CACHE_TTL_SECONDS))
    _CACHE[key] = {
        "epoch": _CACHE_EPOCH,
        "expires": time.time() + ttl,
        "menus": menus,
    }
    _CACHE.move_to_end(key, last=True)

    max_keys = max(10, int(settings.MENU_CACHE_MAX_KEYS))
    while len(_CACHE) > max_keys:
        _CACHE.popitem(last=False)


def invalidate_all_menu_cache() -> None:
    """
    Invalidate every cached public menu (after any admin write to menus/items).
    Uses an epoch bump so in-flight fills cannot resurrect stale entries.
    """
    global _CACHE_EPOCH
    _CACHE_EPOCH += 1
    _CACHE.clear()
    _prune_locks()
    logger.debug("MENU CACHE INVALIDATE ALL (epoch=%s)", _CACHE_EPOCH)


async def get_cached_public_menus(
    db: AsyncSession,
    location: Optional[str] = None,
    handle: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Active menus with resolved item trees.

    - Cached per (location, handle) with TTL
    - Stampede-safe per-key lock
    - Deep-copies returned structures so callers can't mutate the cache
    """
    if not settings.MENU_CACHE_ENABLED:
        return await get_public_menus(db, location=location, handle=handle)

    key = _cache_key(location, handle)
    cached = _cache_get(key, time.time())
    if cached is not None:
        logger.debug("MENU CACHE HIT key=%s", key)
        return cached

    try:
        async with _get_key_lock(key):
            cached = _cache_get(key, time.time())
            if cached is not None:
                logger.debug("MENU CACHE HIT(after lock) key=%s", key)
                return cached

            logger.debug("MENU CACHE MISS -> DB HIT key=%s", key)
            epoch = _CACHE_EPOCH
            menus = await get_public_menus(db, location=location, handle=handle)
            if epoch == _CACHE_EPOCH:
                _cache_set(key, menus)
            return copy.deepcopy(menus)
    finally:
        _prune_locks()

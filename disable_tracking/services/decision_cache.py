"""
Read-through cache of per-site "tracking disabled" decisions.

Entries are created on the first read of a site and removed by every write to
that site's disable state. There is no expiry: a decision stays cached until
it is invalidated or the process restarts, and it can always be rebuilt from
the store.

A loader returns True/False for a decision worth keeping, or None for a site
id the registry does not know. None is answered as "not disabled" and never
stored, so arbitrary ids sent to the public tracking endpoint cannot grow the
cache.
"""
import logging
import threading
from typing import Callable, Optional

import redis

from ..errors import StorageError

logger = logging.getLogger(__name__)

Loader = Callable[[int], Optional[bool]]


class DecisionCache:
    """Interface shared by the cache backends."""

    def get(self, site_id: int) -> bool:
        raise NotImplementedError

    def invalidate(self, site_id: int) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class LocalDecisionCache(DecisionCache):
    """
    Process-wide cache, correct only when a single instance serves tracking
    requests (or when cross-instance staleness is acceptable).

    Each invalidate bumps a per-site generation. A value computed by the loader
    is only stored if the generation did not move while it was loading, so a
    slow read that raced a write cannot pin the old decision in the cache.
    Memory grows with the number of known sites, one entry each.
    """

    def __init__(self, loader: Loader):
        self._loader = loader
        self._entries: dict[int, bool] = {}
        self._generations: dict[int, int] = {}
        self._epoch = 0
        self._lock = threading.Lock()

    def _version(self, site_id: int) -> tuple[int, int]:
        return self._epoch, self._generations.get(site_id, 0)

    def get(self, site_id: int) -> bool:
        with self._lock:
            if site_id in self._entries:
                return self._entries[site_id]
            version = self._version(site_id)

        loaded = self._loader(site_id)
        if loaded is None:
            return False
        value = bool(loaded)

        with self._lock:
            if self._version(site_id) == version:
                self._entries[site_id] = value
        logger.debug(f"Decision cache miss: site {site_id} -> disabled={value}")
        return value

    def invalidate(self, site_id: int) -> None:
        with self._lock:
            self._entries.pop(site_id, None)
            self._generations[site_id] = self._generations.get(site_id, 0) + 1

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._generations.clear()
            self._epoch += 1

    def __contains__(self, site_id: int) -> bool:
        with self._lock:
            return site_id in self._entries


class RedisDecisionCache(DecisionCache):
    """
    Cache shared by every instance through Redis, so an invalidation issued by
    the instance handling the admin action is seen by all of them.
    Values are stored as "1"/"0" without expiry.

    Invalidation bumps a per-site generation key in the same transaction that
    deletes the entry. A miss reads the generation before loading and stores
    its value under WATCH only if the generation is unchanged.
    """

    def __init__(self, client: redis.Redis, loader: Loader, prefix: str = "DisableTracking_"):
        self._client = client
        self._loader = loader
        self._prefix = prefix

    def _key(self, site_id: int) -> str:
        return f"{self._prefix}{site_id}"

    def _generation_key(self, site_id: int) -> str:
        return f"{self._prefix}generation_{site_id}"

    def get(self, site_id: int) -> bool:
        key = self._key(site_id)
        generation_key = self._generation_key(site_id)
        generation = None
        try:
            cached = self._client.get(key)
            if cached is None:
                generation = self._client.get(generation_key)
        except redis.RedisError as e:
            raise StorageError(f"Decision cache unavailable: {e}") from e

        if cached is not None:
            if isinstance(cached, bytes):
                cached = cached.decode()
            return cached == "1"

        loaded = self._loader(site_id)
        if loaded is None:
            return False
        value = bool(loaded)

        try:
            self._store(key, generation_key, generation, value)
        except redis.RedisError as e:
            raise StorageError(f"Decision cache unavailable: {e}") from e
        logger.debug(f"Decision cache miss: site {site_id} -> disabled={value}")
        return value

    def _store(self, key: str, generation_key: str, generation, value: bool) -> None:
        with self._client.pipeline() as pipe:
            try:
                pipe.watch(generation_key)
                if pipe.get(generation_key) != generation:
                    logger.debug(f"Not caching {key}: invalidated while loading")
                    return
                pipe.multi()
                pipe.set(key, "1" if value else "0")
                pipe.execute()
            except redis.WatchError:
                logger.debug(f"Not caching {key}: invalidated while storing")

    def invalidate(self, site_id: int) -> None:
        try:
            with self._client.pipeline() as pipe:
                pipe.incr(self._generation_key(site_id))
                pipe.delete(self._key(site_id))
                pipe.execute()
        except redis.RedisError as e:
            raise StorageError(f"Decision cache unavailable: {e}") from e

    def clear(self) -> None:
        try:
            keys = list(self._client.scan_iter(match=f"{self._prefix}*"))
            if keys:
                self._client.delete(*keys)
        except redis.RedisError as e:
            raise StorageError(f"Decision cache unavailable: {e}") from e


def build_decision_cache(settings, loader: Loader) -> DecisionCache:
    backend = settings.DECISION_CACHE_BACKEND
    if backend == "local":
        return LocalDecisionCache(loader)
    if backend == "redis":
        if not settings.REDIS_URL:
            raise ValueError("DECISION_CACHE_BACKEND=redis requires REDIS_URL")
        client = redis.Redis.from_url(settings.REDIS_URL)
        logger.info(f"Using shared decision cache at {settings.REDIS_URL}")
        return RedisDecisionCache(client, loader, prefix=settings.DECISION_CACHE_PREFIX)
    raise ValueError(f"Unknown DECISION_CACHE_BACKEND: {backend}")

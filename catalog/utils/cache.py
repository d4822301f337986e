import inspect
import json
import logging
import threading
import time
from collections import OrderedDict
from functools import lru_cache, wraps
from typing import Any, Callable, Optional, Tuple

import redis
from pydantic import TypeAdapter

from catalog.config import Settings, get_settings

logger = logging.getLogger(__name__)


class CacheService:
    """
    Read-through result cache shared by every request.

    Entries live under a single namespace and are only ever invalidated
    wholesale. Each cache keeps a generation counter: a reader snapshots
    the generation before loading from storage and its result is stored
    only if no invalidation happened in between, so a slow read can never
    write back a value that a concurrent mutation already made stale.

    Subclasses provide the storage primitives:
    - get / set for single entries
    - generation / clear for invalidation
    - size / ping for diagnostics
    """

    backend_name = "base"

    def __init__(self, namespace: str = "products"):
        self.namespace = namespace
        self.hits = 0
        self.misses = 0
        self._stats_lock = threading.Lock()

    def _make_key(self, key: str) -> str:
        """Create a namespaced cache key."""
        return f"{self.namespace}:{key}"

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any, generation: int) -> bool:
        raise NotImplementedError

    def generation(self) -> Optional[int]:
        raise NotImplementedError

    def clear(self) -> int:
        raise NotImplementedError

    def size(self) -> int:
        raise NotImplementedError

    def ping(self) -> bool:
        raise NotImplementedError

    def get_or_load(self, key: str, loader: Callable[[], Any]) -> Any:
        """
        Return the cached value for key, or compute it with loader and cache it.

        None results are returned but never cached.
        """
        cached_value = self.get(key)
        if cached_value is not None:
            self._record(hit=True)
            logger.debug(f"Cache hit: {self._make_key(key)}")
            return cached_value

        self._record(hit=False)
        logger.debug(f"Cache miss: {self._make_key(key)}")

        generation = self.generation()
        value = loader()
        if value is not None and generation is not None:
            if not self.set(key, value, generation):
                logger.debug(f"Discarded stale result for {self._make_key(key)}")
        return value

    def _record(self, hit: bool) -> None:
        with self._stats_lock:
            if hit:
                self.hits += 1
            else:
                self.misses += 1

    def stats(self) -> dict:
        with self._stats_lock:
            hits, misses = self.hits, self.misses
        return {
            "backend": self.backend_name,
            "namespace": self.namespace,
            "entries": self.size(),
            "hits": hits,
            "misses": misses,
            "generation": self.generation(),
        }


class InMemoryCacheService(CacheService):
    """Process-local cache backed by an ordered dict under a re-entrant lock."""

    backend_name = "memory"

    def __init__(self, namespace: str = "products", max_entries: int = 0, ttl: int = 0):
        super().__init__(namespace)
        self.max_entries = max_entries
        self.ttl = ttl
        self._entries: "OrderedDict[str, Tuple[Any, Optional[float]]]" = OrderedDict()
        self._generation = 0
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[Any]:
        cache_key = self._make_key(key)
        with self._lock:
            entry = self._entries.get(cache_key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and expires_at <= time.monotonic():
                del self._entries[cache_key]
                return None
            return value

    def set(self, key: str, value: Any, generation: int) -> bool:
        cache_key = self._make_key(key)
        expires_at = time.monotonic() + self.ttl if self.ttl else None
        with self._lock:
            if generation != self._generation:
                return False
            self._entries[cache_key] = (value, expires_at)
            self._entries.move_to_end(cache_key)
            if self.max_entries:
                while len(self._entries) > self.max_entries:
                    self._entries.popitem(last=False)
            return True

    def generation(self) -> int:
        with self._lock:
            return self._generation

    def clear(self) -> int:
        with self._lock:
            self._generation += 1
            evicted = len(self._entries)
            self._entries.clear()
        logger.debug(f"Evicted {evicted} entries from '{self.namespace}'")
        return evicted

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def ping(self) -> bool:
        return True


class RedisCacheService(CacheService):
    """
    Redis-backed cache shared between processes.

    Values are stored as JSON. Redis failures degrade to a cache miss
    (reads) or a skipped write; they are logged, not raised.
    """

    backend_name = "redis"

    def __init__(self, client: redis.Redis, namespace: str = "products", ttl: int = 0):
        super().__init__(namespace)
        self.client = client
        self.ttl = ttl
        self._generation_key = f"__generation__:{namespace}"

    def get(self, key: str) -> Optional[Any]:
        cache_key = self._make_key(key)
        try:
            value = self.client.get(cache_key)
            if value:
                return json.loads(value)
            return None
        except (redis.RedisError, json.JSONDecodeError) as e:
            logger.warning(f"Cache read failed for {cache_key}: {e}")
            return None

    def set(self, key: str, value: Any, generation: int) -> bool:
        """
        Store value only if the generation still matches.

        The generation key is WATCHed so an invalidation racing with this
        write aborts the transaction.
        """
        cache_key = self._make_key(key)
        try:
            serialized = json.dumps(value, default=str)
            with self.client.pipeline() as pipe:
                pipe.watch(self._generation_key)
                current = int(pipe.get(self._generation_key) or 0)
                if current != generation:
                    return False
                pipe.multi()
                if self.ttl:
                    pipe.setex(cache_key, self.ttl, serialized)
                else:
                    pipe.set(cache_key, serialized)
                pipe.execute()
            return True
        except redis.WatchError:
            return False
        except (redis.RedisError, TypeError) as e:
            logger.warning(f"Cache write failed for {cache_key}: {e}")
            return False

    def generation(self) -> Optional[int]:
        try:
            return int(self.client.get(self._generation_key) or 0)
        except redis.RedisError as e:
            logger.warning(f"Cache generation lookup failed: {e}")
            return None

    def clear(self) -> int:
        """Bump the generation, then delete every key in the namespace."""
        try:
            self.client.incr(self._generation_key)
            keys = list(self.client.scan_iter(match=f"{self.namespace}:*"))
            if keys:
                return self.client.delete(*keys)
            return 0
        except redis.RedisError as e:
            logger.error(f"Cache invalidation failed for '{self.namespace}': {e}")
            return 0

    def size(self) -> int:
        try:
            return sum(1 for _ in self.client.scan_iter(match=f"{self.namespace}:*"))
        except redis.RedisError:
            return 0

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except redis.RedisError:
            return False


def build_cache_service(settings: Settings) -> CacheService:
    """Create the cache backend selected by CACHE_BACKEND."""
    if settings.CACHE_BACKEND == "redis":
        logger.info(f"Using Redis cache at {settings.REDIS_URL}")
        client = redis.from_url(settings.REDIS_URL, decode_responses=True)
        return RedisCacheService(client, namespace=settings.CACHE_NAMESPACE, ttl=settings.CACHE_TTL)

    logger.info("Using in-memory cache")
    return InMemoryCacheService(
        namespace=settings.CACHE_NAMESPACE,
        max_entries=settings.CACHE_MAX_ENTRIES,
        ttl=settings.CACHE_TTL,
    )


@lru_cache
def get_cache_service() -> CacheService:
    """Dependency returning the single shared cache instance."""
    return build_cache_service(get_settings())


def cached(key: str, result_type: Any):
    """
    Decorator for read-through caching of service methods.

    The decorated method's owner must expose the cache as ``self.cache``.
    The key is a format string filled from the call's bound arguments;
    results are stored in JSON form and validated back into result_type.

    Example:
        @cached("id:{product_id}", Optional[ProductResponse])
        def get_product_by_id(self, product_id: int):
            ...
    """
    adapter = TypeAdapter(result_type)

    def decorator(func):
        signature = inspect.signature(func)

        @wraps(func)
        def wrapper(self, *args, **kwargs):
            bound = signature.bind(self, *args, **kwargs)
            bound.apply_defaults()
            cache_key = key.format(**bound.arguments)

            data = self.cache.get_or_load(
                cache_key,
                lambda: adapter.dump_python(func(self, *args, **kwargs), mode="json"),
            )
            return adapter.validate_python(data)
        return wrapper
    return decorator


def evicts_all(func):
    """Decorator clearing the whole cache after the method returns successfully."""
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        result = func(self, *args, **kwargs)
        self.cache.clear()
        return result
    return wrapper

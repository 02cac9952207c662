"""Cache stores and key construction for rendered sale pages.

Stores answer lookups with a CacheLookup so that "key absent" and
"store unreachable" stay distinguishable, even though the page cache
currently falls back to rendering in both cases.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from threading import Lock
from typing import Dict, Optional, Tuple

import redis

from ..errors import CacheUnavailable
from .circuit_breaker import CircuitBreaker, CircuitBreakerOpenError


logger = logging.getLogger(__name__)

APP_KEY_PREFIX = "salepages"


def cache_key(namespace: str, variant: str = "", app_prefix: str = APP_KEY_PREFIX) -> str:
    """Build the store key for a (namespace, variant) pair.

    The namespace is length-prefixed, so a separator inside either part can
    never make two different pairs encode to the same key.
    """
    return f"{app_prefix}:{len(namespace)}:{namespace}:{variant}"


@dataclass(frozen=True)
class KeyPrefix:
    """A cache namespace and the expiry its entries are written with"""

    namespace: str
    expire_seconds: Optional[int] = None

    def key(self, variant="") -> str:
        return cache_key(self.namespace, str(variant))


GOODS_LIST = KeyPrefix("listing", expire_seconds=60)
GOODS_DETAIL = KeyPrefix("detail", expire_seconds=60)


class CacheState(Enum):
    HIT = "hit"
    MISS = "miss"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class CacheLookup:
    state: CacheState
    value: Optional[str] = None
    reason: str = ""

    @classmethod
    def hit(cls, value: str) -> "CacheLookup":
        return cls(CacheState.HIT, value)

    @classmethod
    def miss(cls) -> "CacheLookup":
        return cls(CacheState.MISS)

    @classmethod
    def unavailable(cls, reason: str = "") -> "CacheLookup":
        return cls(CacheState.UNAVAILABLE, reason=reason)

    @property
    def is_hit(self) -> bool:
        return self.state is CacheState.HIT


class CacheStore:
    """String-keyed store shared by all page cache instances.

    Implementations return a CacheLookup from ``lookup`` and raise
    CacheUnavailable from ``set`` when the write did not go through.
    """

    backend = "abstract"

    def lookup(self, key: str) -> CacheLookup:  # pragma: no cover - interface
        raise NotImplementedError

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def get(self, key: str) -> Optional[str]:
        result = self.lookup(key)
        return result.value if result.is_hit else None


class SimpleCache(CacheStore):
    """In-process TTL cache, used when no shared store is configured"""

    backend = "memory"

    def __init__(self, default_ttl: Optional[int] = 60):
        self.default_ttl = default_ttl  # seconds, None keeps entries until evicted
        self.cache: Dict[str, Tuple[str, Optional[datetime]]] = {}
        self.lock = Lock()

    def lookup(self, key: str) -> CacheLookup:
        with self.lock:
            if key not in self.cache:
                return CacheLookup.miss()
            value, expiry = self.cache[key]
            if expiry is not None and datetime.now() >= expiry:
                del self.cache[key]
                return CacheLookup.miss()
            return CacheLookup.hit(value)

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        with self.lock:
            ttl = ttl or self.default_ttl
            expiry = datetime.now() + timedelta(seconds=ttl) if ttl else None
            self.cache[key] = (value, expiry)

    def delete(self, key: str):
        with self.lock:
            self.cache.pop(key, None)

    def clear(self):
        with self.lock:
            self.cache.clear()


class RedisCache(CacheStore):
    """Redis-backed store shared across service instances.

    Redis errors never escape ``lookup``; after repeated failures the
    circuit opens and calls are skipped until the timeout elapses.
    """

    backend = "redis"

    def __init__(
        self,
        redis_url: Optional[str] = None,
        client: Optional[redis.Redis] = None,
        breaker: Optional[CircuitBreaker] = None,
        default_ttl: Optional[int] = None,
        socket_timeout: float = 0.5,
    ):
        if client is None:
            if not redis_url:
                raise ValueError("redis_url or client is required")
            client = redis.Redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=socket_timeout,
                socket_timeout=socket_timeout,
                health_check_interval=30,
            )
        self.client = client
        self.default_ttl = default_ttl
        self.breaker = breaker or CircuitBreaker(
            name="redis",
            failure_threshold=5,
            timeout_seconds=30,
            expected_exceptions=(redis.RedisError,),
        )

    def lookup(self, key: str) -> CacheLookup:
        try:
            value = self.breaker.call(self.client.get, key)
        except CircuitBreakerOpenError as e:
            return CacheLookup.unavailable(str(e))
        except redis.RedisError as e:
            return CacheLookup.unavailable(str(e))

        if value is None:
            return CacheLookup.miss()
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return CacheLookup.hit(value)

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        ttl = ttl or self.default_ttl
        try:
            if ttl:
                self.breaker.call(self.client.setex, key, ttl, value)
            else:
                self.breaker.call(self.client.set, key, value)
        except (CircuitBreakerOpenError, redis.RedisError) as e:
            raise CacheUnavailable(key, str(e)) from e

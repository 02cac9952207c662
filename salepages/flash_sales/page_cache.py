"""Cache-aside page serving for flash sale listing and detail pages.

A lookup that hits returns the stored markup untouched. On a miss the
goods data is fetched, the sale window evaluated, the page rendered and,
when the output is non-empty, written back under the same key. Cache
store failures are logged and treated as misses or skipped writes; all
other failures reach the caller.
"""
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from threading import Lock
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..errors import CacheUnavailable, DeadlineExceeded, RecordNotFound
from ..observability import PAGE_CACHE_ERRORS, PAGE_CACHE_LOOKUPS, PAGE_CACHE_WRITES
from .cache import GOODS_DETAIL, GOODS_LIST, CacheState, CacheStore, KeyPrefix
from .sale_window import SaleStatus, evaluate_record


logger = logging.getLogger(__name__)

LISTING_TEMPLATE = "listing"
DETAIL_TEMPLATE = "detail"


@dataclass
class SaleDetail:
    """Structured detail payload for clients that render on their own"""

    record: Dict[str, Any]
    user: Optional[Dict[str, Any]]
    status: SaleStatus
    remaining_seconds: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "record": self.record,
            "user": self.user,
            "status": self.status.code,
            "remainingSeconds": self.remaining_seconds,
        }


class PageCacheController:
    """Serves rendered sale pages from the cache store, rendering on miss.

    ``goods`` must provide ``fetch_listing()`` and ``fetch_by_id(id)``;
    ``renderer`` must provide ``render(template_id, context)``. With
    ``single_flight`` set, concurrent misses for one key inside this
    process wait for the first render instead of repeating it.
    """

    def __init__(
        self,
        cache: CacheStore,
        goods,
        renderer,
        clock: Callable[[], datetime] = datetime.now,
        single_flight: bool = False,
        ttl_seconds: Optional[int] = None,
    ):
        self.cache = cache
        self.goods = goods
        self.renderer = renderer
        self.clock = clock
        self.single_flight = single_flight
        self.ttl_seconds = ttl_seconds
        self._flights: Dict[str, list] = {}
        self._flights_lock = Lock()

    def get_listing(self, context: Optional[Mapping[str, Any]] = None, deadline: Optional[float] = None) -> str:
        def build_context() -> Dict[str, Any]:
            goods_list: List[Dict[str, Any]] = self.goods.fetch_listing()
            merged = dict(context or {})
            merged["goods_list"] = goods_list
            return merged

        return self._get_or_render(GOODS_LIST, "", LISTING_TEMPLATE, build_context, deadline)

    def get_detail(self, goods_id, context: Optional[Mapping[str, Any]] = None, deadline: Optional[float] = None) -> str:
        def build_context() -> Dict[str, Any]:
            record = self._fetch_record(goods_id)
            window = evaluate_record(record, self.clock())
            merged = dict(context or {})
            merged.update(
                goods=record,
                sale_status=window.status,
                sale_status_code=window.status.code,
                remaining_seconds=window.remaining_seconds,
            )
            return merged

        return self._get_or_render(GOODS_DETAIL, goods_id, DETAIL_TEMPLATE, build_context, deadline)

    def get_detail_structured(self, goods_id, user: Optional[Mapping[str, Any]] = None) -> SaleDetail:
        """Detail data without markup; never reads or writes the page cache"""
        record = self._fetch_record(goods_id)
        window = evaluate_record(record, self.clock())
        return SaleDetail(
            record=record,
            user=dict(user) if user is not None else None,
            status=window.status,
            remaining_seconds=window.remaining_seconds,
        )

    # --- helpers ---
    def _get_or_render(
        self,
        prefix: KeyPrefix,
        variant,
        template_id: str,
        build_context: Callable[[], Dict[str, Any]],
        deadline: Optional[float],
    ) -> str:
        key = prefix.key(variant)
        html = self._lookup(prefix, key)
        if html:
            return html

        with self._flight(key):
            if self.single_flight:
                # another thread may have filled the key while we waited
                html = self._lookup(prefix, key)
                if html:
                    return html

            _check_deadline(deadline, "fetch")
            context = build_context()
            _check_deadline(deadline, "render")
            html = self.renderer.render(template_id, context)
            if not html:
                logger.info("Rendered empty page, not caching", extra={"cache_key": key})
                return html
            _check_deadline(deadline, "cache write")
            self._store(prefix, key, html)
            return html

    def _fetch_record(self, goods_id) -> Dict[str, Any]:
        record = self.goods.fetch_by_id(goods_id)
        if record is None:
            raise RecordNotFound(goods_id)
        return record

    def _lookup(self, prefix: KeyPrefix, key: str) -> Optional[str]:
        try:
            result = self.cache.lookup(key)
        except CacheUnavailable as e:
            self._cache_failed("read", key, e.reason)
            PAGE_CACHE_LOOKUPS.labels(prefix.namespace, CacheState.UNAVAILABLE.value).inc()
            return None

        if result.state is CacheState.UNAVAILABLE:
            self._cache_failed("read", key, result.reason)
        elif result.is_hit and not result.value:
            # empty markup is never a valid page
            result = result.miss()
        PAGE_CACHE_LOOKUPS.labels(prefix.namespace, result.state.value).inc()
        logger.debug("Page cache %s", result.state.value, extra={"cache_key": key})
        return result.value

    def _store(self, prefix: KeyPrefix, key: str, html: str):
        ttl = self.ttl_seconds or prefix.expire_seconds
        try:
            self.cache.set(key, html, ttl)
        except CacheUnavailable as e:
            self._cache_failed("write", key, e.reason)
            PAGE_CACHE_WRITES.labels(prefix.namespace, "failed").inc()
            return
        PAGE_CACHE_WRITES.labels(prefix.namespace, "ok").inc()

    def _cache_failed(self, operation: str, key: str, reason: str):
        PAGE_CACHE_ERRORS.labels(operation).inc()
        logger.warning(
            "Cache store %s failed, continuing without cache",
            operation,
            extra={"cache_key": key, "reason": reason},
        )

    @contextmanager
    def _flight(self, key: str):
        if not self.single_flight:
            yield
            return
        with self._flights_lock:
            entry = self._flights.setdefault(key, [Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._flights_lock:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._flights[key]


def _check_deadline(deadline: Optional[float], stage: str):
    if deadline is not None and time.monotonic() >= deadline:
        raise DeadlineExceeded(stage)

"""
Cache-aside reader for content.

Reads try the cache first, fall back to the store on a miss, and write the
shaped result back with the family TTL. Cache failures of any kind degrade to
a store read. Store failures propagate.
"""

import asyncio
import json
from contextlib import nullcontext
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple, TYPE_CHECKING
from zoneinfo import ZoneInfo

from shared.logging import get_logger
from shared.errors import CacheSerializationError, StoreError, ValidationError
from .caching.base import CacheClient
from .caching.keys import (
    CacheFamily,
    ContentQuery,
    build_by_id_query,
    build_list_query,
    derive_cache_key,
    family_of,
)
from .caching.policy import CacheTTLPolicy
from .models import ListQuery, ByIdQuery, TodayQuery
from .persistence.base import ContentStore

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


DEFAULT_CONTENT_TIMEZONE = "Asia/Kolkata"


def today_window(now: datetime, tz: ZoneInfo) -> Tuple[datetime, datetime, str]:
    """Return the UTC bounds and ISO date of the calendar day containing ``now`` in ``tz``.

    The window runs from local 00:00:00.000 to 23:59:59.999. Naive ``now``
    values are taken as UTC.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    local_now = now.astimezone(tz)
    start = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    end = local_now.replace(hour=23, minute=59, second=59, microsecond=999000)

    return start.astimezone(timezone.utc), end.astimezone(timezone.utc), local_now.date().isoformat()


class ContentReader:
    """Read-through accessor for paginated, by-id and today content queries."""

    def __init__(
        self,
        cache: CacheClient,
        store: ContentStore,
        ttl_policy: Optional[CacheTTLPolicy] = None,
        *,
        metrics: Optional["MetricsCollector"] = None,
        timezone_name: str = DEFAULT_CONTENT_TIMEZONE,
    ):
        self.cache = cache
        self.store = store
        self.ttl_policy = ttl_policy or CacheTTLPolicy()
        self.metrics = metrics
        self.tz = ZoneInfo(timezone_name)
        self.logger = get_logger("content.reader")

    async def list_content(self, page: Any = 1, limit: Any = 20) -> Dict[str, Any]:
        """Paginated list, newest first: ``{data, meta: {page, limit, total}}``."""
        return await self.read(build_list_query(page, limit))

    async def get_content(self, content_id: Any) -> Optional[Dict[str, Any]]:
        """Full item by id, or None when it does not exist."""
        return await self.read(build_by_id_query(content_id))

    async def get_today_content(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Items created today: ``{data, meta: {date, total}}``."""
        return await self.read(TodayQuery(), now=now)

    async def read(self, query: ContentQuery, *, now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
        cache_key = derive_cache_key(query)
        family = family_of(query)

        cached = await self._cache_get(cache_key, family)
        if cached is not None:
            return cached

        try:
            if isinstance(query, ListQuery):
                result = await self._load_list(query)
            elif isinstance(query, ByIdQuery):
                result = await self._load_document(query.id)
            elif isinstance(query, TodayQuery):
                result = await self._load_today(now)
            else:  # pragma: no cover - family_of already rejects unknown shapes
                raise ValidationError("Unsupported content query")
        except StoreError as e:
            self.logger.error("Store read failed", cache_key=cache_key, code=e.code, error=e.message)
            if self.metrics:
                self.metrics.record_error(e.code)
            raise

        if result is None:
            # Absence is never cached so a later create is visible at once
            self.logger.info("Content not found", cache_key=cache_key)
            return None

        await self._cache_set(cache_key, result, self.ttl_policy.ttl_for(family))
        return result

    async def _load_list(self, query: ListQuery) -> Dict[str, Any]:
        with self._timed("list"):
            items, total = await asyncio.gather(
                self.store.find_page(query.offset, query.limit),
                self.store.count(),
            )

        return {
            "data": [item.to_summary() for item in items],
            "meta": {"page": query.page, "limit": query.limit, "total": total},
        }

    async def _load_document(self, content_id: str) -> Optional[Dict[str, Any]]:
        with self._timed("by_id"):
            item = await self.store.find_by_id(content_id)

        return item.to_document() if item else None

    async def _load_today(self, now: Optional[datetime]) -> Dict[str, Any]:
        start, end, date = today_window(now or datetime.now(timezone.utc), self.tz)

        with self._timed("today"):
            items = await self.store.find_created_between(start, end)

        return {
            "data": [item.to_summary() for item in items],
            "meta": {"date": date, "total": len(items)},
        }

    async def _cache_get(self, cache_key: str, family: CacheFamily) -> Optional[Dict[str, Any]]:
        try:
            payload = await self.cache.get(cache_key)
        except Exception as e:
            self.logger.warning("Cache read failed; serving from store", cache_key=cache_key, error=str(e))
            self._record("cache_errors_total", operation="get")
            return None

        if payload is None:
            self.logger.info("Cache miss", cache_key=cache_key)
            self._record("cache_misses_total", cache_family=family.value)
            return None

        try:
            value = self._deserialize(payload)
        except CacheSerializationError as e:
            self.logger.warning("Discarding corrupt cache entry", cache_key=cache_key, error=e.message)
            self._record("cache_errors_total", operation="deserialize")
            return None

        self.logger.info("Cache hit", cache_key=cache_key)
        self._record("cache_hits_total", cache_family=family.value)
        return value

    async def _cache_set(self, cache_key: str, value: Dict[str, Any], ttl: int) -> None:
        try:
            await self.cache.set(cache_key, json.dumps(value), ttl)
            self.logger.debug("Cached content", cache_key=cache_key, ttl=ttl)
        except Exception as e:
            self.logger.warning("Cache write failed", cache_key=cache_key, error=str(e))
            self._record("cache_errors_total", operation="set")

    @staticmethod
    def _deserialize(payload: Any) -> Dict[str, Any]:
        try:
            value = json.loads(payload)
        except (TypeError, ValueError) as e:
            raise CacheSerializationError(str(e))
        if not isinstance(value, dict):
            raise CacheSerializationError(f"Expected object payload, got {type(value).__name__}")
        return value

    def _timed(self, query: str):
        if not self.metrics:
            return nullcontext()
        return self.metrics.time_operation("store_query_duration_seconds", query=query)

    def _record(self, metric_name: str, **labels) -> None:
        if not self.metrics:
            return
        try:
            self.metrics.increment_counter(metric_name, **labels)
        except Exception as exc:  # pragma: no cover - metrics failures should never break reads
            self.logger.debug("Failed to record cache metrics", error=str(exc))

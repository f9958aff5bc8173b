"""
Cache invalidation triggered by the content write path.

Invalidation runs after the store write has committed. A failure here is
logged and swallowed: the write already succeeded and the stale entry expires
with its TTL.
"""

from typing import List, Optional, TYPE_CHECKING

from shared.logging import get_logger
from .base import CacheClient
from .keys import LIST_KEY_PATTERN, DOC_KEY_PATTERN, TODAY_KEY, doc_key

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class CacheInvalidator:
    """Deletes cached content after writes."""

    def __init__(self, cache: CacheClient, *, metrics: Optional["MetricsCollector"] = None):
        self.cache = cache
        self.metrics = metrics
        self.logger = get_logger("content.cache.invalidation")

    async def invalidate_all(self) -> int:
        """Drop every list, document and today entry. Returns keys deleted."""
        try:
            list_keys = await self.cache.keys(LIST_KEY_PATTERN)
            doc_keys = await self.cache.keys(DOC_KEY_PATTERN)
            today_keys = await self.cache.keys(TODAY_KEY)

            all_keys = list_keys + doc_keys + today_keys
            deleted = await self._delete(all_keys)

            if all_keys:
                self.logger.info(
                    "Cache invalidated",
                    deleted=deleted,
                    list_keys=len(list_keys),
                    doc_keys=len(doc_keys),
                    today_keys=len(today_keys),
                )
            else:
                self.logger.info("Cache invalidation: no keys to delete")

            self._record("all")
            return deleted

        except Exception as e:
            self.logger.error("Failed to invalidate cache", error=str(e))
            self._record_failure()
            return 0

    async def invalidate_one(self, content_id: str) -> int:
        """Drop the cached document for a single item."""
        key = doc_key(content_id)
        try:
            deleted = await self._delete([key])
            self.logger.info("Document cache invalidated", cache_key=key, deleted=deleted)
            self._record("one")
            return deleted

        except Exception as e:
            self.logger.error("Failed to invalidate document cache", cache_key=key, error=str(e))
            self._record_failure()
            return 0

    async def invalidate_lists(self) -> int:
        """Drop cached list pages only."""
        try:
            list_keys = await self.cache.keys(LIST_KEY_PATTERN)
            deleted = await self._delete(list_keys)
            if list_keys:
                self.logger.info("List cache invalidated", deleted=deleted)
            self._record("lists")
            return deleted

        except Exception as e:
            self.logger.error("Failed to invalidate list cache", error=str(e))
            self._record_failure()
            return 0

    async def _delete(self, keys: List[str]) -> int:
        if not keys:
            return 0
        return await self.cache.delete(keys)

    def _record(self, scope: str) -> None:
        if not self.metrics:
            return
        try:
            self.metrics.increment_counter("cache_invalidations_total", scope=scope)
        except Exception as exc:  # pragma: no cover - metrics failures never block writes
            self.logger.debug("Failed to record invalidation metrics", error=str(exc))

    def _record_failure(self) -> None:
        if not self.metrics:
            return
        try:
            self.metrics.increment_counter("cache_errors_total", operation="invalidate")
        except Exception as exc:  # pragma: no cover
            self.logger.debug("Failed to record invalidation metrics", error=str(exc))

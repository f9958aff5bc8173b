"""
Shared fixtures and in-memory doubles for content service tests.
"""

import fnmatch
from collections import Counter
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from shared.errors import CacheUnavailableError
from shared.metrics import MetricsCollector
from service_content.app.caching.invalidation import CacheInvalidator
from service_content.app.caching.policy import CacheTTLPolicy
from service_content.app.models import ContentItem, PdfFile, QuizItem
from service_content.app.reader import ContentReader


BASE_TIME = datetime(2024, 3, 10, 6, 0, tzinfo=timezone.utc)


class InMemoryCache:
    """Dict-backed cache client that counts calls."""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.calls: Counter = Counter()
        self.started = False

    async def start(self):
        self.started = True

    async def stop(self):
        self.started = False

    async def ping(self) -> bool:
        return True

    async def get(self, key: str) -> Optional[str]:
        self.calls["get"] += 1
        return self.data.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self.calls["set"] += 1
        self.data[key] = value
        self.ttls[key] = ttl_seconds

    async def delete(self, keys: List[str]) -> int:
        self.calls["delete"] += 1
        deleted = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                self.ttls.pop(key, None)
                deleted += 1
        return deleted

    async def keys(self, pattern: str) -> List[str]:
        self.calls["keys"] += 1
        return [key for key in self.data if fnmatch.fnmatchcase(key, pattern)]


class FailingCache:
    """Cache client whose every operation fails like an unreachable Redis."""

    def __init__(self):
        self.calls: Counter = Counter()

    async def start(self):
        return None

    async def stop(self):
        return None

    async def ping(self) -> bool:
        return False

    async def get(self, key: str) -> Optional[str]:
        self.calls["get"] += 1
        raise CacheUnavailableError("Connection refused")

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self.calls["set"] += 1
        raise CacheUnavailableError("Connection refused")

    async def delete(self, keys: List[str]) -> int:
        self.calls["delete"] += 1
        raise CacheUnavailableError("Connection refused")

    async def keys(self, pattern: str) -> List[str]:
        self.calls["keys"] += 1
        raise CacheUnavailableError("Connection refused")


class InMemoryStore:
    """Dict-backed content store that counts calls.

    Set ``fail_with`` to make every read raise that exception.
    """

    def __init__(self, items: Optional[List[ContentItem]] = None):
        self.items: Dict[str, ContentItem] = {item.id: item for item in items or []}
        self.calls: Counter = Counter()
        self.fail_with: Optional[Exception] = None
        self.healthy = True

    async def start(self):
        return None

    async def stop(self):
        return None

    async def health_check(self) -> bool:
        return self.healthy

    def _ordered(self) -> List[ContentItem]:
        return sorted(self.items.values(), key=lambda item: (item.created_at, item.id), reverse=True)

    def _check(self, operation: str):
        self.calls[operation] += 1
        if self.fail_with is not None:
            raise self.fail_with

    @property
    def read_calls(self) -> int:
        return sum(self.calls[name] for name in ("find_by_id", "find_page", "count", "find_created_between"))

    async def find_by_id(self, content_id: str) -> Optional[ContentItem]:
        self._check("find_by_id")
        return self.items.get(content_id)

    async def find_page(self, offset: int, limit: int) -> List[ContentItem]:
        self._check("find_page")
        return self._ordered()[offset:offset + limit]

    async def count(self) -> int:
        self._check("count")
        return len(self.items)

    async def find_created_between(self, start: datetime, end: datetime) -> List[ContentItem]:
        self._check("find_created_between")
        return [item for item in self._ordered() if start <= item.created_at <= end]

    async def insert(self, item: ContentItem) -> ContentItem:
        self.calls["insert"] += 1
        self.items[item.id] = item
        return item

    async def update(self, content_id: str, changes: Dict[str, Any], updated_at: datetime) -> Optional[ContentItem]:
        self.calls["update"] += 1
        if content_id not in self.items:
            return None
        self.items[content_id] = replace(self.items[content_id], updated_at=updated_at, **changes)
        return self.items[content_id]

    async def delete(self, content_id: str) -> bool:
        self.calls["delete"] += 1
        return self.items.pop(content_id, None) is not None

    async def set_image(self, content_id: str, image_url: str, updated_at: datetime) -> Optional[ContentItem]:
        self.calls["set_image"] += 1
        if content_id not in self.items:
            return None
        self.items[content_id] = replace(self.items[content_id], image_url=image_url, updated_at=updated_at)
        return self.items[content_id]

    async def append_pdf(self, content_id: str, pdf: PdfFile, updated_at: datetime) -> Optional[ContentItem]:
        self.calls["append_pdf"] += 1
        if content_id not in self.items:
            return None
        current = self.items[content_id]
        self.items[content_id] = replace(current, pdfs=current.pdfs + [pdf], updated_at=updated_at)
        return self.items[content_id]


def build_item(index: int, created_at: Optional[datetime] = None, **overrides) -> ContentItem:
    """Content item with a deterministic 24-hex id."""
    created = created_at or BASE_TIME + timedelta(hours=index)
    fields = dict(
        id=f"{index:024x}",
        title=f"Daily brief {index}",
        content=f"Full body of daily brief number {index}.",
        summary=f"Summary {index}",
        facts="Some facts",
        quiz={"q1": QuizItem(que="Capital of France?", ans="Paris", options=["Paris", "Rome"])},
        key_notes={"note": "remember this"},
        created_at=created,
        updated_at=created,
    )
    fields.update(overrides)
    return ContentItem(**fields)


@pytest.fixture
def make_item():
    """Factory for content items."""
    return build_item


@pytest.fixture
def items():
    """Three items created at T1 < T2 < T3."""
    return [build_item(1), build_item(2), build_item(3)]


@pytest.fixture
def store(items):
    return InMemoryStore(items)


@pytest.fixture
def cache():
    return InMemoryCache()


@pytest.fixture
def failing_cache():
    return FailingCache()


@pytest.fixture
def ttl_policy():
    return CacheTTLPolicy(list_ttl=300, doc_ttl=86400, today_ttl=120)


@pytest.fixture
def metrics():
    return MetricsCollector("content")


@pytest.fixture
def reader(cache, store, ttl_policy, metrics):
    return ContentReader(cache, store, ttl_policy, metrics=metrics)


@pytest.fixture
def invalidator(cache, metrics):
    return CacheInvalidator(cache, metrics=metrics)

"""
Cache client contract consumed by the reader and the invalidator.
"""

from typing import List, Optional, Protocol


class CacheClient(Protocol):
    """Minimal string key/value cache with TTLs and pattern lookup."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        ...

    async def delete(self, keys: List[str]) -> int:
        ...

    async def keys(self, pattern: str) -> List[str]:
        ...

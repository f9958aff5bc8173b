"""
Redis binding of the content cache client.
"""

import asyncio
from typing import List, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from shared.logging import get_logger
from shared.errors import CacheUnavailableError


class RedisContentCache:
    """Redis cache for content payloads.

    Keys are stored under ``<namespace>:`` and handed back without it, so
    callers only ever see the bare key families (``list:...``, ``doc:...``,
    ``today``). Every Redis failure surfaces as CacheUnavailableError.
    """

    def __init__(
        self,
        redis_url: str,
        namespace: str = "content",
        *,
        socket_timeout: float = 5.0,
        client: Optional[redis.Redis] = None,
    ):
        self.redis_url = redis_url
        self.namespace = namespace
        self.socket_timeout = socket_timeout
        self.logger = get_logger("content.cache.redis")
        self.redis: Optional[redis.Redis] = client

    async def start(self):
        """Create the client and probe the connection.

        An unreachable Redis is logged, not raised: reads fall back to the
        store until the connection recovers.
        """
        if self.redis is None:
            self.redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=self.socket_timeout,
                socket_timeout=self.socket_timeout,
                retry_on_timeout=True,
                health_check_interval=30
            )

        if await self.ping():
            self.logger.info("Redis cache started", namespace=self.namespace)
        else:
            self.logger.warning("Redis unreachable at startup; reads will be served from store")

    async def stop(self):
        """Close the client."""
        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None
            self.logger.info("Redis cache stopped")

    async def ping(self) -> bool:
        try:
            client = self._client()
            return bool(await client.ping())
        except (CacheUnavailableError, RedisError, OSError, asyncio.TimeoutError) as e:
            self.logger.debug("Redis ping failed", error=str(e))
            return False

    def _client(self) -> redis.Redis:
        if self.redis is None:
            raise CacheUnavailableError("Redis client not started")
        return self.redis

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}" if self.namespace else key

    def _strip(self, key: str) -> str:
        prefix = f"{self.namespace}:" if self.namespace else ""
        return key[len(prefix):] if prefix and key.startswith(prefix) else key

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self._client().get(self._key(key))
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            raise CacheUnavailableError(str(e), details={"operation": "get", "key": key})
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._client().set(self._key(key), value, ex=ttl_seconds)
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            raise CacheUnavailableError(str(e), details={"operation": "set", "key": key})

    async def delete(self, keys: List[str]) -> int:
        if not keys:
            return 0
        try:
            return int(await self._client().delete(*[self._key(k) for k in keys]))
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            raise CacheUnavailableError(str(e), details={"operation": "delete", "keys": len(keys)})

    async def keys(self, pattern: str) -> List[str]:
        try:
            found = await self._client().keys(self._key(pattern))
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            raise CacheUnavailableError(str(e), details={"operation": "keys", "pattern": pattern})
        return [
            self._strip(k.decode("utf-8") if isinstance(k, bytes) else k)
            for k in found
        ]

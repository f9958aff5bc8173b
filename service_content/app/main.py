"""
Content service wiring.

Builds the cache, store, reader, invalidator and admin write path from
configuration and manages their lifecycle.
"""

from typing import Any, Dict, Optional

from shared.config import ServiceConfig, get_config
from shared.logging import configure_logging, get_logger
from shared.metrics import MetricsCollector, get_metrics_collector
from .admin import ContentAdminService
from .caching.invalidation import CacheInvalidator
from .caching.policy import CacheTTLPolicy
from .caching.redis_cache import RedisContentCache
from .persistence.postgres import PostgresContentStore
from .reader import ContentReader


class ContentService:
    """Content service with cache-aside reads and invalidating writes."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        cache: Optional[Any] = None,
        store: Optional[Any] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.config = config or get_config("content")
        configure_logging(self.config.service_name, self.config.log_level)
        self.logger = get_logger("content.service")
        self.metrics = metrics or get_metrics_collector("content")

        self.cache = cache or RedisContentCache(
            self.config.redis_url,
            namespace=self.config.cache_namespace,
            socket_timeout=self.config.redis_socket_timeout,
        )
        self.store = store or PostgresContentStore(
            self.config.postgres_dsn,
            command_timeout=self.config.postgres_command_timeout,
        )

        self.ttl_policy = CacheTTLPolicy.from_config(self.config)
        self.reader = ContentReader(
            self.cache,
            self.store,
            self.ttl_policy,
            metrics=self.metrics,
            timezone_name=self.config.content_timezone,
        )
        self.invalidator = CacheInvalidator(self.cache, metrics=self.metrics)
        self.admin = ContentAdminService(self.store, self.invalidator)

    async def start(self):
        """Connect the store, then the cache."""
        await self.store.start()
        await self.cache.start()

        if self.config.enable_metrics_server:
            self.metrics.start_metrics_server(self.config.metrics_port)

        self.logger.info(
            "Content service started",
            env=self.config.env,
            list_ttl=self.ttl_policy.list_ttl,
            doc_ttl=self.ttl_policy.doc_ttl,
            today_ttl=self.ttl_policy.today_ttl,
        )

    async def stop(self):
        try:
            await self.cache.stop()
        finally:
            await self.store.stop()
        self.logger.info("Content service stopped")

    async def health_check(self) -> Dict[str, Any]:
        """Report dependency health.

        The service is ``degraded`` without Redis (reads still work) and in
        ``error`` without the store.
        """
        redis_ok = await self.cache.ping()
        postgres_ok = await self.store.health_check()

        if not postgres_ok:
            status = "error"
        elif not redis_ok:
            status = "degraded"
        else:
            status = "ok"

        return {
            "service": self.config.service_name,
            "status": status,
            "dependencies": {
                "redis": "ok" if redis_ok else "unavailable",
                "postgres": "ok" if postgres_ok else "unavailable",
            },
        }


def create_service(config: Optional[ServiceConfig] = None) -> ContentService:
    """Create a content service from configuration."""
    return ContentService(config)

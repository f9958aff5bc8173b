"""
Shared configuration management for the content service.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CONTENT_",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # External services
    redis_url: str = Field(default="redis://localhost:6379/0")
    postgres_dsn: str = Field(default="postgres://localhost:5432/content")
    redis_socket_timeout: float = Field(default=5.0, gt=0)
    postgres_command_timeout: float = Field(default=30.0, gt=0)

    # Cache policy
    cache_namespace: str = Field(default="content")
    list_cache_ttl: int = Field(default=300, gt=0)
    doc_cache_ttl: int = Field(default=86400, gt=0)
    today_cache_ttl: int = Field(default=300, gt=0)

    # "Today" is computed as a calendar day in this zone
    content_timezone: str = Field(default="Asia/Kolkata")

    # Metrics
    enable_metrics_server: bool = Field(default=False)
    metrics_port: int = Field(default=9090)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str = "content"

    def __init__(self, service_name: str = "content", **kwargs):
        super().__init__(service_name=service_name, **kwargs)


def get_config(service_name: str = "content", **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, **overrides)

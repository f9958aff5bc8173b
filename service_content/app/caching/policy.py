"""
TTL policy per cache key family.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from shared.errors import ValidationError
from .keys import CacheFamily

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.config import BaseConfig


DEFAULT_LIST_TTL = 300
DEFAULT_DOC_TTL = 86400
DEFAULT_TODAY_TTL = 300


@dataclass(frozen=True)
class CacheTTLPolicy:
    """Seconds each cache family may live before it must be recomputed."""
    list_ttl: int = DEFAULT_LIST_TTL
    doc_ttl: int = DEFAULT_DOC_TTL
    today_ttl: int = DEFAULT_TODAY_TTL

    def __post_init__(self):
        for name in ("list_ttl", "doc_ttl", "today_ttl"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValidationError(f"{name} must be a positive integer", details={name: value})

    @classmethod
    def from_config(cls, config: "BaseConfig") -> "CacheTTLPolicy":
        return cls(
            list_ttl=config.list_cache_ttl,
            doc_ttl=config.doc_cache_ttl,
            today_ttl=config.today_cache_ttl,
        )

    def ttl_for(self, family: CacheFamily) -> int:
        if family is CacheFamily.LIST:
            return self.list_ttl
        if family is CacheFamily.DOC:
            return self.doc_ttl
        return self.today_ttl

"""
Cache key derivation for content queries.

Every key the reader writes and every pattern the invalidator deletes is built
here, so the two sides always agree on the key space.
"""

from enum import Enum
from typing import Any, Union

from pydantic import ValidationError as PydanticValidationError

from shared.errors import ValidationError
from ..models import ListQuery, ByIdQuery, TodayQuery

ContentQuery = Union[ListQuery, ByIdQuery, TodayQuery]


class CacheFamily(str, Enum):
    """Cache key families."""
    LIST = "list"
    DOC = "doc"
    TODAY = "today"


LIST_KEY_PATTERN = "list:*"
DOC_KEY_PATTERN = "doc:*"
TODAY_KEY = "today"


def list_key(page: int, limit: int) -> str:
    return f"list:page:{page}:limit:{limit}"


def doc_key(content_id: str) -> str:
    return f"doc:{content_id}"


def build_list_query(page: Any = 1, limit: Any = 20) -> ListQuery:
    """Normalize raw page/limit values into a ListQuery.

    Accepts ints or numeric strings. Raises ValidationError for anything
    outside page >= 1, 1 <= limit <= 100.
    """
    try:
        return ListQuery(page=page, limit=limit)
    except PydanticValidationError as exc:
        raise ValidationError(
            "Invalid pagination parameters",
            details={"page": page, "limit": limit, "errors": exc.errors(include_url=False, include_context=False)}
        )


def build_by_id_query(content_id: Any) -> ByIdQuery:
    """Wrap a content identifier, rejecting empty or non-string ids."""
    if not isinstance(content_id, str):
        raise ValidationError("Content id must be a string", details={"id": repr(content_id)})
    try:
        return ByIdQuery(id=content_id)
    except PydanticValidationError as exc:
        raise ValidationError(
            "Invalid content id",
            details={"id": content_id, "errors": exc.errors(include_url=False, include_context=False)}
        )


def family_of(query: ContentQuery) -> CacheFamily:
    if isinstance(query, ListQuery):
        return CacheFamily.LIST
    if isinstance(query, ByIdQuery):
        return CacheFamily.DOC
    if isinstance(query, TodayQuery):
        return CacheFamily.TODAY
    raise ValidationError("Unsupported content query", details={"type": type(query).__name__})


def derive_cache_key(query: ContentQuery) -> str:
    """Map a normalized query to its cache key."""
    if isinstance(query, ListQuery):
        return list_key(query.page, query.limit)
    if isinstance(query, ByIdQuery):
        return doc_key(query.id)
    if isinstance(query, TodayQuery):
        return TODAY_KEY
    raise ValidationError("Unsupported content query", details={"type": type(query).__name__})

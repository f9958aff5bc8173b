"""
Backing store contract for content.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from ..models import ContentItem, PdfFile


class ContentStore(Protocol):
    """Source of truth for content items.

    Read methods order by ``created_at`` descending. Implementations raise
    StoreError subclasses on failure.
    """

    async def find_by_id(self, content_id: str) -> Optional[ContentItem]:
        ...

    async def find_page(self, offset: int, limit: int) -> List[ContentItem]:
        ...

    async def count(self) -> int:
        ...

    async def find_created_between(self, start: datetime, end: datetime) -> List[ContentItem]:
        ...

    async def insert(self, item: ContentItem) -> ContentItem:
        ...

    async def update(self, content_id: str, changes: Dict[str, Any], updated_at: datetime) -> Optional[ContentItem]:
        ...

    async def delete(self, content_id: str) -> bool:
        ...

    async def set_image(self, content_id: str, image_url: str, updated_at: datetime) -> Optional[ContentItem]:
        ...

    async def append_pdf(self, content_id: str, pdf: PdfFile, updated_at: datetime) -> Optional[ContentItem]:
        ...

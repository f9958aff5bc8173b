"""
Admin write path for content.

Every successful write is followed by cache invalidation. Writes that can
move items between list pages or change counts clear everything; writes that
only touch one item's body clear that item's document entry.
"""

from datetime import datetime
from typing import Any, Callable, Dict, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError as PydanticValidationError

from shared.logging import get_logger
from shared.errors import NotFoundError, ValidationError
from .caching.invalidation import CacheInvalidator
from .models import (
    ContentCreate,
    ContentItem,
    ContentUpdate,
    ImageAttachment,
    PdfFilePayload,
    new_content_id,
    utcnow,
)
from .persistence.base import ContentStore

PayloadT = TypeVar("PayloadT", bound=BaseModel)


def _parse(model: Type[PayloadT], payload: Union[PayloadT, Dict[str, Any]]) -> PayloadT:
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(
            f"Invalid {model.__name__} payload",
            details={"errors": exc.errors(include_url=False, include_context=False)}
        )


class ContentAdminService:
    """Creates, edits and deletes content, then invalidates the cache."""

    def __init__(
        self,
        store: ContentStore,
        invalidator: CacheInvalidator,
        *,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.invalidator = invalidator
        self.clock = clock
        self.logger = get_logger("content.admin")

    async def create_content(self, payload: Union[ContentCreate, Dict[str, Any]]) -> ContentItem:
        data = _parse(ContentCreate, payload)
        now = self.clock()

        item = ContentItem(
            id=new_content_id(),
            title=data.title,
            content=data.content,
            summary=data.summary,
            facts=data.facts,
            quiz={key: quiz.to_model() for key, quiz in data.quiz.items()},
            key_notes=dict(data.key_notes),
            image_url=str(data.image_url) if data.image_url else None,
            pdfs=[pdf.to_model() for pdf in data.pdfs],
            created_at=now,
            updated_at=now,
        )

        saved = await self.store.insert(item)
        await self.invalidator.invalidate_all()

        self.logger.info("Content created", content_id=saved.id)
        return saved

    async def update_content(self, content_id: str, payload: Union[ContentUpdate, Dict[str, Any]]) -> ContentItem:
        data = _parse(ContentUpdate, payload)

        updated = await self.store.update(content_id, data.changes(), self.clock())
        if updated is None:
            raise NotFoundError("Content not found", details={"id": content_id})

        await self.invalidator.invalidate_all()

        self.logger.info("Content updated", content_id=content_id)
        return updated

    async def delete_content(self, content_id: str) -> None:
        if not await self.store.delete(content_id):
            raise NotFoundError("Content not found", details={"id": content_id})

        await self.invalidator.invalidate_all()

        self.logger.info("Content deleted", content_id=content_id)

    async def attach_image(self, content_id: str, image_url: str) -> ContentItem:
        """Point an item at a new image. Only that item's document entry is cleared."""
        data = _parse(ImageAttachment, {"image_url": image_url})

        updated = await self.store.set_image(content_id, str(data.image_url), self.clock())
        if updated is None:
            raise NotFoundError("Content not found", details={"id": content_id})

        await self.invalidator.invalidate_one(content_id)

        self.logger.info("Image attached", content_id=content_id, image_url=updated.image_url)
        return updated

    async def attach_pdf(self, content_id: str, pdf: Union[PdfFilePayload, Dict[str, Any]]) -> ContentItem:
        data = _parse(PdfFilePayload, pdf)

        updated = await self.store.append_pdf(content_id, data.to_model(), self.clock())
        if updated is None:
            raise NotFoundError("Content not found", details={"id": content_id})

        await self.invalidator.invalidate_all()

        self.logger.info("PDF attached", content_id=content_id, pdf_name=data.name)
        return updated


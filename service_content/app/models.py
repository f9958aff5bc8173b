"""
Content data models for the content service.
"""

import secrets
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_content_id() -> str:
    """Generate a 24-hex-char content identifier."""
    return secrets.token_hex(12)


def isoformat(value: Optional[datetime]) -> Optional[str]:
    """Render a datetime as a UTC ISO-8601 string with millisecond precision."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class QuizItem:
    """Single quiz question."""
    que: str
    ans: str
    options: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"que": self.que, "ans": self.ans, "options": list(self.options)}


@dataclass
class PdfFile:
    """PDF attachment metadata."""
    name: str
    url: str
    uploaded_at: datetime
    size: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "url": self.url,
            "uploaded_at": isoformat(self.uploaded_at),
            "size": self.size,
        }


@dataclass
class ContentItem:
    """A piece of published content."""
    id: str
    title: str
    content: str
    summary: Optional[str] = None
    facts: Optional[str] = None
    quiz: Dict[str, QuizItem] = field(default_factory=dict)
    key_notes: Dict[str, str] = field(default_factory=dict)
    image_url: Optional[str] = None
    pdfs: List[PdfFile] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_document(self) -> Dict[str, Any]:
        """Full JSON-ready representation, as returned by by-id reads."""
        return {
            "_id": self.id,
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "summary": self.summary,
            "facts": self.facts,
            "quiz": {key: item.to_dict() for key, item in self.quiz.items()},
            "key_notes": dict(self.key_notes),
            "image_url": self.image_url,
            "pdfs": [pdf.to_dict() for pdf in self.pdfs],
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

    def to_summary(self) -> Dict[str, Any]:
        """Reduced representation used in list envelopes."""
        return {
            "_id": self.id,
            "id": self.id,
            "title": self.title,
            "summary": self.summary,
            "created_at": isoformat(self.created_at),
        }


class QuizItemPayload(BaseModel):
    """Quiz item as accepted by the write path."""
    que: str = Field(..., description="Question")
    ans: str = Field(..., description="Answer")
    options: List[str] = Field(..., min_length=2, description="At least two options")

    def to_model(self) -> QuizItem:
        return QuizItem(que=self.que, ans=self.ans, options=list(self.options))


class PdfFilePayload(BaseModel):
    """PDF reference as accepted by the write path."""
    name: str
    url: HttpUrl
    uploaded_at: datetime = Field(default_factory=utcnow)
    size: int = Field(..., gt=0)

    def to_model(self) -> PdfFile:
        return PdfFile(name=self.name, url=str(self.url), uploaded_at=self.uploaded_at, size=self.size)


class ContentCreate(BaseModel):
    """Payload for creating content."""
    title: str = Field(..., min_length=3)
    content: str = Field(..., min_length=10)
    quiz: Dict[str, QuizItemPayload] = Field(...)
    facts: Optional[str] = None
    summary: Optional[str] = None
    key_notes: Dict[str, str] = Field(default_factory=dict)
    image_url: Optional[HttpUrl] = None
    pdfs: List[PdfFilePayload] = Field(default_factory=list)


class ContentUpdate(BaseModel):
    """Payload for updating the editable text of content."""
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    summary: Optional[str] = None
    facts: Optional[str] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class ImageAttachment(BaseModel):
    """Image reference attached to existing content."""
    image_url: HttpUrl


class ListQuery(BaseModel):
    """Paginated list query."""
    model_config = ConfigDict(frozen=True)

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)

    @field_validator("page", "limit", mode="before")
    @classmethod
    def _strip_strings(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("must be an integer")
        if isinstance(value, str):
            return value.strip()
        return value

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class ByIdQuery(BaseModel):
    """Single item lookup."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)


class TodayQuery(BaseModel):
    """Items created during the current calendar day."""
    model_config = ConfigDict(frozen=True)

"""Library, publishing, and API payload schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

_WIRE_CONFIG = ConfigDict(populate_by_name=True, extra="ignore")


class ReferenceDocument(BaseModel):
    """Uploaded reference material used as generation context."""

    model_config = _WIRE_CONFIG

    id: str
    name: str
    excerpt: str = Field(default="", alias="content")
    mime_type: str = Field(default="text/plain", alias="type")
    created_at: float | None = Field(default=None, alias="createdAt")


class PublishedArticle(BaseModel):
    """A finalized article stored under a shareable identifier."""

    model_config = _WIRE_CONFIG

    id: str
    title: str
    article: list[dict[str, Any]] = Field(alias="slides")
    created_at: float = Field(alias="createdAt")


class ShareLinks(BaseModel):
    """Locators for a published article."""

    article_id: str
    share_url: str
    weibo: str
    twitter: str
    facebook: str

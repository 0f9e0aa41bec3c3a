"""HTTP request and response payloads."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

_WIRE_CONFIG = ConfigDict(populate_by_name=True, extra="ignore")


# ========== Requests ==========


class AnalyzeTemplateRequest(BaseModel):
    model_config = _WIRE_CONFIG

    file_content: str = Field(alias="fileContent")
    file_name: str = Field(default="uploaded.html", alias="fileName")


class AnalyzeUrlRequest(BaseModel):
    url: str


class LibraryUploadRequest(BaseModel):
    model_config = _WIRE_CONFIG

    file_name: str = Field(alias="fileName")
    content: str
    mime_type: str = Field(default="text/plain", alias="mimeType")


class ActiveTemplateRequest(BaseModel):
    model_config = _WIRE_CONFIG

    template_id: str | None = Field(default=None, alias="templateId")


class AttachmentPayload(BaseModel):
    model_config = _WIRE_CONFIG

    data: str
    mime_type: str = Field(default="image/jpeg", alias="mimeType")
    width: int = Field(gt=0)
    height: int = Field(gt=0)


class GenerateRequest(BaseModel):
    intent: str = ""
    attachments: list[AttachmentPayload] = Field(default_factory=list)


class PublishRequest(BaseModel):
    title: str | None = None


# ========== Responses ==========


class FetchedPageResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str
    final_url: str = Field(alias="finalUrl")
    content_type: str = Field(alias="contentType")
    content: str


class ActiveTemplateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")
    template_id: str | None = Field(alias="templateId")


class RepairPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: str
    section_index: int = Field(alias="sectionIndex")
    element_index: int | None = Field(default=None, alias="elementIndex")
    element_kind: str | None = Field(default=None, alias="elementKind")
    detail: str = ""


class ArticleResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    article: list[dict[str, Any]]
    html: str
    repairs: list[RepairPayload] = Field(default_factory=list)
    schema_mismatch: bool = Field(default=False, alias="schemaMismatch")
    template_id: str | None = Field(default=None, alias="templateId")


class PublishResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    share_url: str = Field(alias="shareUrl")
    share_links: dict[str, str] = Field(alias="shareLinks")


class TemplatePreviewResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    template_id: str | None = Field(alias="templateId")
    article: list[dict[str, Any]]
    html: str

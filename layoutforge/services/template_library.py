"""Template library and reference document library."""

from __future__ import annotations

import logging
import time

from bs4 import BeautifulSoup
from pydantic import ValidationError

from layoutforge.config import settings
from layoutforge.core.exceptions import InputError, NotFoundError
from layoutforge.core.ids import DOCUMENT_ID_PREFIX, TEMPLATE_ID_PREFIX, generate_prefixed_id
from layoutforge.integrations.collection_store import LIBRARY, TEMPLATES, CollectionStore
from layoutforge.schemas.library import ReferenceDocument
from layoutforge.schemas.template import TemplateSchema

logger = logging.getLogger(__name__)

HTML_MIME_TYPES = {"text/html", "application/xhtml+xml"}
HTML_EXTENSIONS = (".html", ".htm")


class TemplateLibrary:
    """Stored template schemas, newest first."""

    def __init__(self, store: CollectionStore | None = None) -> None:
        self.store = store or CollectionStore(TEMPLATES)

    async def list_templates(self) -> list[TemplateSchema]:
        templates: list[TemplateSchema] = []
        for payload in await self.store.load():
            try:
                templates.append(TemplateSchema.model_validate(payload))
            except ValidationError:
                logger.warning(
                    "Skipping unreadable stored template",
                    extra={"template_id": payload.get("id")},
                )
        return templates

    async def get_template(self, template_id: str) -> TemplateSchema:
        payload = await self.store.find(template_id)
        if payload is None:
            raise NotFoundError("Template", template_id)
        return TemplateSchema.model_validate(payload)

    async def add_template(self, schema: TemplateSchema, *, file_name: str | None = None) -> TemplateSchema:
        """Assign library metadata and store the template."""
        stored = schema.model_copy(
            update={
                "id": generate_prefixed_id(TEMPLATE_ID_PREFIX),
                "file_name": file_name,
                "created_at": time.time(),
            }
        )
        await self.store.prepend(stored.to_payload())
        logger.info(
            "Template stored",
            extra={
                "template_id": stored.id,
                "template_name": stored.name,
                "section_count": len(stored.sections),
            },
        )
        return stored

    async def delete_template(self, template_id: str) -> None:
        if not await self.store.remove(template_id):
            raise NotFoundError("Template", template_id)
        logger.info("Template deleted", extra={"template_id": template_id})


def html_to_text(markup: str) -> str:
    """Visible text of an HTML document, one block per line."""
    soup = BeautifulSoup(markup, "lxml")
    for element in soup(["script", "style", "noscript"]):
        element.decompose()
    return soup.get_text(separator="\n", strip=True)


def is_html_upload(file_name: str, mime_type: str) -> bool:
    return mime_type.lower() in HTML_MIME_TYPES or file_name.lower().endswith(HTML_EXTENSIONS)


class ReferenceLibrary:
    """Uploaded reference documents used as generation context."""

    def __init__(self, store: CollectionStore | None = None) -> None:
        self.store = store or CollectionStore(LIBRARY)

    async def list_documents(self) -> list[ReferenceDocument]:
        return [ReferenceDocument.model_validate(payload) for payload in await self.store.load()]

    async def add_document(
        self,
        *,
        file_name: str,
        content: str,
        mime_type: str = "text/plain",
    ) -> ReferenceDocument:
        name = (file_name or "").strip()
        if not name:
            raise InputError("Missing file name")
        text = html_to_text(content) if is_html_upload(name, mime_type) else (content or "").strip()
        if not text:
            raise InputError("Document has no readable text", details={"file_name": name})

        document = ReferenceDocument(
            id=generate_prefixed_id(DOCUMENT_ID_PREFIX),
            name=name,
            excerpt=text[: settings.reference_excerpt_max_chars],
            mime_type=mime_type or "text/plain",
            created_at=time.time(),
        )
        await self.store.prepend(document.model_dump(by_alias=True, mode="json"))
        logger.info(
            "Reference document stored",
            extra={
                "document_id": document.id,
                "file_name": name,
                "source_length": len(text),
                "excerpt_length": len(document.excerpt),
            },
        )
        return document

    async def delete_document(self, document_id: str) -> None:
        if not await self.store.remove(document_id):
            raise NotFoundError("Document", document_id)
        logger.info("Reference document deleted", extra={"document_id": document_id})

"""Turn an uploaded or fetched page into a stored template schema."""

from __future__ import annotations

import logging
from collections.abc import Callable

from layoutforge.agents.layout_extractor import LayoutExtractorAgent, LayoutExtractorInput
from layoutforge.core.exceptions import InputError
from layoutforge.integrations.page_fetcher import PageFetcher
from layoutforge.schemas.template import TemplateSchema
from layoutforge.services.response_validator import validate_template_reply
from layoutforge.services.sanitizer import sanitize_for_analysis
from layoutforge.services.template_library import TemplateLibrary

logger = logging.getLogger(__name__)

TEMPLATE_UPLOAD_EXTENSIONS = (".html", ".htm", ".txt")


def validate_template_upload(file_name: str) -> str:
    """Return the trimmed file name, or raise InputError for unsupported types."""
    name = (file_name or "").strip()
    if not name.lower().endswith(TEMPLATE_UPLOAD_EXTENSIONS):
        raise InputError(
            "Only .html, .htm and .txt files can be analyzed as templates",
            details={"file_name": name},
        )
    return name


class TemplateAnalysisService:
    """Sanitize, extract and store layout templates."""

    def __init__(
        self,
        library: TemplateLibrary | None = None,
        extractor: LayoutExtractorAgent | None = None,
        fetcher_factory: Callable[[], PageFetcher] = PageFetcher,
    ) -> None:
        self.library = library or TemplateLibrary()
        self._extractor = extractor
        self.fetcher_factory = fetcher_factory

    @property
    def extractor(self) -> LayoutExtractorAgent:
        if self._extractor is None:
            self._extractor = LayoutExtractorAgent()
        return self._extractor

    async def analyze(self, content: str, source_name: str) -> TemplateSchema:
        """Extract a template from raw markup and store it in the library.

        Too-short content is rejected before any model call.
        """
        sanitized = sanitize_for_analysis(content)
        if sanitized.error is not None:
            logger.warning(
                "Template analysis rejected input",
                extra={"source_name": source_name, "reason": sanitized.error.message},
            )
            raise sanitized.error

        raw_reply = await self.extractor.run(
            LayoutExtractorInput(content=sanitized.text, source_name=source_name)
        )
        schema = validate_template_reply(raw_reply)
        return await self.library.add_template(schema, file_name=source_name or None)

    async def analyze_upload(self, file_content: str, file_name: str) -> TemplateSchema:
        name = validate_template_upload(file_name)
        return await self.analyze(file_content, name)

    async def analyze_url(self, url: str) -> TemplateSchema:
        async with self.fetcher_factory() as fetcher:
            page = await fetcher.fetch(url)
        return await self.analyze(page.html, page.url)

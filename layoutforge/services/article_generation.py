"""Article generation pipeline: prompt, model call, repair, theme, render."""

from __future__ import annotations

import base64
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from layoutforge.agents.article_writer import ArticleWriterAgent, ArticleWriterInput
from layoutforge.schemas.article import Article, ImageElement
from layoutforge.schemas.attachment import Attachment
from layoutforge.services.article_renderer import render_article
from layoutforge.services.prompt_builder import ATTACHMENT_URL_PREFIX, ArticlePromptBuilder
from layoutforge.services.response_validator import ArticleResponseValidator, RepairAction
from layoutforge.services.session import ComposerSession
from layoutforge.services.template_library import ReferenceLibrary, TemplateLibrary
from layoutforge.services.theme_resolver import apply_themes

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class GeneratedArticleArtifact:
    """Final generated article payload."""

    article: Article
    rendered_html: str
    repairs: list[RepairAction] = field(default_factory=list)
    schema_mismatch: bool = False
    template_id: str | None = None


def bind_attachment_urls(article: Article, attachments: Sequence[Attachment]) -> Article:
    """Replace ``attachment:N`` image references with inline data URLs.

    References to unknown or already released attachments become empty
    image placeholders.
    """
    sections = []
    for section in article.sections:
        elements = []
        for element in section.elements:
            if isinstance(element, ImageElement) and element.url.startswith(ATTACHMENT_URL_PREFIX):
                element = element.model_copy(
                    update={"url": _attachment_data_url(element.url, attachments)}
                )
            elements.append(element)
        sections.append(section.model_copy(update={"elements": elements}))
    return Article(sections=sections)


def _attachment_data_url(reference: str, attachments: Sequence[Attachment]) -> str:
    position = reference[len(ATTACHMENT_URL_PREFIX):].strip()
    if not position.isdigit() or not 1 <= int(position) <= len(attachments):
        return ""
    attachment = attachments[int(position) - 1]
    if attachment.data is None:
        return ""
    encoded = base64.b64encode(attachment.data).decode("ascii")
    return f"data:{attachment.mime_type};base64,{encoded}"


class ArticleGenerationService:
    """Generate an article for a composer session under its active template."""

    def __init__(
        self,
        writer: ArticleWriterAgent | None = None,
        prompt_builder: ArticlePromptBuilder | None = None,
        validator: ArticleResponseValidator | None = None,
        template_library: TemplateLibrary | None = None,
        reference_library: ReferenceLibrary | None = None,
    ) -> None:
        self._writer = writer
        self.prompt_builder = prompt_builder or ArticlePromptBuilder()
        self.validator = validator or ArticleResponseValidator()
        self.template_library = template_library or TemplateLibrary()
        self.reference_library = reference_library or ReferenceLibrary()

    @property
    def writer(self) -> ArticleWriterAgent:
        if self._writer is None:
            self._writer = ArticleWriterAgent()
        return self._writer

    async def set_active_template(self, session: ComposerSession, template_id: str | None) -> None:
        """Point the session at a stored template, or clear it with ``None``."""
        session.active_template = (
            await self.template_library.get_template(template_id) if template_id else None
        )
        logger.info(
            "Active template changed",
            extra={"session_id": session.session_id, "template_id": session.active_template_id},
        )

    async def generate(
        self,
        session: ComposerSession,
        user_intent: str,
        attachments: Sequence[Attachment] = (),
    ) -> GeneratedArticleArtifact:
        """Run one generation and swap it into the session on success.

        Raises:
            GenerationInProgressError: the session already has a generation running.
            InputError: nothing to write about.
            UpstreamStatusError / UpstreamTimeoutError / FormatError: the model
                call failed; the session keeps its previous article.
        """
        try:
            with session.generation_slot():
                artifact = await self._run(session, user_intent, attachments)
        finally:
            for attachment in attachments:
                attachment.release()

        session.article = artifact.article
        session.repairs = artifact.repairs
        session.schema_mismatch = artifact.schema_mismatch
        logger.info(
            "Article generated",
            extra={
                "session_id": session.session_id,
                "template_id": artifact.template_id,
                "section_count": len(artifact.article.sections),
                "repair_count": len(artifact.repairs),
                "schema_mismatch": artifact.schema_mismatch,
            },
        )
        return artifact

    async def _run(
        self,
        session: ComposerSession,
        user_intent: str,
        attachments: Sequence[Attachment],
    ) -> GeneratedArticleArtifact:
        schema = session.active_template
        documents = await self.reference_library.list_documents()
        request = self.prompt_builder.build(
            user_intent=user_intent,
            active_schema=schema,
            reference_documents=documents,
            attachments=attachments,
        )
        raw_reply = await self.writer.run(
            ArticleWriterInput(instruction=request.instruction, attachments=request.attachments)
        )
        validated = self.validator.validate(raw_reply, schema)
        article = bind_attachment_urls(validated.article, attachments)

        themed = apply_themes(article, schema.style if schema else None)
        return GeneratedArticleArtifact(
            article=themed,
            rendered_html=render_article(themed),
            repairs=validated.repairs,
            schema_mismatch=validated.schema_mismatch,
            template_id=schema.id if schema else None,
        )

"""Placeholder article that shows a template's structure in its own colors."""

from __future__ import annotations

import logging

from layoutforge.schemas.article import Article, ArticleSection, ListElement, TitleElement
from layoutforge.schemas.template import ListSpec, TemplateSchema
from layoutforge.services.article_renderer import render_article
from layoutforge.services.response_validator import synthesize_element
from layoutforge.services.theme_resolver import apply_themes

logger = logging.getLogger(__name__)


def build_template_preview(schema: TemplateSchema) -> Article:
    """One empty section per template section, themed with the template's style.

    The first title slot carries the template name so the preview is labeled,
    and list slots show as many placeholder items as the template expects.
    """
    sections: list[ArticleSection] = []
    labeled = False
    for index, spec in enumerate(schema.sections):
        elements = []
        for element_spec in spec.elements:
            element = synthesize_element(element_spec)
            if not labeled and isinstance(element, TitleElement):
                element = element.model_copy(update={"content": schema.name})
                labeled = True
            elif isinstance(element_spec, ListSpec) and isinstance(element, ListElement):
                items = [f"Item {position}" for position in range(1, element_spec.item_count + 1)]
                element = element.model_copy(update={"items": items})
            elements.append(element)
        sections.append(
            ArticleSection(
                id=f"preview-{index + 1}",
                section_kind=spec.section_kind,
                elements=elements,
            )
        )
    return apply_themes(Article(sections=sections), schema.style)


def render_template_preview(schema: TemplateSchema) -> tuple[Article, str]:
    """Preview article and its rendered HTML fragment."""
    preview = build_template_preview(schema)
    logger.info(
        "Template preview rendered",
        extra={"template_id": schema.id, "section_count": len(preview.sections)},
    )
    return preview, render_article(preview)

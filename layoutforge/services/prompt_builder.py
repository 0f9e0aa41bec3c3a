"""Build deterministic, schema-constrained article generation instructions."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from layoutforge.config import settings
from layoutforge.core.exceptions import InputError
from layoutforge.schemas.attachment import Attachment
from layoutforge.schemas.library import ReferenceDocument
from layoutforge.schemas.template import (
    ImageSpec,
    ListSpec,
    SectionSpec,
    TemplateSchema,
    TextSpec,
    TitleSpec,
)
from layoutforge.services.theme_resolver import DEFAULT_THEME

logger = logging.getLogger(__name__)

ATTACHMENT_URL_PREFIX = "attachment:"
FREE_SECTION_RANGE = (4, 6)

_ARTICLE_SHAPE_EXAMPLE = """[
  {
    "id": "section-1",
    "type": "content",
    "elements": [
      { "type": "title", "content": "Main headline", "style": "large", "alignment": "center" },
      { "type": "image", "url": "https://images.example.com/photo.jpg", "size": "full", "position": "top" },
      { "type": "text", "content": "Opening paragraph...", "style": "paragraph" }
    ],
    "theme": { "primaryColor": "#rrggbb", "secondaryColor": "#rrggbb", "accentColor": "#rrggbb", "fontFamily": "..." }
  },
  {
    "id": "section-2",
    "type": "content",
    "elements": [
      { "type": "title", "content": "Subheading", "style": "medium", "alignment": "left" },
      { "type": "text", "content": "Body copy...", "style": "paragraph" },
      { "type": "list", "items": ["Point 1", "Point 2", "Point 3"], "style": "bullet" }
    ],
    "theme": { ... }
  },
  {
    "id": "section-n",
    "type": "contact",
    "elements": [
      { "type": "title", "content": "Get in touch", "style": "medium" },
      { "type": "text", "content": "Call-to-action copy", "style": "highlight" },
      { "type": "cta", "text": "Contact us now", "style": "button" }
    ],
    "qrCode": true,
    "theme": { ... }
  }
]"""


@dataclass(slots=True)
class GenerationRequest:
    """Everything one generation call sends to the model."""

    instruction: str
    attachments: list[Attachment] = field(default_factory=list)
    expected_section_count: int | None = None
    template_id: str | None = None


def describe_element(spec: TitleSpec | ImageSpec | TextSpec | ListSpec) -> str:
    """One-line human description of a required element and its style."""
    if isinstance(spec, TitleSpec):
        return f"title (size: {spec.size}, alignment: {spec.alignment})"
    if isinstance(spec, ImageSpec):
        return f"image (size: {spec.size}, position: {spec.position})"
    if isinstance(spec, TextSpec):
        return f"text (style: {spec.style})"
    return f"list (style: {spec.style}, {spec.item_count} items)"


class ArticlePromptBuilder:
    """Compile user intent, template contract and context into one instruction."""

    def __init__(
        self,
        *,
        excerpt_max_chars: int | None = None,
        context_max_chars: int | None = None,
    ) -> None:
        self.excerpt_max_chars = excerpt_max_chars or settings.reference_excerpt_max_chars
        self.context_max_chars = context_max_chars or settings.reference_context_max_chars

    def build(
        self,
        *,
        user_intent: str,
        active_schema: TemplateSchema | None = None,
        reference_documents: Sequence[ReferenceDocument] = (),
        attachments: Sequence[Attachment] = (),
    ) -> GenerationRequest:
        intent = " ".join((user_intent or "").split())
        if not intent and not attachments:
            raise InputError("Describe what to write about, or attach at least one image")

        blocks = [
            "You are an expert long-form article writer who crafts engaging, "
            "visually rich marketing articles for mobile reading.",
            f'User request: "{intent}"' if intent else "User request: write an article about the attached images.",
        ]
        if active_schema is not None:
            blocks.append(self._template_contract(active_schema))
        if attachments:
            blocks.append(self._attachment_guidance(len(attachments)))

        reference_context = self._reference_context(reference_documents)
        if reference_context:
            blocks.append(f"Reference material:\n{reference_context}")

        blocks.append(self._writing_rules(active_schema))
        blocks.append(f"JSON structure (array of article sections):\n{_ARTICLE_SHAPE_EXAMPLE}")
        blocks.append(self._closing_rules(active_schema))

        instruction = "\n\n".join(blocks)
        logger.info(
            "Generation instruction built",
            extra={
                "template_id": active_schema.id if active_schema else None,
                "section_count": len(active_schema.sections) if active_schema else None,
                "reference_count": len(reference_documents),
                "attachment_count": len(attachments),
                "instruction_length": len(instruction),
            },
        )
        return GenerationRequest(
            instruction=instruction,
            attachments=list(attachments),
            expected_section_count=len(active_schema.sections) if active_schema else None,
            template_id=active_schema.id if active_schema else None,
        )

    def _template_contract(self, schema: TemplateSchema) -> str:
        style = schema.style
        count = len(schema.sections)
        lines = [
            "IMPORTANT: follow the template layout exactly.",
            "",
            "Color scheme (copy these values verbatim into every section's theme; do not invent other colors):",
            f'- primaryColor: "{style.primary_color or DEFAULT_THEME.primary_color}"',
            f'- secondaryColor: "{style.secondary_color or DEFAULT_THEME.secondary_color}"',
            f'- accentColor: "{style.accent_color or DEFAULT_THEME.accent_color}"',
        ]
        if style.font_description:
            lines.append(f'- fontFamily: "{style.font_description}"')
        lines += [
            "",
            f"Layout structure (mandatory): the template has {count} sections. "
            f"You must produce exactly {count} sections, no more and no fewer. "
            "Each section's elements must have exactly these types in exactly this order:",
        ]
        for index, section in enumerate(schema.sections, start=1):
            lines.append(self._section_contract(index, section))
        lines += [
            "",
            f"Title style: {json.dumps(schema.title_style, ensure_ascii=False)}",
            f"List style: {json.dumps(schema.list_style, ensure_ascii=False)}",
            f"Image style: {json.dumps(schema.image_style, ensure_ascii=False)}",
            "",
            'Every section you produce MUST include a "theme" object.',
        ]
        return "\n".join(lines)

    @staticmethod
    def _section_contract(index: int, section: SectionSpec) -> str:
        rows = [f"Section {index} ({section.section_kind}):"]
        if not section.elements:
            rows.append("  (no required elements)")
        for position, element in enumerate(section.elements, start=1):
            rows.append(f"  {position}. {describe_element(element)}")
        return "\n".join(rows)

    @staticmethod
    def _attachment_guidance(count: int) -> str:
        return (
            f"IMPORTANT: the user attached {count} image(s), supplied after this instruction in order.\n"
            "1. Study each image carefully: its subject, style, color palette and mood.\n"
            "2. Write creative copy grounded in what the images actually show.\n"
            "3. Spread the images across the article, each next to the prose it illustrates. "
            f'Reference attached image N with an image element whose url is "{ATTACHMENT_URL_PREFIX}N" '
            f'(first image is "{ATTACHMENT_URL_PREFIX}1").\n'
            "4. Make the copy and the images tell one coherent story."
        )

    def _reference_context(self, documents: Sequence[ReferenceDocument]) -> str:
        parts: list[str] = []
        total = 0
        for document in documents:
            excerpt = document.excerpt.strip()[: self.excerpt_max_chars]
            if not excerpt:
                continue
            block = f"[Document: {document.name}]\n{excerpt}"
            if total + len(block) > self.context_max_chars:
                remaining = self.context_max_chars - total
                if remaining <= 0:
                    break
                block = block[:remaining]
            parts.append(block)
            total += len(block) + 2
        return "\n\n".join(parts)

    @staticmethod
    def _writing_rules(schema: TemplateSchema | None) -> str:
        rules = [
            "Write the article with these qualities:",
            "- Compelling, creative copy with vivid, emotionally resonant language.",
            "- Text and images interleaved, with images placed between passages of prose.",
            "- End with a clear call to action.",
            "- Do NOT produce a standalone cover section; start directly with substantive content.",
        ]
        if schema is not None:
            rules.append(
                f"- CRITICAL: follow the template's {len(schema.sections)}-section structure exactly."
            )
        else:
            rules.append("- Choose the section count, element mix and colors freely.")
        return "\n".join(rules)

    @staticmethod
    def _closing_rules(schema: TemplateSchema | None) -> str:
        if schema is not None:
            count_rule = f"- Produce exactly {len(schema.sections)} sections."
        else:
            low, high = FREE_SECTION_RANGE
            count_rule = f"- Produce {low}-{high} sections."
        return "\n".join(
            [
                "Requirements:",
                count_rule,
                "- Each section's elements array lists its elements in display order.",
                "- When a template is active, element types and order per section must match it exactly, "
                "and the template's colors must be used.",
                "Return only the raw JSON array, with no markdown formatting.",
            ]
        )

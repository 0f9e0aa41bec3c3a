"""Tests for schema-constrained generation instructions."""

import pytest

from layoutforge.core.exceptions import InputError
from layoutforge.schemas.attachment import Attachment
from layoutforge.schemas.library import ReferenceDocument
from layoutforge.schemas.template import TemplateSchema
from layoutforge.services.prompt_builder import ArticlePromptBuilder


def _schema(**style: str) -> TemplateSchema:
    return TemplateSchema.model_validate(
        {
            "id": "tpl_1",
            "templateName": "Warm",
            "styleAnalysis": style,
            "layoutStructure": [
                {
                    "sectionType": "header",
                    "elements": [
                        {"type": "title", "style": "large", "alignment": "center"},
                        {"type": "image", "size": "full", "position": "top"},
                    ],
                },
                {"sectionType": "list", "elements": [{"type": "list", "style": "number", "items": 4}]},
                {"sectionType": "cta", "elements": [{"type": "text", "style": "highlight"}]},
            ],
            "titleStyle": {"mainTitleSize": "large"},
        }
    )


def _document(name: str, excerpt: str) -> ReferenceDocument:
    return ReferenceDocument(id=name, name=name, excerpt=excerpt)


def test_schema_contract_states_colors_sections_and_theme_rule() -> None:
    request = ArticlePromptBuilder().build(
        user_intent="Launch our spring tea collection",
        active_schema=_schema(primaryColor="#aa0000", accentColor="#00aa00"),
    )
    text = request.instruction

    assert request.expected_section_count == 3
    assert request.template_id == "tpl_1"
    assert '"Launch our spring tea collection"' in text
    assert 'primaryColor: "#aa0000"' in text
    assert 'accentColor: "#00aa00"' in text
    assert 'secondaryColor: "#ffffff"' in text
    assert "exactly 3 sections" in text
    assert "Section 1 (header):\n  1. title (size: large, alignment: center)\n  2. image (size: full, position: top)" in text
    assert "  1. list (style: number, 4 items)" in text
    assert "Section 3 (cta):\n  1. text (style: highlight)" in text
    assert 'MUST include a "theme" object' in text
    assert '"mainTitleSize": "large"' in text


def test_without_schema_asks_for_free_four_to_six_sections() -> None:
    request = ArticlePromptBuilder().build(user_intent="Write about coffee")

    assert request.expected_section_count is None
    assert "4-6 sections" in request.instruction
    assert "Section 1" not in request.instruction


def test_always_forbids_cover_and_requires_call_to_action() -> None:
    text = ArticlePromptBuilder().build(user_intent="Anything").instruction

    assert "standalone cover section" in text
    assert "call to action" in text


def test_attachment_guidance_states_count() -> None:
    attachments = [
        Attachment(data=b"\x89PNG", mime_type="image/png", width=10, height=10),
        Attachment(data=b"\xff\xd8", mime_type="image/jpeg", width=10, height=10),
    ]

    request = ArticlePromptBuilder().build(user_intent="", attachments=attachments)

    assert "attached 2 image(s)" in request.instruction
    assert '"attachment:1"' in request.instruction
    assert request.attachments == attachments


def test_empty_intent_without_attachments_is_rejected() -> None:
    with pytest.raises(InputError):
        ArticlePromptBuilder().build(user_intent="   ")


def test_reference_documents_are_labeled_and_capped() -> None:
    builder = ArticlePromptBuilder(excerpt_max_chars=10, context_max_chars=60)
    request = builder.build(
        user_intent="Use the notes",
        reference_documents=[
            _document("brief.txt", "A" * 50),
            _document("faq.txt", "B" * 50),
            _document("later.txt", "C" * 50),
        ],
    )
    text = request.instruction

    assert "[Document: brief.txt]\n" + "A" * 10 + "\n" in text
    assert "A" * 11 not in text
    assert "[Document: faq.txt]" in text
    assert "[Document: later.txt]" not in text


def test_default_reference_caps_come_from_settings() -> None:
    builder = ArticlePromptBuilder()

    assert builder.excerpt_max_chars == 5000
    assert builder.context_max_chars == 20000

"""Tests for generation reply parsing and structural repair."""

from __future__ import annotations

import json
from typing import Any

import pytest

from layoutforge.core.exceptions import FormatError, SchemaMismatchError
from layoutforge.schemas.article import ImageElement, TextElement, TitleElement
from layoutforge.schemas.template import TemplateSchema
from layoutforge.services.response_validator import ArticleResponseValidator, strip_code_fences

ELEMENT_FIXTURES: dict[str, dict[str, Any]] = {
    "title": {"type": "title", "content": "Heading", "style": "large"},
    "image": {"type": "image", "url": "https://img.example.com/a.jpg", "size": "full"},
    "text": {"type": "text", "content": "Body copy", "style": "paragraph"},
    "list": {"type": "list", "items": ["one", "two"], "style": "bullet"},
    "cta": {"type": "cta", "text": "Sign up"},
}


def _schema() -> TemplateSchema:
    return TemplateSchema.model_validate(
        {
            "id": "tpl_1",
            "templateName": "Two part",
            "styleAnalysis": {"primaryColor": "#111111"},
            "layoutStructure": [
                {
                    "sectionType": "header",
                    "elements": [
                        {"type": "title", "style": "large", "alignment": "center"},
                        {"type": "image", "size": "medium", "position": "top"},
                        {"type": "text", "style": "highlight"},
                    ],
                },
                {
                    "sectionType": "list",
                    "elements": [
                        {"type": "title", "style": "medium"},
                        {"type": "list", "style": "number", "items": 3},
                    ],
                },
            ],
        }
    )


def _reply(*kind_rows: list[str]) -> str:
    return json.dumps(
        [
            {
                "id": f"s{index}",
                "type": "content",
                "elements": [dict(ELEMENT_FIXTURES[kind]) for kind in kinds],
            }
            for index, kinds in enumerate(kind_rows, start=1)
        ]
    )


def test_conforming_article_with_trailing_extra_is_accepted_unchanged() -> None:
    result = ArticleResponseValidator().validate(
        _reply(["title", "image", "text", "cta"], ["title", "list"]),
        _schema(),
    )

    assert result.repairs == []
    assert not result.schema_mismatch
    assert result.article.section_kind_sequences() == [
        ["title", "image", "text", "cta"],
        ["title", "list"],
    ]


def test_out_of_order_elements_are_repaired_not_rejected() -> None:
    result = ArticleResponseValidator().validate(
        _reply(["image", "title", "text"], ["title", "list"]),
        _schema(),
    )

    first = result.article.sections[0]
    assert first.element_kinds()[:3] == ["title", "image", "text"]
    assert [repair.kind for repair in result.repairs] == ["element_dropped", "element_synthesized"]
    assert result.repairs[0].element_kind == "image"
    assert result.repairs[0].element_index == 0
    assert result.repairs[1].section_index == 0

    synthesized = first.elements[1]
    assert isinstance(synthesized, ImageElement)
    assert synthesized.url == ""
    assert synthesized.size == "medium"
    assert not result.schema_mismatch


def test_missing_section_is_synthesized_and_flagged() -> None:
    result = ArticleResponseValidator().validate(_reply(["title", "image", "text"]), _schema())

    assert result.schema_mismatch
    assert len(result.article.sections) == 2
    second = result.article.sections[1]
    assert second.element_kinds() == ["title", "list"]
    assert second.section_kind == "list"
    assert second.id == "section-2"
    assert [repair.kind for repair in result.repairs] == ["section_synthesized"]

    with pytest.raises(SchemaMismatchError) as exc_info:
        result.raise_for_mismatch()
    assert exc_info.value.repairs == result.repairs


def test_extra_sections_are_dropped_and_flagged() -> None:
    result = ArticleResponseValidator().validate(
        _reply(["title", "image", "text"], ["title", "list"], ["text"]),
        _schema(),
    )

    assert len(result.article.sections) == 2
    assert result.schema_mismatch
    assert [(repair.kind, repair.section_index) for repair in result.repairs] == [("section_dropped", 2)]


def test_every_section_starts_with_required_kinds() -> None:
    schema = _schema()
    result = ArticleResponseValidator().validate(
        _reply(["text", "list", "title"], ["cta", "list", "title", "image"]),
        schema,
    )

    for section, required in zip(result.article.sections, schema.section_kind_sequences()):
        assert section.element_kinds()[: len(required)] == required


def test_synthesized_elements_take_template_styles() -> None:
    result = ArticleResponseValidator().validate(_reply([], []), _schema())

    title, image, text = result.article.sections[0].elements
    assert isinstance(title, TitleElement) and title.size == "large" and title.alignment == "center"
    assert isinstance(image, ImageElement) and image.size == "medium"
    assert isinstance(text, TextElement) and text.style == "highlight"
    assert result.article.sections[1].elements[1].style == "number"


def test_without_schema_no_structural_repairs() -> None:
    result = ArticleResponseValidator().validate(_reply(["text"], ["image", "title"]))

    assert result.repairs == []
    assert result.article.section_kind_sequences() == [["text"], ["image", "title"]]


def test_invalid_and_unknown_elements_are_dropped_with_record() -> None:
    raw = json.dumps(
        [
            {
                "id": "s1",
                "elements": [
                    {"type": "video", "url": "x"},
                    {"type": "image"},
                    {"type": "text", "content": "kept"},
                ],
            }
        ]
    )

    result = ArticleResponseValidator().validate(raw)

    assert result.article.section_kind_sequences() == [["text"]]
    assert [repair.kind for repair in result.repairs] == [
        "invalid_element_dropped",
        "invalid_element_dropped",
    ]
    assert [repair.element_index for repair in result.repairs] == [0, 1]


def test_legacy_flat_sections_are_normalized() -> None:
    raw = json.dumps(
        [
            {
                "id": "legacy",
                "type": "content",
                "title": "Old style",
                "subtitle": "Sub",
                "image": "https://img.example.com/b.jpg",
                "text": "Paragraph",
                "points": ["a", "b"],
                "cta": "Go",
                "qrCode": True,
            }
        ]
    )

    section = ArticleResponseValidator().validate(raw).article.sections[0]

    assert section.element_kinds() == ["title", "text", "image", "text", "list", "cta"]
    assert section.qr_code is True
    assert section.elements[1].style == "highlight"


@pytest.mark.parametrize(
    ("header", "qr_code"),
    [
        ({"theme": "dark"}, False),
        ({"theme": ["#000000"], "qrCode": "sometimes"}, False),
        ({"qrCode": "yes"}, True),
        ({"qrCode": {"show": True}}, False),
    ],
)
def test_legacy_section_with_malformed_header_is_cleaned(header: dict[str, Any], qr_code: bool) -> None:
    raw = json.dumps([{"id": "a", "title": "Hello", "text": "Body", **header}])

    section = ArticleResponseValidator().validate(raw).article.sections[0]

    assert section.element_kinds() == ["title", "text"]
    assert section.theme is None
    assert section.qr_code is qr_code


def test_canonical_section_with_malformed_header_is_cleaned() -> None:
    raw = json.dumps([{"id": "a", "elements": [ELEMENT_FIXTURES["text"]], "theme": 7, "qrCode": "true"}])

    section = ArticleResponseValidator().validate(raw).article.sections[0]

    assert section.theme is None
    assert section.qr_code is True


def test_wrapped_sections_object_and_code_fence_are_accepted() -> None:
    raw = "```json\n" + json.dumps({"sections": json.loads(_reply(["title"]))}) + "\n```"

    result = ArticleResponseValidator().validate(raw)

    assert result.article.section_kind_sequences() == [["title"]]


def test_reply_embedded_in_prose_is_recovered() -> None:
    raw = "Here is your article:\n" + _reply(["text"]) + "\nEnjoy!"

    assert ArticleResponseValidator().validate(raw).article.section_kind_sequences() == [["text"]]


@pytest.mark.parametrize("raw", ["not json at all", json.dumps("just a string"), "[]", ""])
def test_unusable_replies_raise_format_error(raw: str) -> None:
    with pytest.raises(FormatError) as exc_info:
        ArticleResponseValidator().validate(raw)

    assert len(exc_info.value.excerpt) <= 200


def test_strip_code_fences() -> None:
    assert strip_code_fences("```\n[1]\n```") == "[1]"
    assert strip_code_fences("```javascript\n{}\n```") == "{}"
    assert strip_code_fences("[2]") == "[2]"

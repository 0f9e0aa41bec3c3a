"""Tests for template extraction replies and schema normalization."""

import json

import pytest

from layoutforge.core.exceptions import FormatError
from layoutforge.schemas.options import normalize_hex_color, normalize_option, TitleSize
from layoutforge.schemas.template import ListSpec, TemplateSchema, TitleSpec
from layoutforge.services.response_validator import validate_template_reply


def _reply(**overrides: object) -> dict:
    payload = {
        "templateName": "Clean Business",
        "description": "Calm corporate newsletter",
        "styleAnalysis": {
            "primaryColor": "#1E40AF",
            "secondaryColor": "#f1f5f9",
            "accentColor": "#d97706",
            "fontFamily": "sans-serif, generous spacing",
            "overallStyle": "minimal business",
        },
        "layoutStructure": [
            {
                "sectionType": "header",
                "elements": [
                    {"type": "title", "style": "large", "alignment": "center"},
                    {"type": "image", "size": "full", "position": "top"},
                ],
            },
            {
                "sectionType": "list",
                "elements": [
                    {"type": "title", "style": "medium"},
                    {"type": "list", "style": "number", "items": 4},
                ],
            },
        ],
        "titleStyle": {"mainTitleSize": "large"},
        "listStyle": {"type": "number"},
        "imageStyle": {"corners": "rounded"},
    }
    payload.update(overrides)
    return payload


def test_valid_reply_yields_schema_with_allowed_kinds() -> None:
    schema = validate_template_reply(json.dumps(_reply()))

    assert schema.name == "Clean Business"
    assert schema.style.primary_color == "#1e40af"
    assert len(schema.sections) >= 1
    for kinds in schema.section_kind_sequences():
        assert set(kinds) <= {"title", "image", "text", "list"}
    assert schema.section_kind_sequences() == [["title", "image"], ["title", "list"]]
    assert isinstance(schema.sections[1].elements[1], ListSpec)
    assert schema.sections[1].elements[1].item_count == 4


def test_reply_in_code_fence_is_accepted() -> None:
    schema = validate_template_reply("```json\n" + json.dumps(_reply()) + "\n```")

    assert schema.sections[0].section_kind == "header"


def test_option_lists_echoed_by_model_are_normalized() -> None:
    reply = _reply(
        layoutStructure=[
            {
                "sectionType": "content/list",
                "elements": [
                    {"type": "Title", "style": "Large | medium", "alignment": "center/left"},
                    {"type": "text", "style": "fancy"},
                ],
            }
        ]
    )

    schema = validate_template_reply(json.dumps(reply))
    title = schema.sections[0].elements[0]

    assert isinstance(title, TitleSpec)
    assert title.size == "large"
    assert title.alignment == "center"
    assert schema.sections[0].elements[1].style == "paragraph"
    assert schema.sections[0].section_kind == "content"


def test_unknown_element_kinds_are_dropped() -> None:
    reply = _reply(
        layoutStructure=[
            {"sectionType": "cta", "elements": [{"type": "button"}, {"type": "text"}]},
        ]
    )

    schema = validate_template_reply(json.dumps(reply))

    assert schema.section_kind_sequences() == [["text"]]


def test_extractor_cannot_assign_library_metadata() -> None:
    schema = validate_template_reply(json.dumps(_reply(id="forged", createdAt=1.0)))

    assert schema.id is None
    assert schema.created_at is None


def test_reply_without_sections_is_format_error() -> None:
    with pytest.raises(FormatError):
        validate_template_reply(json.dumps(_reply(layoutStructure=[])))


def test_non_json_reply_is_format_error_with_bounded_excerpt() -> None:
    raw = "Sorry, I cannot help with that. " * 40

    with pytest.raises(FormatError) as exc_info:
        validate_template_reply(raw)

    assert len(exc_info.value.excerpt) == 200
    assert exc_info.value.excerpt == raw[:200]


def test_schema_payload_round_trips_through_wire_aliases() -> None:
    schema = validate_template_reply(json.dumps(_reply()))

    payload = schema.to_payload()
    reloaded = TemplateSchema.model_validate(payload)

    assert payload["layoutStructure"][0]["sectionType"] == "header"
    assert payload["layoutStructure"][1]["elements"][1]["items"] == 4
    assert reloaded == schema


def test_normalize_helpers() -> None:
    assert normalize_option("SMALL", TitleSize, "medium") == "small"
    assert normalize_option(None, TitleSize, "medium") == "medium"
    assert normalize_hex_color("#ABC") == "#aabbcc"
    assert normalize_hex_color("1e293b") == "#1e293b"
    assert normalize_hex_color("blue") is None


@pytest.mark.parametrize(
    ("items", "expected"),
    [("3-5", 3), ("about 4 items", 4), ("several", 3), (2.0, 2), (-1, 0), (None, 3), (["a", "b"], 2)],
)
def test_list_item_count_falls_back_instead_of_failing(items: object, expected: int) -> None:
    reply = _reply(
        layoutStructure=[{"sectionType": "list", "elements": [{"type": "list", "items": items}]}]
    )

    schema = validate_template_reply(json.dumps(reply))
    spec = schema.sections[0].elements[0]

    assert isinstance(spec, ListSpec)
    assert spec.item_count == expected

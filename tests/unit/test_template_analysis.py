"""Tests for template analysis orchestration."""

from __future__ import annotations

import json

import httpx
import pytest

from layoutforge.core.exceptions import FormatError, InputError
from layoutforge.integrations.page_fetcher import PageFetcher
from layoutforge.schemas.template import TemplateSchema
from layoutforge.services.template_analysis import TemplateAnalysisService, validate_template_upload

PAGE = (
    "<html><head><style>h1{color:red}</style></head><body>"
    + "<h1 class='hero'>Spring launch</h1>"
    + "<p>Our new collection arrives with long descriptive copy about tea. </p>" * 5
    + "</body></html>"
)

REPLY = json.dumps(
    {
        "templateName": "Fresh",
        "styleAnalysis": {"primaryColor": "#112233", "accentColor": "#445566"},
        "layoutStructure": [
            {"sectionType": "header", "elements": [{"type": "title", "style": "large"}]},
            {"sectionType": "list", "elements": [{"type": "list", "style": "number", "items": 3}]},
        ],
    }
)


class _FakeExtractor:
    def __init__(self, reply: str = REPLY) -> None:
        self.reply = reply
        self.inputs: list = []

    async def run(self, input_data):
        self.inputs.append(input_data)
        return self.reply


class _FakeLibrary:
    def __init__(self) -> None:
        self.added: list[tuple[TemplateSchema, str | None]] = []

    async def add_template(self, schema: TemplateSchema, *, file_name: str | None = None) -> TemplateSchema:
        self.added.append((schema, file_name))
        return schema.model_copy(update={"id": "tpl_1", "file_name": file_name})


def _service(extractor: _FakeExtractor, **kwargs) -> tuple[TemplateAnalysisService, _FakeLibrary]:
    library = _FakeLibrary()
    service = TemplateAnalysisService(library=library, extractor=extractor, **kwargs)  # type: ignore[arg-type]
    return service, library


@pytest.mark.asyncio
async def test_analyze_sanitizes_extracts_and_stores() -> None:
    extractor = _FakeExtractor()
    service, library = _service(extractor)

    template = await service.analyze_upload(PAGE, " page.html ")

    assert template.id == "tpl_1"
    assert template.file_name == "page.html"
    assert template.section_kind_sequences() == [["title"], ["list"]]
    assert len(extractor.inputs) == 1
    sent = extractor.inputs[0].content
    assert "<style" not in sent and "class=" not in sent
    assert library.added[0][1] == "page.html"


@pytest.mark.asyncio
async def test_too_short_input_never_reaches_the_model() -> None:
    extractor = _FakeExtractor()
    service, library = _service(extractor)

    with pytest.raises(InputError):
        await service.analyze("<p>tiny</p>", "tiny.html")

    assert extractor.inputs == []
    assert library.added == []


@pytest.mark.asyncio
async def test_unparseable_reply_is_format_error_and_nothing_is_stored() -> None:
    service, library = _service(_FakeExtractor(reply="I could not find a layout."))

    with pytest.raises(FormatError):
        await service.analyze(PAGE, "page.html")

    assert library.added == []


@pytest.mark.parametrize("name", ["page.pdf", "", "notes.docx"])
def test_upload_extension_is_checked(name: str) -> None:
    with pytest.raises(InputError):
        validate_template_upload(name)


def test_upload_extension_accepts_markup_and_text() -> None:
    assert validate_template_upload("Page.HTM") == "Page.HTM"
    assert validate_template_upload("dump.txt") == "dump.txt"


@pytest.mark.asyncio
async def test_analyze_url_fetches_then_analyzes() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=PAGE.encode("utf-8"), headers={"content-type": "text/html"})

    extractor = _FakeExtractor()
    service, library = _service(
        extractor,
        fetcher_factory=lambda: PageFetcher(transport=httpx.MockTransport(handler)),
    )

    template = await service.analyze_url("https://example.com/post")

    assert template.file_name == "https://example.com/post"
    assert extractor.inputs[0].source_name == "https://example.com/post"

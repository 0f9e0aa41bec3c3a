"""Parse, validate and structurally repair model output.

Model replies are untrusted text. This module turns them into typed values:
a ``TemplateSchema`` for layout extraction and an ``Article`` for generation.
When a template is active, the article is walked section by section against
the template and every deviation is repaired and recorded, so callers can
render the best-effort result and still see what was changed.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ValidationError

from layoutforge.config import settings
from layoutforge.core.exceptions import FormatError, SchemaMismatchError
from layoutforge.schemas.article import (
    ELEMENT_MODELS,
    Article,
    ArticleSection,
    ImageElement,
    LegacySection,
    ListElement,
    TextElement,
    TitleElement,
)
from layoutforge.schemas.template import (
    ImageSpec,
    ListSpec,
    SectionSpec,
    TemplateSchema,
    TextSpec,
    TitleSpec,
)

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"^\s*```[a-zA-Z0-9_-]*\s*\n?|\n?\s*```\s*$")

RepairKind = Literal[
    "element_dropped",
    "element_synthesized",
    "section_dropped",
    "section_synthesized",
    "invalid_element_dropped",
]


@dataclass(frozen=True, slots=True)
class RepairAction:
    """One structural fix applied to a generated article."""

    kind: RepairKind
    section_index: int
    element_index: int | None = None
    element_kind: str | None = None
    detail: str = ""


@dataclass(slots=True)
class ValidatedArticle:
    """A usable article plus the record of every repair made to it."""

    article: Article
    repairs: list[RepairAction] = field(default_factory=list)
    schema_mismatch: bool = False

    @property
    def repaired(self) -> bool:
        return bool(self.repairs)

    def raise_for_mismatch(self) -> None:
        """Strict mode: turn a repaired section-count mismatch into an error."""
        if self.schema_mismatch:
            raise SchemaMismatchError(
                "Generated article does not match the template's section structure",
                repairs=self.repairs,
            )


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence, if the model added one."""
    return _FENCE.sub("", text.strip()).strip()


def parse_json_reply(raw_text: str, *, expected: str) -> Any:
    """Decode a model reply as JSON, tolerating fences and surrounding chatter."""
    text = strip_code_fences(raw_text or "")
    if not text:
        raise FormatError(
            f"Model returned an empty reply where {expected} was expected",
            raw_text=raw_text or "",
            excerpt_chars=settings.format_error_excerpt_chars,
        )
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    # Fall back to the outermost JSON value embedded in prose.
    for opener, closer in (("[", "]"), ("{", "}")):
        start, end = text.find(opener), text.rfind(closer)
        if start != -1 and end > start:
            try:
                return json.loads(text[start : end + 1])
            except json.JSONDecodeError:
                continue

    raise FormatError(
        f"Model reply is not valid JSON (expected {expected})",
        raw_text=raw_text,
        excerpt_chars=settings.format_error_excerpt_chars,
    )


def validate_template_reply(raw_text: str) -> TemplateSchema:
    """Parse the extractor's reply into a template schema.

    Raises:
        FormatError: not JSON, or JSON that is not a usable template.
    """
    payload = parse_json_reply(raw_text, expected="a template object")
    if isinstance(payload, list) and len(payload) == 1 and isinstance(payload[0], dict):
        payload = payload[0]
    if not isinstance(payload, dict):
        raise FormatError(
            "Template reply must be a JSON object",
            raw_text=raw_text,
            excerpt_chars=settings.format_error_excerpt_chars,
        )

    # The extractor owns neither identity nor provenance.
    for key in ("id", "fileName", "file_name", "createdAt", "created_at"):
        payload.pop(key, None)

    sections = payload.get("layoutStructure")
    if isinstance(sections, list):
        payload["layoutStructure"] = [
            _clean_section_spec(section) for section in sections if isinstance(section, dict)
        ]

    try:
        schema = TemplateSchema.model_validate(payload)
    except ValidationError as exc:
        raise FormatError(
            f"Template reply is missing required structure: {exc.error_count()} problem(s)",
            raw_text=raw_text,
            excerpt_chars=settings.format_error_excerpt_chars,
        ) from exc

    logger.info(
        "Template reply validated",
        extra={"template_name": schema.name, "section_count": len(schema.sections)},
    )
    return schema


def _clean_section_spec(section: dict[str, Any]) -> dict[str, Any]:
    # Unknown element kinds are dropped rather than failing the whole template.
    elements = section.get("elements")
    if not isinstance(elements, list):
        return {**section, "elements": []}
    kept = [
        element
        for element in elements
        if isinstance(element, dict)
        and str(element.get("type", "")).strip().lower() in ("title", "image", "text", "list")
    ]
    for element in kept:
        element["type"] = str(element["type"]).strip().lower()
    return {**section, "elements": kept}


class ArticleResponseValidator:
    """Turn raw generation output into a renderable, template-conformant article."""

    def validate(self, raw_text: str, schema: TemplateSchema | None = None) -> ValidatedArticle:
        payload = parse_json_reply(raw_text, expected="an array of sections")
        raw_sections = self._raw_sections(payload, raw_text)

        repairs: list[RepairAction] = []
        sections = [
            self._parse_section(raw, index, repairs) for index, raw in enumerate(raw_sections)
        ]

        schema_mismatch = False
        if schema is not None:
            sections, schema_mismatch = self._conform(sections, schema, repairs)

        for index, section in enumerate(sections):
            if not section.id:
                sections[index] = section.model_copy(update={"id": f"section-{index + 1}"})

        result = ValidatedArticle(
            article=Article(sections=sections),
            repairs=repairs,
            schema_mismatch=schema_mismatch,
        )
        log = logger.warning if result.repaired else logger.info
        log(
            "Generated article validated",
            extra={
                "section_count": len(sections),
                "repair_count": len(repairs),
                "schema_mismatch": schema_mismatch,
                "template_id": schema.id if schema else None,
            },
        )
        return result

    @staticmethod
    def _raw_sections(payload: Any, raw_text: str) -> list[dict[str, Any]]:
        if isinstance(payload, dict):
            for key in ("sections", "slides"):
                if isinstance(payload.get(key), list):
                    payload = payload[key]
                    break
        if not isinstance(payload, list):
            raise FormatError(
                "Article reply must be a JSON array of sections",
                raw_text=raw_text,
                excerpt_chars=settings.format_error_excerpt_chars,
            )
        sections = [item for item in payload if isinstance(item, dict)]
        if not sections:
            raise FormatError(
                "Article reply contains no sections",
                raw_text=raw_text,
                excerpt_chars=settings.format_error_excerpt_chars,
            )
        return sections

    @staticmethod
    def _parse_section(
        raw: dict[str, Any],
        section_index: int,
        repairs: list[RepairAction],
    ) -> ArticleSection:
        header = _clean_section_header(raw)
        if LegacySection.matches(raw):
            try:
                return LegacySection.model_validate(header).to_canonical()
            except ValidationError as exc:
                raise _malformed_section(section_index, raw) from exc

        elements: list[BaseModel] = []
        raw_elements = raw.get("elements")
        for element_index, element in enumerate(raw_elements if isinstance(raw_elements, list) else []):
            parsed = _parse_element(element)
            if parsed is None:
                kind = element.get("type") if isinstance(element, dict) else type(element).__name__
                repairs.append(
                    RepairAction(
                        kind="invalid_element_dropped",
                        section_index=section_index,
                        element_index=element_index,
                        element_kind=str(kind) if kind is not None else None,
                        detail="element failed validation",
                    )
                )
                continue
            elements.append(parsed)

        header.pop("elements", None)
        try:
            section = ArticleSection.model_validate({**header, "elements": []})
        except ValidationError as exc:
            raise _malformed_section(section_index, raw) from exc
        return section.model_copy(update={"elements": elements})

    def _conform(
        self,
        sections: list[ArticleSection],
        schema: TemplateSchema,
        repairs: list[RepairAction],
    ) -> tuple[list[ArticleSection], bool]:
        expected = len(schema.sections)
        mismatch = len(sections) != expected

        conformed: list[ArticleSection] = []
        for index, spec in enumerate(schema.sections):
            if index < len(sections):
                conformed.append(self._conform_section(sections[index], spec, index, repairs))
                continue
            repairs.append(
                RepairAction(
                    kind="section_synthesized",
                    section_index=index,
                    detail=f"template expects {expected} sections, model produced {len(sections)}",
                )
            )
            conformed.append(
                ArticleSection(
                    id=f"section-{index + 1}",
                    section_kind=spec.section_kind,
                    elements=[synthesize_element(element_spec) for element_spec in spec.elements],
                )
            )

        for index in range(expected, len(sections)):
            repairs.append(
                RepairAction(
                    kind="section_dropped",
                    section_index=index,
                    detail=f"template expects {expected} sections, model produced {len(sections)}",
                )
            )
        return conformed, mismatch

    @staticmethod
    def _conform_section(
        section: ArticleSection,
        spec: SectionSpec,
        section_index: int,
        repairs: list[RepairAction],
    ) -> ArticleSection:
        """Align one section's element kinds with the template's required sequence.

        For each required kind, scan forward for the next element of that kind.
        Elements skipped over are dropped; a missing kind is synthesized empty
        with the template's style. Elements past the last match are kept.
        """
        if section.element_kinds() == spec.element_kinds():
            return section

        source = list(section.elements)
        cursor = 0
        aligned: list[Any] = []
        for element_spec in spec.elements:
            match_at = next(
                (i for i in range(cursor, len(source)) if source[i].kind == element_spec.kind),
                None,
            )
            if match_at is None:
                repairs.append(
                    RepairAction(
                        kind="element_synthesized",
                        section_index=section_index,
                        element_index=len(aligned),
                        element_kind=element_spec.kind,
                        detail="required element missing",
                    )
                )
                aligned.append(synthesize_element(element_spec))
                continue
            for skipped in range(cursor, match_at):
                repairs.append(
                    RepairAction(
                        kind="element_dropped",
                        section_index=section_index,
                        element_index=skipped,
                        element_kind=source[skipped].kind,
                        detail=f"out of order before required {element_spec.kind}",
                    )
                )
            aligned.append(source[match_at])
            cursor = match_at + 1

        aligned.extend(source[cursor:])
        return section.model_copy(update={"elements": aligned})


_TRUE_FLAGS = {"true", "yes", "1", "on"}


def _coerce_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_FLAGS
    if isinstance(value, (int, float)):
        return value != 0
    return False


def _clean_section_header(raw: dict[str, Any]) -> dict[str, Any]:
    """Copy of a raw section with an unusable theme dropped and ``qrCode`` made boolean."""
    header = dict(raw)
    if not isinstance(header.get("theme"), dict):
        header.pop("theme", None)
    if "qrCode" in header:
        header["qrCode"] = _coerce_flag(header["qrCode"])
    return header


def _malformed_section(section_index: int, raw: dict[str, Any]) -> FormatError:
    return FormatError(
        f"Article section {section_index + 1} is malformed",
        raw_text=json.dumps(raw, ensure_ascii=False, default=str),
        excerpt_chars=settings.format_error_excerpt_chars,
    )


def _parse_element(raw: Any) -> BaseModel | None:
    if not isinstance(raw, dict):
        return None
    kind = str(raw.get("type", "")).strip().lower()
    model = ELEMENT_MODELS.get(kind)
    if model is None:
        return None
    try:
        element = model.model_validate({**raw, "type": kind})
    except ValidationError:
        return None
    if isinstance(element, ImageElement) and not element.url:
        return None
    return element


def synthesize_element(spec: TitleSpec | ImageSpec | TextSpec | ListSpec) -> BaseModel:
    """Empty element carrying the template's style for a required slot."""
    if isinstance(spec, TitleSpec):
        return TitleElement(content="", size=spec.size, alignment=spec.alignment)
    if isinstance(spec, ImageSpec):
        return ImageElement(url="", size=spec.size, position=spec.position)
    if isinstance(spec, TextSpec):
        return TextElement(content="", style=spec.style)
    return ListElement(items=[], style=spec.style)


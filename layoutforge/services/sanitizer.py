"""Markup cleanup before layout analysis."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from layoutforge.config import settings
from layoutforge.core.exceptions import InputError

logger = logging.getLogger(__name__)

_SCRIPT_BLOCK = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_STYLE_BLOCK = re.compile(r"<style\b[^<]*(?:(?!</style>)<[^<]*)*</style>", re.IGNORECASE)
_COMMENT = re.compile(r"<!--[\s\S]*?-->")
_STYLE_ATTR = re.compile(r"\s*style\s*=\s*[\"'][^\"']*[\"']", re.IGNORECASE)
_CLASS_ATTR = re.compile(r"\s*class\s*=\s*[\"'][^\"']*[\"']", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")

# Decoded in this order within a pass; double-escaped entities resolve on the next pass.
_ENTITIES = (
    ("&nbsp;", " "),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&amp;", "&"),
    ("&quot;", '"'),
)


@dataclass(slots=True)
class SanitizationResult:
    """Cleaned markup plus the reason it cannot be analyzed, if any."""

    text: str
    source_length: int
    error: InputError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _clean_once(text: str) -> str:
    text = _SCRIPT_BLOCK.sub("", text)
    text = _STYLE_BLOCK.sub("", text)
    text = _COMMENT.sub("", text)
    text = _STYLE_ATTR.sub("", text)
    text = _CLASS_ATTR.sub("", text)
    for entity, replacement in _ENTITIES:
        text = text.replace(entity, replacement)
    return _WHITESPACE.sub(" ", text).strip()


def clean_markup(raw: str) -> str:
    """Strip scripts, styles, comments and presentational attributes from markup.

    The steps repeat until the text stops changing, so markup that only
    appears once entities are decoded is stripped too. Every pass that
    changes the text shortens it, so the loop ends.
    """
    text = _clean_once(raw)
    while True:
        cleaned = _clean_once(text)
        if cleaned == text:
            return text
        text = cleaned


def sanitize_for_analysis(
    raw: str | None,
    *,
    max_chars: int | None = None,
    min_chars: int | None = None,
) -> SanitizationResult:
    """Clean and bound markup for the layout extractor.

    Never raises for bad input: a too-short or empty document comes back with
    ``error`` set so the caller decides how to surface it.
    """
    limit = max_chars if max_chars is not None else settings.sanitizer_max_chars
    minimum = min_chars if min_chars is not None else settings.sanitizer_min_chars

    source = raw or ""
    if not source.strip():
        return SanitizationResult(
            text="",
            source_length=0,
            error=InputError("Missing file content"),
        )

    # Trailing whitespace left by the cut is trimmed so re-sanitizing is a no-op.
    text = clean_markup(source)[:limit].rstrip()

    if len(text) < minimum:
        logger.info(
            "Content too short after cleaning",
            extra={"source_length": len(source), "cleaned_length": len(text), "min_chars": minimum},
        )
        return SanitizationResult(
            text=text,
            source_length=len(source),
            error=InputError(
                "Content too short to analyze after cleaning",
                details={"cleaned_length": len(text), "min_chars": minimum},
            ),
        )

    logger.info(
        "Content sanitized",
        extra={"source_length": len(source), "cleaned_length": len(text)},
    )
    return SanitizationResult(text=text, source_length=len(source))

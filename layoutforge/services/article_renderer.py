"""Deterministic HTML renderer for themed article sections."""

from __future__ import annotations

import hashlib
from html import escape
from typing import Any

from layoutforge.schemas.article import (
    Article,
    ArticleSection,
    CtaElement,
    ImageElement,
    ListElement,
    TextElement,
    Theme,
    TitleElement,
)
from layoutforge.services.theme_resolver import resolve_theme

TITLE_FONT_SIZES = {"large": "24px", "medium": "20px", "small": "18px"}

# size -> (width, max-height)
IMAGE_BOXES = {
    "full": ("100%", "400px"),
    "large": ("100%", "400px"),
    "medium": ("75%", "250px"),
    "small": ("50%", "150px"),
}

QR_GRID_SIZE = 5


def _safe_text(value: Any) -> str:
    if value is None:
        return ""
    return escape(str(value), quote=True)


def _style(**declarations: str) -> str:
    return ";".join(
        f"{name.replace('_', '-')}:{value}" for name, value in declarations.items() if value
    )


def _render_title(element: TitleElement, theme: Theme) -> str:
    style = _style(
        font_size=TITLE_FONT_SIZES[element.size],
        text_align=element.alignment,
        color=theme.primary_color or "",
        font_weight="700",
        margin="0 0 12px",
    )
    return (
        f"<h2 data-element=\"title\" data-size=\"{element.size}\" style=\"{style}\">"
        f"{_safe_text(element.content)}</h2>"
    )


def _render_image(element: ImageElement, theme: Theme) -> str:
    width, max_height = IMAGE_BOXES[element.size]
    margin = "0 0 16px" if element.size in ("full", "large") else "0 auto 16px"
    if not element.url:
        placeholder = _style(
            width=width,
            height=max_height,
            margin=margin,
            background="#e2e8f0",
            border_radius="8px",
        )
        return (
            f"<div data-element=\"image\" data-size=\"{element.size}\" "
            f"data-placeholder=\"true\" style=\"{placeholder}\"></div>"
        )
    figure_style = _style(width=width, margin=margin)
    img_style = _style(
        display="block",
        width="100%",
        max_height=max_height,
        object_fit="cover",
        border_radius="8px",
    )
    return (
        f"<figure data-element=\"image\" data-size=\"{element.size}\" style=\"{figure_style}\">"
        f"<img src=\"{_safe_text(element.url)}\" alt=\"{_safe_text(element.alt)}\" style=\"{img_style}\">"
        "</figure>"
    )


def _render_text(element: TextElement, theme: Theme) -> str:
    content = _safe_text(element.content)
    if element.style == "quote":
        style = _style(
            border_left=f"4px solid {theme.primary_color}",
            padding="4px 0 4px 12px",
            margin="0 0 16px",
            font_style="italic",
        )
        return f"<blockquote data-element=\"text\" data-style=\"quote\" style=\"{style}\">{content}</blockquote>"
    if element.style == "highlight":
        style = _style(
            border_left=f"4px solid {theme.accent_color}",
            background=f"{theme.accent_color}1a",
            padding="8px 12px",
            margin="0 0 16px",
            font_style="italic",
        )
        return f"<p data-element=\"text\" data-style=\"highlight\" style=\"{style}\">{content}</p>"
    style = _style(line_height="1.7", margin="0 0 16px")
    return f"<p data-element=\"text\" data-style=\"paragraph\" style=\"{style}\">{content}</p>"


def _list_marker(style: str, position: int, theme: Theme) -> str:
    if style == "number":
        marker_style = _style(color=theme.accent_color or "", font_weight="700", margin_right="8px")
        return f"<span data-marker=\"number\" style=\"{marker_style}\">{position}.</span>"
    marker_style = _style(
        display="inline-block",
        width="8px",
        height="8px",
        border_radius="50%",
        background=theme.accent_color or "",
        margin_right="8px",
        vertical_align="middle",
    )
    return f"<span data-marker=\"bullet\" style=\"{marker_style}\"></span>"


def _render_list(element: ListElement, theme: Theme) -> str:
    tag = "ol" if element.style == "number" else "ul"
    list_style = _style(list_style="none", padding="0", margin="0 0 16px")
    items = "".join(
        f"<li style=\"margin:0 0 8px\">{_list_marker(element.style, position, theme)}"
        f"{_safe_text(item)}</li>"
        for position, item in enumerate(element.items, start=1)
    )
    return (
        f"<{tag} data-element=\"list\" data-style=\"{element.style}\" style=\"{list_style}\">"
        f"{items}</{tag}>"
    )


def _render_cta(element: CtaElement, theme: Theme) -> str:
    button_style = _style(
        display="inline-block",
        background=theme.accent_color or "",
        color="#ffffff",
        padding="12px 24px",
        border_radius="9999px",
        font_weight="600",
        text_decoration="none",
    )
    return (
        "<div data-element=\"cta\" style=\"text-align:center;margin:16px 0\">"
        f"<a role=\"button\" href=\"#\" style=\"{button_style}\">{_safe_text(element.text)}</a>"
        "</div>"
    )


_ELEMENT_RENDERERS = {
    "title": _render_title,
    "image": _render_image,
    "text": _render_text,
    "list": _render_list,
    "cta": _render_cta,
}


def qr_pattern(seed: str) -> list[list[bool]]:
    """Fixed 5x5 on/off pattern derived from the seed."""
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    bits = int.from_bytes(digest[:4], "big")
    return [
        [bool(bits >> (row * QR_GRID_SIZE + col) & 1) for col in range(QR_GRID_SIZE)]
        for row in range(QR_GRID_SIZE)
    ]


def _render_qr_block(seed: str, theme: Theme) -> str:
    cells = "".join(
        f"<span style=\"background:{theme.primary_color if filled else '#ffffff'}\"></span>"
        for row in qr_pattern(seed)
        for filled in row
    )
    grid_style = _style(
        display="grid",
        grid_template_columns=f"repeat({QR_GRID_SIZE},12px)",
        grid_auto_rows="12px",
        gap="2px",
        width="max-content",
        margin="16px auto 0",
        padding="8px",
        background="#ffffff",
        border=f"1px solid {theme.primary_color}",
    )
    return f"<div data-element=\"qr-code\" aria-hidden=\"true\" style=\"{grid_style}\">{cells}</div>"


def _render_section(section: ArticleSection, index: int) -> str:
    theme = resolve_theme(section.theme)
    section_style = _style(
        background=theme.secondary_color or "",
        font_family=_safe_text(theme.font_family),
        padding="24px 16px",
    )
    parts = [
        f"<section data-section-id=\"{_safe_text(section.id)}\" "
        f"data-section-kind=\"{_safe_text(section.section_kind)}\" style=\"{section_style}\">"
    ]
    for element in section.elements:
        parts.append(_ELEMENT_RENDERERS[element.kind](element, theme))
    if section.qr_code:
        parts.append(_render_qr_block(section.id or f"section-{index + 1}", theme))
    parts.append("</section>")
    return "".join(parts)


def render_article(article: Article | list[dict[str, Any]] | dict[str, Any]) -> str:
    """Render an article (or its persisted section array) to an HTML fragment.

    Sections whose theme is incomplete fall back to the system defaults, so
    an unresolved article still renders.
    """
    if not isinstance(article, Article):
        article = Article.model_validate(article)
    sections = "".join(
        _render_section(section, index) for index, section in enumerate(article.sections)
    )
    return f"<article data-layout=\"sections\">{sections}</article>"


def render_article_page(article: Article | list[dict[str, Any]] | dict[str, Any], title: str) -> str:
    """Render a standalone HTML5 page for a shared article."""
    body = render_article(article)
    return (
        "<!DOCTYPE html>"
        "<html lang=\"en\"><head><meta charset=\"utf-8\">"
        "<meta name=\"viewport\" content=\"width=device-width, initial-scale=1\">"
        f"<title>{_safe_text(title)}</title></head>"
        "<body style=\"margin:0;background:#f1f5f9\">"
        f"<main style=\"max-width:640px;margin:0 auto\">{body}</main>"
        "</body></html>"
    )

"""Enumerated style options shared by template and article schemas."""

import re
from typing import Any, Literal, get_args

TitleSize = Literal["large", "medium", "small"]
Alignment = Literal["left", "center", "right"]
ImageSize = Literal["full", "large", "medium", "small"]
ImagePosition = Literal["top", "bottom", "left", "right"]
TextStyle = Literal["paragraph", "quote", "highlight"]
ListStyle = Literal["bullet", "number", "icon", "checkbox"]

SCHEMA_ELEMENT_KINDS = ("title", "image", "text", "list")
ARTICLE_ELEMENT_KINDS = ("title", "image", "text", "list", "cta")

_OPTION_SPLIT = re.compile(r"[/|,;\s]+")
_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def normalize_option(value: Any, options: Any, default: str) -> str:
    """Map a loosely formatted model value onto an enumerated option.

    Models echo the instruction's option lists back ("center/left", "Large"),
    so the first recognised token wins and anything else falls back.
    """
    allowed = get_args(options) or tuple(options)
    if value is None:
        return default
    for token in _OPTION_SPLIT.split(str(value).strip().lower()):
        if token in allowed:
            return token
    return default


def normalize_hex_color(value: Any) -> str | None:
    """Return a lowercase ``#rrggbb`` color, or None when unparseable."""
    if value is None:
        return None
    match = _HEX_COLOR.match(str(value).strip())
    if not match:
        return None
    digits = match.group(1).lower()
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return f"#{digits}"

"""Article schemas: the content-bearing, renderable document."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from layoutforge.schemas.options import (
    Alignment,
    ImagePosition,
    ImageSize,
    ListStyle,
    TextStyle,
    TitleSize,
    normalize_hex_color,
    normalize_option,
)

_ARTICLE_CONFIG = ConfigDict(populate_by_name=True, extra="ignore")

THEME_FIELDS = ("primary_color", "secondary_color", "accent_color", "font_family")


class Theme(BaseModel):
    """Rendering theme for one section."""

    model_config = _ARTICLE_CONFIG

    primary_color: str | None = Field(default=None, alias="primaryColor")
    secondary_color: str | None = Field(default=None, alias="secondaryColor")
    accent_color: str | None = Field(default=None, alias="accentColor")
    font_family: str | None = Field(default=None, alias="fontFamily")

    @field_validator("primary_color", "secondary_color", "accent_color", mode="before")
    @classmethod
    def _color(cls, value: Any) -> str | None:
        return normalize_hex_color(value)

    @field_validator("font_family", mode="before")
    @classmethod
    def _font(cls, value: Any) -> str | None:
        text = str(value).strip() if value is not None else ""
        return text or None

    def is_complete(self) -> bool:
        return all(getattr(self, name) for name in THEME_FIELDS)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


class TitleElement(BaseModel):
    model_config = _ARTICLE_CONFIG

    kind: Literal["title"] = Field(default="title", alias="type")
    content: str = ""
    size: TitleSize = Field(default="medium", alias="style")
    alignment: Alignment = "left"

    @field_validator("content", mode="before")
    @classmethod
    def _content(cls, value: Any) -> str:
        return _as_text(value)

    @field_validator("size", mode="before")
    @classmethod
    def _size(cls, value: Any) -> str:
        return normalize_option(value, TitleSize, "medium")

    @field_validator("alignment", mode="before")
    @classmethod
    def _alignment(cls, value: Any) -> str:
        return normalize_option(value, Alignment, "left")


class ImageElement(BaseModel):
    model_config = _ARTICLE_CONFIG

    kind: Literal["image"] = Field(default="image", alias="type")
    url: str = ""
    alt: str = ""
    size: ImageSize = "full"
    position: ImagePosition = "top"

    @model_validator(mode="before")
    @classmethod
    def _url_from_content(cls, data: Any) -> Any:
        # Models sometimes put the image reference under "content".
        if isinstance(data, dict) and not data.get("url") and data.get("content"):
            data = {**data, "url": data["content"]}
        return data

    @field_validator("url", "alt", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _as_text(value)

    @field_validator("size", mode="before")
    @classmethod
    def _size(cls, value: Any) -> str:
        return normalize_option(value, ImageSize, "full")

    @field_validator("position", mode="before")
    @classmethod
    def _position(cls, value: Any) -> str:
        return normalize_option(value, ImagePosition, "top")


class TextElement(BaseModel):
    model_config = _ARTICLE_CONFIG

    kind: Literal["text"] = Field(default="text", alias="type")
    content: str = ""
    style: TextStyle = "paragraph"

    @field_validator("content", mode="before")
    @classmethod
    def _content(cls, value: Any) -> str:
        return _as_text(value)

    @field_validator("style", mode="before")
    @classmethod
    def _style(cls, value: Any) -> str:
        return normalize_option(value, TextStyle, "paragraph")


class ListElement(BaseModel):
    model_config = _ARTICLE_CONFIG

    kind: Literal["list"] = Field(default="list", alias="type")
    items: list[str] = Field(default_factory=list)
    style: ListStyle = "bullet"

    @field_validator("items", mode="before")
    @classmethod
    def _items(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if not isinstance(value, list):
            value = [value]
        return [_as_text(item) for item in value if _as_text(item)]

    @field_validator("style", mode="before")
    @classmethod
    def _style(cls, value: Any) -> str:
        return normalize_option(value, ListStyle, "bullet")


class CtaElement(BaseModel):
    model_config = _ARTICLE_CONFIG

    kind: Literal["cta"] = Field(default="cta", alias="type")
    text: str = ""
    style: str = "button"

    @model_validator(mode="before")
    @classmethod
    def _text_from_content(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("text") and data.get("content"):
            data = {**data, "text": data["content"]}
        return data

    @field_validator("text", "style", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _as_text(value)


ArticleElement = Annotated[
    Union[TitleElement, ImageElement, TextElement, ListElement, CtaElement],
    Field(discriminator="kind"),
]

ELEMENT_MODELS: dict[str, type[BaseModel]] = {
    "title": TitleElement,
    "image": ImageElement,
    "text": TextElement,
    "list": ListElement,
    "cta": CtaElement,
}

_LEGACY_FIELDS = ("title", "subtitle", "text", "points", "image", "cta")


class LegacySection(BaseModel):
    """Flat section shape: content fields sit directly on the section."""

    model_config = _ARTICLE_CONFIG

    id: str = ""
    section_kind: str = Field(default="content", alias="type")
    title: str = ""
    subtitle: str = ""
    text: str = ""
    points: list[str] = Field(default_factory=list)
    image: str = ""
    cta: str = ""
    qr_code: bool = Field(default=False, alias="qrCode")
    theme: Theme | None = None

    @field_validator("title", "subtitle", "text", "image", "cta", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _as_text(value)

    @field_validator("points", mode="before")
    @classmethod
    def _points(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [_as_text(item) for item in value if _as_text(item)]

    @staticmethod
    def matches(payload: dict[str, Any]) -> bool:
        """True when a raw section uses the flat shape instead of ``elements``."""
        if payload.get("elements"):
            return False
        return any(payload.get(name) for name in _LEGACY_FIELDS)

    def to_canonical(self) -> "ArticleSection":
        elements: list[Any] = []
        if self.title:
            elements.append(TitleElement(content=self.title, size="large", alignment="left"))
        if self.subtitle:
            elements.append(TextElement(content=self.subtitle, style="highlight"))
        if self.image:
            elements.append(ImageElement(url=self.image, size="full"))
        if self.text:
            elements.append(TextElement(content=self.text, style="paragraph"))
        if self.points:
            elements.append(ListElement(items=self.points, style="bullet"))
        if self.cta:
            elements.append(CtaElement(text=self.cta))
        return ArticleSection(
            id=self.id,
            section_kind=self.section_kind,
            elements=elements,
            theme=self.theme,
            qr_code=self.qr_code,
        )


class ArticleSection(BaseModel):
    """One rendered section: ordered typed elements plus its theme."""

    model_config = _ARTICLE_CONFIG

    id: str = ""
    section_kind: str = Field(default="content", alias="type")
    elements: list[ArticleElement] = Field(default_factory=list)
    theme: Theme | None = None
    qr_code: bool = Field(default=False, alias="qrCode")

    @model_validator(mode="before")
    @classmethod
    def _normalize_legacy(cls, data: Any) -> Any:
        if isinstance(data, dict) and LegacySection.matches(data):
            return LegacySection.model_validate(data).to_canonical().model_dump(by_alias=True)
        return data

    @field_validator("id", "section_kind", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _as_text(value)

    def element_kinds(self) -> list[str]:
        return [element.kind for element in self.elements]


class Article(BaseModel):
    """An ordered sequence of sections, ready for theme resolution and rendering."""

    model_config = _ARTICLE_CONFIG

    sections: list[ArticleSection] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _accept_section_list(cls, data: Any) -> Any:
        # Persisted articles (and raw model output) are bare section arrays;
        # older snapshots stored them under "slides".
        if isinstance(data, list):
            return {"sections": data}
        if isinstance(data, dict) and "sections" not in data and "slides" in data:
            return {**data, "sections": data["slides"]}
        return data

    def section_kind_sequences(self) -> list[list[str]]:
        return [section.element_kinds() for section in self.sections]

    def to_payload(self) -> list[dict[str, Any]]:
        """Serialize to the persisted (camelCase) section array."""
        return [section.model_dump(by_alias=True, mode="json") for section in self.sections]
